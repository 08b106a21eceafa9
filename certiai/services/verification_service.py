# certiai/services/verification_service.py
"""
Verification pipeline.

Lifecycle van één upload:

    intake        -> PENDING      (synchroon, record gaat direct terug naar de client)
    dispatch      -> PROCESSING   (achtergrondtaak, via VerificationDispatcher)
    reconcile     -> AUTHENTIC | SUSPICIOUS | FORGED

Fouten tijdens dispatch/reconcile (classifier onbereikbaar, kapotte response,
bestand weg, ...) eindigen in FORGED met een error_message en zonder
analysevelden. De intake-caller merkt daar niets van; het resultaat is alleen
zichtbaar via latere reads.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from certiai.core.errors import CertiAIError, ValidationFailed, VerificationNotFound
from certiai.core.logging_config import logger
from certiai.db import SessionLocal
from certiai.models.verification import Verification, VerificationStatus
from certiai.observability.metrics import reconcile_counter, upload_counter, upload_size_hist
from certiai.schemas.verification import (
    DashboardStats,
    Pagination,
    VerificationHistory,
    VerificationOut,
)
from certiai.services.classifier_client import ClassifierGateway
from certiai.services.dispatcher import VerificationDispatcher
from certiai.services.storage import Storage
from certiai.services.validation_uploads import (
    validate_certificate_type,
    validate_mime,
    validate_size,
)
from certiai.workflow.status import TERMINAL, advance, is_terminal, status_from_label

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
RECENT_LIMIT = 10


@dataclass(frozen=True)
class _Dispatch:
    """Wat de achtergrondtaak nodig heeft om de classifier aan te roepen."""

    file_url: str
    file_name: str
    file_mime_type: str
    certificate_type: str


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, CertiAIError):
        return exc.message
    return str(exc) or exc.__class__.__name__


class VerificationPipeline:
    def __init__(
        self,
        gateway: ClassifierGateway,
        storage: Storage,
        *,
        dispatcher: Optional[VerificationDispatcher] = None,
        session_factory: Callable[[], Session] = SessionLocal,
        max_upload_bytes: int = 10 * 1024 * 1024,
        allowed_mimes: Iterable[str] = ("image/jpeg", "image/jpg", "image/png", "application/pdf"),
    ):
        self.gateway = gateway
        self.storage = storage
        self.dispatcher = dispatcher or VerificationDispatcher()
        self.session_factory = session_factory
        self.max_upload_bytes = max_upload_bytes
        self.allowed_mimes = frozenset(allowed_mimes)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------
    def create_verification(
        self,
        db: Session,
        user_id: str,
        *,
        file_name: str,
        data: bytes,
        mime_type: Optional[str],
        certificate_type: Optional[str],
    ) -> Verification:
        """Valideer, sla het bestand op en maak het PENDING record aan."""
        try:
            ctype = validate_certificate_type(certificate_type)
            mime = validate_mime(mime_type, self.allowed_mimes)
            validate_size(len(data), self.max_upload_bytes)
        except ValidationFailed:
            upload_counter.labels(result="rejected").inc()
            raise

        location = self.storage.save_bytes(file_name, data)

        record = Verification(
            user_id=user_id,
            certificate_type=ctype,
            file_name=file_name,
            file_url=location,
            file_size=len(data),
            file_mime_type=mime,
            status=VerificationStatus.PENDING,
        )
        try:
            db.add(record)
            db.commit()
        except Exception:
            db.rollback()
            self.storage.delete(location)
            raise
        db.refresh(record)

        upload_counter.labels(result="accepted").inc()
        upload_size_hist.observe(len(data))
        logger.info(
            "verification_created",
            verification_id=record.id,
            user_id=user_id,
            certificate_type=ctype.value,
            size=len(data),
        )
        return record

    async def upload_certificate(
        self,
        db: Session,
        user_id: str,
        *,
        file_name: str,
        data: bytes,
        mime_type: Optional[str],
        certificate_type: Optional[str],
    ) -> VerificationOut:
        """
        Intake: record aanmaken en direct teruggeven (status PENDING).
        De classificatie start als achtergrondtaak; moet dus binnen een
        draaiende event loop aangeroepen worden.
        """
        record = self.create_verification(
            db,
            user_id,
            file_name=file_name,
            data=data,
            mime_type=mime_type,
            certificate_type=certificate_type,
        )
        # snapshot vóór de taak start: de response toont altijd PENDING
        snapshot = VerificationOut.model_validate(record)
        self.dispatcher.schedule(record.id, self.process_verification(record.id))
        return snapshot

    # ------------------------------------------------------------------
    # Dispatch + reconcile (achtergrond)
    # ------------------------------------------------------------------
    def _start_processing(self, verification_id: str) -> Optional[_Dispatch]:
        db = self.session_factory()
        try:
            record = db.get(Verification, verification_id)
            if record is None:
                logger.warning("verification_missing", verification_id=verification_id)
                return None
            if is_terminal(record.status):
                logger.info(
                    "verification_already_final",
                    verification_id=verification_id,
                    status=record.status.value,
                )
                return None

            advance(record, VerificationStatus.PROCESSING)
            db.commit()
            return _Dispatch(
                file_url=record.file_url,
                file_name=record.file_name,
                file_mime_type=record.file_mime_type,
                certificate_type=record.certificate_type.value,
            )
        finally:
            db.close()

    def _complete(
        self,
        verification_id: str,
        *,
        confidence: float,
        authenticity: str,
        details,
        processing_time: int,
    ) -> Optional[VerificationStatus]:
        status = status_from_label(authenticity)
        db = self.session_factory()
        try:
            record = db.get(Verification, verification_id)
            if record is None:
                # verwijderd terwijl de classifier bezig was: niets terugschrijven
                logger.warning("verification_gone_before_reconcile", verification_id=verification_id)
                return None

            advance(record, status)
            record.confidence_score = confidence
            record.analysis_result = {
                "confidence": confidence,
                "authenticity": authenticity,
                "details": details,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            record.processing_time = processing_time
            record.error_message = None
            db.commit()
            return status
        finally:
            db.close()

    def _fail(self, verification_id: str, exc: Exception, processing_time: int) -> None:
        message = _error_message(exc)
        db = self.session_factory()
        try:
            record = db.get(Verification, verification_id)
            if record is None:
                logger.warning("verification_gone_before_reconcile", verification_id=verification_id)
                return
            if record.status in TERMINAL:
                logger.error(
                    "verification_failed_after_final",
                    verification_id=verification_id,
                    status=record.status.value,
                    error=message,
                )
                return

            advance(record, VerificationStatus.FORGED)
            record.confidence_score = None
            record.analysis_result = None
            record.error_message = message
            record.processing_time = processing_time
            db.commit()
        finally:
            db.close()

        reconcile_counter.labels(status=VerificationStatus.FORGED.value, path="failed").inc()
        logger.error(
            "verification_failed",
            verification_id=verification_id,
            error=message,
            error_type=exc.__class__.__name__,
            processing_time_ms=processing_time,
        )

    async def process_verification(self, verification_id: str) -> None:
        """PENDING -> PROCESSING -> eindstatus. Gooit nooit, behalve bij annulering."""
        start = time.monotonic()
        try:
            job = self._start_processing(verification_id)
            if job is None:
                return
            logger.info("verification_processing", verification_id=verification_id)

            with self.storage.open(job.file_url) as fh:
                result = await self.gateway.classify(
                    fh,
                    job.certificate_type,
                    filename=job.file_name,
                    content_type=job.file_mime_type,
                )

            processing_time = _elapsed_ms(start)
            status = self._complete(
                verification_id,
                confidence=result.confidence,
                authenticity=result.authenticity,
                details=result.details,
                processing_time=processing_time,
            )
        except Exception as e:
            self._fail(verification_id, e, _elapsed_ms(start))
            return

        if status is not None:
            reconcile_counter.labels(status=status.value, path="classified").inc()
            logger.info(
                "verification_completed",
                verification_id=verification_id,
                status=status.value,
                confidence=result.confidence,
                processing_time_ms=processing_time,
            )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @staticmethod
    def _owned(db: Session, user_id: str):
        return db.query(Verification).filter(Verification.user_id == user_id)

    def get_history(
        self,
        db: Session,
        user_id: str,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> VerificationHistory:
        if page < 1:
            raise ValidationFailed("page must be >= 1")
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationFailed(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")

        q = self._owned(db, user_id)
        total = q.count()
        rows = (
            q.order_by(Verification.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return VerificationHistory(
            verifications=[VerificationOut.model_validate(r) for r in rows],
            pagination=Pagination(
                page=page,
                page_size=page_size,
                total=total,
                total_pages=math.ceil(total / page_size),
            ),
        )

    def get_verification(self, db: Session, verification_id: str, user_id: str) -> Verification:
        """Bestaat niet en hoort bij iemand anders zijn voor de caller hetzelfde."""
        record = (
            self._owned(db, user_id)
            .filter(Verification.id == verification_id)
            .first()
        )
        if record is None:
            raise VerificationNotFound()
        return record

    def get_dashboard_stats(self, db: Session, user_id: str) -> DashboardStats:
        counts = dict(
            db.query(Verification.status, func.count(Verification.id))
            .filter(Verification.user_id == user_id)
            .group_by(Verification.status)
            .all()
        )
        total = sum(counts.values())
        authentic = counts.get(VerificationStatus.AUTHENTIC, 0)
        suspicious = counts.get(VerificationStatus.SUSPICIOUS, 0)
        forged = counts.get(VerificationStatus.FORGED, 0)

        failed = (
            self._owned(db, user_id)
            .filter(
                Verification.status == VerificationStatus.FORGED,
                Verification.error_message.isnot(None),
            )
            .count()
        )

        recent = (
            self._owned(db, user_id)
            .order_by(Verification.created_at.desc())
            .limit(RECENT_LIMIT)
            .all()
        )

        return DashboardStats(
            total_verified=total,
            authentic=authentic,
            suspicious=suspicious,
            forged=forged,
            pending=total - (authentic + suspicious + forged),
            failed=failed,
            recent_verifications=[VerificationOut.model_validate(r) for r in recent],
        )

    def delete_verification(self, db: Session, verification_id: str, user_id: str) -> None:
        record = self.get_verification(db, verification_id, user_id)

        # lopende classificatie stoppen, anders schrijft die naar een verwijderd record
        if self.dispatcher.cancel(record.id):
            logger.info("verification_task_cancelled_on_delete", verification_id=record.id)

        self.storage.delete(record.file_url)

        db.delete(record)
        db.commit()
        logger.info("verification_deleted", verification_id=verification_id, user_id=user_id)
