# certiai/models/verification.py
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from certiai.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CertificateType(str, enum.Enum):
    DEGREE = "DEGREE"
    DIPLOMA = "DIPLOMA"
    TRANSCRIPT = "TRANSCRIPT"
    PROFESSIONAL = "PROFESSIONAL"
    TRAINING = "TRAINING"
    OTHER = "OTHER"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    AUTHENTIC = "AUTHENTIC"
    SUSPICIOUS = "SUSPICIOUS"
    FORGED = "FORGED"


class Verification(Base):
    __tablename__ = "verifications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    certificate_type: Mapped[CertificateType] = mapped_column(
        Enum(CertificateType), nullable=False
    )

    # file metadata
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_mime_type: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus),
        nullable=False,
        default=VerificationStatus.PENDING,
        index=True,
    )

    # analysis outcome (alleen na antwoord van de classifier)
    confidence_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    analysis_result: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    processing_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # microsecond precision in Python: ordering on created_at must be stable
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    user = relationship("User", back_populates="verifications")

    def __repr__(self) -> str:
        return (
            f"<Verification id={self.id} user={self.user_id} "
            f"type={self.certificate_type} status={self.status}>"
        )
