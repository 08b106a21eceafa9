# certiai/routers/verification.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from certiai.auth.deps import get_current_user
from certiai.core.errors import ValidationFailed
from certiai.core.rate_limit import limiter
from certiai.core.settings import settings
from certiai.db import get_db
from certiai.dependencies import get_pipeline
from certiai.models.user import User
from certiai.schemas.base import envelope
from certiai.schemas.verification import VerificationOut
from certiai.services.verification_service import VerificationPipeline

router = APIRouter(prefix="/verification", tags=["verification"])


@router.post("/upload", status_code=201)
@limiter.limit(settings.RATE_LIMIT_UPLOAD)
async def upload_certificate(
    request: Request,
    file: Optional[UploadFile] = File(None),
    certificate_type: Optional[str] = Form(None, alias="certificateType"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    pipeline: VerificationPipeline = Depends(get_pipeline),
):
    """
    Upload een certificaat. Antwoordt direct met het record (PENDING);
    de classificatie loopt op de achtergrond.
    """
    if file is None or not file.filename:
        raise ValidationFailed("No file uploaded")

    # één byte extra lezen zodat te grote bestanden herkend worden
    data = await file.read(pipeline.max_upload_bytes + 1)

    verification = await pipeline.upload_certificate(
        db,
        user.id,
        file_name=file.filename,
        data=data,
        mime_type=file.content_type,
        certificate_type=certificate_type,
    )
    return envelope("Certificate uploaded successfully", verification)


@router.get("/history")
def get_history(
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    pipeline: VerificationPipeline = Depends(get_pipeline),
):
    result = pipeline.get_history(db, user.id, page=page, page_size=page_size)
    return envelope("Verification history retrieved successfully", result)


@router.get("/dashboard/stats")
def get_dashboard_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    pipeline: VerificationPipeline = Depends(get_pipeline),
):
    stats = pipeline.get_dashboard_stats(db, user.id)
    return envelope("Dashboard statistics retrieved successfully", stats)


@router.get("/{verification_id}")
def get_verification(
    verification_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    pipeline: VerificationPipeline = Depends(get_pipeline),
):
    record = pipeline.get_verification(db, verification_id, user.id)
    return envelope(
        "Verification retrieved successfully", VerificationOut.model_validate(record)
    )


# async: annuleren van de achtergrondtaak moet op de event loop gebeuren
@router.delete("/{verification_id}")
async def delete_verification(
    verification_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    pipeline: VerificationPipeline = Depends(get_pipeline),
):
    pipeline.delete_verification(db, verification_id, user.id)
    return envelope("Verification deleted successfully")
