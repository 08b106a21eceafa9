# certiai/schemas/verification.py
from datetime import datetime
from typing import Any, Optional

from certiai.models.verification import CertificateType, VerificationStatus
from certiai.schemas.base import CamelModel


class VerificationOut(CamelModel):
    id: str
    user_id: str
    certificate_type: CertificateType
    file_name: str
    file_url: str
    file_size: int
    file_mime_type: str
    status: VerificationStatus
    confidence_score: Optional[float] = None
    analysis_result: Optional[dict[str, Any]] = None
    processing_time: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class VerificationHistory(CamelModel):
    verifications: list[VerificationOut]
    pagination: Pagination


class DashboardStats(CamelModel):
    total_verified: int
    authentic: int
    suspicious: int
    forged: int
    # total - (authentic + suspicious + forged): PENDING en PROCESSING samen
    pending: int
    # subset van `forged` met een error_message (classifier onbereikbaar e.d.)
    failed: int
    recent_verifications: list[VerificationOut]
