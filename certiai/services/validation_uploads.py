# certiai/services/validation_uploads.py
from typing import Iterable, Optional

from certiai.core.errors import FileTooLarge, ValidationFailed
from certiai.models.verification import CertificateType


def validate_mime(content_type: Optional[str], allowed: Iterable[str]) -> str:
    if not content_type or content_type not in set(allowed):
        raise ValidationFailed("Invalid file type. Only JPG, PNG, and PDF are allowed.")
    return content_type


def validate_size(size_bytes: int, max_bytes: int) -> None:
    if size_bytes <= 0:
        raise ValidationFailed("Uploaded file is empty")
    if size_bytes > max_bytes:
        raise FileTooLarge(f"File is too large (max {max_bytes // (1024 * 1024)} MB)")


def validate_certificate_type(value: Optional[str]) -> CertificateType:
    try:
        return CertificateType(value)
    except ValueError:
        raise ValidationFailed("Invalid certificate type")
