# Models package for CertiAI

from .user import User, UserRole
from .verification import CertificateType, Verification, VerificationStatus

__all__ = [
    "User",
    "UserRole",
    "Verification",
    "VerificationStatus",
    "CertificateType",
]
