"""
SQLAlchemy models for the member onboarding review service.
"""

from app.models.application import ApplicationStatus, MemberApplication
from app.models.audit import AuditLog, AuditLogImmutableError
from app.models.base import Base, BaseModel
from app.models.member import KYCStatus, Member
from app.models.user import User, UserRole

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    # Identity
    "User",
    "UserRole",
    # Onboarding
    "Member",
    "KYCStatus",
    "MemberApplication",
    "ApplicationStatus",
    # Audit
    "AuditLog",
    "AuditLogImmutableError",
]
