"""
Member application model tracking the onboarding review decision.
"""
from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, String
from sqlalchemy.orm import relationship

from app.models.base import GUID, BaseModel
from app.models.member import KYCStatus


class ApplicationStatus(str, Enum):
    """Application review status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def kyc_status(self) -> KYCStatus:
        """Member KYC status that mirrors this application status."""
        return KYCStatus(self.value)


APPLICATION_TRANSITIONS = {
    ApplicationStatus.PENDING: [ApplicationStatus.APPROVED, ApplicationStatus.REJECTED],
    ApplicationStatus.APPROVED: [],  # Final state
    ApplicationStatus.REJECTED: [],  # Final state
}


class MemberApplication(BaseModel):
    """One onboarding request tied to a member and the user who submitted it."""

    __tablename__ = "member_applications"

    member_id = Column(
        GUID(),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Member being onboarded"
    )

    user_id = Column(
        GUID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="User who submitted the application"
    )

    status = Column(
        SQLEnum(ApplicationStatus),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True,
        doc="Current review status"
    )

    rejection_reason = Column(
        String(1000),
        nullable=True,
        doc="Reason for rejection if status is rejected"
    )

    reviewed_at = Column(
        DateTime,
        nullable=True,
        doc="When the decision was made"
    )

    reviewed_by = Column(
        GUID(),
        nullable=True,
        doc="Identifier of the reviewing administrator"
    )

    member = relationship(
        "Member",
        back_populates="applications",
        doc="Member associated with this application"
    )

    user = relationship(
        "User",
        foreign_keys=[user_id],
        doc="Submitting user"
    )

    def __repr__(self) -> str:
        return f"<MemberApplication(id={self.id}, member_id={self.member_id}, status={self.status})>"
