"""
Application decision request and response schemas.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, validator

from app.models.application import APPLICATION_TRANSITIONS, ApplicationStatus
from app.models.user import UserRole


class Principal(BaseModel):
    """Authenticated identity resolved for a single request."""

    id: UUID = Field(..., description="User ID of the principal")
    role: UserRole = Field(..., description="Principal's role")
    email: Optional[str] = Field(None, description="Principal's e-mail address")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class DecisionRequest(BaseModel):
    """Body of an approve or reject call.

    Both identifiers are optional at the schema level so that missing fields
    are reported by the review service after authorization has been checked.
    """

    application_id: Optional[str] = Field(None, alias="applicationId", description="Application ID")
    member_id: Optional[str] = Field(None, alias="memberId", description="Member ID")
    reason: Optional[str] = Field(None, max_length=1000, description="Rejection reason")

    @validator("application_id", "member_id", "reason", pre=True)
    def blank_to_none(cls, v):
        """Treat empty strings like absent fields; numeric identifiers become strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
        return v or None

    class Config:
        populate_by_name = True


class Decision(BaseModel):
    """A decision to be written for one application/member pair."""

    status: ApplicationStatus = Field(..., description="Target status")
    reason: Optional[str] = Field(None, description="Rejection reason")
    reviewer_id: UUID = Field(..., description="Reviewing administrator")
    decided_at: datetime = Field(default_factory=datetime.utcnow, description="Decision timestamp")

    @validator("status")
    def validate_terminal(cls, v):
        if v == ApplicationStatus.PENDING:
            raise ValueError("A decision must approve or reject")
        return v


class ApplicationView(BaseModel):
    """Application joined with its member and submitting user."""

    id: UUID
    member_id: UUID
    user_id: Optional[UUID] = None
    status: ApplicationStatus
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    company_name: Optional[str] = None
    contact_email: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None

    def can_transition_to(self, new_status: ApplicationStatus) -> bool:
        """Check if the application can move to new status."""
        return new_status in APPLICATION_TRANSITIONS.get(self.status, [])


class NotificationResult(BaseModel):
    """Advisory outcome of the decision e-mail."""

    sent: bool = Field(..., description="Whether the e-mail was accepted by the provider")
    destination: Optional[str] = Field(None, description="Address the e-mail was sent to")
    error: Optional[str] = Field(None, description="Why the e-mail was not sent")
    message_id: Optional[str] = Field(None, description="Provider message ID")


class DecisionResult(BaseModel):
    """Outcome of a committed decision plus its notification side channel."""

    application_id: UUID
    status: ApplicationStatus
    message: str
    notification: NotificationResult

    @property
    def email_sent(self) -> bool:
        return self.notification.sent


class DecisionResponse(BaseModel):
    """Successful decision response body."""

    success: bool = Field(True, description="Decision committed")
    message: str = Field(..., description="Human readable outcome")
    email_sent: bool = Field(..., description="Whether the decision e-mail was sent")


class ErrorResponse(BaseModel):
    """Error response envelope."""

    error: str = Field(..., description="Error summary")
    message: Optional[str] = Field(None, description="Additional detail")


class PendingApplicationsResponse(BaseModel):
    """Review queue listing."""

    items: List[ApplicationView]
    total: int
