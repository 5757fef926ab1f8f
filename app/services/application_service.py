"""
Application review service: the approve/reject decision pipeline.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import (
    ApplicationNotFoundError,
    DecisionConflictError,
    RepositoryError,
    ValidationError,
)
from app.core.security import SecurityUtils
from app.models.application import ApplicationStatus
from app.models.base import parse_uuid
from app.models.audit import AuditLog
from app.repositories.application_repository import ApplicationRepository
from app.repositories.user_repository import UserRepository
from app.schemas.application import (
    ApplicationView,
    Decision,
    DecisionRequest,
    DecisionResult,
    NotificationResult,
    Principal,
)
from app.services.audit_service import AuditService
from app.services.email_service import EmailService, resolve_destination
from app.services.identity_service import authorize
from app.utils.logging import get_logger

logger = get_logger(__name__)

ENTITY_TYPE = "member_application"
NOTIFICATION_ACTION = "application.notification_sent"
DEFAULT_REJECTION_REASON = "No reason provided"

DECISION_ACTIONS = {
    ApplicationStatus.APPROVED: "application.approved",
    ApplicationStatus.REJECTED: "application.rejected",
}

DECISION_MESSAGES = {
    ApplicationStatus.APPROVED: "Application approved successfully",
    ApplicationStatus.REJECTED: "Application rejected",
}


class ApplicationReviewService:
    """Coordinates authorization, the paired state transition, audit and e-mail."""

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
    ):
        """
        Initialize application review service.

        Args:
            db: Database session
            email_service: Notification sender, defaults to the configured service
        """
        self.db = db
        self.application_repository = ApplicationRepository(db)
        self.user_repository = UserRepository(db)
        self.audit_service = AuditService(db)
        self.email_service = email_service or EmailService()

    async def approve_application(
        self,
        principal: Optional[Principal],
        payload: Union[DecisionRequest, Dict[str, Any], None],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> DecisionResult:
        """Approve a pending application. See ``decide``."""
        return await self.decide(
            principal, payload, ApplicationStatus.APPROVED, ip_address, user_agent
        )

    async def reject_application(
        self,
        principal: Optional[Principal],
        payload: Union[DecisionRequest, Dict[str, Any], None],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> DecisionResult:
        """Reject a pending application. See ``decide``."""
        return await self.decide(
            principal, payload, ApplicationStatus.REJECTED, ip_address, user_agent
        )

    async def decide(
        self,
        principal: Optional[Principal],
        payload: Union[DecisionRequest, Dict[str, Any], None],
        status: ApplicationStatus,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> DecisionResult:
        """
        Apply a review decision to a pending application and its member.

        Nothing is written unless the principal is an admin, the payload names
        an existing application and its member, and the application is still
        pending. Once the paired write commits, audit and e-mail failures are
        recorded but do not change the result.

        Args:
            principal: Resolved principal, None when unauthenticated
            payload: Request body with applicationId, memberId and optional reason
            status: Target status (approved or rejected)
            ip_address: Caller IP address for the audit trail
            user_agent: Caller user agent for the audit trail

        Returns:
            DecisionResult with the notification outcome

        Raises:
            AuthenticationError: If no principal is present
            AuthorizationError: If the principal is not an admin
            ValidationError: If required fields are missing or inconsistent
            ApplicationNotFoundError: If the application does not exist
            DecisionConflictError: If the application was already decided
            RepositoryError: If the paired write fails
        """
        principal = authorize(principal)
        request = self._parse_request(payload)

        application = await run_in_threadpool(
            self.application_repository.get_with_relations, request.application_id
        )
        if application is None:
            raise ApplicationNotFoundError(request.application_id)

        if parse_uuid(request.member_id) != application.member_id:
            raise ValidationError(
                "memberId does not match the application's member",
                field="memberId",
            )

        if not application.can_transition_to(status):
            raise DecisionConflictError(
                str(application.id), current_status=application.status.value
            )

        reason = None
        if status == ApplicationStatus.REJECTED:
            reason = request.reason or DEFAULT_REJECTION_REASON

        decision = Decision(status=status, reason=reason, reviewer_id=principal.id)

        logger.info(
            "Applying application decision",
            application_id=str(application.id),
            member_id=str(application.member_id),
            decision=status.value,
            reviewer_id=str(principal.id),
        )

        try:
            await run_in_threadpool(
                self.application_repository.apply_decision,
                application.member_id,
                application.id,
                decision,
            )
        except RepositoryError as e:
            logger.error(
                "Application decision failed",
                application_id=str(application.id),
                decision=status.value,
                error=e.message,
            )
            raise

        # The decision is committed; nothing below may undo it.
        temporary_password = None
        if status == ApplicationStatus.APPROVED:
            temporary_password = await self._issue_temporary_password(application)

        details = {
            "member_id": str(application.member_id),
            "company_name": application.company_name,
        }
        if status == ApplicationStatus.REJECTED:
            details["reason"] = reason

        await run_in_threadpool(
            self.audit_service.record,
            DECISION_ACTIONS[status],
            ENTITY_TYPE,
            str(application.id),
            str(principal.id),
            details,
            ip_address,
            user_agent,
        )

        notification = await self._notify(application, status, reason, temporary_password)

        await run_in_threadpool(
            self.audit_service.record,
            NOTIFICATION_ACTION,
            ENTITY_TYPE,
            str(application.id),
            str(principal.id),
            {
                "decision": status.value,
                "email_success": notification.sent,
                "email_to": notification.destination,
                "email_error": notification.error,
            },
            ip_address,
            user_agent,
        )

        logger.info(
            "Application decision completed",
            application_id=str(application.id),
            decision=status.value,
            email_sent=notification.sent,
        )

        return DecisionResult(
            application_id=application.id,
            status=status,
            message=DECISION_MESSAGES[status],
            notification=notification,
        )

    async def get_pending_applications(
        self, principal: Optional[Principal], limit: int = 100
    ) -> List[ApplicationView]:
        """Get the review queue (admin only)."""
        authorize(principal)
        return await run_in_threadpool(self.application_repository.get_pending, limit)

    async def get_audit_trail(
        self, principal: Optional[Principal], application_id: str
    ) -> List[AuditLog]:
        """Get the audit trail of an application (admin only)."""
        authorize(principal)
        application = await run_in_threadpool(
            self.application_repository.get_with_relations, application_id
        )
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return await run_in_threadpool(
            self.audit_service.get_trail, ENTITY_TYPE, str(application.id)
        )

    def _parse_request(
        self, payload: Union[DecisionRequest, Dict[str, Any], None]
    ) -> DecisionRequest:
        """
        Validate the decision payload.

        Raises:
            ValidationError: If the payload is malformed or misses required fields
        """
        if isinstance(payload, DecisionRequest):
            request = payload
        elif isinstance(payload, dict):
            try:
                request = DecisionRequest.model_validate(payload)
            except PydanticValidationError as e:
                raise ValidationError("Invalid request body", errors=e.errors(include_url=False))
        else:
            raise ValidationError("Invalid request body")

        if not request.application_id or not request.member_id:
            raise ValidationError("Missing required fields: applicationId, memberId")

        return request

    async def _issue_temporary_password(self, application: ApplicationView) -> Optional[str]:
        """
        Set a temporary password for the submitting user.

        Failures are logged and the approval continues; the member can use a
        password reset instead.
        """
        if application.user_id is None:
            return None

        password = SecurityUtils.generate_temporary_password()
        try:
            user = await run_in_threadpool(
                self._set_password, application.user_id, password
            )
        except Exception as e:
            logger.warning(
                "Failed to set temporary password",
                application_id=str(application.id),
                error=str(e),
            )
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.error("Temporary password rollback failed", error=str(rollback_error))
            return None

        if user is None:
            logger.warning(
                "Submitting user not found for temporary password",
                application_id=str(application.id),
            )
            return None

        return password

    def _set_password(self, user_id, password: str):
        return self.user_repository.set_password(
            user_id, SecurityUtils.get_password_hash(password)
        )

    async def _notify(
        self,
        application: ApplicationView,
        status: ApplicationStatus,
        reason: Optional[str],
        temporary_password: Optional[str],
    ) -> NotificationResult:
        """Send the decision e-mail. Never raises."""
        destination = resolve_destination(application.user_email, application.contact_email)

        try:
            result = await self.email_service.send_decision_email(
                destination=destination,
                company_name=application.company_name,
                decision=status,
                reason=reason,
                login_url=f"{settings.APP_URL}/auth/login",
                temporary_password=temporary_password,
            )
        except Exception as e:
            logger.error(
                "Decision e-mail raised",
                application_id=str(application.id),
                error=str(e),
            )
            result = NotificationResult(sent=False, destination=destination, error=str(e))

        if not result.sent:
            logger.error(
                "Failed to send decision e-mail",
                application_id=str(application.id),
                decision=status.value,
                error=result.error,
            )

        return result
