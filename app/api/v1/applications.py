"""
Member application review API endpoints.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.deps import get_application_service, get_current_principal
from app.core.exceptions import DecisionConflictError, OnboardingBaseException
from app.models.application import ApplicationStatus
from app.schemas.application import (
    DecisionResponse,
    ErrorResponse,
    PendingApplicationsResponse,
    Principal,
)
from app.schemas.audit import AuditEventResponse, AuditTrailResponse
from app.services.application_service import ApplicationReviewService
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid fields"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Admin access required"},
    404: {"model": ErrorResponse, "description": "Application not found"},
    409: {"model": ErrorResponse, "description": "Application already reviewed"},
    500: {"model": ErrorResponse, "description": "Decision could not be saved"},
}


async def _read_body(request: Request) -> Optional[Any]:
    try:
        return await request.json()
    except ValueError:
        return None


def _error_response(exc: OnboardingBaseException, verb: str) -> JSONResponse:
    """Translate a decision failure into the error envelope."""
    if exc.status_code >= 500:
        body = ErrorResponse(error=f"Failed to {verb} application", message=exc.message)
    elif isinstance(exc, DecisionConflictError):
        body = ErrorResponse(error="Application already reviewed", message=exc.message)
    else:
        body = ErrorResponse(error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
    )


async def _decide(
    request: Request,
    decision: ApplicationStatus,
    principal: Optional[Principal],
    service: ApplicationReviewService,
):
    verb = "approve" if decision == ApplicationStatus.APPROVED else "reject"
    payload = await _read_body(request)

    try:
        result = await service.decide(
            principal,
            payload,
            decision,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    except OnboardingBaseException as e:
        return _error_response(e, verb)
    except Exception:
        logger.exception("Application decision error", decision=decision.value)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Failed to {verb} application", "message": "Unexpected error"},
        )

    return DecisionResponse(success=True, message=result.message, email_sent=result.email_sent)


@router.post("/approve", response_model=DecisionResponse, responses=ERROR_RESPONSES)
async def approve_application(
    request: Request,
    principal: Optional[Principal] = Depends(get_current_principal),
    service: ApplicationReviewService = Depends(get_application_service),
):
    """
    Approve a pending member application (admin only).

    Body: ``{"applicationId": str, "memberId": str}``. Sets the application
    and the member's KYC status to approved, issues a temporary password and
    e-mails the applicant. E-mail failure is reported through ``email_sent``
    and does not fail the request.
    """
    return await _decide(request, ApplicationStatus.APPROVED, principal, service)


@router.post("/reject", response_model=DecisionResponse, responses=ERROR_RESPONSES)
async def reject_application(
    request: Request,
    principal: Optional[Principal] = Depends(get_current_principal),
    service: ApplicationReviewService = Depends(get_application_service),
):
    """
    Reject a pending member application (admin only).

    Body: ``{"applicationId": str, "memberId": str, "reason": str?}``.
    """
    return await _decide(request, ApplicationStatus.REJECTED, principal, service)


@router.get("/pending", response_model=PendingApplicationsResponse)
async def list_pending_applications(
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records to return"),
    principal: Optional[Principal] = Depends(get_current_principal),
    service: ApplicationReviewService = Depends(get_application_service),
):
    """Get pending applications awaiting review, oldest first (admin only)."""
    items = await service.get_pending_applications(principal, limit)
    return PendingApplicationsResponse(items=items, total=len(items))


@router.get("/{application_id}/audit", response_model=AuditTrailResponse)
async def get_application_audit_trail(
    application_id: str,
    principal: Optional[Principal] = Depends(get_current_principal),
    service: ApplicationReviewService = Depends(get_application_service),
):
    """Get the audit trail for an application (admin only)."""
    events = await service.get_audit_trail(principal, application_id)
    return AuditTrailResponse(
        entity_id=application_id,
        events=[AuditEventResponse.model_validate(event) for event in events],
        total_entries=len(events),
    )
