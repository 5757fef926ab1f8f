"""
Custom exception classes for the member onboarding review service.
"""
from typing import Any, Dict, Optional


class OnboardingBaseException(Exception):
    """Base exception for the onboarding review service."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(OnboardingBaseException):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(self, message: str, field: str = None, **kwargs):
        details = {"field": field} if field else {}
        details.update(kwargs)
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationError(OnboardingBaseException):
    """Raised when no authenticated principal is present."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, "AUTHENTICATION_ERROR", kwargs)


class AuthorizationError(OnboardingBaseException):
    """Raised when the principal lacks the required role."""

    status_code = 403

    def __init__(self, message: str = "Admin access required", **kwargs):
        super().__init__(message, "AUTHORIZATION_ERROR", kwargs)


class ApplicationNotFoundError(OnboardingBaseException):
    """Raised when a member application is not found."""

    status_code = 404

    def __init__(self, application_id: str, **kwargs):
        message = "Application not found"
        details = {"application_id": application_id}
        details.update(kwargs)
        super().__init__(message, "APPLICATION_NOT_FOUND", details)


class DecisionConflictError(OnboardingBaseException):
    """Raised when another reviewer already decided the application."""

    status_code = 409

    def __init__(self, application_id: str, message: str = None, **kwargs):
        message = message or f"Application {application_id} is no longer pending"
        details = {"application_id": application_id}
        details.update(kwargs)
        super().__init__(message, "DECISION_CONFLICT", details)


class RepositoryError(OnboardingBaseException):
    """Raised when a data store write fails."""

    status_code = 500

    def __init__(self, message: str = "Database operation failed", **kwargs):
        super().__init__(message, "REPOSITORY_ERROR", kwargs)
