"""
FastAPI dependencies for database sessions, identity and services.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.application import Principal
from app.services.application_service import ApplicationReviewService
from app.services.email_service import EmailService, get_email_service
from app.services.identity_service import IdentityService

# Absence of credentials is reported by the review service, not by FastAPI
security = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[Principal]:
    """
    Resolve the authenticated principal, if any.

    Args:
        credentials: Optional HTTP Bearer credentials
        db: Database session

    Returns:
        Principal when the token is valid and the user active, None otherwise
    """
    if credentials is None:
        return None
    return IdentityService(db).resolve_principal(credentials.credentials)


def get_application_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> ApplicationReviewService:
    """Build the review service for this request."""
    return ApplicationReviewService(db, email_service=email_service)


__all__ = ["get_db", "get_current_principal", "get_application_service"]
