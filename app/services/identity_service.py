"""
Identity resolution and authorization for privileged review actions.
"""

from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import SecurityUtils
from app.repositories.user_repository import UserRepository
from app.schemas.application import Principal
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class IdentityService:
    """Resolves the authenticated principal behind a bearer token."""

    def __init__(self, db: Session):
        """
        Initialize identity service.

        Args:
            db: Database session
        """
        self.db = db
        self.user_repository = UserRepository(db)

    def resolve_principal(self, token: Optional[str]) -> Optional[Principal]:
        """
        Resolve the principal for an access token.

        Args:
            token: Raw bearer token, may be None

        Returns:
            Principal if the token is valid and names an active user, None otherwise
        """
        if not token:
            return None

        user_id = SecurityUtils.get_subject_from_token(token, "access")
        if user_id is None:
            logger.info("Rejected invalid or expired access token")
            return None

        # Role lookup by principal id
        user = self.user_repository.get_by_id(user_id)
        if user is None or not user.is_active:
            logger.info("Token subject is unknown or inactive", user_id=user_id)
            return None

        return Principal(id=user.id, role=user.role, email=user.email)


def authorize(principal: Optional[Principal]) -> Principal:
    """
    Allow only authenticated administrators.

    Args:
        principal: Resolved principal, None when there is no session

    Returns:
        The principal when allowed

    Raises:
        AuthenticationError: If no principal is present
        AuthorizationError: If the principal is not an admin
    """
    if principal is None:
        raise AuthenticationError()

    if not principal.is_admin:
        log_security_event(
            "admin_access_denied",
            user_id=str(principal.id),
            details={"role": principal.role.value},
        )
        raise AuthorizationError()

    return principal
