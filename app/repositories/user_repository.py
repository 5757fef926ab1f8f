"""
User repository for database operations.
"""

from typing import Optional

from sqlalchemy.orm import Session

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with user-specific operations."""

    def __init__(self, db: Session):
        """Initialize user repository."""
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: User email address

        Returns:
            User instance if found, None otherwise
        """
        return self.db.query(User).filter(User.email == email).first()

    def set_password(self, user_id, hashed_password: str) -> Optional[User]:
        """
        Replace a user's password hash.

        Args:
            user_id: User ID
            hashed_password: New bcrypt hash

        Returns:
            Updated user if found, None otherwise
        """
        user = self.get_by_id(user_id)
        if not user:
            return None

        user.hashed_password = hashed_password
        self.db.commit()
        self.db.refresh(user)
        return user
