"""
User model owned by the identity collaborator.
"""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import String
from sqlalchemy.orm import relationship

from app.models.base import GUID, BaseModel


class UserRole(str, Enum):
    """User role enumeration."""

    ADMIN = "admin"
    MEMBER = "member"


class User(BaseModel):
    """Platform user; either an administrator or a member's representative."""

    __tablename__ = "users"

    email = Column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        doc="User email address (unique identifier)",
    )

    name = Column(String(200), nullable=True, doc="Display name")

    member_id = Column(
        GUID(),
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Member this user belongs to",
    )

    hashed_password = Column(
        String(255), nullable=True, doc="Hashed password using bcrypt"
    )

    is_active = Column(
        Boolean, default=True, nullable=False, doc="Whether the user account is active"
    )

    role = Column(
        SQLEnum(UserRole),
        default=UserRole.MEMBER,
        nullable=False,
        doc="User's role in the system",
    )

    last_login = Column(DateTime, nullable=True, doc="Last successful sign-in")

    member = relationship(
        "Member",
        back_populates="users",
        foreign_keys=[member_id],
        doc="Member this user belongs to",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
