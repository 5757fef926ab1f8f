"""
Security utilities for JWT tokens and password hashing.
"""
import secrets
import string
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union

import jwt
from passlib.context import CryptContext

from app.core.config import settings


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TEMP_PASSWORD_ALPHABET = string.ascii_letters + string.digits


class SecurityUtils:
    """Security utilities for authentication."""

    @staticmethod
    def create_access_token(
        subject: Union[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token.

        Args:
            subject: The subject (usually user ID) to encode in the token
            expires_delta: Optional custom expiration time

        Returns:
            Encoded JWT token string
        """
        now = datetime.utcnow()
        if expires_delta:
            expire = now + expires_delta
        else:
            expire = now + timedelta(
                minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
            )

        to_encode = {
            "exp": expire,
            "sub": str(subject),
            "type": "access",
            "iat": now,
            "jti": str(uuid.uuid4())
        }

        return jwt.encode(
            to_encode,
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM
        )

    @staticmethod
    def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Args:
            token: The JWT token to verify
            token_type: Expected token type

        Returns:
            Decoded token payload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )

            if payload.get("type") != token_type:
                return None

            return payload

        except jwt.ExpiredSignatureError:
            return None
        except jwt.PyJWTError:
            return None

    @staticmethod
    def get_subject_from_token(token: str, token_type: str = "access") -> Optional[str]:
        """
        Extract subject (user ID) from a JWT token.

        Args:
            token: The JWT token
            token_type: Expected token type

        Returns:
            Subject string if token is valid, None otherwise
        """
        payload = SecurityUtils.verify_token(token, token_type)
        if payload:
            return payload.get("sub")
        return None

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a password using bcrypt."""
        return pwd_context.hash(password)

    @staticmethod
    def generate_temporary_password(length: Optional[int] = None) -> str:
        """
        Generate a random temporary password for a newly approved member.

        Args:
            length: Number of characters, defaults to TEMP_PASSWORD_LENGTH

        Returns:
            Random alphanumeric password
        """
        length = length or settings.TEMP_PASSWORD_LENGTH
        return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))


def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    return SecurityUtils.create_access_token(subject, expires_delta)
