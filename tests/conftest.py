"""
Shared fixtures: in-memory database, seeded onboarding data and a fake mailer.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_onboarding.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.database import get_db
from app.main import app
from app.models import (
    ApplicationStatus,
    Base,
    KYCStatus,
    Member,
    MemberApplication,
    User,
    UserRole,
)
from app.schemas.application import NotificationResult
from app.services.email_service import get_email_service


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeEmailService:
    """Records decision e-mails instead of calling the provider."""

    def __init__(self, sent: bool = True, error: Optional[str] = None, raises: Exception = None):
        self.sent = sent
        self.error = error
        self.raises = raises
        self.calls: List[dict] = []

    async def send_decision_email(self, destination, company_name, decision, **kwargs):
        self.calls.append(
            {
                "destination": destination,
                "company_name": company_name,
                "decision": decision,
                **kwargs,
            }
        )
        if self.raises:
            raise self.raises
        return NotificationResult(
            sent=self.sent,
            destination=destination,
            error=None if self.sent else (self.error or "Provider unavailable"),
        )


@dataclass
class OnboardingData:
    admin_id: UUID
    applicant_id: UUID
    member_id: UUID
    application_id: UUID
    other_member_id: UUID


@pytest.fixture(scope="function")
def test_db():
    """Create tables for each test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    """Session bound to the test database."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def onboarding_data(test_db) -> OnboardingData:
    """An admin, and a pending member with a pending application."""
    db = TestingSessionLocal()

    admin = User(email="admin@bosun.test", name="Admin", role=UserRole.ADMIN, is_active=True)
    member = Member(
        company_name="Harbour Freight LLC",
        registration_number="DXB-445566",
        contact_email="contact@harbourfreight.test",
        kyc_status=KYCStatus.PENDING,
        collateral_amount=Decimal("250000.00"),
    )
    other_member = Member(
        company_name="Other Co",
        contact_email="ops@other.test",
        kyc_status=KYCStatus.PENDING,
    )
    db.add_all([admin, member, other_member])
    db.flush()

    applicant = User(
        email="applicant@harbourfreight.test",
        name="Applicant",
        role=UserRole.MEMBER,
        member_id=member.id,
        is_active=True,
    )
    db.add(applicant)
    db.flush()

    application = MemberApplication(
        member_id=member.id,
        user_id=applicant.id,
        status=ApplicationStatus.PENDING,
        created_at=datetime.utcnow() - timedelta(days=1),
    )
    db.add(application)
    db.commit()

    data = OnboardingData(
        admin_id=admin.id,
        applicant_id=applicant.id,
        member_id=member.id,
        application_id=application.id,
        other_member_id=other_member.id,
    )
    db.close()
    return data


@pytest.fixture
def fake_email_service():
    """Fake mailer that reports successful delivery."""
    return FakeEmailService()


@pytest.fixture
def client(test_db, fake_email_service):
    """Test client with the database and mailer overridden."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: fake_email_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user ID."""

    def _headers(user_id) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
