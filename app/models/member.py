"""
Member model representing a settlement platform participant being onboarded.
"""
from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Column, Date, Enum as SQLEnum, Numeric, String
from sqlalchemy.orm import relationship

from app.models.base import BaseModel


class KYCStatus(str, Enum):
    """Member KYC status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Member(BaseModel):
    """Onboarding entity whose KYC status mirrors its application decision.

    Only a pending member can move to approved or rejected; both are final.
    """

    __tablename__ = "members"

    company_name = Column(
        String(255),
        nullable=False,
        doc="Registered company name"
    )

    registration_number = Column(
        String(100),
        nullable=True,
        doc="Company registration number"
    )

    contact_email = Column(
        String(255),
        nullable=False,
        doc="Company contact e-mail address"
    )

    kyc_status = Column(
        SQLEnum(KYCStatus),
        default=KYCStatus.PENDING,
        nullable=False,
        index=True,
        doc="Know-your-customer compliance status"
    )

    collateral_amount = Column(
        Numeric(18, 2),
        default=Decimal("0"),
        nullable=False,
        doc="Collateral posted by the member (USD)"
    )

    join_date = Column(
        Date,
        default=date.today,
        nullable=False,
        doc="Date the member joined the platform"
    )

    applications = relationship(
        "MemberApplication",
        back_populates="member",
        cascade="all, delete-orphan",
        doc="Onboarding applications submitted for this member"
    )

    users = relationship(
        "User",
        back_populates="member",
        doc="Platform users belonging to this member"
    )

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, company_name={self.company_name}, kyc_status={self.kyc_status})>"
