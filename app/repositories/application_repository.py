"""
Application repository for reading applications and writing review decisions.
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import DecisionConflictError, RepositoryError
from app.models.application import ApplicationStatus, MemberApplication
from app.models.base import parse_uuid
from app.models.member import KYCStatus, Member
from app.repositories.base import BaseRepository
from app.schemas.application import ApplicationView, Decision
from app.utils.logging import get_logger

logger = get_logger(__name__)

DECIDED_STATUSES = [ApplicationStatus.APPROVED, ApplicationStatus.REJECTED]


class ApplicationRepository(BaseRepository[MemberApplication]):
    """Repository for member application operations."""

    def __init__(self, db: Session):
        """Initialize application repository."""
        super().__init__(MemberApplication, db)

    def get_with_relations(self, application_id) -> Optional[ApplicationView]:
        """
        Get an application joined with its member and submitting user.

        Args:
            application_id: Application ID (string or UUID)

        Returns:
            Application view if found, None otherwise
        """
        app_uuid = parse_uuid(application_id)
        if app_uuid is None:
            return None

        application = (
            self.db.query(MemberApplication)
            .options(
                joinedload(MemberApplication.member),
                joinedload(MemberApplication.user),
            )
            .filter(MemberApplication.id == app_uuid)
            .first()
        )
        if not application:
            return None

        return self._to_view(application)

    def apply_decision(
        self, member_id, application_id, decision: Decision
    ) -> None:
        """
        Write a decision to the application and its member in one transaction.

        The application update only applies while the application is still
        pending, and the member update only while the member is still pending.
        If either matches no row the transaction is rolled back.

        Args:
            member_id: Member ID
            application_id: Application ID
            decision: Decision to persist

        Raises:
            DecisionConflictError: If the application or member was already decided
            RepositoryError: If the data store rejects either write
        """
        app_uuid = parse_uuid(application_id)
        member_uuid = parse_uuid(member_id)

        try:
            app_result = self.db.execute(
                update(MemberApplication)
                .where(
                    MemberApplication.id == app_uuid,
                    MemberApplication.status == ApplicationStatus.PENDING,
                )
                .values(
                    status=decision.status,
                    rejection_reason=(
                        decision.reason
                        if decision.status == ApplicationStatus.REJECTED
                        else None
                    ),
                    reviewed_at=decision.decided_at,
                    reviewed_by=decision.reviewer_id,
                    updated_at=decision.decided_at,
                )
                .execution_options(synchronize_session=False)
            )
            if app_result.rowcount == 0:
                self.db.rollback()
                raise DecisionConflictError(str(application_id))

            member_result = self.db.execute(
                update(Member)
                .where(
                    Member.id == member_uuid,
                    Member.kyc_status == KYCStatus.PENDING,
                )
                .values(
                    kyc_status=decision.status.kyc_status,
                    updated_at=decision.decided_at,
                )
                .execution_options(synchronize_session=False)
            )
            if member_result.rowcount == 0:
                self.db.rollback()
                raise DecisionConflictError(
                    str(application_id),
                    message=f"Member {member_id} is no longer pending",
                    member_id=str(member_id),
                )

            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Decision write failed",
                application_id=str(application_id),
                member_id=str(member_id),
                error=str(e),
            )
            raise RepositoryError(
                "Failed to persist decision",
                application_id=str(application_id),
                member_id=str(member_id),
            ) from e

    def get_pending(self, limit: int = 100) -> List[ApplicationView]:
        """
        Get pending applications, oldest first.

        Args:
            limit: Maximum number of records to return

        Returns:
            List of application views
        """
        applications = (
            self.db.query(MemberApplication)
            .options(
                joinedload(MemberApplication.member),
                joinedload(MemberApplication.user),
            )
            .filter(MemberApplication.status == ApplicationStatus.PENDING)
            .order_by(MemberApplication.created_at)
            .limit(limit)
            .all()
        )
        return [self._to_view(application) for application in applications]

    def find_repairable(self, limit: int = 100) -> List[Tuple[MemberApplication, Member]]:
        """
        Find decided applications whose member is still pending.

        Args:
            limit: Maximum number of pairs to return

        Returns:
            List of (application, member) pairs, oldest decision first
        """
        return (
            self.db.query(MemberApplication, Member)
            .join(Member, MemberApplication.member_id == Member.id)
            .filter(
                MemberApplication.status.in_(DECIDED_STATUSES),
                Member.kyc_status == KYCStatus.PENDING,
            )
            .order_by(MemberApplication.reviewed_at)
            .limit(limit)
            .all()
        )

    def find_conflicting(self, limit: int = 100) -> List[Tuple[MemberApplication, Member]]:
        """
        Find decided applications whose member holds the opposite decision.

        Args:
            limit: Maximum number of pairs to return

        Returns:
            List of (application, member) pairs, oldest decision first
        """
        return (
            self.db.query(MemberApplication, Member)
            .join(Member, MemberApplication.member_id == Member.id)
            .filter(
                or_(
                    and_(
                        MemberApplication.status == ApplicationStatus.APPROVED,
                        Member.kyc_status == KYCStatus.REJECTED,
                    ),
                    and_(
                        MemberApplication.status == ApplicationStatus.REJECTED,
                        Member.kyc_status == KYCStatus.APPROVED,
                    ),
                )
            )
            .order_by(MemberApplication.reviewed_at)
            .limit(limit)
            .all()
        )

    def sync_member_status(self, member_id: UUID, kyc_status: KYCStatus) -> bool:
        """
        Set a pending member's KYC status to match its decided application.

        Args:
            member_id: Member ID
            kyc_status: Status to apply

        Returns:
            True if the member was updated
        """
        try:
            result = self.db.execute(
                update(Member)
                .where(Member.id == member_id, Member.kyc_status == KYCStatus.PENDING)
                .values(kyc_status=kyc_status)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError("Failed to reconcile member status", member_id=str(member_id)) from e

        return result.rowcount > 0

    @staticmethod
    def _to_view(application: MemberApplication) -> ApplicationView:
        member = application.member
        user = application.user
        return ApplicationView(
            id=application.id,
            member_id=application.member_id,
            user_id=application.user_id,
            status=application.status,
            rejection_reason=application.rejection_reason,
            reviewed_at=application.reviewed_at,
            reviewed_by=application.reviewed_by,
            created_at=application.created_at,
            company_name=member.company_name if member else None,
            contact_email=member.contact_email if member else None,
            user_email=user.email if user else None,
            user_name=user.name if user else None,
        )
