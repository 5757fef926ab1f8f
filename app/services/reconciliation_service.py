"""
Repairs application/member pairs whose statuses disagree.
"""

from typing import Dict, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.member import KYCStatus
from app.repositories.application_repository import ApplicationRepository
from app.services.audit_service import SYSTEM_ACTOR, AuditService
from app.utils.logging import get_logger

logger = get_logger(__name__)

RECONCILED_ACTION = "application.reconciled"


class ReconciliationService:
    """
    Brings Member.kyc_status back in line with its decided application.

    The application is authoritative because it carries the reviewer and
    timestamp. Members stuck in a different terminal status are reported for
    manual review and left untouched.
    """

    def __init__(self, db: Session):
        self.db = db
        self.application_repository = ApplicationRepository(db)
        self.audit_service = AuditService(db)

    def reconcile(self, limit: int = None) -> Dict[str, List[str]]:
        """
        Run one reconciliation pass.

        Args:
            limit: Maximum number of pairs to repair, and separately to report,
                defaults to RECONCILIATION_BATCH_SIZE

        Returns:
            Application IDs grouped into "repaired" and "manual_review"
        """
        limit = limit or settings.RECONCILIATION_BATCH_SIZE
        summary = {"repaired": [], "manual_review": []}

        for application, member in self.application_repository.find_repairable(limit):
            application_id = str(application.id)
            target = application.status.kyc_status

            if not self.application_repository.sync_member_status(member.id, target):
                # Changed underneath us; the next pass will look again.
                continue

            self.audit_service.record(
                RECONCILED_ACTION,
                "member_application",
                application_id,
                SYSTEM_ACTOR,
                {
                    "member_id": str(member.id),
                    "previous_kyc_status": KYCStatus.PENDING.value,
                    "kyc_status": target.value,
                },
            )
            summary["repaired"].append(application_id)

        for application, member in self.application_repository.find_conflicting(limit):
            logger.warning(
                "Member status conflicts with decided application",
                application_id=str(application.id),
                member_id=str(member.id),
                application_status=application.status.value,
                kyc_status=member.kyc_status.value,
            )
            summary["manual_review"].append(str(application.id))

        if summary["repaired"] or summary["manual_review"]:
            logger.info(
                "Reconciliation pass finished",
                repaired=len(summary["repaired"]),
                manual_review=len(summary["manual_review"]),
            )

        return summary
