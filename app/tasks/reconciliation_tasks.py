"""
Periodic reconciliation of application and member statuses.
"""
from typing import Any, Dict, Optional

from app.database import SessionLocal
from app.services.reconciliation_service import ReconciliationService
from app.tasks.base import BaseTask, TaskResult
from app.utils.logging import get_logger
from app.worker import celery_app

logger = get_logger(__name__)


class ReconciliationTask(BaseTask):
    """Reconciliation runs on a schedule, so retries are short and few."""

    retry_kwargs = {
        "max_retries": 2,
        "countdown": 30,
    }
    retry_backoff_max = 120


@celery_app.task(base=ReconciliationTask, bind=True)
def reconcile_application_states(self, limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Repair members whose KYC status disagrees with their decided application.

    Args:
        limit: Maximum number of pairs to examine in this pass

    Returns:
        Task result dictionary
    """
    logger.info(
        "Starting reconciliation pass",
        task_id=self.request.id,
        retry_count=self.request.retries,
    )

    db = SessionLocal()
    try:
        summary = ReconciliationService(db).reconcile(limit)
        return TaskResult.success_result(
            data=summary,
            metadata={
                "repaired_count": len(summary["repaired"]),
                "manual_review_count": len(summary["manual_review"]),
            },
        ).to_dict()
    finally:
        db.close()
