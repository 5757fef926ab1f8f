"""
Celery tasks package.
"""
from app.tasks.base import BaseTask, TaskResult
from app.tasks.reconciliation_tasks import reconcile_application_states

__all__ = [
    "BaseTask",
    "TaskResult",
    "reconcile_application_states",
]
