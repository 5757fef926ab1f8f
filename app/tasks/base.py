"""
Base task classes with retry logic and error handling.
"""

import traceback
from typing import Any, Dict, Optional

from celery import Task

from app.utils.logging import get_logger

logger = get_logger(__name__)


class BaseTask(Task):
    """
    Base task class with common retry logic and error handling.
    """

    autoretry_for = (Exception,)
    retry_kwargs = {
        "max_retries": 3,
        "countdown": 60,  # Initial delay in seconds
    }
    retry_backoff = True
    retry_backoff_max = 600  # Max delay of 10 minutes
    retry_jitter = True

    def on_success(self, retval: Any, task_id: str, args: tuple, kwargs: dict) -> None:
        logger.info(
            "Task succeeded",
            task_id=task_id,
            task_name=self.name,
            result=retval,
        )

    def on_failure(
        self, exc: Exception, task_id: str, args: tuple, kwargs: dict, einfo: Any
    ) -> None:
        logger.error(
            "Task failed permanently",
            task_id=task_id,
            task_name=self.name,
            error=str(exc),
            traceback=traceback.format_exception(type(exc), exc, exc.__traceback__),
        )

    def on_retry(
        self, exc: Exception, task_id: str, args: tuple, kwargs: dict, einfo: Any
    ) -> None:
        logger.warning(
            "Task retry",
            task_id=task_id,
            task_name=self.name,
            error=str(exc),
            retry_count=getattr(self.request, "retries", 0),
            max_retries=self.max_retries,
        )


class TaskResult:
    """
    Standardized task result wrapper.
    """

    def __init__(
        self,
        success: bool,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.success = success
        self.data = data or {}
        self.error = error
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "metadata": self.metadata,
        }

    @classmethod
    def success_result(
        cls,
        data: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "TaskResult":
        """Create a success result."""
        return cls(success=True, data=data, metadata=metadata)
