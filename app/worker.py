"""
Celery worker configuration and application setup.
"""
from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "onboarding_worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.tasks.reconciliation_tasks",
    ]
)

celery_app.conf.update(
    task_routes={
        "app.tasks.reconciliation_tasks.*": {"queue": "reconciliation_queue"},
    },

    # Task execution settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    result_expires=3600,  # 1 hour

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # A pass that dies mid-way is safe to run again
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    worker_send_task_events=True,
    task_send_sent_event=True,

    beat_schedule={
        "reconcile-application-states": {
            "task": "app.tasks.reconciliation_tasks.reconcile_application_states",
            "schedule": float(settings.RECONCILIATION_INTERVAL_SECONDS),
        },
    },
)

if __name__ == "__main__":
    celery_app.start()
