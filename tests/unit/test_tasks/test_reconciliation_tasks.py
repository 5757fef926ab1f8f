"""
Unit tests for the reconciliation Celery task and worker schedule.
"""
from datetime import datetime
from unittest.mock import patch

from app.models import ApplicationStatus, KYCStatus, Member, MemberApplication
from app.tasks.reconciliation_tasks import reconcile_application_states
from app.worker import celery_app
from tests.conftest import TestingSessionLocal


class TestReconciliationTask:
    """Test cases for the scheduled reconciliation pass."""

    def test_task_repairs_pending_member(self, db_session):
        member = Member(company_name="Acme", contact_email="ops@acme.test", kyc_status=KYCStatus.PENDING)
        db_session.add(member)
        db_session.flush()
        application = MemberApplication(
            member_id=member.id,
            status=ApplicationStatus.REJECTED,
            reviewed_at=datetime.utcnow(),
        )
        db_session.add(application)
        db_session.commit()
        application_id, member_id = str(application.id), member.id

        with patch("app.tasks.reconciliation_tasks.SessionLocal", TestingSessionLocal):
            result = reconcile_application_states.apply(kwargs={"limit": 10}).get()

        assert result["success"] is True
        assert result["data"]["repaired"] == [application_id]
        assert result["metadata"] == {"repaired_count": 1, "manual_review_count": 0}

        db_session.expire_all()
        assert db_session.get(Member, member_id).kyc_status == KYCStatus.REJECTED

    def test_task_with_nothing_to_do(self, db_session):
        with patch("app.tasks.reconciliation_tasks.SessionLocal", TestingSessionLocal):
            result = reconcile_application_states.apply().get()

        assert result["success"] is True
        assert result["data"] == {"repaired": [], "manual_review": []}

    def test_beat_schedule_and_routing(self):
        schedule = celery_app.conf.beat_schedule["reconcile-application-states"]

        assert schedule["task"] == "app.tasks.reconciliation_tasks.reconcile_application_states"
        assert schedule["schedule"] > 0
        assert reconcile_application_states.name == schedule["task"]
        assert celery_app.conf.task_routes["app.tasks.reconciliation_tasks.*"] == {
            "queue": "reconciliation_queue"
        }

