"""
Unit tests for the application review service.
"""
from datetime import datetime
from unittest.mock import AsyncMock, Mock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    ApplicationNotFoundError,
    AuthenticationError,
    AuthorizationError,
    DecisionConflictError,
    RepositoryError,
    ValidationError,
)
from app.models.application import ApplicationStatus
from app.models.user import UserRole
from app.schemas.application import ApplicationView, NotificationResult, Principal
from app.services.application_service import (
    DEFAULT_REJECTION_REASON,
    ApplicationReviewService,
)


class TestApplicationReviewService:
    """Test cases for the decision pipeline."""

    @pytest.fixture
    def admin(self):
        return Principal(id=uuid4(), role=UserRole.ADMIN, email="admin@bosun.test")

    @pytest.fixture
    def member_principal(self):
        return Principal(id=uuid4(), role=UserRole.MEMBER, email="user@member.test")

    @pytest.fixture
    def application(self):
        """Pending application view."""
        return ApplicationView(
            id=uuid4(),
            member_id=uuid4(),
            user_id=uuid4(),
            status=ApplicationStatus.PENDING,
            created_at=datetime.utcnow(),
            company_name="Harbour Freight LLC",
            contact_email="contact@harbourfreight.test",
            user_email="applicant@harbourfreight.test",
        )

    @pytest.fixture
    def email_service(self):
        service = Mock()
        service.send_decision_email = AsyncMock(
            return_value=NotificationResult(
                sent=True, destination="applicant@harbourfreight.test"
            )
        )
        return service

    @pytest.fixture
    def review_service(self, application, email_service):
        """Review service with mocked collaborators."""
        service = ApplicationReviewService(Mock(), email_service=email_service)
        service.application_repository = Mock()
        service.application_repository.get_with_relations.return_value = application
        service.user_repository = Mock()
        service.audit_service = Mock()
        return service

    def _payload(self, application, **extra):
        body = {
            "applicationId": str(application.id),
            "memberId": str(application.member_id),
        }
        body.update(extra)
        return body

    @pytest.mark.asyncio
    async def test_reject_success(self, review_service, admin, application, email_service):
        """Test a rejection writes, audits twice and reports e-mail outcome."""
        result = await review_service.reject_application(
            admin, self._payload(application, reason="incomplete KYC documents")
        )

        assert result.status == ApplicationStatus.REJECTED
        assert result.message == "Application rejected"
        assert result.email_sent is True

        member_id, application_id, decision = (
            review_service.application_repository.apply_decision.call_args[0]
        )
        assert member_id == application.member_id
        assert application_id == application.id
        assert decision.status == ApplicationStatus.REJECTED
        assert decision.reason == "incomplete KYC documents"
        assert decision.reviewer_id == admin.id

        actions = [c.args[0] for c in review_service.audit_service.record.call_args_list]
        assert actions == ["application.rejected", "application.notification_sent"]

        decision_details = review_service.audit_service.record.call_args_list[0].args[4]
        assert decision_details == {
            "member_id": str(application.member_id),
            "company_name": "Harbour Freight LLC",
            "reason": "incomplete KYC documents",
        }

        email_service.send_decision_email.assert_awaited_once()
        assert (
            email_service.send_decision_email.call_args.kwargs["destination"]
            == "applicant@harbourfreight.test"
        )

    @pytest.mark.asyncio
    async def test_reject_without_reason_uses_default(self, review_service, admin, application):
        """Test a rejected application always carries a reason."""
        await review_service.reject_application(admin, self._payload(application))

        decision = review_service.application_repository.apply_decision.call_args[0][2]
        assert decision.reason == DEFAULT_REJECTION_REASON

    @pytest.mark.asyncio
    async def test_approve_success(self, review_service, admin, application, email_service):
        """Test approval issues a temporary password and sends it."""
        with patch(
            "app.services.application_service.SecurityUtils.get_password_hash",
            return_value="hashed",
        ):
            result = await review_service.approve_application(
                admin, self._payload(application, reason="ignored")
            )

        assert result.status == ApplicationStatus.APPROVED
        assert result.message == "Application approved successfully"

        decision = review_service.application_repository.apply_decision.call_args[0][2]
        assert decision.status == ApplicationStatus.APPROVED
        assert decision.reason is None

        review_service.user_repository.set_password.assert_called_once_with(
            application.user_id, "hashed"
        )
        kwargs = email_service.send_decision_email.call_args.kwargs
        assert kwargs["decision"] == ApplicationStatus.APPROVED
        assert kwargs["temporary_password"]

        decision_details = review_service.audit_service.record.call_args_list[0].args[4]
        assert "reason" not in decision_details

    @pytest.mark.asyncio
    async def test_approve_continues_when_password_update_fails(
        self, review_service, admin, application, email_service
    ):
        """Test a failed temporary password does not fail the approval."""
        review_service.user_repository.set_password.side_effect = Exception("auth down")

        result = await review_service.approve_application(admin, self._payload(application))

        assert result.status == ApplicationStatus.APPROVED
        assert email_service.send_decision_email.call_args.kwargs["temporary_password"] is None

    @pytest.mark.asyncio
    async def test_approve_survives_failed_password_rollback(
        self, review_service, admin, application, email_service
    ):
        """Test a rollback error after a committed decision is contained."""
        review_service.user_repository.set_password.side_effect = SQLAlchemyError("gone")
        review_service.db.rollback.side_effect = SQLAlchemyError("connection lost")

        result = await review_service.approve_application(admin, self._payload(application))

        assert result.status == ApplicationStatus.APPROVED
        actions = [c.args[0] for c in review_service.audit_service.record.call_args_list]
        assert actions == ["application.approved", "application.notification_sent"]

    @pytest.mark.asyncio
    async def test_numeric_application_id_is_a_lookup_miss(self, review_service, admin):
        """Test a JSON number identifier is looked up rather than rejected."""
        review_service.application_repository.get_with_relations.return_value = None

        with pytest.raises(ApplicationNotFoundError):
            await review_service.reject_application(
                admin, {"applicationId": 12345, "memberId": 678}
            )

        review_service.application_repository.get_with_relations.assert_called_once_with("12345")

    @pytest.mark.asyncio
    async def test_unauthenticated(self, review_service, application):
        """Test absent principal raises AuthenticationError before any read."""
        with pytest.raises(AuthenticationError):
            await review_service.reject_application(None, self._payload(application))

        review_service.application_repository.get_with_relations.assert_not_called()
        review_service.application_repository.apply_decision.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"applicationId": "a", "memberId": "m"},
            {},
            None,
        ],
    )
    async def test_non_admin_never_writes(self, review_service, member_principal, payload):
        """Test non-admins are rejected regardless of payload validity."""
        with pytest.raises(AuthorizationError):
            await review_service.reject_application(member_principal, payload)

        review_service.application_repository.apply_decision.assert_not_called()
        review_service.audit_service.record.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"memberId": "m"},
            {"applicationId": "a"},
            {"applicationId": "", "memberId": "m"},
            {"applicationId": "a", "memberId": "   "},
        ],
    )
    async def test_missing_fields_never_reach_repository(self, review_service, admin, payload):
        """Test missing identifiers are rejected before any repository call."""
        with pytest.raises(ValidationError, match="Missing required fields"):
            await review_service.reject_application(admin, payload)

        review_service.application_repository.get_with_relations.assert_not_called()
        review_service.application_repository.apply_decision.assert_not_called()

    @pytest.mark.asyncio
    async def test_application_not_found(self, review_service, admin, application):
        """Test unknown application raises ApplicationNotFoundError."""
        review_service.application_repository.get_with_relations.return_value = None

        with pytest.raises(ApplicationNotFoundError):
            await review_service.reject_application(admin, self._payload(application))

        review_service.application_repository.apply_decision.assert_not_called()

    @pytest.mark.asyncio
    async def test_member_mismatch(self, review_service, admin, application):
        """Test memberId must belong to the application."""
        payload = {"applicationId": str(application.id), "memberId": str(uuid4())}

        with pytest.raises(ValidationError, match="memberId"):
            await review_service.reject_application(admin, payload)

        review_service.application_repository.apply_decision.assert_not_called()

    @pytest.mark.asyncio
    async def test_already_decided(self, review_service, admin, application):
        """Test a decided application raises DecisionConflictError."""
        application.status = ApplicationStatus.APPROVED

        with pytest.raises(DecisionConflictError):
            await review_service.reject_application(admin, self._payload(application))

        review_service.application_repository.apply_decision.assert_not_called()

    @pytest.mark.asyncio
    async def test_repository_failure_stops_pipeline(
        self, review_service, admin, application, email_service
    ):
        """Test a failed write records no audit event and sends no e-mail."""
        review_service.application_repository.apply_decision.side_effect = RepositoryError()

        with pytest.raises(RepositoryError):
            await review_service.reject_application(admin, self._payload(application))

        review_service.audit_service.record.assert_not_called()
        email_service.send_decision_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_conflict_on_write_stops_pipeline(
        self, review_service, admin, application, email_service
    ):
        """Test losing the compare-and-swap race records nothing."""
        review_service.application_repository.apply_decision.side_effect = (
            DecisionConflictError(str(application.id))
        )

        with pytest.raises(DecisionConflictError):
            await review_service.approve_application(admin, self._payload(application))

        review_service.audit_service.record.assert_not_called()
        email_service.send_decision_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_decision(
        self, review_service, admin, application, email_service
    ):
        """Test e-mail failure is recorded and reported but not raised."""
        email_service.send_decision_email.return_value = NotificationResult(
            sent=False,
            destination="applicant@harbourfreight.test",
            error="Email service not configured",
        )

        result = await review_service.reject_application(admin, self._payload(application))

        assert result.status == ApplicationStatus.REJECTED
        assert result.email_sent is False

        action, _, _, _, details, _, _ = review_service.audit_service.record.call_args_list[-1].args
        assert action == "application.notification_sent"
        assert details["email_success"] is False
        assert details["email_to"] == "applicant@harbourfreight.test"

    @pytest.mark.asyncio
    async def test_notification_exception_is_contained(
        self, review_service, admin, application, email_service
    ):
        """Test an exception from the mailer never escapes."""
        email_service.send_decision_email.side_effect = RuntimeError("boom")

        result = await review_service.reject_application(admin, self._payload(application))

        assert result.email_sent is False
        details = review_service.audit_service.record.call_args_list[-1].args[4]
        assert details["email_success"] is False
        assert details["email_error"] == "boom"

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_change_result(
        self, review_service, admin, application
    ):
        """Test the recorder returning None leaves the decision successful."""
        review_service.audit_service.record.return_value = None

        result = await review_service.reject_application(admin, self._payload(application))

        assert result.status == ApplicationStatus.REJECTED
        assert review_service.audit_service.record.call_count == 2

    @pytest.mark.asyncio
    async def test_steps_run_in_causal_order(
        self, review_service, admin, application, email_service
    ):
        """Test write, decision audit, e-mail, notification audit ordering."""
        manager = Mock()
        manager.attach_mock(review_service.application_repository.apply_decision, "write")
        manager.attach_mock(review_service.audit_service.record, "audit")
        manager.attach_mock(email_service.send_decision_email, "email")

        await review_service.reject_application(admin, self._payload(application))

        sequence = [
            (c[0], c.args[0] if c[0] == "audit" else None) for c in manager.mock_calls
        ]
        assert sequence == [
            ("write", None),
            ("audit", "application.rejected"),
            ("email", None),
            ("audit", "application.notification_sent"),
        ]

    @pytest.mark.asyncio
    async def test_destination_falls_back_to_contact_email(
        self, review_service, admin, application, email_service
    ):
        """Test the member contact address is used without a user address."""
        application.user_email = None

        await review_service.reject_application(admin, self._payload(application))

        assert (
            email_service.send_decision_email.call_args.kwargs["destination"]
            == "contact@harbourfreight.test"
        )

    @pytest.mark.asyncio
    async def test_audit_context_is_forwarded(self, review_service, admin, application):
        """Test ip address and user agent land on every audit event."""
        await review_service.reject_application(
            admin,
            self._payload(application),
            ip_address="10.0.0.1",
            user_agent="pytest",
        )

        for call in review_service.audit_service.record.call_args_list:
            assert call.args[3] == str(admin.id)
            assert call.args[5] == "10.0.0.1"
            assert call.args[6] == "pytest"
