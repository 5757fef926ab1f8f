"""
Decision e-mail delivery through the Resend HTTP API.
"""

from html import escape
from typing import List, Optional, Union

import httpx
from pydantic import BaseModel, Field

from app.core.config import settings
from app.models.application import ApplicationStatus
from app.schemas.application import NotificationResult
from app.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORT_EMAIL = "support@bosun.global"


class EmailResult(BaseModel):
    """Result of a single send attempt."""

    success: bool = Field(..., description="Whether the provider accepted the e-mail")
    error: Optional[str] = Field(None, description="Failure reason")
    id: Optional[str] = Field(None, description="Provider message ID")


def resolve_destination(
    user_email: Optional[str], contact_email: Optional[str]
) -> Optional[str]:
    """Prefer the submitting user's address, fall back to the member contact."""
    return user_email or contact_email or None


class EmailService:
    """Sends transactional e-mail. Never raises on delivery problems."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        reply_to: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize e-mail service.

        Args:
            api_key: Resend API key, defaults to RESEND_API_KEY
            api_url: Send endpoint, defaults to EMAIL_API_URL
            sender: From address, defaults to EMAIL_FROM
            reply_to: Reply-to address, defaults to EMAIL_REPLY_TO
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.EMAIL_API_URL
        self.sender = sender or settings.EMAIL_FROM
        self.reply_to = reply_to or settings.EMAIL_REPLY_TO
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS
        self.transport = transport

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        text: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> EmailResult:
        """
        Send an e-mail.

        Args:
            to: Recipient address or addresses
            subject: Subject line
            html: HTML body
            text: Optional plain text body
            reply_to: Optional reply-to override

        Returns:
            EmailResult describing the outcome
        """
        if not self.api_key:
            logger.error("E-mail API key is not configured")
            return EmailResult(success=False, error="Email service not configured")

        payload = {
            "from": self.sender,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
            "html": html,
            "reply_to": reply_to or self.reply_to,
        }
        if text:
            payload["text"] = text

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("E-mail request failed", error=str(e))
            return EmailResult(success=False, error=str(e) or e.__class__.__name__)

        if response.status_code >= 400:
            error = _extract_error(response)
            logger.error(
                "E-mail provider rejected message",
                status_code=response.status_code,
                error=error,
            )
            return EmailResult(success=False, error=error)

        message_id = _extract_id(response)
        logger.info("E-mail sent", message_id=message_id)
        return EmailResult(success=True, id=message_id)

    async def send_application_approved_email(
        self,
        to: str,
        company_name: str,
        login_url: str,
        password: Optional[str] = None,
    ) -> EmailResult:
        """Send the welcome e-mail for an approved application."""
        subject = "Welcome to Bosun - Your Application is Approved!"
        company = escape(company_name)

        if password:
            credentials = (
                "<p>Your temporary password is: "
                f"<strong>{escape(password)}</strong></p>"
                "<p>You will be asked to change it after your first sign-in.</p>"
            )
        else:
            credentials = (
                "<p>Use the password reset link on the sign-in page to set "
                "your password.</p>"
            )

        html = (
            f"<html><head><title>{subject}</title></head><body>"
            f"<h1>Congratulations, {company}!</h1>"
            "<p>Your application to join the Bosun settlement network has been "
            "approved. You can now sign in and start recording transactions.</p>"
            f"<p><a href=\"{escape(login_url)}\">Sign in to Bosun</a></p>"
            f"{credentials}"
            f"<p>Questions? Contact us at {SUPPORT_EMAIL}.</p>"
            "</body></html>"
        )
        return await self.send_email(to=to, subject=subject, html=html)

    async def send_application_rejected_email(
        self,
        to: str,
        company_name: str,
        reason: Optional[str] = None,
    ) -> EmailResult:
        """Send the outcome e-mail for a rejected application."""
        subject = "Bosun Application Update"
        company = escape(company_name)

        reason_block = ""
        if reason:
            reason_block = f"<p><strong>Reason:</strong> {escape(reason)}</p>"

        html = (
            f"<html><head><title>{subject}</title></head><body>"
            f"<h1>Application update for {company}</h1>"
            "<p>Thank you for your interest in Bosun. After careful review we are "
            "unable to approve your application at this time.</p>"
            f"{reason_block}"
            "<p>If you believe this decision was made in error or you have "
            "additional information to provide, please contact our support team "
            f"at <a href=\"mailto:{SUPPORT_EMAIL}\">{SUPPORT_EMAIL}</a>.</p>"
            "</body></html>"
        )
        return await self.send_email(to=to, subject=subject, html=html)

    async def send_decision_email(
        self,
        destination: Optional[str],
        company_name: Optional[str],
        decision: ApplicationStatus,
        reason: Optional[str] = None,
        login_url: Optional[str] = None,
        temporary_password: Optional[str] = None,
    ) -> NotificationResult:
        """
        Send the e-mail matching a review decision.

        Args:
            destination: Recipient address
            company_name: Member company name
            decision: Approved or rejected
            reason: Rejection reason
            login_url: Sign-in link for approved members
            temporary_password: Temporary credential for approved members

        Returns:
            NotificationResult; never raises
        """
        if not destination:
            return NotificationResult(sent=False, error="No destination address")

        company_name = company_name or "Company"

        if decision == ApplicationStatus.APPROVED:
            result = await self.send_application_approved_email(
                to=destination,
                company_name=company_name,
                login_url=login_url or f"{settings.APP_URL}/auth/login",
                password=temporary_password,
            )
        elif decision == ApplicationStatus.REJECTED:
            result = await self.send_application_rejected_email(
                to=destination,
                company_name=company_name,
                reason=reason,
            )
        else:
            return NotificationResult(
                sent=False,
                destination=destination,
                error=f"No template for decision {decision}",
            )

        return NotificationResult(
            sent=result.success,
            destination=destination,
            error=result.error,
            message_id=result.id,
        )


def _extract_error(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or f"HTTP {response.status_code}"
    return f"HTTP {response.status_code}"


def _extract_id(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("id") if isinstance(body, dict) else None


def get_email_service() -> EmailService:
    """FastAPI dependency returning the configured e-mail service."""
    return EmailService()
