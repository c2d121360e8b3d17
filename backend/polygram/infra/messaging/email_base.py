"""Email service interface and implementations."""
from abc import ABC, abstractmethod
import asyncio
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from polygram.settings import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the provider."""


class EmailService(ABC):
    """Email service interface."""

    @abstractmethod
    async def send_otp(self, to_email: str, name: str, otp: str, purpose: str) -> None:
        """Send a one-time password. ``purpose`` is 'verify' or 'reset'."""
        pass


def _otp_subject(purpose: str) -> str:
    if purpose == "reset":
        return "Polygram password reset code"
    return "Verify your Polygram account"


def _otp_text(name: str, otp: str, purpose: str) -> str:
    action = "reset your password" if purpose == "reset" else "verify your account"
    return (
        f"Hi {name},\n\n"
        f"Use the code {otp} to {action}. "
        f"It expires in {settings.otp_expire_minutes} minutes.\n\n"
        "If you didn't request this, you can safely ignore this email."
    )


class ConsoleEmailService(EmailService):
    """Console email service (logs instead of sending)."""

    async def send_otp(self, to_email: str, name: str, otp: str, purpose: str) -> None:
        logger.info(
            "[EMAIL] %s -> %s\n%s", _otp_subject(purpose), to_email, _otp_text(name, otp, purpose)
        )


class SendGridEmailService(EmailService):
    """SendGrid email service for production email sending."""

    def __init__(self, api_key: str, from_email: str, from_name: str):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name

    async def send_otp(self, to_email: str, name: str, otp: str, purpose: str) -> None:
        """Send the OTP via SendGrid. Raises EmailDeliveryError on any non-2xx response."""
        text_content = _otp_text(name, otp, purpose)
        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #1e293b;">{_otp_subject(purpose)}</h2>
            <p style="font-size: 16px; color: #475569;">Hi {name},</p>
            <p style="font-size: 16px; color: #475569;">Your code is</p>
            <p style="font-size: 28px; letter-spacing: 6px; font-weight: 600;">{otp}</p>
            <p style="font-size: 12px; color: #94a3b8;">
                It expires in {settings.otp_expire_minutes} minutes.
                If you didn't request this, you can safely ignore this email.
            </p>
        </div>
        """
        message = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=To(to_email),
            subject=_otp_subject(purpose),
            plain_text_content=Content("text/plain", text_content),
            html_content=Content("text/html", html_content),
        )
        try:
            sg = SendGridAPIClient(self.api_key)
            # the client is blocking
            response = await asyncio.to_thread(sg.send, message)
        except Exception as e:
            logger.error("[EMAIL] Error sending OTP email to %s: %s", to_email, e)
            raise EmailDeliveryError(str(e)) from e

        if response.status_code not in (200, 201, 202):
            logger.error(
                "[EMAIL] Failed to send OTP email to %s (status: %s)", to_email, response.status_code
            )
            raise EmailDeliveryError(f"SendGrid API returned status {response.status_code}")
        logger.info("[EMAIL] OTP email sent to %s (status: %s)", to_email, response.status_code)


def get_email_service() -> EmailService:
    """Get the appropriate email service based on configuration."""
    if settings.sendgrid_api_key:
        return SendGridEmailService(
            api_key=settings.sendgrid_api_key,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    logger.warning("[EMAIL] No SendGrid API key configured. Using console email service.")
    return ConsoleEmailService()
