"""
Email transport using SendGrid for sending notifications.
"""

import asyncio
import os
import logging
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content
from dotenv import load_dotenv
from golf_league.services.notification_service import TransportUnavailableError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_FROM_EMAIL = "notifications@golf-league-app.com"


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable from a string value.

    .env files store all values as strings, so this function converts string
    values like "true", "True", "TRUE", "1", "yes" to True, and everything
    else (including "false", "False", "0", "no", empty string) to False.

    Args:
        key: Environment variable name
        default: Default value if the variable is not set

    Returns:
        bool: Parsed boolean value
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def _get_config():
    """Read SendGrid configuration from environment at call time (not import time)."""
    return {
        "api_key": os.getenv("SENDGRID_API_KEY"),
        "from_email": os.getenv("SENDGRID_FROM_EMAIL", DEFAULT_FROM_EMAIL),
        "enabled": get_bool_env("ENABLE_EMAIL", default=True),
        "timeout": float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10")),
    }


class SendGridEmailSender:
    """EmailSender backed by the SendGrid v3 API."""

    async def send(self, to: str, subject: str, content: str, html: bool = False) -> bool:
        """
        Send a single email.

        Args:
            to: Recipient email address
            subject: Subject line
            content: Body (HTML when html is True, plain text otherwise)
            html: Whether content is HTML

        Returns:
            bool: True if SendGrid accepted the message, False otherwise

        Raises:
            TransportUnavailableError: If email is disabled or SendGrid is not configured
        """
        cfg = _get_config()
        if not cfg["enabled"]:
            raise TransportUnavailableError("Email sending is disabled (ENABLE_EMAIL=false)")
        if not cfg["api_key"]:
            raise TransportUnavailableError("SENDGRID_API_KEY not configured")

        try:
            if html:
                body = Content("text/html", content)
                message = Mail(
                    from_email=Email(cfg["from_email"]),
                    to_emails=To(to),
                    subject=subject,
                    html_content=body,
                )
            else:
                body = Content("text/plain", content)
                message = Mail(
                    from_email=Email(cfg["from_email"]),
                    to_emails=To(to),
                    subject=subject,
                    plain_text_content=body,
                )

            sg = SendGridAPIClient(cfg["api_key"])
            sg.client.timeout = cfg["timeout"]
            response = await asyncio.to_thread(sg.send, message)

            if response.status_code >= 200 and response.status_code < 300:
                logger.info(f"Email '{subject}' sent successfully to {to}")
                return True
            else:
                logger.error(f"SendGrid returned status {response.status_code}: {response.body}")
                return False

        except Exception as e:
            logger.error(f"Failed to send email to {to}: {str(e)}")
            return False
