"""
SMS transport using Twilio.

Provides a lazily-initialized Twilio client and an SmsSender implementation
for the notification dispatcher.
"""

import asyncio
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient

from golf_league.services.email_service import get_bool_env
from golf_league.services.notification_service import TransportUnavailableError

load_dotenv()

logger = logging.getLogger(__name__)

# Lazy-initialized Twilio client, keyed by account SID so a rotated
# credential set builds a fresh client
_twilio_client: Optional[Client] = None
_twilio_client_sid: Optional[str] = None


def _get_config():
    """Read Twilio configuration from environment at call time (not import time)."""
    return {
        "account_sid": os.getenv("TWILIO_ACCOUNT_SID"),
        "auth_token": os.getenv("TWILIO_AUTH_TOKEN"),
        "from_number": os.getenv("TWILIO_PHONE_NUMBER"),
        "enabled": get_bool_env("ENABLE_SMS", default=True),
        "timeout": float(os.getenv("SMS_TIMEOUT_SECONDS", "10")),
    }


def _get_twilio_client(cfg: dict) -> Client:
    """
    Get or create the Twilio REST client.

    Raises:
        TransportUnavailableError: If SMS is disabled or credentials are missing
    """
    global _twilio_client, _twilio_client_sid

    if not cfg["enabled"]:
        raise TransportUnavailableError("SMS sending is disabled (ENABLE_SMS=false)")
    if not all([cfg["account_sid"], cfg["auth_token"], cfg["from_number"]]):
        raise TransportUnavailableError(
            "Twilio not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER."
        )

    if _twilio_client is None or _twilio_client_sid != cfg["account_sid"]:
        _twilio_client = Client(
            cfg["account_sid"],
            cfg["auth_token"],
            http_client=TwilioHttpClient(timeout=cfg["timeout"]),
        )
        _twilio_client_sid = cfg["account_sid"]
    return _twilio_client


def reset_client() -> None:
    """Drop the cached Twilio client (used by tests)."""
    global _twilio_client, _twilio_client_sid
    _twilio_client = None
    _twilio_client_sid = None


class TwilioSmsSender:
    """SmsSender backed by Twilio Programmable Messaging."""

    async def send(self, to: str, body: str) -> bool:
        """
        Send a single SMS.

        Args:
            to: Recipient phone number (E.164)
            body: Message text

        Returns:
            bool: True if Twilio accepted the message, False otherwise

        Raises:
            TransportUnavailableError: If SMS is disabled or Twilio is not configured
        """
        cfg = _get_config()
        client = _get_twilio_client(cfg)

        try:
            msg = await asyncio.to_thread(
                client.messages.create,
                body=body,
                from_=cfg["from_number"],
                to=to,
            )
            logger.info(f"SMS sent to {to} (sid={msg.sid})")
            return True
        except Exception as e:
            logger.error(f"Failed to send SMS to {to}: {e}")
            return False
