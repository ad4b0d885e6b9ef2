"""
Notification service for delivering user notifications over SMS or email.

The dispatcher resolves each recipient's preferred channel and hands the
message to an injected transport. Transports that are not configured are
skipped with a log line so the dispatcher works in local development and
tests without credentials.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Union
from sqlalchemy.ext.asyncio import AsyncSession
from golf_league.database.models import LeagueRole, NotificationPreference
from golf_league.services import membership_service, user_service
from golf_league.utils.datetime_utils import format_match_date
import logging

logger = logging.getLogger(__name__)

SUB_REQUEST_TITLE = "Sub Request"
SUB_ACCEPTED_TITLE = "Sub Found!"
SUB_WITHDRAWN_TITLE = "Sub Request Withdrawn"


class TransportUnavailableError(Exception):
    """Raised by a transport whose credentials are missing or which is disabled."""


class EmailSender(Protocol):
    """Email transport contract."""

    async def send(self, to: str, subject: str, content: str, html: bool = False) -> bool:
        ...


class SmsSender(Protocol):
    """SMS transport contract."""

    async def send(self, to: str, body: str) -> bool:
        ...


class NotificationDispatcher:
    """
    Routes notifications to a user's preferred channel.

    Holds no state beyond the injected transports; every call receives the
    database session it should use.
    """

    def __init__(self, email_sender: EmailSender, sms_sender: SmsSender):
        self.email_sender = email_sender
        self.sms_sender = sms_sender

    async def dispatch(
        self,
        session: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        html_body: Optional[str] = None,
    ) -> Optional[str]:
        """
        Deliver a notification to a single user.

        SMS is used when the user prefers it and has a phone number on file;
        everything else goes by email.

        Args:
            session: Database session
            user_id: ID of the user to notify
            title: Notification title (email subject / SMS prefix)
            message: Plain-text message
            html_body: Optional HTML body for the email channel

        Returns:
            "sms" or "email" when the transport accepted the message,
            None when the user is unknown, the channel is unavailable or
            the transport reported failure

        Raises:
            Exception: Unexpected transport errors propagate so callers can
                isolate them per recipient
        """
        recipient = await user_service.get_contact(session, user_id)
        if recipient is None:
            logger.warning(f"Notification failed: User {user_id} not found")
            return None

        try:
            if (
                recipient["notification_preference"] == NotificationPreference.SMS.value
                and recipient["phone"]
            ):
                sent = await self.sms_sender.send(recipient["phone"], f"{title}: {message}")
                channel = NotificationPreference.SMS.value
            else:
                if not recipient["email"]:
                    logger.warning(f"Notification failed: User {user_id} has no email address")
                    return None
                sent = await self.email_sender.send(
                    recipient["email"],
                    title,
                    html_body or message,
                    html=html_body is not None,
                )
                channel = NotificationPreference.EMAIL.value
        except TransportUnavailableError as e:
            logger.info(f"Notification '{title}' to user {user_id} skipped: {e}")
            return None

        return channel if sent else None

    async def send_many(
        self, session: AsyncSession, user_ids: List[int], title: str, message: str
    ) -> Dict[str, List[int]]:
        """
        Dispatch the same notification to several users, one at a time.

        A failure for one recipient is logged and does not stop the rest.

        Returns:
            Dict with "notified" and "failed" lists of user IDs
        """
        notified: List[int] = []
        failed: List[int] = []
        for user_id in user_ids:
            try:
                channel = await self.dispatch(session, user_id, title, message)
            except Exception as e:
                logger.error(f"Failed to notify user {user_id} ('{title}'): {e}")
                failed.append(user_id)
                continue
            if channel:
                notified.append(user_id)
            else:
                failed.append(user_id)
        return {"notified": notified, "failed": failed}

    async def broadcast_sub_request(
        self,
        session: AsyncSession,
        league_id: int,
        match_date: Union[date, datetime],
        note: Optional[str],
        user_ids: Optional[List[int]] = None,
    ) -> Dict[str, List[int]]:
        """
        Notify the subs of a league that a sub is needed.

        Args:
            session: Database session
            league_id: ID of the league owning the match
            match_date: Date of the match
            note: Requester's note
            user_ids: Optional pre-filtered recipients (must already be subs);
                defaults to every sub in the league

        Returns:
            Dict with "notified" and "failed" lists of user IDs
        """
        if user_ids is None:
            user_ids = await membership_service.list_member_user_ids(
                session, league_id, role=LeagueRole.SUB.value
            )
        if not user_ids:
            logger.info(f"No subs to notify in league {league_id}")
            return {"notified": [], "failed": []}
        return await self.send_sub_request(session, user_ids, match_date, note)

    async def send_sub_request(
        self,
        session: AsyncSession,
        user_ids: List[int],
        match_date: Union[date, datetime],
        note: Optional[str],
    ) -> Dict[str, List[int]]:
        """Notify specific users about a sub request."""
        message = f"A sub is needed for a match on {format_match_date(match_date)}."
        if note:
            message += f" Note: {note}"
        return await self.send_many(session, user_ids, SUB_REQUEST_TITLE, message)

    async def notify_sub_accepted(
        self, session: AsyncSession, user_id: int, sub_name: str
    ) -> Optional[str]:
        """Notify a user that their sub request was accepted."""
        return await self.dispatch(
            session,
            user_id,
            SUB_ACCEPTED_TITLE,
            f"Your sub request has been accepted by {sub_name}.",
        )

    async def notify_sub_request_withdrawn(
        self, session: AsyncSession, league_id: int, match_date: Union[date, datetime]
    ) -> Dict[str, List[int]]:
        """Tell a league's subs that a sub is no longer needed for a match."""
        user_ids = await membership_service.list_member_user_ids(
            session, league_id, role=LeagueRole.SUB.value
        )
        message = f"The sub request for the match on {format_match_date(match_date)} has been withdrawn."
        return await self.send_many(session, user_ids, SUB_WITHDRAWN_TITLE, message)


_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """Get the process-wide dispatcher wired to SendGrid and Twilio."""
    global _dispatcher
    if _dispatcher is None:
        # Deferred: the transport modules import TransportUnavailableError from here
        from golf_league.services.email_service import SendGridEmailSender
        from golf_league.services.sms_service import TwilioSmsSender

        _dispatcher = NotificationDispatcher(SendGridEmailSender(), TwilioSmsSender())
    return _dispatcher
