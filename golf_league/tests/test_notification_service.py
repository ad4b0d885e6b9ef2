"""
Tests for the notification dispatcher.
"""

import pytest
from unittest.mock import patch
from golf_league.database.models import LeagueMember, LeagueRole, User
from golf_league.services import notification_service
from golf_league.services.notification_service import (
    NotificationDispatcher,
    SUB_ACCEPTED_TITLE,
    SUB_REQUEST_TITLE,
)


async def _user(session, **kwargs):
    user = User(**kwargs)
    session.add(user)
    await session.commit()
    return user


class TestDispatch:
    """Channel selection for a single recipient."""

    @pytest.mark.asyncio
    async def test_sms_preference_with_phone_uses_sms(
        self, db_session, dispatcher, sms_sender, email_sender
    ):
        user = await _user(
            db_session, email="a@example.com", phone="+15551112222", notification_preference="sms"
        )

        channel = await dispatcher.dispatch(db_session, user.id, "Hello", "Tee time moved")

        assert channel == "sms"
        assert sms_sender.sent == [{"to": "+15551112222", "body": "Hello: Tee time moved"}]
        assert email_sender.sent == []

    @pytest.mark.asyncio
    async def test_sms_preference_without_phone_falls_back_to_email(
        self, db_session, dispatcher, sms_sender, email_sender
    ):
        user = await _user(db_session, email="b@example.com", notification_preference="sms")

        channel = await dispatcher.dispatch(db_session, user.id, "Hello", "Tee time moved")

        assert channel == "email"
        assert sms_sender.sent == []
        assert email_sender.sent == [
            {"to": "b@example.com", "subject": "Hello", "content": "Tee time moved", "html": False}
        ]

    @pytest.mark.asyncio
    async def test_email_preference_uses_email_even_with_phone(
        self, db_session, dispatcher, sms_sender, email_sender
    ):
        user = await _user(
            db_session, email="c@example.com", phone="+15553334444", notification_preference="email"
        )

        channel = await dispatcher.dispatch(
            db_session, user.id, "Hello", "Tee time moved", html_body="<p>Tee time moved</p>"
        )

        assert channel == "email"
        assert sms_sender.sent == []
        assert email_sender.sent[0]["content"] == "<p>Tee time moved</p>"
        assert email_sender.sent[0]["html"] is True

    @pytest.mark.asyncio
    async def test_unknown_user_is_skipped(self, db_session, dispatcher, sms_sender, email_sender):
        channel = await dispatcher.dispatch(db_session, 98765, "Hello", "Anyone?")

        assert channel is None
        assert sms_sender.sent == [] and email_sender.sent == []

    @pytest.mark.asyncio
    async def test_unavailable_transport_is_skipped(self, db_session, dispatcher, sms_sender):
        user = await _user(
            db_session, email="d@example.com", phone="+15555556666", notification_preference="sms"
        )
        sms_sender.unavailable = True

        assert await dispatcher.dispatch(db_session, user.id, "Hello", "Hi") is None

    @pytest.mark.asyncio
    async def test_unexpected_transport_error_propagates(self, db_session, dispatcher, sms_sender):
        user = await _user(
            db_session, email="e@example.com", phone="+15557778888", notification_preference="sms"
        )
        sms_sender.fail_for.add("+15557778888")

        with pytest.raises(RuntimeError):
            await dispatcher.dispatch(db_session, user.id, "Hello", "Hi")


class TestBroadcast:
    """Sub request broadcasts."""

    @pytest.mark.asyncio
    async def test_broadcast_goes_to_subs_only(
        self, db_session, league, dispatcher, sms_sender, email_sender
    ):
        outcome = await dispatcher.broadcast_sub_request(
            db_session, league.league.id, league.upcoming_round.date, "Bring a cart"
        )

        assert outcome == {"notified": [league.sub_sms.id, league.sub_email.id], "failed": []}
        recipients = [m["to"] for m in sms_sender.sent] + [m["to"] for m in email_sender.sent]
        assert recipients == ["+15550000002", "erin@example.com"]
        assert email_sender.sent[0]["subject"] == SUB_REQUEST_TITLE
        assert email_sender.sent[0]["content"].endswith("Note: Bring a cart")

    @pytest.mark.asyncio
    async def test_one_failing_recipient_does_not_stop_the_rest(
        self, db_session, league, dispatcher, sms_sender, email_sender
    ):
        sms_sender.fail_for.add("+15550000002")

        outcome = await dispatcher.broadcast_sub_request(
            db_session, league.league.id, league.upcoming_round.date, None
        )

        assert outcome == {"notified": [league.sub_email.id], "failed": [league.sub_sms.id]}
        assert [m["to"] for m in email_sender.sent] == ["erin@example.com"]

    @pytest.mark.asyncio
    async def test_middle_recipient_failure_with_three_subs(
        self, db_session, league, dispatcher, sms_sender, email_sender
    ):
        third = await _user(
            db_session, name="Tom Third", email="tom@example.com", notification_preference="email"
        )
        db_session.add(
            LeagueMember(league_id=league.league.id, user_id=third.id, role=LeagueRole.SUB.value)
        )
        await db_session.commit()
        # Second sub in membership order
        email_sender.fail_for.add("erin@example.com")

        outcome = await dispatcher.broadcast_sub_request(
            db_session, league.league.id, league.upcoming_round.date, None
        )

        assert outcome == {
            "notified": [league.sub_sms.id, third.id],
            "failed": [league.sub_email.id],
        }
        assert [m["to"] for m in sms_sender.sent] == ["+15550000002"]
        assert [m["to"] for m in email_sender.sent] == ["tom@example.com"]

    @pytest.mark.asyncio
    async def test_league_without_subs_sends_nothing(
        self, db_session, league, sms_sender, email_sender
    ):
        dispatcher = NotificationDispatcher(email_sender, sms_sender)

        with patch.object(
            notification_service.membership_service,
            "list_member_user_ids",
            return_value=[],
        ) as mock_list:
            outcome = await dispatcher.broadcast_sub_request(
                db_session, league.league.id, league.upcoming_round.date, None
            )

        mock_list.assert_called_once()
        assert outcome == {"notified": [], "failed": []}
        assert sms_sender.sent == [] and email_sender.sent == []

    @pytest.mark.asyncio
    async def test_explicit_recipients_override_league_subs(
        self, db_session, league, dispatcher, sms_sender, email_sender
    ):
        outcome = await dispatcher.broadcast_sub_request(
            db_session,
            league.league.id,
            league.upcoming_round.date,
            None,
            user_ids=[league.sub_email.id],
        )

        assert outcome["notified"] == [league.sub_email.id]
        assert sms_sender.sent == []

    @pytest.mark.asyncio
    async def test_notify_sub_accepted(self, db_session, league, dispatcher, sms_sender):
        channel = await dispatcher.notify_sub_accepted(db_session, league.requester.id, "Sam Sub")

        assert channel == "sms"
        assert sms_sender.sent == [
            {
                "to": "+15550000001",
                "body": f"{SUB_ACCEPTED_TITLE}: Your sub request has been accepted by Sam Sub.",
            }
        ]


def test_get_dispatcher_wires_sendgrid_and_twilio(monkeypatch):
    from golf_league.services.email_service import SendGridEmailSender
    from golf_league.services.sms_service import TwilioSmsSender

    monkeypatch.setattr(notification_service, "_dispatcher", None)

    dispatcher = notification_service.get_dispatcher()

    assert isinstance(dispatcher.email_sender, SendGridEmailSender)
    assert isinstance(dispatcher.sms_sender, TwilioSmsSender)
    assert notification_service.get_dispatcher() is dispatcher
