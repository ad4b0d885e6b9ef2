"""
Substitute request service.

Handles the sub request lifecycle: a player opens a request for one of their
match slots, the league's subs are notified, and a sub accepts (taking over
the slot) or the player cancels.

    open ──accept──▶ accepted
      └───cancel──▶ cancelled

Both accepted and cancelled are terminal.
"""

from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from golf_league.database.models import (
    Course,
    LeagueRole,
    Match,
    MatchPlayer,
    Round,
    Season,
    SubRequest,
    SubRequestStatus,
    User,
)
from golf_league.services import membership_service, notification_service, user_service
from golf_league.services.membership_service import display_name
from golf_league.services.notification_service import NotificationDispatcher
from golf_league.utils.datetime_utils import utcnow, ensure_utc, to_iso
import logging

logger = logging.getLogger(__name__)


# --- Custom exceptions ---


class SubRequestError(ValueError):
    """Base class for sub request failures."""


class UnauthorizedError(SubRequestError):
    """Raised when the caller lacks the role or ownership an operation needs."""


class NotFoundError(SubRequestError):
    """Raised when a referenced slot or request does not exist."""


class DuplicateOpenRequestError(SubRequestError):
    """Raised when an open request already covers the slot."""


class MatchNotUpcomingError(SubRequestError):
    """Raised when requesting a sub for a match that is not in the future."""


class InvalidStateTransitionError(SubRequestError):
    """Raised when a transition is attempted from a terminal state."""


class RequestNotOpenError(InvalidStateTransitionError):
    """Raised when accepting or cancelling a request that is no longer open."""


# --- Internal lookups ---


async def _get_slot_context(session: AsyncSession, match_player_id: int):
    """Slot owner, league and match date for a match player slot (or None)."""
    result = await session.execute(
        select(
            MatchPlayer.id,
            MatchPlayer.user_id,
            Season.league_id,
            Round.date,
        )
        .join(Match, Match.id == MatchPlayer.match_id)
        .join(Round, Round.id == Match.round_id)
        .join(Season, Season.id == Round.season_id)
        .where(MatchPlayer.id == match_player_id)
    )
    return result.one_or_none()


async def _get_request_context(session: AsyncSession, sub_request_id: int):
    """Request owner, slot, match, league and match date for a sub request (or None)."""
    result = await session.execute(
        select(
            SubRequest.id,
            SubRequest.match_player_id,
            SubRequest.requested_by_user_id,
            MatchPlayer.match_id,
            Season.league_id,
            Round.date,
        )
        .join(MatchPlayer, MatchPlayer.id == SubRequest.match_player_id)
        .join(Match, Match.id == MatchPlayer.match_id)
        .join(Round, Round.id == Match.round_id)
        .join(Season, Season.id == Round.season_id)
        .where(SubRequest.id == sub_request_id)
    )
    return result.one_or_none()


async def _find_open_request(session: AsyncSession, match_player_id: int) -> Optional[int]:
    """ID of the open request covering a slot, if any."""
    result = await session.execute(
        select(SubRequest.id).where(
            and_(
                SubRequest.match_player_id == match_player_id,
                SubRequest.status == SubRequestStatus.OPEN.value,
            )
        )
    )
    return result.scalars().first()


def _format_sub_request(sub_request: SubRequest) -> Dict:
    """Convert a SubRequest row to its API dict."""
    return {
        "id": sub_request.id,
        "match_player_id": sub_request.match_player_id,
        "requested_by_user_id": sub_request.requested_by_user_id,
        "status": sub_request.status,
        "accepted_by_user_id": sub_request.accepted_by_user_id,
        "note": sub_request.note,
        "created_at": to_iso(sub_request.created_at),
        "resolved_at": to_iso(sub_request.resolved_at),
        "updated_at": to_iso(sub_request.updated_at),
    }


# --- Queries ---


async def get_sub_request(
    session: AsyncSession, sub_request_id: int, viewer_user_id: Optional[int] = None
) -> Dict:
    """
    Get a sub request by ID.

    Args:
        session: Database session
        sub_request_id: ID of the request
        viewer_user_id: If given, must be a member of the request's league

    Raises:
        NotFoundError: If the request does not exist
        UnauthorizedError: If the viewer is not a member of the request's league
    """
    if viewer_user_id is not None:
        ctx = await _get_request_context(session, sub_request_id)
        if ctx is None:
            raise NotFoundError("Sub request not found")
        role = await membership_service.get_membership(session, ctx.league_id, viewer_user_id)
        if role is None:
            raise UnauthorizedError("You are not a member of this league")

    result = await session.execute(
        select(SubRequest)
        .where(SubRequest.id == sub_request_id)
        .execution_options(populate_existing=True)
    )
    sub_request = result.scalar_one_or_none()
    if sub_request is None:
        raise NotFoundError("Sub request not found")
    return _format_sub_request(sub_request)


def _board_query():
    """Base query for sub request listings with match and requester details."""
    return (
        select(
            SubRequest,
            Round.date,
            Round.holes_count,
            Course.name.label("course_name"),
            Match.id.label("match_id"),
            User.name.label("requester_name"),
            User.first_name.label("requester_first_name"),
            User.last_name.label("requester_last_name"),
        )
        .join(MatchPlayer, MatchPlayer.id == SubRequest.match_player_id)
        .join(Match, Match.id == MatchPlayer.match_id)
        .join(Round, Round.id == Match.round_id)
        .join(Season, Season.id == Round.season_id)
        .outerjoin(Course, Course.id == Round.course_id)
        .join(User, User.id == SubRequest.requested_by_user_id)
    )


def _format_board_row(row) -> Dict:
    return {
        **_format_sub_request(row.SubRequest),
        "match_id": row.match_id,
        "date": to_iso(row.date),
        "holes_count": row.holes_count,
        "course_name": row.course_name,
        "requester_name": display_name(
            row.requester_name, row.requester_first_name, row.requester_last_name
        ),
    }


async def list_open_sub_requests(
    session: AsyncSession, league_id: int, now: Optional[datetime] = None
) -> List[Dict]:
    """
    List open sub requests for upcoming matches in a league, newest first.

    Args:
        session: Database session
        league_id: ID of the league
        now: Reference time (defaults to current UTC time)

    Returns:
        List of sub request dicts with match date, course and requester name
    """
    now = ensure_utc(now or utcnow())
    result = await session.execute(
        _board_query()
        .where(
            and_(
                SubRequest.status == SubRequestStatus.OPEN.value,
                Season.league_id == league_id,
                Round.date > now,
            )
        )
        .order_by(SubRequest.created_at.desc(), SubRequest.id.desc())
    )
    return [_format_board_row(row) for row in result.all()]


async def list_user_sub_requests(
    session: AsyncSession, user_id: int, league_id: int
) -> List[Dict]:
    """List every sub request a user has made in a league (any status), newest first."""
    result = await session.execute(
        _board_query()
        .where(
            and_(
                SubRequest.requested_by_user_id == user_id,
                Season.league_id == league_id,
            )
        )
        .order_by(SubRequest.created_at.desc(), SubRequest.id.desc())
    )
    return [_format_board_row(row) for row in result.all()]


# --- Lifecycle ---


async def create_sub_request(
    session: AsyncSession,
    match_player_id: int,
    requested_by_user_id: int,
    note: Optional[str],
    sub_user_ids: Optional[List[int]] = None,
    league_id: Optional[int] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Open a sub request for a match slot and notify the league's subs.

    Args:
        session: Database session
        match_player_id: Slot the requester wants covered
        requested_by_user_id: Authenticated user making the request
        note: Free-text note shown to subs
        sub_user_ids: Optional subset of subs to notify instead of all subs
        league_id: Optional league the slot must belong to
        dispatcher: Notification dispatcher (defaults to the process-wide one)
        now: Reference time (defaults to current UTC time)

    Returns:
        Dict with the created request plus "notified_user_ids"

    Raises:
        NotFoundError: If the slot does not exist (or is in another league)
        UnauthorizedError: If the slot does not belong to the requester
        MatchNotUpcomingError: If the match is not in the future
        DuplicateOpenRequestError: If an open request already covers the slot
    """
    now = now or utcnow()
    dispatcher = dispatcher or notification_service.get_dispatcher()

    slot = await _get_slot_context(session, match_player_id)
    if slot is None or (league_id is not None and slot.league_id != league_id):
        raise NotFoundError("Match participation not found")
    if slot.user_id != requested_by_user_id:
        raise UnauthorizedError("Only the player in this slot can request a sub for it")
    if ensure_utc(slot.date) <= ensure_utc(now):
        raise MatchNotUpcomingError("Subs can only be requested for upcoming matches")

    if await _find_open_request(session, match_player_id) is not None:
        raise DuplicateOpenRequestError("An open sub request already exists for this match")

    recipients = None
    if sub_user_ids is not None:
        league_subs = set(
            await membership_service.list_member_user_ids(
                session, slot.league_id, role=LeagueRole.SUB.value
            )
        )
        requested = list(dict.fromkeys(sub_user_ids))
        recipients = [uid for uid in requested if uid in league_subs]
        ignored = [uid for uid in requested if uid not in league_subs]
        if ignored:
            logger.warning(
                f"Ignoring non-sub recipients {ignored} for sub request in league {slot.league_id}"
            )

    sub_request = SubRequest(
        match_player_id=match_player_id,
        requested_by_user_id=requested_by_user_id,
        note=note,
        status=SubRequestStatus.OPEN.value,
        created_at=now,
        updated_at=now,
    )
    session.add(sub_request)
    try:
        await session.flush()
        await session.commit()
    except IntegrityError:
        # Another request for this slot was opened between the check and the insert
        await session.rollback()
        raise DuplicateOpenRequestError("An open sub request already exists for this match")

    logger.info(
        f"Sub request {sub_request.id} opened by user {requested_by_user_id} "
        f"for match player {match_player_id}"
    )

    notified: List[int] = []
    try:
        outcome = await dispatcher.broadcast_sub_request(
            session, slot.league_id, slot.date, note, user_ids=recipients
        )
        notified = outcome["notified"]
    except Exception as e:
        logger.warning(f"Failed to notify subs about sub request {sub_request.id}: {e}")

    return {**_format_sub_request(sub_request), "notified_user_ids": notified}


async def accept_sub_request(
    session: AsyncSession,
    sub_request_id: int,
    accepting_user_id: int,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Accept an open sub request, moving the accepting sub into the slot.

    The status change and the slot reassignment (user and starting handicap
    snapshot) commit in one transaction. The status change is a conditional
    update on status = 'open', so of two concurrent acceptances only one
    can win.

    Args:
        session: Database session
        sub_request_id: ID of the request
        accepting_user_id: Authenticated sub accepting the request
        dispatcher: Notification dispatcher (defaults to the process-wide one)
        now: Reference time (defaults to current UTC time)

    Returns:
        Dict with the updated request

    Raises:
        NotFoundError: If the request does not exist
        UnauthorizedError: If the user is not a sub in the league, is the requester,
            or already has a seat in the same match
        RequestNotOpenError: If the request was already accepted or cancelled
    """
    now = now or utcnow()
    dispatcher = dispatcher or notification_service.get_dispatcher()

    ctx = await _get_request_context(session, sub_request_id)
    if ctx is None:
        raise NotFoundError("Sub request not found")
    if ctx.requested_by_user_id == accepting_user_id:
        raise UnauthorizedError("You cannot accept your own sub request")

    role = await membership_service.get_membership(session, ctx.league_id, accepting_user_id)
    if role != LeagueRole.SUB.value:
        raise UnauthorizedError("Only subs in this league can accept sub requests")

    # A player holds at most one seat per match
    seated = await session.execute(
        select(MatchPlayer.id).where(
            and_(
                MatchPlayer.match_id == ctx.match_id,
                MatchPlayer.user_id == accepting_user_id,
            )
        )
    )
    if seated.scalars().first() is not None:
        raise UnauthorizedError("You are already playing in this match")

    try:
        result = await session.execute(
            update(SubRequest)
            .where(
                and_(
                    SubRequest.id == sub_request_id,
                    SubRequest.status == SubRequestStatus.OPEN.value,
                )
            )
            .values(
                status=SubRequestStatus.ACCEPTED.value,
                accepted_by_user_id=accepting_user_id,
                resolved_at=now,
                updated_at=now,
            )
        )
        if result.rowcount == 0:
            raise RequestNotOpenError("Sub request is no longer open")

        handicap = await membership_service.get_member_handicap(
            session, ctx.league_id, accepting_user_id
        )
        await session.execute(
            update(MatchPlayer)
            .where(MatchPlayer.id == ctx.match_player_id)
            .values(user_id=accepting_user_id, starting_handicap=handicap)
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(f"Sub request {sub_request_id} accepted by user {accepting_user_id}")

    try:
        sub = await user_service.get_user_by_id(session, accepting_user_id)
        sub_name = (sub and (sub["name"] or sub["email"])) or "A sub"
        await dispatcher.notify_sub_accepted(session, ctx.requested_by_user_id, sub_name)
    except Exception as e:
        logger.warning(f"Failed to notify requester about accepted sub request {sub_request_id}: {e}")

    return await get_sub_request(session, sub_request_id)


async def cancel_sub_request(
    session: AsyncSession,
    sub_request_id: int,
    requested_by_user_id: int,
    notify_subs: bool = False,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Cancel an open sub request.

    Args:
        session: Database session
        sub_request_id: ID of the request
        requested_by_user_id: Authenticated user (must be the original requester)
        notify_subs: Tell the league's subs the request was withdrawn
        dispatcher: Notification dispatcher (defaults to the process-wide one)
        now: Reference time (defaults to current UTC time)

    Returns:
        Dict with the updated request

    Raises:
        NotFoundError: If the request does not exist
        UnauthorizedError: If the caller is not the requester
        RequestNotOpenError: If the request was already accepted or cancelled
    """
    now = now or utcnow()

    ctx = await _get_request_context(session, sub_request_id)
    if ctx is None:
        raise NotFoundError("Sub request not found")
    if ctx.requested_by_user_id != requested_by_user_id:
        raise UnauthorizedError("Only the requester can cancel this sub request")

    result = await session.execute(
        update(SubRequest)
        .where(
            and_(
                SubRequest.id == sub_request_id,
                SubRequest.status == SubRequestStatus.OPEN.value,
            )
        )
        .values(
            status=SubRequestStatus.CANCELLED.value,
            resolved_at=now,
            updated_at=now,
        )
    )
    if result.rowcount == 0:
        raise RequestNotOpenError("Sub request is no longer open")
    await session.commit()

    logger.info(f"Sub request {sub_request_id} cancelled by user {requested_by_user_id}")

    if notify_subs:
        dispatcher = dispatcher or notification_service.get_dispatcher()
        try:
            await dispatcher.notify_sub_request_withdrawn(session, ctx.league_id, ctx.date)
        except Exception as e:
            logger.warning(f"Failed to notify subs about withdrawn sub request {sub_request_id}: {e}")

    return await get_sub_request(session, sub_request_id)
