"""
Eligibility resolver for substitute requests.

Computes which of a player's upcoming match slots they can still ask a sub
to cover.
"""

from datetime import datetime
from typing import Dict, List, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from golf_league.database.models import (
    Course,
    Match,
    MatchPlayer,
    Round,
    Season,
    SubRequest,
    SubRequestStatus,
)
from golf_league.utils.datetime_utils import utcnow, ensure_utc, to_iso


async def get_open_request_slot_ids(session: AsyncSession, user_id: int) -> Set[int]:
    """
    Get the match_player_ids covered by this user's open sub requests.

    Args:
        session: Database session
        user_id: ID of the requesting user

    Returns:
        Set of match player IDs
    """
    result = await session.execute(
        select(SubRequest.match_player_id).where(
            and_(
                SubRequest.requested_by_user_id == user_id,
                SubRequest.status == SubRequestStatus.OPEN.value,
            )
        )
    )
    return set(result.scalars().all())


async def get_eligible_slots(
    session: AsyncSession,
    user_id: int,
    league_id: int,
    now: Optional[datetime] = None,
) -> List[Dict]:
    """
    Get the match slots a user may request a sub for.

    A slot is eligible when it belongs to the user, its match is in the
    given league and dated strictly after now, and no open sub request
    from the user already covers it. Cancelled or accepted requests do not
    block a slot.

    Args:
        session: Database session
        user_id: ID of the requesting user
        league_id: ID of the league
        now: Reference time (defaults to current UTC time)

    Returns:
        List of slot dicts ordered by match date ascending (empty if none)
    """
    now = ensure_utc(now or utcnow())

    result = await session.execute(
        select(
            MatchPlayer.id.label("match_player_id"),
            MatchPlayer.starting_handicap,
            Match.id.label("match_id"),
            Round.id.label("round_id"),
            Round.date,
            Round.holes_count,
            Course.name.label("course_name"),
        )
        .join(Match, Match.id == MatchPlayer.match_id)
        .join(Round, Round.id == Match.round_id)
        .join(Season, Season.id == Round.season_id)
        .outerjoin(Course, Course.id == Round.course_id)
        .where(
            and_(
                MatchPlayer.user_id == user_id,
                Season.league_id == league_id,
                Round.date > now,  # Future matches only
            )
        )
        .order_by(Round.date, MatchPlayer.id)
    )
    upcoming = result.all()
    if not upcoming:
        return []

    covered = await get_open_request_slot_ids(session, user_id)

    return [
        {
            "match_player_id": row.match_player_id,
            "match_id": row.match_id,
            "round_id": row.round_id,
            "date": to_iso(row.date),
            "course_name": row.course_name,
            "holes_count": row.holes_count,
            "starting_handicap": row.starting_handicap,
        }
        for row in upcoming
        if row.match_player_id not in covered
    ]
