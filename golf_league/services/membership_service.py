"""
League membership directory.

Read-only lookups of role-tagged league members (admins, players, subs).
"""

from typing import List, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from golf_league.database.models import LeagueMember, User


async def list_members(
    session: AsyncSession, league_id: int, role: Optional[str] = None
) -> List[Dict]:
    """
    List members of a league, optionally filtered by role.

    Members are returned in membership order (oldest first), which is the
    order broadcasts use.

    Args:
        session: Database session
        league_id: ID of the league
        role: Optional LeagueRole value to filter by

    Returns:
        List of dicts with user_id, role, handicap and name
    """
    query = (
        select(
            LeagueMember.user_id,
            LeagueMember.role,
            LeagueMember.handicap,
            User.name,
            User.first_name,
            User.last_name,
        )
        .join(User, User.id == LeagueMember.user_id)
        .where(LeagueMember.league_id == league_id)
    )
    if role is not None:
        query = query.where(LeagueMember.role == role)
    query = query.order_by(LeagueMember.id)

    result = await session.execute(query)
    return [
        {
            "user_id": row.user_id,
            "role": row.role,
            "handicap": row.handicap,
            "name": display_name(row.name, row.first_name, row.last_name),
        }
        for row in result.all()
    ]


async def list_member_user_ids(
    session: AsyncSession, league_id: int, role: Optional[str] = None
) -> List[int]:
    """Get user IDs of league members (optionally by role) in membership order."""
    query = select(LeagueMember.user_id).where(LeagueMember.league_id == league_id)
    if role is not None:
        query = query.where(LeagueMember.role == role)
    result = await session.execute(query.order_by(LeagueMember.id))
    return list(result.scalars().all())


async def get_membership(session: AsyncSession, league_id: int, user_id: int) -> Optional[str]:
    """
    Get the role a user holds in a league.

    Args:
        session: Database session
        league_id: ID of the league
        user_id: ID of the user

    Returns:
        LeagueRole value, or None if the user is not a member
    """
    result = await session.execute(
        select(LeagueMember.role).where(
            and_(LeagueMember.league_id == league_id, LeagueMember.user_id == user_id)
        )
    )
    return result.scalar_one_or_none()


async def get_member_handicap(
    session: AsyncSession, league_id: int, user_id: int
) -> Optional[float]:
    """Current league handicap for a member, or None if not a member."""
    result = await session.execute(
        select(LeagueMember.handicap).where(
            and_(LeagueMember.league_id == league_id, LeagueMember.user_id == user_id)
        )
    )
    return result.scalar_one_or_none()


def display_name(
    name: Optional[str], first_name: Optional[str] = None, last_name: Optional[str] = None
) -> Optional[str]:
    """Prefer the stored display name, fall back to first + last."""
    if name:
        return name
    full = " ".join(part for part in (first_name, last_name) if part)
    return full or None
