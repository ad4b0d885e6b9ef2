"""
User service layer for user lookups.
"""

from typing import Optional, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from golf_league.database.models import User
from golf_league.services.membership_service import display_name
from golf_league.utils.datetime_utils import to_iso


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_contact(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get the fields needed to reach a user.

    Returns:
        Dict with email, phone and notification_preference, or None if the
        user does not exist
    """
    result = await session.execute(
        select(User.email, User.phone, User.notification_preference).where(User.id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        return None
    return {
        "email": row.email,
        "phone": row.phone,
        "notification_preference": row.notification_preference,
    }


def _user_to_dict(user: User) -> Dict:
    """Convert a User row to the dict shape used by the API layer."""
    return {
        "id": user.id,
        "name": display_name(user.name, user.first_name, user.last_name),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "phone": user.phone,
        "notification_preference": user.notification_preference,
        "created_at": to_iso(user.created_at),
    }
