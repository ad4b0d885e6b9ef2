#!/usr/bin/env python3
"""
Seed a demo league for local testing of the sub request flow, and print a
bearer token for each demo user.

Creates one league with two players, two subs, a course, a season and a
match next week between the two players. Safe to run multiple times: an
existing league with the demo slug is reused and only tokens are printed.

Usage (local, from repo root):
    python scripts/seed_demo_league.py
"""

import asyncio
import os
import sys
from datetime import timedelta

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from sqlalchemy import select
from golf_league.database.db import AsyncSessionLocal, init_database
from golf_league.database.models import (
    Course,
    League,
    LeagueMember,
    LeagueRole,
    Match,
    MatchPlayer,
    Round,
    Season,
    User,
)
from golf_league.services.auth_service import create_access_token
from golf_league.utils.datetime_utils import utcnow

DEMO_SLUG = "demo-league"

DEMO_USERS = [
    # (first, last, email, phone, preference, role, handicap)
    ("Pat", "Player", "pat@example.com", "+15550001001", "sms", LeagueRole.PLAYER.value, 10.2),
    ("Olive", "Opponent", "olive@example.com", None, "email", LeagueRole.PLAYER.value, 14.8),
    ("Sam", "Sub", "sam@example.com", "+15550001003", "sms", LeagueRole.SUB.value, 12.4),
    ("Erin", "Email", "erin@example.com", None, "email", LeagueRole.SUB.value, 8.0),
]


async def seed(session) -> League:
    """Create the demo league (or return the existing one)."""
    result = await session.execute(select(League).where(League.slug == DEMO_SLUG))
    league = result.scalar_one_or_none()
    if league:
        print(f"Demo league already exists (id={league.id})")
        return league

    league = League(name="Demo League", slug=DEMO_SLUG)
    session.add(league)
    await session.flush()

    users = []
    for first, last, email, phone, preference, role, handicap in DEMO_USERS:
        user = User(
            first_name=first,
            last_name=last,
            name=f"{first} {last}",
            email=email,
            phone=phone,
            notification_preference=preference,
        )
        session.add(user)
        await session.flush()
        session.add(LeagueMember(league_id=league.id, user_id=user.id, role=role, handicap=handicap))
        users.append((user, handicap))

    course = Course(name="Demo Links", city="Springfield", state="IL")
    season = Season(league_id=league.id, name="Demo Season")
    session.add_all([course, season])
    await session.flush()

    round_ = Round(
        season_id=season.id,
        course_id=course.id,
        date=utcnow() + timedelta(days=7),
        holes_count=9,
    )
    session.add(round_)
    await session.flush()

    match = Match(round_id=round_.id)
    session.add(match)
    await session.flush()

    for user, handicap in users[:2]:
        session.add(MatchPlayer(match_id=match.id, user_id=user.id, starting_handicap=handicap))

    await session.commit()
    print(f"Created demo league (id={league.id}) with a match on {round_.date:%Y-%m-%d}")
    return league


async def main():
    await init_database()
    async with AsyncSessionLocal() as session:
        league = await seed(session)

        result = await session.execute(
            select(User, LeagueMember.role)
            .join(LeagueMember, LeagueMember.user_id == User.id)
            .where(LeagueMember.league_id == league.id)
            .order_by(LeagueMember.id)
        )
        print("\nBearer tokens:")
        for user, role in result.all():
            token = create_access_token({"user_id": user.id})
            print(f"  {user.name:<16} {role:<7} user_id={user.id:<4} {token}")


if __name__ == "__main__":
    asyncio.run(main())
