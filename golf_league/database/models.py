"""
SQLAlchemy ORM models for the golf league system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    Date,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from golf_league.database.db import Base


class NotificationPreference(str, enum.Enum):
    """Preferred notification channel for a user."""

    SMS = "sms"
    EMAIL = "email"


class LeagueRole(str, enum.Enum):
    """Role a user holds within a league."""

    ADMIN = "admin"
    PLAYER = "player"
    SUB = "sub"


class RoundStatus(str, enum.Enum):
    """Round status enum."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SubRequestStatus(str, enum.Enum):
    """Substitute request status enum. ACCEPTED and CANCELLED are terminal."""

    OPEN = "open"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


class User(Base):
    """User accounts and contact details."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String, nullable=True)  # Display name
    email = Column(String, nullable=False, unique=True)
    phone = Column(String, nullable=True)  # E.164 format
    notification_preference = Column(
        String(10),
        default=NotificationPreference.SMS.value,
        server_default=NotificationPreference.SMS.value,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    league_memberships = relationship("LeagueMember", back_populates="user")

    __table_args__ = (
        CheckConstraint(
            f"notification_preference IN ({', '.join(repr(e.value) for e in NotificationPreference)})",
            name="check_notification_preference_valid",
        ),
        Index("idx_users_email", "email"),
    )


class League(Base):
    """League (organization) that scopes members, teams, courses and matches."""

    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    members = relationship("LeagueMember", back_populates="league", cascade="all, delete-orphan")
    teams = relationship("Team", back_populates="league", cascade="all, delete-orphan")
    seasons = relationship("Season", back_populates="league")


class LeagueMember(Base):
    """Join table (User ↔ League) carrying the member's role and handicap."""

    __tablename__ = "league_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(String(20), default=LeagueRole.PLAYER.value, nullable=False)
    handicap = Column(Float, default=0.0, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    league = relationship("League", back_populates="members")
    user = relationship("User", back_populates="league_memberships")

    __table_args__ = (
        UniqueConstraint("league_id", "user_id", name="uq_league_members_league_user"),
        CheckConstraint(
            f"role IN ({', '.join(repr(e.value) for e in LeagueRole)})",
            name="check_league_member_role_valid",
        ),
        Index("idx_league_members_league_role", "league_id", "role"),
        Index("idx_league_members_user", "user_id"),
    )


class Team(Base):
    """Teams within a league."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    league = relationship("League", back_populates="teams")

    __table_args__ = (Index("idx_teams_league", "league_id"),)


class Course(Base):
    """Golf courses."""

    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)

    # Relationships
    rounds = relationship("Round", back_populates="course")


class Season(Base):
    """Seasons within leagues."""

    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    league = relationship("League", back_populates="seasons")
    rounds = relationship("Round", back_populates="season", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_seasons_league", "league_id"),)


class Round(Base):
    """A scheduled competition day within a season."""

    __tablename__ = "rounds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        String(20),
        default=RoundStatus.SCHEDULED.value,
        server_default=RoundStatus.SCHEDULED.value,
        nullable=False,
    )
    holes_count = Column(Integer, default=18, nullable=False)  # 9 or 18

    # Relationships
    season = relationship("Season", back_populates="rounds")
    course = relationship("Course", back_populates="rounds")
    matches = relationship("Match", back_populates="round", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_rounds_season_date", "season_id", "date"),
    )


class Match(Base):
    """Pairings within a round. Team sides are optional (individual formats)."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    round_id = Column(Integer, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False)
    format = Column(String(20), default="match_play", nullable=False)
    team1_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    team2_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    round = relationship("Round", back_populates="matches")
    team1 = relationship("Team", foreign_keys=[team1_id])
    team2 = relationship("Team", foreign_keys=[team2_id])
    players = relationship("MatchPlayer", back_populates="match", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_matches_round", "round_id"),)


class MatchPlayer(Base):
    """One participant's slot in a match, with a point-in-time handicap snapshot."""

    __tablename__ = "match_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)  # Optional grouping for 2v2
    starting_handicap = Column(Float, nullable=True)  # Captured at creation/reassignment only

    # Relationships
    match = relationship("Match", back_populates="players")
    user = relationship("User")
    sub_requests = relationship(
        "SubRequest", back_populates="match_player", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_match_players_match", "match_id"),
        Index("idx_match_players_user", "user_id"),
    )


class SubRequest(Base):
    """Request for a substitute to take over a match player slot."""

    __tablename__ = "sub_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_player_id = Column(
        Integer, ForeignKey("match_players.id", ondelete="CASCADE"), nullable=False
    )
    requested_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(
        String(20),
        default=SubRequestStatus.OPEN.value,
        server_default=SubRequestStatus.OPEN.value,
        nullable=False,
    )
    accepted_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    resolved_at = Column(DateTime(timezone=True), nullable=True)  # Set on accept or cancel
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    match_player = relationship("MatchPlayer", back_populates="sub_requests")
    requested_by = relationship("User", foreign_keys=[requested_by_user_id])
    accepted_by = relationship("User", foreign_keys=[accepted_by_user_id])

    __table_args__ = (
        CheckConstraint(
            f"status IN ({', '.join(repr(e.value) for e in SubRequestStatus)})",
            name="check_sub_request_status_valid",
        ),
        # At most one open request per slot, enforced by the database
        Index(
            "uq_sub_requests_open_slot",
            "match_player_id",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
        Index("idx_sub_requests_requester_status", "requested_by_user_id", "status"),
        Index("idx_sub_requests_status_created", "status", "created_at"),
    )
