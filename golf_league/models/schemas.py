"""
Pydantic models for API request/response validation.
"""

from typing import Optional, List
from pydantic import BaseModel, Field, field_validator


class SubRequestCreate(BaseModel):
    """Request to open a sub request. league_id is provided in the URL path."""

    match_player_id: int
    note: Optional[str] = Field(default=None, max_length=1000)
    # Defaults to every sub in the league; an explicit selection needs at least one sub
    sub_user_ids: Optional[List[int]] = Field(default=None, min_length=1)

    @field_validator("note")
    @classmethod
    def blank_note_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat whitespace-only notes as no note."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class SubRequestResponse(BaseModel):
    """Sub request response."""

    id: int
    match_player_id: int
    requested_by_user_id: int
    status: str  # 'open', 'accepted' or 'cancelled'
    accepted_by_user_id: Optional[int] = None
    note: Optional[str] = None
    created_at: Optional[str] = None  # ISO datetime string (UTC)
    resolved_at: Optional[str] = None  # ISO datetime string (UTC)
    updated_at: Optional[str] = None  # ISO datetime string (UTC)


class SubRequestCreateResponse(SubRequestResponse):
    """Created sub request plus the subs that were notified."""

    notified_user_ids: List[int] = []


class OpenSubRequestResponse(SubRequestResponse):
    """Sub request with match details for the league board."""

    match_id: int
    date: str  # ISO datetime string (UTC)
    holes_count: int
    course_name: Optional[str] = None
    requester_name: Optional[str] = None


class EligibleSlotResponse(BaseModel):
    """Upcoming match slot the user can request a sub for."""

    match_player_id: int
    match_id: int
    round_id: int
    date: str  # ISO datetime string (UTC)
    course_name: Optional[str] = None
    holes_count: int
    starting_handicap: Optional[float] = None


class LeagueMemberResponse(BaseModel):
    """League member with role and handicap."""

    user_id: int
    role: str
    handicap: Optional[float] = None
    name: Optional[str] = None
