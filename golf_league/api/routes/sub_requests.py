"""Sub request route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from golf_league.api.routes import limiter, SUB_REQUEST_RATE_LIMIT
from golf_league.database.db import get_db_session
from golf_league.database.models import LeagueRole
from golf_league.services import (
    eligibility_service,
    membership_service,
    notification_service,
    sub_request_service,
)
from golf_league.services.notification_service import NotificationDispatcher
from golf_league.services.sub_request_service import (
    DuplicateOpenRequestError,
    NotFoundError,
    RequestNotOpenError,
    UnauthorizedError,
)
from golf_league.api.auth_dependencies import make_require_league_member, require_user
from golf_league.models.schemas import (
    EligibleSlotResponse,
    LeagueMemberResponse,
    OpenSubRequestResponse,
    SubRequestCreate,
    SubRequestCreateResponse,
    SubRequestResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _to_http_error(e: ValueError) -> HTTPException:
    """Map a sub request service error to an HTTP error."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UnauthorizedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (DuplicateOpenRequestError, RequestNotOpenError)):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# ---------------------------------------------------------------------------
# League-scoped endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/api/leagues/{league_id}/sub-requests", response_model=List[OpenSubRequestResponse]
)
async def list_open_sub_requests(
    league_id: int,
    user: dict = Depends(make_require_league_member()),
    session: AsyncSession = Depends(get_db_session),
):
    """List open sub requests for upcoming matches in a league, newest first."""
    try:
        return await sub_request_service.list_open_sub_requests(session, league_id)
    except Exception as e:
        logger.error(f"Error listing sub requests for league {league_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing sub requests: {str(e)}")


@router.get(
    "/api/leagues/{league_id}/sub-requests/mine", response_model=List[OpenSubRequestResponse]
)
async def list_my_sub_requests(
    league_id: int,
    user: dict = Depends(make_require_league_member()),
    session: AsyncSession = Depends(get_db_session),
):
    """List the current user's sub requests in a league (any status)."""
    try:
        return await sub_request_service.list_user_sub_requests(session, user["id"], league_id)
    except Exception as e:
        logger.error(f"Error listing sub requests for user {user['id']}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing sub requests: {str(e)}")


@router.get(
    "/api/leagues/{league_id}/sub-requests/eligible-slots",
    response_model=List[EligibleSlotResponse],
)
async def list_eligible_slots(
    league_id: int,
    user: dict = Depends(make_require_league_member()),
    session: AsyncSession = Depends(get_db_session),
):
    """Upcoming match slots the current user can request a sub for."""
    try:
        return await eligibility_service.get_eligible_slots(session, user["id"], league_id)
    except Exception as e:
        logger.error(f"Error resolving eligible slots for user {user['id']}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error getting eligible slots: {str(e)}")


@router.get("/api/leagues/{league_id}/subs", response_model=List[LeagueMemberResponse])
async def list_league_subs(
    league_id: int,
    user: dict = Depends(make_require_league_member()),
    session: AsyncSession = Depends(get_db_session),
):
    """List the league's subs (for choosing specific recipients)."""
    try:
        return await membership_service.list_members(
            session, league_id, role=LeagueRole.SUB.value
        )
    except Exception as e:
        logger.error(f"Error listing subs for league {league_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing subs: {str(e)}")


@router.post(
    "/api/leagues/{league_id}/sub-requests",
    response_model=SubRequestCreateResponse,
    status_code=201,
)
@limiter.limit(SUB_REQUEST_RATE_LIMIT)
async def create_sub_request(
    request: Request,
    league_id: int,
    payload: SubRequestCreate,
    user: dict = Depends(make_require_league_member()),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(notification_service.get_dispatcher),
):
    """Open a sub request for one of the current user's upcoming match slots."""
    try:
        return await sub_request_service.create_sub_request(
            session,
            match_player_id=payload.match_player_id,
            requested_by_user_id=user["id"],
            note=payload.note,
            sub_user_ids=payload.sub_user_ids,
            league_id=league_id,
            dispatcher=dispatcher,
        )
    except ValueError as e:
        raise _to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating sub request: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating sub request: {str(e)}")


# ---------------------------------------------------------------------------
# Request-scoped endpoints
# ---------------------------------------------------------------------------


@router.get("/api/sub-requests/{sub_request_id}", response_model=SubRequestResponse)
async def get_sub_request(
    sub_request_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a sub request by ID (members of the request's league only)."""
    try:
        return await sub_request_service.get_sub_request(
            session, sub_request_id, viewer_user_id=user["id"]
        )
    except ValueError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.error(f"Error getting sub request {sub_request_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error getting sub request: {str(e)}")


@router.post("/api/sub-requests/{sub_request_id}/accept", response_model=SubRequestResponse)
async def accept_sub_request(
    sub_request_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(notification_service.get_dispatcher),
):
    """Accept an open sub request (league subs only)."""
    try:
        return await sub_request_service.accept_sub_request(
            session, sub_request_id, user["id"], dispatcher=dispatcher
        )
    except ValueError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.error(f"Error accepting sub request {sub_request_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error accepting sub request: {str(e)}")


@router.post("/api/sub-requests/{sub_request_id}/cancel", response_model=SubRequestResponse)
async def cancel_sub_request(
    sub_request_id: int,
    notify_subs: bool = Query(False),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(notification_service.get_dispatcher),
):
    """Cancel an open sub request (requester only)."""
    try:
        return await sub_request_service.cancel_sub_request(
            session, sub_request_id, user["id"], notify_subs=notify_subs, dispatcher=dispatcher
        )
    except ValueError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.error(f"Error cancelling sub request {sub_request_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error cancelling sub request: {str(e)}")
