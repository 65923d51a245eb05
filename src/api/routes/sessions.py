from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from libs.result import Error
from src.api.error import ClientError, session_error
from src.api.schemas import MessageResponse, RevokeSessionsResponse, SessionInfo
from src.app.use_cases.sessions import SessionService
from src.depends import get_current_session, get_session_service
from src.domain.entities import AuthSession

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=List[SessionInfo])
async def list_sessions(
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """
    List Sessions

    Active sessions of the current user, most recently used first.
    """
    result = await service.get_user_sessions(current_session.user_id)
    if result.is_err():
        raise session_error(result.error)

    now = service.clock()
    return [SessionInfo.from_entity(s, now) for s in result.value]


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_all_sessions(
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """
    Revoke All Sessions

    Logs the current user out everywhere, including this session.
    """
    result = await service.invalidate_all_user_sessions(current_session.user_id)
    if result.is_err():
        raise session_error(result.error)

    count = result.value
    return {
        "message": f"Successfully revoked {count} session(s)",
        "revoked_count": count,
    }


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
)
async def revoke_session(
    session_id: UUID,
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """
    Revoke Session

    Logs out one of the current user's own active sessions (e.g. another
    device).

    Raises:
        - 404 Not Found: No such active session for this user
    """
    owned = await service.get_user_sessions(current_session.user_id)
    if owned.is_err():
        raise session_error(owned.error)

    if session_id not in {s.id for s in owned.value}:
        raise ClientError(
            Error("SESSION_NOT_FOUND", "Session not found"),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    result = await service.invalidate_session(session_id)
    if result.is_err():
        raise session_error(result.error)

    return {"message": "Session revoked successfully"}
