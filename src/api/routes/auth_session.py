from fastapi import APIRouter, Depends, Response, status

from config import ApplicationConfig
from src.api.error import session_error
from src.api.schemas import IssuedSessionResponse, MessageResponse, SessionInfo
from src.app.use_cases.sessions import SessionService
from src.depends import get_current_session, get_session_service
from src.domain.entities import AuthSession

router = APIRouter(prefix="/auth/session", tags=["Authentication"])


def _set_session_cookie(response: Response, session: AuthSession, max_age: int) -> None:
    response.set_cookie(
        ApplicationConfig.SESSION_COOKIE_NAME,
        session.session_token,
        max_age=max_age,
        httponly=True,
        secure=True,
        samesite="lax",
    )


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionInfo)
async def get_session(
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """
    Current Session

    Returns the caller's session. Validation also bumps last_accessed_at
    (throttled).

    Raises:
        - 401 Unauthorized: Missing, unknown, expired, revoked or suspicious session
    """
    return SessionInfo.from_entity(current_session, service.clock())


@router.post("/extend", status_code=status.HTTP_200_OK, response_model=SessionInfo)
async def extend_session(
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """
    Extend Session

    Pushes expiry forward by a full session duration when the session is
    within the refresh threshold; otherwise returns it unchanged.
    """
    result = await service.refresh_session(current_session.id)
    if result.is_err():
        raise session_error(result.error)

    return SessionInfo.from_entity(result.value, service.clock())


@router.post("/rotate", status_code=status.HTTP_200_OK, response_model=IssuedSessionResponse)
async def rotate_session(
    response: Response,
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """
    Rotate Session Token

    Issues a new token for the current session (same session id). The
    presented token stops working immediately.
    """
    result = await service.rotate_session(current_session.id)
    if result.is_err():
        raise session_error(result.error)

    rotated = result.value
    now = service.clock()
    _set_session_cookie(response, rotated, int((rotated.expires_at - now).total_seconds()))
    return IssuedSessionResponse.from_entity(rotated, now)


@router.delete("", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def logout(
    response: Response,
    current_session: AuthSession = Depends(get_current_session),
    service: SessionService = Depends(get_session_service),
):
    """Log out: invalidate the current session and clear the cookie"""
    result = await service.invalidate_session(current_session.id)
    if result.is_err():
        raise session_error(result.error)

    response.delete_cookie(ApplicationConfig.SESSION_COOKIE_NAME)
    return {"message": "Logged out"}
