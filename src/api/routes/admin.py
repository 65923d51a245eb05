from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import session_error
from src.api.schemas import (
    IssuedSessionResponse,
    MessageResponse,
    RevokeSessionsResponse,
    SessionInfo,
)
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.repositories.session_repository import SessionStats
from src.app.use_cases.sessions import SessionMetadata, SessionService
from src.depends import UNAUTHENTICATED_CODES, get_session_service

router = APIRouter(
    prefix="/admin/sessions",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_api_key)],
)


class CreateSessionRequest(BaseModel):
    """Issued by the login service after it has verified credentials"""

    user_id: UUID
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    device_fingerprint: Optional[str] = Field(default=None, max_length=255)


class ReportSuspiciousRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=255)


class CleanupResponse(BaseModel):
    message: str
    cleaned_count: int


class SessionValidityResponse(BaseModel):
    valid: bool
    code: Optional[str] = None
    session: Optional[SessionInfo] = None


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=IssuedSessionResponse,
)
async def create_session(
    request: CreateSessionRequest,
    service: SessionService = Depends(get_session_service),
):
    """
    Create Session

    Issues a new session for an already authenticated user. Enforces the
    per-user session limit and runs suspicious activity detection; a
    flagged session is still returned but fails its next validation.

    Raises:
        - 500 Internal Server Error: Session could not be persisted
    """
    metadata = SessionMetadata(
        ip_address=request.ip_address,
        user_agent=request.user_agent,
        device_fingerprint=request.device_fingerprint,
    )
    result = await service.create_session(request.user_id, metadata)
    if result.is_err():
        raise session_error(result.error)

    return IssuedSessionResponse.from_entity(result.value, service.clock())


@router.get(
    "/stats",
    status_code=status.HTTP_200_OK,
    response_model=SessionStats,
)
async def session_stats(service: SessionService = Depends(get_session_service)):
    result = await service.get_session_stats()
    if result.is_err():
        raise session_error(result.error)
    return result.value


@router.post(
    "/cleanup",
    status_code=status.HTTP_200_OK,
    response_model=CleanupResponse,
)
async def cleanup_sessions(service: SessionService = Depends(get_session_service)):
    """Run the expired session sweep now"""
    result = await service.cleanup_expired_sessions()
    if result.is_err():
        raise session_error(result.error)

    return {
        "message": f"Cleaned up {result.value} expired session(s)",
        "cleaned_count": result.value,
    }


@router.get(
    "/users/{user_id}/recent",
    status_code=status.HTTP_200_OK,
    response_model=List[SessionInfo],
)
async def recent_sessions(
    user_id: UUID,
    window_minutes: int = Query(default=60, ge=1, le=60 * 24 * 30),
    service: SessionService = Depends(get_session_service),
):
    result = await service.get_recent_sessions(user_id, timedelta(minutes=window_minutes))
    if result.is_err():
        raise session_error(result.error)

    now = service.clock()
    return [SessionInfo.from_entity(s, now) for s in result.value]


@router.post(
    "/users/{user_id}/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def force_revoke_user_sessions(
    user_id: UUID,
    service: SessionService = Depends(get_session_service),
):
    """Forced revocation, e.g. after an account compromise"""
    result = await service.invalidate_all_user_sessions(user_id)
    if result.is_err():
        raise session_error(result.error)

    return {
        "message": f"Successfully revoked {result.value} session(s)",
        "revoked_count": result.value,
    }


@router.get(
    "/{session_id}/validate",
    status_code=status.HTTP_200_OK,
    response_model=SessionValidityResponse,
)
async def validate_session(
    session_id: UUID,
    service: SessionService = Depends(get_session_service),
):
    """
    Validate Session

    Checks a session by id against the database. Invalid sessions are
    reported in the body rather than as an HTTP error.
    """
    result = await service.validate_session(session_id)
    if result.is_err():
        error = result.error
        if error.code in UNAUTHENTICATED_CODES:
            return {"valid": False, "code": error.code}
        raise session_error(error)

    return {
        "valid": True,
        "session": SessionInfo.from_entity(result.value, service.clock()),
    }


@router.post(
    "/{session_id}/suspicious",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
)
async def report_suspicious(
    session_id: UUID,
    request: ReportSuspiciousRequest,
    service: SessionService = Depends(get_session_service),
):
    """
    Report Suspicious Session

    Used by fraud/risk tooling. The flag is sticky: the session stays
    unusable until it is invalidated and the user logs in again.
    """
    result = await service.mark_session_suspicious(session_id, request.reason)
    if result.is_err():
        raise session_error(result.error)

    return {"message": "Session marked as suspicious"}
