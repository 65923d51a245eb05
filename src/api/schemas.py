"""
API response models for sessions.

The bearer token is only ever serialized in IssuedSessionResponse, which is
returned to the party that holds the session.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.domain.entities import AuthSession, SessionState


class SessionInfo(BaseModel):
    session_id: str
    user_id: str
    status: SessionState
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    last_accessed_at: datetime
    expires_at: datetime

    @classmethod
    def from_entity(cls, session: AuthSession, now: datetime) -> "SessionInfo":
        return cls(
            session_id=str(session.id),
            user_id=str(session.user_id),
            status=session.state(now),
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=session.created_at,
            last_accessed_at=session.last_accessed_at,
            expires_at=session.expires_at,
        )


class IssuedSessionResponse(SessionInfo):
    session_token: str

    @classmethod
    def from_entity(cls, session: AuthSession, now: datetime) -> "IssuedSessionResponse":
        info = SessionInfo.from_entity(session, now)
        return cls(**info.model_dump(), session_token=session.session_token)


class MessageResponse(BaseModel):
    message: str


class RevokeSessionsResponse(BaseModel):
    message: str
    revoked_count: int
