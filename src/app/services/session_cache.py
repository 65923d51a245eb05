"""
Session cache entries

Sessions are cached under their bearer token. The cached copy is only a
latency shortcut: validity is always re-derived from its fields.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.domain.entities import AuthSession

SESSION_CACHE_PREFIX = "session:token:"


def session_cache_key(session_token: str) -> str:
    return f"{SESSION_CACHE_PREFIX}{session_token}"


class CachedSession(BaseModel):
    """Serialized form of an AuthSession row"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    session_token: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_fingerprint: Optional[str] = None
    is_active: bool
    is_suspicious: bool
    suspicious_reason: Optional[str] = None
    created_at: datetime
    last_accessed_at: datetime
    expires_at: datetime


def serialize_session(session: AuthSession) -> str:
    return CachedSession.model_validate(session).model_dump_json()


def deserialize_session(raw: str) -> AuthSession:
    cached = CachedSession.model_validate_json(raw)
    return AuthSession(**cached.model_dump())
