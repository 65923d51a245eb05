"""
AuthSession Entity

Stores authentication sessions and their opaque bearer tokens.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow

from .enums import SessionState


class AuthSession(SQLModel, table=True):
    """
    AuthSession entity - one authenticated login of a user.

    Business Rules:
    - session_token is globally unique and never reassigned
    - id never changes; rotation replaces session_token only
    - Valid iff is_active and not is_suspicious and now < expires_at
    - is_suspicious is sticky: only invalidation or cleanup removes it
    - last_accessed_at is throttled (see SessionConfig.access_update_interval)
    """

    __tablename__ = "auth_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(nullable=False, index=True)

    session_token: str = Field(unique=True, index=True, max_length=64)

    # Provenance metadata (only read by the suspicious activity detector)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    device_fingerprint: Optional[str] = Field(default=None, max_length=255)

    is_active: bool = Field(default=True)
    is_suspicious: bool = Field(default=False)
    suspicious_reason: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_accessed_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_auth_session_expires_at", "expires_at"),
        Index("idx_auth_session_user_active", "user_id", "is_active"),
    )

    def state(self, now: datetime) -> SessionState:
        """Derive the lifecycle state at ``now``"""
        if not self.is_active:
            return SessionState.invalidated
        if self.is_suspicious:
            return SessionState.suspicious
        if now >= self.expires_at:
            return SessionState.expired
        return SessionState.active

    def is_valid(self, now: datetime) -> bool:
        return self.is_active and not self.is_suspicious and now < self.expires_at
