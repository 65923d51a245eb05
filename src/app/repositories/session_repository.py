from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from src.domain.entities import AuthSession, SessionPatch


class SessionStats(BaseModel):
    """Aggregate session counters for observability"""

    total_active_sessions: int
    suspicious_sessions: int
    expired_sessions: int
    average_session_duration_minutes: int


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def find_by_id(self, session_id: UUID) -> Optional[AuthSession]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def find_by_token(self, session_token: str) -> Optional[AuthSession]:
        """Get session by its bearer token"""
        pass

    @abstractmethod
    async def find_active_sessions_by_user_id(
        self, user_id: UUID, now: datetime
    ) -> List[AuthSession]:
        """Active, unexpired sessions of a user, most recently accessed first"""
        pass

    @abstractmethod
    async def find_user_sessions_since(
        self, user_id: UUID, since: datetime
    ) -> List[AuthSession]:
        """Sessions of a user created at or after ``since``, newest first"""
        pass

    @abstractmethod
    async def create(self, session: AuthSession) -> AuthSession:
        """Persist a new session"""
        pass

    @abstractmethod
    async def update(self, session_id: UUID, patch: SessionPatch) -> Optional[AuthSession]:
        """Apply a typed patch. Returns the updated row, or None if missing."""
        pass

    @abstractmethod
    async def invalidate_session(self, session_id: UUID) -> bool:
        """Set is_active=False. Returns True if the row existed."""
        pass

    @abstractmethod
    async def invalidate_all_user_sessions(self, user_id: UUID) -> int:
        """Set is_active=False on every active session of a user. Returns count."""
        pass

    @abstractmethod
    async def mark_as_suspicious(self, session_id: UUID, reason: str) -> bool:
        """Set the sticky suspicious flag. Returns True if the row existed."""
        pass

    @abstractmethod
    async def update_last_accessed(self, session_id: UUID, accessed_at: datetime) -> None:
        """Record a (throttled) access time"""
        pass

    @abstractmethod
    async def cleanup_expired_sessions(self, now: datetime) -> int:
        """Delete rows whose expires_at has passed. Returns count deleted."""
        pass

    @abstractmethod
    async def get_session_stats(self, now: datetime) -> SessionStats:
        """Aggregate counters across all sessions"""
        pass
