from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository, SessionStats
from src.domain.entities import AuthSession, SessionPatch

STATS_DURATION_WINDOW = timedelta(days=30)


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, session_id: UUID) -> Optional[AuthSession]:
        """Get session by ID"""
        stmt = select(AuthSession).where(AuthSession.id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_token(self, session_token: str) -> Optional[AuthSession]:
        """Get session by token (unique index lookup)"""
        stmt = select(AuthSession).where(AuthSession.session_token == session_token)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_active_sessions_by_user_id(
        self, user_id: UUID, now: datetime
    ) -> List[AuthSession]:
        stmt = (
            select(AuthSession)
            .where(
                AuthSession.user_id == user_id,
                AuthSession.is_active == True,
                AuthSession.expires_at > now,
            )
            .order_by(AuthSession.last_accessed_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_user_sessions_since(
        self, user_id: UUID, since: datetime
    ) -> List[AuthSession]:
        stmt = (
            select(AuthSession)
            .where(AuthSession.user_id == user_id, AuthSession.created_at >= since)
            .order_by(AuthSession.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, session_obj: AuthSession) -> AuthSession:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def update(self, session_id: UUID, patch: SessionPatch) -> Optional[AuthSession]:
        """Apply a typed patch to an existing session"""
        session_obj = await self.find_by_id(session_id)
        if session_obj is None:
            return None

        for field_name, field_value in patch.model_dump().items():
            setattr(session_obj, field_name, field_value)

        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def invalidate_session(self, session_id: UUID) -> bool:
        stmt = (
            update(AuthSession)
            .where(AuthSession.id == session_id)
            .values(is_active=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def invalidate_all_user_sessions(self, user_id: UUID) -> int:
        stmt = (
            update(AuthSession)
            .where(AuthSession.user_id == user_id, AuthSession.is_active == True)
            .values(is_active=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def mark_as_suspicious(self, session_id: UUID, reason: str) -> bool:
        stmt = (
            update(AuthSession)
            .where(AuthSession.id == session_id)
            .values(is_suspicious=True, suspicious_reason=reason[:255])
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def update_last_accessed(self, session_id: UUID, accessed_at: datetime) -> None:
        stmt = (
            update(AuthSession)
            .where(AuthSession.id == session_id)
            .values(last_accessed_at=accessed_at)
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def cleanup_expired_sessions(self, now: datetime) -> int:
        """Delete-only sweep: rows with expires_at == now are kept"""
        stmt = delete(AuthSession).where(AuthSession.expires_at < now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def get_session_stats(self, now: datetime) -> SessionStats:
        active_stmt = select(func.count()).select_from(AuthSession).where(
            AuthSession.is_active == True, AuthSession.expires_at > now
        )
        suspicious_stmt = select(func.count()).select_from(AuthSession).where(
            AuthSession.is_active == True, AuthSession.is_suspicious == True
        )
        expired_stmt = select(func.count()).select_from(AuthSession).where(
            or_(AuthSession.expires_at <= now, AuthSession.is_active == False)
        )
        ended_stmt = select(AuthSession.created_at, AuthSession.last_accessed_at).where(
            AuthSession.is_active == False,
            AuthSession.created_at >= now - STATS_DURATION_WINDOW,
        )

        total_active = (await self.session.execute(active_stmt)).scalar_one()
        suspicious = (await self.session.execute(suspicious_stmt)).scalar_one()
        expired = (await self.session.execute(expired_stmt)).scalar_one()
        ended = (await self.session.execute(ended_stmt)).all()

        average_minutes = 0
        if ended:
            total_seconds = sum(
                (last_accessed - created).total_seconds() for created, last_accessed in ended
            )
            average_minutes = round(total_seconds / len(ended) / 60)

        return SessionStats(
            total_active_sessions=total_active,
            suspicious_sessions=suspicious,
            expired_sessions=expired,
            average_session_duration_minutes=average_minutes,
        )
