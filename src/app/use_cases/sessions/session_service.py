"""
Session Service

Lifecycle of authentication sessions: create, validate, refresh, rotate,
invalidate and clean up. The database is authoritative; the token-keyed
cache is a best-effort accelerator whose failures are logged and dropped.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.repositories.session_repository import SessionStats
from src.app.services.cache import ICache
from src.app.services.session_cache import (
    deserialize_session,
    serialize_session,
    session_cache_key,
)
from src.app.services.session_config import SessionConfig
from src.app.services.session_token import generate_session_token
from src.app.services.suspicious_activity_detector import SuspiciousActivityDetector
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import (
    AuthSession,
    ExtendExpiryPatch,
    RotateTokenPatch,
    SessionState,
)

from .dtos import SessionMetadata

logger = logging.getLogger(__name__)


class SessionService:
    """
    Use case for the authentication session lifecycle.

    Business Rules:
    - A session is valid iff active, not suspicious and not expired;
      the check is re-derived on every validation
    - A user keeps at most max_sessions_per_user active sessions; the least
      recently accessed ones are evicted on login
    - last_accessed_at is written at most once per access_update_interval
    - Suspicious flags are set once, at creation, or by explicit report,
      and are never cleared by refresh or rotation
    - Cache failures never fail an operation

    Every public method returns a Result and never raises.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cache: ICache,
        config: Optional[SessionConfig] = None,
        clock: Callable[[], datetime] = utcnow,
        token_generator: Callable[[], str] = generate_session_token,
    ):
        self.uow = uow
        self.cache = cache
        self.config = config or SessionConfig()
        self.clock = clock
        self.token_generator = token_generator
        self.detector = SuspiciousActivityDetector(self.config)

    async def create_session(
        self, user_id: UUID, metadata: SessionMetadata
    ) -> Result[AuthSession]:
        """
        Create a session for a user that already authenticated.

        Concurrent logins for the same user may transiently exceed the
        session ceiling: the check, eviction and insert are not atomic.

        Args:
            user_id: Authenticated principal
            metadata: IP address, user agent and device fingerprint

        Returns:
            Result with the new AuthSession (possibly flagged suspicious),
            or SESSION_CREATION_FAILED
        """
        logger.info(f"Creating session for user {user_id}")
        try:
            async with self.uow:
                now = self.clock()
                active_sessions = await self.uow.sessions.find_active_sessions_by_user_id(
                    user_id, now
                )

                evicted = self._select_evictions(active_sessions)
                for old_session in evicted:
                    await self.uow.sessions.invalidate_session(old_session.id)
                evicted_tokens = [s.session_token for s in evicted]
                evicted_ids = {s.id for s in evicted}

                session = AuthSession(
                    user_id=user_id,
                    session_token=self.token_generator(),
                    ip_address=metadata.ip_address,
                    user_agent=metadata.user_agent,
                    device_fingerprint=metadata.device_fingerprint,
                    is_active=True,
                    is_suspicious=False,
                    created_at=now,
                    last_accessed_at=now,
                    expires_at=now + self.config.session_duration,
                )
                session = await self.uow.sessions.create(session)

                # Only sessions that existed before this one, minus the evicted
                history = self.detector.select_history(
                    session, [s for s in active_sessions if s.id not in evicted_ids]
                )
                reasons = self.detector.evaluate(session, history)
                if reasons:
                    reason = ", ".join(reasons)
                    await self.uow.sessions.mark_as_suspicious(session.id, reason)
                    session.is_suspicious = True
                    session.suspicious_reason = reason

                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "SESSION_CREATION_FAILED",
                "Failed to create session",
                "create_session",
                e,
                user_id=str(user_id),
            )

        if evicted_tokens:
            for token in evicted_tokens:
                await self._cache_delete(token, "create_session")
            logger.info(
                f"Evicted {len(evicted_tokens)} session(s) for user {user_id} "
                f"(limit {self.config.max_sessions_per_user})"
            )

        if session.is_suspicious:
            logger.warning(
                f"Session {session.id} for user {user_id} flagged suspicious: "
                f"{session.suspicious_reason}"
            )

        await self._cache_store(session, now)

        logger.info(f"Session {session.id} created for user {user_id}")
        return Return.ok(session)

    async def validate_session(self, session_id: UUID) -> Result[AuthSession]:
        """
        Validate a session by id against the database.

        The cache is keyed by token, so an id cannot be looked up there;
        this path always reads the database and then refreshes the cache.
        """
        try:
            async with self.uow:
                now = self.clock()
                session = await self.uow.sessions.find_by_id(session_id)
                result = await self._validate_loaded(
                    session, now, {"session_id": str(session_id)}
                )
        except Exception as e:
            return self._failure(
                "SESSION_VALIDATION_ERROR",
                "Session validation failed",
                "validate_session",
                e,
                session_id=str(session_id),
            )

        if result.is_ok():
            await self._cache_store(result.value, now)
        return result

    async def validate_session_token(self, session_token: str) -> Result[AuthSession]:
        """
        Validate a session by bearer token.

        A valid cached copy replaces the token index lookup with a primary
        key read of the same row, and that row must still carry the
        presented token. The cached copy never decides validity on its own,
        so a revocation whose cache purge failed still takes effect.
        """
        try:
            now = self.clock()
            cached = await self._cache_load(session_token)
            if cached is not None and not cached.is_valid(now):
                await self._cache_delete(session_token, "validate_session_token")
                cached = None

            async with self.uow:
                if cached is not None:
                    session = await self.uow.sessions.find_by_id(cached.id)
                    if session is not None and session.session_token != session_token:
                        # Rotated away
                        session = None
                else:
                    session = await self.uow.sessions.find_by_token(session_token)
                result = await self._validate_loaded(
                    session,
                    now,
                    {"session_id": str(session.id) if session else None},
                )
        except Exception as e:
            return self._failure(
                "SESSION_VALIDATION_ERROR",
                "Session validation failed",
                "validate_session_token",
                e,
            )

        if result.is_ok():
            await self._cache_store(result.value, now)
        elif cached is not None:
            await self._cache_delete(session_token, "validate_session_token")
        return result

    async def refresh_session(self, session_id: UUID) -> Result[AuthSession]:
        """
        Extend a session that is close to expiring.

        No-op while more than refresh_threshold remains. Within the
        threshold expires_at moves to now + session_duration. Expired or
        invalidated sessions are not resurrected.
        """
        try:
            async with self.uow:
                now = self.clock()
                session = await self.uow.sessions.find_by_id(session_id)
                if session is None:
                    return await self._reject(_not_found(session_id))

                error = _lifetime_error(session, now)
                if error is not None:
                    return await self._reject(error)

                if session.expires_at - now > self.config.refresh_threshold:
                    await self.uow.commit()
                    return Return.ok(session)

                logger.info(f"Refreshing session {session_id}")
                refreshed = await self.uow.sessions.update(
                    session_id,
                    ExtendExpiryPatch(
                        expires_at=now + self.config.session_duration,
                        last_accessed_at=now,
                    ),
                )
                if refreshed is None:
                    return await self._reject(_not_found(session_id))
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "SESSION_REFRESH_ERROR",
                "Session refresh failed",
                "refresh_session",
                e,
                session_id=str(session_id),
            )

        await self._cache_store(refreshed, now)
        logger.info(f"Session {session_id} refreshed until {refreshed.expires_at}")
        return Return.ok(refreshed)

    async def rotate_session(self, session_id: UUID) -> Result[AuthSession]:
        """
        Issue a new token for the same session id.

        The old token's cache entry is removed and the old token no longer
        resolves in the database, so it is rejected on the token path.
        """
        try:
            async with self.uow:
                now = self.clock()
                session = await self.uow.sessions.find_by_id(session_id)
                if session is None:
                    return await self._reject(_not_found(session_id))

                error = _lifetime_error(session, now)
                if error is not None:
                    return await self._reject(error)

                old_token = session.session_token
                rotated = await self.uow.sessions.update(
                    session_id,
                    RotateTokenPatch(
                        session_token=self.token_generator(),
                        expires_at=now + self.config.session_duration,
                        last_accessed_at=now,
                    ),
                )
                if rotated is None:
                    return await self._reject(_not_found(session_id))
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "SESSION_ROTATION_FAILED",
                "Session rotation failed",
                "rotate_session",
                e,
                session_id=str(session_id),
            )

        await self._cache_delete(old_token, "rotate_session")
        await self._cache_store(rotated, now)
        logger.info(f"Session {session_id} rotated, expires {rotated.expires_at}")
        return Return.ok(rotated)

    async def invalidate_session(self, session_id: UUID) -> Result[None]:
        """Log out a single session. The row is kept until cleanup."""
        try:
            async with self.uow:
                session = await self.uow.sessions.find_by_id(session_id)
                if session is None:
                    return await self._reject(_not_found(session_id))
                token = session.session_token

                await self.uow.sessions.invalidate_session(session_id)
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "SESSION_INVALIDATION_ERROR",
                "Session invalidation failed",
                "invalidate_session",
                e,
                session_id=str(session_id),
            )

        await self._cache_delete(token, "invalidate_session")
        logger.info(f"Session {session_id} invalidated")
        return Return.ok(None)

    async def invalidate_all_user_sessions(self, user_id: UUID) -> Result[int]:
        """Log out every active session of a user. Returns the count."""
        try:
            async with self.uow:
                now = self.clock()
                sessions = await self.uow.sessions.find_active_sessions_by_user_id(
                    user_id, now
                )
                tokens = [s.session_token for s in sessions]

                count = await self.uow.sessions.invalidate_all_user_sessions(user_id)
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "USER_SESSION_INVALIDATION_ERROR",
                "User session invalidation failed",
                "invalidate_all_user_sessions",
                e,
                user_id=str(user_id),
            )

        for token in tokens:
            await self._cache_delete(token, "invalidate_all_user_sessions")
        logger.info(f"Invalidated {count} session(s) for user {user_id}")
        return Return.ok(count)

    async def cleanup_expired_sessions(self) -> Result[int]:
        """Delete rows whose expiry has passed. Safe to run alongside traffic."""
        logger.info("Starting expired session cleanup")
        try:
            async with self.uow:
                count = await self.uow.sessions.cleanup_expired_sessions(self.clock())
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "SESSION_CLEANUP_ERROR",
                "Session cleanup failed",
                "cleanup_expired_sessions",
                e,
            )

        logger.info(f"Expired session cleanup removed {count} session(s)")
        return Return.ok(count)

    async def mark_session_suspicious(self, session_id: UUID, reason: str) -> Result[None]:
        """Set the sticky suspicious flag and purge the cached copy"""
        logger.warning(f"Marking session {session_id} as suspicious: {reason}")
        try:
            async with self.uow:
                session = await self.uow.sessions.find_by_id(session_id)
                if session is None:
                    return await self._reject(_not_found(session_id))
                token = session.session_token

                await self.uow.sessions.mark_as_suspicious(session_id, reason)
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "MARK_SUSPICIOUS_ERROR",
                "Failed to mark session as suspicious",
                "mark_session_suspicious",
                e,
                session_id=str(session_id),
                reason=reason,
            )

        await self._cache_delete(token, "mark_session_suspicious")
        return Return.ok(None)

    async def get_user_sessions(self, user_id: UUID) -> Result[List[AuthSession]]:
        """Active, unexpired sessions of a user"""
        try:
            async with self.uow:
                sessions = await self.uow.sessions.find_active_sessions_by_user_id(
                    user_id, self.clock()
                )
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "GET_USER_SESSIONS_ERROR",
                "Failed to get user sessions",
                "get_user_sessions",
                e,
                user_id=str(user_id),
            )
        return Return.ok(sessions)

    async def get_recent_sessions(
        self, user_id: UUID, window: timedelta
    ) -> Result[List[AuthSession]]:
        """Sessions of a user created within ``window``, newest first"""
        try:
            async with self.uow:
                sessions = await self.uow.sessions.find_user_sessions_since(
                    user_id, self.clock() - window
                )
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "GET_RECENT_SESSIONS_FAILED",
                "Failed to get recent sessions",
                "get_recent_sessions",
                e,
                user_id=str(user_id),
                window_seconds=int(window.total_seconds()),
            )
        return Return.ok(sessions)

    async def get_session_stats(self) -> Result[SessionStats]:
        try:
            async with self.uow:
                stats = await self.uow.sessions.get_session_stats(self.clock())
                await self.uow.commit()
        except Exception as e:
            return self._failure(
                "SESSION_STATS_ERROR",
                "Failed to get session statistics",
                "get_session_stats",
                e,
            )
        return Return.ok(stats)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _select_evictions(self, active_sessions: List[AuthSession]) -> List[AuthSession]:
        """Least recently accessed sessions, just enough to fit one more"""
        limit = self.config.max_sessions_per_user
        if len(active_sessions) < limit:
            return []
        oldest_first = sorted(active_sessions, key=lambda s: s.last_accessed_at)
        return oldest_first[: len(active_sessions) - limit + 1]

    async def _validate_loaded(
        self, session: Optional[AuthSession], now: datetime, context: dict
    ) -> Result[AuthSession]:
        """Apply the validity predicate to a row loaded inside the unit of work"""
        if session is None:
            return await self._reject(Error("SESSION_NOT_FOUND", "Session not found", context))

        error = _validity_error(session, now)
        if error is not None:
            return await self._reject(error)

        await self._touch(session, now)
        await self.uow.commit()
        return Return.ok(session)

    async def _touch(self, session: AuthSession, now: datetime) -> bool:
        """Throttled last_accessed_at update. Returns True if written."""
        if now - session.last_accessed_at < self.config.access_update_interval:
            return False
        await self.uow.sessions.update_last_accessed(session.id, now)
        session.last_accessed_at = now
        return True

    async def _cache_store(self, session: AuthSession, now: datetime) -> None:
        """Only valid sessions are cached; anything else is purged"""
        if not session.is_valid(now):
            await self._cache_delete(session.session_token, "cache_store")
            return
        try:
            outcome = await self.cache.set(
                session_cache_key(session.session_token),
                serialize_session(session),
                self.config.cache_ttl_seconds,
            )
        except Exception as e:
            outcome = Return.err(Error("CACHE_ERROR", str(e)))
        self._acknowledge(outcome, "set", session.id)

    async def _cache_load(self, session_token: str) -> Optional[AuthSession]:
        try:
            outcome = await self.cache.get(session_cache_key(session_token))
        except Exception as e:
            outcome = Return.err(Error("CACHE_ERROR", str(e)))
        self._acknowledge(outcome, "get", None)
        if outcome.is_err() or outcome.value is None:
            return None

        try:
            return deserialize_session(outcome.value)
        except ValueError as e:
            logger.warning(f"Discarding unreadable cached session: {e}")
            await self._cache_delete(session_token, "cache_load")
            return None

    async def _cache_delete(self, session_token: str, operation: str) -> None:
        try:
            outcome = await self.cache.delete(session_cache_key(session_token))
        except Exception as e:
            outcome = Return.err(Error("CACHE_ERROR", str(e)))
        self._acknowledge(outcome, f"delete ({operation})", None)

    def _acknowledge(self, outcome: Result, action: str, session_id: Optional[UUID]) -> None:
        """Cache failures are downgraded to warnings and dropped here"""
        if outcome.is_err():
            target = f" for session {session_id}" if session_id else ""
            logger.warning(f"Cache {action} failed{target}: {outcome.error.code}")

    async def _reject(self, error: Error) -> Result:
        """
        End a read-only unit of work with an error result.

        Commits instead of letting the unit of work roll back: a rollback
        expires every loaded row, and expired rows cannot be lazily
        reloaded on an async session.
        """
        await self.uow.commit()
        return Return.err(error)

    def _failure(
        self, code: str, message: str, operation: str, exc: Exception, **ids
    ) -> Result:
        details = {"operation": operation, **ids}
        logger.error(f"{message} ({operation}, {ids}): {exc}", exc_info=exc)
        return Return.err(Error(code, message, details))


def _not_found(session_id: UUID) -> Error:
    return Error("SESSION_NOT_FOUND", "Session not found", {"session_id": str(session_id)})


def _validity_error(session: AuthSession, now: datetime) -> Optional[Error]:
    state = session.state(now)
    context = {"session_id": str(session.id)}
    if state == SessionState.invalidated:
        return Error("SESSION_INVALIDATED", "Session has been invalidated", context)
    if state == SessionState.suspicious:
        return Error("SESSION_SUSPICIOUS", "Session has been flagged as suspicious", context)
    if state == SessionState.expired:
        return Error(
            "SESSION_EXPIRED",
            "Session has expired",
            {**context, "expires_at": session.expires_at.isoformat()},
        )
    return None


def _lifetime_error(session: AuthSession, now: datetime) -> Optional[Error]:
    """Refresh and rotation skip the suspicious check; the flag carries over"""
    if not session.is_active:
        return _validity_error(session, now)
    if now >= session.expires_at:
        return Error(
            "SESSION_EXPIRED",
            "Session has expired",
            {"session_id": str(session.id), "expires_at": session.expires_at.isoformat()},
        )
    return None
