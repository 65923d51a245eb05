"""
Session Cleanup Job

Runs the expired-session sweep on a fixed interval inside the API process.
Each cycle uses its own SessionService (and so its own database session).
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import AsyncContextManager, Callable, Optional

from pydantic import BaseModel

from libs.result import Error, Result, Return
from src.app.use_cases.sessions import SessionService
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    stopped = "stopped"
    running = "running"
    error = "error"


class JobHealth(BaseModel):
    status: JobStatus
    started_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None
    last_error: Optional[str] = None
    run_count: int = 0
    error_count: int = 0
    total_cleaned: int = 0


class SessionCleanupJob:
    def __init__(
        self,
        service_factory: Callable[[], AsyncContextManager[SessionService]],
        interval_seconds: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.service_factory = service_factory
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._task: Optional[asyncio.Task] = None
        self._health = JobHealth(status=JobStatus.stopped)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            logger.warning("Session cleanup job is already running")
            return

        logger.info(f"Starting session cleanup job (every {self.interval_seconds}s)")
        self._health.status = JobStatus.running
        self._health.started_at = self.clock()
        self._task = asyncio.create_task(self._run_forever())

    async def stop(self) -> None:
        if not self.is_running:
            logger.warning("Session cleanup job is not running")
            self._health.status = JobStatus.stopped
            return

        logger.info("Stopping session cleanup job")
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self._health.status = JobStatus.stopped

    async def run_once(self) -> Result[int]:
        """Execute a single cleanup cycle and record its outcome"""
        self._health.last_run_at = self.clock()
        self._health.run_count += 1

        try:
            async with self.service_factory() as service:
                result = await service.cleanup_expired_sessions()
        except Exception as e:
            logger.error(f"Session cleanup cycle could not run: {e}", exc_info=e)
            result = Return.err(Error("SESSION_CLEANUP_ERROR", str(e)))

        if result.is_err():
            self._health.error_count += 1
            self._health.last_error_at = self.clock()
            self._health.last_error = result.error.code
            if self.is_running:
                self._health.status = JobStatus.error
        else:
            self._health.last_success_at = self.clock()
            self._health.last_error = None
            self._health.total_cleaned += result.value
            if self.is_running:
                self._health.status = JobStatus.running

        return result

    def health(self) -> JobHealth:
        return self._health.model_copy()

    async def _run_forever(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
