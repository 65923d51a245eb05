import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.memory_cache import InMemoryCache
from tests.fixtures.clock import FakeClock


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.sessions = MagicMock()
    uow.sessions.find_by_id = AsyncMock(return_value=None)
    uow.sessions.find_by_token = AsyncMock(return_value=None)
    uow.sessions.find_active_sessions_by_user_id = AsyncMock(return_value=[])
    uow.sessions.find_user_sessions_since = AsyncMock(return_value=[])
    uow.sessions.create = AsyncMock(side_effect=lambda session: session)
    uow.sessions.update = AsyncMock()
    uow.sessions.invalidate_session = AsyncMock(return_value=True)
    uow.sessions.invalidate_all_user_sessions = AsyncMock(return_value=0)
    uow.sessions.mark_as_suspicious = AsyncMock(return_value=True)
    uow.sessions.update_last_accessed = AsyncMock()
    uow.sessions.cleanup_expired_sessions = AsyncMock(return_value=0)
    uow.sessions.get_session_stats = AsyncMock()
    return uow


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache():
    return InMemoryCache()
