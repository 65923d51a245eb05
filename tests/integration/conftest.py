import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain.entities  # noqa: F401  registers the tables on SQLModel.metadata
from src.adapter.services.memory_cache import InMemoryCache
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.session_config import SessionConfig
from src.app.use_cases.sessions import SessionService
from src.depends import get_session_service
from tests.fixtures.clock import FakeClock


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
def cache():
    return InMemoryCache()


@pytest_asyncio.fixture
def session_service(db_session, cache, clock):
    return SessionService(SqlAlchemyUnitOfWork(db_session), cache, SessionConfig(), clock=clock)


@pytest_asyncio.fixture
async def client(session_service):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    def override_get_session_service():
        return session_service

    app.dependency_overrides[get_session_service] = override_get_session_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
