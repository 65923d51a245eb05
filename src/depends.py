from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.services.memory_cache import InMemoryCache
from src.adapter.services.redis_cache import RedisCache
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError, ServerError
from src.app.services.cache import ICache
from src.app.services.session_config import SessionConfig
from src.app.use_cases.sessions import SessionService
from src.domain.entities import AuthSession

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)

# Validation failures that mean "not logged in" rather than a server fault
UNAUTHENTICATED_CODES = {
    "SESSION_NOT_FOUND",
    "SESSION_EXPIRED",
    "SESSION_INVALIDATED",
    "SESSION_SUSPICIOUS",
}


@lru_cache
def get_cache() -> ICache:
    if ApplicationConfig.CACHE_BACKEND == "memory":
        return InMemoryCache()
    return RedisCache.from_url(ApplicationConfig.REDIS_URL)


@lru_cache
def get_session_config() -> SessionConfig:
    return SessionConfig.from_application_config(ApplicationConfig)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_session_service(
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
    cache: ICache = Depends(get_cache),
    config: SessionConfig = Depends(get_session_config),
) -> SessionService:
    return SessionService(uow, cache, config)


@asynccontextmanager
async def session_service_scope() -> AsyncIterator[SessionService]:
    """SessionService with its own database session, for background jobs"""
    async with AsyncSessionLocal() as session:
        yield SessionService(SqlAlchemyUnitOfWork(session), get_cache(), get_session_config())


def extract_session_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer header first, then the session cookie"""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ApplicationConfig.SESSION_COOKIE_NAME)


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: SessionService = Depends(get_session_service),
) -> AuthSession:
    """
    Dependency that resolves the caller's session from its token.

    Raises:
        ClientError: 401 if the token is missing or the session is not valid
        ServerError: 500 on any other validation failure
    """
    token = extract_session_token(request, credentials)
    if not token:
        raise ClientError(
            Error("UNAUTHENTICATED", "Session token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    result = await service.validate_session_token(token)
    if result.is_err():
        error = result.error
        if error.code in UNAUTHENTICATED_CODES:
            raise ClientError(
                Error(error.code, "Invalid or expired session"),
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
        raise ServerError(error)

    return result.value
