from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code} {exc.base_error.details}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def create_app(ApplicationConfig) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        job = None
        if ApplicationConfig.SESSION_CLEANUP_ENABLED:
            from src.app.jobs import SessionCleanupJob
            from src.depends import session_service_scope

            job = SessionCleanupJob(
                session_service_scope, ApplicationConfig.SESSION_CLEANUP_INTERVAL_SECONDS
            )
            await job.start()
        app.state.session_cleanup_job = job
        yield
        if job is not None:
            await job.stop()

        from src.adapter.services.redis_cache import RedisCache
        from src.depends import get_cache

        cache = get_cache()
        if isinstance(cache, RedisCache):
            await cache.close()

    app = FastAPI(title="Session Service", version="0.1.0", lifespan=lifespan)
    app.state.session_cleanup_job = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import admin, auth_session, health_check, sessions

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth_session.router, tags=["Authentication"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
