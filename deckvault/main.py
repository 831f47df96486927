import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from deckvault.api import decks_router, health_router
from deckvault.api.errors import error_response, register_exception_handlers
from deckvault.config import Settings, settings
from deckvault.db.database import Database
from deckvault.models.failure import InternalError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the application; the database is opened by the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        configure_logging(app_settings.log_level)
        database = Database(app_settings.database_url, echo=app_settings.debug)
        await database.connect()
        app.state.database = database
        try:
            yield
        finally:
            await database.close()

    app = FastAPI(
        title=app_settings.app_name,
        version=pkg_version("deckvault"),
        lifespan=lifespan,
    )

    app.include_router(decks_router)
    app.include_router(health_router)

    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Anything no exception handler claimed; never leak it to the client
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = error_response(InternalError())
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    return app


app = create_app()
