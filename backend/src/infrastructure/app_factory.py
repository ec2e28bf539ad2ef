from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Dict, List, Optional

import anyio
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from ..modules.common.utils.error_handler import register_exception_handlers
from .config.settings import EnvironmentOption, Settings, get_settings
from .database.session import create_tables
from .logging import (
    configure_logging,
    generate_correlation_id,
    get_logger,
    reset_correlation_id,
    set_correlation_id,
)

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


async def set_threadpool_tokens(number_of_tokens: int = 100) -> None:
    """Configure the number of threadpool tokens for anyio."""
    limiter = anyio.to_thread.current_default_thread_limiter()
    limiter.total_tokens = number_of_tokens


def lifespan_factory(
    settings: Settings,
    create_tables_on_startup: bool = True,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Factory to create a lifespan async context manager for a FastAPI app.

    Args:
        settings: Application settings
        create_tables_on_startup: Whether to create database tables on startup

    Returns:
        An async context manager for FastAPI's lifespan
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await set_threadpool_tokens()

        if create_tables_on_startup:
            await create_tables()
            logger.info("Database tables ready", extra={"backend": settings.DATABASE_BACKEND.value})

        yield

    return lifespan


def add_correlation_id_middleware(application: FastAPI) -> None:
    """Tag every log record of a request with its correlation id and echo it back."""

    @application.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response


def create_application(
    router: APIRouter,
    settings: Optional[Settings] = None,
    lifespan: Optional[Callable[[FastAPI], AbstractAsyncContextManager[None]]] = None,
    create_tables_on_startup: Optional[bool] = None,
    enable_cors: Optional[bool] = None,
    cors_origins: Optional[List[str]] = None,
    enable_gzip: Optional[bool] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    version: Optional[str] = None,
    **kwargs: Any,
) -> FastAPI:
    """Creates and configures a FastAPI application based on the provided settings.

    Logging is configured, domain errors get JSON handlers, and the CORS and
    GZip middlewares are added when enabled. Explicit arguments win over the
    matching settings.

    Args:
        router: The APIRouter containing the routes for the application
        settings: Application settings (uses get_settings() if None)
        lifespan: Optional lifespan; defaults to lifespan_factory(settings)
        create_tables_on_startup: Defaults to settings.CREATE_TABLES_ON_STARTUP
        enable_cors: Defaults to settings.CORS_ENABLED
        cors_origins: Defaults to settings.CORS_ORIGINS_LIST
        enable_gzip: Defaults to settings.GZIP_ENABLED
        title: Defaults to settings.APP_NAME
        description: Defaults to settings.APP_DESCRIPTION
        version: Defaults to settings.VERSION
        **kwargs: Additional keyword arguments passed to FastAPI constructor

    Returns:
        A configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    configure_logging()

    _create_tables_on_startup = (
        settings.CREATE_TABLES_ON_STARTUP if create_tables_on_startup is None else create_tables_on_startup
    )
    _enable_cors = settings.CORS_ENABLED if enable_cors is None else enable_cors
    _cors_origins = settings.CORS_ORIGINS_LIST if cors_origins is None else cors_origins
    _enable_gzip = settings.GZIP_ENABLED if enable_gzip is None else enable_gzip

    metadata: Dict[str, Any] = {
        "title": title or settings.APP_NAME,
        "description": description or settings.APP_DESCRIPTION,
        "version": version or settings.VERSION,
    }
    kwargs.update(metadata)

    hide_docs = settings.ENVIRONMENT == EnvironmentOption.PRODUCTION and not settings.ENABLE_DOCS_IN_PRODUCTION
    if hide_docs:
        kwargs.update({"docs_url": None, "redoc_url": None, "openapi_url": None})

    if lifespan is None:
        lifespan = lifespan_factory(settings, create_tables_on_startup=_create_tables_on_startup)

    application = FastAPI(lifespan=lifespan, **kwargs)

    application.include_router(router)
    register_exception_handlers(application)

    if _enable_cors:
        methods = settings.CORS_ALLOW_METHODS
        headers = settings.CORS_ALLOW_HEADERS
        application.add_middleware(
            CORSMiddleware,
            allow_origins=_cors_origins,
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
            allow_methods=methods.split(",") if isinstance(methods, str) else methods,
            allow_headers=headers.split(",") if isinstance(headers, str) else headers,
        )

    if settings.LOG_CORRELATION_ID:
        add_correlation_id_middleware(application)

    if _enable_gzip:
        application.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)

    return application
