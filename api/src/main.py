"""Comment Moderation API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.comments.models import (
    CLOSED_COMMENTS_COLUMNS,
    COMMENT_COLUMNS,
    ClosedComments,
    Comment,
)
from src.comments.router import router as comments_router
from src.comments.service import CommentService
from src.comments.validators import build_comment_validator
from src.config import Settings, get_settings
from src.content.models import CONTENT_ITEM_COLUMNS, ContentItem
from src.content.service import ContentManager
from src.core.context import get_request_id
from src.core.database import (
    CassandraRepository,
    init_async_cassandra,
    shutdown_async_cassandra,
)
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware
from src.core.redis import init_redis, shutdown_redis
from src.core.repository import InMemoryRepository, Repository
from src.health import router as health_router


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings)

logger = get_logger(__name__)


class AppState:
    """Application state container."""

    cassandra_session: Any = None
    content_repository: Repository[ContentItem] | None = None
    comment_service: CommentService | None = None


app_state = AppState()


async def build_repositories(
    settings: Settings,
) -> tuple[Repository[Comment], Repository[ClosedComments], Repository[ContentItem]]:
    """Create the repositories for the configured storage backend."""
    if not settings.uses_cassandra:
        return (
            InMemoryRepository("comments"),
            InMemoryRepository("closed_comments"),
            InMemoryRepository("content_items"),
        )

    session = await init_async_cassandra()
    app_state.cassandra_session = session
    keyspace = settings.cassandra_keyspace
    return (
        CassandraRepository(session, keyspace, Comment, COMMENT_COLUMNS),
        CassandraRepository(session, keyspace, ClosedComments, CLOSED_COMMENTS_COLUMNS),
        CassandraRepository(session, keyspace, ContentItem, CONTENT_ITEM_COLUMNS),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        storage_backend=settings.storage_backend,
    )

    # Redis is optional - without it the duplicate comment check is skipped
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without Redis - duplicate comment check disabled",
            )

    try:
        comments, closed_comments, content_items = await build_repositories(settings)
        app_state.content_repository = content_items
        app.state.content_repository = content_items

        app_state.comment_service = CommentService(
            comments=comments,
            closed_comments=closed_comments,
            validator=build_comment_validator(settings, redis_client),
            content=ContentManager(
                content_items,
                display_url_template=settings.content_display_url_template,
                edit_url_template=settings.content_edit_url_template,
            ),
        )
        # Also set on app.state for dependency injection via request.app.state
        app.state.comment_service = app_state.comment_service
        logger.info(
            "comment_service_initialized",
            storage_backend=settings.storage_backend,
            duplicate_check=redis_client is not None,
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    app_state.comment_service = None
    app.state.comment_service = None
    await shutdown_redis()
    if settings.uses_cassandra:
        await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Never let Starlette render stack traces; handlers below log details
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Comment moderation API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": _get_request_id_safe(request),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with field-level details."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": _get_request_id_safe(request),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler; details go to the log, never to the client."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": _get_request_id_safe(request),
            },
        )

    app.include_router(health_router)
    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Comment Moderation API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
