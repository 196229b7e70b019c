import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.health import router as health_router
from .api.v1.orders import router as orders_router
from .core.events import close_events, init_events
from .core.exceptions import ConfigurationError, RepositoryConnectionError
from .core.setting import get_settings
from .middleware.error import setup_order_error_handling
from .repository.factory import init_order_service
from .utils.logging import setup_order_logging as setup_logging

settings = get_settings()

environment = settings.ENVIRONMENT.lower()
enable_file_logging = environment in ["production", "staging"]

logger = setup_logging(
    "order_service",
    log_level=settings.LOG_LEVEL,
    enable_file_logging=enable_file_logging,
)


# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_start = time.time()

    logger.info(
        "Starting order service initialization",
        extra={
            "environment": environment,
            "debug_mode": settings.DEBUG,
            "file_logging_enabled": enable_file_logging,
            "service_version": settings.APP_VERSION,
        },
    )

    # Database initialization; there is no degraded mode without a store
    db_start = time.time()
    try:
        app.state.order_service = await init_order_service(settings)
    except (ConfigurationError, RepositoryConnectionError) as e:
        logger.error(
            "Failed to initialize database",
            extra={
                "error_type": type(e).__name__,
                "error": str(e),
                "startup_duration_ms": int((time.time() - startup_start) * 1000),
            },
        )
        raise
    db_duration = int((time.time() - db_start) * 1000)
    logger.info(
        "Database initialization completed", extra={"duration_ms": db_duration}
    )

    # Order queue initialization
    queue_start = time.time()
    await init_events()
    queue_duration = int((time.time() - queue_start) * 1000)
    logger.info(
        "Order queue initialization completed", extra={"duration_ms": queue_duration}
    )

    logger.info(
        "Order service started successfully",
        extra={
            "total_startup_duration_ms": int((time.time() - startup_start) * 1000),
            "database_init_ms": db_duration,
            "queue_init_ms": queue_duration,
        },
    )

    yield

    shutdown_start = time.time()
    logger.info("Starting order service shutdown")
    try:
        await close_events()
    finally:
        await app.state.order_service.close()
        app.state.order_service = None

    logger.info(
        "Order service shutdown completed",
        extra={"shutdown_duration_ms": int((time.time() - shutdown_start) * 1000)},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION or "0.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )

    logger.info(
        "CORS middleware configured",
        extra={
            "allowed_origins": len(settings.CORS_ORIGINS),
            "credentials_allowed": settings.CORS_CREDENTIALS,
        },
    )

    setup_order_error_handling(app)

    routers_info: list[dict[str, Any]] = []

    app.include_router(health_router, tags=["Health"])
    routers_info.append({"router": "health", "prefix": "", "tags": ["Health"]})

    app.include_router(orders_router, tags=["Order Management"])
    routers_info.append(
        {"router": "orders", "prefix": "/order", "tags": ["Order Management"]}
    )

    logger.info(
        "API routes configured",
        extra={"total_routers": len(routers_info), "routers": routers_info},
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(  # type: ignore
        "order_service.app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )
