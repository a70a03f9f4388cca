"""
FastAPI Web Application for QR Menu
Wires configuration, database, menu cache and services into the REST API

Startup order:
1. Database (SQLite through SQLAlchemy)
2. Redis client (optional; the menu cache runs pass-through without it)
3. Menu cache, catalog/order services and the AI assistant
"""

import sys

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from qrmenu import __version__
from qrmenu.api.admin_routes import create_admin_router
from qrmenu.api.auth_routes import create_auth_router
from qrmenu.api.cache_routes import create_cache_router
from qrmenu.api.catalog_routes import create_catalog_router
from qrmenu.api.chat_routes import create_chat_router
from qrmenu.api.content_routes import create_content_router
from qrmenu.api.dependencies import cleanup_dependencies, init_dependencies
from qrmenu.api.order_routes import create_order_router
from qrmenu.api.public_routes import create_public_router
from qrmenu.cache import (
    CacheConfig,
    MenuCacheLoader,
    MenuCacheService,
    MenuRedisClient,
    RedisConfig,
)
from qrmenu.config.config_loader import ConfigLoader
from qrmenu.database.connection import DatabaseManager
from qrmenu.services.catalog_service import CatalogService
from qrmenu.services.chat_service import MenuAssistant
from qrmenu.services.content_service import ContentService
from qrmenu.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from qrmenu.services.order_service import OrderService


def configure_logging(level: str) -> None:
    """Send loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _register_error_handlers(app: FastAPI) -> None:
    """Map service-layer errors to HTTP responses."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


# Create FastAPI app
def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    config = ConfigLoader().config
    configure_logging(config.system.log_level)

    app = FastAPI(
        title=config.system.name,
        description="Digital restaurant menus reached through QR codes",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    _redis_client = None

    @app.on_event("startup")
    async def startup_event():
        """Initialize dependencies on startup."""
        nonlocal _redis_client

        db_manager = DatabaseManager.from_config(config.database)

        redis_config = RedisConfig.from_dict(config.redis.model_dump())
        if redis_config.enabled:
            _redis_client = MenuRedisClient(redis_config)
            if await _redis_client.connect():
                logger.info(
                    f"Menu cache backed by Redis at {redis_config.host}:{redis_config.port} "
                    f"(db={redis_config.db})"
                )
            else:
                # Keep the client: the health check loop reconnects it later
                logger.warning("Redis unreachable at startup, menu cache serves from the database")
        else:
            logger.info("Redis disabled in configuration, menu cache is pass-through")

        menu_cache = MenuCacheService(
            store=_redis_client,
            loader=MenuCacheLoader(db_manager),
            config=CacheConfig.from_dict(config.menu_cache.model_dump()),
        )

        init_dependencies(
            menu_cache=menu_cache,
            redis_client=_redis_client,
            catalog_service=CatalogService(menu_cache, db_manager),
            order_service=OrderService(db_manager),
            assistant=MenuAssistant(config.ai),
            content_service=ContentService(db_manager),
        )

        logger.info(f"{config.system.name} v{__version__} started")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        await cleanup_dependencies()
        logger.info(f"{config.system.name} stopped")

    app.include_router(create_auth_router())
    app.include_router(create_admin_router())
    app.include_router(create_catalog_router())
    app.include_router(create_public_router())
    app.include_router(create_chat_router())
    app.include_router(create_content_router())
    app.include_router(create_order_router())
    app.include_router(create_cache_router())

    return app


# Run server
def run_server():
    """Run the web server."""
    import uvicorn

    config = ConfigLoader().config

    uvicorn.run(
        "qrmenu.web.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run_server()
