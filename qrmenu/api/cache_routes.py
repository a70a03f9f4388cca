"""
Cache and Health Routes
Menu cache maintenance, statistics and service health
"""

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from loguru import logger

from qrmenu import __version__
from qrmenu.api.auth_routes import require_auth
from qrmenu.api.dependencies import get_menu_cache, get_redis_client, get_startup_time
from qrmenu.api.models import CacheInvalidateRequest
from qrmenu.cache.menu_cache import MenuCacheService
from qrmenu.cache.redis_client import MenuRedisClient
from qrmenu.database.connection import DatabaseManager
from qrmenu.database.repository import RestaurantRepository


class HealthResponse(BaseModel):
    status: str
    version: str
    database: bool
    cache: str
    uptime_seconds: float


def create_cache_router() -> APIRouter:
    """Create cache admin and health router."""

    router = APIRouter(prefix="/api", tags=["Cache"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check(redis_client: Optional[MenuRedisClient] = Depends(get_redis_client)):
        """
        Health check endpoint.

        The service stays "healthy" while the cache is down; only the
        primary store is required.
        """
        database_ok = DatabaseManager.get_instance().ping()

        if redis_client is None or not redis_client.config.enabled:
            cache_state = "disabled"
        elif await redis_client.ping():
            cache_state = "connected"
        else:
            cache_state = "unreachable"

        startup = get_startup_time()
        return HealthResponse(
            status="healthy" if database_ok else "unhealthy",
            version=__version__,
            database=database_ok,
            cache=cache_state,
            uptime_seconds=time.time() - startup if startup else 0.0,
        )

    @router.get("/cache/stats")
    async def get_cache_stats(
        owner: dict = Depends(require_auth),
        cache: MenuCacheService = Depends(get_menu_cache),
    ) -> Dict[str, Any]:
        return {"status": "ok", "cache": cache.get_stats()}

    @router.post("/cache/invalidate")
    async def invalidate_cache(
        request: CacheInvalidateRequest,
        owner: dict = Depends(require_auth),
        cache: MenuCacheService = Depends(get_menu_cache),
    ):
        """Drop a menu entry, or a restaurant entry together with all of its menus."""
        if not request.restaurant_id and not request.menu_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="restaurant_id or menu_id is required",
            )

        invalidated = []
        if request.menu_id:
            await cache.invalidate_menu_cache(request.menu_id)
            invalidated.append(f"menu:{request.menu_id}")

        if request.restaurant_id:
            with DatabaseManager.get_instance().session_scope() as db:
                menu_ids = RestaurantRepository(db).menu_ids(request.restaurant_id)
            await cache.invalidate_all_restaurant_caches(request.restaurant_id, menu_ids)
            invalidated.append(f"restaurant:{request.restaurant_id}")
            invalidated.extend(f"menu:{menu_id}" for menu_id in menu_ids)

        logger.info(f"Cache invalidated by owner {owner['id']}: {invalidated}")
        return {"status": "ok", "invalidated": invalidated}

    @router.post("/cache/clear")
    async def clear_cache(
        owner: dict = Depends(require_auth),
        cache: MenuCacheService = Depends(get_menu_cache),
    ):
        deleted = await cache.clear_all()
        logger.warning(f"Menu cache cleared by owner {owner['id']} ({deleted} entries)")
        return {"status": "ok", "deleted": deleted}

    return router
