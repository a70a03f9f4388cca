"""
API Dependencies
FastAPI dependency injection for the QR Menu API

Instances are created by the web application on startup. Each getter falls
back to a lazily built default so routers also work when mounted without
the startup hook (e.g. in tests).
"""

import time
from typing import Optional

from fastapi import Depends
from loguru import logger

from qrmenu.cache.loader import MenuCacheLoader
from qrmenu.cache.menu_cache import MenuCacheService
from qrmenu.cache.redis_client import MenuRedisClient
from qrmenu.services.analysis_service import DishAnalysisService
from qrmenu.services.catalog_service import CatalogService
from qrmenu.services.chat_service import ChatContextBuilder, MenuAssistant
from qrmenu.services.content_service import ContentService
from qrmenu.services.order_service import OrderService

# Global instances (initialized on startup)
_menu_cache: Optional[MenuCacheService] = None
_redis_client: Optional[MenuRedisClient] = None
_catalog_service: Optional[CatalogService] = None
_order_service: Optional[OrderService] = None
_content_service: Optional[ContentService] = None
_assistant: Optional[MenuAssistant] = None
_startup_time: float = 0


def init_dependencies(
    menu_cache: Optional[MenuCacheService] = None,
    redis_client: Optional[MenuRedisClient] = None,
    catalog_service: Optional[CatalogService] = None,
    order_service: Optional[OrderService] = None,
    assistant: Optional[MenuAssistant] = None,
    content_service: Optional[ContentService] = None,
) -> None:
    """
    Initialize global dependencies.

    Called during application startup.
    """
    global _menu_cache, _redis_client, _catalog_service, _order_service, _assistant
    global _content_service, _startup_time

    _menu_cache = menu_cache
    _redis_client = redis_client
    _catalog_service = catalog_service
    _order_service = order_service
    _assistant = assistant
    _content_service = content_service
    _startup_time = time.time()

    logger.info(
        f"API dependencies initialized "
        f"(redis={'yes' if redis_client is not None and redis_client.is_available else 'no'}, "
        f"ai={'yes' if assistant is not None and assistant.is_available else 'no'})"
    )


def get_menu_cache() -> MenuCacheService:
    """
    Get the menu cache service.

    Without a configured store the cache runs in pass-through mode.
    """
    global _menu_cache
    if _menu_cache is None:
        _menu_cache = MenuCacheService(store=None, loader=MenuCacheLoader())
        logger.warning("Menu cache not configured, reading from the primary store only")
    return _menu_cache


def get_redis_client() -> Optional[MenuRedisClient]:
    return _redis_client


def get_catalog_service() -> CatalogService:
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService(get_menu_cache())
    return _catalog_service


def get_order_service() -> OrderService:
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service


def get_content_service() -> ContentService:
    global _content_service
    if _content_service is None:
        _content_service = ContentService()
    return _content_service


def get_assistant() -> MenuAssistant:
    global _assistant
    if _assistant is None:
        from qrmenu.config.config_loader import ConfigLoader

        _assistant = MenuAssistant(ConfigLoader().config.ai)
    return _assistant


def get_context_builder(cache: MenuCacheService = Depends(get_menu_cache)) -> ChatContextBuilder:
    return ChatContextBuilder(cache)


def get_analysis_service(
    assistant: MenuAssistant = Depends(get_assistant),
    catalog: CatalogService = Depends(get_catalog_service),
    cache: MenuCacheService = Depends(get_menu_cache),
) -> DishAnalysisService:
    """Analysis results share the menu cache's key-value store."""
    return DishAnalysisService(assistant, catalog, store=cache.store)


def get_startup_time() -> float:
    """Get application startup time."""
    return _startup_time


async def cleanup_dependencies() -> None:
    """
    Cleanup dependencies on shutdown.

    Called during application shutdown.
    """
    global _menu_cache, _redis_client, _catalog_service, _order_service, _assistant
    global _content_service

    if _redis_client is not None:
        try:
            await _redis_client.close()
        except Exception as e:
            logger.error(f"Error closing Redis client: {e}")

    _menu_cache = None
    _redis_client = None
    _catalog_service = None
    _order_service = None
    _assistant = None
    _content_service = None

    logger.info("API dependencies cleaned up")
