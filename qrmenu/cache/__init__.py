"""
QR Menu Cache System
Read-through cache for the public menu page and the AI chat context

This module provides:
- MenuCacheService: cache-aside reads and targeted invalidation
- MenuCacheLoader: loads aggregates from the primary store
- MenuRedisClient: fault-tolerant Redis adapter
- RedisConfig / CacheConfig: configuration

Why a cache:
- The public menu page is the hottest endpoint and renders the whole
  menu tree (categories, dishes, allergens, ingredients)
- The AI chat needs the same tree on every message
"""

from qrmenu.cache.menu_cache import (
    MenuCacheService,
    CacheConfig,
    CacheKey,
    CacheNamespace,
    serialize,
    deserialize,
)
from qrmenu.cache.loader import MenuCacheLoader
from qrmenu.cache.redis_client import MenuRedisClient, RedisConfig

__all__ = [
    "MenuCacheService",
    "CacheConfig",
    "CacheKey",
    "CacheNamespace",
    "serialize",
    "deserialize",
    "MenuCacheLoader",
    "MenuRedisClient",
    "RedisConfig",
]
