"""
Menu Cache Service
Read-through cache for Restaurant and Menu aggregates

Policy: cache-aside
- Reads check the key-value store first; on a miss, an unreadable payload or
  a store fault, the aggregate is loaded from the primary store, written back
  with a TTL (best-effort) and returned.
- Writes go straight to the primary store; the write path then deletes the
  cache entries of every aggregate that embeds the changed row
  (see qrmenu.services.catalog_service).

Key Format: {namespace}:{entity_id}  (namespace = "restaurant" | "menu")

Fault isolation:
- Store faults (connection, timeout, corrupt payload) never escape this
  module. Reads degrade to "load from the primary store", writes and
  invalidations degrade to no-ops. Both are logged and counted.
- Loader (primary store) faults propagate: there is no other source of truth.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Protocol

from loguru import logger


class CacheNamespace(str, Enum):
    """Aggregate types held in the cache."""
    RESTAURANT = "restaurant"
    MENU = "menu"


@dataclass(frozen=True)
class CacheKey:
    """Identifies one cached aggregate."""
    namespace: CacheNamespace
    entity_id: str

    def __post_init__(self):
        # Surrounding whitespace is not part of an id: " M1" and "M1" share one key
        object.__setattr__(self, "entity_id", (self.entity_id or "").strip())

    def __str__(self) -> str:
        return f"{self.namespace.value}:{self.entity_id}"

    @classmethod
    def restaurant(cls, restaurant_id: str) -> "CacheKey":
        return cls(CacheNamespace.RESTAURANT, restaurant_id)

    @classmethod
    def menu(cls, menu_id: str) -> "CacheKey":
        return cls(CacheNamespace.MENU, menu_id)


class KeyValueStore(Protocol):
    """Narrow store interface the cache depends on."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> Any: ...

    # False means the delete did not reach the store
    async def delete(self, key: str) -> Any: ...


class AggregateLoader(Protocol):
    """Primary-store interface (see qrmenu.cache.loader.MenuCacheLoader)."""

    async def load_restaurant(self, restaurant_id: str) -> Optional[Dict[str, Any]]: ...

    async def load_menu(self, menu_id: str) -> Optional[Dict[str, Any]]: ...


@dataclass
class CacheConfig:
    """Configuration for the menu cache."""
    enabled: bool = True
    menu_ttl_seconds: int = 3600
    restaurant_ttl_seconds: int = 86400

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        """Create config from dictionary"""
        return cls(
            enabled=data.get('enabled', True),
            menu_ttl_seconds=data.get('menu_ttl_seconds', 3600),
            restaurant_ttl_seconds=data.get('restaurant_ttl_seconds', 86400),
        )

    def ttl_for(self, namespace: CacheNamespace) -> int:
        if namespace is CacheNamespace.MENU:
            return self.menu_ttl_seconds
        return self.restaurant_ttl_seconds


def serialize(value: Dict[str, Any]) -> str:
    """Canonical JSON: identical aggregates give identical bytes."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def deserialize(payload: str) -> Dict[str, Any]:
    value = json.loads(payload)
    if not isinstance(value, dict):
        raise ValueError(f"cached payload is a {type(value).__name__}, expected an object")
    return value


class MenuCacheService:
    """
    Read-through cache in front of the restaurant/menu data.

    Example:
        store = MenuRedisClient(RedisConfig(enabled=True))
        await store.connect()
        cache = MenuCacheService(store, MenuCacheLoader(db_manager))

        menu = await cache.get_menu_with_cache("menu_123")

        # after any write that touches menu_123
        await cache.invalidate_menu_cache("menu_123")
        await cache.invalidate_restaurant_cache(menu["restaurant_id"])
    """

    def __init__(
        self,
        store: Optional[KeyValueStore],
        loader: AggregateLoader,
        config: Optional[CacheConfig] = None,
    ):
        self.config = config or CacheConfig()
        self._store = store
        self._loader = loader

        self._stats = {
            "requests": 0,
            "hits": 0,
            "misses": 0,
            "loads": 0,
            "not_found": 0,
            "writes": 0,
            "invalidations": 0,
            "store_errors": 0,
            "decode_errors": 0,
        }

        logger.info(
            f"MenuCacheService initialized "
            f"(enabled={self.config.enabled}, store={'yes' if store is not None else 'no'}, "
            f"menu_ttl={self.config.menu_ttl_seconds}s, "
            f"restaurant_ttl={self.config.restaurant_ttl_seconds}s)"
        )

    @property
    def store(self) -> Optional[KeyValueStore]:
        return self._store

    @store.setter
    def store(self, store: Optional[KeyValueStore]):
        """Late binding, e.g. once the store connects after startup."""
        self._store = store

    def _is_store_usable(self) -> bool:
        return self.config.enabled and self._store is not None

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def get_restaurant_with_cache(self, restaurant_id: str) -> Optional[Dict[str, Any]]:
        """Restaurant aggregate, from the cache when possible. None if not found."""
        return await self._get_or_load(
            CacheNamespace.RESTAURANT, restaurant_id, self._loader.load_restaurant
        )

    async def get_menu_with_cache(self, menu_id: str) -> Optional[Dict[str, Any]]:
        """Menu aggregate, from the cache when possible. None if not found."""
        return await self._get_or_load(
            CacheNamespace.MENU, menu_id, self._loader.load_menu
        )

    async def _get_or_load(
        self,
        namespace: CacheNamespace,
        entity_id: str,
        load: Callable[[str], Awaitable[Optional[Dict[str, Any]]]],
    ) -> Optional[Dict[str, Any]]:
        self._stats["requests"] += 1

        if not entity_id or not entity_id.strip():
            logger.warning(f"Empty {namespace.value} id, reading primary store without cache")
            return await load(entity_id)

        key = CacheKey(namespace, entity_id)

        cached = await self._read(key)
        if cached is not None:
            self._stats["hits"] += 1
            logger.debug(f"Cache HIT for {key}")
            return cached

        self._stats["misses"] += 1
        logger.debug(f"Cache MISS for {key}, loading from primary store")

        value = await load(key.entity_id)
        self._stats["loads"] += 1

        if value is None:
            self._stats["not_found"] += 1
            return None

        await self._write(key, value)
        return value

    async def _read(self, key: CacheKey) -> Optional[Dict[str, Any]]:
        if not self._is_store_usable():
            return None

        try:
            payload = await self._store.get(str(key))
        except Exception as e:
            self._stats["store_errors"] += 1
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

        if payload is None:
            return None

        try:
            return deserialize(payload)
        except (ValueError, TypeError) as e:
            self._stats["decode_errors"] += 1
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def _write(self, key: CacheKey, value: Dict[str, Any]) -> None:
        if not self._is_store_usable():
            return

        try:
            payload = serialize(value)
            await self._store.set(str(key), payload, ttl=self.config.ttl_for(key.namespace))
            self._stats["writes"] += 1
            logger.debug(f"Cached {key} ({len(payload)} bytes)")
        except Exception as e:
            self._stats["store_errors"] += 1
            logger.warning(f"Cache write failed for {key}: {e}")

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate_restaurant_cache(self, restaurant_id: str) -> None:
        """Drop the cached restaurant aggregate. Never raises."""
        await self._delete(CacheKey.restaurant(restaurant_id))

    async def invalidate_menu_cache(self, menu_id: str) -> None:
        """Drop the cached menu aggregate. Never raises."""
        await self._delete(CacheKey.menu(menu_id))

    async def invalidate_all_restaurant_caches(
        self,
        restaurant_id: str,
        menu_ids: Iterable[str],
    ) -> None:
        """
        Drop a restaurant and all of its menus.

        Needed when the restaurant's own fields change, because every menu
        aggregate embeds a restaurant summary.
        """
        await self.invalidate_restaurant_cache(restaurant_id)
        for menu_id in menu_ids:
            await self.invalidate_menu_cache(menu_id)

    async def _delete(self, key: CacheKey) -> None:
        if not key.entity_id:
            return

        self._stats["invalidations"] += 1
        if self._store is None:
            return

        try:
            deleted = await self._store.delete(str(key))
        except Exception as e:
            self._stats["store_errors"] += 1
            logger.warning(f"Cache invalidation failed for {key}: {e}")
            return

        if deleted is False:
            self._stats["store_errors"] += 1
            logger.warning(f"Cache invalidation for {key} did not reach the store")
        else:
            logger.debug(f"Invalidated cache for {key}")

    async def clear_all(self) -> int:
        """Delete every restaurant and menu entry. Never raises."""
        delete_pattern = getattr(self._store, "delete_pattern", None)
        if delete_pattern is None:
            return 0

        count = 0
        for namespace in CacheNamespace:
            try:
                count += await delete_pattern(f"{namespace.value}:*")
            except Exception as e:
                self._stats["store_errors"] += 1
                logger.warning(f"Failed to clear {namespace.value} cache entries: {e}")

        logger.info(f"Cleared {count} menu cache entries")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = self._stats["requests"]
        hit_rate = self._stats["hits"] / total if total > 0 else 0

        store_stats = {}
        get_store_stats = getattr(self._store, "get_stats", None)
        if callable(get_store_stats):
            store_stats = get_store_stats()

        return {
            **self._stats,
            "hit_rate": hit_rate,
            "enabled": self.config.enabled,
            "menu_ttl_seconds": self.config.menu_ttl_seconds,
            "restaurant_ttl_seconds": self.config.restaurant_ttl_seconds,
            "store": store_stats,
        }
