"""
Redis Client Wrapper for QR Menu
Async key-value store adapter used by the menu cache

Features:
- Connection pooling
- Per-operation timeout (a slow store is treated as a failed store)
- Optional compression for large payloads
- Health check with automatic reconnection
- Graceful degradation: every fault is logged and reported as a miss/no-op
"""

import asyncio
import zlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger
from redis.asyncio import ConnectionPool, Redis


@dataclass
class RedisConfig:
    """
    Redis configuration

    Can be loaded from config.yaml or passed directly
    """
    # Connection settings
    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    password: str = ""
    db: int = 0

    # Connection pool settings
    max_connections: int = 50
    socket_timeout: float = 1.0
    socket_connect_timeout: float = 1.0
    retry_on_timeout: bool = False

    # Upper bound for one get/set/delete round trip
    operation_timeout: float = 0.25

    # Key settings
    key_prefix: str = "qrmenu"
    default_ttl: int = 3600

    # Compression settings
    enable_compression: bool = True
    compression_level: int = 6
    compression_threshold: int = 4096  # Only compress if > 4KB

    # Health check settings
    health_check_interval: int = 30  # seconds

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RedisConfig":
        """Create config from dictionary"""
        return cls(
            enabled=data.get('enabled', False),
            host=data.get('host', 'localhost'),
            port=data.get('port', 6379),
            password=data.get('password', ''),
            db=data.get('db', 0),
            max_connections=data.get('max_connections', 50),
            socket_timeout=data.get('socket_timeout', 1.0),
            socket_connect_timeout=data.get('socket_connect_timeout', 1.0),
            retry_on_timeout=data.get('retry_on_timeout', False),
            operation_timeout=data.get('operation_timeout', 0.25),
            key_prefix=data.get('key_prefix', 'qrmenu'),
            default_ttl=data.get('default_ttl', 3600),
            enable_compression=data.get('enable_compression', True),
            compression_level=data.get('compression_level', 6),
            compression_threshold=data.get('compression_threshold', 4096),
            health_check_interval=data.get('health_check_interval', 30),
        )


class MenuRedisClient:
    """
    QR Menu Redis Client

    Stores string payloads (the menu cache hands it JSON) under
    ``{key_prefix}:{key}``. The store is treated as unreliable: connection
    errors, protocol errors and timeouts are caught, counted and logged,
    and the call degrades to ``None`` / ``False`` / ``0``.

    Usage:
    ```python
    client = MenuRedisClient(RedisConfig(enabled=True, host="localhost"))
    await client.connect()

    await client.set("menu:abc", '{"id": "abc"}', ttl=3600)
    payload = await client.get("menu:abc")

    await client.close()
    ```
    """

    def __init__(self, config: Optional[RedisConfig] = None):
        """
        Initialize Redis client

        Args:
            config: Redis configuration
        """
        self.config = config or RedisConfig()
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None
        self._connected = False
        self._health_task: Optional[asyncio.Task] = None

        # Stats
        self._stats = {
            "connections": 0,
            "disconnections": 0,
            "operations": 0,
            "errors": 0,
            "timeouts": 0,
            "compressions": 0,
            "decompressions": 0,
        }

    @property
    def is_available(self) -> bool:
        """Check if Redis is enabled and connected"""
        return self.config.enabled and self._connected

    @property
    def can_delete(self) -> bool:
        """
        Deletes are attempted whenever a client exists, even while the
        connected flag (refreshed once per health-check interval) is down.
        """
        return self.config.enabled and self._client is not None

    @property
    def client(self) -> Optional[Redis]:
        """Get the underlying Redis client"""
        return self._client

    async def connect(self) -> bool:
        """
        Connect to Redis

        Returns:
            True if connected successfully
        """
        if not self.config.enabled:
            logger.info("Redis is disabled in configuration")
            return False

        try:
            self._pool = ConnectionPool(
                host=self.config.host,
                port=self.config.port,
                password=self.config.password or None,
                db=self.config.db,
                max_connections=self.config.max_connections,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_connect_timeout,
                retry_on_timeout=self.config.retry_on_timeout,
                decode_responses=False,  # payloads may be compressed
            )
            self._client = Redis(connection_pool=self._pool)

            await self._client.ping()

            self._connected = True
            self._stats["connections"] += 1

            logger.info(
                f"Connected to Redis at {self.config.host}:{self.config.port} "
                f"(db={self.config.db}, pool_size={self.config.max_connections})"
            )

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            self._stats["errors"] += 1

        # Also started after a failed connect, so the client recovers once Redis is back
        if (
            self._client is not None
            and self.config.health_check_interval > 0
            and self._health_task is None
        ):
            self._health_task = asyncio.create_task(self._health_check_loop())

        return self._connected

    async def close(self):
        """Close Redis connection"""
        if self._health_task:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._connected = False
        self._stats["disconnections"] += 1
        logger.info("Redis connection closed")

    async def _health_check_loop(self):
        """Background health check loop"""
        while True:
            try:
                await asyncio.sleep(self.config.health_check_interval)

                if self._client:
                    await self._client.ping()
                    if not self._connected:
                        logger.info("Redis connection restored")
                    self._connected = True

            except asyncio.CancelledError:
                break
            except Exception as e:
                if self._connected:
                    logger.warning(f"Redis health check failed: {e}")
                self._connected = False

    def _make_key(self, key: str) -> str:
        """Create full key with prefix"""
        return f"{self.config.key_prefix}:{key}"

    def _compress(self, data: bytes) -> bytes:
        """Compress data if enabled and above threshold"""
        if (
            self.config.enable_compression
            and len(data) > self.config.compression_threshold
        ):
            compressed = zlib.compress(data, level=self.config.compression_level)
            self._stats["compressions"] += 1
            return b'\x01' + compressed
        return b'\x00' + data

    def _decompress(self, data: bytes) -> bytes:
        """Decompress data if compressed"""
        if not data:
            return data

        marker = data[0:1]
        payload = data[1:]

        if marker == b'\x01':
            self._stats["decompressions"] += 1
            return zlib.decompress(payload)
        return payload

    async def _run(self, operation: str, key: str, awaitable):
        """Await a store call under the operation timeout."""
        try:
            result = await asyncio.wait_for(awaitable, timeout=self.config.operation_timeout)
            self._stats["operations"] += 1
            return result, True
        except asyncio.TimeoutError:
            logger.warning(
                f"Redis {operation} timed out for key {key} "
                f"after {self.config.operation_timeout}s"
            )
            self._stats["timeouts"] += 1
            self._stats["errors"] += 1
        except Exception as e:
            logger.warning(f"Redis {operation} error for key {key}: {e}")
            self._stats["errors"] += 1
        return None, False

    async def get(self, key: str) -> Optional[str]:
        """
        Get a string value

        Args:
            key: Cache key (without prefix)

        Returns:
            Stored string, or None on miss or failure
        """
        if not self.is_available:
            return None

        data, ok = await self._run("GET", key, self._client.get(self._make_key(key)))
        if not ok or data is None:
            return None

        try:
            return self._decompress(data).decode("utf-8")
        except (zlib.error, UnicodeDecodeError) as e:
            logger.warning(f"Redis payload for key {key} is unreadable: {e}")
            self._stats["errors"] += 1
            return None

    async def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
    ) -> bool:
        """
        Set a string value with expiry

        Args:
            key: Cache key (without prefix)
            value: String payload
            ttl: Time to live in seconds (default from config)

        Returns:
            True if successful
        """
        if not self.is_available:
            return False

        ttl = ttl or self.config.default_ttl
        payload = self._compress(value.encode("utf-8"))

        _, ok = await self._run(
            "SET", key, self._client.setex(self._make_key(key), ttl, payload)
        )
        return ok

    async def delete(self, key: str) -> bool:
        """
        Delete key from Redis

        Args:
            key: Cache key (without prefix)

        Returns:
            True if the call reached the store (whether or not the key existed)
        """
        if not self.can_delete:
            return False

        _, ok = await self._run("DELETE", key, self._client.delete(self._make_key(key)))
        return ok

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete keys matching pattern

        Args:
            pattern: Key pattern (without prefix, supports *)

        Returns:
            Number of keys deleted before the scan finished or failed
        """
        if not self.can_delete:
            return 0

        full_pattern = self._make_key(pattern)
        count = 0

        # SCAN instead of KEYS so large keyspaces do not block the server;
        # every page is bounded by the operation timeout
        cursor = 0
        while True:
            page, ok = await self._run(
                "SCAN",
                full_pattern,
                self._client.scan(cursor=cursor, match=full_pattern, count=100),
            )
            if not ok:
                return count
            cursor, keys = page

            if keys:
                _, ok = await self._run("DELETE", full_pattern, self._client.delete(*keys))
                if not ok:
                    return count
                count += len(keys)

            if cursor == 0:
                return count

    async def ttl(self, key: str) -> int:
        """Get TTL of key in seconds"""
        if not self.is_available:
            return -1

        result, ok = await self._run("TTL", key, self._client.ttl(self._make_key(key)))
        return result if ok else -1

    async def ping(self) -> bool:
        """Ping Redis server"""
        if not self._client:
            return False

        try:
            await asyncio.wait_for(self._client.ping(), timeout=self.config.operation_timeout)
            return True
        except Exception:
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics"""
        return {
            "enabled": self.config.enabled,
            "connected": self._connected,
            "host": f"{self.config.host}:{self.config.port}",
            "db": self.config.db,
            **self._stats,
        }
