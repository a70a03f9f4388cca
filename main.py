"""
QR Menu Main Entry Point
Provides command-line interface for the QR Menu service
"""

import argparse
import asyncio
import os
import sys


def main():
    parser = argparse.ArgumentParser(
        description="QR Menu - digital restaurant menus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py api                          Start API server
  python main.py invalidate --menu menu_123   Drop one cached menu
  python main.py invalidate --restaurant rst_1  Drop a restaurant and its menus
  python main.py clear-cache                  Drop every cached menu/restaurant
        """
    )

    parser.add_argument(
        "command",
        choices=["api", "invalidate", "clear-cache"],
        help="Command to run"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for api server (default: from config)"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host for api server (default: from config)"
    )

    parser.add_argument(
        "--menu",
        action="append",
        default=[],
        help="Menu id to invalidate (repeatable)"
    )

    parser.add_argument(
        "--restaurant",
        action="append",
        default=[],
        help="Restaurant id to invalidate together with its menus (repeatable)"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )

    args = parser.parse_args()

    # Set config path if provided
    if args.config:
        os.environ["QRMENU_CONFIG_PATH"] = args.config

    if args.command == "api":
        run_api(args)
    elif args.command == "invalidate":
        if not args.menu and not args.restaurant:
            parser.error("invalidate needs --menu and/or --restaurant")
        sys.exit(asyncio.run(run_invalidate(args.menu, args.restaurant)))
    elif args.command == "clear-cache":
        sys.exit(asyncio.run(run_clear_cache()))


def run_api(args):
    """Start API server."""
    import uvicorn
    from qrmenu.config.config_loader import ConfigLoader

    config = ConfigLoader().config
    host = args.host or config.server.host
    port = args.port or config.server.port

    print("Starting QR Menu API Server...")
    print(f"API will be available at http://{host}:{port}")

    uvicorn.run(
        "qrmenu.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=False,
    )


async def _connect_cache():
    """Build a menu cache bound to the configured Redis; None if unreachable."""
    from qrmenu.cache import (
        CacheConfig,
        MenuCacheLoader,
        MenuCacheService,
        MenuRedisClient,
        RedisConfig,
    )
    from qrmenu.config.config_loader import ConfigLoader
    from qrmenu.database.connection import DatabaseManager

    config = ConfigLoader().config
    redis_config = RedisConfig.from_dict(config.redis.model_dump())
    # No background pings for a one-shot command
    redis_config.health_check_interval = 0

    if not redis_config.enabled:
        print("Redis is disabled in configuration; nothing is cached.")
        return None, None

    client = MenuRedisClient(redis_config)
    if not await client.connect():
        print(f"Cannot reach Redis at {redis_config.host}:{redis_config.port}")
        await client.close()
        return None, None

    db_manager = DatabaseManager.from_config(config.database)
    cache = MenuCacheService(
        store=client,
        loader=MenuCacheLoader(db_manager),
        config=CacheConfig.from_dict(config.menu_cache.model_dump()),
    )
    return cache, client


async def run_invalidate(menu_ids, restaurant_ids) -> int:
    """Invalidate cached menus/restaurants."""
    from qrmenu.database.connection import DatabaseManager
    from qrmenu.database.repository import RestaurantRepository

    cache, client = await _connect_cache()
    if cache is None:
        return 1

    try:
        for menu_id in menu_ids:
            await cache.invalidate_menu_cache(menu_id)
            print(f"Invalidated menu:{menu_id}")

        for restaurant_id in restaurant_ids:
            with DatabaseManager.get_instance().session_scope() as db:
                restaurant_menus = RestaurantRepository(db).menu_ids(restaurant_id)
            await cache.invalidate_all_restaurant_caches(restaurant_id, restaurant_menus)
            print(f"Invalidated restaurant:{restaurant_id} and {len(restaurant_menus)} menus")
    finally:
        await client.close()

    return 0


async def run_clear_cache() -> int:
    """Delete every cached menu and restaurant."""
    cache, client = await _connect_cache()
    if cache is None:
        return 1

    try:
        deleted = await cache.clear_all()
        print(f"Cleared {deleted} cache entries")
    finally:
        await client.close()

    return 0


if __name__ == "__main__":
    main()
