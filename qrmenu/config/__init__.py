"""Configuration module for QR Menu."""

from qrmenu.config.config_loader import (
    AIConfig,
    Config,
    ConfigLoader,
    DatabaseConfig,
    MenuCacheSettings,
    RedisSettings,
    ServerConfig,
    SystemConfig,
    get_config,
)

__all__ = [
    "AIConfig",
    "Config",
    "ConfigLoader",
    "DatabaseConfig",
    "MenuCacheSettings",
    "RedisSettings",
    "ServerConfig",
    "SystemConfig",
    "get_config",
]
