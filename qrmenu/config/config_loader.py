"""
Configuration Loader for QR Menu
Loads and manages configuration from YAML files
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from loguru import logger


class SystemConfig(BaseModel):
    """System configuration."""
    name: str = "QR Menu"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"


class DatabaseConfig(BaseModel):
    """Database configuration."""
    type: str = "sqlite"
    path: str = "./data/qrmenu.db"
    echo: bool = False
    seed_allergens: bool = True


class ServerConfig(BaseModel):
    """Server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False


class RedisSettings(BaseModel):
    """
    Key-value store connection settings.

    Mirrors qrmenu.cache.redis_client.RedisConfig so the YAML section can be
    validated before the client is built.
    """
    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    password: str = ""
    db: int = 0
    max_connections: int = 50
    socket_timeout: float = 1.0
    socket_connect_timeout: float = 1.0
    operation_timeout: float = 0.25
    key_prefix: str = "qrmenu"
    enable_compression: bool = True
    compression_level: int = 6
    compression_threshold: int = 4096
    health_check_interval: int = 30


class MenuCacheSettings(BaseModel):
    """Read-through cache settings for restaurant and menu aggregates."""
    enabled: bool = True
    menu_ttl_seconds: int = 3600
    restaurant_ttl_seconds: int = 86400


class AIConfig(BaseModel):
    """Chat completions backend configuration."""
    enabled: bool = True
    provider: str = "openai"  # openai | deepseek
    api_key: str = ""
    base_url: Optional[str] = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    timeout: float = 30.0
    # Dish analysis: near-deterministic answers, cached for 7 days
    analysis_temperature: float = 0.1
    analysis_ttl_seconds: int = 7 * 24 * 3600


class Config(BaseModel):
    """Main configuration model."""
    system: SystemConfig = Field(default_factory=SystemConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    menu_cache: MenuCacheSettings = Field(default_factory=MenuCacheSettings)
    ai: AIConfig = Field(default_factory=AIConfig)


class ConfigLoader:
    """Configuration loader and manager."""

    _instance: Optional['ConfigLoader'] = None
    _config: Optional[Config] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if self._config is None:
            self._config_path = config_path or self._find_config_path()
            self._load_config()

    def _find_config_path(self) -> Optional[str]:
        """Find configuration file path."""
        possible_paths = [
            os.environ.get("QRMENU_CONFIG_PATH", ""),
            "./config/config.yaml",
            "./config.yaml",
            str(Path(__file__).parent.parent.parent / "config" / "config.yaml"),
        ]

        for path in possible_paths:
            if path and os.path.exists(path):
                return path

        return None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path:
            logger.warning("Configuration file not found, using defaults")
            self._config = Config()
            return

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                raw_config = yaml.safe_load(f) or {}

            # API keys are never committed to the YAML file
            ai_key = os.environ.get("QRMENU_AI_API_KEY") or os.environ.get("OPENAI_API_KEY")
            if ai_key:
                raw_config.setdefault('ai', {})['api_key'] = ai_key

            self._config = Config(**raw_config)
            logger.info(f"Configuration loaded from {self._config_path}")

        except Exception as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
            self._config = Config()

    @property
    def config(self) -> Config:
        """Get configuration."""
        return self._config

    @property
    def config_path(self) -> Optional[str]:
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key."""
        keys = key.split('.')
        value = self._config

        try:
            for k in keys:
                if hasattr(value, k):
                    value = getattr(value, k)
                elif isinstance(value, dict):
                    value = value[k]
                else:
                    return default
            return value
        except (KeyError, AttributeError):
            return default

    def reload(self) -> None:
        """Reload configuration."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance."""
        cls._instance = None
        cls._config = None


def get_config() -> Config:
    """Get global configuration instance."""
    return ConfigLoader().config
