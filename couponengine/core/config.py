"""
Configuration management for the coupon engine.

Loads settings from a YAML config file, then applies environment overrides.
"""
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import List, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of couponengine package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

ALL_COUPON_TYPES = ["cart", "product", "bxgy"]


@dataclass
class EngineConfig:
    """Configuration for the coupon engine and its storage."""

    # Storage
    storage_backend: str = "redis"      # "redis" or "memory"
    redis_url: Optional[str] = None     # takes priority over host/port when set
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    socket_timeout: float = 2.0

    # Per-coupon lock around validate-apply-persist
    lock_timeout_seconds: float = 10.0
    lock_blocking_timeout_seconds: float = 5.0

    # Strategies to register (coupon type tags)
    enabled_types: List[str] = field(default_factory=lambda: list(ALL_COUPON_TYPES))

    # Coupons loaded at startup (JSON file with a "coupons" list)
    seed_file: Optional[str] = None

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "EngineConfig":
        """Load configuration from YAML file, then apply environment overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        storage_config = data.get('storage', {})
        redis_config = storage_config.get('redis', {})
        lock_config = data.get('locking', {})
        engine_config = data.get('engine', {})

        config = cls(
            storage_backend=storage_config.get('backend', 'redis'),
            redis_url=redis_config.get('url'),
            redis_host=redis_config.get('host', 'localhost'),
            redis_port=redis_config.get('port', 6379),
            redis_db=redis_config.get('db', 0),
            socket_timeout=redis_config.get('socket_timeout', 2.0),
            lock_timeout_seconds=lock_config.get('timeout_seconds', 10.0),
            lock_blocking_timeout_seconds=lock_config.get('blocking_timeout_seconds', 5.0),
            enabled_types=engine_config.get('enabled_types', list(ALL_COUPON_TYPES)),
            seed_file=engine_config.get('seed_file'),
        )
        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override settings from environment variables (REDIS_URL, REDIS_HOST, ...)."""
        self.storage_backend = os.getenv("COUPON_STORAGE", self.storage_backend)
        self.redis_url = os.getenv("REDIS_URL", self.redis_url)
        self.redis_host = os.getenv("REDIS_HOST", self.redis_host)
        self.redis_port = int(os.getenv("REDIS_PORT", str(self.redis_port)))
        self.redis_db = int(os.getenv("REDIS_DB", str(self.redis_db)))
        self.seed_file = os.getenv("COUPON_SEED_FILE", self.seed_file)


# Global config instance
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = EngineConfig.from_yaml()
    return _config


def set_config(config: EngineConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
