"""
PRTG Adapters - Configuration.

============================================================
CONNECTION, CREDENTIALS AND CACHE SETTINGS
============================================================

Values can be given directly, loaded from a YAML file or
read from the environment (``.env`` files are honoured).

============================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from prtg_adapters.exceptions import ConfigurationError
from prtg_adapters.logging_utils import mask_value


ENV_PREFIX = "PRTG_"

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class PRTGConfig:
    """
    Connection settings for one PRTG server.
    """
    base_url: str = ""
    username: str = ""
    passhash: str = ""

    # Caching
    cache_timeout_minutes: float = 5.0      # TTL for every cached response
    legacy_hash_keys: bool = False          # Key cache by 32-bit URL hash

    # Transport
    request_timeout_seconds: float = 30.0
    user_agent: str = "prtg-adapters/1.0"

    def __post_init__(self) -> None:
        self.base_url = (self.base_url or "").rstrip("/")

    def validate(self) -> None:
        """Raise ConfigurationError for missing or invalid values."""
        for key in ("base_url", "username", "passhash"):
            if not getattr(self, key):
                raise ConfigurationError(f"{key} is required", config_key=key)
        if self.cache_timeout_minutes < 0:
            raise ConfigurationError(
                "cache_timeout_minutes must not be negative",
                config_key="cache_timeout_minutes",
            )
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError(
                "request_timeout_seconds must be positive",
                config_key="request_timeout_seconds",
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PRTGConfig":
        """Create from dictionary, ignoring unknown keys."""
        defaults = cls()
        return cls(
            base_url=data.get("base_url", data.get("url", defaults.base_url)),
            username=str(data.get("username", defaults.username)),
            passhash=str(data.get("passhash", defaults.passhash)),
            cache_timeout_minutes=float(
                data.get("cache_timeout_minutes", defaults.cache_timeout_minutes)
            ),
            legacy_hash_keys=bool(data.get("legacy_hash_keys", defaults.legacy_hash_keys)),
            request_timeout_seconds=float(
                data.get("request_timeout_seconds", defaults.request_timeout_seconds)
            ),
            user_agent=data.get("user_agent", defaults.user_agent),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "PRTGConfig":
        """Load configuration from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}", original_error=e)

        # Allow the settings to live under a top-level "prtg" key
        if "prtg" in data:
            data = data["prtg"]
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "PRTGConfig":
        """Load configuration from ``PRTG_*`` environment variables."""
        load_dotenv(env_file)
        defaults = cls()
        return cls(
            base_url=os.getenv(f"{ENV_PREFIX}URL", defaults.base_url),
            username=os.getenv(f"{ENV_PREFIX}USERNAME", defaults.username),
            passhash=os.getenv(f"{ENV_PREFIX}PASSHASH", defaults.passhash),
            cache_timeout_minutes=float(
                os.getenv(f"{ENV_PREFIX}CACHE_TTL_MINUTES", defaults.cache_timeout_minutes)
            ),
            legacy_hash_keys=os.getenv(f"{ENV_PREFIX}LEGACY_HASH_KEYS", "false").lower() in TRUE_VALUES,
            request_timeout_seconds=float(
                os.getenv(f"{ENV_PREFIX}TIMEOUT_SECONDS", defaults.request_timeout_seconds)
            ),
            user_agent=os.getenv(f"{ENV_PREFIX}USER_AGENT", defaults.user_agent),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with the passhash masked."""
        return {
            "base_url": self.base_url,
            "username": self.username,
            "passhash": mask_value(self.passhash),
            "cache_timeout_minutes": self.cache_timeout_minutes,
            "legacy_hash_keys": self.legacy_hash_keys,
            "request_timeout_seconds": self.request_timeout_seconds,
            "user_agent": self.user_agent,
        }


def load_config(path: Optional[Path] = None) -> PRTGConfig:
    """
    Load configuration from file or the environment.

    Args:
        path: Optional path to YAML config file

    Returns:
        PRTGConfig instance
    """
    if path and path.exists():
        return PRTGConfig.from_yaml(path)
    return PRTGConfig.from_env()
