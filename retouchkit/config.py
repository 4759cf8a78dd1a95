from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MAX_DIMENSION = 16384
DEFAULT_LICENSE_API_URL = "https://api.polar.sh/v1/customer-portal/license-keys"
DEFAULT_LICENSE_STORE_URL = "https://polar.sh/retouchkit"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from RETOUCHKIT_* environment variables."""

    env: str = "development"
    log_level: str = "INFO"
    max_dimension: int = DEFAULT_MAX_DIMENSION
    worker_max: int = 4
    worker_timeout: float = 30.0
    load_timeout: float = 30.0
    license_key: str | None = None
    license_org_id: str | None = None
    license_api_url: str = DEFAULT_LICENSE_API_URL
    license_store_url: str = DEFAULT_LICENSE_STORE_URL
    license_cache_ttl: float = 24 * 60 * 60
    license_cache_dir: Path = Path(".retouchkit_cache")
    license_cache_enabled: bool = True
    dev_mode: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            env=os.getenv("RETOUCHKIT_ENV", "development"),
            log_level=os.getenv("RETOUCHKIT_LOG_LEVEL", "INFO").upper(),
            max_dimension=int(os.getenv("RETOUCHKIT_MAX_DIMENSION", str(DEFAULT_MAX_DIMENSION))),
            worker_max=int(os.getenv("RETOUCHKIT_WORKER_MAX", str(os.cpu_count() or 4))),
            worker_timeout=float(os.getenv("RETOUCHKIT_WORKER_TIMEOUT", "30")),
            load_timeout=float(os.getenv("RETOUCHKIT_LOAD_TIMEOUT", "30")),
            license_key=os.getenv("RETOUCHKIT_LICENSE_KEY") or None,
            license_org_id=os.getenv("RETOUCHKIT_LICENSE_ORG_ID") or None,
            license_api_url=os.getenv("RETOUCHKIT_LICENSE_API_URL", DEFAULT_LICENSE_API_URL),
            license_store_url=os.getenv("RETOUCHKIT_LICENSE_STORE_URL", DEFAULT_LICENSE_STORE_URL),
            license_cache_ttl=float(os.getenv("RETOUCHKIT_LICENSE_CACHE_TTL", str(24 * 60 * 60))),
            license_cache_dir=Path(os.getenv("RETOUCHKIT_LICENSE_CACHE_DIR", ".retouchkit_cache")),
            license_cache_enabled=_env_flag("RETOUCHKIT_LICENSE_CACHE_ENABLED", "1"),
            dev_mode=_env_flag("RETOUCHKIT_DEV_MODE"),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    global _SETTINGS
    _SETTINGS = None
