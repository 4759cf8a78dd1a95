from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import requests

from retouchkit.config import DEFAULT_LICENSE_API_URL, DEFAULT_LICENSE_STORE_URL, Settings
from retouchkit.domain.errors import LicenseError

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "license_cache.json"
DEFAULT_CACHE_TTL = 24 * 60 * 60


class Entitlement(Protocol):
    """Answers whether exports should go out without a watermark."""

    def is_valid(self) -> bool: ...


@dataclass(frozen=True)
class StaticEntitlement:
    valid: bool = True

    def is_valid(self) -> bool:
        return self.valid


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    DISABLED = "disabled"
    REVOKED = "revoked"
    INVALID = "invalid"


@dataclass(frozen=True)
class LicenseConfig:
    organization_id: str | None = None
    api_url: str = DEFAULT_LICENSE_API_URL
    store_url: str = DEFAULT_LICENSE_STORE_URL
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_enabled: bool = True
    cache_dir: Path = Path(".retouchkit_cache")
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> LicenseConfig:
        return cls(
            organization_id=settings.license_org_id,
            api_url=settings.license_api_url,
            store_url=settings.license_store_url,
            cache_ttl=settings.license_cache_ttl,
            cache_enabled=settings.license_cache_enabled,
            cache_dir=settings.license_cache_dir,
        )


@dataclass(frozen=True)
class LicenseInfo:
    key: str
    status: LicenseStatus
    is_valid: bool
    expires_at: str | None = None
    activation_limit: int | None = None
    activation_usage: int = 0
    usage_limit: int | None = None
    usage: int = 0
    customer_email: str | None = None
    customer_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LicenseInfo:
        return cls(**{**data, "status": LicenseStatus(data.get("status", "active"))})


@dataclass
class ValidationResult:
    valid: bool
    payload: dict[str, Any] | None = None
    error: str | None = None
    cached: LicenseInfo | None = None

    @property
    def from_cache(self) -> bool:
        return self.cached is not None


@dataclass
class LicenseCachePolicy:
    """Validated licenses persisted as JSON with a time-to-live."""

    directory: Path
    ttl: float = DEFAULT_CACHE_TTL
    enabled: bool = True
    clock: Any = field(default=time.time, repr=False)

    @property
    def path(self) -> Path:
        return Path(self.directory) / CACHE_FILE_NAME

    def load(self, key: str) -> LicenseInfo | None:
        if not self.enabled or not self.path.exists():
            return None
        try:
            cached = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable license cache %s: %s", self.path, exc)
            return None
        if self.clock() > float(cached.get("expires_at", 0)):
            self.clear()
            return None
        info = cached.get("license_info") or {}
        if info.get("key") != key:
            return None
        return LicenseInfo.from_dict(info)

    def store(self, info: LicenseInfo) -> None:
        if not self.enabled:
            return
        now = self.clock()
        payload = {"license_info": info.to_dict(), "validated_at": now, "expires_at": now + self.ttl}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write license cache %s: %s", self.path, exc)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove license cache %s: %s", self.path, exc)


def _is_expired(expires_at: str | None) -> bool:
    if not expires_at:
        return False
    try:
        when = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    except ValueError:
        return False
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when < datetime.now(timezone.utc)


class LicenseManager:
    """Validates license keys against the Polar license-key API.

    Consulted only at export time. A network failure falls back to a cached
    validation of the same key; dev mode skips validation entirely.
    """

    def __init__(
        self,
        config: LicenseConfig | None = None,
        session: requests.Session | None = None,
        cache: LicenseCachePolicy | None = None,
    ) -> None:
        self.config = config or LicenseConfig()
        self.session = session or requests.Session()
        self.cache = cache or LicenseCachePolicy(
            directory=self.config.cache_dir,
            ttl=self.config.cache_ttl,
            enabled=self.config.cache_enabled,
        )
        self._key: str | None = None
        self._info: LicenseInfo | None = None
        self._validated = False
        self._dev_mode = False

    @classmethod
    def from_settings(cls, settings: Settings) -> LicenseManager:
        manager = cls(LicenseConfig.from_settings(settings))
        if settings.dev_mode:
            manager.enable_dev_mode()
        return manager

    # --------- public API ---------
    def set_license_key(self, key: str, force: bool = False) -> LicenseInfo:
        """Validate and activate a key. `force` skips the cached validation and asks the server."""
        if not key or not isinstance(key, str):
            raise LicenseError("License key is required", "INVALID_KEY")
        self._key = key.strip()

        cached = None if force else self.cache.load(self._key)
        if cached is not None:
            logger.debug("Using cached license validation")
            self._info = cached
            self._validated = True
            return cached

        result = self._validate_remote(self._key)
        if not result.valid:
            self._info = None
            self._validated = False
            raise self._error_from(result)

        self._info = result.cached or self._parse_info(self._key, result)
        self._validated = True
        if not result.from_cache:
            self.cache.store(self._info)
        logger.info("License validated (status=%s)", self._info.status.value)
        return self._info

    def is_valid(self) -> bool:
        if self._dev_mode:
            return True
        return self._validated and self._info is not None and self._info.is_valid

    @property
    def info(self) -> LicenseInfo | None:
        return self._info

    @property
    def key(self) -> str | None:
        return self._key

    @property
    def dev_mode(self) -> bool:
        return self._dev_mode

    def require_valid(self) -> None:
        if not self.is_valid():
            raise LicenseError(
                "License key required. Call set_license_key() first.\n"
                f"Purchase a license at: {self.config.store_url}",
                "LICENSE_REQUIRED",
            )

    def clear(self) -> None:
        self._key = None
        self._info = None
        self._validated = False
        self.cache.clear()

    def refresh(self) -> LicenseInfo:
        if not self._key:
            raise LicenseError("No license key set", "NO_LICENSE")
        # the cached entry stays as the offline fallback until the server answers
        return self.set_license_key(self._key, force=True)

    def enable_dev_mode(self) -> None:
        logger.warning("License dev mode enabled: exports are never watermarked")
        self._dev_mode = True

    # --------- internals ---------
    def _validate_remote(self, key: str) -> ValidationResult:
        try:
            resp = self.session.post(
                f"{self.config.api_url}/validate",
                json={"key": key, "organization_id": self.config.organization_id},
                headers={"Accept": "application/json"},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            # offline: trust an unexpired cached validation of the same key
            cached = self.cache.load(key)
            if cached is not None:
                logger.warning("License server unreachable, using cached validation: %s", exc)
                return ValidationResult(valid=True, cached=cached)
            return ValidationResult(valid=False, error=f"Network error: {exc}")

        if resp.status_code == 404:
            return ValidationResult(valid=False, error="License key not found")
        if resp.status_code == 422:
            return ValidationResult(valid=False, error="Invalid license key format")
        if not resp.ok:
            return ValidationResult(valid=False, error=f"HTTP error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            return ValidationResult(valid=False, error="Malformed license response")

        expired = _is_expired(data.get("expires_at"))
        valid = data.get("status") == "granted" and not expired
        error = None
        if not valid:
            if expired:
                error = "License has expired"
            elif data.get("status") == "revoked":
                error = "License has been revoked"
            elif data.get("status") == "disabled":
                error = "License has been disabled"
            else:
                error = "License is not valid"
        return ValidationResult(valid=valid, payload=data, error=error)

    @staticmethod
    def _parse_info(key: str, result: ValidationResult) -> LicenseInfo:
        data = result.payload or {}
        customer = data.get("customer") or {}
        return LicenseInfo(
            key=key,
            status=LicenseStatus.ACTIVE,
            is_valid=True,
            expires_at=data.get("expires_at"),
            activation_limit=data.get("limit_activations"),
            activation_usage=data.get("validations") or 0,
            usage_limit=data.get("limit_usage"),
            usage=data.get("usage") or 0,
            customer_email=customer.get("email"),
            customer_name=customer.get("name"),
        )

    def _error_from(self, result: ValidationResult) -> LicenseError:
        error = result.error or ""
        store = self.config.store_url
        if "expired" in error:
            return LicenseError(f"Your license has expired.\nRenew at: {store}", "LICENSE_EXPIRED")
        if "revoked" in error:
            return LicenseError("This license has been revoked.", "LICENSE_REVOKED")
        if "disabled" in error:
            return LicenseError("This license has been disabled.", "LICENSE_DISABLED")
        if "not found" in error:
            return LicenseError(
                f"License key not found.\nPurchase a valid license at: {store}", "INVALID_KEY"
            )
        return LicenseError(f"Invalid license key ({error}).\nPurchase a valid license at: {store}", "INVALID_KEY")
