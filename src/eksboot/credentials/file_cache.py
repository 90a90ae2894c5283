"""On-disk credential cache shared between eksboot processes.

The cache file holds short-lived credentials per profile. Every read and write
happens while holding an OS-level advisory lock on a sibling ``.lock`` file.
Any problem with the cache is reported as CacheError; callers treat that as a
cache miss and resolve credentials live.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import filelock
import yaml
from botocore.credentials import CredentialProvider, Credentials, RefreshableCredentials

from eksboot.core.config import CREDENTIAL_CACHE_FILE_ENV
from eksboot.core.exceptions import AWSError, CacheError
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

CREDENTIAL_CACHE_LOCK_TIMEOUT = 10.0  # seconds
# Matches botocore's advisory refresh window for RefreshableCredentials
CREDENTIAL_REFRESH_MARGIN = timedelta(minutes=15)
DEFAULT_PROFILE_KEY = "default"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_cache_file_path() -> Path:
    """Return the credential cache location, creating its directory.

    Raises:
        CacheError: If the cache directory cannot be created
    """
    override = os.environ.get(CREDENTIAL_CACHE_FILE_ENV)
    path = Path(override).expanduser() if override else Path.home() / ".eksboot" / "cache" / "credentials.yaml"

    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as e:
        raise CacheError(f"error creating credential cache directory {path.parent}: {e}") from e

    return path


@dataclass(frozen=True)
class CachedCredentials:
    """Credentials stored for one profile."""

    profile: str
    access_key_id: str
    secret_access_key: str
    session_token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def needs_refresh(self, now: datetime, margin: timedelta = CREDENTIAL_REFRESH_MARGIN) -> bool:
        return self.expires_at - now <= margin

    def to_dict(self) -> dict[str, str]:
        return {
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
            "session_token": self.session_token,
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, profile: str, data: dict[str, Any]) -> CachedCredentials:
        expires_at = data["expires_at"]
        if not isinstance(expires_at, datetime):
            expires_at = datetime.fromisoformat(str(expires_at))
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        return cls(
            profile=profile,
            access_key_id=str(data["access_key_id"]),
            secret_access_key=str(data["secret_access_key"]),
            session_token=str(data.get("session_token") or ""),
            expires_at=expires_at,
        )

    def to_metadata(self) -> dict[str, str]:
        """Shape understood by RefreshableCredentials.create_from_metadata."""
        return {
            "access_key": self.access_key_id,
            "secret_key": self.secret_access_key,
            "token": self.session_token,
            "expiry_time": self.expires_at.isoformat(),
        }


class CredentialCache:
    """Profile-keyed credential store behind a cross-process file lock."""

    def __init__(
        self,
        path: Path,
        lock_timeout: float = CREDENTIAL_CACHE_LOCK_TIMEOUT,
        clock: Clock = utcnow,
    ):
        """Initialize credential cache.

        Args:
            path: Cache file location
            lock_timeout: Seconds to wait for the file lock
            clock: Source of the current time
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout
        self.clock = clock

    def get(self, profile: str) -> CachedCredentials | None:
        """Return unexpired credentials for a profile, or None on a miss.

        An expired entry is evicted from the file.

        Raises:
            CacheError: If the lock cannot be taken or the file is unreadable
        """
        with self._locked():
            profiles = self._read()
            entry = profiles.get(profile)
            if entry is None:
                return None

            try:
                credentials = CachedCredentials.from_dict(profile, entry)
            except (KeyError, TypeError, ValueError) as e:
                raise CacheError(f"corrupt credential cache entry for profile {profile!r}: {e}") from e

            if credentials.is_expired(self.clock()):
                logger.debug("cached_credentials_expired", profile=profile)
                del profiles[profile]
                self._write(profiles)
                return None

            return credentials

    def put(self, profile: str, credentials: CachedCredentials) -> None:
        """Store credentials for a profile, dropping any expired entries.

        Raises:
            CacheError: If the lock cannot be taken or the file cannot be written
        """
        with self._locked():
            profiles = self._read()
            now = self.clock()
            for name in list(profiles):
                try:
                    if CachedCredentials.from_dict(name, profiles[name]).is_expired(now):
                        del profiles[name]
                except (KeyError, TypeError, ValueError):
                    del profiles[name]

            profiles[profile] = credentials.to_dict()
            self._write(profiles)

    def _locked(self) -> _ScopedLock:
        return _ScopedLock(filelock.FileLock(str(self.lock_path), timeout=self.lock_timeout))

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with self.path.open() as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CacheError(f"error reading credential cache {self.path}: {e}") from e

        profiles = data.get("profiles", {}) if isinstance(data, dict) else None
        if not isinstance(profiles, dict):
            raise CacheError(f"corrupt credential cache {self.path}")
        return profiles

    def _write(self, profiles: dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump({"profiles": profiles}, f, default_flow_style=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CacheError(f"error writing credential cache {self.path}: {e}") from e


class _ScopedLock:
    """Context manager turning lock timeouts into CacheError."""

    def __init__(self, lock: filelock.FileLock):
        self._lock = lock

    def __enter__(self) -> filelock.FileLock:
        try:
            self._lock.acquire()
        except filelock.Timeout as e:
            raise CacheError(f"timed out acquiring credential cache lock {self._lock.lock_file}") from e
        except OSError as e:
            raise CacheError(f"error acquiring credential cache lock: {e}") from e
        return self._lock

    def __exit__(self, *exc_info: Any) -> None:
        self._lock.release()


class FileCacheCredentialProvider(CredentialProvider):
    """botocore credential provider serving credentials through a CredentialCache.

    Live credentials come from ``load_live``, which resolves the regular
    credential chain. Only credentials with an expiry are cached. A cached
    entry within CREDENTIAL_REFRESH_MARGIN of its expiry counts as a miss, so
    botocore's early refresh reaches the live chain.
    """

    METHOD = "eksboot-file-cache"
    CANONICAL_NAME = "eksboot-file-cache"

    def __init__(
        self,
        profile: str,
        cache: CredentialCache,
        load_live: Callable[[], Credentials | None],
    ):
        super().__init__()
        self.profile = profile or DEFAULT_PROFILE_KEY
        self.cache = cache
        self.load_live = load_live

    def load(self) -> Credentials | None:
        cached = self._get_cached()
        if cached is not None:
            logger.debug("using_cached_credentials", profile=self.profile)
            return self._refreshable(cached.to_metadata())

        live = self.load_live()
        if live is None:
            return None

        fresh = self._from_live(live)
        if fresh is None:
            # Static keys never expire, nothing to cache
            return live

        self._put_cached(fresh)
        return self._refreshable(fresh.to_metadata())

    def _refresh(self) -> dict[str, str]:
        cached = self._get_cached()
        if cached is not None:
            return cached.to_metadata()

        live = self.load_live()
        fresh = self._from_live(live) if live is not None else None
        if fresh is None:
            raise AWSError(f"unable to refresh credentials for profile {self.profile!r}")

        self._put_cached(fresh)
        return fresh.to_metadata()

    def _refreshable(self, metadata: dict[str, str]) -> RefreshableCredentials:
        return RefreshableCredentials.create_from_metadata(
            metadata=metadata, refresh_using=self._refresh, method=self.METHOD
        )

    def _from_live(self, live: Credentials) -> CachedCredentials | None:
        frozen = live.get_frozen_credentials()
        expiry = getattr(live, "_expiry_time", None)
        if not isinstance(expiry, datetime):
            return None
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)

        return CachedCredentials(
            profile=self.profile,
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token or "",
            expires_at=expiry,
        )

    def _get_cached(self) -> CachedCredentials | None:
        try:
            cached = self.cache.get(self.profile)
        except CacheError as e:
            logger.warning("credential_cache_unavailable", profile=self.profile, error=str(e))
            return None

        if cached is not None and cached.needs_refresh(self.cache.clock()):
            logger.debug("cached_credentials_near_expiry", profile=self.profile)
            return None
        return cached

    def _put_cached(self, credentials: CachedCredentials) -> None:
        try:
            self.cache.put(self.profile, credentials)
        except CacheError as e:
            logger.warning("credential_cache_write_failed", profile=self.profile, error=str(e))
