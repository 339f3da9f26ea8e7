"""Package metadata service: cache-first, deduplicated registry lookups."""

from __future__ import annotations

import logging
import os
from typing import Optional, Tuple

from constants import Constants
from common.errors import MalformedError, NotFoundError
from common.locks import KeyedLocks
from common.logging_utils import extra_context, is_debug_enabled, Timer
from config import RegistryConfig
from storage.cache import CacheExpired, CacheNotFound, MemoryCache
from versioning.models import is_full_version, normalize_version_spec
from versioning.resolvers.npm import resolve_version

from .client import RegistryClient
from .manifest import PackageInfo, normalize, parse_manifest
from .naming import split_package_name

logger = logging.getLogger(__name__)


def cache_key(name: str, version: str) -> str:
    return f"{Constants.CACHE_KEY_PREFIX}{name}@{version}"


class PackageInfoService:
    """Resolves (name, version spec) to a normalized PackageInfo.

    For a given cache key at most one registry fetch is in flight; callers
    queued on the same key are answered from the cache once the first caller
    has stored its result.
    """

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        client: Optional[RegistryClient] = None,
        cache=None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.config = config or RegistryConfig()
        self.client = client or RegistryClient(self.config)
        self.cache = cache if cache is not None else MemoryCache()
        self.locks = locks or KeyedLocks("fetch")

    def fetch_package_info(self, name: str, version: str = "") -> PackageInfo:
        """Return metadata for the version that `version` denotes.

        Raises:
            NotFoundError: Package or matching version absent upstream.
            UpstreamError: Registry failure.
            MalformedError: Registry returned an unusable document.
        """
        name = split_package_name(name)
        version = normalize_version_spec(version)
        key = cache_key(name, version)

        with self.locks.lock(key):
            cached = self._read_cache(key)
            if cached is not None:
                return cached

            with Timer() as timer:
                info, ttl = self._fetch(name, version)
            self._write_cache(key, info, ttl)
            if is_debug_enabled(logger):
                logger.debug(
                    "lookup package(%s@%s) in %sms", name, info.version, timer.duration_ms(),
                    extra=extra_context(event="fetch", component="service", action="lookup", key=key),
                )
            return info

    def get_package_info(self, workdir: str, name: str, version: str = "") -> Tuple[PackageInfo, bool]:
        """Return (info, from_manifest), preferring an already installed package.json.

        from_manifest is True when the info was read from the workdir's
        node_modules rather than fetched from the registry.
        """
        if name == Constants.NODE_TYPES_PACKAGE:
            return PackageInfo(
                name=Constants.NODE_TYPES_PACKAGE,
                version=Constants.NODE_TYPES_VERSION,
                types="index.d.ts",
            ), False

        if not workdir and is_full_version(version):
            workdir = os.path.join(self.config.work_dir, "npm", f"{name}@{version}")
        if workdir:
            manifest_path = os.path.join(workdir, Constants.NODE_MODULES, name, Constants.PACKAGE_JSON_FILE)
            if os.path.isfile(manifest_path):
                try:
                    with open(manifest_path, "rb") as fh:
                        return normalize(parse_manifest(fh.read())), True
                except (OSError, MalformedError) as exc:
                    logger.warning("Ignoring unreadable %s: %s", manifest_path, exc)

        return self.fetch_package_info(name, version), False

    def _fetch(self, name: str, version: str) -> Tuple[PackageInfo, int]:
        raw = self.client.fetch_raw(name, version)
        if isinstance(raw, dict):
            return normalize(raw), Constants.CACHE_TTL_EXACT_SEC

        exact = resolve_version(version, raw.dist_tags, raw.versions)
        manifest = raw.versions.get(exact)
        if not isinstance(manifest, dict):
            raise NotFoundError(f"npm: version {version} of '{name}' not found")
        info = normalize(manifest)
        if not info.version:
            raise NotFoundError(f"npm: version {version} of '{name}' not found")
        return info, Constants.CACHE_TTL_RESOLVED_SEC

    def _read_cache(self, key: str) -> Optional[PackageInfo]:
        try:
            data = self.cache.get(key)
        except (CacheNotFound, CacheExpired):
            return None
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("cache: %s", exc, extra=extra_context(event="cache_error", action="get", key=key))
            return None
        try:
            return PackageInfo.from_json(data)
        except MalformedError as exc:
            logger.warning("cache: dropping undecodable entry %s: %s", key, exc)
            return None

    def _write_cache(self, key: str, info: PackageInfo, ttl: int) -> None:
        try:
            self.cache.set(key, info.to_json(), ttl)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("cache: %s", exc, extra=extra_context(event="cache_error", action="set", key=key))
