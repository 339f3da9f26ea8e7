"""NPM registry client: fetch raw metadata documents from the right upstream."""

from __future__ import annotations

import json
import logging
from typing import Dict, Optional, Tuple, Union

from requests.auth import HTTPBasicAuth

from constants import Constants
from common.errors import MalformedError, NotFoundError, UpstreamError
from common.http_client import safe_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from config import RegistryConfig
from versioning.models import VersionsDocument, is_full_version

logger = logging.getLogger(__name__)

RawMetadata = Union[dict, VersionsDocument]


class RegistryClient:
    """Fetches package metadata from npm-compatible registries.

    Routing: `@jsr/*` goes to the JSR mirror; with a private scope configured,
    names outside that scope go to the public registry; everything else goes
    to the configured registry.
    """

    def __init__(self, config: Optional[RegistryConfig] = None):
        self.config = config or RegistryConfig()

    def build_request(self, name: str, version: str) -> Tuple[str, Dict[str, str], Optional[HTTPBasicAuth], bool]:
        """Return (url, headers, auth, single_manifest) for a metadata request."""
        is_jsr = name.startswith(Constants.JSR_SCOPE)
        if is_jsr:
            base = Constants.REGISTRY_URL_JSR
        elif self.config.npm_registry_scope and not name.startswith(self.config.npm_registry_scope):
            base = Constants.REGISTRY_URL_NPM
        else:
            base = self.config.npm_registry
        url = base + name

        # GitHub Packages and JSR only serve the full packument.
        single_manifest = (
            is_full_version(version)
            and not is_jsr
            and Constants.GITHUB_PACKAGES_HOST not in url
        )
        if single_manifest:
            url += "/" + version

        headers = {"Accept": Constants.NPM_ACCEPT_HEADER}
        auth = None
        if not is_jsr:
            if self.config.npm_token:
                headers["Authorization"] = "Bearer " + self.config.npm_token
            elif self.config.has_basic_auth:
                auth = HTTPBasicAuth(self.config.npm_user, self.config.npm_password)
        return url, headers, auth, single_manifest

    def fetch_raw(self, name: str, version: str) -> RawMetadata:
        """Fetch a single manifest (exact version) or the versions document.

        Args:
            name: Package name, optionally scoped.
            version: Normalized version spec.

        Returns:
            dict for a single-manifest response, VersionsDocument otherwise.

        Raises:
            NotFoundError: 404/401 from the registry.
            UpstreamError: Any other non-2xx status or transport failure.
            MalformedError: Undecodable body or empty `versions`.
        """
        url, headers, auth, single_manifest = self.build_request(name, version)
        with Timer() as timer:
            res = safe_get(url, context="npm", headers=headers, auth=auth)

        if res.status_code in (401, 404):
            logger.debug(
                "Package not found upstream",
                extra=extra_context(
                    event="http_response",
                    outcome="not_found",
                    status_code=res.status_code,
                    target=safe_url(url),
                    package_manager="npm"
                )
            )
            if is_full_version(version):
                raise NotFoundError(f"npm: version {version} of '{name}' not found")
            raise NotFoundError(f"npm: package '{name}' not found")

        if not 200 <= res.status_code < 300:
            logger.warning(
                "HTTP non-2xx from registry",
                extra=extra_context(
                    event="http_response",
                    outcome="upstream_error",
                    status_code=res.status_code,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(url),
                    package_manager="npm"
                )
            )
            raise UpstreamError(
                f"npm: could not get metadata of package '{name}' ({res.status_code}: {res.text})",
                status=res.status_code,
                body=res.text,
            )

        try:
            data = json.loads(res.text)
        except ValueError as exc:
            raise MalformedError(f"npm: invalid JSON from registry for '{name}': {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedError(f"npm: unexpected metadata document for '{name}'")

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched metadata",
                extra=extra_context(
                    event="http_response",
                    outcome="success",
                    status_code=res.status_code,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(url),
                    package_manager="npm"
                )
            )

        if single_manifest:
            return data

        versions = data.get("versions")
        if not isinstance(versions, dict) or not versions:
            raise MalformedError("npm: missing `versions` field")
        dist_tags = data.get("dist-tags")
        if not isinstance(dist_tags, dict):
            dist_tags = {}
        return VersionsDocument(
            dist_tags={k: v for k, v in dist_tags.items() if isinstance(v, str)},
            versions=versions,
        )
