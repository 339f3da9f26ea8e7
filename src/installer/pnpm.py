"""Materialize packages on disk by driving pnpm.

Each install is serialized per `name@version` key. Registry packages go
through `pnpm add`; GitHub-hosted packages are declared as git dependencies
in a temporary manifest and installed with `pnpm install`.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import time
from typing import Dict, List, Optional

from constants import Constants
from common.errors import InstallError, MalformedError
from common.locks import KeyedLocks
from common.logging_utils import extra_context, is_debug_enabled, Timer
from config import RegistryConfig
from registry.npm.manifest import PackageInfo, normalize, parse_manifest
from versioning.models import PackageRequest

from .github import install_from_archive
from .runner import CommandRunner

logger = logging.getLogger(__name__)

COMMON_ARGS = ["--ignore-scripts", "--loglevel", "error"]


def build_env(config: RegistryConfig) -> Dict[str, str]:
    """Credentials for .npmrc interpolation; never passed on the command line."""
    env: Dict[str, str] = {}
    prefix = Constants.ENV_PREFIX
    if config.npm_token:
        env[f"{prefix}_NPM_TOKEN"] = config.npm_token
    if config.has_basic_auth:
        env[f"{prefix}_NPM_USER"] = config.npm_user
        env[f"{prefix}_NPM_PASSWORD"] = base64.b64encode(config.npm_password.encode("utf-8")).decode("ascii")
    return env


def _write_json(path: str, doc) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(doc, fh)


class Installer:
    """Installs one package per workdir with retries."""

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        runner: Optional[CommandRunner] = None,
        locks: Optional[KeyedLocks] = None,
        max_attempts: int = Constants.INSTALL_MAX_ATTEMPTS,
        retry_delay: float = Constants.INSTALL_RETRY_DELAY_SEC,
    ):
        self.config = config or RegistryConfig()
        self.runner = runner or CommandRunner(self.config.install_command, self.config.install_timeout)
        self.locks = locks or KeyedLocks("install")
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay

    @staticmethod
    def installed_manifest_path(workdir: str, name: str) -> str:
        return os.path.join(workdir, Constants.NODE_MODULES, name, Constants.PACKAGE_JSON_FILE)

    def install(self, workdir: str, pkg: PackageRequest, info: Optional[PackageInfo] = None) -> None:
        """Install pkg into workdir.

        Args:
            workdir: Directory owning package.json and node_modules.
            pkg: Package to install; version is an exact version, range or git ref.
            info: Known metadata, used to synthesize a manifest for git installs
                that ship without one.

        Raises:
            InstallError: All attempts failed; carries the last failure's output.
        """
        with self.locks.lock(pkg.version_name):
            manifest_path = self.installed_manifest_path(workdir, pkg.name)
            if os.path.isfile(os.path.join(workdir, Constants.LOCKFILE)) and os.path.isfile(manifest_path):
                logger.debug("%s already installed in %s", pkg, workdir)
                return

            root_manifest = os.path.join(workdir, Constants.PACKAGE_JSON_FILE)
            if not os.path.isfile(root_manifest):
                try:
                    # keeps pnpm from walking up to an ancestor package.json
                    _write_json(root_manifest, {})
                except OSError as exc:
                    raise InstallError(f"ensure package.json failed: {pkg}") from exc

            with Timer() as timer:
                self._install_with_retries(workdir, pkg, info)
            if is_debug_enabled(logger):
                logger.debug(
                    "installed %s in %sms", pkg, timer.duration_ms(),
                    extra=extra_context(event="install", component="installer", action="install", outcome="success"),
                )

    def _install_with_retries(self, workdir: str, pkg: PackageRequest, info: Optional[PackageInfo]) -> None:
        for attempt in range(1, self.max_attempts + 1):
            try:
                self._attempt(workdir, pkg, info)
                return
            except InstallError as exc:
                logger.warning(
                    "install %s failed (attempt %d/%d): %s", pkg, attempt, self.max_attempts, exc,
                    extra=extra_context(event="install", component="installer", action="attempt", outcome="failure"),
                )
                if attempt == self.max_attempts:
                    raise
            time.sleep(attempt * self.retry_delay)

    def _attempt(self, workdir: str, pkg: PackageRequest, info: Optional[PackageInfo]) -> None:
        if pkg.from_github:
            self._install_github(workdir, pkg, info)
        elif pkg.is_pinned:
            self._pnpm(workdir, ["add", pkg.version_name, "--prefer-offline"])
        else:
            self._pnpm(workdir, ["add", pkg.version_name])

        if not os.path.isfile(self.installed_manifest_path(workdir, pkg.name)):
            raise InstallError(f"pnpm install {pkg}: package.json not found")

    def _install_github(self, workdir: str, pkg: PackageRequest, info: Optional[PackageInfo]) -> None:
        root_manifest = os.path.join(workdir, Constants.PACKAGE_JSON_FILE)
        try:
            _write_json(root_manifest, {"dependencies": {pkg.name: f"github:{pkg.name}#{pkg.version}"}})
        except OSError as exc:
            raise InstallError(f"write package.json for {pkg}: {exc}") from exc
        self._pnpm(workdir, ["install"])

        manifest_path = self.installed_manifest_path(workdir, pkg.name)
        if not os.path.isfile(manifest_path):
            # pnpm skips git packages that have no package.json of their own
            doc = info.to_manifest() if info else {"name": pkg.name, "version": pkg.version}
            try:
                _write_json(manifest_path, doc)
            except OSError as exc:
                raise InstallError(f"write package.json for {pkg}: {exc}") from exc
            return

        try:
            with open(manifest_path, "rb") as fh:
                installed = normalize(parse_manifest(fh.read()))
        except (OSError, MalformedError) as exc:
            raise InstallError(f"read installed package.json of {pkg}: {exc}") from exc
        if installed.files:
            install_from_archive(workdir, pkg.name, pkg.version)

    def _pnpm(self, workdir: str, args: List[str]) -> str:
        return self.runner.run(workdir, [*args, *COMMON_ARGS], build_env(self.config))
