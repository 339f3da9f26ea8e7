"""Registry and installer configuration.

Values come from a YAML file (`npm` section) and are then overridden by
NPMGATE_* environment variables, which have the highest precedence.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from common.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_LOCATIONS = (
    "npmgate.yml",
    "npmgate.yaml",
    os.path.join("~", ".config", "npmgate", "npmgate.yml"),
)

_ENV_OVERRIDES = {
    "npm_registry": "NPM_REGISTRY",
    "npm_registry_scope": "NPM_SCOPE",
    "npm_token": "NPM_TOKEN",
    "npm_user": "NPM_USER",
    "npm_password": "NPM_PASSWORD",
    "work_dir": "WORK_DIR",
}


@dataclass
class RegistryConfig:
    """Settings for upstream registries and the installer process."""

    npm_registry: str = Constants.REGISTRY_URL_NPM
    npm_registry_scope: str = ""
    npm_token: str = ""
    npm_user: str = ""
    npm_password: str = ""
    work_dir: str = Constants.DEFAULT_WORK_DIR
    install_command: str = Constants.INSTALL_COMMAND
    install_timeout: float = Constants.INSTALL_TIMEOUT_SEC

    def __post_init__(self) -> None:
        if not self.npm_registry.endswith("/"):
            self.npm_registry += "/"
        self.work_dir = os.path.expanduser(self.work_dir)

    @property
    def has_basic_auth(self) -> bool:
        return bool(self.npm_user and self.npm_password)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistryConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                continue
            if value is None:
                continue
            kwargs[key] = float(value) if key == "install_timeout" else str(value)
        return cls(**kwargs)


def _find_config_file(path: Optional[str], env: Dict[str, str]) -> Optional[str]:
    if path:
        if not os.path.isfile(path):
            raise ConfigError(f"config file not found: {path}")
        return path
    env_path = env.get(f"{Constants.ENV_PREFIX}_CONFIG")
    if env_path:
        if not os.path.isfile(env_path):
            raise ConfigError(f"config file not found: {env_path}")
        return env_path
    for candidate in DEFAULT_CONFIG_LOCATIONS:
        candidate = os.path.expanduser(candidate)
        if os.path.isfile(candidate):
            return candidate
    return None


def _load_yaml_config(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    section = data.get("npm", data)
    if not isinstance(section, dict):
        raise ConfigError(f"`npm` section must be a mapping: {path}")
    return section


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> RegistryConfig:
    """Load configuration with precedence env > YAML > defaults.

    Args:
        path: Explicit YAML file; must exist when given.
        environ: Environment mapping, os.environ by default.

    Returns:
        RegistryConfig: Effective configuration.
    """
    env = os.environ if environ is None else environ
    data: Dict[str, Any] = {}
    config_path = _find_config_file(path, env)
    if config_path:
        logger.debug("Loading config from %s", config_path)
        data.update(_load_yaml_config(config_path))
    for field_name, suffix in _ENV_OVERRIDES.items():
        value = env.get(f"{Constants.ENV_PREFIX}_{suffix}")
        if value and value.strip():
            data[field_name] = value.strip()
    return RegistryConfig.from_dict(data)
