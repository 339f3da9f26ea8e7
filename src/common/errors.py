"""Error taxonomy shared by the registry, resolver and installer layers.

Every failure surfaced by npmgate derives from NpmgateError so the CLI can map
errors to exit codes in one place.
"""

from __future__ import annotations

from typing import Optional


class NpmgateError(Exception):
    """Base error."""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotFoundError(NpmgateError):
    """Package or version absent upstream, or no version satisfies the spec."""

    code = "NOT_FOUND"


class UpstreamError(NpmgateError):
    """Registry answered with an unexpected status or could not be reached."""

    code = "UPSTREAM_ERROR"

    def __init__(self, message: str, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class MalformedError(NpmgateError):
    """Response could not be decoded or lacks a required field."""

    code = "MALFORMED"


class InstallError(NpmgateError):
    """Installer process failed or its post-condition never held."""

    code = "INSTALL_FAILURE"

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class ConfigError(NpmgateError):
    """Configuration file missing required shape or unreadable."""

    code = "CONFIG_ERROR"
