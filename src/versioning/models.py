"""Data models for versioning and package resolution."""

import re
from dataclasses import dataclass

# A fully pinned version: major.minor.patch plus optional prerelease/build suffix.
FULL_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+[\w.+\-]*$")

LATEST = "latest"


def is_full_version(version: str) -> bool:
    """Return True when version pins a single exact release."""
    return bool(FULL_VERSION_RE.match(version))


def normalize_version_spec(spec: str) -> str:
    """Strip one leading `=` or `v`; an empty spec means latest."""
    spec = (spec or "").strip()
    if spec.startswith("=") or spec.startswith("v"):
        spec = spec[1:]
    return spec or LATEST


@dataclass
class PackageRequest:
    """A package to resolve or install."""
    name: str  # may be scoped, e.g. "@scope/name"
    version: str = ""  # dist-tag, exact version or range; empty means latest
    from_github: bool = False  # name is a GitHub "owner/repo" and version a git ref

    @property
    def version_name(self) -> str:
        """Stable key of the form name@version."""
        return f"{self.name}@{self.version}"

    @property
    def is_pinned(self) -> bool:
        return is_full_version(self.version)

    def __str__(self) -> str:
        return self.version_name


@dataclass
class VersionsDocument:
    """Registry packument shape: dist-tags plus the manifest of every version."""
    dist_tags: dict
    versions: dict
