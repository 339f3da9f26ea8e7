"""Token parsing utilities for package requests."""

from typing import Optional, Tuple

from .models import PackageRequest


def tokenize_rightmost_at(s: str) -> Tuple[str, Optional[str]]:
    """Return (name, spec or None) splitting on the rightmost `@`.

    A leading `@` belongs to the scope, so `@scope/pkg` has no spec while
    `@scope/pkg@^1` has spec `^1`.
    """
    s = s.strip()
    idx = s.rfind("@")
    if idx <= 0:
        return s, None
    name = s[:idx].strip()
    spec = s[idx + 1:].strip()
    return name, spec or None


def parse_package_token(token: str, from_github: bool = False) -> PackageRequest:
    """Parse a `name[@spec]` token into a PackageRequest.

    The spec is kept verbatim; normalization happens at resolution time.
    """
    name, spec = tokenize_rightmost_at(token)
    return PackageRequest(name=name, version=spec or "", from_github=from_github)
