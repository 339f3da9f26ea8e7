"""npm package name helpers.

Validation follows the rules of https://github.com/npm/validate-npm-package-name
restricted to the character set the registry accepts for new packages.
"""

import re

from constants import Constants

_NAME_PART_RE = re.compile(r"[a-zA-Z0-9._\-]+")


def validate_package_name(name: str) -> bool:
    """Return True if name is a syntactically valid (optionally scoped) npm name."""
    if not name or len(name) > Constants.MAX_PACKAGE_NAME_LENGTH:
        return False
    scope = ""
    bare = name
    if name.startswith("@"):
        scope, _, bare = name.partition("/")
        scope = scope[1:]
        if not scope:
            return False
    if scope and not _NAME_PART_RE.fullmatch(scope):
        return False
    return bool(bare) and bool(_NAME_PART_RE.fullmatch(bare))


def split_package_name(path: str) -> str:
    """Return the package part of a module path.

    >>> split_package_name("/@scope/pkg/sub/file.js")
    '@scope/pkg'
    >>> split_package_name("react/jsx-runtime")
    'react'
    """
    parts = path.strip("/").split("/")
    if parts[0].startswith("@") and len(parts) > 1:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def to_types_package_name(name: str) -> str:
    """Map a package to its DefinitelyTyped counterpart (@scope/x -> @types/scope__x)."""
    if name.startswith("@"):
        name = name[1:].replace("/", "__", 1)
    return f"@types/{name}"
