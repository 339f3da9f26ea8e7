"""NPM registry package.

This package provides npm metadata support:
- naming.py: package name validation and helpers
- manifest.py: PackageInfo and the package.json normalizer
- client.py: HTTP interactions with npm-compatible registries
- service.py: cached, per-key deduplicated metadata lookups
"""

from .client import RegistryClient
from .manifest import Exports, PackageInfo, SideEffects, normalize, parse_manifest
from .naming import split_package_name, to_types_package_name, validate_package_name
from .service import PackageInfoService

__all__ = [
    "RegistryClient",
    "Exports",
    "PackageInfo",
    "SideEffects",
    "normalize",
    "parse_manifest",
    "split_package_name",
    "to_types_package_name",
    "validate_package_name",
    "PackageInfoService",
]
