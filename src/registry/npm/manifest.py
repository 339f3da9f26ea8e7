"""Canonical package manifest model and the normalizer that produces it.

package.json documents in the wild are loosely typed: `browser` may be a
string or an object, `sideEffects` a boolean, a string or a list, `exports`
anything at all. normalize() inspects each raw node's type before branching
and silently drops shapes it does not recognize, so it never fails on a
well-formed JSON object.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from constants import Constants
from common.errors import MalformedError

VENDOR_FIELD = "esm.sh"


class ExportsKind(Enum):
    """Variants of the `exports` field."""
    NONE = "none"
    ALIAS = "alias"
    ORDERED = "ordered"


@dataclass(frozen=True)
class Exports:
    """Tagged union for `exports`: absent, a single alias, or ordered entries.

    Subpath and condition matching is order-sensitive, so object-shaped exports
    are kept as a sequence of (key, value) pairs in declaration order.
    """
    kind: ExportsKind = ExportsKind.NONE
    alias: str = ""
    entries: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def none(cls) -> "Exports":
        return cls()

    @classmethod
    def of_alias(cls, value: str) -> "Exports":
        return cls(kind=ExportsKind.ALIAS, alias=value)

    @classmethod
    def ordered(cls, pairs) -> "Exports":
        return cls(kind=ExportsKind.ORDERED, entries=tuple(pairs))

    def __bool__(self) -> bool:
        return self.kind is not ExportsKind.NONE

    def keys(self) -> List[str]:
        return [k for k, _ in self.entries]

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.entries:
            if k == key:
                return v
        return default

    def to_json(self) -> Union[None, str, Dict[str, Any]]:
        """Render back to the JSON shape it was read from."""
        if self.kind is ExportsKind.ALIAS:
            return self.alias
        if self.kind is ExportsKind.ORDERED:
            return dict(self.entries)
        return None


class SideEffectsKind(Enum):
    """Variants of the `sideEffects` field."""
    ALL = "all"
    NONE = "none"
    ONLY = "only"


@dataclass(frozen=True)
class SideEffects:
    """Tagged union for `sideEffects`.

    ALL keeps every module, NONE marks the package side-effect free, ONLY
    restricts side effects to the listed script files.
    """
    kind: SideEffectsKind = SideEffectsKind.ALL
    files: Optional[FrozenSet[str]] = None

    @classmethod
    def only(cls, files) -> "SideEffects":
        return cls(kind=SideEffectsKind.ONLY, files=frozenset(files))

    def to_json(self) -> Union[None, bool, List[str]]:
        if self.kind is SideEffectsKind.NONE:
            return False
        if self.kind is SideEffectsKind.ONLY:
            return sorted(self.files or ())
        return None


@dataclass
class PackageInfo:  # pylint: disable=too-many-instance-attributes
    """Normalized package.json."""
    name: str = ""
    version: str = ""
    type: str = ""
    main: str = ""
    module: str = ""
    es2015: str = ""
    jsnext_main: str = ""
    types: str = ""
    typings: str = ""
    browser: Dict[str, str] = field(default_factory=dict)
    side_effects: SideEffects = field(default_factory=SideEffects)
    dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)
    imports: Dict[str, Any] = field(default_factory=dict)
    types_versions: Dict[str, Any] = field(default_factory=dict)
    exports: Exports = field(default_factory=Exports)
    files: List[str] = field(default_factory=list)
    deprecated: str = ""
    vendor: Dict[str, Any] = field(default_factory=dict)

    @property
    def side_effects_false(self) -> bool:
        return self.side_effects.kind is SideEffectsKind.NONE

    @property
    def is_types_only(self) -> bool:
        """A package shipping declarations only (e.g. @types/*)."""
        return not self.main and not self.module and bool(self.types)

    def to_manifest(self) -> Dict[str, Any]:
        """Render as a package.json document."""
        doc: Dict[str, Any] = {"name": self.name, "version": self.version}
        scalars = (
            ("type", self.type),
            ("main", self.main),
            ("module", self.module),
            ("es2015", self.es2015),
            ("jsnext:main", self.jsnext_main),
            ("types", self.types),
            ("typings", self.typings),
        )
        for key, value in scalars:
            if value:
                doc[key] = value
        if self.browser:
            doc["browser"] = {k: (v if v else False) for k, v in self.browser.items()}
        side_effects = self.side_effects.to_json()
        if side_effects is not None:
            doc["sideEffects"] = side_effects
        for key, mapping in (
            ("dependencies", self.dependencies),
            ("peerDependencies", self.peer_dependencies),
            ("imports", self.imports),
            ("typesVersions", self.types_versions),
        ):
            if mapping:
                doc[key] = mapping
        if self.exports:
            doc["exports"] = self.exports.to_json()
        if self.files:
            doc["files"] = list(self.files)
        if self.deprecated:
            doc["deprecated"] = self.deprecated
        if self.vendor:
            doc[VENDOR_FIELD] = self.vendor
        return doc

    def to_json(self) -> bytes:
        """Cache encoding: the package.json form plus the exact sideEffects variant.

        The package.json form alone is lossy for ONLY with no script files,
        which renders as `[]` and would read back as ALL.
        """
        doc = {
            "manifest": self.to_manifest(),
            "sideEffects": {
                "kind": self.side_effects.kind.value,
                "files": sorted(self.side_effects.files) if self.side_effects.files is not None else None,
            },
        }
        return json.dumps(doc).encode("utf-8")

    @classmethod
    def from_json(cls, data: Union[bytes, str]) -> "PackageInfo":
        """Decode bytes written by to_json().

        Raises:
            MalformedError: data is not a cache document.
        """
        doc = parse_manifest(data)
        manifest = doc.get("manifest")
        tagged = doc.get("sideEffects")
        if not isinstance(manifest, dict) or not isinstance(tagged, dict):
            raise MalformedError("npm: not a cached package document")
        info = normalize(manifest)
        try:
            kind = SideEffectsKind(tagged.get("kind"))
        except ValueError as exc:
            raise MalformedError(f"npm: unknown sideEffects kind in cache: {exc}") from exc
        if kind is SideEffectsKind.ONLY:
            info.side_effects = SideEffects.only(_str_list(tagged.get("files")))
        else:
            info.side_effects = SideEffects(kind=kind)
        return info


def parse_manifest(data: Union[bytes, str]) -> Dict[str, Any]:
    """Decode a package.json document.

    Raises:
        MalformedError: data is not JSON or not a JSON object.
    """
    try:
        doc = json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedError(f"npm: invalid package.json: {exc}") from exc
    if not isinstance(doc, dict):
        raise MalformedError("npm: package.json must be a JSON object")
    return doc


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str_map(value: Any) -> Dict[str, str]:
    return {k: v for k, v in _dict(value).items() if isinstance(v, str)}


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _main_value(value: Any) -> str:
    """Primary entry of a string-or-object field such as `module`."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return _str(value.get("main"))
    return ""


def _normalize_browser(value: Any) -> Dict[str, str]:
    browser: Dict[str, str] = {}
    if isinstance(value, str):
        if value:
            browser["."] = value
    elif isinstance(value, dict):
        for key, target in value.items():
            if isinstance(target, str):
                browser[key] = target
            elif target is False:
                # module disabled for browsers
                browser[key] = ""
    return browser


def _normalize_side_effects(value: Any) -> SideEffects:
    if isinstance(value, bool):
        return SideEffects() if value else SideEffects(kind=SideEffectsKind.NONE)
    if isinstance(value, str):
        return SideEffects(kind=SideEffectsKind.NONE) if value == "false" else SideEffects()
    if isinstance(value, list) and value:
        return SideEffects.only(
            v for v in value if isinstance(v, str) and v.endswith(Constants.ES_EXTENSIONS)
        )
    return SideEffects()


def _normalize_exports(value: Any) -> Exports:
    if isinstance(value, str):
        return Exports.of_alias(value) if value else Exports.none()
    if isinstance(value, dict):
        # dicts decoded by json keep the document's key order
        return Exports.ordered(value.items())
    return Exports.none()


def normalize(raw: Dict[str, Any]) -> PackageInfo:
    """Convert a raw package.json mapping into a PackageInfo. Never raises on shape."""
    if not isinstance(raw, dict):
        return PackageInfo()
    return PackageInfo(
        name=_str(raw.get("name")),
        version=_str(raw.get("version")),
        type=_str(raw.get("type")),
        main=_str(raw.get("main")),
        module=_main_value(raw.get("module")),
        es2015=_main_value(raw.get("es2015")),
        jsnext_main=_str(raw.get("jsnext:main")),
        types=_str(raw.get("types")),
        typings=_str(raw.get("typings")),
        browser=_normalize_browser(raw.get("browser")),
        side_effects=_normalize_side_effects(raw.get("sideEffects")),
        dependencies=_str_map(raw.get("dependencies")),
        peer_dependencies=_str_map(raw.get("peerDependencies")),
        imports=dict(_dict(raw.get("imports"))),
        types_versions=dict(_dict(raw.get("typesVersions"))),
        exports=_normalize_exports(raw.get("exports")),
        files=_str_list(raw.get("files")),
        deprecated=_str(raw.get("deprecated")),
        vendor=dict(_dict(raw.get(VENDOR_FIELD))),
    )
