"""NPM version resolver using semantic versioning."""

import logging
from typing import Dict, List, Optional, Tuple

import semantic_version
from semantic_version.base import AllOf, AnyOf, Range

from common.errors import NotFoundError
from ..models import LATEST, normalize_version_spec

logger = logging.getLogger(__name__)


def _parse_spec(spec_str: str) -> Optional[semantic_version.NpmSpec]:
    """Parse an npm range; None when the string is not a valid constraint."""
    try:
        return semantic_version.NpmSpec(spec_str)
    except ValueError:
        return None


def _admit_prereleases(clause):
    """Copy of an NpmSpec clause tree whose ranges order prereleases naturally.

    NpmSpec only lets a prerelease satisfy a comparator with the same
    major.minor.patch; once the request names a prerelease, any prerelease
    inside the bounds is a candidate.
    """
    if isinstance(clause, Range):
        return Range(clause.operator, clause.target, prerelease_policy=Range.PRERELEASE_ALWAYS)
    if isinstance(clause, AnyOf):
        return AnyOf(*(_admit_prereleases(c) for c in clause.clauses))
    if isinstance(clause, AllOf):
        return AllOf(*(_admit_prereleases(c) for c in clause.clauses))
    return clause


def _matching_versions(
    spec_str: str, npm_spec: semantic_version.NpmSpec, versions: Dict[str, object]
) -> List[Tuple[semantic_version.Version, str]]:
    """Return (parsed, original key) pairs satisfying npm_spec."""
    # Prereleases only take part when the caller asked for one.
    include_prerelease = "-" in spec_str
    clause = _admit_prereleases(npm_spec.clause) if include_prerelease else npm_spec.clause
    matches = []
    for raw in versions:
        if "-" in raw and not include_prerelease:
            continue
        try:
            ver = semantic_version.Version(raw)
        except ValueError:
            logger.debug("Skipping invalid semantic version %r", raw)
            continue
        if clause.match(ver):
            matches.append((ver, raw))
    return matches


def _pick(spec_str: str, dist_tags: Dict[str, str], versions: Dict[str, object]) -> Tuple[Optional[str], bool]:
    """One resolution step.

    Returns:
        Tuple of (resolved_version or None, whether spec_str parsed as a range).
    """
    if spec_str in dist_tags:
        return dist_tags[spec_str], True

    npm_spec = _parse_spec(spec_str)
    if npm_spec is None:
        return None, False

    matches = _matching_versions(spec_str, npm_spec, versions)
    if not matches:
        return None, True
    matches.sort(key=lambda item: item[0])
    return matches[-1][1], True


def resolve_version(requested: str, dist_tags: Dict[str, str], versions: Dict[str, object]) -> str:
    """Pick the exact version a tag or range denotes.

    Dist-tags win over range interpretation. A spec that is not a valid
    range falls back to `latest` exactly once.

    Args:
        requested: Tag, exact version or range as requested by the caller.
        dist_tags: Mapping of tag to exact version.
        versions: Mapping of exact version to manifest (only keys are used).

    Returns:
        str: The winning exact version key.

    Raises:
        NotFoundError: Nothing matches, including after the fallback.
    """
    spec_str = normalize_version_spec(requested)
    resolved, parsed = _pick(spec_str, dist_tags, versions)
    if resolved is None and not parsed and spec_str != LATEST:
        logger.debug("Invalid version spec %r, falling back to %s", spec_str, LATEST)
        resolved, _ = _pick(LATEST, dist_tags, versions)
    if resolved is None:
        raise NotFoundError(f"npm: no version matches '{spec_str}'")
    return resolved
