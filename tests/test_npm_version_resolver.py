"""Tests for npm version resolution."""

import pytest

from common.errors import NotFoundError
from versioning.models import is_full_version, normalize_version_spec
from versioning.resolvers.npm import resolve_version

VERSIONS = {"1.0.0": {}, "1.1.0": {}, "2.0.0-beta": {}}


class TestResolveVersion:
    """Tests for resolve_version()."""

    def test_range_excludes_prerelease(self):
        assert resolve_version("^1.0.0", {}, VERSIONS) == "1.1.0"

    def test_explicit_prerelease(self):
        assert resolve_version("2.0.0-beta", {}, VERSIONS) == "2.0.0-beta"

    def test_prerelease_range_admits_later_prereleases(self):
        versions = {"1.0.0-alpha": {}, "1.5.0": {}, "2.0.0-beta": {}}
        assert resolve_version(">=1.0.0-alpha", {}, versions) == "2.0.0-beta"

    def test_prerelease_range_keeps_lower_bound(self):
        versions = {"0.9.0-rc.1": {}, "1.0.0-alpha": {}}
        assert resolve_version(">=1.0.0-alpha", {}, versions) == "1.0.0-alpha"

    def test_dist_tag_wins(self):
        assert resolve_version("latest", {"latest": "3.2.1"}, {"3.2.1": {}, "4.0.0": {}}) == "3.2.1"

    def test_named_tag(self):
        assert resolve_version("next", {"latest": "1.1.0", "next": "2.0.0-beta"}, VERSIONS) == "2.0.0-beta"

    def test_empty_spec_means_latest(self):
        assert resolve_version("", {"latest": "1.0.0"}, VERSIONS) == "1.0.0"

    @pytest.mark.parametrize("spec", ["=1.0.0", "v1.0.0"])
    def test_leading_prefix_stripped(self, spec):
        assert resolve_version(spec, {}, VERSIONS) == "1.0.0"

    def test_exact_version(self):
        assert resolve_version("1.0.0", {"latest": "1.1.0"}, VERSIONS) == "1.0.0"

    def test_highest_by_precedence_not_lexical(self):
        versions = {"1.9.0": {}, "1.10.0": {}, "1.2.0": {}}
        assert resolve_version("^1", {}, versions) == "1.10.0"

    def test_tilde_and_comparators(self):
        versions = {"1.2.3": {}, "1.2.9": {}, "1.3.0": {}, "2.0.0": {}}
        assert resolve_version("~1.2.0", {}, versions) == "1.2.9"
        assert resolve_version(">=1.3.0 <2.0.0", {}, versions) == "1.3.0"
        assert resolve_version("*", {}, versions) == "2.0.0"

    def test_invalid_range_falls_back_to_latest(self):
        assert resolve_version("not a range!", {"latest": "1.0.0"}, VERSIONS) == "1.0.0"

    def test_invalid_range_without_latest_fails(self):
        with pytest.raises(NotFoundError):
            resolve_version("not a range!", {}, VERSIONS)

    def test_latest_without_tag_fails(self):
        with pytest.raises(NotFoundError):
            resolve_version("latest", {}, VERSIONS)

    def test_no_match(self):
        with pytest.raises(NotFoundError):
            resolve_version("^5.0.0", {}, VERSIONS)

    def test_invalid_version_keys_skipped(self):
        assert resolve_version("^1.0.0", {}, {"1.0": {}, "1.0.1": {}, "garbage": {}}) == "1.0.1"


class TestVersionSpecHelpers:
    """Tests for spec normalization helpers."""

    def test_normalize(self):
        assert normalize_version_spec("") == "latest"
        assert normalize_version_spec("v2.0.0") == "2.0.0"
        assert normalize_version_spec("=^1") == "^1"
        assert normalize_version_spec("next") == "next"

    def test_full_version(self):
        assert is_full_version("1.2.3")
        assert is_full_version("1.2.3-beta.1+build")
        assert not is_full_version("^1.2.3")
        assert not is_full_version("1.2")
        assert not is_full_version("latest")
