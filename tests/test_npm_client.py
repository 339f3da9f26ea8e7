"""Tests for the npm registry client."""

import json
from unittest.mock import MagicMock, patch

import pytest

from common.errors import MalformedError, NotFoundError, UpstreamError
from config import RegistryConfig
from registry.npm.client import RegistryClient
from versioning.models import VersionsDocument


def _response(status_code=200, body=None, text=None):
    res = MagicMock()
    res.status_code = status_code
    res.text = text if text is not None else json.dumps(body if body is not None else {})
    return res


class TestRegistryRouting:
    """URL and auth selection in build_request()."""

    def test_default_registry_exact_version_appends_path(self):
        client = RegistryClient(RegistryConfig(npm_registry="https://r.example.com"))
        url, _, _, single = client.build_request("react", "18.2.0")
        assert url == "https://r.example.com/react/18.2.0"
        assert single is True

    def test_range_requests_full_document(self):
        client = RegistryClient()
        url, _, _, single = client.build_request("react", "^18")
        assert url == "https://registry.npmjs.org/react"
        assert single is False

    def test_jsr_never_appends_version_or_auth(self):
        client = RegistryClient(RegistryConfig(npm_token="secret", npm_user="u", npm_password="p"))
        url, headers, auth, single = client.build_request("@jsr/std__path", "1.0.0")
        assert url == "https://npm.jsr.io/@jsr/std__path"
        assert single is False
        assert "Authorization" not in headers
        assert auth is None

    def test_outside_private_scope_goes_public(self):
        cfg = RegistryConfig(npm_registry="https://npm.corp.example/", npm_registry_scope="@corp")
        client = RegistryClient(cfg)
        assert client.build_request("@corp/ui", "latest")[0] == "https://npm.corp.example/@corp/ui"
        assert client.build_request("lodash", "latest")[0] == "https://registry.npmjs.org/lodash"

    def test_github_packages_never_appends_version(self):
        client = RegistryClient(RegistryConfig(npm_registry="https://npm.pkg.github.com/"))
        url, _, _, single = client.build_request("@org/pkg", "1.0.0")
        assert url == "https://npm.pkg.github.com/@org/pkg"
        assert single is False

    def test_bearer_token(self):
        client = RegistryClient(RegistryConfig(npm_token="tok"))
        _, headers, auth, _ = client.build_request("react", "latest")
        assert headers["Authorization"] == "Bearer tok"
        assert auth is None

    def test_basic_auth_without_token(self):
        client = RegistryClient(RegistryConfig(npm_user="u", npm_password="p"))
        _, headers, auth, _ = client.build_request("react", "latest")
        assert "Authorization" not in headers
        assert (auth.username, auth.password) == ("u", "p")

    def test_token_wins_over_basic_auth(self):
        client = RegistryClient(RegistryConfig(npm_token="tok", npm_user="u", npm_password="p"))
        _, headers, auth, _ = client.build_request("react", "latest")
        assert headers["Authorization"] == "Bearer tok"
        assert auth is None


class TestFetchRaw:
    """Response handling in fetch_raw()."""

    @patch("registry.npm.client.safe_get")
    def test_single_manifest(self, mock_get):
        mock_get.return_value = _response(body={"name": "react", "version": "18.2.0"})
        raw = RegistryClient().fetch_raw("react", "18.2.0")
        assert raw == {"name": "react", "version": "18.2.0"}
        assert mock_get.call_args[0][0] == "https://registry.npmjs.org/react/18.2.0"
        assert mock_get.call_args[1]["context"] == "npm"

    @patch("registry.npm.client.safe_get")
    def test_versions_document(self, mock_get):
        mock_get.return_value = _response(body={
            "dist-tags": {"latest": "1.0.0"},
            "versions": {"1.0.0": {"name": "a", "version": "1.0.0"}},
        })
        raw = RegistryClient().fetch_raw("a", "latest")
        assert isinstance(raw, VersionsDocument)
        assert raw.dist_tags == {"latest": "1.0.0"}
        assert list(raw.versions) == ["1.0.0"]

    @patch("registry.npm.client.safe_get")
    def test_missing_versions_is_malformed(self, mock_get):
        mock_get.return_value = _response(body={"dist-tags": {"latest": "1.0.0"}, "versions": {}})
        with pytest.raises(MalformedError, match="versions"):
            RegistryClient().fetch_raw("a", "latest")

    @pytest.mark.parametrize("status", [404, 401])
    @patch("registry.npm.client.safe_get")
    def test_not_found_exact_version(self, mock_get, status):
        mock_get.return_value = _response(status_code=status, text="nope")
        with pytest.raises(NotFoundError, match="version 1.0.0 of 'a' not found"):
            RegistryClient().fetch_raw("a", "1.0.0")

    @patch("registry.npm.client.safe_get")
    def test_not_found_package(self, mock_get):
        mock_get.return_value = _response(status_code=404, text="nope")
        with pytest.raises(NotFoundError, match="package 'a' not found"):
            RegistryClient().fetch_raw("a", "^1")

    @patch("registry.npm.client.safe_get")
    def test_other_status_is_upstream_error(self, mock_get):
        mock_get.return_value = _response(status_code=503, text="maintenance")
        with pytest.raises(UpstreamError) as excinfo:
            RegistryClient().fetch_raw("a", "latest")
        assert excinfo.value.status == 503
        assert excinfo.value.body == "maintenance"
        assert "503" in str(excinfo.value) and "maintenance" in str(excinfo.value)

    @patch("registry.npm.client.safe_get")
    def test_invalid_json_is_malformed(self, mock_get):
        mock_get.return_value = _response(text="<html>")
        with pytest.raises(MalformedError):
            RegistryClient().fetch_raw("a", "1.0.0")


class TestSafeGetTimeout:
    """The transport layer bounds each call."""

    @patch("common.http_client.requests.get")
    def test_timeout_passed_and_errors_wrapped(self, mock_requests_get):
        import requests

        mock_requests_get.side_effect = requests.Timeout("slow")
        with pytest.raises(UpstreamError, match="timed out"):
            RegistryClient().fetch_raw("a", "latest")
        assert mock_requests_get.call_args[1]["timeout"] == 15
