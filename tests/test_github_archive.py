"""Tests for the GitHub source-archive installer."""

import io
import tarfile
from unittest.mock import MagicMock, patch

import pytest

from common.errors import InstallError, UpstreamError
from installer.github import archive_url, install_from_archive


def _tarball(members):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _response(status_code=200, content=b""):
    res = MagicMock()
    res.status_code = status_code
    res.content = content
    res.text = content.decode("latin-1")
    return res


class TestInstallFromArchive:
    """Tests for install_from_archive()."""

    def test_archive_url(self):
        assert archive_url("owner/repo", "v1.0.0") == "https://codeload.github.com/owner/repo/tar.gz/v1.0.0"
        assert archive_url("owner/repo", "") == "https://codeload.github.com/owner/repo/tar.gz/HEAD"

    @patch("installer.github.safe_get")
    def test_extracts_without_top_level_dir(self, mock_get, tmp_path):
        mock_get.return_value = _response(content=_tarball({
            "repo-abc123/package.json": b'{"name": "repo", "files": ["dist"]}',
            "repo-abc123/src/index.js": b"export default 1",
        }))
        stale = tmp_path / "node_modules" / "owner" / "repo"
        stale.mkdir(parents=True)
        (stale / "old.js").write_text("old")

        pkg_dir = install_from_archive(str(tmp_path), "owner/repo", "v1.0.0")

        assert pkg_dir == str(stale)
        assert (stale / "package.json").is_file()
        assert (stale / "src" / "index.js").read_text() == "export default 1"
        assert not (stale / "old.js").exists()

    @patch("installer.github.safe_get")
    def test_rejects_path_traversal(self, mock_get, tmp_path):
        mock_get.return_value = _response(content=_tarball({"repo-x/../../evil.js": b"x"}))
        with pytest.raises(InstallError, match="unsafe"):
            install_from_archive(str(tmp_path), "owner/repo", "main")
        assert not (tmp_path / "node_modules" / "evil.js").exists()

    @patch("installer.github.safe_get")
    def test_http_error(self, mock_get, tmp_path):
        mock_get.return_value = _response(status_code=404, content=b"Not Found")
        with pytest.raises(InstallError, match="HTTP 404"):
            install_from_archive(str(tmp_path), "owner/repo", "nope")

    @patch("installer.github.safe_get")
    def test_transport_error(self, mock_get, tmp_path):
        mock_get.side_effect = UpstreamError("github: connection error")
        with pytest.raises(InstallError):
            install_from_archive(str(tmp_path), "owner/repo", "main")

    @patch("installer.github.safe_get")
    def test_corrupt_archive(self, mock_get, tmp_path):
        mock_get.return_value = _response(content=b"not a tarball")
        with pytest.raises(InstallError, match="extract"):
            install_from_archive(str(tmp_path), "owner/repo", "main")
