"""Install a GitHub-hosted package straight from its source archive.

pnpm honors the `files` allow-list of git dependencies, which can strip
sources a consumer needs. Fetching the codeload tarball and unpacking it over
node_modules/<name> keeps the whole tree.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tarfile
import tempfile

from constants import Constants
from common.errors import InstallError, UpstreamError
from common.http_client import safe_get
from common.logging_utils import Timer

logger = logging.getLogger(__name__)

ARCHIVE_TIMEOUT_SEC = 60


def archive_url(repo: str, ref: str) -> str:
    """codeload URL of the gzipped tarball of repo at ref."""
    return f"{Constants.GITHUB_CODELOAD_URL}{repo}/tar.gz/{ref or 'HEAD'}"


def _extract_stripped(tf: tarfile.TarFile, dest: str) -> None:
    """Extract members under dest, dropping the archive's top-level directory."""
    dest_real = os.path.realpath(dest)
    for member in tf.getmembers():
        parts = member.name.split("/", 1)
        if len(parts) < 2 or not parts[1]:
            continue
        if not (member.isfile() or member.isdir()):
            continue
        target = os.path.realpath(os.path.join(dest_real, parts[1]))
        if not target.startswith(dest_real + os.sep):
            raise InstallError(f"unsafe tar member path: {member.name}")
        if member.isdir():
            os.makedirs(target, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(target), exist_ok=True)
        src = tf.extractfile(member)
        if src is None:
            continue
        with src, open(target, "wb") as out:
            shutil.copyfileobj(src, out)


def install_from_archive(workdir: str, repo: str, ref: str) -> str:
    """Replace node_modules/<repo> with the contents of repo at ref.

    Returns:
        str: The package directory.

    Raises:
        InstallError: Download failed or the archive is unusable.
    """
    url = archive_url(repo, ref)
    with Timer() as timer:
        try:
            res = safe_get(url, context="github", timeout=ARCHIVE_TIMEOUT_SEC)
        except UpstreamError as exc:
            raise InstallError(f"github: download {repo}#{ref}: {exc}") from exc
        if res.status_code != 200:
            raise InstallError(f"github: download {repo}#{ref}: HTTP {res.status_code}", output=res.text)

        pkg_dir = os.path.join(workdir, Constants.NODE_MODULES, repo)
        os.makedirs(os.path.dirname(pkg_dir), exist_ok=True)
        staging = tempfile.mkdtemp(prefix=".npmgate-gh-", dir=os.path.dirname(pkg_dir))
        try:
            with tarfile.open(fileobj=io.BytesIO(res.content), mode="r:gz") as tf:
                _extract_stripped(tf, staging)
            shutil.rmtree(pkg_dir, ignore_errors=True)
            os.replace(staging, pkg_dir)
        except (tarfile.TarError, OSError) as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise InstallError(f"github: extract {repo}#{ref}: {exc}") from exc
        except InstallError:
            shutil.rmtree(staging, ignore_errors=True)
            raise
    logger.debug("github archive %s#%s installed in %sms", repo, ref, timer.duration_ms())
    return pkg_dir
