"""Package installation via an external package manager.

- runner.py: subprocess capability injected into the installer
- pnpm.py: retrying, per-key serialized pnpm driver
- github.py: source-archive install for GitHub-hosted packages
"""

from .pnpm import Installer, build_env
from .runner import CommandRunner

__all__ = ["Installer", "CommandRunner", "build_env"]
