"""npmgate - resolve npm package metadata and install packages on disk.

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys

from constants import ExitCodes
from common.errors import ConfigError, InstallError, NotFoundError, NpmgateError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from config import load_config
from args import parse_args
from installer import Installer
from registry.npm import PackageInfoService, validate_package_name
from versioning.models import PackageRequest
from versioning.parser import parse_package_token

logger = logging.getLogger(__name__)


def _exit_code_for(exc: NpmgateError) -> int:
    if isinstance(exc, NotFoundError):
        return ExitCodes.NOT_FOUND.value
    if isinstance(exc, InstallError):
        return ExitCodes.INSTALL_ERROR.value
    if isinstance(exc, ConfigError):
        return ExitCodes.FILE_ERROR.value
    return ExitCodes.CONNECTION_ERROR.value


def run_resolve(service: PackageInfoService, req: PackageRequest) -> int:
    info = service.fetch_package_info(req.name, req.version)
    sys.stdout.write(json.dumps(info.to_manifest(), indent=2) + "\n")
    return ExitCodes.SUCCESS.value


def run_install(service: PackageInfoService, installer: Installer, req: PackageRequest, workdir=None) -> int:
    info = None
    if not req.from_github:
        info = service.fetch_package_info(req.name, req.version)
        # install the resolved version so the workdir key is stable
        req = PackageRequest(name=req.name, version=info.version)
    if not workdir:
        workdir = os.path.join(service.config.work_dir, "npm", req.version_name)
    os.makedirs(workdir, exist_ok=True)
    installer.install(workdir, req, info)
    sys.stdout.write(workdir + "\n")
    return ExitCodes.SUCCESS.value


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", command=args.COMMAND)
        )

    req = parse_package_token(args.PACKAGE, from_github=getattr(args, "GITHUB", False))
    if not req.from_github and not validate_package_name(req.name):
        logger.error("Invalid package name: %s", req.name)
        return ExitCodes.INVALID_INPUT.value

    try:
        config = load_config(args.CONFIG)
        service = PackageInfoService(config)
        if args.COMMAND == "resolve":
            return run_resolve(service, req)
        return run_install(service, Installer(config), req, args.WORKDIR)
    except NpmgateError as exc:
        logger.error("%s", exc)
        return _exit_code_for(exc)


if __name__ == "__main__":
    sys.exit(main())
