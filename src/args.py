"""Argument parsing functionality for npmgate."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="npmgate",
        description="npmgate - resolve and install npm packages",
        add_help=True,
    )
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML config file",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: NPMGATE_LOG_LEVEL, then INFO)",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)

    subparsers = parser.add_subparsers(dest="COMMAND", required=True)

    resolve = subparsers.add_parser("resolve", help="Print the normalized manifest of a package")
    resolve.add_argument("PACKAGE",
                         help="Package spec, e.g. react@^18 or @scope/name@latest")

    install = subparsers.add_parser("install", help="Install a package into a work directory")
    install.add_argument("PACKAGE",
                         help="Package spec, e.g. react@18.2.0")
    install.add_argument("-w", "--workdir",
                         dest="WORKDIR",
                         help="Target directory (default: <work_dir>/npm/<name>@<version>)",
                         action="store",
                         type=str)
    install.add_argument("--github",
                         dest="GITHUB",
                         help="Treat PACKAGE as owner/repo@ref on GitHub",
                         action="store_true")

    return parser.parse_args(argv)
