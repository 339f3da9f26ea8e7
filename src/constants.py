"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    INVALID_INPUT = 2
    NOT_FOUND = 3
    CONNECTION_ERROR = 4
    INSTALL_ERROR = 5


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    REGISTRY_URL_JSR = "https://npm.jsr.io/"
    JSR_SCOPE = "@jsr/"
    GITHUB_PACKAGES_HOST = "npm.pkg.github.com"
    GITHUB_CODELOAD_URL = "https://codeload.github.com/"

    REQUEST_TIMEOUT = 15  # Timeout in seconds for registry requests
    NPM_ACCEPT_HEADER = "application/json"

    CACHE_KEY_PREFIX = "npm:"
    CACHE_TTL_EXACT_SEC = 7 * 24 * 60 * 60
    CACHE_TTL_RESOLVED_SEC = 10 * 60
    CACHE_MAX_ENTRIES = 10000

    PACKAGE_JSON_FILE = "package.json"
    LOCKFILE = "pnpm-lock.yaml"
    NODE_MODULES = "node_modules"
    INSTALL_COMMAND = "pnpm"
    INSTALL_MAX_ATTEMPTS = 3
    INSTALL_RETRY_DELAY_SEC = 0.1
    INSTALL_TIMEOUT_SEC = 600

    ENV_PREFIX = "NPMGATE"
    LOG_FORMAT = "[%(levelname)s] %(message)s"

    MAX_PACKAGE_NAME_LENGTH = 214
    # Script extensions honored in a `sideEffects` file list
    ES_EXTENSIONS = (".mjs", ".js", ".jsx", ".mts", ".ts", ".tsx", ".cjs", ".cts")
    NODE_TYPES_PACKAGE = "@types/node"
    NODE_TYPES_VERSION = "22.7.5"
    DEFAULT_WORK_DIR = "~/.npmgate"
