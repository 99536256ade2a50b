"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    CONNECTION_ERROR = 2


class PackageSourceType(Enum):
    """Kinds of package record the resolver can produce.

    Args:
        Enum (string): Value stored on package metadata as ``type``.
    """

    NPM = "npm"
    FILE = "file"
    GITHUB = "github"
    NOT_SUPPORTED = "not_supported"
    NOT_FOUND = "not_found"


class SpecifierType(Enum):
    """Specifier classifications reported by the specifier analysis."""

    DIRECTORY = "directory"
    FILE = "file"
    GIT = "git"
    REMOTE = "remote"
    ALIAS = "alias"
    RANGE = "range"
    VERSION = "version"
    TAG = "tag"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    GITHUB_URL = "https://github.com"
    LATEST_TAG = "latest"
    SATISFIES_TAG = "satisfies"
    COMMIT_CATEGORY = "Commit"
    DEFAULT_GITHUB_TAGGED_COMMITS = ["Release", "Tag"]
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    ENV_LOG_LEVEL = "DEPSCOUT_LOG_LEVEL"
    ENV_REGISTRY_URL = "DEPSCOUT_REGISTRY_URL"
    ENV_SHOW_TAGGED_VERSIONS = "DEPSCOUT_SHOW_TAGGED_VERSIONS"
    ENV_NPM_DIST_TAG_FILTER = "DEPSCOUT_NPM_DIST_TAG_FILTER"
    ENV_GITHUB_TAGGED_COMMITS = "DEPSCOUT_GITHUB_TAGGED_COMMITS"
