"""Specifier classification and grammar parsing.

Understands the specifier shapes npm accepts in a manifest: local paths,
hosted git shorthands and URLs, raw git URLs, remote tarballs, aliases and
registry ranges/tags.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..common.logging_utils import extra_context, is_debug_enabled
from ..constants import SpecifierType
from .errors import UnsupportedProtocolError
from .semver import is_fixed_version, valid_range

logger = logging.getLogger(__name__)

_FILE_PREFIX = re.compile(r"^file:(.*)$")
_PATH_MARKER = re.compile(r"^(?:\.{1,2}(?:[/\\]|$)|/|~/|[a-zA-Z]:[/\\])")
_TARBALL_SUFFIX = re.compile(r"\.(?:tgz|tar\.gz|tar)$", re.IGNORECASE)

# user/repo[#commit-ish]; the github: prefix is stripped before matching
_GITHUB_SHORTHAND = re.compile(r"^/?([^:/\s#]+)/([\w.\-]+?)(?:\.git)?(?:#(.*))?$")

_HOSTED_PREFIXED = re.compile(
    r"^(github|gitlab|bitbucket):([^/\s#]+)/([^/\s#]+?)(?:\.git)?(?:#(.*))?$"
)
_HOSTED_BARE = re.compile(r"^([^:/\s#@.][^:/\s#]*)/([\w.\-]+?)(?:\.git)?(?:#(.*))?$")
_HOSTED_URL = re.compile(
    r"^(?:git\+)?(?:https?|ssh|git)://(?:[^@/\s]+@)?"
    r"(github\.com|gitlab\.com|bitbucket\.org)[:/]"
    r"([^/\s]+)/([^/\s#]+?)(?:\.git)?/?(?:#(.*))?$"
)
_HOSTED_SCP = re.compile(
    r"^(?:git\+ssh://)?git@(github\.com|gitlab\.com|bitbucket\.org):"
    r"([^/\s]+)/([^/\s#]+?)(?:\.git)?(?:#(.*))?$"
)
_RAW_GIT = re.compile(r"^(?:git\+[a-z]+://|git://|ssh://|git@)", re.IGNORECASE)
_REMOTE = re.compile(r"^https?://", re.IGNORECASE)
_PROTOCOL = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")

_HOST_TYPES = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "bitbucket.org": "bitbucket",
}


@dataclass(frozen=True)
class LocalReference:
    """A local directory or file reference."""
    path: str


@dataclass(frozen=True)
class GitHubReference:
    """A GitHub ``user/repo[#commit-ish]`` reference.

    An empty ``commitish`` means the default branch.
    """
    user: str
    repo: str
    commitish: str = ""

    @property
    def user_repo(self) -> str:
        return f"{self.user}/{self.repo}"


@dataclass(frozen=True)
class HostedGitInfo:
    """Git host details for a hosted git specifier."""
    type: str
    user: str
    project: str
    committish: str = ""

    def path(self, no_committish: bool = False) -> str:
        """Normalized ``user/project[#committish]`` form."""
        base = f"{self.user}/{self.project}"
        if no_committish or not self.committish:
            return base
        return f"{base}#{self.committish}"


@dataclass(frozen=True)
class SpecifierInfo:
    """Classification of a raw specifier."""
    type: SpecifierType
    raw: str
    hosted: Optional[HostedGitInfo] = None


def parse_local_reference(specifier: str) -> Optional[LocalReference]:
    """Match the local-reference grammar, capturing the path."""
    if specifier is None:
        return None
    text = specifier.strip()
    match = _FILE_PREFIX.match(text)
    if match:
        return LocalReference(path=match.group(1))
    if _PATH_MARKER.match(text):
        return LocalReference(path=text)
    return None


def parse_github_reference(specifier: str) -> Optional[GitHubReference]:
    """Match the GitHub shorthand grammar after stripping ``github:``."""
    if specifier is None:
        return None
    text = specifier.strip()
    if text.startswith("github:"):
        text = text[len("github:"):]
    match = _GITHUB_SHORTHAND.match(text)
    if not match:
        return None
    return GitHubReference(user=match.group(1), repo=match.group(2), commitish=match.group(3) or "")


def _hosted_info(text: str) -> Optional[HostedGitInfo]:
    match = _HOSTED_PREFIXED.match(text)
    if match:
        host, user, project, committish = match.groups()
        return HostedGitInfo(type=host, user=user, project=project, committish=committish or "")

    for pattern in (_HOSTED_URL, _HOSTED_SCP):
        match = pattern.match(text)
        if match:
            domain, user, project, committish = match.groups()
            return HostedGitInfo(
                type=_HOST_TYPES[domain.lower()],
                user=user,
                project=project,
                committish=committish or "",
            )

    match = _HOSTED_BARE.match(text)
    if match:
        user, project, committish = match.groups()
        return HostedGitInfo(type="github", user=user, project=project, committish=committish or "")
    return None


def classify_specifier(specifier: str) -> SpecifierInfo:
    """Classify a raw specifier.

    Raises:
        UnsupportedProtocolError: the specifier starts with a protocol npm
            does not know about.
    """
    text = (specifier or "").strip()

    local = parse_local_reference(text)
    if local is not None:
        kind = SpecifierType.FILE if _TARBALL_SUFFIX.search(local.path) else SpecifierType.DIRECTORY
        return SpecifierInfo(type=kind, raw=text)

    if text.startswith("npm:"):
        return SpecifierInfo(type=SpecifierType.ALIAS, raw=text)

    hosted = _hosted_info(text)
    if hosted is not None:
        return SpecifierInfo(type=SpecifierType.GIT, raw=text, hosted=hosted)

    if _RAW_GIT.match(text):
        return SpecifierInfo(type=SpecifierType.GIT, raw=text)

    if _REMOTE.match(text):
        return SpecifierInfo(type=SpecifierType.REMOTE, raw=text)

    protocol = _PROTOCOL.match(text)
    if protocol:
        if is_debug_enabled(logger):
            logger.debug(
                "Unsupported specifier protocol",
                extra=extra_context(
                    event="decision",
                    component="specifier",
                    action="classify",
                    outcome="unsupported_protocol",
                    protocol=protocol.group(1),
                )
            )
        raise UnsupportedProtocolError(text, protocol.group(1))

    if is_fixed_version(text):
        return SpecifierInfo(type=SpecifierType.VERSION, raw=text)
    if valid_range(text):
        return SpecifierInfo(type=SpecifierType.RANGE, raw=text)
    return SpecifierInfo(type=SpecifierType.TAG, raw=text)


class SpecifierClassifier:
    """Specifier analysis capability handed to resolvers."""

    def classify(self, specifier: str) -> SpecifierInfo:
        """Classify ``specifier``; see :func:`classify_specifier`."""
        return classify_specifier(specifier)
