"""Resolver configuration.

Values come from defaults, then an optional YAML file, then environment
variables (highest precedence). Loading never raises for a missing file so a
misconfigured environment still resolves with defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .constants import Constants
from .versioning.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_KEY_ALIASES = {
    "showTaggedVersions": "show_tagged_versions",
    "npmDistTagFilter": "npm_dist_tag_filter",
    "githubTaggedCommits": "github_tagged_commits",
}


def _as_list(value: Any) -> List[str]:
    """Accept a YAML list or a comma separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    logger.warning("Ignoring unrecognized boolean value: %r", value)
    return default


@dataclass
class ResolverConfig:
    """Configuration threaded through every resolver call."""

    show_tagged_versions: bool = False
    npm_dist_tag_filter: List[str] = field(default_factory=list)
    github_tagged_commits: List[str] = field(
        default_factory=lambda: list(Constants.DEFAULT_GITHUB_TAGGED_COMMITS)
    )
    registry_url: str = Constants.REGISTRY_URL_NPM

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ResolverConfig":
        """Create config from a mapping using snake_case or camelCase keys.

        Args:
            data: Parsed configuration values; unknown keys are ignored.

        Returns:
            ResolverConfig instance.
        """
        config = cls()
        if not data:
            return config
        values: Dict[str, Any] = {_KEY_ALIASES.get(k, k): v for k, v in data.items()}
        if "show_tagged_versions" in values:
            config.show_tagged_versions = _as_bool(values["show_tagged_versions"], config.show_tagged_versions)
        if "npm_dist_tag_filter" in values:
            config.npm_dist_tag_filter = _as_list(values["npm_dist_tag_filter"])
        if "github_tagged_commits" in values:
            config.github_tagged_commits = _as_list(values["github_tagged_commits"])
        if values.get("registry_url"):
            config.registry_url = str(values["registry_url"])
        return config

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> "ResolverConfig":
        """Apply ``DEPSCOUT_*`` environment overrides in place."""
        env = os.environ if environ is None else environ
        if env.get(Constants.ENV_SHOW_TAGGED_VERSIONS):
            self.show_tagged_versions = _as_bool(
                env[Constants.ENV_SHOW_TAGGED_VERSIONS], self.show_tagged_versions
            )
        if Constants.ENV_NPM_DIST_TAG_FILTER in env:
            self.npm_dist_tag_filter = _as_list(env[Constants.ENV_NPM_DIST_TAG_FILTER])
        if Constants.ENV_GITHUB_TAGGED_COMMITS in env:
            self.github_tagged_commits = _as_list(env[Constants.ENV_GITHUB_TAGGED_COMMITS])
        if env.get(Constants.ENV_REGISTRY_URL):
            self.registry_url = env[Constants.ENV_REGISTRY_URL]
        return self

    def registry_policy(self) -> VisibilityPolicy:
        """Visibility of registry dist tags."""
        return VisibilityPolicy(
            show_tagged_versions=self.show_tagged_versions,
            allow_list=tuple(self.npm_dist_tag_filter),
        )

    def github_policy(self) -> VisibilityPolicy:
        """Visibility of GitHub categories; the configured list is already the selection."""
        return VisibilityPolicy(show_tagged_versions=self.show_tagged_versions)


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ResolverConfig:
    """Load resolver configuration from YAML and the environment.

    Args:
        path: Optional YAML file; an ``npm:`` section is used when present.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        ResolverConfig instance.
    """
    data: Dict[str, Any] = {}
    if path:
        if not os.path.isfile(path):
            logger.warning("Config file not found: %s", path)
        else:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                section = loaded.get("npm", loaded)
                data = section if isinstance(section, dict) else {}
            else:
                logger.warning("Ignoring config file without a mapping: %s", path)
    return ResolverConfig.from_mapping(data).apply_env(environ)
