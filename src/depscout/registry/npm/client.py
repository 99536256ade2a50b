"""NPM registry client: resolved versions and dist tags from packuments."""

from __future__ import annotations

import logging
import time
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ...common.http_client import get_json
from ...common.logging_utils import extra_context, is_debug_enabled, safe_url
from ...constants import Constants
from ...versioning.errors import PackageNotFoundError, RegistryError
from ...versioning.models import DistTag
from ...versioning.semver import max_satisfying, valid_range

logger = logging.getLogger(__name__)

PACKUMENT_HEADERS = {
    "Accept": "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
}
PACKUMENT_TTL_SEC = 300


def split_name_at_spec(name_at_spec: str) -> Tuple[str, str]:
    """Split ``name@spec`` into its parts; a missing spec means ``latest``.

    The search starts after the first character so scoped names
    (``@scope/name@^1.0.0``) keep their leading ``@``.
    """
    text = name_at_spec.strip()
    idx = text.find("@", 1)
    if idx == -1:
        return text, Constants.LATEST_TAG
    return text[:idx], text[idx + 1:].strip()


def dist_tags_from_packument(packument: Dict[str, Any]) -> List[DistTag]:
    """Dist tags of a packument with ``latest`` first, others in registry order."""
    raw = packument.get("dist-tags") or {}
    tags: List[DistTag] = []
    if Constants.LATEST_TAG in raw:
        tags.append(DistTag(Constants.LATEST_TAG, str(raw[Constants.LATEST_TAG])))
    tags.extend(
        DistTag(str(name), str(version))
        for name, version in raw.items()
        if name != Constants.LATEST_TAG
    )
    return tags


def pick_version(packument: Dict[str, Any], spec: str) -> Optional[str]:
    """Pick the published version a specifier points at.

    A dist-tag name maps to its version, an exact version must be published,
    and a range picks the highest published match. An empty spec is ``latest``.
    """
    versions = list((packument.get("versions") or {}).keys())
    dist_tags = packument.get("dist-tags") or {}
    spec = (spec or "").strip() or Constants.LATEST_TAG

    if spec in dist_tags:
        return str(dist_tags[spec])
    if valid_range(spec):
        return max_satisfying(versions, spec)
    return None


class NpmRegistryClient:
    """Registry capability backed by the public npm registry API."""

    def __init__(
        self,
        registry_url: str = Constants.REGISTRY_URL_NPM,
        timeout: int = Constants.REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the registry client.

        Args:
            registry_url: Base registry URL.
            timeout: Request timeout in seconds.
            session: Optional externally owned session.
        """
        self._registry_url = registry_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._packuments: Dict[str, Tuple[Dict[str, Any], float]] = {}

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session when this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def packument_url(self, name: str) -> str:
        """Registry URL of a package document; scoped names keep ``@`` and encode ``/``."""
        return f"{self._registry_url}/{urllib.parse.quote(name, safe='@')}"

    async def fetch_packument(self, name: str) -> Dict[str, Any]:
        """Fetch (or reuse a recent copy of) a package document.

        Raises:
            PackageNotFoundError: the registry has no such package.
            RegistryError: any other unusable response.
        """
        cached = self._packuments.get(name)
        if cached is not None and time.time() - cached[1] < PACKUMENT_TTL_SEC:
            return cached[0]

        if self._session is None:
            await self.start()
        assert self._session is not None

        url = self.packument_url(name)
        status_code, _, data = await get_json(
            self._session, url, headers=PACKUMENT_HEADERS, context="npm"
        )

        if status_code == 404:
            logger.warning(
                "Package not found in registry",
                extra=extra_context(
                    event="http_response",
                    outcome="not_found",
                    status_code=404,
                    target=safe_url(url),
                    package_manager="npm"
                )
            )
            raise PackageNotFoundError(name)
        if status_code != 200 or not isinstance(data, dict):
            raise RegistryError(
                f"npm registry returned status {status_code} for {safe_url(url)}",
                status_code=status_code,
            )

        self._packuments[name] = (data, time.time())
        return data

    async def view_resolved_version(self, name_at_spec: str) -> str:
        """Resolve ``name@spec`` to one concrete published version.

        Raises:
            PackageNotFoundError: no package or no matching version.
        """
        name, spec = split_name_at_spec(name_at_spec)
        packument = await self.fetch_packument(name)
        version = pick_version(packument, spec)
        if version is None:
            raise PackageNotFoundError(name_at_spec)
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved version",
                extra=extra_context(
                    event="decision",
                    component="npm_client",
                    action="view_resolved_version",
                    target=name_at_spec,
                    outcome=version
                )
            )
        return version

    async def view_dist_tags(self, name: str) -> List[DistTag]:
        """Dist tags of ``name``, ``latest`` first.

        Raises:
            PackageNotFoundError: the package has no ``latest`` tag.
        """
        tags = dist_tags_from_packument(await self.fetch_packument(name))
        if not tags or tags[0].name != Constants.LATEST_TAG:
            raise PackageNotFoundError(f"{name}@{Constants.LATEST_TAG}")
        return tags

    async def __aenter__(self) -> "NpmRegistryClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
