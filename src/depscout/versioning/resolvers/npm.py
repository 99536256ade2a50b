"""NPM dependency resolver producing display-ready candidate records."""

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from ...common.logging_utils import extra_context, is_debug_enabled, short_error
from ...config import ResolverConfig
from ...constants import Constants, PackageSourceType, SpecifierType
from ..errors import PackageNotFoundError, ResolverError, UnsupportedProtocolError
from ..models import (
    CategoryEntry,
    DependencyNode,
    DistTag,
    GitHubMeta,
    LocalMeta,
    PackageRecord,
    RegistryMeta,
    ResolutionResult,
    ResolvedEntry,
    TaggedVersion,
)
from ..packages import DefaultPackageBuilder, PackageRecordBuilder
from ..semver import (
    format_with_existing_leading,
    gt,
    is_fixed_version,
    is_older_version,
    satisfies,
    valid_range,
)
from ..specifier import SpecifierClassifier, parse_github_reference, parse_local_reference
from ..visibility import VisibilityPolicy

logger = logging.getLogger(__name__)

SOURCE = "npm"

GenerateVersion = Callable[[PackageRecord, str], str]


class RegistryCapability(Protocol):
    """What the resolver needs from an npm registry client."""

    async def view_resolved_version(self, name_at_spec: str) -> str:
        ...

    async def view_dist_tags(self, name: str) -> List[DistTag]:
        ...


def extract_tags_from_dist_tags(
    requested_version: str,
    satisfies_version: Optional[str],
    dist_tags: Sequence[DistTag],
) -> List[TaggedVersion]:
    """Build the ordered candidate list for a registry dependency.

    The satisfies entry is first, then the latest tag unless the satisfies
    entry already is the latest, then the remaining tags that are not older
    than the satisfies version. No version appears twice.

    Args:
        requested_version: Specifier as requested (``latest`` already substituted).
        satisfies_version: Version the registry resolved for the specifier.
        dist_tags: Registry dist tags, ``latest`` first.

    Returns:
        List of TaggedVersion entries.
    """
    latest_entry = dist_tags[0]
    requested_version = requested_version or ""
    is_satisfies_version_valid = valid_range(satisfies_version)
    is_requested_version_valid = valid_range(requested_version)
    is_fixed = is_requested_version_valid and is_fixed_version(requested_version)
    satisfies_latest = bool(satisfies_version) and satisfies(satisfies_version, latest_entry.version)
    is_latest = (
        requested_version == Constants.LATEST_TAG
        or latest_entry.version in requested_version
    )

    satisfies_entry = TaggedVersion(
        name=Constants.SATISFIES_TAG,
        version=satisfies_version,
        is_newer_than_latest=(
            not is_latest
            and bool(satisfies_version)
            and gt(satisfies_version, latest_entry.version)
        ),
        is_latest_version=is_latest,
        satisfies_latest=satisfies_latest,
        is_invalid=not is_requested_version_valid and requested_version != Constants.LATEST_TAG,
        version_match_not_found=not satisfies_version,
        is_fixed_version=is_fixed,
    )

    # the satisfies entry stands in for latest when they share a version
    show_latest = not is_latest and satisfies_version != latest_entry.version

    seen = {satisfies_version, latest_entry.version}
    newer_dist_tags = []
    for dist_tag in dist_tags:
        if is_satisfies_version_valid and is_older_version(dist_tag.version, satisfies_version):
            continue
        if dist_tag.version in seen:
            continue
        seen.add(dist_tag.version)
        newer_dist_tags.append(TaggedVersion.from_dist_tag(dist_tag))

    return [
        satisfies_entry,
        *([TaggedVersion.from_dist_tag(latest_entry)] if show_latest else []),
        *newer_dist_tags,
    ]


def pinned_tag_count(tags: Sequence[TaggedVersion]) -> int:
    """Number of leading entries always shown: satisfies, plus latest when present."""
    if len(tags) > 1 and tags[1].name == Constants.LATEST_TAG:
        return 2
    return 1


def github_categories(configured: Sequence[str], policy: VisibilityPolicy) -> List[CategoryEntry]:
    """Commit category first, then the configured tag categories."""
    categories = policy.apply([Constants.COMMIT_CATEGORY, *configured], 1, str)
    return [
        CategoryEntry(category=category, is_tagged_version=index != 0)
        for index, category in enumerate(categories)
    ]


def custom_npm_generate_version(package: PackageRecord, new_version: str) -> str:
    """Replacement text for an npm manifest entry.

    GitHub records keep their ``user/repo#`` shape; when the new value is a
    semver range the leading operator is taken from the commit-ish.
    """
    meta = package.meta
    is_github = meta.type == PackageSourceType.GITHUB
    if is_github and valid_range(new_version):
        existing_version = meta.commitish
    else:
        existing_version = package.version

    preserved = format_with_existing_leading(existing_version, new_version)
    if is_github:
        return f"{meta.user_repo}#{preserved}"
    return preserved


class NpmVersionResolver:
    """Resolver for npm dependency declarations.

    Classifies the specifier and dispatches to the local, GitHub or registry
    resolution. Holds no state between calls beyond its collaborators.
    """

    def __init__(
        self,
        registry: RegistryCapability,
        classifier: Optional[SpecifierClassifier] = None,
        builder: Optional[PackageRecordBuilder] = None,
    ):
        self.registry = registry
        self.classifier = classifier or SpecifierClassifier()
        self.builder = builder or DefaultPackageBuilder()

    @property
    def source(self) -> str:
        """Name used on terminal records."""
        return SOURCE

    def _not_supported(self, node: DependencyNode) -> List[ResolvedEntry]:
        return [ResolvedEntry(node, self.builder.create_not_supported(node.name, node.value, SOURCE))]

    def _not_found(self, node: DependencyNode) -> List[ResolvedEntry]:
        return [ResolvedEntry(node, self.builder.create_not_found(node.name, node.value, SOURCE))]

    async def resolve(self, node: DependencyNode, config: ResolverConfig) -> ResolutionResult:
        """Resolve one dependency declaration.

        Unsupported protocols and missing packages become terminal records;
        any other failure is raised as a ResolverError naming the dependency.
        """
        name, requested_version = node.name, node.value
        try:
            info = self.classifier.classify(requested_version)

            if info.type in (SpecifierType.DIRECTORY, SpecifierType.FILE):
                return self.resolve_local_version(node)

            if info.type == SpecifierType.GIT:
                if info.hosted is not None and info.hosted.type == "github":
                    return self.resolve_github_version(
                        node, info.hosted.path(no_committish=False), config
                    )
                # TODO: resolve raw git urls with git ls-remote
                return self._not_supported(node)

            if info.type in (SpecifierType.REMOTE, SpecifierType.ALIAS):
                return self._not_supported(node)

            return await self.resolve_registry_version(node, config)

        except UnsupportedProtocolError as exc:
            logger.info("%s: %s", SOURCE, exc)
            return self._not_supported(node)
        except PackageNotFoundError as exc:
            logger.info("%s: %s", SOURCE, exc)
            return self._not_found(node)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error(
                "Resolution failed",
                extra=extra_context(
                    event="resolve",
                    component="npm_resolver",
                    outcome="error",
                    package_name=name,
                    specifier=requested_version,
                    error=short_error(exc)
                )
            )
            raise ResolverError(f"{SOURCE}: resolving {name}@{requested_version} failed: {exc}") from exc

    async def resolve_registry_version(
        self,
        node: DependencyNode,
        config: ResolverConfig,
        custom_generate: Optional[GenerateVersion] = None,
    ) -> List[ResolvedEntry]:
        """Resolve a registry range or tag into satisfies/latest/tag records."""
        name, requested_version = node.name, node.value

        satisfies_version = await self.registry.view_resolved_version(f"{name}@{requested_version}")
        if requested_version == Constants.LATEST_TAG:
            requested_version = satisfies_version

        dist_tags = await self.registry.view_dist_tags(name)
        extracted_tags = extract_tags_from_dist_tags(requested_version, satisfies_version, dist_tags)
        tags_to_process = config.registry_policy().apply(
            extracted_tags, pinned_tag_count(extracted_tags), lambda tag: tag.name
        )

        if is_debug_enabled(logger):
            logger.debug(
                "Registry tags extracted",
                extra=extra_context(
                    event="decision",
                    component="npm_resolver",
                    action="extract_tags",
                    package_name=name,
                    extracted=len(extracted_tags),
                    visible=len(tags_to_process)
                )
            )

        entries = []
        for index, tag in enumerate(tags_to_process):
            is_older = (
                bool(tag.version)
                and not tag.is_invalid
                and bool(requested_version)
                and is_older_version(tag.version, requested_version)
            )
            meta = RegistryMeta(tag=tag, is_tagged_version=index != 0, is_older_version=is_older)
            package = self.builder.create_package(name, requested_version, meta, custom_generate)
            entries.append(ResolvedEntry(node, package))
        return entries

    def resolve_local_version(self, node: DependencyNode) -> Optional[List[ResolvedEntry]]:
        """One record for a local path reference, or None when the grammar fails."""
        reference = parse_local_reference(node.value)
        if reference is None:
            return None
        meta = LocalMeta(remote_path=reference.path)
        package = self.builder.create_package(node.name, node.value, meta, custom_npm_generate_version)
        return [ResolvedEntry(node, package)]

    def resolve_github_version(
        self,
        node: DependencyNode,
        version: str,
        config: ResolverConfig,
        custom_generate: Optional[GenerateVersion] = custom_npm_generate_version,
    ) -> Optional[List[ResolvedEntry]]:
        """One record per GitHub category, or None when the grammar fails."""
        reference = parse_github_reference(version)
        if reference is None:
            logger.debug("Not a GitHub reference: %s", version)
            return None

        commitish_slug = f"/commit/{reference.commitish}" if reference.commitish else ""
        remote_url = f"{Constants.GITHUB_URL}/{reference.user}/{reference.repo}{commitish_slug}"

        entries = []
        for entry in github_categories(config.github_tagged_commits, config.github_policy()):
            meta = GitHubMeta(
                category=entry.category,
                remote_url=remote_url,
                user_repo=reference.user_repo,
                commitish=reference.commitish,
                is_tagged_version=entry.is_tagged_version,
            )
            package = self.builder.create_package(node.name, version, meta, custom_generate)
            entries.append(ResolvedEntry(node, package))
        return entries
