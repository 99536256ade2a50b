"""Tests for the npm dependency resolver."""

import asyncio
from typing import Dict, List, Union

import pytest

from depscout.config import ResolverConfig
from depscout.constants import PackageSourceType
from depscout.versioning.errors import PackageNotFoundError, RegistryError, ResolverError
from depscout.versioning.models import DependencyNode, DistTag, GitHubMeta, LocalMeta, PackageRecord
from depscout.versioning.resolvers.npm import NpmVersionResolver, custom_npm_generate_version


class FakeRegistry:
    """In-memory registry capability recording the calls it receives."""

    def __init__(
        self,
        versions: Dict[str, Union[str, Exception]],
        dist_tags: Dict[str, List[DistTag]],
    ):
        self.versions = versions
        self.dist_tags = dist_tags
        self.calls = []

    async def view_resolved_version(self, name_at_spec: str) -> str:
        self.calls.append(("version", name_at_spec))
        value = self.versions[name_at_spec]
        if isinstance(value, Exception):
            raise value
        return value

    async def view_dist_tags(self, name: str) -> List[DistTag]:
        self.calls.append(("dist_tags", name))
        return self.dist_tags[name]


DIST_TAGS = {
    "pkg": [
        DistTag("latest", "2.0.0"),
        DistTag("beta", "2.1.0-beta.1"),
        DistTag("next", "3.0.0-rc.1"),
        DistTag("legacy", "0.9.0"),
    ]
}


@pytest.fixture
def registry():
    """Registry knowing a handful of specifiers for 'pkg'."""
    return FakeRegistry(
        versions={
            "pkg@^1.0.0": "1.5.0",
            "pkg@latest": "2.0.0",
            "pkg@^2.0.0": "2.0.0",
            "pkg@^9.0.0": PackageNotFoundError("pkg@^9.0.0"),
            "pkg@^3.0.0": RegistryError("npm registry returned status 500", status_code=500),
        },
        dist_tags=DIST_TAGS,
    )


@pytest.fixture
def resolver(registry):
    return NpmVersionResolver(registry)


def resolve(resolver, value, config, name="pkg"):
    """Helper to run one resolution."""
    return asyncio.run(resolver.resolve(DependencyNode(name=name, value=value), config))


class TestRegistryResolution:
    """Registry specifiers produce satisfies/latest/tag records."""

    def test_hidden_tags_show_satisfies_and_latest(self, resolver):
        entries = resolve(resolver, "^1.0.0", ResolverConfig(show_tagged_versions=False))

        assert [e.package.meta.tag.name for e in entries] == ["satisfies", "latest"]
        assert [e.package.meta.tag.version for e in entries] == ["1.5.0", "2.0.0"]
        assert [e.package.meta.is_tagged_version for e in entries] == [False, True]
        assert all(e.package.version == "^1.0.0" for e in entries)
        assert all(e.package.type == PackageSourceType.NPM for e in entries)

    def test_all_tags_when_shown(self, resolver):
        entries = resolve(resolver, "^1.0.0", ResolverConfig(show_tagged_versions=True))

        assert [e.package.meta.tag.name for e in entries] == ["satisfies", "latest", "beta", "next"]
        assert [e.package.meta.is_tagged_version for e in entries] == [False, True, True, True]

    def test_dist_tag_filter(self, resolver):
        config = ResolverConfig(show_tagged_versions=True, npm_dist_tag_filter=["next"])

        entries = resolve(resolver, "^1.0.0", config)

        assert [e.package.meta.tag.name for e in entries] == ["satisfies", "latest", "next"]

    def test_satisfies_is_latest_shows_single_record(self, resolver):
        entries = resolve(resolver, "^2.0.0", ResolverConfig(show_tagged_versions=False))

        assert len(entries) == 1
        assert entries[0].package.meta.tag.satisfies_latest is True

    def test_latest_is_substituted(self, resolver, registry):
        entries = resolve(resolver, "latest", ResolverConfig(show_tagged_versions=False))

        assert len(entries) == 1
        assert entries[0].package.version == "2.0.0"
        assert entries[0].package.meta.tag.is_latest_version is True
        assert registry.calls[0] == ("version", "pkg@latest")

    def test_lookups_are_sequential(self, resolver, registry):
        resolve(resolver, "^1.0.0", ResolverConfig())

        assert registry.calls == [("version", "pkg@^1.0.0"), ("dist_tags", "pkg")]

    def test_older_flag_relative_to_requested(self):
        """The latest tag is flagged older when it sits below the requested range."""
        registry = FakeRegistry(
            versions={"pkg@^2.0.0": "2.1.0"},
            dist_tags={"pkg": [DistTag("latest", "1.9.0")]},
        )
        entries = resolve(NpmVersionResolver(registry), "^2.0.0", ResolverConfig())

        assert [e.package.meta.is_older_version for e in entries] == [False, True]
        assert entries[0].package.meta.tag.is_newer_than_latest is True

    def test_registry_records_preserve_leading_symbol(self, resolver):
        entries = resolve(resolver, "^1.0.0", ResolverConfig())

        assert entries[0].package.generate_new_version("2.0.0") == "^2.0.0"


class TestTerminalRecords:
    """Errors recovered as terminal records, or re-raised with context."""

    def test_not_found(self, resolver):
        entries = resolve(resolver, "^9.0.0", ResolverConfig())

        assert len(entries) == 1
        assert entries[0].package.type == PackageSourceType.NOT_FOUND
        assert entries[0].package.version == "^9.0.0"

    @pytest.mark.parametrize("spec", [
        "foo:bar",
        "git+ssh://git@example.com/repo.git",
        "https://example.com/pkg.tgz",
        "npm:other@1.0.0",
        "gitlab:user/repo",
        "bitbucket:user/repo#main",
    ])
    def test_not_supported(self, resolver, registry, spec):
        entries = resolve(resolver, spec, ResolverConfig())

        assert len(entries) == 1
        assert entries[0].package.type == PackageSourceType.NOT_SUPPORTED
        assert registry.calls == []

    def test_other_errors_are_wrapped(self, resolver):
        with pytest.raises(ResolverError) as excinfo:
            resolve(resolver, "^3.0.0", ResolverConfig())

        assert str(excinfo.value).startswith("npm:")
        assert isinstance(excinfo.value.__cause__, RegistryError)


class TestGitHubResolution:
    """GitHub references produce one record per category."""

    def test_categories_and_remote_url(self, resolver):
        config = ResolverConfig(show_tagged_versions=True, github_tagged_commits=["Release"])

        entries = resolve(resolver, "user/repo#deadbeef", config)

        assert [e.package.meta.category for e in entries] == ["Commit", "Release"]
        assert [e.package.meta.is_tagged_version for e in entries] == [False, True]
        meta = entries[0].package.meta
        assert meta.remote_url == "https://github.com/user/repo/commit/deadbeef"
        assert meta.user_repo == "user/repo"
        assert meta.commitish == "deadbeef"
        assert entries[0].package.version == "user/repo#deadbeef"

    def test_hidden_tags_keep_commit_only(self, resolver):
        config = ResolverConfig(show_tagged_versions=False, github_tagged_commits=["Release", "Tag"])

        entries = resolve(resolver, "github:user/repo", config)

        assert [e.package.meta.category for e in entries] == ["Commit"]
        assert entries[0].package.meta.remote_url == "https://github.com/user/repo"
        assert entries[0].package.meta.commitish == ""

    def test_github_url(self, resolver):
        entries = resolve(resolver, "git+https://github.com/user/repo.git#v1.0.0", ResolverConfig())

        assert entries[0].package.type == PackageSourceType.GITHUB
        assert entries[0].package.meta.commitish == "v1.0.0"

    def test_malformed_reference_yields_none(self, resolver):
        node = DependencyNode(name="pkg", value="not-a-github-spec")

        assert resolver.resolve_github_version(node, "not-a-github-spec", ResolverConfig()) is None


class TestLocalResolution:
    """Local references produce exactly one record."""

    def test_file_reference(self, resolver, registry):
        entries = resolve(resolver, "file:../local-pkg", ResolverConfig())

        assert len(entries) == 1
        assert entries[0].package.meta == LocalMeta(remote_path="../local-pkg")
        assert registry.calls == []

    def test_no_match_yields_none(self, resolver):
        assert resolver.resolve_local_version(DependencyNode(name="pkg", value="^1.0.0")) is None


def github_record(user_repo="a/b", commitish="v1", version="a/b#v1"):
    """Helper to create a GitHub package record."""
    meta = GitHubMeta(
        category="Commit",
        remote_url=f"https://github.com/{user_repo}",
        user_repo=user_repo,
        commitish=commitish,
        is_tagged_version=False,
    )
    return PackageRecord(name="b", version=version, meta=meta, custom_generate=custom_npm_generate_version)


class TestCustomGenerateVersion:
    """Replacement text for a newly chosen version or tag."""

    def test_github_range_uses_commitish_baseline(self):
        assert github_record().generate_new_version("^2.0.0") == "a/b#^2.0.0"

    def test_github_range_keeps_commitish_symbol(self):
        record = github_record(commitish="^1.0.0", version="a/b#^1.0.0")

        assert record.generate_new_version("2.0.0") == "a/b#^2.0.0"

    def test_github_non_range_uses_record_version(self):
        """The baseline is assigned in the non-range branch too."""
        assert github_record().generate_new_version("abc1234") == "a/b#abc1234"

    def test_local_record_is_plain(self):
        record = PackageRecord(
            name="x",
            version="file:../x",
            meta=LocalMeta(remote_path="../x"),
            custom_generate=custom_npm_generate_version,
        )

        assert record.generate_new_version("file:../y") == "file:../y"
