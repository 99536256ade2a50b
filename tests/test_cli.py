"""Tests for the command line entry point."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from depscout import cli
from depscout.versioning.collect import ResolutionBatch
from depscout.versioning.errors import ResolverError
from depscout.versioning.models import DependencyNode, DistTag, PackageRecord, RegistryMeta, ResolvedEntry, TaggedVersion


def registry_entry(name="left-pad", version="^1.0.0"):
    """Helper to create one resolved registry entry."""
    meta = RegistryMeta(
        tag=TaggedVersion.from_dist_tag(DistTag("latest", "1.3.0")),
        is_tagged_version=True,
        is_older_version=False,
    )
    return ResolvedEntry(DependencyNode(name, version), PackageRecord(name=name, version=version, meta=meta))


class TestParseArgs:
    """Argument parsing and config overrides."""

    def test_dependencies_are_pairs(self):
        args = cli.parse_args(["-d", "left-pad", "^1.0.0", "--dep", "@scope/x", "latest"])

        assert args.DEPENDENCIES == [["left-pad", "^1.0.0"], ["@scope/x", "latest"]]
        assert args.LOG_LEVEL == "WARNING"

    def test_dependency_is_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])

    def test_cli_overrides_config(self, monkeypatch):
        monkeypatch.delenv("DEPSCOUT_SHOW_TAGGED_VERSIONS", raising=False)
        monkeypatch.delenv("DEPSCOUT_NPM_DIST_TAG_FILTER", raising=False)
        monkeypatch.delenv("DEPSCOUT_REGISTRY_URL", raising=False)
        args = cli.parse_args([
            "-d", "a", "1.0.0",
            "--show-tagged-versions",
            "--dist-tag", "next",
            "--registry", "https://mirror.example.com",
        ])

        config = cli.build_config(args)

        assert config.show_tagged_versions is True
        assert config.npm_dist_tag_filter == ["next"]
        assert config.registry_url == "https://mirror.example.com"


class TestMain:
    """Rendering and exit codes."""

    def test_success_prints_json(self, capsys):
        batch = ResolutionBatch(results=[[registry_entry()]])
        with patch("depscout.cli.run", new=AsyncMock(return_value=batch)) as mock_run:
            code = cli.main(["-d", "left-pad", "^1.0.0"])

        assert code == 0
        nodes = mock_run.await_args.args[0]
        assert nodes == [DependencyNode("left-pad", "^1.0.0")]
        output = json.loads(capsys.readouterr().out)
        assert output["failures"] == []
        assert output["packages"][0]["name"] == "left-pad"
        assert output["packages"][0]["meta"]["type"] == "npm"
        assert output["packages"][0]["meta"]["tag"]["name"] == "latest"

    def test_failures_set_exit_code(self, capsys):
        node = DependencyNode("broken", "^1.0.0")
        batch = ResolutionBatch(failures=[(node, ResolverError("npm: resolving broken@^1.0.0 failed: boom"))])
        with patch("depscout.cli.run", new=AsyncMock(return_value=batch)):
            code = cli.main(["-d", "broken", "^1.0.0"])

        assert code == 2
        output = json.loads(capsys.readouterr().out)
        assert output["failures"][0]["name"] == "broken"
        assert "boom" in output["failures"][0]["error"]
