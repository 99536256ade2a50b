"""Command line entry point: resolve dependencies and print candidates as JSON."""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .common.logging_utils import configure_logging, extra_context, is_debug_enabled
from .config import ResolverConfig, load_config
from .constants import ExitCodes
from .registry.npm import NpmRegistryClient
from .versioning.collect import ResolutionBatch, resolve_all
from .versioning.models import DependencyNode
from .versioning.resolvers import NpmVersionResolver

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depscout",
        description="Resolve npm dependency specifiers into version candidates",
        add_help=True,
    )
    parser.add_argument("-d", "--dep",
                        dest="DEPENDENCIES",
                        help="Dependency name and specifier, e.g. --dep lodash ^4.17.0",
                        action="append", nargs=2, metavar=("NAME", "SPEC"),
                        required=True)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML configuration file",
                        action="store", type=str)
    parser.add_argument("--show-tagged-versions",
                        dest="SHOW_TAGGED_VERSIONS",
                        help="Show dist tags and GitHub categories beyond satisfies/latest",
                        action="store_true")
    parser.add_argument("--dist-tag",
                        dest="DIST_TAGS",
                        help="Only show these dist tags (repeatable)",
                        action="append", type=str, default=[])
    parser.add_argument("--registry",
                        dest="REGISTRY_URL",
                        help="npm registry base URL",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='WARNING')
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ResolverConfig:
    """Load configuration and apply CLI overrides (highest precedence)."""
    config = load_config(args.CONFIG)
    if args.SHOW_TAGGED_VERSIONS:
        config.show_tagged_versions = True
    if args.DIST_TAGS:
        config.npm_dist_tag_filter = list(args.DIST_TAGS)
    if args.REGISTRY_URL:
        config.registry_url = args.REGISTRY_URL
    return config


async def run(nodes: List[DependencyNode], config: ResolverConfig) -> ResolutionBatch:
    """Resolve ``nodes`` against the configured registry."""
    async with NpmRegistryClient(registry_url=config.registry_url) as registry:
        resolver = NpmVersionResolver(registry)
        return await resolve_all(resolver, nodes, config)


def render(batch: ResolutionBatch) -> str:
    """JSON document with the flattened records and per-dependency failures."""
    return json.dumps(
        {
            "packages": [entry.package.to_dict() for entry in batch.entries()],
            "failures": [
                {"name": node.name, "specifier": node.value, "error": str(exc)}
                for node, exc in batch.failures
            ],
        },
        indent=2,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)
    config = build_config(args)

    nodes = [DependencyNode(name=name, value=spec) for name, spec in args.DEPENDENCIES]
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", count=len(nodes))
        )

    batch = asyncio.run(run(nodes, config))
    sys.stdout.write(render(batch) + "\n")
    if batch.failures:
        return ExitCodes.CONNECTION_ERROR.value
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
