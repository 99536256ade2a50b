"""Concurrent resolution of many dependencies and the presentation flatten."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Protocol, Tuple

from ..common.logging_utils import Timer, extra_context, short_error
from ..config import ResolverConfig
from .models import DependencyNode, ResolutionResult, ResolvedEntry

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    """Anything that resolves one dependency declaration."""

    async def resolve(self, node: DependencyNode, config: ResolverConfig) -> ResolutionResult:
        ...


@dataclass
class ResolutionBatch:
    """Outcome of resolving a set of dependency declarations."""
    results: List[ResolutionResult] = field(default_factory=list)
    failures: List[Tuple[DependencyNode, BaseException]] = field(default_factory=list)

    def entries(self) -> List[ResolvedEntry]:
        """Flattened entries of every successful resolution."""
        return flatten_results(self.results)


def flatten_results(results: Iterable[ResolutionResult]) -> List[ResolvedEntry]:
    """Flatten resolution results for the presentation layer.

    ``None`` results are skipped. Entries of a list get their zero-based
    position as ``order``; a single entry gets ``order`` 0.
    """
    flattened: List[ResolvedEntry] = []
    for result in results:
        if result is None:
            continue
        if isinstance(result, list):
            for order, entry in enumerate(result):
                entry.package.order = order
                flattened.append(entry)
            continue
        result.package.order = 0
        flattened.append(result)
    return flattened


async def resolve_all(
    resolver: Resolver,
    nodes: Iterable[DependencyNode],
    config: ResolverConfig,
) -> ResolutionBatch:
    """Resolve every node concurrently; one failure never affects the others."""
    nodes = list(nodes)
    with Timer() as timer:
        outcomes = await asyncio.gather(
            *(resolver.resolve(node, config) for node in nodes),
            return_exceptions=True,
        )

    batch = ResolutionBatch()
    for node, outcome in zip(nodes, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.warning("Failed to resolve %s@%s: %s", node.name, node.value, short_error(outcome))
            batch.failures.append((node, outcome))
            continue
        batch.results.append(outcome)

    logger.info(
        "Resolved %d dependencies (%d failed)",
        len(nodes),
        len(batch.failures),
        extra=extra_context(
            event="resolve_batch",
            component="collect",
            duration_ms=timer.duration_ms(),
            failed=len(batch.failures)
        )
    )
    return batch
