"""depscout: resolve dependency specifiers into display-ready version candidates."""

from .config import ResolverConfig, load_config
from .registry.npm import NpmRegistryClient
from .versioning.collect import ResolutionBatch, flatten_results, resolve_all
from .versioning.errors import (
    PackageNotFoundError,
    RegistryError,
    ResolverError,
    UnsupportedProtocolError,
)
from .versioning.models import DependencyNode, PackageRecord, ResolvedEntry
from .versioning.resolvers import NpmVersionResolver

__version__ = "0.1.0"

__all__ = [
    "DependencyNode",
    "NpmRegistryClient",
    "NpmVersionResolver",
    "PackageNotFoundError",
    "PackageRecord",
    "RegistryError",
    "ResolutionBatch",
    "ResolvedEntry",
    "ResolverConfig",
    "ResolverError",
    "UnsupportedProtocolError",
    "flatten_results",
    "load_config",
    "resolve_all",
]
