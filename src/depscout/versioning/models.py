"""Data models for versioning and package resolution."""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..constants import PackageSourceType
from .semver import format_with_existing_leading


@dataclass(frozen=True)
class DistTag:
    """One entry of the registry's published dist-tag list."""
    name: str
    version: str


@dataclass(frozen=True)
class TaggedVersion:
    """A candidate version surfaced for a registry dependency."""
    name: str
    version: Optional[str]
    is_newer_than_latest: bool = False
    is_latest_version: bool = False
    satisfies_latest: bool = False
    is_invalid: bool = False
    version_match_not_found: bool = False
    is_fixed_version: bool = False

    @classmethod
    def from_dist_tag(cls, dist_tag: DistTag) -> "TaggedVersion":
        """Plain tag entry with every flag cleared."""
        return cls(name=dist_tag.name, version=dist_tag.version)


@dataclass(frozen=True)
class CategoryEntry:
    """A GitHub candidate category; only the commit category is untagged."""
    category: str
    is_tagged_version: bool


@dataclass
class RegistryMeta:
    """Metadata for a record resolved against the npm registry."""
    tag: TaggedVersion
    is_tagged_version: bool
    is_older_version: bool
    type: PackageSourceType = PackageSourceType.NPM


@dataclass
class LocalMeta:
    """Metadata for a local directory/file reference."""
    remote_path: str
    type: PackageSourceType = PackageSourceType.FILE


@dataclass
class GitHubMeta:
    """Metadata for a GitHub hosted reference."""
    category: str
    remote_url: str
    user_repo: str
    commitish: str
    is_tagged_version: bool
    type: PackageSourceType = PackageSourceType.GITHUB


@dataclass
class StatusMeta:
    """Metadata for terminal records (not supported / not found)."""
    type: PackageSourceType
    message: str


PackageMeta = Union[RegistryMeta, LocalMeta, GitHubMeta, StatusMeta]


@dataclass
class PackageRecord:
    """Display-ready package record handed to the presentation layer.

    ``version`` is the specifier as requested (after ``latest`` substitution
    for registry records). ``custom_generate`` produces the replacement text
    for the manifest when a new version is picked.
    """
    name: str
    version: str
    meta: PackageMeta
    order: int = 0
    custom_generate: Optional[Callable[["PackageRecord", str], str]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def type(self) -> PackageSourceType:
        """Kind of record, taken from its metadata."""
        return self.meta.type

    def generate_new_version(self, new_version: str) -> str:
        """Replacement text for the manifest when ``new_version`` is chosen."""
        if self.custom_generate is not None:
            return self.custom_generate(self, new_version)
        return format_with_existing_leading(self.version, new_version)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        meta = asdict(self.meta)
        meta["type"] = self.meta.type.value
        return {
            "name": self.name,
            "version": self.version,
            "order": self.order,
            "meta": meta,
        }


@dataclass(frozen=True)
class DependencyNode:
    """A dependency declaration and its position in the source text."""
    name: str
    value: str
    start: int = 0
    end: int = 0


@dataclass
class ResolvedEntry:
    """A package record attached to the node it was resolved from."""
    node: DependencyNode
    package: PackageRecord


# None (nothing to show), a single entry, or several ordered entries.
ResolutionResult = Optional[Union[ResolvedEntry, List[ResolvedEntry]]]
