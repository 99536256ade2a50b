"""Version resolvers for different ecosystems."""

from .npm import NpmVersionResolver, custom_npm_generate_version, extract_tags_from_dist_tags

__all__ = [
    "NpmVersionResolver",
    "custom_npm_generate_version",
    "extract_tags_from_dist_tags",
]
