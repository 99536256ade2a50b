"""Visibility policy shared by every candidate list."""

from dataclasses import dataclass, field
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class VisibilityPolicy:
    """Decides which candidates of an ordered list are shown.

    The leading ``pinned`` candidates (satisfies/latest, or the commit) are
    always kept. When tagged versions are hidden nothing else is; otherwise a
    non-empty allow-list restricts the remaining candidates by name.
    """
    show_tagged_versions: bool = True
    allow_list: Sequence[str] = field(default_factory=tuple)

    def apply(self, candidates: Sequence[T], pinned: int, name_of: Callable[[T], str]) -> List[T]:
        """Return the visible candidates, preserving order."""
        head = list(candidates[:pinned])
        tail = candidates[pinned:]
        if not self.show_tagged_versions:
            return head
        if self.allow_list:
            allowed = set(self.allow_list)
            return head + [c for c in tail if name_of(c) in allowed]
        return head + list(tail)
