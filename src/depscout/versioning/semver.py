"""Semver comparison helpers following npm range semantics.

All helpers are total: malformed versions or ranges make predicates return
False instead of raising.
"""

import re
from typing import Iterable, Optional, Tuple

import semantic_version
# clause tree types of NpmSpec.clause (semantic_version 2.x)
from semantic_version.base import AllOf, AnyOf, Range

_LEADING_SYMBOL = re.compile(r"^(?:\^|~>|~|>=|<=|>|<|=)")
_V_PREFIX = re.compile(r"(^|[\s<>=~^|])v(?=\d)")
_OPERATOR_SPACE = re.compile(r"(\^|~>?|[<>]=?|=)\s+")
_WILDCARD_RANGES = {"", "*", "x", "X"}

Bound = Tuple[semantic_version.Version, bool]


def _coerce_version(value: Optional[str]) -> Optional[semantic_version.Version]:
    """Parse a concrete version, tolerating a leading '=' or 'v'."""
    if not value:
        return None
    text = value.strip().lstrip("=").strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semantic_version.Version(text)
    except ValueError:
        return None


def _parse_range(value: Optional[str]) -> Optional[semantic_version.NpmSpec]:
    """Parse an npm range expression, or None when it is not one."""
    if value is None:
        return None
    text = _OPERATOR_SPACE.sub(r"\1", value.strip())
    if text in _WILDCARD_RANGES:
        text = ">=0.0.0"
    try:
        return semantic_version.NpmSpec(text)
    except ValueError:
        pass
    try:
        return semantic_version.NpmSpec(_V_PREFIX.sub(r"\1", text))
    except ValueError:
        return None


def valid_range(spec: Optional[str]) -> bool:
    """True when ``spec`` is a valid npm range (exact versions included)."""
    return _parse_range(spec) is not None


def is_fixed_version(spec: Optional[str]) -> bool:
    """True when ``spec`` names a single concrete version rather than a range."""
    return _coerce_version(spec) is not None


def satisfies(version: Optional[str], spec: Optional[str]) -> bool:
    """True when ``version`` is matched by the range ``spec``."""
    parsed = _coerce_version(version)
    npm_spec = _parse_range(spec)
    if parsed is None or npm_spec is None:
        return False
    return npm_spec.match(parsed)


def gt(left: Optional[str], right: Optional[str]) -> bool:
    """True when ``left`` is strictly greater than ``right``."""
    left_version = _coerce_version(left)
    right_version = _coerce_version(right)
    if left_version is None or right_version is None:
        return False
    return left_version > right_version


def max_satisfying(versions: Iterable[str], spec: Optional[str]) -> Optional[str]:
    """Highest of ``versions`` matched by ``spec``, as originally spelled."""
    npm_spec = _parse_range(spec)
    if npm_spec is None:
        return None
    best = None
    best_text = None
    for text in versions:
        parsed = _coerce_version(text)
        if parsed is None or not npm_spec.match(parsed):
            continue
        if best is None or parsed > best:
            best, best_text = parsed, text
    return best_text


def _lower_bound(clause) -> Optional[Bound]:
    """Smallest version a clause can match; None means unbounded."""
    if isinstance(clause, Range):
        if clause.operator in (Range.OP_GTE, Range.OP_EQ):
            return clause.target, True
        if clause.operator == Range.OP_GT:
            return clause.target, False
        return None
    if isinstance(clause, AllOf):
        bounds = [b for b in (_lower_bound(c) for c in clause.clauses) if b is not None]
        if not bounds:
            return None
        return max(bounds, key=lambda b: (b[0], not b[1]))
    if isinstance(clause, AnyOf):
        bounds = [_lower_bound(c) for c in clause.clauses]
        if not bounds or any(b is None for b in bounds):
            return None
        return min(bounds, key=lambda b: (b[0], not b[1]))
    return None


def _upper_bound(clause) -> Optional[Bound]:
    """Largest version a clause can match; None means unbounded."""
    if isinstance(clause, Range):
        if clause.operator in (Range.OP_LTE, Range.OP_EQ):
            return clause.target, True
        if clause.operator == Range.OP_LT:
            return clause.target, False
        return None
    if isinstance(clause, AllOf):
        bounds = [b for b in (_upper_bound(c) for c in clause.clauses) if b is not None]
        if not bounds:
            return None
        return min(bounds, key=lambda b: (b[0], b[1]))
    if isinstance(clause, AnyOf):
        bounds = [_upper_bound(c) for c in clause.clauses]
        if not bounds or any(b is None for b in bounds):
            return None
        return max(bounds, key=lambda b: (b[0], b[1]))
    return None


def _lower_than_range(version: semantic_version.Version, npm_spec: semantic_version.NpmSpec) -> bool:
    """True when ``version`` is below every version the range accepts."""
    if npm_spec.match(version):
        return False
    bound = _lower_bound(npm_spec.clause)
    if bound is None:
        return False
    target, inclusive = bound
    return version < target or (version == target and not inclusive)


def _greater_than_range(version: semantic_version.Version, npm_spec: semantic_version.NpmSpec) -> bool:
    """True when ``version`` is above every version the range accepts."""
    if npm_spec.match(version):
        return False
    bound = _upper_bound(npm_spec.clause)
    if bound is None:
        return False
    target, inclusive = bound
    return version > target or (version == target and not inclusive)


def is_older_version(version: Optional[str], requested: Optional[str]) -> bool:
    """True when ``version`` is older than what ``requested`` asks for.

    A prerelease tested against a non-prerelease request is compared on its
    release triple, so ``1.5.0-beta`` counts as older than ``^1.0.0`` while
    ``2.0.0-beta`` does not.
    """
    parsed = _coerce_version(version)
    npm_spec = _parse_range(requested)
    if parsed is None or npm_spec is None:
        return False

    requested_version = _coerce_version(requested)
    requested_is_prerelease = requested_version is not None and bool(requested_version.prerelease)
    if not requested_is_prerelease and parsed.prerelease:
        release = semantic_version.Version(major=parsed.major, minor=parsed.minor, patch=parsed.patch)
        return _lower_than_range(release, npm_spec) or not _greater_than_range(release, npm_spec)

    return _lower_than_range(parsed, npm_spec)


def leading_symbol(value: Optional[str]) -> str:
    """Range operator prefix of ``value`` ('' when there is none)."""
    if not value:
        return ""
    match = _LEADING_SYMBOL.match(value.strip())
    return match.group(0) if match else ""


def format_with_existing_leading(existing_version: Optional[str], new_version: str) -> str:
    """Carry the leading range operator of ``existing_version`` onto ``new_version``.

    ``new_version`` is returned untouched when it already has an operator or
    the existing version has none.
    """
    leading = leading_symbol(existing_version)
    if not leading or leading_symbol(new_version):
        return new_version
    return f"{leading}{new_version}"
