"""Branch gate: refuse to publish from branches that are not allowed."""

from __future__ import annotations

from collections.abc import Sequence
from fnmatch import fnmatchcase

from .errors import BranchRestrictionError


def branch_allowed(branch: str, patterns: Sequence[str]) -> bool:
    """Return True if ``branch`` matches any pattern.

    A pattern matches by exact name or as a glob where ``*`` is a wildcard.
    An empty pattern list allows every branch.
    """
    if not patterns:
        return True
    return any(branch == p or fnmatchcase(branch, p) for p in patterns)


def check_branch(branch: str, patterns: Sequence[str], *, canary: bool = False) -> None:
    """Raise unless ``branch`` may publish.

    Canary releases are never restricted.

    Raises:
        BranchRestrictionError: If no pattern matches.
    """
    if canary:
        return
    if not branch_allowed(branch, patterns):
        raise BranchRestrictionError(branch)
