"""Version parsing and bumping utilities.

Increments follow the npm semver rules, so a prerelease is finished by
the matching release increment instead of skipping past it:

- "1.0.0-beta.1" + patch → "1.0.0"
- "1.0.0" + prerelease → "1.0.1-0"
- "1.0.1-beta.3" + prerelease (preid "beta") → "1.0.1-beta.4"

Range satisfaction (``^1.0.0``, ``~1.2``, ``>=1 <2`` ...) is delegated to
node-semver so declared ranges mean exactly what they mean to npm.
"""

from __future__ import annotations

import semver
from nodesemver import satisfies as _npm_satisfies

BUMP_KEYWORDS: tuple[str, ...] = (
    "major",
    "minor",
    "patch",
    "premajor",
    "preminor",
    "prepatch",
    "prerelease",
)

PRERELEASE_KEYWORDS = frozenset({"premajor", "preminor", "prepatch", "prerelease"})

# Canary versions reference the commit by this many leading sha characters.
SHORT_SHA_LENGTH = 8


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-beta.1" → "1.2.3-beta.1"
    """
    return semver.Version.parse(version_str, optional_minor_and_patch=True)


def is_valid(version_str: str) -> bool:
    """Return True if the string is a complete semver version."""
    return semver.Version.is_valid(version_str)


def is_prerelease(version_str: str) -> bool:
    return parse_version(version_str).prerelease is not None


def increment(version_str: str, keyword: str, preid: str | None = None) -> str:
    """Increment a version by one of the :data:`BUMP_KEYWORDS`.

    Args:
        version_str: The current version.
        keyword: Increment keyword.
        preid: Prerelease identifier for the ``pre*`` keywords.

    Returns:
        The incremented version string.

    Raises:
        ValueError: If ``keyword`` is not a known increment.

    Examples:
        increment("1.2.3", "minor") → "1.3.0"
        increment("1.0.0", "prerelease", "foo") → "1.0.1-foo.0"
        increment("2.0.0", "premajor") → "3.0.0-0"
    """
    v = parse_version(version_str)
    pre = v.prerelease is not None

    if keyword == "major":
        # 2.0.0-rc.1 is finished by the major bump, not skipped past.
        major = v.major if pre and v.minor == 0 and v.patch == 0 else v.major + 1
        return str(semver.Version(major))
    if keyword == "minor":
        minor = v.minor if pre and v.patch == 0 else v.minor + 1
        return str(semver.Version(v.major, minor))
    if keyword == "patch":
        patch = v.patch if pre else v.patch + 1
        return str(semver.Version(v.major, v.minor, patch))
    if keyword == "premajor":
        return _bump_prerelease(semver.Version(v.major + 1), preid)
    if keyword == "preminor":
        return _bump_prerelease(semver.Version(v.major, v.minor + 1), preid)
    if keyword == "prepatch":
        return _bump_prerelease(semver.Version(v.major, v.minor, v.patch + 1), preid)
    if keyword == "prerelease":
        if not pre:
            v = semver.Version(v.major, v.minor, v.patch + 1)
        return _bump_prerelease(v, preid)
    raise ValueError(f"Unknown increment keyword: {keyword}")


def _bump_prerelease(v: semver.Version, preid: str | None) -> str:
    """Advance the prerelease part of ``v`` the way npm does."""
    parts = v.prerelease.split(".") if v.prerelease else []
    if not parts:
        parts = ["0"]
    else:
        # Bump the right-most numeric identifier, or start a new counter.
        for i in reversed(range(len(parts))):
            if parts[i].isdigit():
                parts[i] = str(int(parts[i]) + 1)
                break
        else:
            parts.append("0")

    if preid:
        if parts[0] != preid or len(parts) < 2 or not parts[1].isdigit():
            parts = [preid, "0"]

    return str(v.replace(prerelease=".".join(parts)))


def canary_version(
    version_str: str, keyword: str | None, suffix: str, commit_hash: str
) -> str:
    """Build ``<base>-<suffix>.<short sha>`` for an ephemeral release.

    The base is the current version incremented by ``keyword`` (patch when
    no keyword is given).

    Example:
        canary_version("1.0.0", None, "alpha", "deadbeefcafe")
        → "1.0.1-alpha.deadbeef"
    """
    base = increment(version_str, keyword or "patch")
    return f"{base}-{suffix}.{commit_hash[:SHORT_SHA_LENGTH]}"


def satisfies(version_str: str, range_str: str) -> bool:
    """Return True if ``version_str`` falls within the npm range ``range_str``.

    Ranges node-semver cannot parse (``file:``, ``workspace:*``, git urls)
    never match.
    """
    try:
        return bool(_npm_satisfies(version_str, range_str, False))
    except (ValueError, TypeError):
        return False


def format_range(version_str: str, exact: bool) -> str:
    """Caret range for ``version_str``, or the bare version when ``exact``."""
    return version_str if exact else f"^{version_str}"
