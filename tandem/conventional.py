"""Conventional Commits: bump recommendation and changelog generation.

The resolver and pipeline only depend on the
:class:`ConventionalCommitsAdapter` protocol. :class:`ConventionalChangelog`
is the default implementation: it reads commit subjects from git, parses
them as ``type(scope)!: description`` and writes a ``CHANGELOG.md`` next to
each released package.
"""

from __future__ import annotations

import re
import subprocess
from collections.abc import Iterable, Sequence
from datetime import date
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from .errors import VersionControlError
from .models import Package
from .shell import git
from .versions import increment

CHANGELOG_NAME = "CHANGELOG.md"
CHANGELOG_HEADER = "# Change Log"

# Regex for Conventional Commits: type(scope)!: description
CC_PATTERN: re.Pattern[str] = re.compile(
    r"^(?P<type>[a-z]+)"
    r"(?:\((?P<scope>[^)]*)\))?"
    r"(?P<breaking>!)?"
    r":\s*"
    r"(?P<description>.+)$",
)

MINOR_TYPES = frozenset({"feat"})
PATCH_TYPES = frozenset({"fix", "perf"})

# Commit type → changelog section title, in rendering order.
PRESETS: dict[str, dict[str, str]] = {
    "angular": {
        "feat": "Features",
        "fix": "Bug Fixes",
        "perf": "Performance Improvements",
        "revert": "Reverts",
    },
    "conventionalcommits": {
        "feat": "Features",
        "fix": "Bug Fixes",
        "perf": "Performance Improvements",
        "revert": "Reverts",
        "docs": "Documentation",
        "refactor": "Code Refactoring",
        "build": "Build System",
    },
}
DEFAULT_PRESET = "angular"


@runtime_checkable
class ConventionalCommitsAdapter(Protocol):
    """Bump recommendation and changelog collaborator."""

    def recommend_bump(self, package: Package) -> str: ...

    def recommend_version(self, package: Package) -> str: ...

    def update_changelog(self, package: Package, version: str) -> Path | None: ...

    def update_root_changelog(self, root: Path, version: str) -> Path | None: ...


class ParsedCommit(BaseModel):
    """A commit subject that follows the convention."""

    type: str
    scope: str = ""
    description: str
    breaking: bool = False

    @property
    def bump(self) -> str | None:
        if self.breaking:
            return "major"
        if self.type in MINOR_TYPES:
            return "minor"
        if self.type in PATCH_TYPES:
            return "patch"
        return None


def parse_commit(message: str) -> ParsedCommit | None:
    """Parse a commit message, or return None if it is not conventional."""
    lines = message.strip().splitlines()
    if not lines:
        return None
    match = CC_PATTERN.match(lines[0].strip())
    if not match:
        return None
    breaking = bool(match.group("breaking")) or any(
        line.startswith(("BREAKING CHANGE", "BREAKING-CHANGE")) for line in lines[1:]
    )
    return ParsedCommit(
        type=match.group("type"),
        scope=match.group("scope") or "",
        description=match.group("description").strip(),
        breaking=breaking,
    )


def highest_bump(bumps: Iterable[str | None]) -> str:
    """The largest of ``bumps``; patch when none is given."""
    seen = set(bumps)
    for level in ("major", "minor"):
        if level in seen:
            return level
    return "patch"


def recommend_bump(messages: Sequence[str]) -> str:
    """Highest bump implied by ``messages``; patch when none implies one."""
    return highest_bump(c.bump for c in map(parse_commit, messages) if c is not None)


def render_section(
    version: str, messages: Sequence[str], preset: str, day: date
) -> str:
    """Render one changelog section for ``version``."""
    titles = PRESETS[preset]
    grouped: dict[str, list[str]] = {t: [] for t in titles}
    breaking: list[str] = []
    for commit in filter(None, map(parse_commit, messages)):
        entry = (
            f"* **{commit.scope}:** {commit.description}"
            if commit.scope
            else f"* {commit.description}"
        )
        if commit.breaking:
            breaking.append(entry)
        if commit.type in grouped:
            grouped[commit.type].append(entry)

    lines = [f"## {version} ({day.isoformat()})", ""]
    for cc_type, title in titles.items():
        if grouped[cc_type]:
            lines.extend([f"### {title}", "", *grouped[cc_type], ""])
    if breaking:
        lines.extend(["### BREAKING CHANGES", "", *breaking, ""])
    if len(lines) == 2:
        lines.extend(["**Note:** Version bump only", ""])
    return "\n".join(lines)


def prepend_section(path: Path, section: str) -> None:
    """Insert ``section`` at the top of a changelog, below its header."""
    body = path.read_text() if path.exists() else ""
    if body.startswith(CHANGELOG_HEADER):
        body = body[len(CHANGELOG_HEADER) :].lstrip("\n")
    path.write_text(f"{CHANGELOG_HEADER}\n\n{section}\n{body}".rstrip("\n") + "\n")


class ConventionalChangelog:
    """:class:`ConventionalCommitsAdapter` driven by git history.

    Commits are read since the package's own release tag
    (``<name>@<version>``) or the shared one (``v<version>``), whichever
    exists, and from the beginning of history otherwise.

    Args:
        root: Repository root.
        preset: Changelog layout, a key of :data:`PRESETS`.
        today: Date stamped on new sections (defaults to today).
    """

    def __init__(
        self, root: Path, preset: str | None = None, today: date | None = None
    ) -> None:
        self.root = root
        self.preset = preset or DEFAULT_PRESET
        self.today = today or date.today()

    def _tag_exists(self, tag: str) -> bool:
        ref = git(
            "rev-parse",
            "-q",
            "--verify",
            f"refs/tags/{tag}",
            check=False,
            cwd=self.root,
        )
        return bool(ref)

    def _since(self, package: Package) -> str | None:
        candidates = [f"{package.name}@{package.version}", f"v{package.version}"]
        return next((t for t in candidates if self._tag_exists(t)), None)

    def _messages(self, since: str | None, directory: Path | None) -> list[str]:
        args = ["log", "--format=%B%x00"]
        if since:
            args.append(f"{since}..HEAD")
        if directory is not None:
            args.extend(["--", str(directory)])
        try:
            out = git(*args, cwd=self.root)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip()
            raise VersionControlError(
                f"git log failed in {self.root}: {detail}"
            ) from exc
        return [m.strip() for m in out.split("\x00") if m.strip()]

    def _package_messages(self, package: Package) -> list[str]:
        since = self._since(package)
        return self._messages(since, package.directory)

    def _render(self, version: str, messages: Sequence[str]) -> str:
        return render_section(version, messages, self.preset, self.today)

    def recommend_bump(self, package: Package) -> str:
        return recommend_bump(self._package_messages(package))

    def recommend_version(self, package: Package) -> str:
        return increment(package.version, self.recommend_bump(package))

    def update_changelog(self, package: Package, version: str) -> Path | None:
        messages = self._package_messages(package)
        path = self.root / package.directory / CHANGELOG_NAME
        prepend_section(path, self._render(version, messages))
        return path

    def update_root_changelog(self, root: Path, version: str) -> Path | None:
        previous = self._last_release_tag()
        messages = self._messages(previous, None)
        path = root / CHANGELOG_NAME
        prepend_section(path, self._render(version, messages))
        return path

    def _last_release_tag(self) -> str | None:
        tag = git("describe", "--tags", "--abbrev=0", check=False, cwd=self.root)
        return tag or None
