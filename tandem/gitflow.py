"""Git side of a release, as an explicit state machine.

::

    IDLE ──stage──▶ STAGED ──commit──▶ COMMITTED ──tag──▶ TAGGED ──push──▶ PUSHED
      │
      └──revert──▶ REVERTED          (canary: manifest edits are discarded)

A transition only happens once its git call succeeded, so after a
:class:`VersionControlError` the orchestrator still reports the last state
actually reached. Nothing is rolled back.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from .backends import VersionControl
from .errors import InvalidTransitionError
from .models import ReleaseMode, ReleasePlan
from .shell import step


class GitState(str, Enum):
    IDLE = "idle"
    STAGED = "staged"
    COMMITTED = "committed"
    TAGGED = "tagged"
    PUSHED = "pushed"
    REVERTED = "reverted"


def format_commit_message(template: str, version: str) -> str:
    """Expand ``%s`` to ``v<version>`` and ``%v`` to ``<version>``.

    Examples:
        format_commit_message("chore: Release %s", "1.0.1") → "chore: Release v1.0.1"
        format_commit_message("chore: Release %v", "1.0.1") → "chore: Release 1.0.1"
    """
    return template.replace("%s", f"v{version}").replace("%v", version)


def commit_message(plan: ReleasePlan, template: str | None = None) -> str:
    """Build the release commit message for ``plan``.

    Fixed mode defaults to ``v<version>``. Independent mode uses
    ``Publish`` (or the template) as the subject and lists every released
    ``name@version`` below it; placeholders are only expanded there when
    all released packages share one version.
    """
    if plan.mode is ReleaseMode.FIXED:
        assert plan.repo_version is not None
        return format_commit_message(template or "%s", plan.repo_version)

    subject = template or "Publish"
    shared = set(plan.versions.values())
    if len(shared) == 1:
        subject = format_commit_message(subject, shared.pop())
    changes = "\n".join(f" - {name}@{v}" for name, v in plan.versions.items())
    return f"{subject}\n\n{changes}"


def release_tags(plan: ReleasePlan) -> list[str]:
    """``v<version>`` in fixed mode, ``<name>@<version>`` per package otherwise."""
    if plan.mode is ReleaseMode.FIXED:
        assert plan.repo_version is not None
        return [f"v{plan.repo_version}"]
    return [f"{name}@{version}" for name, version in plan.versions.items()]


class GitReleaseOrchestrator:
    """Drives the git transitions of one release.

    Args:
        vcs: Version control collaborator.
    """

    def __init__(self, vcs: VersionControl) -> None:
        self.vcs = vcs
        self.state = GitState.IDLE
        self.tags: list[str] = []

    def _require(self, expected: GitState, action: str) -> None:
        if self.state is not expected:
            raise InvalidTransitionError(
                f"Cannot {action} from state '{self.state.value}' "
                f"(expected '{expected.value}')"
            )

    def stage(self, paths: Sequence[Path]) -> None:
        self._require(GitState.IDLE, "stage")
        for path in paths:
            self.vcs.stage_file(path)
        self.state = GitState.STAGED

    def commit(self, message: str) -> None:
        self._require(GitState.STAGED, "commit")
        self.vcs.commit(message)
        self.state = GitState.COMMITTED

    def tag(self, tags: Sequence[str]) -> None:
        self._require(GitState.COMMITTED, "tag")
        for tag in tags:
            self.vcs.create_tag(tag)
            self.tags.append(tag)
        self.state = GitState.TAGGED

    def push(self, remote: str) -> None:
        self._require(GitState.TAGGED, "push")
        self.vcs.push_with_tags(remote, list(self.tags))
        self.state = GitState.PUSHED

    def revert(self, patterns: Sequence[str]) -> None:
        self._require(GitState.IDLE, "revert")
        for pattern in patterns:
            self.vcs.revert_paths(pattern)
        self.state = GitState.REVERTED

    def release(
        self,
        paths: Sequence[Path],
        plan: ReleasePlan,
        *,
        message: str | None = None,
        remote: str = "origin",
    ) -> None:
        """Run the whole normal path: stage, commit, tag, push."""
        step("Committing and tagging release")
        self.stage(paths)
        msg = commit_message(plan, message)
        self.commit(msg)
        print(f"  Committed: {msg.splitlines()[0]}")
        self.tag(release_tags(plan))
        for tag in self.tags:
            print(f"  {tag}")
        self.push(remote)
        print(f"  Pushed to {remote}")
