"""Collaborator interfaces and their default implementations.

The release stages only talk to git, the registry and the terminal through
the narrow protocols below, so the core stays deterministic under test:

- :class:`VersionControl` — implemented by :class:`GitCLI`
- :class:`Registry` — implemented by :class:`NpmCLI`
- :class:`Prompter` — implemented by :class:`ClickPrompter`

Subprocess failures are translated into the matching domain error here and
nowhere else.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import click

from .errors import LifecycleScriptError, RegistryError, VersionControlError
from .models import Choice
from .shell import capture, git, run


@runtime_checkable
class VersionControl(Protocol):
    """Version-control operations used by the pipeline."""

    def is_initialized(self) -> bool: ...

    def current_branch(self) -> str: ...

    def current_commit_hash(self) -> str: ...

    def has_tags(self) -> bool: ...

    def last_tag(self) -> str | None: ...

    def changed_files_since(self, tag: str, directory: Path) -> list[str]: ...

    def stage_file(self, path: Path) -> None: ...

    def commit(self, message: str) -> None: ...

    def create_tag(self, tag: str) -> None: ...

    def revert_paths(self, pattern: str) -> None: ...

    def push_with_tags(self, remote: str, tags: Sequence[str]) -> None: ...


@runtime_checkable
class Registry(Protocol):
    """Registry operations used by the publish stage."""

    def publish(self, directory: Path, tag: str) -> None: ...

    def dist_tag_exists(self, package: str, tag: str) -> bool: ...

    def remove_dist_tag(self, directory: Path, package: str, tag: str) -> None: ...

    def add_dist_tag(
        self, directory: Path, package: str, version: str, tag: str
    ) -> None: ...

    def run_lifecycle_script(
        self, name: str, directory: Path, args: Sequence[str] = ()
    ) -> None: ...


@runtime_checkable
class Prompter(Protocol):
    """Interactive questions asked while resolving versions."""

    def select_one(self, message: str, choices: Sequence[Choice]) -> str: ...

    def confirm(self, message: str) -> bool: ...

    def ask(self, message: str) -> str: ...


def _stderr(exc: subprocess.CalledProcessError) -> str:
    return (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""


class GitCLI:
    """:class:`VersionControl` backed by the ``git`` binary.

    Args:
        root: Repository working tree; every command runs from here.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _git(self, *args: str) -> str:
        try:
            return git(*args, cwd=self.root)
        except subprocess.CalledProcessError as exc:
            detail = _stderr(exc)
            message = f"git {' '.join(args)} failed"
            raise VersionControlError(
                f"{message}: {detail}" if detail else message
            ) from exc

    def is_initialized(self) -> bool:
        out = git("rev-parse", "--is-inside-work-tree", check=False, cwd=self.root)
        return out == "true"

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD")

    def current_commit_hash(self) -> str:
        return self._git("rev-parse", "HEAD")

    def has_tags(self) -> bool:
        return bool(git("tag", "--list", check=False, cwd=self.root))

    def last_tag(self) -> str | None:
        tag = git("describe", "--tags", "--abbrev=0", check=False, cwd=self.root)
        return tag or None

    def changed_files_since(self, tag: str, directory: Path) -> list[str]:
        out = self._git("diff", "--name-only", tag, "--", str(directory))
        return out.splitlines()

    def stage_file(self, path: Path) -> None:
        self._git("add", str(path))

    def commit(self, message: str) -> None:
        self._git("commit", "-m", message)

    def create_tag(self, tag: str) -> None:
        self._git("tag", "-a", tag, "-m", tag)

    def revert_paths(self, pattern: str) -> None:
        self._git("checkout", "--", pattern)

    def push_with_tags(self, remote: str, tags: Sequence[str]) -> None:
        self._git("push", remote, self.current_branch())
        if tags:
            self._git("push", remote, *tags)


class NpmCLI:
    """:class:`Registry` backed by the ``npm`` binary.

    Args:
        registry: Registry URL forwarded as ``--registry``; None uses the
                  npm configuration.
        client: Executable to invoke (``npm`` or a compatible client).
    """

    def __init__(self, registry: str | None = None, client: str = "npm") -> None:
        self.registry = registry
        self.client = client

    def _registry_args(self) -> list[str]:
        return ["--registry", self.registry] if self.registry else []

    def publish(self, directory: Path, tag: str) -> None:
        result = run(
            self.client,
            "publish",
            "--tag",
            tag,
            *self._registry_args(),
            check=False,
            cwd=directory,
        )
        if result.returncode != 0:
            raise RegistryError(f"{self.client} publish failed in {directory}")

    def dist_tag_exists(self, package: str, tag: str) -> bool:
        try:
            out = capture(
                self.client, "dist-tag", "ls", package, *self._registry_args()
            )
        except subprocess.CalledProcessError as exc:
            raise RegistryError(
                f"{self.client} dist-tag ls {package} failed: {_stderr(exc)}"
            ) from exc
        # Output lines look like "latest: 1.0.0"
        return any(line.split(":", 1)[0].strip() == tag for line in out.splitlines())

    def remove_dist_tag(self, directory: Path, package: str, tag: str) -> None:
        result = run(
            self.client,
            "dist-tag",
            "rm",
            package,
            tag,
            *self._registry_args(),
            check=False,
            cwd=directory,
        )
        if result.returncode != 0:
            raise RegistryError(f"{self.client} dist-tag rm {package} {tag} failed")

    def add_dist_tag(
        self, directory: Path, package: str, version: str, tag: str
    ) -> None:
        result = run(
            self.client,
            "dist-tag",
            "add",
            f"{package}@{version}",
            tag,
            *self._registry_args(),
            check=False,
            cwd=directory,
        )
        if result.returncode != 0:
            raise RegistryError(
                f"{self.client} dist-tag add {package}@{version} {tag} failed"
            )

    def run_lifecycle_script(
        self, name: str, directory: Path, args: Sequence[str] = ()
    ) -> None:
        cmd = [self.client, "run", name]
        if args:
            cmd.extend(["--", *args])
        result = run(*cmd, check=False, cwd=directory)
        if result.returncode != 0:
            raise LifecycleScriptError(
                name, directory.name, f"exit code {result.returncode}"
            )


class ClickPrompter:
    """:class:`Prompter` rendered with click."""

    def select_one(self, message: str, choices: Sequence[Choice]) -> str:
        click.echo(message)
        for i, choice in enumerate(choices, start=1):
            click.echo(f"  {i}) {choice.label}")
        picked = click.prompt(
            "Select", type=click.IntRange(1, len(choices)), default=1
        )
        return choices[picked - 1].value

    def confirm(self, message: str) -> bool:
        return click.confirm(message, default=False)

    def ask(self, message: str) -> str:
        return click.prompt(message).strip()
