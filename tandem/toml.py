"""Workspace-root record reading and writing.

The root record is ``tandem.toml``. It lists the workspace members, holds
the shared version in fixed mode (or the literal ``"independent"``), and
keeps persisted defaults for release options under ``[publish]``::

    version = "1.0.0"
    packages = ["packages/*"]

    [publish]
    allow-branch = ["main"]

Uses tomlkit to preserve formatting and comments when the version is
rewritten. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import WorkspaceError

ROOT_RECORD_NAME = "tandem.toml"
INDEPENDENT = "independent"


def load_root_record(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse the root record.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        WorkspaceError: If the file is missing or is not valid TOML.
    """
    if not path.exists():
        raise WorkspaceError(
            f"No {ROOT_RECORD_NAME} found in {path.parent}. Example:\n\n"
            '  version = "0.0.0"\n'
            '  packages = ["packages/*"]'
        )
    try:
        return tomlkit.parse(path.read_text())
    except TOMLKitError as exc:
        raise WorkspaceError(f"Invalid {path.name}: {exc}") from exc


def save_root_record(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns.

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        WorkspaceError: If no workspace members are defined.
    """
    members = doc.get("packages")
    if not members:
        raise WorkspaceError(f"No packages defined in {ROOT_RECORD_NAME}")
    return [str(m) for m in members]


def get_repo_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Return the shared version, or None when unset or independent."""
    version = doc.get("version")
    if version is None or str(version) == INDEPENDENT:
        return None
    return str(version)


def is_independent(doc: tomlkit.TOMLDocument) -> bool:
    return str(doc.get("version", "")) == INDEPENDENT


def set_repo_version(doc: tomlkit.TOMLDocument, version: str) -> None:
    doc["version"] = version


def get_publish_defaults(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Return ``[publish]`` as plain Python values with snake_case keys."""
    table = doc.get("publish")
    if table is None:
        return {}
    return {
        str(key).replace("-", "_"): value
        for key, value in table.unwrap().items()
    }
