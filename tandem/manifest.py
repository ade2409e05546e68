"""package.json reading and writing.

Manifests are kept as plain dicts so that keys tandem does not know about
survive a rewrite untouched and in their original order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import WorkspaceError
from .models import Package

MANIFEST_NAME = "package.json"

# Sections whose entries create graph edges and may be rewritten.
DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file."""
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise WorkspaceError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise WorkspaceError(f"{path} does not contain a JSON object")
    return data


def save_manifest(path: Path, data: dict[str, Any]) -> None:
    """Write a manifest with two-space indentation and a trailing newline."""
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n")


class Manifest:
    """A mutable, in-memory package.json.

    Mutations mark the manifest dirty; :meth:`save` only ever writes what
    was loaded plus those mutations.
    """

    def __init__(self, path: Path, data: dict[str, Any]) -> None:
        self.path = path
        self.data = data
        self.dirty = False

    @classmethod
    def load(cls, path: Path) -> Manifest:
        return cls(path, load_manifest(path))

    @property
    def name(self) -> str:
        return self.data.get("name", self.path.parent.name)

    @property
    def version(self) -> str:
        return self.data.get("version", "0.0.0")

    def set_version(self, version: str) -> None:
        if self.data.get("version") != version:
            self.data["version"] = version
            self.dirty = True

    def ranges(self, section: str) -> dict[str, str]:
        """Declared ranges in ``section``, or an empty dict."""
        value = self.data.get(section)
        return value if isinstance(value, dict) else {}

    def set_range(self, section: str, dependency: str, range_str: str) -> None:
        section_data = self.data[section]
        if section_data.get(dependency) != range_str:
            section_data[dependency] = range_str
            self.dirty = True

    def save(self) -> None:
        save_manifest(self.path, self.data)
        self.dirty = False

    def to_package(self, root: Path) -> Package:
        """Snapshot this manifest as a :class:`Package`.

        Args:
            root: Workspace root; the package directory is stored relative
                  to it.
        """
        return Package(
            name=self.name,
            version=self.version,
            directory=self.path.parent.relative_to(root),
            manifest_path=self.path,
            dependencies=dict(self.ranges("dependencies")),
            dev_dependencies=dict(self.ranges("devDependencies")),
            peer_dependencies=dict(self.ranges("peerDependencies")),
            scripts=dict(self.ranges("scripts")),
            private=self.data.get("private") is True,
        )
