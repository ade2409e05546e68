"""Workspace discovery.

Reads the root record to find member directories, then loads each
member's package.json. The resulting snapshot is taken once per run; later
stages never re-read manifests from disk.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from .errors import WorkspaceError
from .graph import PackageGraph
from .manifest import MANIFEST_NAME, Manifest
from .shell import step
from .toml import (
    ROOT_RECORD_NAME,
    get_repo_version,
    get_workspace_member_globs,
    load_root_record,
)


@dataclass
class Workspace:
    """Snapshot of the workspace taken at invocation time.

    Attributes:
        root: Workspace root directory.
        record_path: Path to tandem.toml.
        record: Parsed root record (format preserving).
        graph: Package graph built from the manifests.
        manifests: Package name → mutable manifest.
        member_globs: Member patterns from the root record.
    """

    root: Path
    record_path: Path
    record: tomlkit.TOMLDocument
    graph: PackageGraph
    manifests: dict[str, Manifest]
    member_globs: list[str]

    @property
    def repo_version(self) -> str | None:
        return get_repo_version(self.record)

    @property
    def manifest_globs(self) -> list[str]:
        """Globs matching every member manifest, e.g. ``packages/*/package.json``."""
        return [f"{g.rstrip('/')}/{MANIFEST_NAME}" for g in self.member_globs]


def discover_workspace(root: Path) -> Workspace:
    """Scan the workspace and discover all packages.

    Reads ``packages`` from tandem.toml to find package directories, then
    loads each package's package.json.

    Raises:
        WorkspaceError: If the root record is missing, no member has a
            manifest, or two members share a name.
    """
    step("Discovering workspace packages")

    record_path = root / ROOT_RECORD_NAME
    record = load_root_record(record_path)
    member_globs = get_workspace_member_globs(record)

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / MANIFEST_NAME).exists() and p not in member_dirs:
                member_dirs.append(p)

    if not member_dirs:
        raise WorkspaceError("No packages found matching workspace members")

    manifests: dict[str, Manifest] = {}
    for d in member_dirs:
        manifest = Manifest.load(d / MANIFEST_NAME)
        if manifest.name in manifests:
            raise WorkspaceError(
                f"Package name '{manifest.name}' is used by both "
                f"{manifests[manifest.name].path.parent} and {d}"
            )
        manifests[manifest.name] = manifest

    graph = PackageGraph(m.to_package(root) for m in manifests.values())

    # Print discovered packages for user feedback
    for name in graph.topo_order():
        pkg = graph[name]
        deps = graph.dependencies_of(name)
        suffix = f" → [{', '.join(deps)}]" if deps else ""
        print(f"  {name} {pkg.version} ({pkg.directory}){suffix}")
    for cycle in graph.cycles():
        print(f"  cycle: {' ↔ '.join(cycle)}")

    return Workspace(
        root=root,
        record_path=record_path,
        record=record,
        graph=graph,
        manifests=manifests,
        member_globs=member_globs,
    )
