"""Workspace builders shared by the tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from tandem.models import Package

# package-2 → package-1, package-3 ⇢ package-2 (dev + peer),
# package-4 → package-1 with a range never satisfied, package-5 → package-1.
FIXED_PACKAGES: dict[str, dict[str, Any]] = {
    "package-1": {"name": "package-1", "version": "1.0.0"},
    "package-2": {
        "name": "package-2",
        "version": "1.0.0",
        "dependencies": {"package-1": "^1.0.0"},
    },
    "package-3": {
        "name": "package-3",
        "version": "1.0.0",
        "devDependencies": {"package-2": "^1.0.0"},
        "peerDependencies": {"package-2": "^1.0.0"},
    },
    "package-4": {
        "name": "package-4",
        "version": "1.0.0",
        "dependencies": {"package-1": "^0.0.0"},
    },
    "package-5": {
        "name": "package-5",
        "private": True,
        "version": "1.0.0",
        "dependencies": {"package-1": "^1.0.0", "left-pad": "^1.1.0"},
    },
}

INDEPENDENT_PACKAGES: dict[str, dict[str, Any]] = {
    "package-1": {"name": "package-1", "version": "1.0.0"},
    "package-2": {
        "name": "package-2",
        "version": "2.0.0",
        "dependencies": {"package-1": "^1.0.0"},
    },
    "package-3": {
        "name": "package-3",
        "version": "3.0.0",
        "devDependencies": {"package-2": "^2.0.0"},
    },
    "package-4": {
        "name": "package-4",
        "version": "4.0.0",
        "dependencies": {"package-1": "^0.0.0"},
    },
    "package-5": {
        "name": "package-5",
        "version": "5.0.0",
        "dependencies": {"package-1": "^1.0.0"},
    },
}


def write_workspace(
    root: Path,
    packages: dict[str, dict[str, Any]],
    version: str = "1.0.0",
    publish: str = "",
) -> Path:
    """Write tandem.toml plus one package.json per entry under packages/."""
    record = f'# release settings\nversion = "{version}"\npackages = ["packages/*"]\n'
    if publish:
        record += f"\n[publish]\n{publish}"
    (root / "tandem.toml").write_text(record)
    for dirname, manifest in packages.items():
        pkg_dir = root / "packages" / dirname
        pkg_dir.mkdir(parents=True)
        (pkg_dir / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
    return root


def read_manifest(root: Path, dirname: str) -> dict[str, Any]:
    return json.loads((root / "packages" / dirname / "package.json").read_text())


def make_package(name: str, version: str = "1.0.0", **fields: Any) -> Package:
    """Build a Package living in packages/<name>."""
    directory = Path("packages") / name
    return Package(
        name=name,
        version=version,
        directory=directory,
        manifest_path=directory / "package.json",
        **fields,
    )
