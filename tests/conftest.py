"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import (
    FIXED_PACKAGES,
    INDEPENDENT_PACKAGES,
    make_package,
    write_workspace,
)

from tandem.graph import PackageGraph
from tandem.workspace import Workspace, discover_workspace


@pytest.fixture
def fixed_root(tmp_path: Path) -> Path:
    """A fixed-mode workspace at version 1.0.0."""
    return write_workspace(tmp_path, FIXED_PACKAGES)


@pytest.fixture
def independent_root(tmp_path: Path) -> Path:
    """An independent-mode workspace."""
    return write_workspace(tmp_path, INDEPENDENT_PACKAGES, version="independent")


@pytest.fixture
def fixed_workspace(fixed_root: Path) -> Workspace:
    return discover_workspace(fixed_root)


@pytest.fixture
def independent_workspace(independent_root: Path) -> Workspace:
    return discover_workspace(independent_root)


@pytest.fixture
def chain_graph() -> PackageGraph:
    """a depends on b, b depends on c."""
    return PackageGraph(
        [
            make_package("a", dependencies={"b": "^1.0.0"}),
            make_package("b", dependencies={"c": "^1.0.0"}),
            make_package("c"),
        ]
    )
