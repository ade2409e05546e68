"""Data models for tandem.

These Pydantic models represent the core data structures used throughout
the release pipeline.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ReleaseMode(str, Enum):
    """How versions are shared across the workspace."""

    FIXED = "fixed"
    INDEPENDENT = "independent"


class Package(BaseModel):
    """Snapshot of a single package manifest in the workspace.

    Attributes:
        name: Package name from the manifest.
        version: Current version string from the manifest.
        directory: Package directory, relative to the workspace root.
        manifest_path: Absolute path to the package.json file.
        dependencies: Runtime dependency name → declared range.
        dev_dependencies: Development dependency name → declared range.
        peer_dependencies: Peer dependency name → declared range. Never
            produces graph edges and is never rewritten.
        scripts: Script name → command.
        private: Marked ``"private": true``; versioned but never published.
    """

    name: str
    version: str
    directory: Path
    manifest_path: Path
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    peer_dependencies: dict[str, str] = Field(default_factory=dict)
    scripts: dict[str, str] = Field(default_factory=dict)
    private: bool = False

    @property
    def lifecycle_scripts(self) -> set[str]:
        """Names of the scripts this package defines."""
        return set(self.scripts)

    @property
    def local_dependency_names(self) -> list[str]:
        """Names from dependencies and devDependencies, in declaration order."""
        names = list(self.dependencies)
        names.extend(n for n in self.dev_dependencies if n not in self.dependencies)
        return names


class VersionBump(BaseModel):
    """Records a version change for a package.

    Attributes:
        old: The version before bumping.
        new: The version after bumping.
    """

    old: str
    new: str


class ReleasePlan(BaseModel):
    """The resolved versions for one release. Immutable once built.

    Attributes:
        mode: Fixed or independent versioning.
        strategy: Name of the resolver strategy that produced the plan.
        versions: Package name → target version, for released packages only.
        previous: Package name → version before the release.
        repo_version: The shared version (fixed mode only).
        meta_suffix: The canary suffix (canary releases only).
    """

    model_config = ConfigDict(frozen=True)

    mode: ReleaseMode
    strategy: str
    versions: dict[str, str]
    previous: dict[str, str]
    repo_version: str | None = None
    meta_suffix: str | None = None

    @property
    def is_canary(self) -> bool:
        return self.meta_suffix is not None

    @property
    def bumps(self) -> dict[str, VersionBump]:
        return {
            name: VersionBump(old=self.previous[name], new=new)
            for name, new in self.versions.items()
        }


class Choice(BaseModel):
    """One entry of a selection prompt."""

    label: str
    value: str


class PublishTarget(BaseModel):
    """A package ready to hand to the registry.

    Attributes:
        name: Package name.
        directory: Absolute package directory (publish runs from here).
        version: Version being published.
        dist_tag: The dist-tag the version should end up under.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    directory: Path
    version: str
    dist_tag: str
