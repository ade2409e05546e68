"""Dependency range rewriting.

After versions are resolved, every workspace manifest that depends on a
released package gets its declared range moved to the new version, but
only when that range still covered the released package's previous
version. A range that already pointed elsewhere is an intentional pin and
is left alone. ``peerDependencies`` are never touched.
"""

from __future__ import annotations

from .graph import PackageGraph
from .manifest import DEPENDENCY_SECTIONS, Manifest
from .models import ReleasePlan
from .versions import format_range, satisfies


def update_dependents(
    graph: PackageGraph,
    manifests: dict[str, Manifest],
    plan: ReleasePlan,
    *,
    exact: bool = False,
) -> list[str]:
    """Apply ``plan`` to the in-memory manifests.

    Sets the version of every released package and rewrites matching
    ranges in every workspace manifest, released or not. Running it again
    against already updated manifests changes nothing.

    Args:
        graph: The workspace package graph.
        manifests: Package name → manifest, mutated in place.
        plan: The resolved release plan.
        exact: Pin to the bare version instead of a caret range.

    Returns:
        Names of the manifests that changed, in graph order.
    """
    changed: list[str] = []
    for name in graph.topo_order():
        manifest = manifests[name]
        touched = False

        new_version = plan.versions.get(name)
        if new_version is not None and manifest.version != new_version:
            manifest.set_version(new_version)
            touched = True

        for section in DEPENDENCY_SECTIONS:
            for dep, declared in list(manifest.ranges(section).items()):
                if dep == name or dep not in plan.versions:
                    continue
                target = format_range(plan.versions[dep], exact)
                if declared != target and satisfies(plan.previous[dep], declared):
                    manifest.set_range(section, dep, target)
                    touched = True

        if touched:
            changed.append(name)
    return changed
