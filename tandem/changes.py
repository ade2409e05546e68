"""Change detection: which packages must be part of this release."""

from __future__ import annotations

from collections.abc import Iterable

from .backends import VersionControl
from .graph import PackageGraph
from .shell import step
from .versions import PRERELEASE_KEYWORDS, is_prerelease


def detect_changes(
    graph: PackageGraph,
    vcs: VersionControl,
    last_tag: str | None,
    *,
    ignore: Iterable[str] = (),
    cd_version: str | None = None,
    force_publish: bool = False,
) -> list[str]:
    """Determine which packages need to be released.

    A package is a candidate if:
    1. No previous release tag exists (first release), or force_publish is set
    2. Any file in the package directory changed since the last tag
    3. cd_version is a plain increment and the package is still on a
       prerelease version
    4. Any of its dependencies is a candidate (transitive dependents)

    Ignored packages are dropped from the result but still pass changes
    on to their dependents.

    Args:
        graph: The workspace package graph.
        vcs: Version control used to list changed files.
        last_tag: Last release tag, or None if there never was a release.
        ignore: Package names excluded from the release.
        cd_version: The requested increment keyword, if any.
        force_publish: Mark every package as changed.

    Returns:
        Candidate package names, dependencies first.
    """
    step("Detecting changes")

    dirty: set[str]
    if force_publish:
        dirty = set(graph.names)
        print("  Force publish: all packages marked changed")
    elif last_tag is None:
        dirty = set(graph.names)
        print("  No previous release tag: all packages are new")
    else:
        dirty = set()
        for pkg in graph:
            if vcs.changed_files_since(last_tag, pkg.directory):
                dirty.add(pkg.name)
                print(f"  {pkg.name}: changed since {last_tag}")

    # Packages left on a prerelease are swept into a final release.
    if cd_version is not None and cd_version not in PRERELEASE_KEYWORDS:
        for pkg in graph:
            if pkg.name not in dirty and is_prerelease(pkg.version):
                dirty.add(pkg.name)
                print(f"  {pkg.name}: prerelease {pkg.version} not yet released")

    # Propagate to dependents so their declared ranges are revisited
    closure = graph.dependents_closure(dirty)
    for name in graph.topo_order(closure - dirty):
        deps = [d for d in graph.dependencies_of(name) if d in closure]
        print(f"  {name}: depends on {', '.join(deps)}")

    ignored = set(ignore)
    for name in sorted(closure & ignored):
        print(f"  {name}: ignored")

    return graph.topo_order(closure - ignored)
