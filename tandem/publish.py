"""Registry side of a release: lifecycle scripts, publish, dist-tags.

Publishing runs on a bounded thread pool. The first failure cancels the
publishes that have not started yet, waits for the ones already running,
and is then raised. Packages already published stay published; there is
no unpublish step.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path

from .backends import Registry
from .errors import LifecycleScriptError, RegistryError, TandemError
from .graph import PackageGraph
from .models import PublishTarget, ReleasePlan
from .options import ReleaseOptions
from .shell import step

TEMP_TAG = "tandem-temp"
LIFECYCLE_SCRIPTS = ("preversion", "version", "postversion")


def resolve_dist_tag(options: ReleaseOptions, plan: ReleasePlan) -> str:
    """Explicit ``npm_tag``, else ``canary`` for canary releases, else ``latest``."""
    if options.npm_tag:
        return options.npm_tag
    if plan.is_canary:
        return "canary"
    return "latest"


def publish_targets(
    graph: PackageGraph,
    plan: ReleasePlan,
    options: ReleaseOptions,
    root: Path,
) -> list[PublishTarget]:
    """Build the publish list in dependency order.

    Ignored packages and packages marked private are left out. Private
    packages are still versioned and committed.
    """
    tag = resolve_dist_tag(options, plan)
    ignored = set(options.ignore)
    return [
        PublishTarget(
            name=name,
            directory=root / graph[name].directory,
            version=plan.versions[name],
            dist_tag=tag,
        )
        for name in graph.topo_order(plan.versions)
        if name not in ignored and not graph[name].private
    ]


def run_lifecycle_scripts(
    registry: Registry, graph: PackageGraph, targets: Iterable[PublishTarget]
) -> None:
    """Run preversion, version and postversion for each target, in order.

    Scripts a package does not define are skipped.

    Raises:
        LifecycleScriptError: On the first failing script.
    """
    for target in targets:
        scripts = graph[target.name].lifecycle_scripts
        for script in LIFECYCLE_SCRIPTS:
            if script not in scripts:
                continue
            print(f"  {target.name}: {script}")
            try:
                registry.run_lifecycle_script(script, target.directory, [])
            except LifecycleScriptError as exc:
                # Backends only know the directory; report the package name.
                raise LifecycleScriptError(script, target.name, exc.detail) from exc
            except TandemError as exc:
                raise LifecycleScriptError(script, target.name, str(exc)) from exc


def publish_batch(
    registry: Registry,
    targets: Sequence[PublishTarget],
    *,
    tag: str | None = None,
    concurrency: int = 4,
) -> list[str]:
    """Publish every target with at most ``concurrency`` calls in flight.

    Args:
        registry: Registry collaborator.
        targets: Packages to publish.
        tag: Dist-tag to publish under; defaults to each target's own.
        concurrency: Pool size.

    Returns:
        ``name@version`` for each published package, in target order.

    Raises:
        RegistryError: For the first failed publish, after running calls
            have finished.
    """
    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        futures: dict[Future[None], PublishTarget] = {
            pool.submit(registry.publish, t.directory, tag or t.dist_tag): t
            for t in targets
        }
        _, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
    # Leaving the pool waited for publishes that were already running.

    for future, target in futures.items():
        if future.cancelled():
            continue
        exc = future.exception()
        if exc is not None:
            raise RegistryError(
                f"Failed to publish {target.name}@{target.version}: {exc}"
            ) from exc

    published = [
        f"{t.name}@{t.version}"
        for f, t in futures.items()
        if not f.cancelled() and f.exception() is None
    ]
    for entry in published:
        print(f"  {entry}")
    return published


def move_dist_tags(registry: Registry, targets: Iterable[PublishTarget]) -> None:
    """Replace the temporary dist-tag by the intended one, one package at a time."""
    for t in targets:
        if registry.dist_tag_exists(t.name, TEMP_TAG):
            registry.remove_dist_tag(t.directory, t.name, TEMP_TAG)
        registry.add_dist_tag(t.directory, t.name, t.version, t.dist_tag)
        print(f"  {t.name}@{t.version} → {t.dist_tag}")


def publish_release(
    registry: Registry,
    graph: PackageGraph,
    plan: ReleasePlan,
    options: ReleaseOptions,
    root: Path,
) -> list[str]:
    """Run the whole publish stage for ``plan``.

    Returns:
        ``name@version`` of every published package (empty with skip_npm).
    """
    if options.skip_npm:
        return []

    targets = publish_targets(graph, plan, options, root)
    if not targets:
        return []

    step("Running lifecycle scripts")
    run_lifecycle_scripts(registry, graph, targets)

    if options.temp_tag:
        step(f"Publishing {len(targets)} packages under '{TEMP_TAG}'")
        published = publish_batch(
            registry, targets, tag=TEMP_TAG, concurrency=options.concurrency
        )
        step("Moving dist-tags")
        move_dist_tags(registry, targets)
    else:
        step(f"Publishing {len(targets)} packages under '{targets[0].dist_tag}'")
        published = publish_batch(registry, targets, concurrency=options.concurrency)
    return published
