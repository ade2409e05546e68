"""Release pipeline: gate → detect → resolve → update → record → git → publish.

This module wires the release stages together:
1. Check the branch gate (skipped for canary releases)
2. Detect which packages changed since the last release tag
3. Resolve target versions with the selected strategy, then confirm
4. Rewrite cross-package ranges and write manifests to disk
5. Update changelogs when conventional commits are enabled
6. Commit, tag and push (or, for canary releases, restore manifests)
7. Run lifecycle scripts and publish to the registry

Every collaborator is passed in, so the whole run can be driven by fakes.
Nothing is rolled back on failure: disk writes, commits and published
packages that happened before an error stay as they are.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .backends import Prompter, Registry, VersionControl
from .branch import check_branch
from .changes import detect_changes
from .conventional import ConventionalCommitsAdapter
from .deps import update_dependents
from .errors import NothingToPublishError, VersionControlError
from .gitflow import GitReleaseOrchestrator, GitState
from .models import ReleaseMode, ReleasePlan
from .options import ReleaseOptions, release_mode
from .publish import publish_release
from .recorder import record_release
from .resolver import ResolveContext, confirm_plan, resolve_versions
from .shell import step
from .workspace import Workspace


class ReleaseResult(BaseModel):
    """What a completed run did.

    Attributes:
        plan: The resolved release plan.
        git_state: Final state of the git orchestrator.
        written: Files written to disk (manifests, root record, changelogs).
        published: ``name@version`` of every published package.
    """

    plan: ReleasePlan
    git_state: GitState
    written: list[Path] = Field(default_factory=list)
    published: list[str] = Field(default_factory=list)


def find_last_tag(vcs: VersionControl) -> str | None:
    """Most recent release tag, or None for a first release."""
    step("Finding last release tag")
    tag = vcs.last_tag() if vcs.has_tags() else None
    print(f"  {tag or '<none: every package is new>'}")
    return tag


def changed_packages(
    options: ReleaseOptions, workspace: Workspace, vcs: VersionControl
) -> list[str]:
    """Release candidates for ``options``, dependencies first. No side effects."""
    if not vcs.is_initialized():
        raise VersionControlError("Not a git repository. Run from the repo root.")
    return detect_changes(
        workspace.graph,
        vcs,
        find_last_tag(vcs),
        ignore=options.ignore,
        cd_version=options.cd_version,
        force_publish=options.force_publish,
    )


def write_changelogs(
    adapter: ConventionalCommitsAdapter, workspace: Workspace, plan: ReleasePlan
) -> list[Path]:
    """Prepend a section to every released package's changelog.

    In fixed mode the workspace root changelog is updated as well.
    """
    step("Updating changelogs")
    paths: list[Path] = []
    for name, version in plan.versions.items():
        path = adapter.update_changelog(workspace.graph[name], version)
        if path is not None:
            paths.append(path)
    if plan.mode is ReleaseMode.FIXED:
        assert plan.repo_version is not None
        path = adapter.update_root_changelog(workspace.root, plan.repo_version)
        if path is not None:
            paths.append(path)
    for path in paths:
        print(f"  {path}")
    return paths


def run_release(
    options: ReleaseOptions,
    workspace: Workspace,
    *,
    vcs: VersionControl,
    registry: Registry,
    prompter: Prompter | None = None,
    adapter: ConventionalCommitsAdapter | None = None,
) -> ReleaseResult | None:
    """Run the full release.

    Args:
        options: Validated release options.
        workspace: Workspace snapshot taken at invocation time.
        vcs: Version control collaborator.
        registry: Registry collaborator.
        prompter: Terminal prompts (interactive versions, confirmation).
        adapter: Conventional-commits collaborator.

    Returns:
        The release result, or None when the user declined to continue.

    Raises:
        TandemError: Any fatal condition; see :mod:`tandem.errors`.
    """
    canary = options.canary is not None

    if not vcs.is_initialized():
        raise VersionControlError("Not a git repository. Run from the repo root.")

    if options.allow_branch:
        check_branch(vcs.current_branch(), options.allow_branch, canary=canary)

    candidates = changed_packages(options, workspace, vcs)
    if not candidates:
        raise NothingToPublishError("No changed packages to publish")

    ctx = ResolveContext(
        graph=workspace.graph,
        candidates=candidates,
        options=options,
        mode=release_mode(options, workspace.record),
        repo_version=workspace.repo_version or "0.0.0",
        commit_hash=vcs.current_commit_hash() if canary else "",
        prompter=prompter,
        adapter=adapter,
    )
    plan = resolve_versions(ctx)
    if not confirm_plan(plan, prompter, options.yes):
        print("Aborted.")
        return None

    update_dependents(workspace.graph, workspace.manifests, plan, exact=options.exact)
    written = record_release(plan, workspace)

    if options.conventional_commits and not plan.is_canary and adapter is not None:
        written.extend(write_changelogs(adapter, workspace, plan))

    gitflow = GitReleaseOrchestrator(vcs)
    if plan.is_canary:
        try:
            published = publish_release(
                registry, workspace.graph, plan, options, workspace.root
            )
        finally:
            if not options.skip_git:
                step("Restoring manifests")
                gitflow.revert(workspace.manifest_globs)
    else:
        if not options.skip_git:
            gitflow.release(
                written, plan, message=options.message, remote=options.git_remote
            )
        published = publish_release(
            registry, workspace.graph, plan, options, workspace.root
        )

    step("Done")
    return ReleaseResult(
        plan=plan, git_state=gitflow.state, written=written, published=published
    )
