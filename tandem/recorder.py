"""Persist the release to disk: dirty manifests and the root version."""

from __future__ import annotations

from pathlib import Path

from .manifest import Manifest
from .models import ReleaseMode, ReleasePlan
from .shell import step
from .toml import save_root_record, set_repo_version
from .workspace import Workspace


def record_release(plan: ReleasePlan, workspace: Workspace) -> list[Path]:
    """Write every dirty manifest and, in fixed mode, the root version.

    Independent mode never touches the root record, and neither does a
    canary release.

    Returns:
        Paths written, manifests first (graph order), root record last.
    """
    step("Writing versions")

    written: list[Path] = []
    for name in workspace.graph.topo_order():
        manifest: Manifest = workspace.manifests[name]
        if manifest.dirty:
            manifest.save()
            written.append(manifest.path)
            print(f"  {manifest.path.relative_to(workspace.root)}")

    if plan.mode is ReleaseMode.FIXED and not plan.is_canary:
        assert plan.repo_version is not None
        set_repo_version(workspace.record, plan.repo_version)
        save_root_record(workspace.record_path, workspace.record)
        written.append(workspace.record_path)
        print(f"  {workspace.record_path.name} → {plan.repo_version}")

    return written
