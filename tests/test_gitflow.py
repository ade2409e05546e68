"""Tests for tandem.gitflow."""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeVCS

from tandem.errors import InvalidTransitionError, VersionControlError
from tandem.gitflow import (
    GitReleaseOrchestrator,
    GitState,
    commit_message,
    format_commit_message,
    release_tags,
)
from tandem.models import ReleaseMode, ReleasePlan


@pytest.fixture
def fixed_plan() -> ReleasePlan:
    return ReleasePlan(
        mode=ReleaseMode.FIXED,
        strategy="increment",
        versions={"package-1": "1.0.1", "package-2": "1.0.1"},
        previous={"package-1": "1.0.0", "package-2": "1.0.0"},
        repo_version="1.0.1",
    )


@pytest.fixture
def independent_plan() -> ReleasePlan:
    return ReleasePlan(
        mode=ReleaseMode.INDEPENDENT,
        strategy="increment",
        versions={"package-1": "1.0.1", "package-2": "2.0.1"},
        previous={"package-1": "1.0.0", "package-2": "2.0.0"},
    )


class TestFormatCommitMessage:
    def test_s_placeholder(self) -> None:
        assert (
            format_commit_message("chore: Release %s :rocket:", "1.0.1")
            == "chore: Release v1.0.1 :rocket:"
        )

    def test_v_placeholder(self) -> None:
        assert (
            format_commit_message("chore: Release %v :rocket:", "1.0.1")
            == "chore: Release 1.0.1 :rocket:"
        )


class TestCommitMessage:
    def test_fixed_default(self, fixed_plan: ReleasePlan) -> None:
        assert commit_message(fixed_plan) == "v1.0.1"

    def test_fixed_template(self, fixed_plan: ReleasePlan) -> None:
        assert commit_message(fixed_plan, "chore: Release %s") == "chore: Release v1.0.1"

    def test_independent_default(self, independent_plan: ReleasePlan) -> None:
        assert commit_message(independent_plan) == (
            "Publish\n\n - package-1@1.0.1\n - package-2@2.0.1"
        )

    def test_independent_custom_subject(self, independent_plan: ReleasePlan) -> None:
        message = commit_message(independent_plan, "chore: Publish %v")
        assert message.splitlines()[0] == "chore: Publish %v"
        assert message.endswith(" - package-2@2.0.1")

    def test_independent_shared_version_expands(self) -> None:
        plan = ReleasePlan(
            mode=ReleaseMode.INDEPENDENT,
            strategy="increment",
            versions={"a": "3.0.0", "b": "3.0.0"},
            previous={"a": "2.0.0", "b": "2.9.0"},
        )
        assert commit_message(plan, "Release %s").startswith("Release v3.0.0\n\n")


class TestReleaseTags:
    def test_fixed(self, fixed_plan: ReleasePlan) -> None:
        assert release_tags(fixed_plan) == ["v1.0.1"]

    def test_independent(self, independent_plan: ReleasePlan) -> None:
        assert release_tags(independent_plan) == ["package-1@1.0.1", "package-2@2.0.1"]


class TestGitReleaseOrchestrator:
    def test_full_release(self, fixed_plan: ReleasePlan) -> None:
        vcs = FakeVCS()
        flow = GitReleaseOrchestrator(vcs)
        paths = [Path("packages/package-1/package.json"), Path("tandem.toml")]

        flow.release(paths, fixed_plan, remote="upstream")

        assert flow.state is GitState.PUSHED
        assert vcs.staged == paths
        assert vcs.commits == ["v1.0.1"]
        assert vcs.created_tags == ["v1.0.1"]
        assert vcs.pushes == [("upstream", ["v1.0.1"])]

    def test_revert(self) -> None:
        vcs = FakeVCS()
        flow = GitReleaseOrchestrator(vcs)
        flow.revert(["packages/*/package.json"])
        assert flow.state is GitState.REVERTED
        assert vcs.reverted == ["packages/*/package.json"]

    def test_commit_before_stage_rejected(self) -> None:
        flow = GitReleaseOrchestrator(FakeVCS())
        with pytest.raises(InvalidTransitionError, match="commit"):
            flow.commit("v1.0.1")
        assert flow.state is GitState.IDLE

    def test_revert_after_commit_rejected(self) -> None:
        flow = GitReleaseOrchestrator(FakeVCS())
        flow.stage([])
        flow.commit("v1.0.1")
        with pytest.raises(InvalidTransitionError):
            flow.revert(["packages/*/package.json"])

    def test_failure_keeps_last_reached_state(self, fixed_plan: ReleasePlan) -> None:
        vcs = FakeVCS(fail_on=["create_tag"])
        flow = GitReleaseOrchestrator(vcs)

        with pytest.raises(VersionControlError):
            flow.release([Path("tandem.toml")], fixed_plan)

        assert flow.state is GitState.COMMITTED
        assert vcs.commits == ["v1.0.1"]
        assert vcs.pushes == []
