"""Tests for tandem.conventional."""

from __future__ import annotations

import subprocess
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from helpers import make_package

from tandem.conventional import (
    ConventionalChangelog,
    highest_bump,
    parse_commit,
    prepend_section,
    recommend_bump,
    render_section,
)
from tandem.errors import VersionControlError

DAY = date(2024, 3, 1)


class TestParseCommit:
    def test_type_scope_description(self) -> None:
        commit = parse_commit("feat(cli): add --canary")
        assert commit is not None
        assert (commit.type, commit.scope, commit.description) == (
            "feat",
            "cli",
            "add --canary",
        )
        assert commit.bump == "minor"

    def test_bang_is_breaking(self) -> None:
        commit = parse_commit("fix!: drop node 14")
        assert commit is not None and commit.bump == "major"

    def test_breaking_footer(self) -> None:
        commit = parse_commit("refactor: rename\n\nBREAKING CHANGE: new api")
        assert commit is not None and commit.breaking

    def test_not_conventional(self) -> None:
        assert parse_commit("Merge branch 'main'") is None
        assert parse_commit("") is None

    def test_chore_implies_nothing(self) -> None:
        commit = parse_commit("chore: tidy")
        assert commit is not None and commit.bump is None


class TestRecommendBump:
    def test_highest_wins(self) -> None:
        assert recommend_bump(["fix: a", "feat: b", "chore: c"]) == "minor"
        assert recommend_bump(["fix: a", "feat!: b"]) == "major"

    def test_defaults_to_patch(self) -> None:
        assert recommend_bump(["chore: nothing", "not conventional"]) == "patch"
        assert recommend_bump([]) == "patch"

    def test_highest_bump(self) -> None:
        assert highest_bump(["patch", None, "minor"]) == "minor"
        assert highest_bump([]) == "patch"


class TestRenderSection:
    def test_groups_by_type(self) -> None:
        section = render_section(
            "1.1.0", ["feat(ui): button", "fix: crash", "chore: x"], "angular", DAY
        )
        assert section.startswith("## 1.1.0 (2024-03-01)")
        assert "### Features\n\n* **ui:** button" in section
        assert "### Bug Fixes\n\n* crash" in section
        assert "chore" not in section

    def test_version_bump_only(self) -> None:
        section = render_section("1.0.1", ["chore: x"], "angular", DAY)
        assert "**Note:** Version bump only" in section

    def test_preset_controls_sections(self) -> None:
        messages = ["docs: readme"]
        assert "Documentation" not in render_section("1.0.1", messages, "angular", DAY)
        assert "### Documentation" in render_section(
            "1.0.1", messages, "conventionalcommits", DAY
        )

    def test_breaking_listed(self) -> None:
        section = render_section("2.0.0", ["feat!: new api"], "angular", DAY)
        assert "### BREAKING CHANGES\n\n* new api" in section


class TestPrependSection:
    def test_new_file(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        prepend_section(path, "## 1.0.1 (2024-03-01)\n")
        assert path.read_text() == "# Change Log\n\n## 1.0.1 (2024-03-01)\n"

    def test_newest_first(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text("# Change Log\n\n## 1.0.0 (2024-01-01)\n")
        prepend_section(path, "## 1.0.1 (2024-03-01)\n")
        content = path.read_text()
        assert content.index("1.0.1") < content.index("1.0.0")
        assert content.count("# Change Log") == 1


class TestConventionalChangelog:
    @patch("tandem.conventional.git")
    def test_recommend_version(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.side_effect = [
            "refs/tags/package-1@1.0.0",  # package tag exists
            "feat: new thing\x00fix: bug\x00",  # git log
        ]
        adapter = ConventionalChangelog(tmp_path, today=DAY)

        version = adapter.recommend_version(make_package("package-1"))

        assert version == "1.1.0"
        log_args = mock_git.call_args_list[1].args
        assert "package-1@1.0.0..HEAD" in log_args
        assert log_args[-1] == str(Path("packages/package-1"))

    @patch("tandem.conventional.git")
    def test_update_changelog(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.side_effect = ["", "", "fix: crash\x00"]  # no tags, then log
        (tmp_path / "packages" / "package-1").mkdir(parents=True)
        adapter = ConventionalChangelog(tmp_path, today=DAY)

        path = adapter.update_changelog(make_package("package-1"), "1.0.1")

        assert path == tmp_path / "packages/package-1/CHANGELOG.md"
        assert "* crash" in path.read_text()

    @patch("tandem.conventional.git")
    def test_update_root_changelog(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.side_effect = ["v1.0.0", "feat: shared\x00"]
        adapter = ConventionalChangelog(
            tmp_path, preset="conventionalcommits", today=DAY
        )

        path = adapter.update_root_changelog(tmp_path, "1.1.0")

        assert path == tmp_path / "CHANGELOG.md"
        assert "## 1.1.0 (2024-03-01)" in path.read_text()
        assert "v1.0.0..HEAD" in mock_git.call_args_list[1].args

    @patch("tandem.conventional.git")
    def test_recommend_bump(self, mock_git: MagicMock, tmp_path: Path) -> None:
        mock_git.side_effect = ["", "", "feat!: drop node 14\x00"]
        adapter = ConventionalChangelog(tmp_path, today=DAY)
        assert adapter.recommend_bump(make_package("package-1")) == "major"

    @patch("tandem.conventional.git")
    def test_git_failure_is_a_domain_error(
        self, mock_git: MagicMock, tmp_path: Path
    ) -> None:
        mock_git.side_effect = [
            "",
            "",
            subprocess.CalledProcessError(
                128, ["git", "log"], stderr="fatal: not a git repository\n"
            ),
        ]
        adapter = ConventionalChangelog(tmp_path, today=DAY)

        with pytest.raises(VersionControlError, match="not a git repository"):
            adapter.recommend_version(make_package("package-1"))
