"""Tests for tandem.manifest."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tandem.errors import WorkspaceError
from tandem.manifest import Manifest, load_manifest


@pytest.fixture
def manifest_path(tmp_path: Path) -> Path:
    pkg_dir = tmp_path / "packages" / "widget"
    pkg_dir.mkdir(parents=True)
    path = pkg_dir / "package.json"
    path.write_text(
        json.dumps(
            {
                "name": "widget",
                "version": "1.0.0",
                "description": "kept as is",
                "dependencies": {"core": "^1.0.0"},
                "peerDependencies": {"react": "^18.0.0"},
                "scripts": {"version": "node bump.js"},
            },
            indent=2,
        )
    )
    return path


class TestLoadManifest:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="Cannot read"):
            load_manifest(tmp_path / "package.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text("{not json")
        with pytest.raises(WorkspaceError):
            load_manifest(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text("[]")
        with pytest.raises(WorkspaceError, match="JSON object"):
            load_manifest(path)


class TestManifest:
    def test_starts_clean(self, manifest_path: Path) -> None:
        assert not Manifest.load(manifest_path).dirty

    def test_same_version_stays_clean(self, manifest_path: Path) -> None:
        manifest = Manifest.load(manifest_path)
        manifest.set_version("1.0.0")
        assert not manifest.dirty

    def test_set_version_marks_dirty(self, manifest_path: Path) -> None:
        manifest = Manifest.load(manifest_path)
        manifest.set_version("1.1.0")
        assert manifest.dirty
        assert manifest.version == "1.1.0"

    def test_set_range(self, manifest_path: Path) -> None:
        manifest = Manifest.load(manifest_path)
        manifest.set_range("dependencies", "core", "^1.1.0")
        assert manifest.ranges("dependencies") == {"core": "^1.1.0"}
        assert manifest.dirty

    def test_missing_section_is_empty(self, manifest_path: Path) -> None:
        assert Manifest.load(manifest_path).ranges("devDependencies") == {}

    def test_save_preserves_unknown_keys_and_order(self, manifest_path: Path) -> None:
        manifest = Manifest.load(manifest_path)
        manifest.set_version("2.0.0")
        manifest.save()

        text = manifest_path.read_text()
        assert text.endswith("}\n")
        assert '  "name": "widget"' in text
        data = json.loads(text)
        assert list(data) == [
            "name",
            "version",
            "description",
            "dependencies",
            "peerDependencies",
            "scripts",
        ]
        assert data["description"] == "kept as is"
        assert not manifest.dirty

    def test_to_package(self, manifest_path: Path, tmp_path: Path) -> None:
        pkg = Manifest.load(manifest_path).to_package(tmp_path)
        assert pkg.name == "widget"
        assert pkg.directory == Path("packages/widget")
        assert pkg.dependencies == {"core": "^1.0.0"}
        assert pkg.peer_dependencies == {"react": "^18.0.0"}
        assert pkg.lifecycle_scripts == {"version"}
        assert not pkg.private

    def test_private_flag(self, manifest_path: Path, tmp_path: Path) -> None:
        manifest = Manifest.load(manifest_path)
        manifest.data["private"] = True
        assert manifest.to_package(tmp_path).private
