"""Tests for bdw.workspace."""

from pathlib import Path

import pytest

from bdw.workspace import (
    DEFAULT_RIG,
    current_rig,
    find_beads_root,
    formula_search_paths,
    formulas_dir_for,
    user_formulas_dir,
)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.delenv("GT_ROOT", raising=False)
    return home


class TestFindBeadsRoot:
    def test_at_root(self, beads_workspace: Path) -> None:
        assert find_beads_root(beads_workspace) == beads_workspace.resolve()

    def test_walks_up(self, beads_workspace: Path) -> None:
        nested = beads_workspace / "a" / "b"
        nested.mkdir(parents=True)
        assert find_beads_root(nested) == beads_workspace.resolve()

    def test_none_outside_workspace(self, tmp_path: Path) -> None:
        lone = tmp_path / "lone"
        lone.mkdir()
        # tmp_path lives under the system temp dir, which has no .beads
        assert find_beads_root(lone) is None

    def test_beads_file_is_not_a_workspace(self, tmp_path: Path) -> None:
        (tmp_path / ".beads").write_text("")
        assert find_beads_root(tmp_path) is None


class TestFormulaSearchPaths:
    def test_project_then_user(self, home: Path, beads_workspace: Path) -> None:
        assert formula_search_paths(beads_workspace) == [
            beads_workspace / ".beads" / "formulas",
            home / ".beads" / "formulas",
        ]

    def test_without_project(self, home: Path) -> None:
        assert formula_search_paths(None) == [home / ".beads" / "formulas"]

    def test_gt_root_last(self, home: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GT_ROOT", str(tmp_path / "town"))
        assert formula_search_paths(None)[-1] == tmp_path / "town" / ".beads" / "formulas"


class TestFormulasDirFor:
    def test_inside_project(self, home: Path, beads_workspace: Path) -> None:
        assert formulas_dir_for(beads_workspace) == beads_workspace.resolve() / ".beads" / "formulas"

    def test_outside_project_uses_user_dir(self, home: Path, tmp_path: Path) -> None:
        lone = tmp_path / "lone"
        lone.mkdir()
        assert formulas_dir_for(lone) == user_formulas_dir()


class TestCurrentRig:
    def test_workspace_name(self, beads_workspace: Path) -> None:
        nested = beads_workspace / "src"
        nested.mkdir()
        assert current_rig(nested) == "repo"

    def test_default_outside_workspace(self, tmp_path: Path) -> None:
        assert current_rig(tmp_path) == DEFAULT_RIG
