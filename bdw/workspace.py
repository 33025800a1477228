"""Locate beads workspaces and formula directories on disk."""

import os
from pathlib import Path

BEADS_DIR = ".beads"
FORMULAS_DIR = "formulas"
DEFAULT_RIG = "gastown"


def find_beads_root(start: Path) -> Path | None:
    """Return the nearest directory at or above start that contains .beads/."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / BEADS_DIR).is_dir():
            return candidate
    return None


def user_formulas_dir() -> Path:
    return Path.home() / BEADS_DIR / FORMULAS_DIR


def formula_search_paths(root: Path | None) -> list[Path]:
    """Formula directories in lookup order: project, user, then $GT_ROOT."""
    paths: list[Path] = []
    if root is not None:
        paths.append(root / BEADS_DIR / FORMULAS_DIR)
    paths.append(user_formulas_dir())
    gt_root = os.environ.get("GT_ROOT")
    if gt_root:
        paths.append(Path(gt_root) / BEADS_DIR / FORMULAS_DIR)
    return paths


def formulas_dir_for(cwd: Path) -> Path:
    """Where a new formula should go: the project if there is one, else the user dir."""
    root = find_beads_root(cwd)
    if root is None:
        return user_formulas_dir()
    return root / BEADS_DIR / FORMULAS_DIR


def current_rig(start: Path) -> str:
    """Rig a formula is dispatched to: the enclosing workspace's name, else DEFAULT_RIG."""
    root = find_beads_root(start)
    return root.name if root is not None else DEFAULT_RIG
