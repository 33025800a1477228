"""Starter templates for workflow formulas (<name>.formula.toml).

Formulas are TOML files that bd cooks into molecules. This module only writes
starter files; it never runs bd.
"""

from pathlib import Path

FORMULA_KINDS = ("task", "workflow", "patrol")
FORMULA_SUFFIX = ".formula.toml"

_TASK_TEMPLATE = '''\
# Formula: {name}
# Type: task
# Created by: bdw formula create

description = """{title} task.

Add a detailed description here."""
formula = "{name}"
version = 1

# Single step task
[[steps]]
id = "do-task"
title = "Execute task"
description = """
Perform the main task work.

**Steps:**
1. Understand the requirements
2. Implement the changes
3. Verify the work
"""

# Variables that can be passed when running the formula
# [vars]
# [vars.issue]
# description = "Issue ID to work on"
# required = true
#
# [vars.target]
# description = "Target branch"
# default = "main"
'''

_WORKFLOW_TEMPLATE = '''\
# Formula: {name}
# Type: workflow
# Created by: bdw formula create

description = """{title} workflow.

A multi-step workflow with dependencies between steps."""
formula = "{name}"
version = 1

[[steps]]
id = "setup"
title = "Setup environment"
description = """
Prepare the environment for the workflow.

**Steps:**
1. Check prerequisites
2. Set up working environment
"""

[[steps]]
id = "implement"
title = "Implement changes"
needs = ["setup"]
description = """
Make the necessary code changes.

**Steps:**
1. Understand requirements
2. Write code
3. Test locally
"""

[[steps]]
id = "test"
title = "Run tests"
needs = ["implement"]
description = """
Verify the changes work correctly.

**Steps:**
1. Run unit tests
2. Run integration tests
3. Check for regressions
"""

[[steps]]
id = "complete"
title = "Complete workflow"
needs = ["test"]
description = """
Finalize and clean up.

**Steps:**
1. Commit final changes
2. Clean up temporary files
"""

[vars]
[vars.issue]
description = "Issue ID to work on"
required = true
'''

_PATROL_TEMPLATE = '''\
# Formula: {name}
# Type: patrol
# Created by: bdw formula create
#
# Patrol formulas are for repeating cycles (wisps).
# They run continuously and are NOT synced to git.

description = """{title} patrol.

A patrol formula for periodic checks. Patrol formulas create wisps
(ephemeral molecules) that are NOT synced to git."""
formula = "{name}"
version = 1

[[steps]]
id = "check"
title = "Run patrol check"
description = """
Perform the patrol inspection.

**Check for:**
1. Health indicators
2. Warning signs
3. Items needing attention

**On findings:**
- Log the issue
- Escalate if critical
"""

# Optional: remediation step
# [[steps]]
# id = "remediate"
# title = "Fix issues"
# needs = ["check"]

# Variables (optional)
# [vars]
# [vars.verbose]
# description = "Enable verbose output"
# default = "false"
'''

_TEMPLATES = {"task": _TASK_TEMPLATE, "workflow": _WORKFLOW_TEMPLATE, "patrol": _PATROL_TEMPLATE}


def _title_from_name(name: str) -> str:
    words = name.replace("-", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def render_template(name: str, kind: str = "task") -> str:
    if kind not in _TEMPLATES:
        raise ValueError(f"unknown formula type: {kind} (use: {', '.join(FORMULA_KINDS)})")
    return _TEMPLATES[kind].format(name=name, title=_title_from_name(name))


def create_formula(name: str, kind: str, directory: Path) -> Path:
    """Write a starter formula into directory and return its path.

    Raises FileExistsError rather than overwrite an existing formula.
    """
    template = render_template(name, kind)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}{FORMULA_SUFFIX}"
    if path.exists():
        raise FileExistsError(f"formula already exists: {path}")
    path.write_text(template)
    return path


def find_formulas(search_paths: list[Path]) -> dict[str, Path]:
    """Map formula name to file. Earlier search paths shadow later ones."""
    found: dict[str, Path] = {}
    for directory in search_paths:
        if not directory.is_dir():
            continue
        for path in sorted(directory.iterdir()):
            for suffix in (FORMULA_SUFFIX, ".formula.json"):
                if path.name.endswith(suffix):
                    found.setdefault(path.name.removesuffix(suffix), path)
    return found
