"""bdw CLI — all commands."""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from bdw.client import Beads
from bdw.errors import BeadsError, ErrorKind
from bdw.formulas import FORMULA_KINDS, create_formula, find_formulas
from bdw.invoker import SubprocessInvoker
from bdw.models import PRIORITY_UNSET, CreateRequest, Issue, ListFilter, UpdateRequest
from bdw.settings import CONFIG_PATH, _list_profiles, get_settings
from bdw.workspace import current_rig, find_beads_root, formula_search_paths, formulas_dir_for

app = typer.Typer(help="bdw: typed front end for the bd (beads) issue tracker", no_args_is_help=True)
dep_app = typer.Typer(help="Manage dependencies between issues", no_args_is_help=True)
formula_app = typer.Typer(help="Manage workflow formulas", no_args_is_help=True)
app.add_typer(dep_app, name="dep")
app.add_typer(formula_app, name="formula")

JsonOpt = Annotated[bool, typer.Option("--json", help="Output raw JSON")]

_ERROR_HINTS = {
    ErrorKind.TOOL_NOT_INSTALLED: "Install bd, or point BDW_BD_PATH at it.",
    ErrorKind.NOT_A_REPOSITORY: "Run 'bd init' here, or pass --root to an existing beads workspace.",
    ErrorKind.SYNC_CONFLICT: "Resolve the conflict, then re-run the sync.",
}


# ---------------------------------------------------------------------------
# Invocation context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CliConfig:
    """Global options, resolved once per invocation and handed to each command."""

    root: Path | None = None
    profile: str | None = None


@app.callback()
def main(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Option("--root", "-r", help="Beads workspace (default: nearest dir with .beads)"),
    ] = None,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-p", help="Profile name from ~/.config/bdw/config.toml"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log bd invocations")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    ctx.obj = CliConfig(root=root, profile=profile)


def _config(ctx: typer.Context) -> CliConfig:
    return ctx.obj if isinstance(ctx.obj, CliConfig) else CliConfig()


def get_client(config: CliConfig) -> Beads:
    settings = get_settings(profile=config.profile)
    root = config.root or settings.root or find_beads_root(Path.cwd()) or Path.cwd()
    return Beads(root, invoker=SubprocessInvoker(settings.bd_path), timeout=settings.timeout)


@contextmanager
def _beads_errors() -> Iterator[None]:
    """Turn adapter errors into a red message and exit status 1."""
    try:
        yield
    except BeadsError as exc:
        rprint(f"[red]error:[/red] {escape(str(exc))}")
        hint = _ERROR_HINTS.get(exc.kind)
        if hint:
            rprint(f"[dim]{hint}[/dim]")
        raise typer.Exit(1) from exc


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _issues_table(title: str, issues: list[Issue]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Pri")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Deps", style="dim")

    for issue in issues:
        deps = ""
        if issue.dependency_count or issue.dependent_count:
            deps = f"{issue.dependency_count}↓ {issue.dependent_count}↑"
        table.add_row(issue.id, issue.status, f"P{issue.priority}", issue.issue_type, escape(issue.title), deps)
    return table


def _render_issues(title: str, issues: list[Issue], as_json: bool) -> None:
    if as_json:
        _echo_json([issue.model_dump(mode="json") for issue in issues])
        return
    if not issues:
        rprint(f"[dim]No {title.lower()}.[/dim]")
        return
    rprint(_issues_table(title, issues))


def _render_issue(issue: Issue) -> None:
    table = Table(title=f"{issue.id}: {escape(issue.title)}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Status", issue.status)
    table.add_row("Priority", f"P{issue.priority}")
    table.add_row("Type", issue.issue_type)
    table.add_row("Assignee", issue.assignee or "Unassigned")
    if issue.parent:
        table.add_row("Parent", issue.parent)
    if issue.children:
        table.add_row("Children", ", ".join(issue.children))
    for label, deps in (("Depends on", issue.dependencies), ("Dependents", issue.dependents)):
        if deps:
            table.add_row(label, "\n".join(f"{d.id} ({d.status}) {escape(d.title)}" for d in deps))
    table.add_row("Created", issue.created_at)
    table.add_row("Updated", issue.updated_at)
    if issue.closed_at:
        table.add_row("Closed", issue.closed_at)
    table.add_row("Description", escape(issue.description) or "_No description provided._")

    rprint(table)


# ---------------------------------------------------------------------------
# Issue commands
# ---------------------------------------------------------------------------


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    status: Annotated[str, typer.Option("--status", "-s", help="open, in_progress, closed or all")] = "",
    issue_type: Annotated[str, typer.Option("--type", "-t", help="task, bug, feature or epic")] = "",
    priority: Annotated[int | None, typer.Option("--priority", help="Exact priority")] = None,
    parent: Annotated[str, typer.Option("--parent", help="Only children of this issue")] = "",
    as_json: JsonOpt = False,
) -> None:
    """List issues matching the filters."""
    filters = ListFilter(
        status=status,
        issue_type=issue_type,
        priority=PRIORITY_UNSET if priority is None else priority,
        parent=parent,
    )
    with _beads_errors():
        issues = get_client(_config(ctx)).list_issues(filters)
    _render_issues("Issues", issues, as_json)


@app.command("ready")
def ready_cmd(ctx: typer.Context, as_json: JsonOpt = False) -> None:
    """List issues that are ready to work on."""
    with _beads_errors():
        issues = get_client(_config(ctx)).ready()
    _render_issues("Ready issues", issues, as_json)


@app.command("blocked")
def blocked_cmd(ctx: typer.Context, as_json: JsonOpt = False) -> None:
    """List issues blocked by open dependencies."""
    with _beads_errors():
        issues = get_client(_config(ctx)).blocked()
    _render_issues("Blocked issues", issues, as_json)


@app.command("show")
def show_cmd(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. gt-042)")],
    as_json: JsonOpt = False,
) -> None:
    """Show full details for an issue."""
    with _beads_errors():
        issue = get_client(_config(ctx)).show(issue_id)
    if as_json:
        _echo_json(issue.model_dump(mode="json"))
    else:
        _render_issue(issue)


@app.command("create")
def create_cmd(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Issue title")] = "",
    issue_type: Annotated[str, typer.Option("--type", "-t", help="task, bug, feature or epic")] = "",
    priority: Annotated[int | None, typer.Option("--priority", help="Priority on bd's scale")] = None,
    description: Annotated[str, typer.Option("--description", "-d", help="Issue description")] = "",
    parent: Annotated[str, typer.Option("--parent", help="Parent issue ID")] = "",
    as_json: JsonOpt = False,
) -> None:
    """Create a new issue."""
    request = CreateRequest(
        title=title,
        issue_type=issue_type,
        priority=PRIORITY_UNSET if priority is None else priority,
        description=description,
        parent=parent,
    )
    with _beads_errors():
        created = get_client(_config(ctx)).create(request)
    if as_json:
        _echo_json(created.model_dump(mode="json"))
        return
    rprint(f"[green]✓[/green] [bold]{created.id}[/bold] {escape(created.title)}")


@app.command("update")
def update_cmd(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue ID")],
    title: Annotated[str | None, typer.Option("--title")] = None,
    status: Annotated[str | None, typer.Option("--status", "-s")] = None,
    priority: Annotated[int | None, typer.Option("--priority")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d", help="Pass '' to clear")] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a")] = None,
) -> None:
    """Update fields on an issue. Only the options given are changed."""
    request = UpdateRequest(
        title=title,
        status=status,
        priority=priority,
        description=description,
        assignee=assignee,
    )
    if request.is_empty:
        rprint("[red]Nothing to update.[/red]")
        rprint("Pass at least one of --title, --status, --priority, --description or --assignee.")
        raise typer.Exit(1)
    with _beads_errors():
        get_client(_config(ctx)).update(issue_id, request)
    rprint(f"[green]✓[/green] Updated {issue_id}")


@app.command("close")
def close_cmd(
    ctx: typer.Context,
    issue_ids: Annotated[list[str] | None, typer.Argument(help="Issue IDs to close")] = None,
    reason: Annotated[str | None, typer.Option("--reason", help="Reason recorded on every closed issue")] = None,
) -> None:
    """Close one or more issues."""
    ids = issue_ids or []
    if not ids:
        rprint("[dim]Nothing to close.[/dim]")
        return
    with _beads_errors():
        get_client(_config(ctx)).close(*ids, reason=reason)
    rprint(f"[green]✓[/green] Closed {', '.join(ids)}")


@dep_app.command("add")
def dep_add_cmd(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue that is blocked")],
    depends_on: Annotated[str, typer.Argument(help="Issue it depends on")],
) -> None:
    """Make ISSUE_ID depend on DEPENDS_ON."""
    with _beads_errors():
        get_client(_config(ctx)).add_dependency(issue_id, depends_on)
    rprint(f"[green]✓[/green] {issue_id} now depends on {depends_on}")


@dep_app.command("remove")
def dep_remove_cmd(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue that is blocked")],
    depends_on: Annotated[str, typer.Argument(help="Issue it depends on")],
) -> None:
    """Remove the dependency of ISSUE_ID on DEPENDS_ON."""
    with _beads_errors():
        get_client(_config(ctx)).remove_dependency(issue_id, depends_on)
    rprint(f"[green]✓[/green] {issue_id} no longer depends on {depends_on}")


# ---------------------------------------------------------------------------
# Repository commands
# ---------------------------------------------------------------------------


@app.command("sync")
def sync_cmd(
    ctx: typer.Context,
    from_main: Annotated[bool, typer.Option("--from-main", help="Pull beads updates from the main branch")] = False,
) -> None:
    """Sync beads with the remote."""
    with _beads_errors():
        client = get_client(_config(ctx))
        if from_main:
            client.sync_from_main()
        else:
            client.sync()
    rprint("[green]✓[/green] Synced")


@app.command("sync-status")
def sync_status_cmd(ctx: typer.Context, as_json: JsonOpt = False) -> None:
    """Show sync state without syncing."""
    with _beads_errors():
        status = get_client(_config(ctx)).sync_status()
    if as_json:
        _echo_json(status.model_dump(mode="json"))
        return
    if not status.branch:
        rprint("[dim]No sync history yet.[/dim]")
        return

    table = Table(title="Sync status")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Branch", status.branch)
    table.add_row("Ahead", str(status.ahead))
    table.add_row("Behind", str(status.behind))
    table.add_row("Conflicts", "\n".join(status.conflicts) or "none")
    rprint(table)


@app.command("stats")
def stats_cmd(ctx: typer.Context) -> None:
    """Print bd's statistics report."""
    with _beads_errors():
        report = get_client(_config(ctx)).stats()
    typer.echo(report, nl=False)


@app.command("check")
def check_cmd(ctx: typer.Context) -> None:
    """Check that bd can operate in the workspace."""
    client = get_client(_config(ctx))
    if not client.is_beads_repo():
        rprint(f"[red]{client.work_dir} is not a beads repository.[/red]")
        rprint(f"[dim]{_ERROR_HINTS[ErrorKind.NOT_A_REPOSITORY]}[/dim]")
        raise typer.Exit(1)
    rprint(f"[green]✓[/green] {client.work_dir} is a beads repository")


# ---------------------------------------------------------------------------
# Formula commands
# ---------------------------------------------------------------------------


@formula_app.command("list")
def formula_list_cmd(
    ctx: typer.Context,
    as_json: JsonOpt = False,
    local: Annotated[bool, typer.Option("--local", help="Scan the search paths on disk instead of asking bd")] = False,
) -> None:
    """List available formulas."""
    if not local:
        with _beads_errors():
            listing = get_client(_config(ctx)).formula_list(as_json=as_json)
        typer.echo(listing, nl=False)
        return

    root = _config(ctx).root or find_beads_root(Path.cwd())
    formulas = find_formulas(formula_search_paths(root))
    if as_json:
        _echo_json({name: str(path) for name, path in formulas.items()})
        return
    if not formulas:
        rprint("[dim]No formulas found.[/dim]")
        return

    table = Table(title="Formulas")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="dim")
    for name, path in formulas.items():
        table.add_row(name, str(path))
    rprint(table)


@formula_app.command("show")
def formula_show_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Formula name")],
    as_json: JsonOpt = False,
) -> None:
    """Display formula details (steps, variables, composition)."""
    with _beads_errors():
        details = get_client(_config(ctx)).formula_show(name, as_json=as_json)
    typer.echo(details, nl=False)


@formula_app.command("run")
def formula_run_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Formula name")],
    pr: Annotated[int, typer.Option("--pr", help="GitHub PR number to run the formula on")] = 0,
    rig: Annotated[str, typer.Option("--rig", help="Target rig (default: current workspace)")] = "",
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Preview execution without running")] = False,
) -> None:
    """Show how to pour a formula and dispatch the molecule."""
    target = rig or current_rig(_config(ctx).root or Path.cwd())

    if dry_run:
        rprint("[dim]\\[dry-run][/dim] Would execute formula:")
        rprint(f"  Formula: [bold]{escape(name)}[/bold]")
        rprint(f"  Rig:     {escape(target)}")
        if pr > 0:
            rprint(f"  PR:      #{pr}")
        return

    rprint(f"To run '{escape(name)}':")
    rprint(f"  1. View formula:   bd formula show {escape(name)}")
    rprint(f"  2. Cook to proto:  bd cook {escape(name)}")
    rprint(f"  3. Pour molecule:  bd pour {escape(name)}")
    rprint(f"  4. Sling to rig:   gt sling <mol-id> {escape(target)}")
    if pr > 0:
        rprint("")
        rprint(f"  For PR #{pr}, set variable: --var pr={pr}")


@formula_app.command("create")
def formula_create_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Formula name")],
    kind: Annotated[str, typer.Option("--type", help="Formula type: task, workflow, or patrol")] = "task",
) -> None:
    """Create a new formula template."""
    if kind not in FORMULA_KINDS:
        rprint(f"[red]Unknown formula type: {kind} (use: {', '.join(FORMULA_KINDS)})[/red]")
        raise typer.Exit(1)

    root = _config(ctx).root
    directory = formulas_dir_for(root or Path.cwd())
    try:
        path = create_formula(name, kind, directory)
    except FileExistsError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    rprint(f"[green]✓[/green] Created formula: {path}")
    rprint("")
    rprint("Next steps:")
    rprint(f"  1. Edit the formula: {path}")
    rprint(f"  2. Cook it:          bd cook {name}")
    rprint(f"  3. Pour a molecule:  bd pour {name}")


# ---------------------------------------------------------------------------
# Configuration commands
# ---------------------------------------------------------------------------


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/bdw/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_profile", profile)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(ctx: typer.Context) -> None:
    """Show resolved configuration."""
    config = _config(ctx)
    settings = get_settings(profile=config.profile)
    root = config.root or settings.root or find_beads_root(Path.cwd())

    table = Table(title="bdw configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or "[dim](not set)[/dim]")
    table.add_row("bd_path", settings.bd_path)
    table.add_row("timeout", f"{settings.timeout}s" if settings.timeout else "[dim](none)[/dim]")
    table.add_row("root", str(root) if root else "[dim](not found, using cwd)[/dim]")

    rprint(table)
