"""CLI entry point for Rolegate."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from rolegate.config import RolegateSettings, load_settings
from rolegate.config.loader import DEFAULT_SETTINGS_TEMPLATE
from rolegate.log import configure_logging
from rolegate.rbac import (
    ConfigStore,
    ConfigValidationError,
    MalformedDocumentError,
    UnknownFeatureError,
    UnknownRoleError,
)

app = typer.Typer(
    name="rolegate",
    help="Validate and query role/feature access declarations.",
)

settings_app = typer.Typer(help="Manage Rolegate settings.")
app.add_typer(settings_app, name="settings")

# Global state
_settings: RolegateSettings | None = None

FileOption = Annotated[
    str | None,
    typer.Option("--file", "-f", help="Role declaration document (XML or YAML)"),
]


def _get_settings() -> RolegateSettings:
    if _settings is None:
        return load_settings()
    return _settings


@app.callback()
def main(
    settings: Annotated[
        str | None, typer.Option("--settings", "-s", help="Path to rolegate.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _settings
    try:
        _settings = load_settings(settings)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging(_settings)


def _load_store(file: str | None) -> ConfigStore:
    """Build a store and load the document, exiting with code 1 on failure."""
    store = ConfigStore.from_settings(_get_settings())
    try:
        store.load(file)
    except MalformedDocumentError as e:
        rprint(f"[red]Malformed document:[/red] {e}")
        raise typer.Exit(1)
    except ConfigValidationError as e:
        _display_errors(e)
        raise typer.Exit(1)
    return store


def _display_errors(error: ConfigValidationError) -> None:
    table = Table(title=f"Validation errors ({len(error.errors)})")
    table.add_column("Invariant", style="red")
    table.add_column("Entity", style="cyan")
    table.add_column("Message")
    for issue in error.errors:
        table.add_row(issue.invariant.value, f"{issue.entity_kind}:{issue.entity_id}", issue.message)
    rprint(table)


def _described_table(title: str, rows: list[tuple[str, str, str]]) -> Table:
    table = Table(title=f"{title} ({len(rows)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Description")
    for row in rows:
        table.add_row(*row)
    return table


@app.command()
def validate(file: FileOption = None) -> None:
    """Parse and validate a role declaration document."""
    store = _load_store(file)
    config = store.get_current()
    rprint(
        f"[green]Valid:[/green] {config.metadata.name} v{config.metadata.version} "
        f"({len(config.roles)} roles, {len(config.features)} features, "
        f"{len(config.access_levels)} access levels)"
    )


@app.command()
def roles(file: FileOption = None) -> None:
    """List roles."""
    store = _load_store(file)
    table = Table(title=f"Roles ({len(store.list_roles())})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Connection")
    table.add_column("Grants", justify="right")
    for r in store.list_roles():
        table.add_row(r.id, r.name, r.connection_type, str(len(r.features)))
    rprint(table)


@app.command()
def role(
    role_id: str = typer.Argument(..., help="Role id"),
    file: FileOption = None,
) -> None:
    """Show one role's grants, grouped by category."""
    engine = _load_store(file).engine()
    r = engine.get_role(role_id)
    if r is None:
        rprint(f"[red]Role '{role_id}' not found[/red]")
        raise typer.Exit(1)

    tree = Tree(f"[bold]{r.name}[/bold] ({r.id}, {r.connection_type})")
    for category in engine.list_categories():
        grants = engine.get_features_by_category(role_id, category.id)
        if not grants:
            continue
        branch = tree.add(f"[yellow]{category.name}[/yellow]")
        for g in grants:
            branch.add(f"[green]{g.feature_id}[/green]: {g.access_level}")
    rprint(tree)


@app.command()
def features(file: FileOption = None) -> None:
    """List the feature catalog."""
    store = _load_store(file)
    table = Table(title=f"Features ({len(store.list_features())})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Category", style="yellow")
    for f in store.list_features():
        table.add_row(f.id, f.name, f.category)
    rprint(table)


@app.command("access-levels")
def access_levels(file: FileOption = None) -> None:
    """List declared access levels."""
    store = _load_store(file)
    rows = [(a.id, a.name, a.description) for a in store.list_access_levels()]
    rprint(_described_table("Access levels", rows))


@app.command()
def categories(file: FileOption = None) -> None:
    """List feature categories."""
    store = _load_store(file)
    rows = [(c.id, c.name, c.description) for c in store.list_categories()]
    rprint(_described_table("Categories", rows))


@app.command("connection-types")
def connection_types(file: FileOption = None) -> None:
    """List connection types."""
    store = _load_store(file)
    rows = [(c.id, c.name, c.description) for c in store.list_connection_types()]
    rprint(_described_table("Connection types", rows))


@app.command()
def check(
    role_id: str = typer.Argument(..., help="Role id"),
    feature_id: str = typer.Argument(..., help="Feature id"),
    min_level: str | None = typer.Option(
        None, "--min-level", help="Require at least this access level"
    ),
    file: FileOption = None,
) -> None:
    """Check whether a role may use a feature. Exit code 2 when denied."""
    engine = _load_store(file).engine()
    try:
        decision = engine.check_access(role_id, feature_id)
    except (UnknownRoleError, UnknownFeatureError) as e:
        rprint(f"[red]Not found:[/red] {e}")
        raise typer.Exit(1)

    allowed = decision.allowed
    if min_level is not None:
        try:
            allowed = engine.meets_level(role_id, feature_id, min_level)
        except ValueError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    if allowed:
        rprint(f"[green]allowed[/green] {role_id} -> {feature_id}: {decision.access_level}")
        return
    reason = decision.reason or f"Required access level: {min_level}"
    rprint(
        f"[red]denied[/red] {role_id} -> {feature_id}: {decision.access_level} ({reason})"
    )
    raise typer.Exit(2)


@settings_app.command("show")
def settings_show() -> None:
    """Show current resolved settings."""
    cfg = _get_settings()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@settings_app.command("init")
def settings_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing settings"),
) -> None:
    """Create default rolegate.yaml in current directory."""
    target = Path("rolegate.yaml")
    if target.exists() and not force:
        rprint("[yellow]rolegate.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_SETTINGS_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
