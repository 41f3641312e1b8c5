"""CLI commands for browsing and editing content collections."""

from __future__ import annotations

import copy
import json as json_module
from typing import Any

import click
from rich.console import Console

from labsite.core.records import KINDS

console = Console()

KIND_CHOICE = click.Choice(sorted(KINDS), case_sensitive=False)


def _truncate(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if it exceeds max_len."""
    if len(text) > max_len:
        return text[:max_len] + "..."
    return text


def _parse_assignments(pairs: tuple[str, ...], schema: dict[str, Any]) -> dict[str, Any]:
    """Turn ``field=value`` strings into a dict of coerced values.

    Raises:
        click.BadParameter: On malformed pairs, unknown fields or bad values
    """
    from labsite.core.field_ops import coerce_value

    values: dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise click.BadParameter(f"Expected FIELD=VALUE, got: {pair!r}")
        field_def = schema.get(name)
        if field_def is None:
            raise click.BadParameter(f"Unknown field: {name!r}")
        if field_def.derived:
            raise click.BadParameter(f"{name!r} is maintained by the store")
        try:
            values[name] = coerce_value(raw, field_def)
        except ValueError as e:
            raise click.BadParameter(str(e)) from e
    return values


def _store_call(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Run a store write, reporting store errors in red.

    Returns:
        The call's result, or None if it raised
    """
    from labsite.core.collection import ReorderError
    from labsite.core.storage import PersistenceError
    from labsite.core.store import DuplicateNameError

    try:
        return func(*args, **kwargs)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        console.print("[dim]The change is applied in memory but was not fully saved.[/dim]")
    except (DuplicateNameError, ReorderError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
    return None


def _load_record(ctx: Any, kind: str, record_id: str) -> dict[str, Any] | None:
    entry = ctx.store.facade(kind).get(record_id)
    if entry is None:
        console.print(f"[red]{KINDS[kind].name.capitalize()} not found: {record_id}[/red]")
        return None
    return copy.deepcopy(entry.data)


def _save_update(ctx: Any, kind: str, record: dict[str, Any]) -> None:
    """Shared tail of the field edit commands."""
    if ctx.dry_run:
        console.print("[yellow]Dry run - no changes saved.[/yellow]")
        return
    if _store_call(ctx.store.facade(kind).update, record) is not None:
        console.print(f"[green]Saved {kind}[/green]")


@click.group(name="content")
def content() -> None:
    """Browse and edit the content collections.

    KIND is one of: collaborators, funding, jobs, news, people, projects,
    publications, software.
    """
    pass


@content.command(name="list")
@click.argument("kind", type=KIND_CHOICE)
@click.option("-q", "--query", help="Search in titles, names and descriptions")
@click.option("-w", "--where", "where", multiple=True, help="Filter FIELD=VALUE (list fields match by membership)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_cmd(ctx, kind: str, query: str | None, where: tuple[str, ...], as_json: bool) -> None:
    """List records of a collection in display order.

    \b
    Examples:
        labsite content list projects
        labsite content list people -q okafor
        labsite content list projects -w status=completed
        labsite content list projects -w team="Ada Reyes"
    """
    from rich.table import Table

    filters = {}
    for pair in where:
        name, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected FIELD=VALUE, got: {pair!r}", param_hint="--where")
        filters[name.strip()] = value

    facade = ctx.store.facade(kind)
    results = facade.search(query, **filters) if (query or filters) else facade.list()

    if as_json:
        click.echo(json_module.dumps([entry.data for entry in results], indent=2))
        return

    if not results:
        console.print(f"[yellow]No {kind} found matching criteria[/yellow]")
        return

    info = KINDS[kind]
    table = Table(title=f"{kind.capitalize()} ({len(results)} found)")
    table.add_column("#", style="dim")
    table.add_column("Id", style="cyan")
    table.add_column(info.label_field.capitalize())
    table.add_column("Links", style="green")

    for position, entry in enumerate(results, 1):
        links = []
        for field_name in ("team", "projects", "publications", "project_ids", "software_ids", "publication_ids"):
            values = entry.get(field_name)
            if values:
                links.append(f"{field_name}: {len(values)}")
        table.add_row(str(position), entry.id, _truncate(entry.label, 40), ", ".join(links))

    console.print(table)


@content.command()
@click.argument("kind", type=KIND_CHOICE)
@click.argument("record_id")
@click.pass_obj
def show(ctx, kind: str, record_id: str) -> None:
    """Show one record as JSON."""
    from rich.panel import Panel
    from rich.syntax import Syntax

    entry = ctx.store.facade(kind).get(record_id)
    if entry is None:
        console.print(f"[red]{KINDS[kind].name.capitalize()} not found: {record_id}[/red]")
        return

    json_str = json_module.dumps(entry.data, indent=2)
    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=True)
    console.print(Panel(syntax, title=f"{KINDS[kind].name.capitalize()}: {record_id}"))


@content.command()
@click.argument("kind", type=KIND_CHOICE)
@click.pass_obj
def stats(ctx, kind: str) -> None:
    """Show how many records a collection holds and which fields they use."""
    from rich.panel import Panel

    s = ctx.store.collection(kind).stats()
    fields = "\n".join(f"  {name}: {count}" for name, count in s["fields"].items()) or "  none"
    body = f"[cyan]Total {kind}:[/cyan] {s['total']}\n[cyan]Fields in use:[/cyan]\n{fields}"
    console.print(Panel(body, title=f"{kind.capitalize()} Stats"))


@content.command(name="fields")
@click.argument("kind", type=KIND_CHOICE)
def fields_cmd(kind: str) -> None:
    """List the fields of a collection and their types."""
    from rich.table import Table

    from labsite.core.schemas import schema_for

    table = Table(title=f"{kind.capitalize()} Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Description")
    table.add_column("Constraints", style="yellow")

    for name, fdef in sorted(schema_for(kind).items()):
        constraints = []
        if fdef.required:
            constraints.append("required")
        if fdef.derived:
            constraints.append("read-only")
        if fdef.choices:
            constraints.append(f"choices: {', '.join(fdef.choices)}")
        if fdef.min_val is not None:
            constraints.append(f"min: {fdef.min_val}")
        if fdef.max_val is not None:
            constraints.append(f"max: {fdef.max_val}")
        table.add_row(name, fdef.field_type.value, fdef.description, "; ".join(constraints) or "-")

    console.print(table)


@content.command()
@click.argument("kind", type=KIND_CHOICE)
@click.option("-s", "--set", "assignments", multiple=True, help="FIELD=VALUE (repeatable)")
@click.option("--id", "record_id", help="Use this id instead of generating one")
@click.pass_obj
def add(ctx, kind: str, assignments: tuple[str, ...], record_id: str | None) -> None:
    """Add a record to a collection.

    \b
    Examples:
        labsite content add people -s name="Noor Haddad" -s role="PhD student"
        labsite content add projects -s title="Memory Models" -s topics="memory,computational modeling"
    """
    from labsite.core.field_ops import validate_record
    from labsite.core.schemas import schema_for

    schema = schema_for(kind)
    record = _parse_assignments(assignments, schema)
    if record_id:
        record["id"] = record_id

    errors = validate_record(record, schema)
    if errors:
        for err in errors:
            console.print(f"[red]{err}[/red]")
        return

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would add {KINDS[kind].name}:[/yellow] {record}")
        return

    entry = _store_call(ctx.store.facade(kind).add, record)
    if entry is not None:
        console.print(f"[green]Added {KINDS[kind].name}[/green] [cyan]{entry.id}[/cyan]")


@content.command(name="set")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("record_id")
@click.argument("field")
@click.argument("value")
@click.pass_obj
def set_field_cmd(ctx, kind: str, record_id: str, field: str, value: str) -> None:
    """Set a field on a record.

    \b
    Examples:
        labsite content set projects project-3 status completed
        labsite content set people member-2 role "Research Engineer"
        labsite content set projects project-1 topics "equation discovery,memory"
    """
    from labsite.core.field_ops import coerce_value, print_change, set_field, validate_field
    from labsite.core.schemas import schema_for

    schema = schema_for(kind)
    field_def = schema.get(field)
    if field_def is None:
        console.print(f"[red]Unknown field: {field!r}[/red]")
        console.print(f"[dim]Run 'labsite content fields {kind}' to see valid fields.[/dim]")
        return
    if field_def.derived:
        console.print(f"[red]{field!r} is maintained by the store and cannot be set.[/red]")
        return

    try:
        coerced = coerce_value(value, field_def)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return

    errors = validate_field(field, coerced, schema)
    if errors:
        for err in errors:
            console.print(f"[red]{err}[/red]")
        return

    record = _load_record(ctx, kind, record_id)
    if record is None:
        return

    result = set_field(record, field, coerced)
    print_change(result, console)
    _save_update(ctx, kind, record)


@content.command(name="unset")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("record_id")
@click.argument("field")
@click.pass_obj
def unset_field_cmd(ctx, kind: str, record_id: str, field: str) -> None:
    """Remove a field from a record."""
    from labsite.core.field_ops import print_change, unset_field
    from labsite.core.schemas import schema_for

    schema = schema_for(kind)
    if field not in schema:
        console.print(f"[red]Unknown field: {field!r}[/red]")
        console.print(f"[dim]Run 'labsite content fields {kind}' to see valid fields.[/dim]")
        return

    record = _load_record(ctx, kind, record_id)
    if record is None:
        return

    try:
        result = unset_field(record, field, schema)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return

    print_change(result, console)
    if result.old_value is None:
        console.print(f"[yellow]Field {field!r} was not set on {record_id}.[/yellow]")
        return

    _save_update(ctx, kind, record)


@content.command(name="modify")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("record_id")
@click.argument("field")
@click.option("--add", "add_items", multiple=True, help="Item to append (repeatable)")
@click.option("--remove", "remove_items", multiple=True, help="Item to remove (repeatable)")
@click.option("--replace", "replace_items", help="Comma-separated replacement list")
@click.pass_obj
def modify_cmd(
    ctx,
    kind: str,
    record_id: str,
    field: str,
    add_items: tuple[str, ...],
    remove_items: tuple[str, ...],
    replace_items: str | None,
) -> None:
    """Add or remove items of a list field.

    \b
    Examples:
        labsite content modify projects project-2 team --add "Lukas Hahn"
        labsite content modify people member-4 projects --remove project-3
    """
    from labsite.core.field_ops import modify_list_field, print_change
    from labsite.core.schemas import schema_for

    if not (add_items or remove_items or replace_items is not None):
        console.print("[yellow]Nothing to do: give --add, --remove or --replace.[/yellow]")
        return

    record = _load_record(ctx, kind, record_id)
    if record is None:
        return

    replace = [item.strip() for item in replace_items.split(",") if item.strip()] if replace_items is not None else None
    try:
        result = modify_list_field(
            record,
            field,
            add=list(add_items) or None,
            remove=list(remove_items) or None,
            replace=replace,
            schema=schema_for(kind),
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return

    print_change(result, console)
    _save_update(ctx, kind, record)


@content.command()
@click.argument("kind", type=KIND_CHOICE)
@click.argument("record_id")
@click.option("-y", "--yes", is_flag=True, help="Delete without confirmation")
@click.pass_obj
def delete(ctx, kind: str, record_id: str, yes: bool) -> None:
    """Delete a record and remove every link to it."""
    from rich.prompt import Confirm

    entry = ctx.store.facade(kind).get(record_id)
    if entry is None:
        console.print(f"[red]{KINDS[kind].name.capitalize()} not found: {record_id}[/red]")
        return

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would delete {record_id} ({entry.label})[/yellow]")
        return

    if not yes and not Confirm.ask(f"Delete {record_id} ({entry.label})?", default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    if _store_call(ctx.store.facade(kind).delete, record_id):
        console.print(f"[green]Deleted {record_id}[/green]")


@content.command()
@click.argument("kind", type=KIND_CHOICE)
@click.argument("ids", nargs=-1, required=True)
@click.option("--strict", is_flag=True, help="Refuse unless every id is listed exactly once")
@click.option("-y", "--yes", is_flag=True, help="Drop unlisted records without confirmation")
@click.pass_obj
def reorder(ctx, kind: str, ids: tuple[str, ...], strict: bool, yes: bool) -> None:
    """Set the display order of a collection.

    Records left out of IDS are DELETED, with their links. Pass --strict to
    refuse anything but a full permutation.

    \b
    Examples:
        labsite content reorder projects project-3 project-1 project-2
        labsite content reorder news news-2 news-1 --strict
    """
    from rich.prompt import Confirm

    facade = ctx.store.facade(kind)
    dropped = [i for i in facade.ids() if i not in ids]

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - new order: {', '.join(ids)}[/yellow]")
        if dropped and not strict:
            console.print(f"[yellow]Would delete: {', '.join(dropped)}[/yellow]")
        return

    if dropped and not strict and not yes:
        if not Confirm.ask(f"Delete {', '.join(dropped)} (not in the list)?", default=False):
            console.print("[dim]Aborted.[/dim]")
            return

    dropped = _store_call(facade.reorder, list(ids), strict=strict)
    if dropped is None:
        return
    if dropped:
        console.print(f"[yellow]Deleted (not in list): {', '.join(dropped)}[/yellow]")
    console.print(f"[green]Reordered {kind}[/green]")
