"""CLI commands for site-wide settings: featured items and the team image."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from labsite.core.store import FEATURED_SLOTS

console = Console()


@click.group()
def featured():
    """Show or change the featured project, news item and publication."""
    pass


@featured.command(name="show")
@click.pass_obj
def featured_show(ctx):
    """Show the featured item of each slot."""
    store = ctx.store
    selection = store.get_featured_items()

    table = Table(title="Featured", show_header=True, header_style="bold cyan")
    table.add_column("Slot", style="cyan")
    table.add_column("Id")
    table.add_column("Title")

    for slot, (attr, _key) in FEATURED_SLOTS.items():
        record_id = getattr(selection, attr)
        entry = store.featured_record(slot)
        if record_id is None:
            title = "[dim]none[/dim]"
        elif entry is None:
            title = "[yellow](missing)[/yellow]"
        else:
            title = entry.label
        table.add_row(slot, record_id or "-", title)

    console.print(table)


@featured.command(name="set")
@click.argument("slot", type=click.Choice(list(FEATURED_SLOTS)))
@click.argument("record_id", required=False)
@click.option("--clear", is_flag=True, help="Feature nothing in this slot")
@click.pass_obj
def featured_set(ctx, slot: str, record_id: str | None, clear: bool):
    """Feature a record in a slot.

    \b
    Examples:
        labsite featured set project project-2
        labsite featured set news --clear
    """
    from labsite.core.storage import PersistenceError

    if clear:
        record_id = None
    elif not record_id:
        console.print("[red]Give a RECORD_ID or --clear.[/red]")
        return

    store = ctx.store
    _attr, key = FEATURED_SLOTS[slot]
    if record_id and record_id not in store.collection(key):
        console.print(f"[red]No {slot} with id {record_id}[/red]")
        return

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would feature {record_id or 'nothing'} as {slot}[/yellow]")
        return

    try:
        store.set_featured(slot, record_id)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Featured {slot}: {record_id or 'none'}[/green]")


@click.group(name="team-image")
def team_image():
    """Show or change the team photo on the people page."""
    pass


@team_image.command(name="show")
@click.pass_obj
def team_image_show(ctx):
    """Show the team image URL and position."""
    store = ctx.store
    console.print(f"[cyan]Image:[/cyan] {store.get_team_image()}")
    console.print(f"[cyan]Position:[/cyan] {store.get_team_image_position()}")


@team_image.command(name="set")
@click.option("--url", help="Image URL or site path")
@click.option("--position", help="CSS object position (center, top, bottom, left, right)")
@click.pass_obj
def team_image_set(ctx, url: str | None, position: str | None):
    """Change the team image and/or its position."""
    from labsite.core.field_ops import validate_field
    from labsite.core.schemas import SITE_SCHEMA
    from labsite.core.storage import PersistenceError

    if url is None and position is None:
        console.print("[yellow]Nothing to do: give --url and/or --position.[/yellow]")
        return

    errors = []
    if url is not None:
        errors += validate_field("team_image", url, SITE_SCHEMA)
    if position is not None:
        errors += validate_field("team_image_position", position, SITE_SCHEMA)
    if errors:
        for err in errors:
            console.print(f"[red]{err}[/red]")
        return

    if ctx.dry_run:
        console.print("[yellow]Dry run - no changes saved.[/yellow]")
        return

    store = ctx.store
    try:
        if url is not None:
            store.update_team_image(url)
        if position is not None:
            store.update_team_image_position(position)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Team image updated[/green]")
