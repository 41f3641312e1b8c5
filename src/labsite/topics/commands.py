"""CLI commands for the topic color registry."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.group()
def topics():
    """Manage research topic colors.

    Every project topic has one registered color. Changing it recolors the
    topic on every project that uses it.
    """
    pass


@topics.command(name="list")
@click.option("--unused", is_flag=True, help="Only topics no project uses")
@click.pass_obj
def list_cmd(ctx, unused: bool):
    """List registered topics with their color and hue."""
    store = ctx.store

    table = Table(title=f"Topics ({len(store.topics)})", show_header=True, header_style="bold cyan")
    table.add_column("", width=2)
    table.add_column("Topic", style="cyan")
    table.add_column("Color")
    table.add_column("Hue", justify="right")
    table.add_column("Projects", style="green")

    rows = 0
    for topic in sorted(store.topics, key=lambda t: t.name):
        used_by = store.topic_in_use(topic.name)
        if unused and used_by:
            continue
        table.add_row(f"[on {topic.color}]  [/]", topic.name, topic.color, str(topic.hue), ", ".join(used_by) or "-")
        rows += 1

    if not rows:
        console.print("[dim]No topics to show.[/dim]")
        return
    console.print(table)


@topics.command(name="set")
@click.argument("name")
@click.option("--color", help="Hex color such as #a8f0a8")
@click.option("--hue", type=click.IntRange(0, 359), help="Hue in degrees; the color is derived from it")
@click.pass_obj
def set_cmd(ctx, name: str, color: str | None, hue: int | None):
    """Register a topic or change its color.

    \b
    Examples:
        labsite topics set "memory" --hue 30
        labsite topics set "active learning" --color "#f0d0a8"
    """
    from labsite.core.colors import is_hex_color
    from labsite.core.storage import PersistenceError

    if (color is None) == (hue is None):
        console.print("[red]Give exactly one of --color or --hue.[/red]")
        return
    if color is not None and not is_hex_color(color):
        console.print(f"[red]Not a hex color: {color!r}[/red]")
        return

    store = ctx.store
    previous = store.get_topic_color(name)
    used_by = store.topic_in_use(name)

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would set {name!r} and refresh {len(used_by)} project(s)[/yellow]")
        return

    try:
        entry = store.register_topic_color(name, color=color, hue=hue)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        return

    if previous is not None:
        console.print(f"[cyan]{name}[/cyan]: {previous.color} (hue {previous.hue}) -> {entry.color} (hue {entry.hue})")
    else:
        console.print(f"[green]Registered[/green] [cyan]{name}[/cyan] as {entry.color} (hue {entry.hue})")
    if used_by:
        console.print(f"[dim]Refreshed {len(used_by)} project(s): {', '.join(used_by)}[/dim]")


@topics.command(name="remove")
@click.argument("name")
@click.pass_obj
def remove_cmd(ctx, name: str):
    """Remove a topic that no project uses."""
    from labsite.core.storage import PersistenceError

    store = ctx.store
    if name not in store.topics:
        console.print(f"[red]Topic not registered: {name!r}[/red]")
        return

    used_by = store.topic_in_use(name)
    if used_by:
        console.print(f"[red]Topic {name!r} is still used by: {', '.join(used_by)}[/red]")
        console.print("[dim]Remove it from those projects first.[/dim]")
        return

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would remove {name!r}[/yellow]")
        return

    try:
        store.remove_topic_color(name)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Removed topic {name!r}[/green]")


@topics.command(name="gradient")
@click.argument("project_id")
@click.option("--direction", default="to right", show_default=True, help="CSS gradient direction")
@click.pass_obj
def gradient_cmd(ctx, project_id: str, direction: str):
    """Print the CSS gradient composed from a project's topic colors."""
    store = ctx.store
    if project_id not in store.projects:
        console.print(f"[red]Project not found: {project_id}[/red]")
        return
    click.echo(store.project_gradient(project_id, direction))
