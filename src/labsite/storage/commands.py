"""
Storage management CLI commands.

Inspect what the store has persisted, export it or import an export, browse
the snapshots kept for each key, roll a key back, or reset keys to the seed
data.
"""

from __future__ import annotations

import json as json_module
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from labsite.core.backup import format_size, list_snapshots, restore_snapshot, safe_write_json
from labsite.core.config import get_paths
from labsite.core.storage import KNOWN_KEYS

console = Console()


def _format_age(days: float) -> str:
    """Format age in human-readable form."""
    if days < 1:
        hours = days * 24
        if hours < 1:
            return f"{int(hours * 60)}m ago"
        return f"{int(hours)}h ago"
    elif days < 7:
        return f"{int(days)}d ago"
    elif days < 30:
        return f"{int(days / 7)}w ago"
    else:
        return f"{int(days / 30)}mo ago"


@click.group()
def storage():
    """Inspect and manage persisted store data.

    Every store key is one JSON file under .labsite/store/. Overwritten
    versions are kept as snapshots under .labsite/backups/.
    """
    pass


@storage.command(name="info")
@click.pass_obj
def info_cmd(ctx):
    """Show every stored key with its size and a preview."""
    items = ctx.store.persistence.storage_info()
    if not items:
        console.print("[dim]Nothing stored yet.[/dim]")
        return

    table = Table(title="Stored keys", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="cyan")
    table.add_column("Size", style="blue", justify="right")
    table.add_column("Preview", style="dim", overflow="ellipsis", no_wrap=True)

    total = 0
    for item in items:
        total += item.size_bytes
        table.add_row(item.key, f"{item.size_kb:.2f} KB", item.preview)

    console.print(table)
    console.print(f"[dim]Total: {len(items)} keys, {format_size(total)}[/dim]")


@storage.command(name="export")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write to this file")
@click.pass_obj
def export_cmd(ctx, output: Path | None):
    """Export every stored key as one JSON document."""
    data = ctx.store.persistence.export()

    if output is None:
        click.echo(json_module.dumps(data, indent=2, ensure_ascii=False))
        return

    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would write {len(data)} keys to {output}[/yellow]")
        return

    safe_write_json(output, data)
    console.print(f"[green]Exported {len(data)} keys to {output}[/green]")


@storage.command(name="snapshots")
@click.option("-k", "--key", type=click.Choice(list(KNOWN_KEYS)), help="Only show snapshots of this key")
@click.option("--limit", type=int, default=10, help="Maximum number of snapshots to show per key")
@click.option("--all", "show_all", is_flag=True, help="Show all snapshots (no limit)")
def snapshots_cmd(key: str | None, limit: int, show_all: bool):
    """List the snapshots kept for each store key."""
    snapshot_dir = get_paths().backups
    keys = [key] if key else list(KNOWN_KEYS)

    total_count = 0
    total_size = 0

    for store_key in keys:
        snapshots = list_snapshots(snapshot_dir, store_key)
        if not snapshots:
            if key:
                console.print(f"[dim]No snapshots found for {store_key}[/dim]")
            continue

        total_count += len(snapshots)
        total_size += sum(s.size_bytes for s in snapshots)

        shown = snapshots if show_all else snapshots[:limit]
        hidden = len(snapshots) - len(shown)

        table = Table(
            title=f"[bold]{store_key}[/bold] ({len(snapshots)} snapshots)",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Date", style="green")
        table.add_column("Age", style="yellow", justify="right")
        table.add_column("Size", style="blue", justify="right")

        for i, snapshot in enumerate(shown):
            table.add_row(
                str(i),
                snapshot.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                _format_age(snapshot.age_days),
                snapshot.size_human,
            )

        console.print(table)
        if hidden > 0:
            console.print(f"  [dim]... and {hidden} older snapshots (use --all to see all)[/dim]")
        console.print()

    if total_count:
        console.print(f"[dim]Total: {total_count} snapshots, {format_size(total_size)}[/dim]")
    elif not key:
        console.print("[dim]No snapshots found.[/dim]")


@storage.command(name="rollback")
@click.argument("key", type=click.Choice(list(KNOWN_KEYS)))
@click.option("-i", "--index", type=int, default=0, help="Snapshot index (0 = most recent)")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.pass_obj
def rollback_cmd(ctx, key: str, index: int, yes: bool):
    """Restore one store key from a snapshot.

    The current file is snapshotted first, so a rollback can be undone.
    Links are re-checked the next time the store is opened.

    \b
    Examples:
        labsite storage rollback people          # Most recent snapshot
        labsite storage rollback projects -i 2   # Third most recent
    """
    from rich.prompt import Confirm

    paths = get_paths()
    snapshots = list_snapshots(paths.backups, key)
    if not snapshots:
        console.print(f"[red]No snapshots found for {key}[/red]")
        return
    if index >= len(snapshots):
        console.print(f"[red]Snapshot index {index} out of range (only {len(snapshots)} snapshots)[/red]")
        return

    chosen = snapshots[index]
    console.print(f"Restore [cyan]{key}[/cyan] from {chosen.timestamp:%Y-%m-%d %H:%M:%S} ({_format_age(chosen.age_days)})")

    if ctx.dry_run:
        console.print("[yellow]Dry run - nothing restored.[/yellow]")
        return

    if not yes and not Confirm.ask("Proceed?", default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    try:
        restore_snapshot(paths.store_dir / f"{key}.json", paths.backups, index)
    except (FileNotFoundError, OSError) as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Restored {key}[/green]")


@storage.command(name="import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.pass_obj
def import_cmd(ctx, source: Path, yes: bool):
    """Replace all stored data with a file written by 'storage export'.

    Keys the file does not contain are reseeded from the built-in content.
    Links are repaired after loading.
    """
    from rich.prompt import Confirm

    from labsite.core.storage import PersistenceError

    try:
        data = json_module.loads(source.read_text(encoding="utf-8"))
    except (OSError, json_module.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {source}: {e}[/red]")
        return
    if not isinstance(data, dict):
        console.print(f"[red]{source} is not a store export (expected a JSON object)[/red]")
        return

    keys = [key for key in KNOWN_KEYS if key in data]
    skipped = sorted(key for key in data if key not in KNOWN_KEYS)
    if not keys:
        console.print(f"[red]{source} contains no store keys[/red]")
        return

    console.print(f"[cyan]Import {len(keys)} keys:[/cyan] {', '.join(keys)}")
    if skipped:
        console.print(f"[yellow]Ignoring unknown keys: {', '.join(skipped)}[/yellow]")

    if ctx.dry_run:
        console.print("[yellow]Dry run - nothing imported.[/yellow]")
        return

    if not yes and not Confirm.ask("[red]Replace ALL stored content with this file?[/red]", default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    try:
        report = ctx.store.import_data(data)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Imported {len(keys)} keys from {source}[/green]")
    if report.seeded:
        console.print(f"[dim]Reseeded: {', '.join(report.seeded)}[/dim]")
    if report.repaired_links:
        console.print(f"[dim]Repaired {report.repaired_links} link(s)[/dim]")


@storage.command(name="reset")
@click.option("-k", "--key", type=click.Choice(list(KNOWN_KEYS)), help="Reset only this key")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.pass_obj
def reset_cmd(ctx, key: str | None, yes: bool):
    """Delete stored data and reload the built-in seed content.

    With --key only that key is reset; links from other collections to
    records that no longer exist are removed. This cannot be undone from the
    command line except through snapshots.
    """
    from rich.prompt import Confirm

    from labsite.core.storage import PersistenceError

    target = key or "ALL stored content"
    if ctx.dry_run:
        console.print(f"[yellow]Dry run - would reset {target} to seed data.[/yellow]")
        return

    if not yes and not Confirm.ask(f"[red]Delete {target} and restore the defaults?[/red]", default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    try:
        if key:
            ctx.store.reset_key(key)
        else:
            ctx.store.reset_all()
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        return
    if key:
        console.print(f"[green]Reset {key} to seed data.[/green]")
    else:
        console.print("[green]Store reset to seed data.[/green]")
