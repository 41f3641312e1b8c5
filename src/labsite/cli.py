"""
Main CLI dispatcher for labsite.

Usage:
    labsite init                                 # Initialize .labsite/ directory
    labsite content [list|show|add|set|unset|delete|reorder]
    labsite topics [list|set|remove]
    labsite integrity [check|repair|fix]
    labsite storage [info|export|snapshots|rollback|reset]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler

from labsite import __version__

if TYPE_CHECKING:
    from labsite.core.store import ContentStore

console = Console()


class Context:
    """Shared context for all commands."""

    def __init__(self, verbose: bool = False, dry_run: bool = False):
        self.verbose = verbose
        self.dry_run = dry_run
        self.console = console
        self._store: ContentStore | None = None

    @property
    def store(self) -> ContentStore:
        """The site's content store, opened on first use."""
        if self._store is None:
            from labsite.core.store import ContentStore

            self._store = ContentStore.open()
        return self._store


pass_context = click.make_pass_decorator(Context, ensure=True)


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="labsite")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-n", "--dry-run", is_flag=True, help="Preview without making changes")
@click.pass_context
def main(ctx: click.Context, verbose: bool, dry_run: bool) -> None:
    """Research lab site content tools.

    Manage projects, people, publications and the rest of the site's content store.
    """
    setup_logging(verbose)
    ctx.obj = Context(verbose=verbose, dry_run=dry_run)

    if dry_run:
        console.print("[yellow]DRY RUN MODE - No changes will be made[/yellow]")


@main.command()
@click.option("--force", "-f", is_flag=True, help="Recreate missing directories of an existing .labsite/")
@click.pass_obj
def init(ctx, force: bool) -> None:
    """Initialize .labsite/ directory structure.

    Creates the store and backups directories. The store itself is seeded
    with the built-in content the first time it is opened.
    """
    from pathlib import Path

    from labsite.core.config import DATA_DIR_NAME

    dry_run = ctx.dry_run if ctx else False

    # init always works in the current directory; .labsite/ may not exist yet
    site_root = Path.cwd()
    data_dir = site_root / DATA_DIR_NAME

    if data_dir.exists() and not force:
        console.print(f"[yellow]{DATA_DIR_NAME}/ directory already exists at {data_dir}[/yellow]")
        console.print("[dim]Use --force to reinitialize.[/dim]")
        return

    console.print(f"[cyan]Initializing {DATA_DIR_NAME}/ directory at {site_root}[/cyan]")

    for dir_path in (data_dir, data_dir / "store", data_dir / "backups"):
        if not dry_run:
            dir_path.mkdir(parents=True, exist_ok=True)
        console.print(f"  [green]Created[/green] {dir_path.relative_to(site_root)}")

    gitignore_path = site_root / ".gitignore"
    gitignore_entry = f"{DATA_DIR_NAME}/backups/"

    if gitignore_path.exists():
        content = gitignore_path.read_text()
        if gitignore_entry not in content:
            if not dry_run:
                with open(gitignore_path, "a") as f:
                    f.write(f"\n# labsite snapshots\n{gitignore_entry}\n")
            console.print(f"  [green]Updated[/green] .gitignore with {gitignore_entry}")

    console.print()
    if dry_run:
        console.print("[yellow]DRY RUN - no changes made[/yellow]")
    else:
        console.print(f"[green]Done![/green] {DATA_DIR_NAME}/ directory initialized.")


# Command groups
from labsite.config.commands import config  # noqa: E402
from labsite.content.commands import content  # noqa: E402
from labsite.core.integrity_commands import integrity  # noqa: E402
from labsite.site.commands import featured, team_image  # noqa: E402
from labsite.storage.commands import storage  # noqa: E402
from labsite.topics.commands import topics  # noqa: E402

main.add_command(content)
main.add_command(featured)
main.add_command(team_image)
main.add_command(topics)
main.add_command(integrity)
main.add_command(storage)
main.add_command(config)


if __name__ == "__main__":
    main()
