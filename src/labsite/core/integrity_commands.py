"""CLI commands for store integrity checking."""

import json as json_module

import click
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

console = Console()


@click.group(name="integrity")
def integrity() -> None:
    """Store integrity checking and repair.

    Validates links between collections, topic colors, featured ids and field values.
    """
    pass


@integrity.command(name="check")
@click.option("--collection", "collection_key", help="Only report issues on one collection (e.g. people)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed information")
@click.pass_obj
def integrity_check(ctx, collection_key: str | None, as_json: bool, verbose: bool) -> None:
    """Run integrity checks on the store.

    \b
    Examples:
        labsite integrity check                        # Full check
        labsite integrity check --collection projects  # One collection
        labsite integrity check --json                 # JSON output
    """
    from labsite.core.integrity import IntegrityChecker

    checker = IntegrityChecker(ctx.store)
    result = checker.check_collection(collection_key) if collection_key else checker.check_all()

    if as_json:
        click.echo(result.to_json())
        return

    table = Table(title="Integrity Check Results", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    for key, count in sorted(result.checked.items()):
        table.add_row(f"{key} checked:", str(count))

    table.add_row("", "")
    table.add_row("Total issues:", str(len(result.issues)))

    by_sev = result._group_by_severity()
    if by_sev.get("error"):
        table.add_row("Errors:", f"[red]{by_sev['error']}[/red]")
    if by_sev.get("warning"):
        table.add_row("Warnings:", f"[yellow]{by_sev['warning']}[/yellow]")
    if by_sev.get("info"):
        table.add_row("Info:", f"[blue]{by_sev['info']}[/blue]")

    fixable_count = len(result.fixable_issues())
    if fixable_count:
        table.add_row("Fixable issues:", f"[green]{fixable_count}[/green]")

    console.print()
    console.print(table)

    if not result.issues:
        console.print()
        console.print("[green]All integrity checks passed![/green]")
        return

    by_collection = result._group_by_collection()
    if by_collection and verbose:
        console.print()
        coll_table = Table(title="Issues by Collection")
        coll_table.add_column("Collection", style="cyan")
        coll_table.add_column("Count", style="white")
        for key, count in sorted(by_collection.items()):
            coll_table.add_row(key, str(count))
        console.print(coll_table)

    errors = result.errors()
    if errors:
        console.print()
        console.print(f"[red]Errors ({len(errors)}):[/red]")
        for issue in errors:
            console.print(f"  [bold]• [{issue.collection}] {issue.entry_id}[/bold]")
            console.print(f"    {issue.message}")
            if verbose and issue.extra:
                for key, value in issue.extra.items():
                    console.print(f"    [dim]{key}: {value}[/dim]")

    other_issues = [i for i in result.issues if i.severity.value != "error"]
    if other_issues and verbose:
        console.print()
        console.print(f"[yellow]Other Issues ({len(other_issues)}):[/yellow]")
        for issue in other_issues:
            sev_color = "yellow" if issue.severity.value == "warning" else "blue"
            fixable_marker = " [green](fixable)[/green]" if issue.fixable else ""
            console.print(f"  [{sev_color}]• [{issue.collection}] {issue.entry_id}[/{sev_color}]{fixable_marker}")
            console.print(f"    {issue.message}")
    elif other_issues:
        console.print()
        console.print(f"[dim]{len(other_issues)} other issues (use --verbose to see)[/dim]")

    console.print()
    if result.has_errors:
        console.print("[red]Integrity check found errors.[/red]")
    else:
        console.print("[yellow]Integrity check passed with warnings/info.[/yellow]")

    if result.has_fixable:
        console.print("[dim]Run 'labsite integrity fix' to fix auto-fixable issues.[/dim]")


@integrity.command(name="repair")
@click.pass_obj
def integrity_repair(ctx) -> None:
    """Add links that are recorded on one side of a relation only.

    Never removes anything; running it twice changes nothing the second time.
    """
    store = ctx.store

    if ctx.dry_run:
        missing = [d for d in store.links.find_divergences() if d.problem == "one-sided"]
        console.print(f"[dim]Would add {len(missing)} link(s)[/dim]")
        return

    report = store.repair_links()
    if not report:
        console.print("[green]All links are two-sided.[/green]")
        return

    table = Table(title=f"Added {len(report)} link(s)")
    table.add_column("Record", style="cyan")
    table.add_column("Field", style="yellow")
    table.add_column("Value")
    for fix in report.added:
        table.add_row(f"{fix.record_kind}/{fix.record_id}", fix.field, fix.value)
    console.print(table)


@integrity.command(name="fix")
@click.option("--collection", "collection_key", help="Fix issues on one collection only")
@click.option("-y", "--yes", is_flag=True, help="Apply fixes without confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def integrity_fix(ctx, collection_key: str | None, yes: bool, as_json: bool) -> None:
    """Fix auto-fixable integrity issues.

    Currently fixes:
    - One-sided links (union repair)
    - Dangling ids (removed from the record that holds them)
    - Unregistered topics and stale topic color snapshots
    - Featured slots pointing at deleted records

    \b
    Examples:
        labsite -n integrity fix   # Preview fixes
        labsite integrity fix -y   # Apply fixes without confirmation
    """
    from labsite.core.integrity import IntegrityChecker

    checker = IntegrityChecker(ctx.store)
    result = checker.check_collection(collection_key) if collection_key else checker.check_all()
    fixable = result.fixable_issues()

    if not fixable:
        if as_json:
            click.echo(json_module.dumps({"fixed": 0, "failed": 0}))
        else:
            console.print("[green]No fixable issues found.[/green]")
        return

    if as_json:
        output = {
            "fixable": [i.to_dict() for i in fixable],
            "count": len(fixable),
        }
        click.echo(json_module.dumps(output, indent=2))
        return

    console.print(f"[cyan]Found {len(fixable)} fixable issue(s):[/cyan]")
    console.print()
    for issue in fixable:
        console.print(f"  • [{issue.collection}] {issue.entry_id}")
        console.print(f"    {issue.message}")
    console.print()

    if ctx.dry_run:
        console.print("[dim]Dry run mode - previewing fixes:[/dim]")
        fixed, _failed = checker.fix_issues(fixable, dry_run=True)
        console.print()
        console.print(f"[dim]Would fix {fixed} issue(s)[/dim]")
        return

    if not yes and not Confirm.ask(f"Apply {len(fixable)} fix(es)?", default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    fixed, failed = checker.fix_issues(fixable, dry_run=False)

    console.print()
    console.print(f"[green]Fixed: {fixed}[/green]")
    if failed:
        console.print(f"[red]Failed: {failed}[/red]")
