"""
Store settings kept in .labsite/config.yaml.

Settings are addressed by dotted keys (``store.project_color_mode``) and
only the ones listed in SETTINGS can be read or written from the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from labsite.core.config import (
    COLOR_MODES,
    DEFAULT_KEEP_COUNT,
    DEFAULT_KEEP_DAYS,
    HUE_STRATEGIES,
    get_paths,
    load_site_config,
)

console = Console()

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


@dataclass(frozen=True)
class Setting:
    """One user-editable setting."""

    default: Any
    kind: type
    description: str
    choices: tuple[str, ...] = ()

    def parse(self, raw: str) -> Any:
        """Turn command-line text into a typed value.

        Raises:
            ValueError: If the text does not fit the setting
        """
        if self.kind is bool:
            lowered = raw.strip().lower()
            if lowered not in _TRUE + _FALSE:
                raise ValueError("Expected bool (true/false)")
            return lowered in _TRUE
        if self.kind is int:
            try:
                return int(raw)
            except ValueError:
                raise ValueError("Expected int") from None
        if self.choices and raw not in self.choices:
            raise ValueError(f"Invalid value {raw!r}. Options: {', '.join(self.choices)}")
        return raw


SETTINGS: dict[str, Setting] = {
    "store.project_color_mode": Setting(
        "brand", str, "Project card color: fixed brand color or composed from topics", COLOR_MODES
    ),
    "store.topic_hue_strategy": Setting("even", str, "Hue allocation for newly seen topics", HUE_STRATEGIES),
    "backup.enabled": Setting(True, bool, "Snapshot store files before overwriting them"),
    "backup.keep_count": Setting(DEFAULT_KEEP_COUNT, int, "Minimum number of snapshots to keep per key"),
    "backup.keep_days": Setting(DEFAULT_KEEP_DAYS, int, "Maximum age of snapshots in days"),
}


def get_config_path() -> Path:
    return get_paths().config_file


def load_config() -> dict[str, Any]:
    """Site settings as a nested dict ({} when the file is missing or empty)."""
    return load_site_config()


def save_config(config: dict[str, Any]) -> None:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config, default_flow_style=False, sort_keys=False), encoding="utf-8")


def get_config_value(key: str, default: Any = None) -> Any:
    """Look up a dotted key, returning *default* when any part is missing."""
    node: Any = load_config()
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_config_value(key: str, value: Any) -> None:
    """Write a dotted key, creating (or replacing non-dict) sections on the way."""
    config = load_config()
    *sections, name = key.split(".")
    node = config
    for section in sections:
        child = node.get(section)
        if not isinstance(child, dict):
            child = node[section] = {}
        node = child
    node[name] = value
    save_config(config)


def _lookup(key: str) -> Setting | None:
    setting = SETTINGS.get(key)
    if setting is None:
        console.print(f"[red]Unknown setting: {key}[/red]")
        console.print("\nAvailable settings:")
        for name in SETTINGS:
            console.print(f"  - {name}")
    return setting


@click.group()
def config():
    """Manage labsite configuration.

    Settings are stored in .labsite/config.yaml.
    """


@config.command(name="show")
@click.option("--all", "show_all", is_flag=True, help="Include settings left at their default")
def show_cmd(show_all: bool):
    """Show settings that differ from the defaults (or all with --all)."""
    path = get_config_path()
    rows = []
    for key, setting in SETTINGS.items():
        value = get_config_value(key)
        customised = value is not None and value != setting.default
        if show_all or customised:
            shown = f"[dim]{setting.default}[/dim]" if value is None else str(value)
            rows.append((key, shown, str(setting.default), setting.description))

    if not rows:
        console.print("[dim]No custom configuration set. Using defaults.[/dim]")
        console.print(f"[dim]Config file: {path}[/dim]")
        console.print("\n[dim]Use 'labsite config show --all' to see all settings.[/dim]")
        return

    table = Table(title="Configuration", header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value", style="green")
    table.add_column("Default", style="dim")
    table.add_column("Description", style="dim")
    for row in rows:
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[dim]Config file: {path}[/dim]")


@config.command(name="get")
@click.argument("key")
def get_cmd(key: str):
    """Print one setting.

    \b
    Examples:
        labsite config get store.project_color_mode
        labsite config get backup.keep_count
    """
    setting = _lookup(key)
    if setting is None:
        return

    value = get_config_value(key)
    if value is None:
        console.print(f"{key} = {setting.default} [dim](default)[/dim]")
    else:
        console.print(f"{key} = {value}")


@config.command(name="set")
@click.argument("key")
@click.argument("value")
def set_cmd(key: str, value: str):
    """Change one setting.

    \b
    Examples:
        labsite config set store.project_color_mode topics
        labsite config set backup.keep_days 14
    """
    setting = _lookup(key)
    if setting is None:
        return

    try:
        typed = setting.parse(value)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return

    set_config_value(key, typed)
    console.print(f"[green]Set {key} = {typed}[/green]")


@config.command(name="reset")
@click.argument("key", required=False)
@click.option("--all", "reset_all", is_flag=True, help="Reset every setting")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
def reset_cmd(key: str | None, reset_all: bool, force: bool):
    """Return one setting (or all with --all) to its default."""
    if reset_all:
        if not force and not click.confirm("Reset all settings to defaults?"):
            console.print("[yellow]Cancelled[/yellow]")
            return
        get_config_path().unlink(missing_ok=True)
        console.print("[green]All settings reset to defaults[/green]")
        return

    if not key:
        console.print("[red]Specify a key or use --all to reset all settings[/red]")
        return

    setting = _lookup(key)
    if setting is None:
        return

    config = load_config()
    section, _, name = key.partition(".")
    values = config.get(section)
    if not isinstance(values, dict) or name not in values:
        console.print(f"[dim]{key} is already at default[/dim]")
        return

    del values[name]
    if not values:
        del config[section]
    save_config(config)
    console.print(f"[green]Reset {key} to default ({setting.default})[/green]")
