"""
`tool-djinn settings` actions: init, show, edit.

Imported only when `settings` runs, which keeps Rich off the tool-call path.
"""

import configparser
import os
import subprocess
from dataclasses import asdict
from typing import Dict, List, Tuple

from rich.console import Console
from rich.table import Table

from tooldjinn.core.configs import (
    CONFIG_PATH,
    OutputBudgets,
    ToolSettings,
    get_tool_settings,
    load_raw_config,
)

console = Console()


def budget_entries(budgets: OutputBudgets) -> List[Tuple[str, str]]:
    # Config keys are the field names with a _tokens suffix
    return [(f"{name}_tokens", str(value)) for name, value in asdict(budgets).items()]


def default_config() -> Dict[str, Dict[str, str]]:
    defaults = ToolSettings()
    return {
        "DEFAULT": {"git_binary": defaults.git_binary, "dotnet_binary": defaults.dotnet_binary},
        "BUDGETS": dict(budget_entries(defaults.budgets)),
    }


def write_config(sections: Dict[str, Dict[str, str]]) -> None:
    parser = configparser.ConfigParser()
    parser.read_dict(sections)
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_PATH, "w") as f:
        parser.write(f)


def init_config() -> None:
    if CONFIG_PATH.exists():
        console.print(f"[yellow]{CONFIG_PATH} already exists; leaving it alone.[/yellow]")
        console.print("Run 'tool-djinn settings edit' to change it.")
        return
    write_config(default_config())
    console.print(f"[green]✓ Created {CONFIG_PATH} with default settings[/green]")


def show_config() -> None:
    """Print the settings tool calls would actually use, overrides applied."""
    try:
        settings = get_tool_settings(load_raw_config())
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise SystemExit(1)

    table = Table(title="Effective settings")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("git_binary", settings.git_binary)
    table.add_row("dotnet_binary", settings.dotnet_binary)
    for key, value in budget_entries(settings.budgets):
        table.add_row(key, value)
    console.print(table)

    source = CONFIG_PATH if CONFIG_PATH.exists() else "defaults (no config file)"
    console.print(f"\n[dim]Source: {source}; TOOLDJINN_* variables take precedence[/dim]")


def edit_config() -> None:
    if not CONFIG_PATH.exists():
        write_config(default_config())
        console.print(f"[dim]Created {CONFIG_PATH} from defaults[/dim]")

    editor = os.environ.get("EDITOR", "vim")
    try:
        subprocess.run([editor, str(CONFIG_PATH)], check=True)
    except FileNotFoundError:
        console.print(f"[red]'{editor}' not found.[/red] Set $EDITOR or edit {CONFIG_PATH} by hand.")
        raise SystemExit(1)
    except subprocess.CalledProcessError as e:
        console.print(f"[red]{editor} exited with status {e.returncode}[/red]")
        raise SystemExit(1)


ACTIONS = {"init": init_config, "show": show_config, "edit": edit_config}


def handle_config(action: str) -> None:
    handler = ACTIONS.get(action)
    if handler is None:
        console.print(f"[red]Unknown settings action '{action}'[/red] (choose from {', '.join(ACTIONS)})")
        raise SystemExit(1)
    handler()
