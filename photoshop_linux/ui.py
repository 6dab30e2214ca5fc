"""
Photoshop Linux - console output and interactive prompts.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

from typing import Optional

import questionary
from questionary import Style
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

console = Console()

QUESTIONARY_STYLE = Style([
    ("qmark", "fg:cyan bold"),
    ("question", "fg:white bold"),
    ("answer", "fg:green bold"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("selected", "fg:green"),
    ("separator", "fg:gray"),
    ("instruction", "fg:gray italic"),
])


# =============================================================================
# Output Helpers
# =============================================================================

def step(message: str) -> None:
    console.print(f"[bold cyan]→[/] {message}")


def success(message: str) -> None:
    console.print(f"[green]✓ {message}[/]")


def warning(message: str) -> None:
    console.print(f"[yellow]⚠ {message}[/]")


def error(message: str) -> None:
    console.print(f"[bold red]✗ {message}[/]")


def info(message: str) -> None:
    console.print(f"[dim]{message}[/]")


def section(title: str) -> None:
    """Print a section heading between installation phases."""
    console.print()
    console.rule(f"[bold cyan]{title}[/]")


def display_banner(subtitle: str = "Adobe Photoshop CC on Linux") -> None:
    """Display application banner."""
    banner = """
 ____  _           _            _                   _     _
|  _ \\| |__   ___ | |_ ___  ___| |__   ___  _ __   | |   (_)_ __  _   ___  __
| |_) | '_ \\ / _ \\| __/ _ \\/ __| '_ \\ / _ \\| '_ \\  | |   | | '_ \\| | | \\ \\/ /
|  __/| | | | (_) | || (_) \\__ \\ | | | (_) | |_) | | |___| | | | | |_| |>  <
|_|   |_| |_|\\___/ \\__\\___/|___/_| |_|\\___/| .__/  |_____|_|_| |_|\\__,_/_/\\_\\
                                           |_|"""

    console.print(Panel(
        Text(banner, style="bold cyan", justify="center"),
        subtitle=f"[dim]{subtitle}[/]",
        box=box.DOUBLE,
    ))


def display_panel(body: str, title: str, style: str = "cyan") -> None:
    console.print(Panel(body, title=title, border_style=style, box=box.ROUNDED))


# =============================================================================
# Prompts
# =============================================================================

def ask_select(message: str, choices: list):
    """Wrapper for questionary select with consistent styling."""
    return questionary.select(message, choices=choices, style=QUESTIONARY_STYLE).ask()


def ask_confirm(message: str, default: bool = True) -> bool:
    """Wrapper for questionary confirm with consistent styling."""
    result = questionary.confirm(message, default=default, style=QUESTIONARY_STYLE).ask()
    return result if result is not None else False


def ask_path(message: str, default: str = "") -> Optional[str]:
    """Wrapper for questionary path with consistent styling."""
    return questionary.path(message, default=default, only_directories=True, style=QUESTIONARY_STYLE).ask()
