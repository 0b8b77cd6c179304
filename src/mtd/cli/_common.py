"""Shared utilities for all CLI command modules.

Provides the Rich console instance, list loading/saving and the
click parameter types used across every command group.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console

from .. import MTD_HOME
from ..config import DEFAULT_LIST_FILE, Config, load_config
from ..models import Weekday
from ..tdlist import TdList

console = Console()
logger = logging.getLogger("mtd.cli")

ITEM_TYPES = ("todo", "task")
WEEKDAY_NAMES = [wd.value.lower() for wd in Weekday]

home_option = click.option(
    "--home", default=MTD_HOME, type=click.Path(), help="MTD home directory."
)
item_type_argument = click.argument(
    "item_type", type=click.Choice(ITEM_TYPES, case_sensitive=False)
)


def to_weekdays(names) -> list[Weekday]:
    return [Weekday.parse(name) for name in names]


def list_path(home: Path, config: Config) -> Path:
    """Where the local list lives: the configured save location or the home default."""
    if config.save_location is not None:
        return Path(config.save_location).expanduser()
    return home / DEFAULT_LIST_FILE


def load_local(home: str, server: bool = False) -> tuple[Path, Config, TdList]:
    """Load config and list for a command.

    Returns:
        Tuple of (home path, config, list).
    """
    home_path = Path(home).expanduser()
    config = load_config(home_path)
    tdlist = TdList.load(list_path(home_path, config), server=server)
    return home_path, config, tdlist


def save_local(home_path: Path, config: Config, tdlist: TdList) -> None:
    tdlist.save(list_path(home_path, config))


def fail(exc: Exception) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[bold red]Error:[/] {exc}")
    raise SystemExit(1)
