"""
MTD CLI — Todos and Tasks from the command line.

The main Click group is defined here and all subcommands are
registered via register functions.

Entry point: mtd.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="mtd")
def main():
    """MTD — My Todo, synchronized.

    One-shot Todos, weekly Tasks, one self-hosted server.
    """


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .setup import register_setup_commands
from .items import register_item_commands
from .sync_cmd import register_sync_commands

register_setup_commands(main)
register_item_commands(main)
register_sync_commands(main)
