"""Setup command: init."""

from __future__ import annotations

from pathlib import Path

import click

from ..config import DEFAULT_LIST_FILE, DEFAULT_PORT, Config, load_config, save_config
from ._common import console, home_option


def register_setup_commands(main: click.Group) -> None:
    """Register the init command."""

    @main.command("init")
    @home_option
    @click.option("--address", default="127.0.0.1", help="Server address.")
    @click.option("--port", default=DEFAULT_PORT, type=int, help="Server port.")
    @click.option("--timeout", default=30.0, type=float, help="Socket timeout in seconds.")
    @click.option(
        "--password", prompt="Encryption password", hide_input=True,
        confirmation_prompt=True, help="Password shared by the client and the server.",
    )
    @click.option(
        "--save-location", default=None, type=click.Path(),
        help=f"List file (default: <home>/{DEFAULT_LIST_FILE}).",
    )
    def init(home, address, port, timeout, password, save_location):
        """Write the MTD configuration."""
        home_path = Path(home).expanduser()
        existing = load_config(home_path)

        config = Config(
            address=address,
            port=port,
            timeout=timeout,
            encryption_password=password,
            save_location=Path(save_location).expanduser()
            if save_location else existing.save_location,
        )
        config_file = save_config(home_path, config)

        console.print(f"\n  [green]Config written[/] to {config_file}")
        console.print(f"  Server: [cyan]{address}:{port}[/]\n")
