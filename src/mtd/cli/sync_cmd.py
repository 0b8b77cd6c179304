"""Sync commands: sync, server."""

from __future__ import annotations

import logging
import signal

import click

from ..errors import MtdError
from ._common import console, fail, home_option, list_path, load_local, logger, save_local

LOG_DIR = "logs"


def _setup_server_logging(home_path) -> None:
    """Configure file logging for the server process."""
    log_dir = home_path / LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / "server.log")
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    )
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def register_sync_commands(main: click.Group) -> None:
    """Register the sync and server commands."""

    @main.command("sync")
    @home_option
    @click.option(
        "--local", is_flag=True,
        help="Commit removals and renumber ids without contacting a server.",
    )
    def sync(home, local):
        """Synchronize local items with the server."""
        from ..sync.network import SyncClient

        try:
            home_path, config, tdlist = load_local(home)
        except (MtdError, ValueError) as exc:
            fail(exc)

        if local:
            tdlist.self_sync()
            save_local(home_path, config, tdlist)
            console.print("  [green]Local list synced.[/]")
            return

        console.print(f"\n  Syncing with [cyan]{config.address}:{config.port}[/]...", end=" ")
        try:
            merged = SyncClient(config).sync(tdlist)
        except (MtdError, OSError) as exc:
            console.print("[red]failed[/]")
            logger.debug("Sync failed", exc_info=True)
            fail(exc)

        save_local(home_path, config, merged)
        console.print("[green]done[/]")
        console.print(
            f"  [dim]{len(merged.list_todos())} Todo(s), "
            f"{len(merged.list_tasks())} Task(s)[/]\n"
        )

    @main.command("server")
    @home_option
    def server(home):
        """Run MTD as a server in the foreground (Ctrl+C to stop)."""
        from ..sync.network import SyncServer

        try:
            home_path, config, tdlist = load_local(home, server=True)
        except (MtdError, ValueError) as exc:
            fail(exc)

        if config.save_location is None:
            config = config.model_copy(update={"save_location": list_path(home_path, config)})

        _setup_server_logging(home_path)
        svc = SyncServer(config, tdlist)
        try:
            svc.bind()
        except OSError as exc:
            fail(exc)

        def _handle_signal(signum, frame):
            logger.info("Received signal %s, stopping", signal.Signals(signum).name)
            svc.stop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, _handle_signal)

        host, port = svc.address
        console.print(f"\n  [green]Serving[/] on [cyan]{host}:{port}[/]")
        console.print(f"  List: {config.save_location}")
        console.print(f"  Log: {home_path / LOG_DIR / 'server.log'}\n")
        svc.serve_forever()
