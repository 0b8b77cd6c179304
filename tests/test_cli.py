"""Tests for the mtd command line."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from click.testing import CliRunner

from mtd.cli import main
from mtd.config import Config, load_config, save_config
from mtd.models import ItemState, Weekday
from mtd.sync.network import SyncServer
from mtd.tdlist import TdList


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, home: Path, *args: str):
    return runner.invoke(main, [args[0], "--home", str(home), *args[1:]])


def _load(home: Path) -> TdList:
    return TdList.load(home / "tdlist.json")


class TestInit:
    """mtd init."""

    def test_writes_config(self, runner: CliRunner, tmp_mtd_home: Path):
        result = _invoke(
            runner, tmp_mtd_home, "init",
            "--address", "10.1.1.1", "--port", "4242", "--password", "secret",
        )
        assert result.exit_code == 0, result.output

        config = load_config(tmp_mtd_home)
        assert config.socket_addr == ("10.1.1.1", 4242)
        assert config.encryption_password == "secret"

    def test_help(self, runner: CliRunner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("add", "remove", "set", "done", "show", "sync", "server", "init"):
            assert command in result.output


class TestItemCommands:
    """add, remove, set, done, show."""

    def test_add_todo_and_task(self, runner: CliRunner, tmp_mtd_home: Path):
        assert _invoke(runner, tmp_mtd_home, "add", "todo", "Buy milk").exit_code == 0
        result = _invoke(runner, tmp_mtd_home, "add", "task", "Gym", "mon", "thu")
        assert result.exit_code == 0, result.output

        tdlist = _load(tmp_mtd_home)
        assert [todo.body for todo in tdlist.list_todos()] == ["Buy milk"]
        assert tdlist.list_tasks()[0].weekdays == [Weekday.MON, Weekday.THU]
        assert tdlist.list_tasks()[0].state == ItemState.NEW

    def test_add_task_without_weekday_fails(self, runner: CliRunner, tmp_mtd_home: Path):
        result = _invoke(runner, tmp_mtd_home, "add", "task", "Gym")
        assert result.exit_code == 1
        assert "at least one weekday" in result.output

    def test_add_dated_todo(self, runner: CliRunner, tmp_mtd_home: Path):
        assert _invoke(runner, tmp_mtd_home, "add", "todo", "Call mom", "sun").exit_code == 0
        assert _load(tmp_mtd_home).list_todos()[0].weekday == Weekday.SUN

    def test_remove(self, runner: CliRunner, tmp_mtd_home: Path):
        _invoke(runner, tmp_mtd_home, "add", "todo", "One")
        _invoke(runner, tmp_mtd_home, "add", "todo", "Two")

        result = _invoke(runner, tmp_mtd_home, "remove", "todo", "0")

        assert result.exit_code == 0, result.output
        assert [todo.body for todo in _load(tmp_mtd_home).list_todos()] == ["Two"]

    def test_remove_missing_id_fails(self, runner: CliRunner, tmp_mtd_home: Path):
        result = _invoke(runner, tmp_mtd_home, "remove", "task", "3")
        assert result.exit_code == 1
        assert "No Task with the given id" in result.output

    def test_set(self, runner: CliRunner, tmp_mtd_home: Path):
        _invoke(runner, tmp_mtd_home, "add", "task", "Gym", "mon")

        result = _invoke(
            runner, tmp_mtd_home, "set", "task", "0", "--body", "Swim", "-w", "tue", "-w", "fri",
        )

        assert result.exit_code == 0, result.output
        task = _load(tmp_mtd_home).list_tasks()[0]
        assert task.body == "Swim"
        assert task.weekdays == [Weekday.TUE, Weekday.FRI]

    def test_done_and_undo(self, runner: CliRunner, tmp_mtd_home: Path):
        _invoke(runner, tmp_mtd_home, "add", "todo", "Laundry")

        assert _invoke(runner, tmp_mtd_home, "done", "todo", "0").exit_code == 0
        assert _load(tmp_mtd_home).list_todos()[0].is_done()

        assert _invoke(runner, tmp_mtd_home, "done", "todo", "0", "--undo").exit_code == 0
        assert not _load(tmp_mtd_home).list_todos()[0].is_done()

    def test_show(self, runner: CliRunner, tmp_mtd_home: Path):
        _invoke(runner, tmp_mtd_home, "add", "todo", "Visible today")

        result = _invoke(runner, tmp_mtd_home, "show")
        assert result.exit_code == 0, result.output
        assert "Visible today" in result.output

        result = _invoke(runner, tmp_mtd_home, "show", "--week", "--item-type", "task")
        assert result.exit_code == 0, result.output
        assert "Visible today" not in result.output

    def test_show_weekday_and_week_conflict(self, runner: CliRunner, tmp_mtd_home: Path):
        result = _invoke(runner, tmp_mtd_home, "show", "--week", "--weekday", "mon")
        assert result.exit_code == 1


class TestSyncCommands:
    """sync --local and sync against a server."""

    def test_local_sync_commits_removals(self, runner: CliRunner, tmp_mtd_home: Path):
        _invoke(runner, tmp_mtd_home, "add", "todo", "One")
        _invoke(runner, tmp_mtd_home, "add", "todo", "Two")
        _invoke(runner, tmp_mtd_home, "remove", "todo", "0")

        result = _invoke(runner, tmp_mtd_home, "sync", "--local")

        assert result.exit_code == 0, result.output
        tdlist = _load(tmp_mtd_home)
        assert len(tdlist.todos.items) == 1
        assert tdlist.todos.items[0].id == 0
        assert tdlist.todos.items[0].state == ItemState.UNCHANGED

    def test_sync_with_server(self, runner: CliRunner, tmp_mtd_home: Path):
        svc = SyncServer(
            Config(port=0, encryption_password="pw", timeout=5), TdList.new_server()
        )
        svc.bind()
        thread = threading.Thread(target=svc.serve_forever, daemon=True)
        thread.start()
        try:
            save_config(
                tmp_mtd_home,
                Config(port=svc.address[1], encryption_password="pw", timeout=5),
            )
            _invoke(runner, tmp_mtd_home, "add", "todo", "Shared")

            result = _invoke(runner, tmp_mtd_home, "sync")
        finally:
            svc.stop()
            thread.join(timeout=5)

        assert result.exit_code == 0, result.output
        assert [todo.body for todo in svc.tdlist.list_todos()] == ["Shared"]
        assert _load(tmp_mtd_home).todos.items[0].state == ItemState.UNCHANGED

    def test_sync_unreachable_server_fails(self, runner: CliRunner, tmp_mtd_home: Path):
        import socket

        listener = socket.create_server(("127.0.0.1", 0))
        port = listener.getsockname()[1]
        listener.close()
        save_config(tmp_mtd_home, Config(port=port, encryption_password="pw", timeout=1))
        _invoke(runner, tmp_mtd_home, "add", "todo", "Unsynced")

        result = _invoke(runner, tmp_mtd_home, "sync")

        assert result.exit_code == 1
        assert _load(tmp_mtd_home).todos.items[0].state == ItemState.NEW
