"""Shared test fixtures for mtd."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from mtd.models import Task, Todo, Weekday
from mtd.tdlist import TdList


@pytest.fixture
def tmp_mtd_home(tmp_path: Path) -> Path:
    """Provide a temporary MTD home directory for testing."""
    home = tmp_path / ".mtd"
    home.mkdir()
    return home


@pytest.fixture
def done_and_undone_list() -> TdList:
    """A client list with done and undone Todos and Tasks around 2021-04-01 (a Thursday)."""
    tdlist = TdList.new_client()

    tdlist.add_todo(Todo(body="Undone 1", date=dt.date(2021, 4, 1)))
    tdlist.add_todo(Todo(body="Undone 2", date=dt.date(2021, 3, 29)))
    tdlist.add_todo(Todo(body="Done 1", date=dt.date(2021, 4, 1)))
    tdlist.add_todo(Todo(body="Done 2", date=dt.date(2021, 3, 30)))

    tdlist.get_todo_mut(2).set_done(True, dt.date(2021, 4, 1))
    tdlist.get_todo_mut(3).set_done(True, dt.date(2021, 4, 1))

    tdlist.add_task(Task(body="Undone 1", weekdays=[Weekday.THU]))
    tdlist.add_task(Task(body="Done 1", weekdays=[Weekday.THU]))

    tdlist.get_task_mut(1).set_done(True, dt.date(2021, 4, 1))

    return tdlist
