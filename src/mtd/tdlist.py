"""
TdList -- the synchronizable list holding all Todos and Tasks.

A TdList is either a client or a server replica; the role is fixed
when it is created and travels with its JSON form.

    client = TdList.new_client()
    client.add_todo(Todo.dated("Install MTD", Weekday.FRI))
    server = TdList.new_server()
    client.sync(server)       # both now hold "Install MTD"
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .errors import NoTaskWithGivenIdError, NoTodoWithGivenIdError, RoleMismatchError
from .models import ItemState, Task, Todo
from .sync.engine import SyncList, check_roles

logger = logging.getLogger("mtd.tdlist")


class TdList(BaseModel):
    """A synchronizable list of Todos and Tasks.

    Item ids match their position inside the list. Syncing may change
    the ids of both Todos and Tasks.
    """

    todos: SyncList[Todo] = Field(default_factory=SyncList[Todo])
    tasks: SyncList[Task] = Field(default_factory=SyncList[Task])
    server: bool = False

    @model_validator(mode="after")
    def _check_collection_roles(self) -> TdList:
        if self.todos.server != self.server or self.tasks.server != self.server:
            raise ValueError(
                "todos.server and tasks.server must match the list's server flag"
            )
        return self

    @classmethod
    def new_client(cls) -> TdList:
        """Create an empty client list."""
        return cls(
            todos=SyncList[Todo](server=False),
            tasks=SyncList[Task](server=False),
            server=False,
        )

    @classmethod
    def new_server(cls) -> TdList:
        """Create an empty server list."""
        return cls(
            todos=SyncList[Todo](server=True),
            tasks=SyncList[Task](server=True),
            server=True,
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_json(cls, data: str | bytes) -> TdList:
        return cls.model_validate_json(data)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def load(cls, path: Path, server: bool = False) -> TdList:
        """Load a list from disk, or create an empty one if missing.

        Args:
            path: JSON file holding the list.
            server: Role the list is expected to have.

        Raises:
            RoleMismatchError: If the stored list has the other role.
        """
        path = Path(path).expanduser()
        if not path.exists():
            logger.info("No list at %s, starting empty", path)
            return cls.new_server() if server else cls.new_client()

        tdlist = cls.from_json(path.read_text(encoding="utf-8"))
        if tdlist.server != server:
            raise RoleMismatchError(
                f"{path} holds a {'server' if tdlist.server else 'client'} list."
            )
        return tdlist

    def save(self, path: Path) -> None:
        """Persist the list as JSON, replacing the file atomically."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Saved list to %s", path)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def list_todos(self) -> list[Todo]:
        """All Todos that are not removed."""
        return self.todos.live_items()

    def list_tasks(self) -> list[Task]:
        """All Tasks that are not removed."""
        return self.tasks.live_items()

    def add_todo(self, todo: Todo) -> Todo:
        return self.todos.add(todo)

    def add_task(self, task: Task) -> Task:
        return self.tasks.add(task)

    def remove_todo(self, todo_id: int) -> None:
        """Remove the Todo with the given id.

        Raises:
            NoTodoWithGivenIdError: If no live Todo has that id.
        """
        try:
            self.todos.mark_removed(todo_id)
        except KeyError:
            raise NoTodoWithGivenIdError(todo_id) from None

    def remove_task(self, task_id: int) -> None:
        """Remove the Task with the given id.

        Raises:
            NoTaskWithGivenIdError: If no live Task has that id.
        """
        try:
            self.tasks.mark_removed(task_id)
        except KeyError:
            raise NoTaskWithGivenIdError(task_id) from None

    def get_todo_mut(self, todo_id: int) -> Todo:
        """Get a Todo to modify. Its setters mark it Changed.

        Raises:
            NoTodoWithGivenIdError: If no live Todo has that id.
        """
        try:
            return self.todos.get(todo_id)
        except KeyError:
            raise NoTodoWithGivenIdError(todo_id) from None

    def get_task_mut(self, task_id: int) -> Task:
        """Get a Task to modify. Its setters mark it Changed.

        Raises:
            NoTaskWithGivenIdError: If no live Task has that id.
        """
        try:
            return self.tasks.get(task_id)
        except KeyError:
            raise NoTaskWithGivenIdError(task_id) from None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def undone_todos_for_date(
        self, date: dt.date, today: Optional[dt.date] = None
    ) -> list[Todo]:
        return [
            todo for todo in self.list_todos()
            if todo.for_date(date, today) and not todo.is_done()
        ]

    def done_todos_for_date(
        self, date: dt.date, today: Optional[dt.date] = None
    ) -> list[Todo]:
        return [
            todo for todo in self.list_todos()
            if todo.for_date(date, today) and todo.is_done()
        ]

    def undone_tasks_for_date(self, date: dt.date) -> list[Task]:
        return [
            task for task in self.list_tasks()
            if task.for_date(date) and not task.is_done(date)
        ]

    def done_tasks_for_date(self, date: dt.date) -> list[Task]:
        return [
            task for task in self.list_tasks()
            if task.for_date(date) and task.is_done(date)
        ]

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def remove_old_todos(self, today: Optional[dt.date] = None) -> None:
        """Remove every Todo completed at least a day ago.

        Called automatically on every sync. Servers delete the Todos at
        once; clients keep them as removed until the next sync.
        """
        removed = 0
        for todo in self.todos.items:
            if todo.state != ItemState.REMOVED and todo.can_remove(today):
                todo.state = ItemState.REMOVED
                removed += 1
        if removed:
            logger.debug("Marked %d old Todo(s) removed", removed)
        if self.server:
            self.todos.drop_removed()

    def self_sync(self, today: Optional[dt.date] = None) -> None:
        """Sync the list with itself, actually removing items.

        Also removes old Todos. Item ids may change.
        """
        self.remove_old_todos(today)
        self.todos.sync_self()
        self.tasks.sync_self()

    def sync(self, other: TdList, today: Optional[dt.date] = None) -> None:
        """Sync the list with another one of the opposite role.

        Both lists hold the same items afterwards. Also removes old
        Todos. Item ids may change.

        Raises:
            RoleMismatchError: If both lists are servers or both clients.
        """
        check_roles(self.server, other.server)

        self.remove_old_todos(today)
        other.remove_old_todos(today)

        self.todos.sync(other.todos)
        self.tasks.sync(other.tasks)
        logger.info(
            "Synced lists: %d Todo(s), %d Task(s)",
            len(self.todos.items),
            len(self.tasks.items),
        )
