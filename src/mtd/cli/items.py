"""Item commands: show, add, remove, set, done."""

from __future__ import annotations

import datetime as dt

import click
from rich.table import Table

from ..errors import MtdError
from ..models import Task, Todo, Weekday, weekday_to_date
from ..tdlist import TdList
from ._common import (
    WEEKDAY_NAMES,
    console,
    fail,
    home_option,
    item_type_argument,
    load_local,
    save_local,
    to_weekdays,
)


def _render_day(tdlist: TdList, date: dt.date, item_type: str | None) -> None:
    table = Table(
        show_header=True, header_style="bold", box=None, padding=(0, 2),
        title=f"{Weekday.of(date).value} {date.isoformat()}",
    )
    table.add_column("Type", style="dim")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Item")
    table.add_column("Status")

    if item_type in (None, "todo"):
        for todo in tdlist.undone_todos_for_date(date):
            table.add_row("todo", str(todo.id), todo.body, "[yellow]undone[/]")
        for todo in tdlist.done_todos_for_date(date):
            table.add_row("todo", str(todo.id), f"[dim]{todo.body}[/]", "[green]done[/]")
    if item_type in (None, "task"):
        for task in tdlist.undone_tasks_for_date(date):
            table.add_row("task", str(task.id), task.body, "[yellow]undone[/]")
        for task in tdlist.done_tasks_for_date(date):
            table.add_row("task", str(task.id), f"[dim]{task.body}[/]", "[green]done[/]")

    if table.row_count:
        console.print(table)
    else:
        console.print(f"  [dim]Nothing for {date.isoformat()}.[/]")


def register_item_commands(main: click.Group) -> None:
    """Register the item commands."""

    @main.command("show")
    @home_option
    @click.option(
        "--item-type", "-i", type=click.Choice(["todo", "task"], case_sensitive=False),
        default=None, help="Only show this kind of item.",
    )
    @click.option(
        "--weekday", "-w", type=click.Choice(WEEKDAY_NAMES, case_sensitive=False),
        default=None, help="Show the upcoming weekday instead of today.",
    )
    @click.option("--week", is_flag=True, help="Show the next seven days.")
    def show(home, item_type, weekday, week):
        """Show Todos and Tasks for today, a weekday or the whole week."""
        if weekday and week:
            fail(click.UsageError("--weekday and --week are mutually exclusive."))
        try:
            _, _, tdlist = load_local(home)
        except (MtdError, ValueError) as exc:
            fail(exc)

        today = dt.date.today()
        if week:
            dates = [today + dt.timedelta(days=n) for n in range(7)]
        elif weekday:
            dates = [weekday_to_date(Weekday.parse(weekday), today)]
        else:
            dates = [today]

        console.print()
        for date in dates:
            _render_day(tdlist, date, item_type)
            console.print()

    @main.command("add")
    @home_option
    @item_type_argument
    @click.argument("body")
    @click.argument(
        "weekdays", nargs=-1, type=click.Choice(WEEKDAY_NAMES, case_sensitive=False)
    )
    def add(home, item_type, body, weekdays):
        """Add a Todo (for an optional weekday) or a Task (for one or more weekdays)."""
        try:
            home_path, config, tdlist = load_local(home)
        except (MtdError, ValueError) as exc:
            fail(exc)

        days = to_weekdays(weekdays)
        if item_type == "todo":
            if len(days) > 1:
                fail(click.UsageError("A Todo takes at most one weekday."))
            item = tdlist.add_todo(Todo.dated(body, days[0]) if days else Todo.undated(body))
        else:
            if not days:
                fail(click.UsageError("A Task needs at least one weekday."))
            item = tdlist.add_task(Task(body=body, weekdays=days))

        save_local(home_path, config, tdlist)
        console.print(f"  [green]Added[/] {item_type} {item}")

    @main.command("remove")
    @home_option
    @item_type_argument
    @click.argument("item_id", type=int)
    def remove(home, item_type, item_id):
        """Remove an item by id."""
        try:
            home_path, config, tdlist = load_local(home)
            if item_type == "todo":
                tdlist.remove_todo(item_id)
            else:
                tdlist.remove_task(item_id)
        except (MtdError, ValueError) as exc:
            fail(exc)

        save_local(home_path, config, tdlist)
        console.print(f"  [green]Removed[/] {item_type} {item_id}")

    @main.command("set")
    @home_option
    @item_type_argument
    @click.argument("item_id", type=int)
    @click.option("--body", "-b", default=None, help="New body.")
    @click.option(
        "--weekdays", "-w", multiple=True,
        type=click.Choice(WEEKDAY_NAMES, case_sensitive=False),
        help="New weekday(s). Todos take one.",
    )
    def set_item(home, item_type, item_id, body, weekdays):
        """Change the body or weekday(s) of an item."""
        days = to_weekdays(weekdays)
        try:
            home_path, config, tdlist = load_local(home)
            if item_type == "todo":
                item = tdlist.get_todo_mut(item_id)
                if len(days) > 1:
                    fail(click.UsageError("A Todo takes at most one weekday."))
                if days:
                    item.set_weekday(days[0])
            else:
                item = tdlist.get_task_mut(item_id)
                if days:
                    item.set_weekdays(days)
            if body is not None:
                item.set_body(body)
        except (MtdError, ValueError) as exc:
            fail(exc)

        save_local(home_path, config, tdlist)
        console.print(f"  [green]Updated[/] {item_type} {item}")

    @main.command("done")
    @home_option
    @item_type_argument
    @click.argument("item_id", type=int)
    @click.option("--undo", is_flag=True, help="Mark as not done instead.")
    def done(home, item_type, item_id, undo):
        """Mark an item done (or undone) for today."""
        today = dt.date.today()
        try:
            home_path, config, tdlist = load_local(home)
            if item_type == "todo":
                item = tdlist.get_todo_mut(item_id)
                item.set_done(not undo, today)
            else:
                item = tdlist.get_task_mut(item_id)
                item.set_done(not undo, today)
        except (MtdError, ValueError) as exc:
            fail(exc)

        save_local(home_path, config, tdlist)
        state = "[yellow]undone[/]" if undo else "[green]done[/]"
        console.print(f"  {item_type} {item} {state}")
