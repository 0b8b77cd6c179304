"""
Pydantic models for the items MTD keeps track of.

Todos are one-shot items for a specific date. Tasks come back every
week on the weekdays they are set for. Both carry a positional ``id``
that may change on every sync and a random ``sync_id`` that identifies
the same item on every replica for its whole lifetime.
"""

from __future__ import annotations

import copy
import datetime as dt
import secrets
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field


class Weekday(str, Enum):
    """Days of the week, serialized by their short English names."""

    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @property
    def number(self) -> int:
        """Days since Monday, matching ``date.weekday()``."""
        return list(Weekday).index(self)

    @classmethod
    def of(cls, day: dt.date) -> Weekday:
        """Get the weekday of a date."""
        return list(cls)[day.weekday()]

    @classmethod
    def parse(cls, value: str) -> Weekday:
        """Parse a weekday name case-insensitively ("mon", "Mon", "MON")."""
        for weekday in cls:
            if weekday.value.lower() == value[:3].lower():
                return weekday
        raise ValueError(f"Not a weekday: {value!r}")


def weekday_to_date(weekday: Weekday, today: dt.date) -> dt.date:
    """Get the date of the upcoming ``weekday``.

    Today's weekday maps to today, tomorrow's weekday to tomorrow and
    so on, up to six days ahead.
    """
    return today + dt.timedelta(days=(weekday.number - today.weekday()) % 7)


class ItemState(str, Enum):
    """What happened to an item locally since the last sync."""

    NEW = "New"
    CHANGED = "Changed"
    UNCHANGED = "Unchanged"
    REMOVED = "Removed"


def new_sync_id() -> int:
    """Draw a random 64-bit identity for a new item."""
    return secrets.randbits(64)


class SyncItem(BaseModel):
    """Identity and change tracking shared by every syncable item.

    Subclasses list the fields a sync may overwrite in
    ``MUTABLE_FIELDS``. Equality only looks at those fields, so the same
    item compares equal across replicas regardless of ``id``,
    ``sync_id`` or ``state``.
    """

    id: int = 0
    sync_id: int = Field(default_factory=new_sync_id)
    state: ItemState = ItemState.UNCHANGED

    MUTABLE_FIELDS: ClassVar[tuple[str, ...]] = ()

    def update_from(self, other: SyncItem) -> None:
        """Overwrite the mutable fields with copies of ``other``'s."""
        for name in self.MUTABLE_FIELDS:
            setattr(self, name, copy.deepcopy(getattr(other, name)))

    def _changed(self) -> None:
        self.state = ItemState.CHANGED

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return all(
            getattr(self, name) == getattr(other, name)
            for name in self.MUTABLE_FIELDS
        )


class Todo(SyncItem):
    """A one-time item to be done at a specific date.

    The date is given as a weekday from now. Without a weekday the
    Todo is for today. Once its date has passed, an undone Todo keeps
    showing up for the current day.
    """

    body: str
    date: dt.date = Field(default_factory=dt.date.today)
    done: Optional[dt.date] = None

    MUTABLE_FIELDS: ClassVar[tuple[str, ...]] = ("body", "date", "done")

    def __str__(self) -> str:
        return f"{self.body} (ID: {self.id})"

    @classmethod
    def undated(cls, body: str, today: Optional[dt.date] = None) -> Todo:
        """Create a Todo for today."""
        return cls(body=body, date=today or dt.date.today())

    @classmethod
    def dated(
        cls,
        body: str,
        weekday: Weekday,
        today: Optional[dt.date] = None,
    ) -> Todo:
        """Create a Todo for the upcoming ``weekday``."""
        return cls(body=body, date=weekday_to_date(weekday, today or dt.date.today()))

    @property
    def weekday(self) -> Weekday:
        return Weekday.of(self.date)

    def for_date(self, date: dt.date, today: Optional[dt.date] = None) -> bool:
        """Return True if the Todo should be shown for ``date``.

        A Todo is for its own date and, while overdue, for today.

        Args:
            date: The date being looked at.
            today: Override for the current date.
        """
        today = today or dt.date.today()
        return date >= self.date and (date == today or self.date > today)

    def is_done(self) -> bool:
        return self.done is not None

    def set_body(self, body: str) -> None:
        self.body = body
        self._changed()

    def set_weekday(self, weekday: Weekday, today: Optional[dt.date] = None) -> None:
        self.date = weekday_to_date(weekday, today or dt.date.today())
        self._changed()

    def set_done(self, done: bool, today: Optional[dt.date] = None) -> None:
        """Mark the Todo done as of today, or undone."""
        self.done = (today or dt.date.today()) if done else None
        self._changed()

    def can_remove(self, today: Optional[dt.date] = None) -> bool:
        """Return True once at least one day has passed since completion."""
        if self.done is None:
            return False
        return (today or dt.date.today()) > self.done


class Task(SyncItem):
    """A recurring item for one or more weekdays.

    ``done_map`` remembers, per weekday, the latest date the Task was
    done on. Duplicate weekdays are allowed.
    """

    body: str
    weekdays: list[Weekday] = Field(min_length=1)
    done_map: dict[Weekday, dt.date] = Field(default_factory=dict)

    MUTABLE_FIELDS: ClassVar[tuple[str, ...]] = ("body", "weekdays", "done_map")

    def __str__(self) -> str:
        return f"{self.body} (ID: {self.id})"

    def set_body(self, body: str) -> None:
        self.body = body
        self._changed()

    def set_weekdays(self, weekdays: list[Weekday]) -> None:
        """Replace the weekdays.

        Raises:
            ValueError: If ``weekdays`` is empty.
        """
        if not weekdays:
            raise ValueError("A Task needs at least one weekday.")
        self.weekdays = list(weekdays)
        self._changed()

    def add_weekday(self, weekday: Weekday) -> None:
        self.weekdays.append(weekday)
        self._changed()

    def remove_weekday(self, weekday: Weekday) -> None:
        """Remove every occurrence of ``weekday``. Unlisted days are ignored.

        Raises:
            ValueError: If no weekday would be left. The Task is unchanged.
        """
        self.set_weekdays([wd for wd in self.weekdays if wd != weekday])

    def for_date(self, date: dt.date) -> bool:
        return Weekday.of(date) in self.weekdays

    def is_done(self, date: dt.date) -> bool:
        """Return True if the Task is done for ``date``.

        Always True when the Task is not for that date at all.
        """
        if not self.for_date(date):
            return True
        done_date = self.done_map.get(Weekday.of(date))
        return done_date is not None and done_date >= date

    def set_done(self, done: bool, date: dt.date) -> None:
        """Mark the occurrence on ``date`` done or undone."""
        if done:
            self.done_map[Weekday.of(date)] = date
        else:
            self.done_map.pop(Weekday.of(date), None)
        self._changed()
