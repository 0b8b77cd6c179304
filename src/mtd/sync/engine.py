"""
Sync Engine -- merges two replicas of one item collection.

The merge always runs from the client's point of view, whichever list
it was called on. Each client item's change marker decides what
happens to it and to its counterpart on the server:

    New        ->  copied to the server
    Removed    ->  counterpart marked removed on the server
    Unchanged  ->  removed if gone from the server, else takes the
                   server's values
    Changed    ->  copied to the server if missing there, else the
                   client's values overwrite the server's

Server items the client has never seen are then copied to the client,
and both sides drop removed items, renumber ids and reset every marker
to Unchanged.
"""

from __future__ import annotations

import logging
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from ..errors import RoleMismatchError
from ..models import ItemState, SyncItem

logger = logging.getLogger("mtd.sync.engine")

T = TypeVar("T", bound=SyncItem)


def check_roles(first_is_server: bool, second_is_server: bool) -> None:
    """Require exactly one server among two sync participants.

    Raises:
        RoleMismatchError: If both or neither are servers.
    """
    if first_is_server and second_is_server:
        raise RoleMismatchError("Both self and other are servers.")
    if not first_is_server and not second_is_server:
        raise RoleMismatchError("Neither self nor other is a server.")


class SyncList(BaseModel, Generic[T]):
    """An ordered, syncable collection of one item kind.

    An item's ``id`` is its index in ``items``. On a client, removed
    items stay in place as tombstones until the next sync so ids of the
    remaining items do not shift. Servers drop removed items at once.
    """

    items: list[T] = Field(default_factory=list)
    server: bool = False

    def add(self, item: T) -> T:
        """Append an item as New, giving it the next id."""
        item.id = len(self.items)
        item.state = ItemState.NEW
        self.items.append(item)
        return item

    def get(self, item_id: int) -> T:
        """Get a live item by id.

        Raises:
            KeyError: If the id is out of range or the item is removed.
        """
        if not 0 <= item_id < len(self.items):
            raise KeyError(item_id)
        item = self.items[item_id]
        if item.state == ItemState.REMOVED:
            raise KeyError(item_id)
        return item

    def get_by_sync_id(self, sync_id: int) -> Optional[T]:
        return next((item for item in self.items if item.sync_id == sync_id), None)

    def live_items(self) -> list[T]:
        """All items that are not marked removed."""
        return [item for item in self.items if item.state != ItemState.REMOVED]

    def mark_removed(self, item_id: int) -> None:
        """Mark a live item removed.

        Raises:
            KeyError: If the id is out of range or already removed.
        """
        self.get(item_id).state = ItemState.REMOVED
        if self.server:
            self.drop_removed()

    def drop_removed(self) -> None:
        """Physically delete removed items and renumber the rest."""
        self.items = [item for item in self.items if item.state != ItemState.REMOVED]
        self._map_indices_to_ids()

    def _map_indices_to_ids(self) -> None:
        for new_id, item in enumerate(self.items):
            item.id = new_id

    def sync_self(self) -> None:
        """Commit local changes without a peer.

        Drops removed items, renumbers ids and resets every marker to
        Unchanged. Running it twice is the same as running it once.
        """
        self.drop_removed()
        for item in self.items:
            item.state = ItemState.UNCHANGED

    def sync(self, other: SyncList[T]) -> None:
        """Merge this list with ``other``; both end up identical.

        Exactly one of the two lists must be a server. When both sides
        edited the same item, the side reporting Changed wins; if the
        client reports Changed, the client's edit wins.

        Raises:
            RoleMismatchError: If both or neither list is a server.
        """
        check_roles(self.server, other.server)

        if self.server:
            server_list, client_list = self, other
        else:
            server_list, client_list = other, self

        # First match wins for duplicated sync ids.
        server_index: dict[int, T] = {}
        for s_item in server_list.items:
            server_index.setdefault(s_item.sync_id, s_item)

        for item in client_list.items:
            s_item = server_index.get(item.sync_id)

            if item.state == ItemState.NEW:
                copied = server_list.add(item.model_copy(deep=True))
                server_index.setdefault(copied.sync_id, copied)
            elif item.state == ItemState.REMOVED:
                if s_item is not None:
                    s_item.state = ItemState.REMOVED
            elif item.state == ItemState.UNCHANGED:
                if s_item is None:
                    # Removed on the server since the last sync.
                    item.state = ItemState.REMOVED
                elif s_item != item:
                    item.update_from(s_item)
            elif item.state == ItemState.CHANGED:
                if s_item is None:
                    copied = server_list.add(item.model_copy(deep=True))
                    server_index.setdefault(copied.sync_id, copied)
                else:
                    s_item.update_from(item)

        client_ids = {item.sync_id for item in client_list.items}
        pulled = 0
        for s_item in list(server_list.items):
            if s_item.state != ItemState.REMOVED and s_item.sync_id not in client_ids:
                client_list.add(s_item.model_copy(deep=True))
                pulled += 1

        client_list.sync_self()
        server_list.sync_self()

        logger.debug(
            "Merged lists: %d item(s) on client (%d pulled), %d on server",
            len(client_list.items),
            pulled,
            len(server_list.items),
        )
