"""
Error types raised by MTD.

Every recoverable condition derives from ``MtdError`` so callers can
report it and carry on. Misusing client/server roles is a programming
error and deliberately sits outside that hierarchy.
"""

from __future__ import annotations


class MtdError(Exception):
    """Base class for all recoverable MTD errors."""


class NoItemWithGivenIdError(MtdError, LookupError):
    """Raised when no live item with the given id exists."""

    kind = "item"

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f'No {self.kind} with the given id: "{item_id}" found.')


class NoTodoWithGivenIdError(NoItemWithGivenIdError):
    """Raised when no live Todo with the given id exists."""

    kind = "Todo"


class NoTaskWithGivenIdError(NoItemWithGivenIdError):
    """Raised when no live Task with the given id exists."""

    kind = "Task"


class EncryptingError(MtdError):
    """Raised when encrypting data failed."""


class DecryptingError(MtdError):
    """Raised when decrypting data failed.

    The two common reasons are an incorrect password or a tampered
    ciphertext.
    """


class AuthError(MtdError):
    """Raised when authenticating the client or server failed."""


class ProtocolError(MtdError):
    """Raised when a peer sends a message the protocol does not allow."""


class ServerWriteFailedError(MtdError):
    """Raised when the server did not confirm writing the merged list."""


class RoleMismatchError(RuntimeError):
    """Raised when two lists of the same role are synced together.

    Syncing needs exactly one server and one client. Anything else is a
    bug in the caller, never a data problem.
    """
