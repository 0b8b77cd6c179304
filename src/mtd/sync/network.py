"""
Network sync -- the encrypted client/server exchange.

Every message is a 4-byte little-endian length followed by a ciphertext
from :mod:`mtd.sync.crypt`. Only someone holding the shared password can
produce a message the other side can decrypt, which doubles as
authentication.

    client                                  server
    ------                                  ------
    challenge (8 random bytes)        ->
                                      <-    session_id | challenge
    session_id | b"read"              ->
                                      <-    session_id | server list JSON
    (merge locally)
    session_id | merged server JSON   ->
                                      <-    session_id | b"ok"

The session id scopes every message to one exchange. The server handles
one connection at a time; a failing connection is logged and dropped
without stopping the server.
"""

from __future__ import annotations

import logging
import secrets
import socket
import struct
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..config import Config
from ..errors import (
    AuthError,
    DecryptingError,
    MtdError,
    ProtocolError,
    RoleMismatchError,
    ServerWriteFailedError,
)
from ..tdlist import TdList
from .crypt import decrypt, encrypt

logger = logging.getLogger("mtd.sync.network")

LENGTH_HEADER = struct.Struct("<I")
MAX_MESSAGE_SIZE = 64 * 1024 * 1024
CHALLENGE_SIZE = 8
SESSION_ID_SIZE = 8
READ_CMD = b"read"
OK_RESPONSE = b"ok"


# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = sock.recv(size - len(buf))
        if not chunk:
            raise ConnectionError(
                f"Connection closed after {len(buf)} of {size} bytes"
            )
        buf.extend(chunk)
    return bytes(buf)


def send_msg(sock: socket.socket, msg: bytes, passwd: bytes) -> None:
    """Encrypt and send one framed message.

    Args:
        sock: Connected socket.
        msg: Plaintext payload.
        passwd: Shared password.
    """
    ciphertext = encrypt(msg, passwd)
    sock.sendall(LENGTH_HEADER.pack(len(ciphertext)) + ciphertext)


def recv_msg(sock: socket.socket, passwd: bytes) -> bytes:
    """Receive and decrypt one framed message.

    Args:
        sock: Connected socket.
        passwd: Shared password.

    Returns:
        Plaintext payload.

    Raises:
        ProtocolError: If the announced length is over the limit.
        DecryptingError: If the message does not decrypt.
        ConnectionError: If the peer closed the connection mid-message.
    """
    (size,) = LENGTH_HEADER.unpack(_recv_exact(sock, LENGTH_HEADER.size))
    if size > MAX_MESSAGE_SIZE:
        raise ProtocolError(f"Message of {size} bytes exceeds the limit")
    return decrypt(_recv_exact(sock, size), passwd)


def _strip_session_id(msg: bytes, session_id: bytes) -> bytes:
    if msg[:SESSION_ID_SIZE] != session_id:
        raise AuthError("Authentication failed: session id mismatch.")
    return msg[SESSION_ID_SIZE:]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class SyncClient:
    """Syncs a client list with a remote MTD server.

    Args:
        config: Address, password, timeout and optional save location.
    """

    def __init__(self, config: Config):
        self.config = config

    def sync(self, tdlist: TdList) -> TdList:
        """Run one full sync exchange with the server.

        The given list is not modified. On success the merged client
        list is returned and, if a save location is configured, saved.
        On failure nothing is saved.

        Args:
            tdlist: The local client list.

        Returns:
            The merged client list.

        Raises:
            RoleMismatchError: If ``tdlist`` is a server list.
            AuthError: If the server failed to authenticate.
            ServerWriteFailedError: If the server did not confirm the write.
            OSError: On connection problems or timeouts.
        """
        if tdlist.server:
            raise RoleMismatchError("Only client lists can sync with a server.")

        logger.info("Syncing with %s:%d", *self.config.socket_addr)
        with socket.create_connection(
            self.config.socket_addr, timeout=self.config.timeout
        ) as sock:
            session_id = self._handshake(sock)

            self._send(sock, session_id + READ_CMD)
            server_json = _strip_session_id(self._recv(sock), session_id)
            server_list = self._parse_server_list(server_json)

            merged = tdlist.model_copy(deep=True)
            merged.sync(server_list)

            self._send(sock, session_id + server_list.to_json().encode("utf-8"))
            confirmation = _strip_session_id(self._recv(sock), session_id)
            if confirmation != OK_RESPONSE:
                raise ServerWriteFailedError("Writing data to server failed.")

        if self.config.save_location is not None:
            merged.save(self.config.save_location)
        logger.info(
            "Sync complete: %d Todo(s), %d Task(s)",
            len(merged.list_todos()),
            len(merged.list_tasks()),
        )
        return merged

    def _handshake(self, sock: socket.socket) -> bytes:
        challenge = secrets.token_bytes(CHALLENGE_SIZE)
        self._send(sock, challenge)

        response = self._recv(sock)
        if len(response) < SESSION_ID_SIZE + CHALLENGE_SIZE:
            raise AuthError("Authentication failed: short handshake response.")
        session_id = response[:SESSION_ID_SIZE]
        if response[SESSION_ID_SIZE:] != challenge:
            raise AuthError("Authentication failed: challenge mismatch.")
        return session_id

    def _parse_server_list(self, data: bytes) -> TdList:
        try:
            server_list = TdList.from_json(data)
        except ValidationError as exc:
            raise ProtocolError(f"Server sent an invalid list: {exc}") from exc
        if not server_list.server:
            raise ProtocolError("Server sent a client list.")
        return server_list

    def _send(self, sock: socket.socket, msg: bytes) -> None:
        send_msg(sock, msg, self.config.password)

    def _recv(self, sock: socket.socket) -> bytes:
        try:
            return recv_msg(sock, self.config.password)
        except DecryptingError as exc:
            raise AuthError("Authentication failed: could not decrypt response.") from exc


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


class SyncServer:
    """Serves a server list to MTD clients, one connection at a time.

    Args:
        config: Address, password, timeout and optional save location.
        tdlist: The server list. Replaced after every successful sync.
    """

    ACCEPT_POLL_SECONDS = 0.5

    def __init__(self, config: Config, tdlist: TdList):
        if not tdlist.server:
            raise RoleMismatchError("SyncServer needs a server list.")
        self.config = config
        self.tdlist = tdlist
        self.syncs_completed = 0
        self._sock: Optional[socket.socket] = None
        self._stop_event = threading.Event()

    @property
    def address(self) -> tuple[str, int]:
        """The bound address; binds first if needed."""
        if self._sock is None:
            self.bind()
        return self._sock.getsockname()[:2]

    def bind(self) -> None:
        """Open the listening socket on the configured address."""
        sock = socket.create_server(self.config.socket_addr)
        sock.settimeout(self.ACCEPT_POLL_SECONDS)
        self._sock = sock
        logger.info("Listening on %s:%d", *sock.getsockname()[:2])

    def serve_forever(self) -> None:
        """Accept and handle connections until :meth:`stop` is called."""
        if self._sock is None:
            self.bind()
        try:
            while not self._stop_event.is_set():
                try:
                    conn, peer = self._sock.accept()
                except socket.timeout:
                    continue
                with conn:
                    self._serve_connection(conn, peer)
        finally:
            self._sock.close()
            self._sock = None
            logger.info("Server stopped after %d sync(s)", self.syncs_completed)

    def stop(self) -> None:
        self._stop_event.set()

    def _serve_connection(self, conn: socket.socket, peer) -> None:
        try:
            self.handle_connection(conn)
        except (MtdError, OSError, ValueError) as exc:
            logger.warning("Sync with %s failed: %s", peer[0], exc)
        else:
            self.syncs_completed += 1
            logger.info("Synced with %s", peer[0])

    def handle_connection(self, conn: socket.socket) -> None:
        """Run the server side of one sync exchange.

        Raises:
            DecryptingError: If the client does not know the password.
            ProtocolError: If the client sends an unexpected message.
            AuthError: If a message carries the wrong session id.
            OSError: On connection problems or timeouts.
        """
        conn.settimeout(self.config.timeout)
        passwd = self.config.password

        challenge = recv_msg(conn, passwd)
        session_id = secrets.token_bytes(SESSION_ID_SIZE)
        send_msg(conn, session_id + challenge, passwd)

        if recv_msg(conn, passwd) != session_id + READ_CMD:
            raise ProtocolError("Expected a read request.")
        send_msg(conn, session_id + self.tdlist.to_json().encode("utf-8"), passwd)

        merged_json = _strip_session_id(recv_msg(conn, passwd), session_id)
        merged = TdList.from_json(merged_json)
        if not merged.server:
            raise ProtocolError("Client sent back a client list.")

        self.tdlist = merged
        if self.config.save_location is not None:
            self.tdlist.save(Path(self.config.save_location))

        send_msg(conn, session_id + OK_RESPONSE, passwd)
