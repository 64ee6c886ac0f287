"""
Unix domain socket transport.

A Connection wraps one connected socket for exactly one exchange. Header lines
go through the text helpers (UTF-8, CRLF terminated); body bytes go through
the binary helpers or the raw ``binary`` view.
"""

import io
import socket
from typing import Optional

from dockhttp.clients.base import BaseConnector
from dockhttp.errors import (
    HttpParseError,
    SocketConnectError,
    SocketReadError,
    SocketWriteError,
    TransportError,
)

CRLF = b"\r\n"
MAX_LINE_LENGTH = 65536


class Connection:
    """A duplex channel to the daemon, used for a single request/response."""

    encoding = 'utf-8'

    def __init__(self, sock: socket.socket, path: Optional[str] = None) -> None:
        self._sock: Optional[socket.socket] = sock
        self._file: Optional[io.BufferedRWPair] = sock.makefile('rwb')
        self.path = path

    @property
    def closed(self) -> bool:
        return self._sock is None

    @property
    def binary(self) -> io.BufferedRWPair:
        """The buffered byte view of the socket."""
        if self._file is None:
            raise TransportError("Connection is closed.")
        return self._file

    def write_line(self, line: str) -> None:
        self.write(line.encode(self.encoding) + CRLF)

    def read_line(self) -> Optional[str]:
        """Read one line and strip its terminator.

        Returns:
            The decoded line, or None if the peer closed the connection
        """
        raw = self.readline()
        if not raw:
            return None
        return raw.rstrip(b"\r\n").decode(self.encoding, errors='replace')

    def write(self, data: bytes) -> None:
        try:
            self.binary.write(data)
        except OSError as e:
            raise SocketWriteError(f"Socket write failed: {e}") from e

    def flush(self) -> None:
        try:
            self.binary.flush()
        except OSError as e:
            raise SocketWriteError(f"Socket write failed: {e}") from e

    def readline(self) -> bytes:
        try:
            raw = self.binary.readline(MAX_LINE_LENGTH + 1)
        except OSError as e:
            raise SocketReadError(f"Socket read failed: {e}") from e
        if len(raw) > MAX_LINE_LENGTH:
            raise HttpParseError(f"Line exceeds {MAX_LINE_LENGTH} bytes")
        return raw

    def readinto(self, buffer) -> int:
        """Read at most ``len(buffer)`` bytes with a single socket read."""
        try:
            return self.binary.readinto1(buffer)
        except OSError as e:
            raise SocketReadError(f"Socket read failed: {e}") from e

    def read_exact(self, size: int) -> bytes:
        try:
            data = self.binary.read(size)
        except OSError as e:
            raise SocketReadError(f"Socket read failed: {e}") from e
        return data or b""

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            if self._file is not None:
                try:
                    self._file.close()
                except OSError:
                    # the peer may already be gone; unflushed bytes are moot
                    pass
            self._sock.close()
        finally:
            self._file = None
            self._sock = None

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f"<Connection {self.path!r} {state}>"


class UnixConnector(BaseConnector):
    """Opens connections over AF_UNIX stream sockets."""

    def open(self, path: str) -> Connection:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.timeout)
            sock.connect(path)
        except OSError as e:
            sock.close()
            raise SocketConnectError(f"Socket connection failed for path '{path}': {e}", path=path) from e
        return Connection(sock, path=path)


def open_connection(path: str, connector: Optional[BaseConnector] = None) -> Connection:
    """Open a Connection with ``connector``, defaulting to UnixConnector."""
    return (connector or UnixConnector()).open(path)
