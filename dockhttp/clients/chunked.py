"""
Chunked transfer coding.

ChunkedStream sits between the protocol engine and a Connection. Input and
output framing are switched independently, so one connection can write a plain
request and read a chunked response, or any other combination.
"""

import io
import string
from typing import Callable, Optional

from dockhttp.clients.transport import CRLF, Connection
from dockhttp.errors import HttpParseError, IncompleteBodyError

_HEX_DIGITS = string.hexdigits.encode('ascii')


class ChunkedStream(io.RawIOBase):
    """Raw stream over a Connection with optional chunk encoding/decoding.

    Args:
        connection: The connection carrying the exchange
        chunked_input: Decode chunked transfer coding on read
        chunked_output: Encode writes as chunks
        length: Byte limit for plain (non-chunked) reads, None reads until
            the peer closes
        owns_connection: Close the connection when this stream is closed
        trace: Called as ``trace(outbound, line)`` for every framing line
            read or written (chunk sizes, trailers), None disables tracing
    """

    def __init__(
        self,
        connection: Connection,
        chunked_input: bool = False,
        chunked_output: bool = False,
        length: Optional[int] = None,
        owns_connection: bool = False,
        trace: Optional[Callable[[bool, str], None]] = None,
    ) -> None:
        super().__init__()
        self.connection = connection
        self.chunked_input = chunked_input
        self.chunked_output = chunked_output
        self.owns_connection = owns_connection
        self.trace = trace
        self._remaining = length
        self._chunk_left = 0
        self._eof = False

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return True

    @property
    def at_eof(self) -> bool:
        return self._eof

    def _echo(self, outbound: bool, line: bytes) -> None:
        if self.trace is not None:
            self.trace(outbound, line.rstrip(b"\r\n").decode('utf-8', 'replace'))

    # --- input ---

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream.")
        if self._eof or len(buffer) == 0:
            return 0
        if self.chunked_input:
            return self._readinto_chunked(memoryview(buffer).cast('B'))
        return self._readinto_plain(memoryview(buffer).cast('B'))

    def _readinto_plain(self, view: memoryview) -> int:
        size = len(view)
        if self._remaining is not None:
            if self._remaining == 0:
                self._eof = True
                return 0
            size = min(size, self._remaining)

        count = self.connection.readinto(view[:size])
        if count == 0:
            if self._remaining:
                raise IncompleteBodyError(
                    f"Connection closed with {self._remaining} bytes of content outstanding"
                )
            self._eof = True
            return 0

        if self._remaining is not None:
            self._remaining -= count
        return count

    def _readinto_chunked(self, view: memoryview) -> int:
        if self._chunk_left == 0:
            size = self._read_chunk_size()
            if size == 0:
                self._read_trailers()
                self._eof = True
                return 0
            self._chunk_left = size

        count = self.connection.readinto(view[:min(len(view), self._chunk_left)])
        if count == 0:
            raise IncompleteBodyError("Connection closed inside a chunk")

        self._chunk_left -= count
        if self._chunk_left == 0:
            self._read_chunk_terminator()
        return count

    def _read_chunk_size(self) -> int:
        line = self.connection.readline()
        if not line:
            raise IncompleteBodyError("Connection closed before the terminating chunk")

        # chunk extensions are ignored
        size_text = line.split(b';', 1)[0].strip()
        if not size_text or size_text.strip(_HEX_DIGITS):
            raise HttpParseError(f"Invalid chunk size line: {line!r}")
        size = int(size_text, 16)
        self._echo(False, line)
        return size

    def _read_chunk_terminator(self) -> None:
        terminator = self.connection.read_exact(len(CRLF))
        if terminator != CRLF:
            if len(terminator) < len(CRLF):
                raise IncompleteBodyError("Connection closed after chunk data")
            raise HttpParseError(f"Expected CRLF after chunk data, got {terminator!r}")

    def _read_trailers(self) -> None:
        while True:
            line = self.connection.readline()
            if not line:
                # some servers close right after the zero chunk
                return
            self._echo(False, line)
            if line in (CRLF, b"\n"):
                return

    # --- output ---

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream.")
        view = memoryview(data).cast('B')
        if not self.chunked_output:
            self.connection.write(view)
            return len(view)
        if len(view) == 0:
            # an empty chunk would terminate the body
            return 0
        size_line = f"{len(view):x}".encode('ascii')
        self._echo(True, size_line)
        self.connection.write(size_line + CRLF)
        self.connection.write(view)
        self.connection.write(CRLF)
        return len(view)

    def finish(self) -> None:
        """Terminate a chunked body and flush."""
        if self.chunked_output:
            self._echo(True, b"0")
            self._echo(True, b"")
            self.connection.write(b"0" + CRLF + CRLF)
        self.connection.flush()

    def flush(self) -> None:
        if not self.closed and not self.connection.closed:
            self.connection.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self.owns_connection:
                self.connection.close()
        finally:
            super().close()
