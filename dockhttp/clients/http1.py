"""
HTTP/1.1 protocol engine.

This module frames requests onto a Connection and parses the daemon's
response, handing the body back as a live stream instead of a buffered value.
Every exchange uses a fresh connection: the request announces
``Connection: close`` and nothing is ever reused.
"""

import io
import os
import stat
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple, Union

from dockhttp.clients.base import BaseConnector
from dockhttp.clients.chunked import ChunkedStream
from dockhttp.clients.transport import Connection, UnixConnector
from dockhttp.config import ClientConfig
from dockhttp.errors import (
    ContentTypeError,
    HttpParseError,
    InvalidRequestError,
    ProtocolError,
    ProtocolVersionError,
)
from dockhttp.utils.logging import get_logger, trace_body, trace_line

HTTP_VERSION = "HTTP/1.1"
NO_CONTENT = 204

METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "DELETE"})

Content = Union[None, str, bytes, bytearray, BinaryIO]


@dataclass
class Response:
    """A successful (2xx) response.

    ``body`` is None for 204 responses and HEAD requests. Otherwise it is a
    buffered binary stream that keeps the connection open until it is read
    to the end or closed; the caller owns closing it.
    """

    status_code: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[io.BufferedReader] = None

    def read(self) -> bytes:
        """Read the whole body and close it."""
        if self.body is None:
            return b""
        with self.body:
            return self.body.read()

    def text_stream(self) -> Optional[io.TextIOWrapper]:
        """Expose the body as UTF-8 text. Closing the wrapper closes the body."""
        if self.body is None:
            return None
        return io.TextIOWrapper(self.body, encoding='utf-8')

    def close(self) -> None:
        if self.body is not None:
            self.body.close()

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _stream_length(content) -> Optional[int]:
    """Number of bytes left in ``content``, or None when it cannot be known."""
    try:
        fileno = content.fileno()
    except (AttributeError, OSError, ValueError):
        fileno = None

    if fileno is not None:
        info = os.fstat(fileno)
        # pipes, sockets and ttys report a meaningless size
        if not stat.S_ISREG(info.st_mode):
            return None
        try:
            position = content.tell()
        except (AttributeError, OSError):
            position = 0
        return max(info.st_size - position, 0)

    try:
        if not content.seekable():
            return None
        position = content.tell()
        end = content.seek(0, io.SEEK_END)
        content.seek(position)
    except (AttributeError, OSError):
        return None
    return max(end - position, 0)


def _is_binary_stream(content) -> bool:
    if isinstance(content, io.TextIOBase):
        return False
    return isinstance(content, io.IOBase) and content.readable()


class HTTP1Client:
    """HTTP/1.1 client for a daemon listening on a Unix domain socket.

    Features:
    - One socket per exchange, closed once the body is consumed
    - Content-Length or chunked request bodies, picked from the content type
    - Chunked response bodies decoded lazily while the caller reads
    - Optional wire tracing controlled by ``ClientConfig.debug``
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        connector: Optional[BaseConnector] = None,
    ) -> None:
        """Initialize a new HTTP/1.1 client.

        Args:
            config: Exchange settings, defaults to ``ClientConfig()``
            connector: Connection factory, defaults to a UnixConnector
                using ``config.timeout``
        """
        self.config = config or ClientConfig()
        self.connector = connector or UnixConnector(timeout=self.config.timeout)
        self.logger = get_logger()

    def _trace(self, outbound: bool, line: str) -> None:
        if self.config.debug:
            trace_line(self.logger, outbound, line)

    def _line_tracer(self) -> Optional[Callable[[bool, str], None]]:
        return self._trace if self.config.debug else None

    def request(
        self,
        method: str,
        url: str,
        content: Content = None,
        content_type: Optional[str] = None,
        headers: Optional[List[Tuple[str, str]]] = None,
    ) -> Response:
        """Run a full exchange on a new connection.

        Args:
            method: HTTP method (GET, POST, DELETE, ...)
            url: Request target, path plus query string
            content: Request body: None, text, bytes or a binary readable stream
            content_type: Value of the Content-Type header
            headers: Extra (name, value) header tuples

        Returns:
            The parsed Response; the caller must close its body

        Raises:
            SocketConnectError: If the daemon socket cannot be reached
            ProtocolError: If the daemon answers with a non-2xx status
            ProtocolVersionError: If the daemon does not speak HTTP/1.1
            ContentTypeError: If ``content`` has an unsupported type
        """
        method = self._check_method(method)
        self._check_content(content)

        connection = self.connector.open(self.config.socket_path)
        try:
            self.send_request(connection, method, url, content, content_type, headers)
        except BaseException:
            connection.close()
            raise
        # receive_response closes the connection itself on failure
        return self.receive_response(connection, method, url)

    # --- request framing ---

    def send_request(
        self,
        connection: Connection,
        method: str,
        path: str,
        content: Content = None,
        content_type: Optional[str] = None,
        headers: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        """Write a request onto ``connection``.

        Args:
            connection: An open connection that has not carried a request yet
            method: HTTP method
            path: Request target, path plus query string
            content: Request body: None, text, bytes or a binary readable stream
            content_type: Value of the Content-Type header
            headers: Extra (name, value) header tuples

        Raises:
            ContentTypeError: If ``content`` has an unsupported type; nothing
                is written in that case
        """
        method = self._check_method(method)
        self._check_target(path)
        self._check_content(content)

        head = [
            f"{method} {path} {HTTP_VERSION}",
            f"Host: {self.config.host}",
            "Connection: close",
        ]
        for name, value in headers or []:
            head.append(self._header_line(name, value))
        if content_type is not None:
            head.append(self._header_line("Content-Type", content_type))

        payload: Optional[bytes] = None
        stream = None
        chunked = False
        length: Optional[int] = None

        if isinstance(content, str):
            payload = content.encode(connection.encoding)
            length = len(payload)
        elif isinstance(content, (bytes, bytearray)):
            payload = bytes(content)
            length = len(payload)
        elif content is not None:
            stream = content
            length = _stream_length(stream)
            chunked = length is None

        if chunked:
            head.append("Transfer-Encoding: chunked")
        elif length is not None:
            head.append(f"Content-Length: {length}")

        for line in head:
            self._trace(True, line)
            connection.write_line(line)
        self._trace(True, "")
        connection.write_line("")
        connection.flush()

        if self.config.debug and content is not None:
            trace_body(self.logger, True, length, chunked)

        if payload is not None:
            connection.write(payload)
            connection.flush()
        elif stream is not None:
            self._copy_stream(connection, stream, chunked, length)

    def _copy_stream(
        self,
        connection: Connection,
        source: BinaryIO,
        chunked: bool,
        length: Optional[int],
    ) -> None:
        writer = ChunkedStream(connection, chunked_output=chunked, trace=self._line_tracer())
        remaining = length
        try:
            while remaining is None or remaining > 0:
                size = self.config.read_size
                if remaining is not None:
                    size = min(size, remaining)
                data = source.read(size)
                if not data:
                    break
                writer.write(data)
                if remaining is not None:
                    remaining -= len(data)
            if remaining:
                raise InvalidRequestError(
                    f"Request stream ended {remaining} bytes short of its announced length"
                )
            writer.finish()
        finally:
            writer.chunked_output = False
            writer.close()

    # --- response parsing ---

    def receive_response(
        self,
        connection: Connection,
        method: str,
        url: str,
    ) -> Response:
        """Read the status line and headers from ``connection``.

        The connection is closed before any error propagates. On success it
        stays open for the body, unless there is no body to read.

        Args:
            connection: The connection the request was written to
            method: Method of the request, reported in ProtocolError
            url: Target of the request, reported in ProtocolError

        Returns:
            Response with a lazily read body

        Raises:
            HttpParseError: If the status line or headers are malformed
            ProtocolVersionError: If the version is not HTTP/1.1
            ProtocolError: If the status is outside 200-299
        """
        try:
            status_code, reason = self._read_status_line(connection)
            if not 200 <= status_code <= 299:
                raise ProtocolError(method, url, status_code, reason)
            headers = self._read_headers(connection)
        except BaseException:
            connection.close()
            raise

        if status_code == NO_CONTENT or method.upper() == "HEAD":
            connection.close()
            return Response(status_code, reason, headers, None)

        try:
            chunked = self._is_chunked(headers)
            length = None if chunked else self._content_length(headers)
        except BaseException:
            connection.close()
            raise

        if self.config.debug:
            trace_body(self.logger, False, length, chunked)

        raw = ChunkedStream(
            connection,
            chunked_input=chunked,
            length=length,
            owns_connection=True,
            trace=self._line_tracer(),
        )
        return Response(status_code, reason, headers, io.BufferedReader(raw))

    def _read_status_line(self, connection: Connection) -> Tuple[int, str]:
        line = connection.read_line()
        if line is None:
            raise HttpParseError("Connection closed before a status line was received")
        self._trace(False, line)

        parts = line.split(' ', 2)
        if len(parts) < 2:
            raise HttpParseError(f"Invalid HTTP status line: {line!r}")
        version = parts[0]
        reason = parts[2] if len(parts) == 3 else ""

        if version != HTTP_VERSION:
            raise ProtocolVersionError(version)

        try:
            status_code = int(parts[1])
        except ValueError:
            raise HttpParseError(f"Invalid status code in status line: {line!r}")

        return status_code, reason

    def _read_headers(self, connection: Connection) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        while True:
            line = connection.read_line()
            if line is None:
                raise HttpParseError("Connection closed inside the response headers")
            self._trace(False, line)
            if line == "":
                return headers

            name, sep, value = line.partition(':')
            if not sep or not name.strip():
                # Skip invalid headers
                self.logger.debug("Ignoring malformed header line %r", line)
                continue
            headers[name.strip().lower()] = value.strip()

    @staticmethod
    def _is_chunked(headers: Dict[str, str]) -> bool:
        coding = headers.get('transfer-encoding', '').split(';', 1)[0]
        return coding.strip().lower() == 'chunked'

    @staticmethod
    def _content_length(headers: Dict[str, str]) -> Optional[int]:
        value = headers.get('content-length')
        if value is None:
            return None
        try:
            length = int(value)
        except ValueError:
            raise HttpParseError(f"Invalid Content-Length value: {value!r}")
        if length < 0:
            raise HttpParseError(f"Invalid Content-Length value: {value!r}")
        return length

    # --- validation ---

    @staticmethod
    def _check_method(method: str) -> str:
        upper = str(method).upper()
        if upper not in METHODS:
            raise InvalidRequestError(f"Unsupported HTTP method: {method!r}")
        return upper

    @staticmethod
    def _check_target(path: str) -> None:
        if not path.startswith('/'):
            raise InvalidRequestError(f"Request target must start with '/': {path!r}")
        if any(ch in path for ch in ' \r\n\t'):
            raise InvalidRequestError(f"Request target contains whitespace: {path!r}")

    @staticmethod
    def _check_content(content) -> None:
        if content is None or isinstance(content, (str, bytes, bytearray)):
            return
        if not _is_binary_stream(content):
            raise ContentTypeError(
                f"Unsupported request content of type {type(content).__name__}; "
                "expected None, str, bytes or a binary readable stream"
            )

    @staticmethod
    def _header_line(name: str, value: str) -> str:
        if any(ch in f"{name}{value}" for ch in '\r\n') or ':' in name:
            raise InvalidRequestError(f"Invalid header: {name!r}")
        return f"{name}: {value}"
