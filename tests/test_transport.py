import socket
from unittest.mock import MagicMock, patch

import pytest

from dockhttp.clients.base import BaseConnector
from dockhttp.clients.transport import MAX_LINE_LENGTH, Connection, UnixConnector, open_connection
from dockhttp.errors import (
    HttpParseError,
    SocketConnectError,
    SocketReadError,
    TransportError,
)


def test_connector_is_a_base_connector():
    assert isinstance(UnixConnector(), BaseConnector)


def test_base_connector_cannot_be_instantiated():
    with pytest.raises(TypeError):
        BaseConnector()


def test_open_connects_to_listening_socket(unix_server):
    server = unix_server(lambda sock: None)

    connection = UnixConnector().open(server.path)

    assert not connection.closed
    assert connection.path == server.path
    connection.close()


def test_open_connection_defaults_to_unix_connector(unix_server):
    server = unix_server(lambda sock: None)

    with open_connection(server.path) as connection:
        assert not connection.closed
    assert connection.closed


def test_open_fails_on_missing_path():
    path = "/tmp/this-is-a-non-existent-dockhttp-socket.sock"

    with pytest.raises(SocketConnectError) as excinfo:
        UnixConnector().open(path)

    assert isinstance(excinfo.value, ConnectionError)
    assert excinfo.value.path == path
    assert path in str(excinfo.value)


def test_open_applies_timeout(unix_server):
    server = unix_server(lambda sock: None)

    connection = UnixConnector(timeout=1.5).open(server.path)
    try:
        assert connection._sock.gettimeout() == 1.5
    finally:
        connection.close()


def test_lines_are_crlf_terminated_utf8(connection_pair):
    left, right = connection_pair

    left.write_line("Content-Type: text/plain; charset=ütf")
    left.flush()

    assert right.binary.read1(100) == "Content-Type: text/plain; charset=ütf\r\n".encode('utf-8')


def test_read_line_strips_terminator(connection_pair):
    left, right = connection_pair
    left.write(b"HTTP/1.1 200 OK\r\nnext\n")
    left.flush()

    assert right.read_line() == "HTTP/1.1 200 OK"
    assert right.read_line() == "next"


def test_read_line_returns_none_at_eof():
    left, right = socket.socketpair()
    reader = Connection(right)
    left.close()
    try:
        assert reader.read_line() is None
    finally:
        reader.close()


def test_overlong_line_raises(connection_pair):
    left, right = connection_pair
    left.write(b"x" * (MAX_LINE_LENGTH + 10) + b"\r\n")
    left.flush()

    with pytest.raises(HttpParseError, match="Line exceeds"):
        right.read_line()


def test_close_is_idempotent(connection_pair):
    left, _ = connection_pair

    left.close()
    left.close()

    assert left.closed
    assert "closed" in repr(left)


def test_write_fails_after_close(connection_pair):
    left, _ = connection_pair
    left.close()

    with pytest.raises(TransportError, match="Connection is closed"):
        left.write(b"data")


def test_read_error_is_wrapped(connection_pair):
    _, right = connection_pair

    broken = MagicMock()
    broken.readline.side_effect = OSError("Mock OS-level read error")

    with patch.object(right, "_file", broken):
        with pytest.raises(SocketReadError, match="Mock OS-level read error"):
            right.readline()
