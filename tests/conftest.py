import os
import re
import socket
import threading
import time
from queue import Queue
from typing import Callable, List, Union

import pytest

from dockhttp.clients.base import BaseConnector
from dockhttp.clients.transport import Connection
from dockhttp.config import ClientConfig

Handler = Union[bytes, Callable[[socket.socket], None]]


def read_request(sock: socket.socket) -> bytes:
    """Read one complete HTTP request (head and body) from ``sock``."""
    data = b""
    while b"\r\n\r\n" not in data:
        chunk = sock.recv(4096)
        if not chunk:
            return data
        data += chunk

    head, _, body = data.partition(b"\r\n\r\n")
    lower = head.lower()
    if b"transfer-encoding: chunked" in lower:
        while not body.endswith(b"0\r\n\r\n"):
            chunk = sock.recv(4096)
            if not chunk:
                break
            body += chunk
    else:
        match = re.search(rb"content-length: (\d+)", lower)
        length = int(match.group(1)) if match else 0
        while len(body) < length:
            chunk = sock.recv(4096)
            if not chunk:
                break
            body += chunk
    return head + b"\r\n\r\n" + body


class UnixServer:
    """Serves one canned response (or handler) per accepted connection."""

    def __init__(self, handlers: List[Handler]):
        self.path = f"/tmp/dockhttp_test_{os.getpid()}_{time.time_ns()}.sock"
        if os.path.exists(self.path):
            os.remove(self.path)
        self.requests: Queue = Queue()
        self._handlers = list(handlers)
        self._listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._listener.bind(self.path)
        self._listener.listen()
        self._listener.settimeout(5.0)
        self._stopping = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> "UnixServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stopping.set()
        if self._thread.is_alive():
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                try:
                    sock.connect(self.path)
                except OSError:
                    pass
        self._thread.join(timeout=2.0)
        self._listener.close()
        if os.path.exists(self.path):
            os.remove(self.path)

    def config(self, **kwargs) -> ClientConfig:
        return ClientConfig(socket_path=self.path, **kwargs)

    def last_request(self) -> bytes:
        return self.requests.get(timeout=2.0)

    def _serve(self) -> None:
        for handler in self._handlers:
            try:
                client_sock, _ = self._listener.accept()
            except OSError:
                return
            if self._stopping.is_set():
                client_sock.close()
                return
            with client_sock:
                if callable(handler):
                    handler(client_sock)
                else:
                    self.requests.put(read_request(client_sock))
                    client_sock.sendall(handler)


@pytest.fixture
def unix_server():
    servers = []

    def _start(*handlers: Handler) -> UnixServer:
        server = UnixServer(list(handlers)).start()
        servers.append(server)
        return server

    yield _start
    for server in servers:
        server.stop()


class PairConnector(BaseConnector):
    """Connector backed by socketpair(); the peer end is preloaded with a response."""

    def __init__(self, response: bytes = b"", close_after: bool = True):
        super().__init__()
        self.response = response
        self.close_after = close_after
        self.opened: List[Connection] = []
        self.peers: List[socket.socket] = []

    def open(self, path: str) -> Connection:
        client, peer = socket.socketpair()
        peer.settimeout(2.0)
        if self.response:
            peer.sendall(self.response)
        if self.close_after:
            peer.shutdown(socket.SHUT_WR)
        self.peers.append(peer)
        connection = Connection(client, path=path)
        self.opened.append(connection)
        return connection

    def sent(self, index: int = 0) -> bytes:
        return read_request(self.peers[index])

    def close(self) -> None:
        for connection in self.opened:
            connection.close()
        for peer in self.peers:
            peer.close()


@pytest.fixture
def pair_connector():
    connectors = []

    def _make(response: bytes = b"", close_after: bool = True) -> PairConnector:
        connector = PairConnector(response, close_after)
        connectors.append(connector)
        return connector

    yield _make
    for connector in connectors:
        connector.close()


@pytest.fixture
def connection_pair():
    """Two Connections wired back to back."""
    left, right = socket.socketpair()
    a, b = Connection(left, path="left"), Connection(right, path="right")
    yield a, b
    a.close()
    b.close()
