"""
HTTP/1.1 client over Unix domain sockets.

This package contains the connector seam, the socket transport, the chunked
transfer codec and the request/response protocol engine.
"""

from dockhttp.clients.base import BaseConnector
from dockhttp.clients.chunked import ChunkedStream
from dockhttp.clients.http1 import HTTP1Client, Response
from dockhttp.clients.transport import Connection, UnixConnector, open_connection

__all__ = [
    'BaseConnector',
    'ChunkedStream',
    'Connection',
    'HTTP1Client',
    'Response',
    'UnixConnector',
    'open_connection',
]
