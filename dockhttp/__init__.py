"""
dockhttp - HTTP/1.1 over the Docker daemon's Unix socket.

A hand-written HTTP/1.1 engine: one socket per exchange, Content-Length or
chunked request bodies, and response bodies handed back as live streams.
"""

from dockhttp.config import ClientConfig
from dockhttp.errors import (
    ContentTypeError,
    DockHttpError,
    ProtocolError,
    ProtocolVersionError,
    SocketConnectError,
)
from dockhttp.json_api import (
    build_query_string,
    perform_json_request,
    perform_json_stream_request,
    perform_request,
)

__all__ = [
    'ClientConfig',
    'ContentTypeError',
    'DockHttpError',
    'ProtocolError',
    'ProtocolVersionError',
    'SocketConnectError',
    'build_query_string',
    'perform_json_request',
    'perform_json_stream_request',
    'perform_request',
]

__version__ = '0.1.0'
