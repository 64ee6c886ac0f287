"""
Exception hierarchy for dockhttp.

Transport errors come from the socket layer, client errors from the HTTP/1.1
protocol engine. Nothing here is retried; every error propagates to the caller.
"""

from typing import Optional


class DockHttpError(Exception):
    """Base exception for the dockhttp library."""
    pass

# --- Transport Errors ---

class TransportError(DockHttpError):
    """A generic error occurred in the transport layer."""
    pass

class SocketConnectError(TransportError, ConnectionError):
    """The daemon socket is missing, refused the connection, or is not accessible."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path

class SocketWriteError(TransportError): pass
class SocketReadError(TransportError): pass

# --- HTTP Client Errors ---

class HttpClientError(DockHttpError):
    """A generic error occurred in the HTTP client logic."""
    pass

class HttpParseError(HttpClientError): pass
class IncompleteBodyError(HttpParseError): pass
class InvalidRequestError(HttpClientError): pass

class ProtocolVersionError(HttpClientError):
    """The daemon answered with something other than HTTP/1.1."""

    def __init__(self, version: str) -> None:
        super().__init__(f"Unsupported protocol version: {version!r}")
        self.version = version

class ContentTypeError(HttpClientError, TypeError):
    """Request content is neither absent, text, bytes, nor a binary readable stream."""
    pass


class ProtocolError(HttpClientError):
    """The daemon answered with a non-2xx status.

    The attributes are read-only so handlers can branch on them safely.
    """

    def __init__(self, method: str, url: str, status_code: int, reason: str) -> None:
        super().__init__(f"{method} {url} failed: {status_code} {reason}")
        self._method = method
        self._url = url
        self._status_code = status_code
        self._reason = reason

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def reason(self) -> str:
        return self._reason

    def __reduce__(self):
        return (type(self), (self._method, self._url, self._status_code, self._reason))
