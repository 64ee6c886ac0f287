"""
Base connector interface.

The protocol engine never creates sockets itself. It asks a connector for a
Connection, so a platform with a different Unix-domain socket facility only
needs its own BaseConnector subclass.
"""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from dockhttp.clients.transport import Connection


class BaseConnector(ABC):
    """Abstract base class for daemon connectors.

    A connector opens one Connection per request/response exchange and keeps
    no state between calls.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize a new connector.

        Args:
            timeout: Socket timeout in seconds applied to every opened
                connection, None to block indefinitely
        """
        self.timeout = timeout

    @abstractmethod
    def open(self, path: str) -> "Connection":
        """Connect to the socket at ``path``.

        Args:
            path: Filesystem path of the daemon socket

        Returns:
            A freshly opened Connection

        Raises:
            SocketConnectError: If the socket is missing, refused or not accessible
        """
        pass
