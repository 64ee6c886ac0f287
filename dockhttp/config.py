"""
Client configuration.

A ClientConfig is passed explicitly through every exchange, so two requests
running side by side can use different sockets or debug settings.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_SOCKET_PATH = "/var/run/docker.sock"
DEFAULT_HOST = "docker"

_TRUTHY = ("1", "true", "yes", "on")


def socket_path_from_url(url: str) -> str:
    """Turn a ``DOCKER_HOST`` style value into a filesystem socket path.

    Args:
        url: Either ``unix:///path/to.sock`` or a bare path

    Returns:
        The socket path

    Raises:
        ValueError: If the URL names a non-unix scheme (tcp://, ssh://, ...)
    """
    if url.startswith("unix://"):
        return url[len("unix://"):]
    if "://" in url:
        raise ValueError(f"Only unix:// daemon addresses are supported, got {url!r}")
    return url


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a single request/response exchange.

    Attributes:
        socket_path: Filesystem path of the daemon's Unix socket
        host: Value sent in the Host header
        debug: Echo every wire line through the dockhttp logger
        timeout: Socket timeout in seconds, None blocks indefinitely
        read_size: Buffer size used when copying request bodies
    """

    socket_path: str = DEFAULT_SOCKET_PATH
    host: str = DEFAULT_HOST
    debug: bool = False
    timeout: Optional[float] = None
    read_size: int = 65536

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ClientConfig":
        """Build a config from ``DOCKER_HOST`` and ``DOCKHTTP_DEBUG``.

        Keyword overrides whose value is None are ignored, which lets the CLI
        pass its options straight through.
        """
        env = os.environ if environ is None else environ
        values = {}

        docker_host = env.get("DOCKER_HOST", "").strip()
        if docker_host:
            values["socket_path"] = socket_path_from_url(docker_host)

        if env.get("DOCKHTTP_DEBUG", "").strip().lower() in _TRUTHY:
            values["debug"] = True

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def with_debug(self, debug: bool = True) -> "ClientConfig":
        return replace(self, debug=debug)
