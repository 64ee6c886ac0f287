"""
Docker Engine API endpoints.

A thin layer over the caller-facing helpers in dockhttp.json_api: it shapes
paths and query strings and nothing more. JSON results use symbolized keys,
e.g. ``container["ID"]`` or ``image["REPO-TAGS"]``.
"""

import json
from typing import Any, BinaryIO, Dict, Iterator, List, Optional
from urllib.parse import quote

from dockhttp.clients.http1 import HTTP1Client, Response
from dockhttp.config import ClientConfig
from dockhttp.json_api import (
    build_query_string,
    perform_json_request,
    perform_json_stream_request,
    perform_request,
)
from dockhttp.utils.logging import get_logger

JSON_CONTENT_TYPE = 'application/json'
TAR_CONTENT_TYPE = 'application/x-tar'


def _segment(value: str) -> str:
    """Percent-encode one path segment, keeping image-reference punctuation."""
    return quote(value, safe='/:@')


class DockerAPI:
    """Docker daemon endpoints used by the command line."""

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        """
        Args:
            config: Exchange settings shared by every call, defaults to
                ``ClientConfig.from_env()``
        """
        self.config = config or ClientConfig.from_env()
        self.logger = get_logger()

    # --- system ---

    def ping(self) -> str:
        """Ping the daemon; returns ``"OK"`` when it is healthy."""
        body, _ = perform_request('/_ping', config=self.config)
        if body is None:
            return ""
        with body:
            return body.read().decode('utf-8').strip()

    def version(self) -> Dict[str, Any]:
        return perform_json_request('/version', config=self.config)

    def info(self) -> Dict[str, Any]:
        return perform_json_request('/info', config=self.config)

    # --- containers ---

    def list_containers(
        self,
        all: bool = False,
        limit: Optional[int] = None,
        filters: Optional[Dict[str, List[str]]] = None,
    ) -> List[Dict[str, Any]]:
        """
        List containers

        Args:
            all: Include stopped containers
            limit: Return at most this many, most recent first
            filters: Daemon-side filters, e.g. ``{"status": ["running"]}``

        Returns:
            Container summaries
        """
        query = build_query_string('all', all, 'limit', limit, 'filters', filters)
        return perform_json_request(f'/containers/json{query}', config=self.config) or []

    def inspect_container(self, container_id: str) -> Dict[str, Any]:
        return perform_json_request(f'/containers/{_segment(container_id)}/json', config=self.config)

    def remove_container(self, container_id: str, force: bool = False, volumes: bool = False) -> None:
        query = build_query_string('force', force or None, 'v', volumes or None)
        self.logger.debug(f"Removing container {container_id}")
        perform_json_request(
            f'/containers/{_segment(container_id)}{query}',
            method='DELETE',
            config=self.config,
        )

    def container_logs(
        self,
        container_id: str,
        stdout: bool = True,
        stderr: bool = True,
        tail: Optional[int] = None,
    ) -> Response:
        """Open the raw log stream of a container.

        The stream is returned undecoded: for containers without a TTY it is
        the daemon's multiplexed stdout/stderr framing. Close the response
        when done.
        """
        query = build_query_string('stdout', stdout, 'stderr', stderr, 'tail', tail)
        return HTTP1Client(self.config).request(
            'GET', f'/containers/{_segment(container_id)}/logs{query}'
        )

    # --- images ---

    def list_images(
        self,
        all: bool = False,
        filters: Optional[Dict[str, List[str]]] = None,
    ) -> List[Dict[str, Any]]:
        query = build_query_string('all', all, 'filters', filters)
        return perform_json_request(f'/images/json{query}', config=self.config) or []

    def inspect_image(self, name: str) -> Dict[str, Any]:
        return perform_json_request(f'/images/{_segment(name)}/json', config=self.config)

    def pull_image(self, repository: str, tag: str = 'latest') -> Iterator[Dict[str, Any]]:
        """Pull an image, yielding the daemon's progress messages.

        The pull only completes once the iterator is exhausted.
        """
        query = build_query_string('fromImage', repository, 'tag', tag)
        return perform_json_stream_request(
            f'/images/create{query}', method='POST', config=self.config
        )

    def load_image(self, stream: BinaryIO) -> Iterator[Dict[str, Any]]:
        """Upload a ``docker save`` tarball, yielding progress messages.

        Pipes and other streams of unknown length are sent chunked.
        """
        return perform_json_stream_request(
            '/images/load',
            method='POST',
            content=stream,
            content_type=TAR_CONTENT_TYPE,
            config=self.config,
        )

    # --- networks ---

    def list_networks(self, filters: Optional[Dict[str, List[str]]] = None) -> List[Dict[str, Any]]:
        query = build_query_string('filters', filters)
        return perform_json_request(f'/networks{query}', config=self.config) or []

    def create_network(self, name: str, driver: str = 'bridge', internal: bool = False) -> Dict[str, Any]:
        """
        Create network

        Returns:
            The daemon's answer, ``{"ID": ..., "WARNING": ...}``
        """
        payload = json.dumps({'Name': name, 'Driver': driver, 'Internal': internal})
        return perform_json_request(
            '/networks/create',
            method='POST',
            content=payload,
            content_type=JSON_CONTENT_TYPE,
            config=self.config,
        )

    def remove_network(self, network_id: str) -> None:
        perform_json_request(f'/networks/{_segment(network_id)}', method='DELETE', config=self.config)
