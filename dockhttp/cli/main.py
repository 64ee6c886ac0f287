"""
Main CLI entry point for dockhttp.

This module provides the command-line interface, allowing users to send raw
or JSON requests to the Docker daemon over its Unix socket.
"""

import json
import logging
import sys
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from dockhttp.api import DockerAPI
from dockhttp.clients.http1 import HTTP1Client
from dockhttp.config import ClientConfig
from dockhttp.errors import DockHttpError, ProtocolError
from dockhttp.json_api import perform_json_request
from dockhttp.utils.logging import get_logger, setup_logging

console = Console()
err_console = Console(stderr=True)


def _fail(error: Exception) -> None:
    """Report an error and exit with status 1."""
    if isinstance(error, ProtocolError):
        err_console.print(
            f"[bold red]Error:[/] {error.method} {error.url} -> "
            f"{error.status_code} {error.reason}"
        )
    else:
        err_console.print(f"[bold red]Error:[/] {error}")
    sys.exit(1)


def _parse_headers(header: List[str]) -> List[tuple]:
    headers = []
    for h in header:
        if ':' in h:
            name, value = h.split(':', 1)
            headers.append((name.strip(), value.strip()))
        else:
            err_console.print(f"[bold yellow]Warning:[/] Ignoring invalid header format: {h}")
    return headers


@click.group()
@click.version_option(package_name='dockhttp')
@click.option('--socket', 'socket_path', help='Daemon socket path (default: $DOCKER_HOST or /var/run/docker.sock)')
@click.option('--debug', is_flag=True, help='Echo every protocol line')
@click.option('--timeout', type=float, help='Socket timeout in seconds')
@click.option('--log-file', help='Log file path')
@click.pass_context
def cli(ctx: click.Context, socket_path: Optional[str], debug: bool,
        timeout: Optional[float], log_file: Optional[str]):
    """Talk HTTP/1.1 to the Docker daemon over its Unix socket."""
    try:
        config = ClientConfig.from_env(socket_path=socket_path, debug=debug or None, timeout=timeout)
    except ValueError as e:
        raise click.UsageError(str(e))

    setup_logging(level=logging.INFO, log_file=log_file, verbose=config.debug)
    ctx.obj = config


@cli.command()
@click.argument('path')
@click.option('--method', '-X', default='GET', help='HTTP method to use')
@click.option('--header', '-H', multiple=True, help='HTTP header (can be used multiple times)')
@click.option('--data', '-d', help='Text request body')
@click.option('--file', '-f', 'upload', type=click.File('rb'), help="Binary request body, '-' streams stdin chunked")
@click.option('--content-type', '-t', help='Content-Type of the request body')
@click.option('--output', '-o', type=click.File('wb'), help='Write the response body to this file')
@click.option('--verbose', '-v', is_flag=True, help='Show status line and headers')
@click.pass_obj
def request(
    config: ClientConfig,
    path: str,
    method: str,
    header: List[str],
    data: Optional[str],
    upload,
    content_type: Optional[str],
    output,
    verbose: bool,
):
    """Send a request and stream the response body.

    PATH is the request target including any query string, e.g. /containers/json?all=true
    """
    if data is not None and upload is not None:
        raise click.UsageError("--data and --file are mutually exclusive")

    logger = get_logger()
    content = data if data is not None else upload
    target = output or click.get_binary_stream('stdout')

    try:
        logger.debug(f"Sending {method} request to {path}")
        response = HTTP1Client(config).request(
            method, path, content, content_type, _parse_headers(header)
        )
        with response:
            if verbose:
                err_console.print(f"[bold green]Status:[/] {response.status_code} {response.reason}")
                for name, value in response.headers.items():
                    err_console.print(f"  [blue]{name}:[/] {value}")
            if response.body is not None:
                while True:
                    chunk = response.body.read1(config.read_size)
                    if not chunk:
                        break
                    target.write(chunk)
                    target.flush()
    except DockHttpError as e:
        _fail(e)


@cli.command(name='json')
@click.argument('path')
@click.option('--method', '-X', default='GET', help='HTTP method to use')
@click.option('--data', '-d', help='JSON request body')
@click.pass_obj
def json_command(config: ClientConfig, path: str, method: str, data: Optional[str]):
    """Send a request and pretty-print the JSON answer."""
    content_type = 'application/json' if data is not None else None
    try:
        result = perform_json_request(path, method, data, content_type, config)
    except (DockHttpError, json.JSONDecodeError) as e:
        _fail(e)
    if result is None:
        err_console.print("[dim](no content)[/]")
        return
    console.print_json(data=result)


@cli.command()
@click.pass_obj
def ping(config: ClientConfig):
    """Check that the daemon answers."""
    try:
        answer = DockerAPI(config).ping()
    except DockHttpError as e:
        _fail(e)
    console.print(f"[bold green]{answer or 'OK'}[/]")


@cli.command()
@click.option('--all', '-a', 'show_all', is_flag=True, help='Include stopped containers')
@click.pass_obj
def ps(config: ClientConfig, show_all: bool):
    """List containers."""
    try:
        containers = DockerAPI(config).list_containers(all=show_all)
    except DockHttpError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("CONTAINER ID")
    table.add_column("IMAGE")
    table.add_column("STATUS")
    table.add_column("NAMES")
    for container in containers:
        names = ", ".join(name.lstrip('/') for name in container.get('NAMES') or [])
        table.add_row(
            (container.get('ID') or '')[:12],
            container.get('IMAGE') or '',
            container.get('STATUS') or '',
            names,
        )
    console.print(table)


@cli.command()
@click.pass_obj
def images(config: ClientConfig):
    """List images."""
    try:
        found = DockerAPI(config).list_images()
    except DockHttpError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("IMAGE ID")
    table.add_column("TAGS")
    table.add_column("SIZE", justify="right")
    for image in found:
        image_id = (image.get('ID') or '').split(':', 1)[-1][:12]
        tags = ", ".join(image.get('REPO-TAGS') or []) or '<none>'
        size = image.get('SIZE') or 0
        table.add_row(image_id, tags, f"{size / 1e6:.1f} MB")
    console.print(table)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except Exception as e:
        err_console.print(f"[bold red]Unexpected error:[/] {e}")
        get_logger().exception("Unhandled exception in main")
        sys.exit(1)


if __name__ == '__main__':
    main()
