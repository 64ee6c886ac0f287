"""
Caller-facing request helpers.

These are the only entry points the domain API needs: perform_request for raw
exchanges, perform_json_request and perform_json_stream_request for JSON
endpoints, and build_query_string (re-exported from dockhttp.query).
"""

import codecs
import json
import sys
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Tuple

from dockhttp.clients.http1 import Content, HTTP1Client
from dockhttp.config import ClientConfig
from dockhttp.query import build_query_string

__all__ = [
    'build_query_string',
    'iter_json_stream',
    'perform_json_request',
    'perform_json_stream_request',
    'perform_request',
    'symbolize_key',
]

_STREAM_READ_SIZE = 8192
# characters that can continue a JSON number
_NUMBER_CHARS = frozenset("0123456789+-.eE")


def symbolize_key(key: str) -> str:
    """Map a camelCase JSON key to an interned upper-case dashed key.

    ``"RepoTags"`` becomes ``"REPO-TAGS"`` and ``"containerId"`` becomes
    ``"CONTAINER-ID"``. Only ASCII camelCase input is expected; keys that are
    already dashed or upper-case are not special-cased (``"ID"`` becomes
    ``"I-D"``).
    """
    out = []
    for index, ch in enumerate(key):
        if index and 'A' <= ch <= 'Z':
            out.append('-')
        out.append(ch)
    return sys.intern(''.join(out).upper())


def _symbolized_object(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    return {symbolize_key(key): value for key, value in pairs}


def perform_request(
    url: str,
    method: str = "GET",
    content: Content = None,
    content_type: Optional[str] = None,
    config: Optional[ClientConfig] = None,
    headers: Optional[List[Tuple[str, str]]] = None,
) -> Tuple[Optional[BinaryIO], Dict[str, str]]:
    """Run one exchange and hand back the body stream.

    Returns:
        (body, headers); body is None when the daemon sent no content.
        Otherwise the caller must close it, which also closes the socket.
    """
    response = HTTP1Client(config).request(method, url, content, content_type, headers)
    return response.body, response.headers


def perform_json_request(
    url: str,
    method: str = "GET",
    content: Content = None,
    content_type: Optional[str] = None,
    config: Optional[ClientConfig] = None,
) -> Any:
    """Run one exchange and decode the body as a single JSON value.

    The body is closed on every exit path, including decode errors.

    Returns:
        The decoded value with symbolized object keys, or None when there is
        no body or the body is empty
    """
    body, _ = perform_request(url, method, content, content_type, config)
    if body is None:
        return None
    with body:
        text = body.read().decode('utf-8')
    if not text.strip():
        return None
    return json.loads(text, object_pairs_hook=_symbolized_object)


def iter_json_stream(body: BinaryIO, read_size: int = _STREAM_READ_SIZE) -> Iterator[Any]:
    """Yield JSON values sent back to back on ``body``.

    Endpoints such as image pull stream one progress object after another with
    no enclosing array. A clean end of stream ends the iteration; leftover
    bytes that do not form a complete value raise ``json.JSONDecodeError``.
    The body is closed when the iterator finishes or is closed early.
    """
    decoder = json.JSONDecoder(object_pairs_hook=_symbolized_object)
    text_decoder = codecs.getincrementaldecoder('utf-8')()
    read = getattr(body, 'read1', body.read)
    buffer = ""
    eof = False

    with body:
        while True:
            buffer = buffer.lstrip()
            if buffer:
                try:
                    value, end = decoder.raw_decode(buffer)
                except json.JSONDecodeError:
                    if eof:
                        raise
                else:
                    # a bare number is only finished once something else follows it
                    complete = (
                        eof
                        or isinstance(value, bool)
                        or not isinstance(value, (int, float))
                        or (end < len(buffer) and buffer[end] not in _NUMBER_CHARS)
                    )
                    if complete:
                        buffer = buffer[end:]
                        yield value
                        continue
            elif eof:
                return

            data = read(read_size)
            if data:
                buffer += text_decoder.decode(data)
            else:
                buffer += text_decoder.decode(b"", final=True)
                eof = True


def perform_json_stream_request(
    url: str,
    method: str = "GET",
    content: Content = None,
    content_type: Optional[str] = None,
    config: Optional[ClientConfig] = None,
) -> Iterator[Any]:
    """Run one exchange now and iterate the JSON values of its body.

    Errors from the exchange itself (connection, status) are raised by this
    call, not on the first iteration.
    """
    body, _ = perform_request(url, method, content, content_type, config)
    if body is None:
        return iter(())
    return iter_json_stream(body, (config or ClientConfig()).read_size)
