"""
Query string rendering.

Keys and values are always percent-encoded here; callers pass raw values and
never encode them beforehand.
"""

import json
from typing import Any
from urllib.parse import quote


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(',', ':'))
    return str(value)


def build_query_string(*pairs: Any) -> str:
    """Render alternating key/value arguments as a query string.

    Pairs whose value is None are dropped entirely. Surviving pairs keep their
    order.

        >>> build_query_string("all", True, "limit", None, "name", "a b")
        '?all=true&name=a%20b'

    Args:
        *pairs: key1, value1, key2, value2, ...

    Returns:
        ``?k1=v1&k2=v2...``, or an empty string when no pair survives

    Raises:
        ValueError: If an odd number of arguments is given
    """
    if len(pairs) % 2:
        raise ValueError("build_query_string expects alternating keys and values")

    parts = []
    for key, value in zip(pairs[0::2], pairs[1::2]):
        if value is None:
            continue
        parts.append(f"{quote(str(key), safe='')}={quote(_render_value(value), safe='')}")

    if not parts:
        return ""
    return "?" + "&".join(parts)
