"""Dotted data paths such as ``$business.name`` or ``menu.sections[0].label``."""

import re
from typing import Any

from pydantic.alias_generators import to_camel

_SEGMENT_RE = re.compile(r"\.?([A-Za-z_][\w-]*)|\[(-?\d+)\]")


class _Missing:
    """Marker for a path that does not resolve. Distinct from ``None``."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def parse_path(expression: str) -> tuple:
    """Split a path expression into key and index segments.

    A leading ``$`` or ``$.`` is optional. ``$item.name`` addresses the
    ``item`` context variable set while iterating.

    Raises:
        ValueError: Expression is empty or malformed
    """
    text = expression.strip()
    if text.startswith("$."):
        text = text[2:]
    elif text.startswith("$"):
        text = text[1:]
    if not text:
        raise ValueError(f"empty path: {expression!r}")

    segments: list = []
    pos = 0
    while pos < len(text):
        match = _SEGMENT_RE.match(text, pos)
        if match is None or (pos == 0 and text.startswith(".")):
            raise ValueError(f"invalid path {expression!r} at offset {pos}")
        key, index = match.groups()
        segments.append(key if key is not None else int(index))
        pos = match.end()
    return tuple(segments)


def format_path(path: tuple) -> str:
    parts = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        else:
            parts.append(f".{segment}" if parts else segment)
    return "$" + "".join(parts)


def resolve_path(data: Any, path: tuple) -> Any:
    """Walk ``path`` through nested dicts and lists.

    Keys are tried as written, then in camelCase, so ``offer_price`` finds
    ``offerPrice``. ``length`` on a list, string or mapping yields its size.

    Returns:
        The value, or MISSING when any segment does not resolve
    """
    current = data
    for segment in path:
        if isinstance(segment, int):
            if isinstance(current, (list, tuple)) and -len(current) <= segment < len(current):
                current = current[segment]
                continue
            return MISSING

        if isinstance(current, dict):
            if segment in current:
                current = current[segment]
                continue
            camel = to_camel(segment)
            if camel in current:
                current = current[camel]
                continue

        if segment == "length" and isinstance(current, (list, tuple, str, dict)):
            current = len(current)
            continue
        return MISSING
    return current
