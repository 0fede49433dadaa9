"""Tolerant scalar coercion for loosely typed restaurant exports."""

import math
import re
from typing import Any

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")


def _parse_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if match is None:
            return None
        number = float(match.group())
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_price(value: Any) -> float:
    """Parse a price, falling back to ``0.0`` for anything unusable.

    Accepts numbers and strings such as ``"4.50"``, ``"SAR 12"`` or
    ``"1,200.5"``. Negative, NaN and infinite values become ``0.0``.
    """
    number = _parse_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def coerce_offer_price(value: Any) -> float | None:
    """Parse an offer price. Empty, zero or unparseable means "no offer"."""
    number = _parse_number(value)
    if number is None or number <= 0:
        return None
    return number


def coerce_float(value: Any) -> float | None:
    return _parse_number(value)


def coerce_text(value: Any) -> str:
    """Return a stripped string; ``None`` and containers become ``""``."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    if isinstance(value, bool):
        return "true" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def coerce_image(value: Any) -> str:
    """Take the first usable URL from a string, list of strings or image object."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return coerce_text(value.get("url") or value.get("src"))
    if isinstance(value, (list, tuple)):
        for candidate in value:
            url = coerce_image(candidate)
            if url:
                return url
    return ""


def first_text(record: dict, *keys: str) -> str:
    """Return the first non-empty text value among ``keys``."""
    for key in keys:
        text = coerce_text(record.get(key))
        if text:
            return text
    return ""


def first_present(record: dict, *keys: str) -> Any:
    """Return the first value among ``keys`` that is not ``None`` or ``""``."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def slugify(text: str, fallback: str = "item") -> str:
    slug = _SLUG_STRIP_RE.sub("-", text.lower()).strip("-")
    return slug or fallback
