"""Filters usable in binding pipelines, e.g. ``$business.description | truncate(120)``."""

from typing import Any, Callable

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def split_outside_quotes(text: str, separator: str, maxsplit: int = -1) -> list[str]:
    """Split on ``separator`` except inside quotes or parentheses."""
    parts = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif depth == 0 and text.startswith(separator, i) and maxsplit != 0:
            parts.append(text[start:i])
            i += len(separator)
            start = i
            maxsplit -= 1
            continue
        i += 1
    parts.append(text[start:])
    return parts


def truncate(value: Any, length: int = 100) -> str:
    """Shorten text to ``length`` characters, breaking on a word when one is close."""
    if not value:
        return ""
    text = str(value)
    length = int(length)
    if len(text) <= length:
        return text
    truncated = text[:max(length - 3, 0)]
    last_space = truncated.rfind(" ")
    if last_space > length * 0.8:
        return truncated[:last_space] + "..."
    return truncated + "..."


def join(value: Any, separator: str = ", ") -> str:
    if isinstance(value, str):
        return value
    if not isinstance(value, (list, tuple)):
        return ""
    return str(separator).join(str(item) for item in value if item)


def currency(amount: Any, code: str = "USD") -> str:
    """Format an amount with grouped thousands, e.g. ``$1,200.5`` or ``SAR 12``."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return ""
    try:
        text = f"{amount:,.2f}"
    except OverflowError:
        return ""
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    code = str(code or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{text}"
    return f"{code} {text}"


def lower(value: Any) -> str:
    return str(value).lower() if value is not None else ""


def upper(value: Any) -> str:
    return str(value).upper() if value is not None else ""


def capitalize(value: Any) -> str:
    if not value:
        return ""
    return str(value).capitalize()


def first(value: Any, count: int = 1) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return list(value[:int(count)])


def last(value: Any, count: int = 1) -> list:
    if not isinstance(value, (list, tuple)) or int(count) <= 0:
        return []
    return list(value[-int(count):])


def default(value: Any, fallback: Any = None) -> Any:
    return fallback if value is None else value


def count(value: Any) -> int:
    if isinstance(value, (list, tuple, dict, str)):
        return len(value)
    return 0


FILTERS: dict[str, Callable[..., Any]] = {
    "truncate": truncate,
    "join": join,
    "currency": currency,
    "lower": lower,
    "upper": upper,
    "capitalize": capitalize,
    "first": first,
    "last": last,
    "default": default,
    "count": count,
}
