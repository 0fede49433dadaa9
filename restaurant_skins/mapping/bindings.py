"""Prop bindings: literal values or references into the site data.

A binding string that starts with ``$`` is a path reference and may carry a
fallback and a filter pipeline::

    $business.tagline ?? $business.description | truncate(80)

``$$`` at the start escapes a literal dollar sign. Mappings and lists bind
recursively; every other value is a literal.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Union

import structlog

from restaurant_skins.mapping.functions import FILTERS, split_outside_quotes
from restaurant_skins.mapping.paths import MISSING, format_path, parse_path, resolve_path

logger = structlog.get_logger()

_FILTER_CALL_RE = re.compile(r"^([A-Za-z_]\w*)\s*(?:\((.*)\))?$", re.DOTALL)
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_ARGUMENT_CONSTANTS = {"true": True, "false": False, "null": None}


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class FilterCall:
    name: str
    args: tuple = ()


@dataclass(frozen=True)
class PathRef:
    path: tuple
    raw: str = ""
    filters: tuple[FilterCall, ...] = ()
    fallback: "Binding | None" = None


@dataclass(frozen=True)
class ObjectBinding:
    fields: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ListBinding:
    items: tuple = ()


Binding = Union[Literal, PathRef, ObjectBinding, ListBinding]


def parse_argument(text: str) -> Binding:
    """Parse a filter argument or fallback: quoted string, number, constant or path."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return Literal(text[1:-1])
    if _NUMBER_RE.match(text):
        return Literal(float(text) if "." in text else int(text))
    if text in _ARGUMENT_CONSTANTS:
        return Literal(_ARGUMENT_CONSTANTS[text])
    if text.startswith("$$"):
        return Literal(text[1:])
    if text.startswith("$"):
        return PathRef(parse_path(text), raw=text)
    return Literal(text)


def parse_filter(text: str) -> FilterCall:
    """Parse ``name`` or ``name(arg, ...)``. Unknown filter names raise ValueError."""
    match = _FILTER_CALL_RE.match(text.strip())
    if match is None:
        raise ValueError(f"invalid filter syntax: {text.strip()!r}")
    name, arg_text = match.groups()
    if name not in FILTERS:
        raise ValueError(f"unknown filter {name!r}")
    args = ()
    if arg_text and arg_text.strip():
        args = tuple(parse_argument(arg) for arg in split_outside_quotes(arg_text, ","))
    return FilterCall(name, args)


def parse_reference(text: str) -> PathRef:
    stages = split_outside_quotes(text, "|")
    head = split_outside_quotes(stages[0], "??", maxsplit=1)
    fallback = parse_argument(head[1]) if len(head) > 1 else None
    return PathRef(
        path=parse_path(head[0]),
        raw=text.strip(),
        filters=tuple(parse_filter(stage) for stage in stages[1:]),
        fallback=fallback,
    )


def parse_binding(value: Any) -> Binding:
    """Turn a raw prop value from a mapping document into a Binding.

    Raises:
        ValueError: Malformed path, filter syntax or unknown filter
    """
    if isinstance(value, dict):
        return ObjectBinding({str(key): parse_binding(item) for key, item in value.items()})
    if isinstance(value, list):
        return ListBinding(tuple(parse_binding(item) for item in value))
    if isinstance(value, str):
        if value.startswith("$$"):
            return Literal(value[1:])
        if value.startswith("$"):
            return parse_reference(value)
    return Literal(value)


def binding_source(binding: Binding) -> Any:
    """Render a binding back to its document form."""
    if isinstance(binding, Literal):
        if isinstance(binding.value, str) and binding.value.startswith("$"):
            return "$" + binding.value
        return binding.value
    if isinstance(binding, PathRef):
        return binding.raw or format_path(binding.path)
    if isinstance(binding, ObjectBinding):
        return {key: binding_source(item) for key, item in binding.fields.items()}
    return [binding_source(item) for item in binding.items]


def resolve_binding(binding: Binding, data: Any) -> Any:
    """Evaluate a binding against site data.

    Returns MISSING when a path reference does not resolve and has neither
    a fallback nor filters. Filters that fail on the value leave it unchanged.
    """
    if isinstance(binding, Literal):
        return binding.value
    if isinstance(binding, ObjectBinding):
        return {key: _present(resolve_binding(item, data)) for key, item in binding.fields.items()}
    if isinstance(binding, ListBinding):
        return [_present(resolve_binding(item, data)) for item in binding.items]

    value = resolve_path(data, binding.path)
    if binding.fallback is not None and (value is MISSING or value is None or value == ""):
        value = resolve_binding(binding.fallback, data)

    if not binding.filters:
        return value

    value = _present(value)
    for call in binding.filters:
        args = [_present(resolve_binding(arg, data)) for arg in call.args]
        try:
            value = FILTERS[call.name](value, *args)
        except (TypeError, ValueError) as e:
            logger.debug("filter_failed", filter=call.name, path=binding.raw, error=str(e))
    return value


def _present(value: Any) -> Any:
    return None if value is MISSING else value
