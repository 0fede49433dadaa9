"""Mapping documents: ``map.yml`` / ``map.json`` parsed into MappingEntry trees."""

import json
from dataclasses import dataclass
from typing import Any

import yaml

from restaurant_skins.errors import MappingParseError
from restaurant_skins.mapping.bindings import Binding, PathRef, binding_source, parse_binding
from restaurant_skins.mapping.conditions import Condition, Const, parse_condition

COMPONENT_KEYS = ("as", "component", "type")
CONDITION_KEYS = ("when", "visibleWhen")


@dataclass(frozen=True)
class MappingEntry:
    """One declarative component instruction."""

    component_type: str
    props: dict[str, Binding]
    condition: Condition | None = None
    variant: str | None = None
    children: tuple["MappingEntry", ...] = ()
    each: PathRef | None = None
    or_else: tuple["MappingEntry", ...] = ()

    @property
    def visibility_condition(self) -> str | None:
        return self.condition.source if self.condition else None

    def to_document(self) -> dict:
        """Serialize back to the document form used in ``map.yml``."""
        document: dict[str, Any] = {"as": self.component_type}
        if self.variant:
            document["variant"] = self.variant
        if self.props:
            document["props"] = {name: binding_source(binding) for name, binding in self.props.items()}
        if self.condition:
            document["when"] = self.condition.source
        if self.each:
            document["each"] = self.each.raw
        if self.children:
            document["children"] = [child.to_document() for child in self.children]
        if self.or_else:
            document["else"] = [entry.to_document() for entry in self.or_else]
        return document


@dataclass(frozen=True)
class SkinMapping:
    skin_id: str
    entries: tuple[MappingEntry, ...]
    is_default: bool = False


def _layout(document: Any) -> list | None:
    if isinstance(document, list):
        return document
    if not isinstance(document, dict):
        return None
    page = document.get("page")
    if isinstance(page, dict) and isinstance(page.get("layout"), list):
        return page["layout"]
    if isinstance(document.get("layout"), list):
        return document["layout"]
    return None


def parse_mapping_document(text: str, fmt: str, skin_id: str) -> SkinMapping:
    """Parse mapping document text.

    Raises:
        MappingParseError: Malformed YAML/JSON, missing layout, or an invalid entry
    """
    try:
        document = yaml.safe_load(text) if fmt == "yaml" else json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise MappingParseError(skin_id, f"invalid {fmt}: {e}") from e

    layout = _layout(document)
    if layout is None:
        raise MappingParseError(skin_id, "document has no page.layout list")

    return SkinMapping(skin_id=skin_id, entries=parse_entries(layout, skin_id))


def parse_entries(raw_entries: list, skin_id: str, location: str = "layout") -> tuple[MappingEntry, ...]:
    return tuple(
        parse_entry(raw, skin_id, f"{location}[{index}]")
        for index, raw in enumerate(raw_entries)
    )


def parse_entry(raw: Any, skin_id: str, location: str) -> MappingEntry:
    if not isinstance(raw, dict):
        raise MappingParseError(skin_id, f"{location}: entry must be a mapping")

    component_type = next((raw[key] for key in COMPONENT_KEYS if raw.get(key)), None)
    if not isinstance(component_type, str) or not component_type.strip():
        raise MappingParseError(skin_id, f"{location}: missing component type ('as')")

    raw_props = raw.get("props") or {}
    if not isinstance(raw_props, dict):
        raise MappingParseError(skin_id, f"{location}.props: must be a mapping")
    props = {}
    for name, value in raw_props.items():
        try:
            props[str(name)] = parse_binding(value)
        except ValueError as e:
            raise MappingParseError(skin_id, f"{location}.props.{name}: {e}") from e

    condition = None
    when = next((raw[key] for key in CONDITION_KEYS if key in raw), None)
    if isinstance(when, bool):
        condition = Condition(str(when).lower(), Const(when))
    elif when is not None:
        try:
            condition = parse_condition(str(when))
        except ValueError as e:
            raise MappingParseError(skin_id, f"{location}.when: {e}") from e

    each = None
    if raw.get("each") is not None:
        each_path = str(raw["each"]).strip()
        if not each_path.startswith("$"):
            each_path = "$" + each_path
        try:
            each = parse_binding(each_path)
        except ValueError as e:
            raise MappingParseError(skin_id, f"{location}.each: {e}") from e
        if not isinstance(each, PathRef) or each.filters:
            raise MappingParseError(skin_id, f"{location}.each: must be a plain path")

    variant = raw.get("variant")
    return MappingEntry(
        component_type=component_type.strip(),
        props=props,
        condition=condition,
        variant=str(variant) if variant is not None else None,
        children=_nested(raw, "children", skin_id, location),
        each=each,
        or_else=_nested(raw, "else", skin_id, location),
    )


def _nested(raw: dict, key: str, skin_id: str, location: str) -> tuple[MappingEntry, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise MappingParseError(skin_id, f"{location}.{key}: must be a list")
    return parse_entries(value, skin_id, f"{location}.{key}")
