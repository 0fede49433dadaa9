"""Evaluates a skin mapping against normalized site data."""

from typing import Any, Iterable

import structlog
from pydantic import BaseModel

from restaurant_skins.mapping.bindings import resolve_binding
from restaurant_skins.mapping.document import MappingEntry, SkinMapping
from restaurant_skins.mapping.paths import MISSING, resolve_path
from restaurant_skins.models.skin import ComponentDescriptor

logger = structlog.get_logger()


class MappingEvaluator:
    """Turns MappingEntry trees into ComponentDescriptors.

    Visible descriptors keep document order. Props whose path does not
    resolve become ``None``; that is recorded in ``diagnostics`` and never
    raises.
    """

    def __init__(self):
        self.diagnostics: list[str] = []

    def evaluate(
        self,
        mapping: SkinMapping | Iterable[MappingEntry],
        data: BaseModel | dict,
        include_hidden: bool = False,
    ) -> list[ComponentDescriptor]:
        """Evaluate entries in document order.

        Args:
            mapping: SkinMapping or plain entry sequence
            data: NormalizedSite (or an equivalent camelCase dict)
            include_hidden: Also return entries whose condition failed,
                with ``visible=False`` and no props

        Returns:
            Ordered component descriptors
        """
        self.diagnostics = []
        entries = mapping.entries if isinstance(mapping, SkinMapping) else tuple(mapping)
        scope = data.model_dump(by_alias=True) if isinstance(data, BaseModel) else dict(data)
        return self._evaluate_entries(entries, scope, include_hidden)

    def _evaluate_entries(
        self,
        entries: Iterable[MappingEntry],
        scope: dict,
        include_hidden: bool,
    ) -> list[ComponentDescriptor]:
        descriptors = []
        for entry in entries:
            if entry.each is None:
                descriptors.extend(self._evaluate_entry(entry, scope, include_hidden))
                continue

            for item_scope in self._iteration_scopes(entry, scope):
                descriptors.extend(self._evaluate_entry(entry, item_scope, include_hidden))
        return descriptors

    def _iteration_scopes(self, entry: MappingEntry, scope: dict) -> list[dict]:
        items = resolve_path(scope, entry.each.path)
        if isinstance(items, dict):
            items = list(items.values())
        if not isinstance(items, (list, tuple)):
            if items is not MISSING and items is not None:
                self._diagnose(f"{entry.component_type}: 'each' path {entry.each.raw} is not a list")
            return []

        last_index = len(items) - 1
        return [
            {**scope, "item": item, "index": index, "first": index == 0, "last": index == last_index}
            for index, item in enumerate(items)
        ]

    def _evaluate_entry(self, entry: MappingEntry, scope: dict, include_hidden: bool) -> list[ComponentDescriptor]:
        if not self._is_visible(entry, scope):
            if entry.or_else:
                return self._evaluate_entries(entry.or_else, scope, include_hidden)
            if include_hidden:
                return [
                    ComponentDescriptor(
                        component_type=entry.component_type,
                        visible=False,
                        variant=entry.variant,
                    )
                ]
            return []

        props = {}
        for name, binding in entry.props.items():
            value = resolve_binding(binding, scope)
            if value is MISSING:
                logger.debug(
                    "prop_resolution_miss",
                    component=entry.component_type,
                    prop=name,
                    path=getattr(binding, "raw", ""),
                )
                self._diagnose(f"{entry.component_type}.{name}: no data at {getattr(binding, 'raw', '')}")
                value = None
            props[name] = value

        return [
            ComponentDescriptor(
                component_type=entry.component_type,
                resolved_props=props,
                visible=True,
                variant=entry.variant,
                children=self._evaluate_entries(entry.children, scope, include_hidden),
            )
        ]

    def _is_visible(self, entry: MappingEntry, scope: dict) -> bool:
        if entry.condition is None:
            return True
        try:
            return entry.condition.evaluate(scope)
        except (TypeError, ValueError, KeyError) as e:
            logger.debug(
                "condition_evaluation_failed",
                component=entry.component_type,
                condition=entry.condition.source,
                error=str(e),
            )
            return False

    def _diagnose(self, message: str) -> None:
        self.diagnostics.append(message)


def evaluate(mapping: SkinMapping | Iterable[MappingEntry], data: Any, include_hidden: bool = False) -> list[ComponentDescriptor]:
    return MappingEvaluator().evaluate(mapping, data, include_hidden=include_hidden)
