"""Component registry and renderer dispatch."""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from restaurant_skins.models.skin import ComponentDescriptor

logger = structlog.get_logger()

COMPONENT_VARIANTS: dict[str, tuple[str, ...]] = {
    "Navbar": ("default", "minimal", "centered"),
    "Hero": ("image-left", "minimal", "gradient", "fullscreen"),
    "MenuList": ("compact-columns", "accordion", "grid", "masonry"),
    "Gallery": ("grid", "masonry", "carousel", "lightbox"),
    "Hours": ("compact", "detailed", "today-only"),
    "LocationMap": ("embedded", "popup", "static"),
    "CTA": ("reservation", "order", "contact", "custom"),
    "Footer": ("simple", "detailed", "minimal"),
    "RichText": ("body", "lead", "caption"),
    "Section": ("default", "contained", "full-width", "centered"),
}

DEFAULT_COMPONENT_PROPS: dict[str, dict[str, Any]] = {
    "Navbar": {"variant": "default", "links": [], "social": []},
    "Hero": {"variant": "minimal"},
    "MenuList": {
        "variant": "compact-columns",
        "currency": "USD",
        "showImages": True,
        "showPrices": True,
        "showDescriptions": True,
    },
    "Gallery": {"variant": "grid", "columns": 3, "aspectRatio": "square"},
    "Hours": {"variant": "detailed", "showTimezone": False},
    "LocationMap": {"variant": "embedded", "zoom": 15, "showDirections": True},
    "CTA": {"variant": "custom", "size": "medium", "style": "primary"},
    "Footer": {"variant": "detailed", "links": [], "social": []},
    "RichText": {"variant": "body", "sanitize": True},
    "Section": {"variant": "default", "background": "transparent", "padding": "medium"},
}

# Used when a skin has no mapping document, or an invalid one.
DEFAULT_LAYOUT = [
    {
        "as": "Navbar",
        "props": {"brandName": "$business.name", "logo": "$business.logo", "phone": "$business.phone"},
    },
    {
        "as": "Hero",
        "props": {
            "title": "$business.name",
            "subtitle": "$business.tagline ?? $business.description",
            "image": "$media.hero",
        },
    },
    {
        "as": "MenuList",
        "when": "menu.sections.length > 0",
        "props": {"sections": "$menu.sections", "currency": "$menu.currency"},
    },
    {
        "as": "Footer",
        "props": {
            "businessName": "$business.name",
            "address": "$business.address",
            "phone": "$business.phone",
            "email": "$business.email",
            "social": "$business.social",
        },
    },
]

_SEPARATOR_RE = re.compile(r"[\s_-]+")

Handler = Callable[[ComponentDescriptor, dict], Any]


def _lookup_key(kind: str) -> str:
    return _SEPARATOR_RE.sub("", kind).lower()


class ComponentRegistry:
    """Known component kinds, their variants, default props and renderers."""

    def __init__(self):
        self._kinds = {_lookup_key(kind): kind for kind in COMPONENT_VARIANTS}
        self._handlers: dict[str, Handler] = {}

    @property
    def kinds(self) -> list[str]:
        return list(COMPONENT_VARIANTS)

    def resolve(self, kind: str) -> str | None:
        """Canonical kind name; ``menu-list`` and ``menulist`` both give ``MenuList``."""
        return self._kinds.get(_lookup_key(kind))

    def is_known(self, kind: str) -> bool:
        return self.resolve(kind) is not None

    def is_valid_variant(self, kind: str, variant: str) -> bool:
        canonical = self.resolve(kind)
        return canonical is not None and variant in COMPONENT_VARIANTS[canonical]

    def default_props(self, kind: str) -> dict[str, Any]:
        canonical = self.resolve(kind)
        if canonical is None:
            return {}
        return {key: (list(value) if isinstance(value, list) else value)
                for key, value in DEFAULT_COMPONENT_PROPS[canonical].items()}

    def register(self, kind: str, handler: Handler) -> None:
        """Bind a renderer for a known kind. Unknown kinds raise ValueError."""
        canonical = self.resolve(kind)
        if canonical is None:
            raise ValueError(f"Unknown component kind: {kind}")
        self._handlers[canonical] = handler

    def handler(self, kind: str) -> Handler | None:
        canonical = self.resolve(kind)
        return self._handlers.get(canonical) if canonical else None

    def default_layout(self) -> list[dict]:
        """Layout document used when a skin has no usable mapping."""
        return copy.deepcopy(DEFAULT_LAYOUT)


@dataclass
class DispatchResult:
    rendered: list = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    skipped: int = 0


class RendererDispatch:
    """Invokes registered renderers for a descriptor list.

    A descriptor that cannot be rendered, because its kind is unknown, no
    handler is registered or the handler raised, is skipped with a diagnostic.
    The remaining descriptors still render.
    """

    def __init__(self, registry: ComponentRegistry):
        self.registry = registry

    def dispatch(self, descriptors: list[ComponentDescriptor]) -> DispatchResult:
        result = DispatchResult()
        for descriptor in descriptors:
            self._dispatch_one(descriptor, result)
        return result

    def _dispatch_one(self, descriptor: ComponentDescriptor, result: DispatchResult) -> None:
        if not descriptor.visible:
            return

        kind = descriptor.component_type
        canonical = self.registry.resolve(kind)
        if canonical is None:
            self._skip(result, f"Unknown component type: {kind}", component=kind)
            return

        handler = self.registry.handler(canonical)
        if handler is None:
            self._skip(result, f"No renderer registered for {canonical}", component=canonical)
            return

        if descriptor.variant and not self.registry.is_valid_variant(canonical, descriptor.variant):
            result.diagnostics.append(f"Invalid variant '{descriptor.variant}' for {canonical}")
            logger.warning("invalid_component_variant", component=canonical, variant=descriptor.variant)

        props = {**self.registry.default_props(canonical), **descriptor.resolved_props}
        if descriptor.variant:
            props["variant"] = descriptor.variant

        if descriptor.children:
            children = self.dispatch(descriptor.children)
            result.diagnostics.extend(children.diagnostics)
            result.skipped += children.skipped
            props["children"] = children.rendered

        try:
            result.rendered.append(handler(descriptor, props))
        except Exception as e:
            self._skip(result, f"Renderer for {canonical} failed: {e}", component=canonical)

    @staticmethod
    def _skip(result: DispatchResult, message: str, component: str) -> None:
        result.skipped += 1
        result.diagnostics.append(message)
        logger.warning("component_skipped", component=component, reason=message)
