"""Component registry and renderer dispatch."""

from restaurant_skins.rendering.registry import (
    COMPONENT_VARIANTS,
    DEFAULT_COMPONENT_PROPS,
    ComponentRegistry,
    DispatchResult,
    RendererDispatch,
)

__all__ = [
    "COMPONENT_VARIANTS",
    "DEFAULT_COMPONENT_PROPS",
    "ComponentRegistry",
    "DispatchResult",
    "RendererDispatch",
]
