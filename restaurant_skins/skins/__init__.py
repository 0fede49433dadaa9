"""Skin storage, caching, token resolution and CSS scoping."""

from restaurant_skins.skins.cache import SkinCache
from restaurant_skins.skins.css_scoper import CSSScoper, ScopeOptions, ScopeResult, scope_css
from restaurant_skins.skins.store import SkinStore
from restaurant_skins.skins.tokens import (
    TokenResolver,
    deep_merge,
    flatten_tokens,
    render_block,
    to_css_variable_name,
)

__all__ = [
    "CSSScoper",
    "ScopeOptions",
    "ScopeResult",
    "SkinCache",
    "SkinStore",
    "TokenResolver",
    "deep_merge",
    "flatten_tokens",
    "render_block",
    "scope_css",
    "to_css_variable_name",
]
