"""Design token resolution into a scoped CSS custom-property block."""

import copy
import re
from typing import Any, Iterable, Sequence

import structlog

from restaurant_skins.errors import TokenParseError
from restaurant_skins.skins.cache import SkinCache
from restaurant_skins.skins.store import SkinStore

logger = structlog.get_logger()

META_KEY = "meta"
TOKENS_UNAVAILABLE = "tokens unavailable"

_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATOR_RE = re.compile(r"[\s_.]+")
_DASHES_RE = re.compile(r"-{2,}")
_UNSAFE_VALUE_RE = re.compile(r"[;{}]")
_LEAF_KEYS = {"value", "type", "description"}


def deep_merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into a copy of ``base``, leaf by leaf.

    Nested mappings merge recursively; any other override value, lists
    included, replaces the base value. Neither input is mutated.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def to_kebab(segment: Any) -> str:
    """``primaryColor``, ``primary_color`` and ``primary color`` all become ``primary-color``."""
    text = _CAMEL_BOUNDARY_RE.sub(r"\1-\2", str(segment).strip())
    text = _SEPARATOR_RE.sub("-", text).lower()
    return _DASHES_RE.sub("-", text).strip("-")


def to_css_variable_name(path: Sequence[Any], prefix: str | None = None) -> str:
    """Build a custom property name from a token path.

    >>> to_css_variable_name(["colors", "primaryDark"])
    '--colors-primary-dark'
    """
    segments = [to_kebab(segment) for segment in path]
    if prefix:
        segments.insert(0, to_kebab(prefix))
    return "--" + "-".join(segment for segment in segments if segment)


def _is_value_leaf(node: dict) -> bool:
    if "$value" in node:
        return True
    return "value" in node and set(node) <= _LEAF_KEYS


def _quote_family(name: str) -> str:
    name = name.strip()
    if " " in name and not name.startswith(("'", '"')):
        return f'"{name}"'
    return name


def format_token_value(value: Any, path: Sequence[Any] = ()) -> str | None:
    """Render a token leaf as a CSS value, or ``None`` when it should be skipped."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        is_font = any("font" in str(segment).lower() or "family" in str(segment).lower() for segment in path)
        parts = [format_token_value(item, path) for item in value]
        parts = [part for part in parts if part]
        if is_font:
            parts = [_quote_family(part) for part in parts]
        return ", ".join(parts)
    if isinstance(value, dict):
        return None
    return str(value).strip()


def flatten_tokens(tree: dict, prefix: str | None = None) -> list[tuple[str, str]]:
    """Flatten a token tree into ordered ``(--name, value)`` pairs.

    The top-level ``meta`` key and any key starting with ``$`` are skin
    metadata and never become variables.
    """
    declarations: list[tuple[str, str]] = []

    def walk(node: Any, path: list) -> None:
        if isinstance(node, dict) and not (path and _is_value_leaf(node)):
            for key, child in node.items():
                key = str(key)
                if key.startswith("$") or (not path and key == META_KEY):
                    continue
                walk(child, path + [key])
            return

        if isinstance(node, dict):
            node = node.get("$value", node.get("value"))

        value = format_token_value(node, path)
        if value is None or value == "":
            return
        if _UNSAFE_VALUE_RE.search(value):
            logger.warning("token_value_rejected", token=".".join(path), value=value[:80])
            return
        declarations.append((to_css_variable_name(path, prefix), value))

    walk(tree, [])
    return declarations


def render_block(skin_id: str, declarations: Iterable[tuple[str, str]], comment: str | None = None) -> str:
    """Wrap declarations in a ``[data-skin="<id>"]`` rule."""
    lines = [f'[data-skin="{skin_id}"] {{']
    if comment:
        lines.append(f"  /* {comment} */")
    lines.extend(f"  {name}: {value};" for name, value in declarations)
    lines.append("}")
    return "\n".join(lines)


class TokenResolver:
    """Resolves a skin's tokens, plus optional overrides, into CSS variables."""

    def __init__(self, store: SkinStore, cache: SkinCache):
        self.store = store
        self.cache = cache

    def base_tokens(self, skin_id: str) -> dict:
        """Cached base token tree. Raises SkinNotFoundError or TokenParseError.

        A parse failure is cached as well, so a broken tokens.json is read
        once until the skin is invalidated.
        """
        tokens = self.cache.get_or_load(skin_id, "tokens", lambda: self._read_tokens(skin_id))
        if isinstance(tokens, TokenParseError):
            raise TokenParseError(skin_id, tokens.detail)
        return tokens

    def _read_tokens(self, skin_id: str) -> dict | TokenParseError:
        try:
            return self.store.read_tokens(skin_id)
        except TokenParseError as e:
            logger.warning("tokens_unavailable", skin_id=skin_id, error=e.detail)
            return e

    def resolve_tree(self, skin_id: str, overrides: dict | Sequence[dict] | None = None) -> dict:
        """Merge overrides over the base tree.

        ``overrides`` may be one partial tree or a sequence applied in order.
        Non-mapping overrides are ignored with a warning.
        """
        tree = copy.deepcopy(self.base_tokens(skin_id))

        if overrides is None:
            return tree
        if isinstance(overrides, (list, tuple)):
            layers = list(overrides)
        else:
            layers = [overrides]

        for layer in layers:
            if not isinstance(layer, dict):
                logger.warning("token_override_ignored", skin_id=skin_id, type=type(layer).__name__)
                continue
            tree = deep_merge(tree, layer)
        return tree

    def resolve(
        self,
        skin_id: str,
        overrides: dict | Sequence[dict] | None = None,
        variable_prefix: str | None = None,
    ) -> str:
        """Produce the ``[data-skin]`` variable block for a skin.

        Malformed tokens degrade to a comment-only block. A missing skin
        raises SkinNotFoundError so the caller can fall back to another skin.
        """
        try:
            tree = self.resolve_tree(skin_id, overrides)
        except TokenParseError:
            return render_block(skin_id, [], comment=TOKENS_UNAVAILABLE)

        declarations = flatten_tokens(tree, prefix=variable_prefix)
        logger.debug("tokens_resolved", skin_id=skin_id, variables=len(declarations))
        return render_block(skin_id, declarations)
