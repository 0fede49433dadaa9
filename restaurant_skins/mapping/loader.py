"""Loads and caches skin mappings."""

import structlog

from restaurant_skins.errors import MappingNotFoundError, MappingParseError
from restaurant_skins.mapping.document import SkinMapping, parse_entries, parse_mapping_document
from restaurant_skins.metrics import record_fallback
from restaurant_skins.rendering.registry import ComponentRegistry
from restaurant_skins.skins.cache import SkinCache
from restaurant_skins.skins.store import SkinStore

logger = structlog.get_logger()


class MappingLoader:
    """Reads ``map.yml``/``map.json`` for a skin and caches the parsed mapping."""

    def __init__(self, store: SkinStore, cache: SkinCache, registry: ComponentRegistry):
        self.store = store
        self.cache = cache
        self.registry = registry

    def load(self, skin_id: str) -> SkinMapping:
        """Return the skin's mapping.

        Raises:
            SkinNotFoundError: Skin directory does not exist
            MappingNotFoundError: Skin has no mapping document
            MappingParseError: Document or one of its entries is invalid

        Once ``load_or_default`` has fallen back, the cached default layout is
        returned instead of raising.
        """
        return self.cache.get_or_load(skin_id, "mapping", lambda: self._read(skin_id))

    def _read(self, skin_id: str) -> SkinMapping:
        text, fmt = self.store.read_mapping_document(skin_id)
        mapping = parse_mapping_document(text, fmt, skin_id)
        logger.info("mapping_loaded", skin_id=skin_id, format=fmt, entries=len(mapping.entries))
        return mapping

    def load_or_default(self, skin_id: str) -> SkinMapping:
        """Return the skin's mapping, or the built-in default layout when it is missing or invalid.

        The default layout is cached in place of the failed mapping until the
        skin is invalidated.
        """
        try:
            return self.load(skin_id)
        except MappingNotFoundError:
            logger.warning("mapping_not_found_using_default", skin_id=skin_id)
            record_fallback("mapping_not_found")
        except MappingParseError as e:
            logger.warning("mapping_invalid_using_default", skin_id=skin_id, error=e.detail)
            record_fallback("mapping_invalid")
        mapping = self.default_mapping(skin_id)
        self.cache.put(skin_id, "mapping", mapping)
        return mapping

    def default_mapping(self, skin_id: str = "default") -> SkinMapping:
        """Built-in layout: Navbar, Hero, MenuList (when the menu has sections), Footer."""
        return SkinMapping(
            skin_id=skin_id,
            entries=parse_entries(self.registry.default_layout(), skin_id),
            is_default=True,
        )
