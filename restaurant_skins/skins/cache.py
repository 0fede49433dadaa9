"""Process-wide cache of parsed skin artifacts."""

from typing import Any, Callable

import structlog

from restaurant_skins.metrics import record_cache_invalidation, record_cache_lookup

logger = structlog.get_logger()

ARTIFACTS = ("tokens", "mapping", "css")

_MISSING = object()


class SkinCache:
    """Parsed skin artifacts keyed by ``(skin_id, artifact)``.

    Entries never expire; they are dropped only by ``invalidate``. Values are
    computed completely before being stored, so readers never observe a
    partially built entry. Two concurrent misses may both load, and the last
    store wins.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._entries: dict[tuple[str, str], Any] = {}
        self._hits = 0
        self._misses = 0

    def get(self, skin_id: str, artifact: str, default: Any = None) -> Any:
        value = self._entries.get((skin_id, artifact), _MISSING)
        if value is _MISSING:
            return default
        return value

    def put(self, skin_id: str, artifact: str, value: Any) -> None:
        if self.enabled:
            self._entries[(skin_id, artifact)] = value

    def get_or_load(self, skin_id: str, artifact: str, loader: Callable[[], Any]) -> Any:
        """Return the cached artifact, loading and publishing it on a miss.

        Exceptions raised by ``loader`` propagate and nothing is cached.
        """
        value = self._entries.get((skin_id, artifact), _MISSING)
        if value is not _MISSING:
            self._hits += 1
            record_cache_lookup(artifact, hit=True)
            return value

        self._misses += 1
        record_cache_lookup(artifact, hit=False)
        value = loader()
        self.put(skin_id, artifact, value)
        logger.debug("skin_cache_populated", skin_id=skin_id, artifact=artifact)
        return value

    def invalidate(self, skin_id: str, artifact: str | None = None) -> int:
        """Drop the entries of one skin, or one artifact of that skin.

        Returns:
            Number of entries dropped
        """
        keys = [
            key for key in self._entries
            if key[0] == skin_id and (artifact is None or key[1] == artifact)
        ]
        for key in keys:
            del self._entries[key]
            record_cache_invalidation(key[1], 1)

        logger.info("skin_cache_invalidated", skin_id=skin_id, artifact=artifact, dropped=len(keys))
        return len(keys)

    def clear(self) -> int:
        dropped = len(self._entries)
        self._entries = {}
        logger.info("skin_cache_cleared", dropped=dropped)
        return dropped

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        """Get cache statistics."""
        return {
            "enabled": self.enabled,
            "entries": len(self._entries),
            "skins": len({skin_id for skin_id, _ in self._entries}),
            "hits": self._hits,
            "misses": self._misses,
        }
