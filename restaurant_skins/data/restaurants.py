"""Restaurant data files and per-restaurant token overrides."""

import json
from pathlib import Path

import structlog

from restaurant_skins.errors import RestaurantNotFoundError
from restaurant_skins.skins.store import is_valid_skin_id

logger = structlog.get_logger()


class RestaurantStore:
    """Reads ``<data_dir>/<slug>.json`` and ``<overrides_dir>/<skin_id>/<slug>.json``."""

    def __init__(self, data_dir: str | Path, overrides_dir: str | Path | None = None):
        self.data_dir = Path(data_dir)
        self.overrides_dir = Path(overrides_dir) if overrides_dir else None

    def list_slugs(self) -> list[str]:
        """Slugs of all data files, skipping files that start with ``_``."""
        if not self.data_dir.is_dir():
            logger.warning("data_dir_missing", path=str(self.data_dir))
            return []
        return sorted(
            path.stem
            for path in self.data_dir.glob("*.json")
            if not path.name.startswith("_")
        )

    def load(self, slug: str) -> dict:
        """Load the raw record for ``slug``.

        Raises:
            RestaurantNotFoundError: No data file, or it is not a JSON object
        """
        if not is_valid_skin_id(slug):
            raise RestaurantNotFoundError(slug, reason="invalid slug")

        path = self.data_dir / f"{slug}.json"
        if not path.is_file():
            raise RestaurantNotFoundError(slug)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("restaurant_parse_failed", slug=slug, error=str(e))
            raise RestaurantNotFoundError(slug, reason=f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RestaurantNotFoundError(slug, reason="data file is not a JSON object")
        return data

    def load_overrides(self, skin_id: str, slug: str) -> dict | None:
        """Token overrides a restaurant applies on top of a skin, if any.

        An unreadable override file is logged and ignored so the base skin
        still renders.
        """
        if self.overrides_dir is None or not (is_valid_skin_id(skin_id) and is_valid_skin_id(slug)):
            return None

        path = self.overrides_dir / skin_id / f"{slug}.json"
        if not path.is_file():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("token_overrides_invalid", skin_id=skin_id, slug=slug, error=str(e))
            return None

        if not isinstance(overrides, dict):
            logger.warning("token_overrides_invalid", skin_id=skin_id, slug=slug, error="not an object")
            return None
        return overrides
