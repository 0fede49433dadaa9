"""Filesystem access to skin directories."""

import json
import re
from pathlib import Path

import structlog

from restaurant_skins.errors import (
    MappingNotFoundError,
    MappingParseError,
    SkinNotFoundError,
    StylesheetReadError,
    TokenParseError,
)
from restaurant_skins.models.skin import SkinInfo

logger = structlog.get_logger()

TOKENS_FILE = "tokens.json"
STYLESHEET_FILE = "skin.css"
TEMPLATE_FILE = "template.json"
MAPPING_FILES = (("map.yml", "yaml"), ("map.yaml", "yaml"), ("map.json", "json"))

_SKIN_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def is_valid_skin_id(skin_id: str) -> bool:
    return bool(skin_id) and _SKIN_ID_RE.match(skin_id) is not None


class SkinStore:
    """Reads skin artifacts from ``<skins_dir>/<skin_id>/``.

    Skin ids are restricted to letters, digits, ``-`` and ``_`` so that a
    request can never address a path outside ``skins_dir``.
    """

    def __init__(self, skins_dir: str | Path):
        self.skins_dir = Path(skins_dir)

    def skin_path(self, skin_id: str) -> Path:
        """Return the directory of an existing skin."""
        if not is_valid_skin_id(skin_id):
            raise SkinNotFoundError(skin_id, reason="invalid skin id")
        path = self.skins_dir / skin_id
        if not path.is_dir():
            raise SkinNotFoundError(skin_id)
        return path

    def exists(self, skin_id: str) -> bool:
        try:
            self.skin_path(skin_id)
        except SkinNotFoundError:
            return False
        return True

    def read_tokens(self, skin_id: str) -> dict:
        """Read and parse the base token tree.

        Raises:
            SkinNotFoundError: Skin directory or tokens.json is missing
            TokenParseError: tokens.json is not a JSON object
        """
        path = self.skin_path(skin_id) / TOKENS_FILE
        if not path.is_file():
            raise SkinNotFoundError(skin_id, reason=f"{TOKENS_FILE} not found")

        try:
            with open(path, "r", encoding="utf-8") as f:
                tokens = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise TokenParseError(skin_id, str(e)) from e

        if not isinstance(tokens, dict):
            raise TokenParseError(skin_id, f"root must be an object, got {type(tokens).__name__}")

        logger.debug("tokens_read", skin_id=skin_id, path=str(path))
        return tokens

    def read_css(self, skin_id: str) -> str:
        """Read the raw stylesheet. A skin without skin.css has an empty one.

        Raises:
            StylesheetReadError: skin.css is not valid UTF-8 or cannot be read
        """
        path = self.skin_path(skin_id) / STYLESHEET_FILE
        if not path.is_file():
            logger.debug("stylesheet_missing", skin_id=skin_id)
            return ""
        try:
            return path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as e:
            logger.warning("stylesheet_unreadable", skin_id=skin_id, error=str(e))
            raise StylesheetReadError(skin_id, str(e)) from e

    def read_mapping_document(self, skin_id: str) -> tuple[str, str]:
        """Return the mapping document text and its format (``yaml`` or ``json``)."""
        skin_dir = self.skin_path(skin_id)
        for filename, fmt in MAPPING_FILES:
            path = skin_dir / filename
            if not path.is_file():
                continue
            try:
                return path.read_text(encoding="utf-8"), fmt
            except (UnicodeDecodeError, OSError) as e:
                raise MappingParseError(skin_id, f"{filename}: {e}") from e
        raise MappingNotFoundError(skin_id)

    def read_template(self, skin_id: str) -> dict | None:
        """Read optional display metadata. Invalid JSON is logged and ignored."""
        path = self.skin_path(skin_id) / TEMPLATE_FILE
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                template = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning("template_parse_failed", skin_id=skin_id, error=str(e))
            return None
        return template if isinstance(template, dict) else None

    def list_skins(self) -> list[SkinInfo]:
        """Discover skins, sorted by id."""
        if not self.skins_dir.is_dir():
            logger.warning("skins_dir_missing", path=str(self.skins_dir))
            return []

        skins = []
        for path in sorted(self.skins_dir.iterdir()):
            if not path.is_dir() or not is_valid_skin_id(path.name):
                continue
            template = self.read_template(path.name) or {}
            skins.append(
                SkinInfo(
                    id=path.name,
                    name=str(template.get("name") or path.name),
                    description=str(template.get("description") or ""),
                    category=str(template.get("category") or ""),
                    has_tokens=(path / TOKENS_FILE).is_file(),
                    has_stylesheet=(path / STYLESHEET_FILE).is_file(),
                    has_mapping=any((path / name).is_file() for name, _ in MAPPING_FILES),
                )
            )
        return skins
