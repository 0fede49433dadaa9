"""Exception taxonomy for skin resolution and page assembly.

Skin-level errors are contained per skin by the pipeline. Only ``RenderError``
(requested skin and default skin both unavailable) aborts a page render.
"""


class SkinError(Exception):
    """Base class for all errors raised by this package."""


class SkinNotFoundError(SkinError):
    """Skin directory or its tokens file does not exist."""

    def __init__(self, skin_id: str, reason: str = "skin directory not found"):
        self.skin_id = skin_id
        self.reason = reason
        super().__init__(f"Skin {skin_id!r}: {reason}")


class TokenParseError(SkinError):
    """tokens.json exists but is not a valid token tree."""

    def __init__(self, skin_id: str, detail: str):
        self.skin_id = skin_id
        self.detail = detail
        super().__init__(f"Invalid tokens for skin {skin_id!r}: {detail}")


class StylesheetReadError(SkinError):
    """skin.css exists but cannot be read as UTF-8 text."""

    def __init__(self, skin_id: str, detail: str):
        self.skin_id = skin_id
        self.detail = detail
        super().__init__(f"Unreadable stylesheet for skin {skin_id!r}: {detail}")


class MappingNotFoundError(SkinError):
    """Skin has no mapping document."""

    def __init__(self, skin_id: str):
        self.skin_id = skin_id
        super().__init__(f"Skin {skin_id!r} has no mapping document")


class MappingParseError(SkinError):
    """Mapping document is malformed or contains an invalid entry."""

    def __init__(self, skin_id: str, detail: str):
        self.skin_id = skin_id
        self.detail = detail
        super().__init__(f"Invalid mapping for skin {skin_id!r}: {detail}")


class RestaurantNotFoundError(SkinError):
    """No restaurant data file for the requested slug."""

    def __init__(self, slug: str, reason: str = "no data file"):
        self.slug = slug
        self.reason = reason
        super().__init__(f"Restaurant {slug!r}: {reason}")


class RenderError(SkinError):
    """Neither the requested skin nor the default skin could be loaded."""

    def __init__(self, requested_skin_id: str, default_skin_id: str):
        self.requested_skin_id = requested_skin_id
        self.default_skin_id = default_skin_id
        super().__init__(
            f"Cannot render: skin {requested_skin_id!r} and default skin "
            f"{default_skin_id!r} are both unavailable"
        )
