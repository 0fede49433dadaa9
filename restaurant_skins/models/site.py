"""Canonical, skin-agnostic restaurant site model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SiteModel(BaseModel):
    """Frozen base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Business(SiteModel):
    """Business identity and contact details."""

    name: str = ""
    description: str = ""
    tagline: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    logo: str = ""
    website: str = ""
    cuisine: str = ""
    rating: float = 0.0
    social: dict[str, str] = Field(default_factory=dict)


class Location(SiteModel):
    """A physical branch of the restaurant."""

    name: str = ""
    address: str = ""
    city: str = ""
    region: str = ""
    country: str = ""
    phone: str = ""
    hours: str = ""
    maps_url: str = ""
    timezone: str = ""
    latitude: float | None = None
    longitude: float | None = None


class MenuItem(SiteModel):
    """A single menu offering.

    ``offer_price`` is ``None`` when the item has no special price, which is
    distinct from a price of zero.
    """

    id: str
    name: str
    description: str = ""
    price: float = Field(default=0.0, ge=0)
    offer_price: float | None = None
    image: str = ""
    currency_override: str = ""


class MenuSection(SiteModel):
    """Ordered group of menu items under one label."""

    id: str
    label: str
    items: list[MenuItem] = Field(default_factory=list)


class Menu(SiteModel):
    """Menu currency and ordered sections."""

    currency: str = "USD"
    sections: list[MenuSection] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(len(section.items) for section in self.sections)


class Media(SiteModel):
    """Image URLs used by the page."""

    hero: str = ""
    about: str = ""
    gallery: list[str] = Field(default_factory=list)


class SiteMetadata(SiteModel):
    """Locale and provenance of the record."""

    locale: str = "en"
    text_direction: Literal["ltr", "rtl"] = "ltr"
    slug: str = ""
    source: str = ""


class NormalizedSite(SiteModel):
    """Canonical in-memory model every skin renders from."""

    business: Business = Field(default_factory=Business)
    locations: list[Location] = Field(default_factory=list)
    menu: Menu = Field(default_factory=Menu)
    media: Media = Field(default_factory=Media)
    metadata: SiteMetadata = Field(default_factory=SiteMetadata)
