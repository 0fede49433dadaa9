"""Normalize heterogeneous restaurant JSON into a NormalizedSite."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple

import structlog

from restaurant_skins.models.site import (
    Business,
    Location,
    Media,
    Menu,
    MenuItem,
    MenuSection,
    NormalizedSite,
    SiteMetadata,
)
from restaurant_skins.normalization.coercion import (
    coerce_float,
    coerce_image,
    coerce_offer_price,
    coerce_price,
    coerce_text,
    first_present,
    first_text,
    slugify,
)

logger = structlog.get_logger()

DEFAULT_BUSINESS_NAME = "Restaurant"
DEFAULT_SECTION_LABEL = "General"
FLAT_MENU_LABEL = "Menu"
MAX_GALLERY_IMAGES = 6
RTL_LANGUAGES = {"ar", "fa", "he", "ur"}


class RecordShape(str, Enum):
    """Source layouts the normalizer understands."""

    CURRENT = "current"
    LEGACY = "legacy"
    SITE = "site"
    UNKNOWN = "unknown"


class ItemFields(NamedTuple):
    """Candidate source keys for each menu item attribute, in priority order."""

    id: tuple[str, ...]
    name: tuple[str, ...]
    description: tuple[str, ...]
    price: tuple[str, ...]
    offer_price: tuple[str, ...]
    image: tuple[str, ...]
    currency: tuple[str, ...]


CURRENT_ITEM_FIELDS = ItemFields(
    id=("id", "item_id"),
    name=("item_en", "name", "item_name", "item_ar", "title"),
    description=("description",),
    price=("price",),
    offer_price=("offer_price", "offerPrice"),
    image=("image", "image_url"),
    currency=("currency",),
)

LEGACY_ITEM_FIELDS = ItemFields(
    id=("Item_id", "item_id"),
    name=("Item_Name", "item_name", "name"),
    description=("Menu_Description", "Item_Description", "description"),
    price=("Item_Price", "price"),
    offer_price=("Offer_Price", "offer_price"),
    image=("Menu_Item_Images", "Item_Image", "image"),
    currency=("Currency", "currency"),
)

SITE_ITEM_FIELDS = ItemFields(
    id=("id",),
    name=("name", "item_name", "title"),
    description=("description",),
    price=("price",),
    offer_price=("offerPrice", "offer_price"),
    image=("image", "image_url"),
    currency=("currency", "currencyOverride"),
)

_LEGACY_ITEM_KEYS = {"Menu_Category", "Item_Name", "Item_Price"}


def classify(raw: dict) -> RecordShape:
    """Detect which source layout a raw record uses."""
    if "restaurant_info" in raw:
        return RecordShape.CURRENT
    if "Restaurant_name" in raw or _has_legacy_items(raw.get("menu_items")):
        return RecordShape.LEGACY
    if "business" in raw or "menu" in raw:
        return RecordShape.SITE
    return RecordShape.UNKNOWN


def _has_legacy_items(items: Any) -> bool:
    if not isinstance(items, list):
        return False
    return any(isinstance(item, dict) and _LEGACY_ITEM_KEYS & item.keys() for item in items)


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def _join(*parts: Any, separator: str = ", ") -> str:
    return separator.join(text for text in (coerce_text(part) for part in parts) if text)


class SiteNormalizer:
    """Convert raw restaurant records of any supported shape into NormalizedSite."""

    def __init__(self, default_currency: str = "USD"):
        self.default_currency = default_currency
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict:
        return {
            "records_normalized": 0,
            "sections_created": 0,
            "items_normalized": 0,
            "items_skipped": 0,
            "prices_coerced": 0,
        }

    @property
    def stats(self) -> dict:
        """Get normalization statistics."""
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset normalization statistics."""
        self._stats = self._empty_stats()

    def normalize_file(self, file_path: str | Path, slug: str | None = None) -> NormalizedSite:
        """Normalize a single restaurant JSON file."""
        file_path = Path(file_path)

        logger.info("normalizing_file", file_path=str(file_path))

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return self.normalize(data, slug=slug or file_path.stem)

    def normalize(self, raw: dict, slug: str = "") -> NormalizedSite:
        """Normalize one raw record.

        Never raises for dict input: malformed items are skipped and
        unparseable prices become ``0.0``.

        Args:
            raw: Raw restaurant record in legacy, current or site shape
            slug: Identifier of the record in the data store

        Returns:
            Immutable NormalizedSite
        """
        if not isinstance(raw, dict):
            raise TypeError(f"restaurant record must be a JSON object, got {type(raw).__name__}")

        shape = classify(raw)
        parsers = {
            RecordShape.CURRENT: self._parse_current,
            RecordShape.LEGACY: self._parse_legacy,
            RecordShape.SITE: self._parse_site,
            RecordShape.UNKNOWN: self._parse_unknown,
        }
        site = parsers[shape](raw, slug)
        self._stats["records_normalized"] += 1

        logger.info(
            "record_normalized",
            slug=slug,
            shape=shape.value,
            sections=len(site.menu.sections),
            items=site.menu.item_count,
        )
        return site

    # Shape parsers

    def _parse_current(self, raw: dict, slug: str) -> NormalizedSite:
        info = _as_dict(raw.get("restaurant_info"))
        declared_currency = raw.get("currency")
        if "menu_categories" in raw:
            groups = self._category_groups(raw.get("menu_categories"))
        else:
            groups, menu_currency = self._menu_groups(raw.get("menu"))
            declared_currency = declared_currency or menu_currency
        currency = self._menu_currency(declared_currency, groups, CURRENT_ITEM_FIELDS)

        business = Business(
            name=first_text(info, "name", "name_en") or DEFAULT_BUSINESS_NAME,
            description=first_text(info, "description"),
            tagline=first_text(info, "tagline", "slogan"),
            phone=first_text(info, "phone", "phone_number"),
            email=first_text(info, "email"),
            address=first_text(info, "address") or _join(info.get("region"), info.get("state")),
            logo=coerce_image(first_present(info, "logo_url", "logo")),
            website=first_text(info, "website", "hungerstation_url", "url"),
            cuisine=first_text(info, "type_of_food", "cuisine"),
            rating=coerce_float(info.get("rating")) or 0.0,
            social=self._social(info.get("social_media") or info.get("social")),
        )

        locations = [
            self._location(record, business.name)
            for record in _as_list(raw.get("locations"))
            if isinstance(record, dict)
        ]
        if not locations and any(info.get(key) for key in ("region", "state", "country", "coordinates")):
            locations.append(self._location({**info, "address": business.address}, business.name))

        sections = self._build_sections(groups, CURRENT_ITEM_FIELDS, currency)
        media = self._media(
            hero=first_present(info, "hero_image", "cover_image"),
            about=info.get("about_image"),
            gallery=raw.get("gallery_images") or raw.get("gallery"),
            sections=sections,
        )
        return self._assemble(raw, slug, business, locations, currency, sections, media)

    def _parse_legacy(self, raw: dict, slug: str) -> NormalizedSite:
        grouped: dict[str, list] = {}
        for entry in _as_list(raw.get("menu_items")):
            if not isinstance(entry, dict):
                self._skip_item(DEFAULT_SECTION_LABEL, "not an object")
                continue
            label = first_text(entry, "Menu_Category", "category") or DEFAULT_SECTION_LABEL
            grouped.setdefault(label, []).append(entry)
        groups = list(grouped.items())
        currency = self._menu_currency(raw.get("Currency"), groups, LEGACY_ITEM_FIELDS)

        business = Business(
            name=first_text(raw, "Restaurant_name") or DEFAULT_BUSINESS_NAME,
            description=first_text(raw, "Restaurant_description", "Description"),
            phone=first_text(raw, "Restaurant_phone", "Phone"),
            email=first_text(raw, "Restaurant_email", "Email"),
            address=first_text(raw, "Address") or _join(raw.get("City"), raw.get("State")),
            website=first_text(raw, "Restaurant_url"),
            cuisine=first_text(raw, "Type_of_Food"),
            rating=coerce_float(raw.get("Restaurant_Rating")) or 0.0,
        )

        locations = []
        if any(raw.get(key) for key in ("City", "State", "Country", "Latitude")):
            locations.append(
                Location(
                    name=business.name,
                    address=business.address,
                    city=first_text(raw, "City"),
                    region=first_text(raw, "State"),
                    country=first_text(raw, "Country"),
                    phone=business.phone,
                    latitude=coerce_float(raw.get("Latitude")),
                    longitude=coerce_float(raw.get("Longitude")),
                )
            )

        sections = self._build_sections(groups, LEGACY_ITEM_FIELDS, currency)
        media = self._media(
            hero=first_present(raw, "Restaurant_Image", "Restaurant_image"),
            about=None,
            gallery=None,
            sections=sections,
        )
        return self._assemble(raw, slug, business, locations, currency, sections, media)

    def _parse_site(self, raw: dict, slug: str) -> NormalizedSite:
        info = _as_dict(raw.get("business"))
        groups, menu_currency = self._menu_groups(raw.get("menu"))
        currency = self._menu_currency(menu_currency or raw.get("currency"), groups, SITE_ITEM_FIELDS)

        business = Business(
            name=first_text(info, "name") or DEFAULT_BUSINESS_NAME,
            description=first_text(info, "description"),
            tagline=first_text(info, "tagline"),
            phone=first_text(info, "phone"),
            email=first_text(info, "email"),
            address=first_text(info, "address"),
            logo=coerce_image(first_present(info, "logo", "logo_url")),
            website=first_text(info, "website", "url"),
            cuisine=first_text(info, "cuisine", "type"),
            rating=coerce_float(info.get("rating")) or 0.0,
            social=self._social(info.get("social") or info.get("social_media")),
        )

        locations = [
            self._location(record, business.name)
            for record in _as_list(raw.get("locations"))
            if isinstance(record, dict)
        ]

        sections = self._build_sections(groups, SITE_ITEM_FIELDS, currency)
        media_info = _as_dict(raw.get("media")) or _as_dict(raw.get("gallery"))
        media = self._media(
            hero=first_present(media_info, "hero") or first_present(info, "hero_image"),
            about=media_info.get("about"),
            gallery=media_info.get("gallery") or media_info.get("images"),
            sections=sections,
        )
        return self._assemble(raw, slug, business, locations, currency, sections, media)

    def _parse_unknown(self, raw: dict, slug: str) -> NormalizedSite:
        logger.warning("unrecognized_record_shape", slug=slug, keys=sorted(raw)[:20])
        business = Business(name=first_text(raw, "name") or DEFAULT_BUSINESS_NAME)
        currency = coerce_text(raw.get("currency")) or self.default_currency
        return self._assemble(raw, slug, business, [], currency, [], Media())

    # Menu helpers

    def _category_groups(self, categories: Any) -> list[tuple[str, list]]:
        """Turn ``{label: [items]}`` or ``[{name, items}]`` into ordered groups."""
        groups: list[tuple[str, list]] = []
        if isinstance(categories, dict):
            for label, entries in categories.items():
                groups.append((coerce_text(label) or DEFAULT_SECTION_LABEL, _as_list(entries)))
        elif isinstance(categories, list):
            for position, section in enumerate(categories):
                if not isinstance(section, dict):
                    logger.warning("menu_section_skipped", position=position, reason="not an object")
                    continue
                label = first_text(section, "label", "title", "name", "category")
                groups.append((label or DEFAULT_SECTION_LABEL, _as_list(section.get("items"))))
        return groups

    def _menu_groups(self, menu: Any) -> tuple[list[tuple[str, list]], Any]:
        """Groups and declared currency of a ``menu`` that is a flat list or ``{sections, currency}``."""
        if isinstance(menu, list):
            return self._flat_menu_groups(menu), None
        menu = _as_dict(menu)
        return self._category_groups(menu.get("sections")), menu.get("currency")

    def _flat_menu_groups(self, entries: list) -> list[tuple[str, list]]:
        if not any(isinstance(entry, dict) and entry.get("section_name") for entry in entries):
            return [(FLAT_MENU_LABEL, entries)]

        grouped: dict[str, list] = {}
        for entry in entries:
            label = first_text(entry, "section_name") if isinstance(entry, dict) else ""
            grouped.setdefault(label or FLAT_MENU_LABEL, []).append(entry)
        return list(grouped.items())

    def _menu_currency(self, declared: Any, groups: list[tuple[str, list]], fields: ItemFields) -> str:
        currency = coerce_text(declared)
        if currency:
            return currency
        for _, entries in groups:
            for entry in entries:
                if isinstance(entry, dict):
                    currency = first_text(entry, *fields.currency)
                    if currency:
                        return currency
        return self.default_currency

    def _build_sections(
        self,
        groups: list[tuple[str, list]],
        fields: ItemFields,
        currency: str,
    ) -> list[MenuSection]:
        sections = []
        used_ids: set[str] = set()

        for position, (label, entries) in enumerate(groups):
            section_id = slugify(label, fallback=f"section-{position + 1}")
            if section_id in used_ids:
                section_id = f"{section_id}-{position + 1}"
            used_ids.add(section_id)

            items = []
            for entry in entries:
                item = self._build_item(entry, section_id, len(items), fields, currency)
                if item is not None:
                    items.append(item)

            sections.append(MenuSection(id=section_id, label=label, items=items))
            self._stats["sections_created"] += 1

        return sections

    def _build_item(
        self,
        entry: Any,
        section_id: str,
        position: int,
        fields: ItemFields,
        currency: str,
    ) -> MenuItem | None:
        if not isinstance(entry, dict):
            self._skip_item(section_id, "not an object")
            return None

        try:
            raw_price = first_present(entry, *fields.price)
            price = coerce_price(raw_price)
            if raw_price is not None and coerce_float(raw_price) != price:
                self._stats["prices_coerced"] += 1
                logger.debug("price_coerced", section=section_id, raw_price=str(raw_price))

            offer_price = coerce_offer_price(first_present(entry, *fields.offer_price))
            name = first_text(entry, *fields.name) or f"Item {position + 1}"
            if offer_price is not None and offer_price > price:
                logger.warning(
                    "offer_price_exceeds_price",
                    section=section_id,
                    item=name,
                    price=price,
                    offer_price=offer_price,
                )

            item_currency = first_text(entry, *fields.currency)
            item = MenuItem(
                id=first_text(entry, *fields.id) or f"{section_id}-{position + 1}",
                name=name,
                description=first_text(entry, *fields.description),
                price=price,
                offer_price=offer_price,
                image=coerce_image(first_present(entry, *fields.image)),
                currency_override=item_currency if item_currency != currency else "",
            )
        except (TypeError, ValueError) as e:
            self._skip_item(section_id, str(e))
            return None

        self._stats["items_normalized"] += 1
        return item

    def _skip_item(self, section: str, reason: str) -> None:
        self._stats["items_skipped"] += 1
        logger.warning("menu_item_skipped", section=section, reason=reason)

    # Business / media helpers

    @staticmethod
    def _social(value: Any) -> dict[str, str]:
        return {
            coerce_text(platform): coerce_text(url)
            for platform, url in _as_dict(value).items()
            if coerce_text(platform) and coerce_text(url)
        }

    @staticmethod
    def _location(record: dict, default_name: str) -> Location:
        coordinates = _as_dict(record.get("coordinates"))
        latitude = first_present(coordinates, "latitude", "lat")
        longitude = first_present(coordinates, "longitude", "lng", "lon")
        return Location(
            name=first_text(record, "name") or default_name,
            address=first_text(record, "address", "location"),
            city=first_text(record, "city", "region"),
            region=first_text(record, "state", "region"),
            country=first_text(record, "country"),
            phone=first_text(record, "phone"),
            hours=first_text(record, "hours", "opening_hours"),
            maps_url=first_text(record, "maps_url", "mapsUrl", "google_maps_url"),
            timezone=first_text(record, "timezone"),
            latitude=coerce_float(latitude if latitude is not None else record.get("latitude")),
            longitude=coerce_float(longitude if longitude is not None else record.get("longitude")),
        )

    @staticmethod
    def _media(hero: Any, about: Any, gallery: Any, sections: list[MenuSection]) -> Media:
        images: list[str] = []
        for candidate in _as_list(gallery) if not isinstance(gallery, str) else [gallery]:
            url = coerce_image(candidate)
            if url and url not in images:
                images.append(url)

        if not images:
            for section in sections:
                for item in section.items:
                    if item.image and item.image not in images:
                        images.append(item.image)
                if len(images) >= MAX_GALLERY_IMAGES:
                    break
            images = images[:MAX_GALLERY_IMAGES]

        hero_url = coerce_image(hero) or (images[0] if images else "")
        return Media(hero=hero_url, about=coerce_image(about), gallery=images)

    def _assemble(
        self,
        raw: dict,
        slug: str,
        business: Business,
        locations: list[Location],
        currency: str,
        sections: list[MenuSection],
        media: Media,
    ) -> NormalizedSite:
        if not locations and business.address:
            locations = [Location(name=business.name, address=business.address, phone=business.phone)]

        metadata_info = _as_dict(raw.get("metadata"))
        locale = first_text(raw, "locale") or first_text(metadata_info, "locale") or "en"
        direction = (
            first_text(raw, "direction", "textDirection")
            or first_text(metadata_info, "direction", "textDirection")
        ).lower()
        if direction not in ("ltr", "rtl"):
            language = locale.replace("_", "-").split("-")[0].lower()
            direction = "rtl" if language in RTL_LANGUAGES else "ltr"

        return NormalizedSite(
            business=business,
            locations=locations,
            menu=Menu(currency=currency, sections=sections),
            media=media,
            metadata=SiteMetadata(
                locale=locale,
                text_direction=direction,
                slug=slug,
                source=first_text(raw, "source"),
            ),
        )


def normalize(raw: dict, slug: str = "") -> NormalizedSite:
    """Normalize one raw record with a fresh SiteNormalizer."""
    return SiteNormalizer().normalize(raw, slug=slug)
