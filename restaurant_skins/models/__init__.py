"""Data models for the skin pipeline."""

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
from restaurant_skins.models.skin import ComponentDescriptor, RenderPlan, SkinInfo
from restaurant_skins.models.api import (
    MappingResponse,
    RestaurantListResponse,
    RevalidateRequest,
    RevalidateResponse,
    SkinListResponse,
)

__all__ = [
    # Site models
    "Business",
    "Location",
    "Media",
    "Menu",
    "MenuItem",
    "MenuSection",
    "NormalizedSite",
    "SiteMetadata",
    # Skin models
    "ComponentDescriptor",
    "RenderPlan",
    "SkinInfo",
    # API models
    "MappingResponse",
    "RestaurantListResponse",
    "RevalidateRequest",
    "RevalidateResponse",
    "SkinListResponse",
]
