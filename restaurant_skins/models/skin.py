"""Skin listing metadata and render output models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from restaurant_skins.models.site import NormalizedSite


class ComponentDescriptor(BaseModel):
    """Evaluated instruction for one page component.

    Produced by the mapping evaluator, consumed by the renderer dispatch.
    Props that referenced a missing data path resolve to ``None``.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    component_type: str
    resolved_props: dict[str, Any] = Field(default_factory=dict)
    visible: bool = True
    variant: str | None = None
    children: list["ComponentDescriptor"] = Field(default_factory=list)


class SkinInfo(BaseModel):
    """Skin directory summary used by listing endpoints."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str
    description: str = ""
    category: str = ""
    has_tokens: bool = False
    has_stylesheet: bool = False
    has_mapping: bool = False

    @property
    def is_renderable(self) -> bool:
        return self.has_tokens


class RenderPlan(BaseModel):
    """Everything a renderer needs to build one restaurant page."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    restaurant_slug: str = ""
    requested_skin_id: str
    skin_id: str
    used_fallback_skin: bool = False
    used_default_mapping: bool = False
    tokens_css: str
    stylesheet: str
    descriptors: list[ComponentDescriptor] = Field(default_factory=list)
    site: NormalizedSite = Field(default_factory=NormalizedSite)
    warnings: list[str] = Field(default_factory=list)

    @property
    def component_types(self) -> list[str]:
        return [descriptor.component_type for descriptor in self.descriptors]
