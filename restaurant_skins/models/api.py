"""API request and response models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from restaurant_skins.models.skin import SkinInfo


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class RevalidateRequest(ApiModel):
    """Cache invalidation signal. A null skin id drops every skin."""

    skin_id: str | None = Field(default=None, max_length=64)
    artifact: Literal["tokens", "mapping", "css"] | None = None


class RevalidateResponse(ApiModel):
    status: str = "revalidated"
    skin_id: str | None = None
    artifact: str | None = None
    dropped: int = 0


class SkinListResponse(ApiModel):
    skins: list[SkinInfo]
    default_skin_id: str


class MappingResponse(ApiModel):
    skin_id: str
    is_default: bool
    entries: list[dict]


class RestaurantListResponse(ApiModel):
    restaurants: list[str]
