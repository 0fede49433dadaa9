"""Restaurant record normalization."""

from restaurant_skins.normalization.normalizer import (
    RecordShape,
    SiteNormalizer,
    classify,
    normalize,
)

__all__ = [
    "RecordShape",
    "SiteNormalizer",
    "classify",
    "normalize",
]
