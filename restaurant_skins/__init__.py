"""Restaurant site skins: normalize restaurant data and build skinned render plans."""

__version__ = "0.1.0"
