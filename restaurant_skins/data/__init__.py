"""Restaurant data access."""

from restaurant_skins.data.restaurants import RestaurantStore

__all__ = ["RestaurantStore"]
