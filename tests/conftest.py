"""Shared fixtures: temporary skin and restaurant directories."""

import json
from pathlib import Path

import pytest

from restaurant_skins.config import Settings
from restaurant_skins.pipeline import SitePipeline

BASE_TOKENS = {
    "meta": {"name": "Base"},
    "colors": {"primary": "#111111", "secondary": "#222222"},
    "spacing": {"md": "1rem"},
}

BASE_CSS = """
.btn { color: var(--colors-primary); }
@keyframes spin { 0% { transform: rotate(0); } 100% { transform: rotate(360deg); } }
.spinner { animation-name: spin; }
"""

BASE_MAPPING = """
page:
  layout:
    - as: Navbar
      props:
        brandName: $business.name
    - as: Hero
      props:
        title: $business.name
    - as: MenuList
      when: menu.sections.length > 0
      props:
        sections: $menu.sections
    - as: Footer
      props:
        businessName: $business.name
"""


@pytest.fixture
def skins_dir(tmp_path) -> Path:
    path = tmp_path / "skins"
    path.mkdir()
    return path


@pytest.fixture
def make_skin(skins_dir):
    """Factory writing a skin directory under ``skins_dir``."""

    def _make_skin(
        skin_id: str,
        tokens: dict | str | None = None,
        css: str | None = None,
        mapping: str | None = None,
        mapping_file: str = "map.yml",
        template: dict | None = None,
    ) -> Path:
        skin_path = skins_dir / skin_id
        skin_path.mkdir(parents=True, exist_ok=True)
        if tokens is not None:
            text = tokens if isinstance(tokens, str) else json.dumps(tokens)
            (skin_path / "tokens.json").write_text(text, encoding="utf-8")
        if css is not None:
            (skin_path / "skin.css").write_text(css, encoding="utf-8")
        if mapping is not None:
            (skin_path / mapping_file).write_text(mapping, encoding="utf-8")
        if template is not None:
            (skin_path / "template.json").write_text(json.dumps(template), encoding="utf-8")
        return skin_path

    return _make_skin


@pytest.fixture
def data_dir(tmp_path) -> Path:
    path = tmp_path / "restaurants"
    path.mkdir()
    return path


@pytest.fixture
def overrides_dir(tmp_path) -> Path:
    path = tmp_path / "overrides"
    path.mkdir()
    return path


@pytest.fixture
def write_restaurant(data_dir):
    """Factory writing ``<data_dir>/<slug>.json``."""

    def _write_restaurant(slug: str, record: dict) -> Path:
        path = data_dir / f"{slug}.json"
        path.write_text(json.dumps(record), encoding="utf-8")
        return path

    return _write_restaurant


@pytest.fixture
def settings(skins_dir, data_dir, overrides_dir) -> Settings:
    return Settings(
        skins_dir=skins_dir,
        data_dir=data_dir,
        overrides_dir=overrides_dir,
        default_skin_id="base",
    )


@pytest.fixture
def base_skin(make_skin) -> Path:
    """The default skin every pipeline test can fall back to."""
    return make_skin("base", tokens=BASE_TOKENS, css=BASE_CSS, mapping=BASE_MAPPING)


@pytest.fixture
def pipeline(settings, base_skin) -> SitePipeline:
    return SitePipeline(settings=settings)


@pytest.fixture
def legacy_record() -> dict:
    return {
        "Restaurant_name": "Cafe X",
        "menu_items": [
            {"Menu_Category": "Drinks", "Item_Name": "Latte", "Item_Price": "4.50"},
        ],
    }


@pytest.fixture
def current_record() -> dict:
    return {
        "restaurant_info": {
            "name": "Roman's",
            "description": "Handmade pasta",
            "region": "Brooklyn",
            "state": "NY",
            "country": "US",
            "coordinates": {"latitude": 40.67, "longitude": -73.94},
        },
        "currency": "USD",
        "menu_categories": {
            "Pasta": [
                {"item_en": "Cacio e Pepe", "price": 19, "offer_price": 16},
                {"item_en": "Carbonara", "price": "21.00", "image": "https://img.example/carbonara.jpg"},
            ],
            "Dessert": [
                {"item_en": "Tiramisu", "price": 9},
            ],
        },
    }
