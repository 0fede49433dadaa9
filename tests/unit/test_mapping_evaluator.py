"""Tests for the mapping evaluator."""

import pytest

from restaurant_skins.mapping import MappingEvaluator, evaluate, parse_mapping_document
from restaurant_skins.models.site import Business, Menu, MenuItem, MenuSection, NormalizedSite


def mapping_from(text: str):
    return parse_mapping_document(text, "yaml", "test")


@pytest.fixture
def site() -> NormalizedSite:
    return NormalizedSite(
        business=Business(name="Roman's", description="Handmade pasta"),
        menu=Menu(
            currency="USD",
            sections=[
                MenuSection(
                    id="pasta",
                    label="Pasta",
                    items=[MenuItem(id="pasta-1", name="Carbonara", price=21, offer_price=18)],
                ),
                MenuSection(id="dessert", label="Dessert", items=[MenuItem(id="dessert-1", name="Tiramisu", price=9)]),
            ],
        ),
    )


@pytest.fixture
def empty_site() -> NormalizedSite:
    return NormalizedSite(business=Business(name="Cafe X"))


class TestMappingEvaluator:
    """Tests for MappingEvaluator."""

    def test_binds_business_name(self, site):
        """Test $business.name bound to title resolves to the name."""
        descriptors = evaluate(mapping_from("- as: Hero\n  props:\n    title: $business.name\n"), site)

        assert len(descriptors) == 1
        assert descriptors[0].component_type == "Hero"
        assert descriptors[0].resolved_props == {"title": "Roman's"}
        assert descriptors[0].visible

    def test_menu_hidden_without_sections(self, site, empty_site):
        """Test a MenuList conditioned on sections disappears for an empty menu."""
        mapping = mapping_from(
            "- as: Navbar\n"
            "- as: MenuList\n  when: menu.sections.length > 0\n  props:\n    sections: $menu.sections\n"
            "- as: Footer\n"
        )

        assert [d.component_type for d in evaluate(mapping, site)] == ["Navbar", "MenuList", "Footer"]
        assert [d.component_type for d in evaluate(mapping, empty_site)] == ["Navbar", "Footer"]

    def test_order_preserved_when_hidden_entries_change(self, site):
        """Test adding or removing hidden entries keeps visible order."""
        visible_only = mapping_from("- as: Navbar\n- as: Hero\n- as: Footer\n")
        with_hidden = mapping_from(
            "- as: Gallery\n  when: false\n"
            "- as: Navbar\n"
            "- as: CTA\n  when: business.website\n"
            "- as: Hero\n"
            "- as: Hours\n  when: locations.length > 0\n"
            "- as: Footer\n"
        )

        expected = [d.component_type for d in evaluate(visible_only, site)]

        assert [d.component_type for d in evaluate(with_hidden, site)] == expected

    def test_menu_props_use_camel_case(self, site):
        """Test data is exposed with camelCase keys."""
        descriptors = evaluate(mapping_from("- as: MenuList\n  props:\n    sections: $menu.sections\n"), site)
        item = descriptors[0].resolved_props["sections"][0]["items"][0]

        assert item["offerPrice"] == 18
        assert item["name"] == "Carbonara"

    def test_missing_prop_is_none_with_diagnostic(self, site):
        """Test an unresolved prop becomes None and is reported."""
        evaluator = MappingEvaluator()

        descriptors = evaluator.evaluate(mapping_from("- as: Hero\n  props:\n    image: $media.logo\n"), site)

        assert descriptors[0].resolved_props == {"image": None}
        assert evaluator.diagnostics == ["Hero.image: no data at $media.logo"]

    def test_include_hidden(self, site):
        """Test hidden entries can be returned as invisible descriptors."""
        mapping = mapping_from("- as: CTA\n  variant: order\n  when: business.website\n  props:\n    href: $business.website\n")

        descriptors = evaluate(mapping, site, include_hidden=True)

        assert len(descriptors) == 1
        assert descriptors[0].visible is False
        assert descriptors[0].resolved_props == {}
        assert descriptors[0].variant == "order"
        assert evaluate(mapping, site) == []

    def test_else_branch(self, empty_site):
        """Test else entries replace a hidden entry."""
        mapping = mapping_from(
            "- as: MenuList\n"
            "  when: menu.sections\n"
            "  else:\n"
            "    - as: RichText\n"
            "      props:\n"
            "        content: Menu coming soon\n"
        )

        descriptors = evaluate(mapping, empty_site)

        assert [d.component_type for d in descriptors] == ["RichText"]
        assert descriptors[0].resolved_props == {"content": "Menu coming soon"}

    def test_each_repeats_entry(self, site):
        """Test each yields one descriptor per element with item context."""
        mapping = mapping_from(
            "- as: Section\n"
            "  each: menu.sections\n"
            "  when: item.items.length > 0\n"
            "  props:\n"
            "    title: $item.label\n"
            "    position: $index\n"
            "    isFirst: $first\n"
            "    isLast: $last\n"
            "    currency: $menu.currency\n"
        )

        descriptors = evaluate(mapping, site)

        assert [d.resolved_props["title"] for d in descriptors] == ["Pasta", "Dessert"]
        assert descriptors[0].resolved_props == {
            "title": "Pasta",
            "position": 0,
            "isFirst": True,
            "isLast": False,
            "currency": "USD",
        }
        assert descriptors[1].resolved_props["isLast"] is True

    def test_each_over_missing_path(self, site):
        """Test each over a missing path yields nothing without diagnostics."""
        evaluator = MappingEvaluator()

        assert evaluator.evaluate(mapping_from("- as: Gallery\n  each: media.albums\n"), site) == []
        assert evaluator.diagnostics == []

    def test_each_over_scalar_reports(self, site):
        """Test each over a non-list value is reported."""
        evaluator = MappingEvaluator()

        assert evaluator.evaluate(mapping_from("- as: Gallery\n  each: business.name\n"), site) == []
        assert len(evaluator.diagnostics) == 1

    def test_children_evaluated_in_item_scope(self, site):
        """Test children see the iteration item."""
        mapping = mapping_from(
            "- as: Section\n"
            "  each: menu.sections\n"
            "  children:\n"
            "    - as: MenuList\n"
            "      props:\n"
            "        sections: [\"$item\"]\n"
            "        count: $item.items | count\n"
        )

        descriptors = evaluate(mapping, site)
        child = descriptors[1].children[0]

        assert child.component_type == "MenuList"
        assert child.resolved_props["sections"][0]["label"] == "Dessert"
        assert child.resolved_props["count"] == 1

    def test_plain_dict_data(self):
        """Test evaluation over a plain dict."""
        descriptors = evaluate(
            mapping_from("- as: Hero\n  props:\n    title: $business.name ?? 'Welcome'\n"),
            {"business": {"name": ""}},
        )

        assert descriptors[0].resolved_props == {"title": "Welcome"}

    def test_diagnostics_reset_per_call(self, site):
        """Test each evaluate call starts with fresh diagnostics."""
        evaluator = MappingEvaluator()
        evaluator.evaluate(mapping_from("- as: Hero\n  props:\n    image: $nope\n"), site)
        evaluator.evaluate(mapping_from("- as: Hero\n"), site)

        assert evaluator.diagnostics == []
