"""Tests for the component registry and renderer dispatch."""

import pytest

from restaurant_skins.models.skin import ComponentDescriptor
from restaurant_skins.rendering import ComponentRegistry, RendererDispatch


def render_name(descriptor, props):
    return {"type": descriptor.component_type, "props": props}


class TestComponentRegistry:
    """Tests for ComponentRegistry."""

    @pytest.fixture
    def registry(self):
        return ComponentRegistry()

    @pytest.mark.parametrize("kind", ["MenuList", "menulist", "menu-list", "Menu_List", "MENU LIST"])
    def test_resolve_spellings(self, registry, kind):
        """Test lookups ignore case and separators."""
        assert registry.resolve(kind) == "MenuList"

    def test_unknown_kind(self, registry):
        """Test unknown kinds do not resolve."""
        assert registry.resolve("Carousel3D") is None
        assert not registry.is_known("Carousel3D")

    def test_kinds(self, registry):
        """Test the full component catalogue is exposed."""
        assert set(registry.kinds) == {
            "Navbar", "Hero", "MenuList", "Gallery", "Hours",
            "LocationMap", "CTA", "Footer", "RichText", "Section",
        }

    def test_variants(self, registry):
        """Test variant validation per kind."""
        assert registry.is_valid_variant("Hero", "fullscreen")
        assert not registry.is_valid_variant("Hero", "masonry")
        assert not registry.is_valid_variant("Nope", "default")

    def test_default_props_are_copies(self, registry):
        """Test callers cannot mutate the shared defaults."""
        props = registry.default_props("Footer")
        props["links"].append("/about")

        assert registry.default_props("Footer")["links"] == []
        assert registry.default_props("Nope") == {}

    def test_register_unknown_kind(self, registry):
        """Test registering an unknown kind raises ValueError."""
        with pytest.raises(ValueError):
            registry.register("Marquee", render_name)

    def test_default_layout_is_a_copy(self, registry):
        """Test the default layout can be modified without affecting the registry."""
        layout = registry.default_layout()
        layout.pop()

        assert [entry["as"] for entry in registry.default_layout()] == ["Navbar", "Hero", "MenuList", "Footer"]


class TestRendererDispatch:
    """Tests for RendererDispatch."""

    @pytest.fixture
    def registry(self):
        registry = ComponentRegistry()
        for kind in ("Navbar", "Hero", "Section", "MenuList", "Footer"):
            registry.register(kind, render_name)
        return registry

    def test_dispatch_merges_default_props(self, registry):
        """Test resolved props override defaults and the variant is applied."""
        descriptor = ComponentDescriptor(
            component_type="menu-list",
            resolved_props={"currency": "EUR"},
            variant="grid",
        )

        result = RendererDispatch(registry).dispatch([descriptor])

        props = result.rendered[0]["props"]
        assert props["currency"] == "EUR"
        assert props["showPrices"] is True
        assert props["variant"] == "grid"
        assert result.diagnostics == []

    def test_unknown_and_unregistered_are_skipped(self, registry):
        """Test unrenderable descriptors are skipped and the rest still render."""
        descriptors = [
            ComponentDescriptor(component_type="Navbar"),
            ComponentDescriptor(component_type="Marquee"),
            ComponentDescriptor(component_type="Gallery"),
            ComponentDescriptor(component_type="Footer"),
        ]

        result = RendererDispatch(registry).dispatch(descriptors)

        assert [item["type"] for item in result.rendered] == ["Navbar", "Footer"]
        assert result.skipped == 2
        assert result.diagnostics == [
            "Unknown component type: Marquee",
            "No renderer registered for Gallery",
        ]

    def test_handler_failure_is_contained(self, registry):
        """Test a raising renderer skips only its own descriptor."""

        def broken(descriptor, props):
            raise RuntimeError("boom")

        registry.register("Hero", broken)
        result = RendererDispatch(registry).dispatch([
            ComponentDescriptor(component_type="Hero"),
            ComponentDescriptor(component_type="Footer"),
        ])

        assert [item["type"] for item in result.rendered] == ["Footer"]
        assert result.skipped == 1
        assert "boom" in result.diagnostics[0]

    def test_invalid_variant_still_renders(self, registry):
        """Test an unknown variant is reported but rendered."""
        result = RendererDispatch(registry).dispatch([ComponentDescriptor(component_type="Hero", variant="spinning")])

        assert len(result.rendered) == 1
        assert result.diagnostics == ["Invalid variant 'spinning' for Hero"]

    def test_hidden_descriptors_ignored(self, registry):
        """Test invisible descriptors are not rendered or counted."""
        result = RendererDispatch(registry).dispatch([ComponentDescriptor(component_type="Hero", visible=False)])

        assert result.rendered == []
        assert result.skipped == 0

    def test_children_rendered_first(self, registry):
        """Test children are dispatched into the parent's props."""
        descriptor = ComponentDescriptor(
            component_type="Section",
            children=[
                ComponentDescriptor(component_type="MenuList"),
                ComponentDescriptor(component_type="Unknown"),
            ],
        )

        result = RendererDispatch(registry).dispatch([descriptor])

        children = result.rendered[0]["props"]["children"]
        assert [child["type"] for child in children] == ["MenuList"]
        assert result.skipped == 1
