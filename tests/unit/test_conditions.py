"""Tests for data paths and visibility conditions."""

import pytest

from restaurant_skins.mapping.conditions import ConditionSyntaxError, parse_condition, truthy
from restaurant_skins.mapping.paths import MISSING, format_path, parse_path, resolve_path

DATA = {
    "business": {"name": "Roman's", "cuisine": "Italian", "rating": 4.5, "tagline": ""},
    "menu": {
        "currency": "USD",
        "sections": [
            {"label": "Pasta", "items": [{"name": "Carbonara", "offerPrice": 16}]},
            {"label": "Dessert", "items": []},
        ],
    },
    "locations": [],
}


class TestPaths:
    """Tests for path parsing and resolution."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("$business.name", ("business", "name")),
            ("$.business.name", ("business", "name")),
            ("business.name", ("business", "name")),
            ("$menu.sections[0].label", ("menu", "sections", 0, "label")),
            ("$menu.sections[-1]", ("menu", "sections", -1)),
            ("$social.tik-tok", ("social", "tik-tok")),
        ],
    )
    def test_parse_path(self, expression, expected):
        """Test supported path spellings."""
        assert parse_path(expression) == expected

    @pytest.mark.parametrize("expression", ["$", "", "$.", "a..b", "a[x]", ".a", "a b"])
    def test_invalid_paths(self, expression):
        """Test malformed paths raise ValueError."""
        with pytest.raises(ValueError):
            parse_path(expression)

    def test_format_path(self):
        """Test a parsed path formats back to its canonical text."""
        assert format_path(("menu", "sections", 0, "label")) == "$menu.sections[0].label"

    def test_resolve_nested(self):
        """Test keys and indexes walk nested data."""
        assert resolve_path(DATA, ("menu", "sections", 0, "label")) == "Pasta"
        assert resolve_path(DATA, ("menu", "sections", -1, "label")) == "Dessert"

    def test_resolve_snake_case_finds_camel_case(self):
        """Test snake_case segments fall back to camelCase keys."""
        assert resolve_path(DATA, ("menu", "sections", 0, "items", 0, "offer_price")) == 16

    def test_resolve_length(self):
        """Test length yields the size of lists, strings and mappings."""
        assert resolve_path(DATA, ("menu", "sections", "length")) == 2
        assert resolve_path(DATA, ("business", "name", "length")) == 7
        assert resolve_path(DATA, ("locations", "length")) == 0

    def test_missing_is_distinct_from_none(self):
        """Test unresolvable paths yield MISSING, not None."""
        assert resolve_path(DATA, ("business", "owner")) is MISSING
        assert resolve_path(DATA, ("menu", "sections", 5)) is MISSING
        assert resolve_path(DATA, ("business", "name", "first")) is MISSING
        assert not MISSING
        assert repr(MISSING) == "MISSING"


class TestConditions:
    """Tests for condition parsing and evaluation."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("menu.sections.length > 0", True),
            ("menu.sections.length >= 3", False),
            ("locations.length > 0", False),
            ("business.name", True),
            ("business.tagline", False),
            ("business.owner", False),
            ("!business.tagline", True),
            ("not locations", True),
            ('business.cuisine == "Italian"', True),
            ("business.cuisine != 'Italian'", False),
            ("business.rating >= 4.5 && menu.currency == 'USD'", True),
            ("business.rating > 5 || business.name", True),
            ("business.rating > 5 or locations.length > 0", False),
            ("(business.rating > 5 or business.name) and not business.tagline", True),
            ("business.owner == null", True),
            ("business.owner > 1", False),
            ("business.name > 1", False),
            ("true", True),
            ("false || null", False),
        ],
    )
    def test_evaluate(self, text, expected):
        """Test conditions evaluate against site data."""
        assert parse_condition(text).evaluate(DATA) is expected

    def test_precedence(self):
        """Test && binds tighter than ||."""
        assert parse_condition("true || false && false").evaluate({}) is True
        assert parse_condition("(true || false) && false").evaluate({}) is False

    def test_escaped_quotes(self):
        """Test escaped quotes inside string literals."""
        condition = parse_condition("business.name == 'Roman\\'s'")

        assert condition.evaluate(DATA) is True

    def test_source_is_kept(self):
        """Test the parsed condition remembers its text."""
        assert parse_condition("menu.sections.length > 0").source == "menu.sections.length > 0"

    @pytest.mark.parametrize(
        "text",
        ["", "business.name ==", "(business.name", "business.name business.cuisine", "a # b", "&& a", "a[x] > 1"],
    )
    def test_syntax_errors(self, text):
        """Test malformed conditions raise ConditionSyntaxError."""
        with pytest.raises(ConditionSyntaxError):
            parse_condition(text)

    def test_truthy(self):
        """Test empty containers and MISSING are false."""
        assert not truthy([])
        assert not truthy("")
        assert not truthy({})
        assert not truthy(MISSING)
        assert not truthy(0)
        assert truthy([0])
        assert truthy("0")
