"""Tests for the CSS scoper."""

import pytest

from restaurant_skins.skins.css_scoper import (
    CSSScoper,
    ScopeOptions,
    parse_stylesheet,
    scope_css,
    split_top_level,
)

SCOPE = '[data-skin="foo"]'
MARKER = "/* skin-scoped:foo */"


class TestSelectorScoping:
    """Tests for selector prefixing."""

    @pytest.fixture
    def scoper(self):
        return CSSScoper("foo")

    @pytest.mark.parametrize(
        "selector,expected",
        [
            (".btn", f"{SCOPE} .btn"),
            ("nav > a:hover", f"{SCOPE} nav > a:hover"),
            (":root", SCOPE),
            ("body", SCOPE),
            ("html .title", f"{SCOPE} .title"),
            ("::selection", f"{SCOPE}::selection"),
            ("*", "*"),
            ("*::before", "*::before"),
            (f"{SCOPE} .already", f"{SCOPE} .already"),
        ],
    )
    def test_scope_selector(self, scoper, selector, expected):
        """Test each selector form gets the expected prefix."""
        assert scoper.scope_selector(selector) == expected

    def test_selector_list(self, scoper):
        """Test every selector in a list is scoped."""
        assert scoper.scope_selector_list(".a,\n  .b") == f"{SCOPE} .a, {SCOPE} .b"

    def test_body_prefix_does_not_match_longer_names(self, scoper):
        """Test element names that only start with body are not treated as body."""
        assert scoper.scope_selector("bodytext") == f"{SCOPE} bodytext"

    def test_split_ignores_commas_in_functions(self):
        """Test commas inside :is() and attribute strings do not split."""
        assert split_top_level(':is(.a, .b) .c, [title="x,y"]') == [":is(.a, .b) .c", ' [title="x,y"]']


class TestScopeCss:
    """Tests for whole-stylesheet scoping."""

    def test_rule_and_keyframes(self):
        """Test rules are scoped and keyframes plus their references renamed."""
        source = ".btn { color: red; }\n@keyframes spin { from { opacity: 0; } to { opacity: 1; } }\n.x { animation-name: spin; }"

        result = scope_css(source, "foo")

        assert result.css.startswith(MARKER + "\n")
        assert f"{SCOPE} .btn {{" in result.css
        assert "@keyframes foo-spin {" in result.css
        assert "animation-name: foo-spin;" in result.css
        assert result.warnings == []

    def test_keyframe_stops_untouched(self):
        """Test keyframe selectors are never prefixed."""
        result = scope_css("@keyframes pulse { 0% { opacity: 0; } 100% { opacity: 1; } }", "foo")

        assert "  0% {" in result.css
        assert f"{SCOPE} 0%" not in result.css

    def test_animation_shorthand(self):
        """Test the name inside an animation shorthand is rewritten."""
        source = "@keyframes spin { to { transform: rotate(360deg); } }\n.s { animation: spin 1s linear infinite, fade 2s; }"

        result = scope_css(source, "foo")

        assert "animation: foo-spin 1s linear infinite, fade 2s;" in result.css
        assert result.stats["animations_updated"] == 1
        assert result.stats["keyframes_scoped"] == 1

    def test_keyframes_left_alone_when_disabled(self):
        """Test keyframe renaming can be switched off."""
        source = "@keyframes spin { to { opacity: 1; } }\n.s { animation-name: spin; }"

        result = scope_css(source, "foo", ScopeOptions(scope_keyframes=False))

        assert "@keyframes spin {" in result.css
        assert "animation-name: spin;" in result.css

    def test_media_rules_scoped(self):
        """Test rules inside @media are scoped and the media query is kept."""
        result = scope_css("@media (max-width: 600px) { .a { color: red; } }", "foo")

        assert f"@media (max-width: 600px) {{\n  {SCOPE} .a {{\n    color: red;\n  }}\n}}" in result.css

    def test_font_face_not_scoped(self):
        """Test descriptor blocks such as @font-face stay as they are."""
        result = scope_css('@font-face { font-family: "Brand"; src: url("brand.woff2"); }', "foo")

        assert '@font-face {\n  font-family: "Brand";\n  src: url("brand.woff2");\n}' in result.css

    def test_statement_at_rules_kept(self):
        """Test @import statements survive unchanged."""
        result = scope_css('@import url("reset.css");\n.a { color: red; }', "foo")

        assert '@import url("reset.css");' in result.css

    def test_root_block(self):
        """Test :root declarations move onto the scope element."""
        result = scope_css(":root { --accent: #f00; }", "foo")

        assert f"{SCOPE} {{\n  --accent: #f00;\n}}" in result.css

    def test_scope_variables(self):
        """Test custom properties and their references are prefixed."""
        source = ":root { --accent: #f00; }\n.a { color: var(--accent, red); border-color: var(--foo-line); }"

        result = scope_css(source, "foo", ScopeOptions(scope_variables=True))

        assert "--foo-accent: #f00;" in result.css
        assert "color: var(--foo-accent, red);" in result.css
        assert "border-color: var(--foo-line);" in result.css
        assert result.stats["variables_scoped"] == 1

    def test_without_containment(self):
        """Test add_containment=False leaves selectors alone."""
        result = scope_css(".a { color: red; }", "foo", ScopeOptions(add_containment=False))

        assert result.css == f"{MARKER}\n.a {{\n  color: red;\n}}"

    def test_minify(self):
        """Test minified output strips comments and whitespace."""
        source = "/* header */\n.a ,\n .b {\n  color :  red ;\n  margin: 0  auto;\n}\n"

        result = scope_css(source, "foo", ScopeOptions(minify=True))

        assert result.css == f'{MARKER}{SCOPE} .a,{SCOPE} .b{{color:red;margin:0 auto;}}'

    def test_comments_preserved(self):
        """Test comments survive non-minified output."""
        result = scope_css("/* brand */\n.a { color: red; }", "foo")

        assert "/* brand */" in result.css

    def test_strings_with_braces(self):
        """Test braces inside strings do not break parsing."""
        result = scope_css('.a::after { content: "{ }"; }', "foo")

        assert f'{SCOPE} .a::after {{\n  content: "{{ }}";\n}}' in result.css
        assert result.warnings == []

    def test_idempotent(self):
        """Test scoping already scoped output returns it unchanged."""
        once = scope_css(".a { color: red; }\n@keyframes spin { to { opacity: 1; } }", "foo")
        twice = scope_css(once.css, "foo")

        assert twice.css == once.css
        assert twice.warnings == []

    def test_empty_stylesheet(self):
        """Test an empty stylesheet yields just the marker."""
        assert scope_css("", "foo").css == MARKER


class TestScopeWarnings:
    """Tests for degraded and flagged input."""

    def test_unbalanced_braces_return_original(self):
        """Test an unclosed block returns the input and a warning."""
        source = ".a { color: red;"

        result = scope_css(source, "foo")

        assert result.css == source
        assert len(result.warnings) == 1
        assert "left unscoped" in result.warnings[0]

    def test_stray_closing_brace(self):
        """Test a stray closing brace is a parse failure."""
        result = scope_css(".a { color: red; } }", "foo")

        assert result.css == ".a { color: red; } }"
        assert result.warnings

    @pytest.mark.parametrize(
        "css,message",
        [
            (".a { background: url(javascript:alert(1)); }", "JavaScript URLs"),
            (".a { width: expression(alert(1)); }", "CSS expressions"),
            (".a { -moz-binding: url(x.xml); }", "XBL bindings"),
            (".a { behavior: url(x.htc); }", "CSS behaviors"),
        ],
    )
    def test_security_patterns(self, css, message):
        """Test dangerous constructs are reported while the sheet is still scoped."""
        result = scope_css(css, "foo")

        assert any(message in warning for warning in result.warnings)
        assert result.css.startswith(MARKER)

    def test_naming_convention(self):
        """Test enforce_naming reports each off-convention class once."""
        source = ".btn { color: red; }\n.btn:hover { color: blue; }\n.foo-card { padding: 0; }"

        result = scope_css(source, "foo", ScopeOptions(enforce_naming=True))

        assert result.warnings == ["Class '.btn' does not follow the 'foo-' naming convention"]

    def test_custom_naming_prefix(self):
        """Test a custom naming prefix is honoured."""
        result = scope_css(".ui-btn { color: red; }", "foo", ScopeOptions(enforce_naming=True, naming_prefix="ui-"))

        assert result.warnings == []


class TestParser:
    """Tests for the stylesheet tree."""

    def test_nested_structure(self):
        """Test at-rules contain their child rules."""
        nodes = parse_stylesheet("@media print { .a { color: red; } }")

        assert len(nodes) == 1
        assert nodes[0].base_name == "media"
        assert nodes[0].children[0].selector == ".a"

    def test_vendor_prefixed_keyframes(self):
        """Test -webkit-keyframes is recognised as keyframes."""
        result = scope_css("@-webkit-keyframes spin { to { opacity: 1; } }\n.s { -webkit-animation: spin 1s; }", "foo")

        assert "@-webkit-keyframes foo-spin {" in result.css
        assert "-webkit-animation: foo-spin 1s;" in result.css
