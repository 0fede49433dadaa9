"""Rewrite a skin stylesheet so it only applies under ``[data-skin="<id>"]``.

The stylesheet is parsed into a small tree of style rules, at-rules,
declarations and comments. Rewrites run on the tree and the tree is
serialized back to text:

- selector scoping (``add_containment``) for top-level rules and rules
  nested in conditional group at-rules (``@media``, ``@supports``...)
- ``@keyframes`` renaming plus ``animation``/``animation-name`` updates
- custom property prefixing (``scope_variables``)

Output always starts with a marker comment; input that already carries the
marker is returned untouched, which makes scoping idempotent.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from restaurant_skins.metrics import record_scope_warnings

logger = structlog.get_logger()

MARKER_TEMPLATE = "/* skin-scoped:{skin_id} */"

# Rules inside these at-rules are ordinary style rules and get scoped.
GROUPING_AT_RULES = {"media", "supports", "layer", "container", "document", "scope"}

ROOT_SELECTOR_RE = re.compile(r"^(?::root|html|body)(?![\w-])", re.IGNORECASE)
ANIMATION_PROP_RE = re.compile(r"^(?:-[a-z]+-)?animation(?:-name)?$", re.IGNORECASE)
VAR_REFERENCE_RE = re.compile(r"var\(\s*--([\w-]+)")
CLASS_RE = re.compile(r"\.(-?[_a-zA-Z][\w-]*)")
ATTRIBUTE_RE = re.compile(r"\[[^\]]*\]")
AT_RULE_RE = re.compile(r"^@([\w-]+)\s*(.*)$", re.DOTALL)
VENDOR_PREFIX_RE = re.compile(r"^-[a-z]+-")

SECURITY_PATTERNS = [
    (re.compile(r"javascript:", re.IGNORECASE), "JavaScript URLs are not allowed in skin CSS"),
    (re.compile(r"expression\s*\(", re.IGNORECASE), "CSS expressions are not allowed in skin CSS"),
    (re.compile(r"-moz-binding", re.IGNORECASE), "XBL bindings are not allowed in skin CSS"),
    (re.compile(r"behavior\s*:", re.IGNORECASE), "CSS behaviors are not allowed in skin CSS"),
]


class CSSParseError(ValueError):
    """Stylesheet could not be parsed into balanced blocks."""


@dataclass
class ScopeOptions:
    """Scoping switches. Defaults match a production skin build."""

    scope_keyframes: bool = True
    scope_variables: bool = False
    add_containment: bool = True
    minify: bool = False
    enforce_naming: bool = False
    naming_prefix: str | None = None
    preserve_globals: tuple[str, ...] = ("*", "::before", "::after")


@dataclass
class ScopeResult:
    css: str
    warnings: list[str] = field(default_factory=list)
    stats: dict = field(default_factory=dict)


# Tree


@dataclass
class Comment:
    text: str


@dataclass
class Declaration:
    prop: str
    value: str


@dataclass
class Raw:
    text: str


@dataclass
class StyleRule:
    selector: str
    children: list = field(default_factory=list)


@dataclass
class AtRule:
    name: str
    params: str
    children: list | None = None

    @property
    def base_name(self) -> str:
        """Lower-case name without a vendor prefix (``-webkit-keyframes`` -> ``keyframes``)."""
        return VENDOR_PREFIX_RE.sub("", self.name.lower())


class _Parser:
    """Brace-matching parser aware of strings, comments and parentheses."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0

    def parse(self) -> list:
        return self._parse_block(top_level=True)

    def _parse_block(self, top_level: bool) -> list:
        source = self.source
        nodes: list = []
        buf: list[str] = []
        depth = 0

        while self.pos < len(source):
            ch = source[self.pos]

            if source.startswith("/*", self.pos):
                end = source.find("*/", self.pos + 2)
                if end == -1:
                    raise CSSParseError(f"unterminated comment at offset {self.pos}")
                text = source[self.pos:end + 2]
                if "".join(buf).strip():
                    buf.append(text)
                else:
                    nodes.append(Comment(text))
                    buf = []
                self.pos = end + 2
                continue

            if ch in ("'", '"'):
                buf.append(self._read_string(ch))
                continue

            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(depth - 1, 0)
            elif ch == "{" and depth == 0:
                prelude = "".join(buf).strip()
                self.pos += 1
                children = self._parse_block(top_level=False)
                nodes.append(self._block_node(prelude, children))
                buf = []
                continue
            elif ch == "}" and depth == 0:
                if top_level:
                    raise CSSParseError(f"unexpected '}}' at offset {self.pos}")
                self._flush_statement(buf, nodes)
                self.pos += 1
                return nodes
            elif ch == ";" and depth == 0:
                self._flush_statement(buf, nodes)
                buf = []
                self.pos += 1
                continue

            buf.append(ch)
            self.pos += 1

        if not top_level:
            raise CSSParseError("unclosed block at end of stylesheet")
        self._flush_statement(buf, nodes)
        return nodes

    def _read_string(self, quote: str) -> str:
        source = self.source
        start = self.pos
        self.pos += 1
        while self.pos < len(source):
            ch = source[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            if ch == "\n":
                break
            self.pos += 1
            if ch == quote:
                return source[start:self.pos]
        raise CSSParseError(f"unterminated string at offset {start}")

    @staticmethod
    def _flush_statement(buf: list[str], nodes: list) -> None:
        text = "".join(buf).strip()
        if not text:
            return
        match = AT_RULE_RE.match(text)
        if match:
            nodes.append(AtRule(match.group(1), match.group(2).strip()))
        elif ":" in text:
            prop, value = text.split(":", 1)
            nodes.append(Declaration(prop.strip(), value.strip()))
        else:
            nodes.append(Raw(text))

    @staticmethod
    def _block_node(prelude: str, children: list):
        if prelude.startswith("@"):
            match = AT_RULE_RE.match(prelude)
            if match:
                return AtRule(match.group(1), match.group(2).strip(), children)
        return StyleRule(prelude, children)


def parse_stylesheet(source: str) -> list:
    """Parse CSS text into a node list. Raises CSSParseError."""
    return _Parser(source).parse()


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on ``separator`` outside strings, parentheses and brackets."""
    parts = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(depth - 1, 0)
        elif ch == separator and depth == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return parts


def collapse_whitespace(text: str) -> str:
    """Drop comments and collapse whitespace runs, leaving string contents alone."""
    out = []
    quote = None
    i = 0
    pending_space = False
    while i < len(text):
        ch = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < len(text):
                out.append(text[i + 1])
                i += 1
            elif ch == quote:
                quote = None
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = len(text) if end == -1 else end + 2
            pending_space = True
            continue
        elif ch.isspace():
            pending_space = True
        else:
            if pending_space and out:
                out.append(" ")
            pending_space = False
            if ch in ("'", '"'):
                quote = ch
            out.append(ch)
        i += 1
    return "".join(out)


def serialize(nodes: list, minify: bool = False, indent: int = 0) -> str:
    """Render a node list back to CSS text."""
    if minify:
        return "".join(_serialize_min(node) for node in nodes if not isinstance(node, Comment))

    pad = "  " * indent
    lines = []
    for node in nodes:
        if isinstance(node, Comment):
            lines.append(f"{pad}{node.text}")
        elif isinstance(node, Declaration):
            lines.append(f"{pad}{node.prop}: {node.value};")
        elif isinstance(node, Raw):
            lines.append(f"{pad}{node.text};")
        elif isinstance(node, StyleRule):
            lines.append(f"{pad}{node.selector} {{")
            lines.append(serialize(node.children, indent=indent + 1))
            lines.append(f"{pad}}}")
        elif isinstance(node, AtRule):
            head = f"@{node.name} {node.params}".rstrip()
            if node.children is None:
                lines.append(f"{pad}{head};")
            else:
                lines.append(f"{pad}{head} {{")
                lines.append(serialize(node.children, indent=indent + 1))
                lines.append(f"{pad}}}")
    return "\n".join(line for line in lines if line)


def _serialize_min(node) -> str:
    if isinstance(node, Declaration):
        return f"{collapse_whitespace(node.prop)}:{collapse_whitespace(node.value)};"
    if isinstance(node, Raw):
        return f"{collapse_whitespace(node.text)};"
    if isinstance(node, StyleRule):
        selector = ",".join(collapse_whitespace(part).strip() for part in split_top_level(node.selector))
        return f"{selector}{{{serialize(node.children, minify=True)}}}"
    if isinstance(node, AtRule):
        head = collapse_whitespace(f"@{node.name} {node.params}").strip()
        if node.children is None:
            return f"{head};"
        return f"{head}{{{serialize(node.children, minify=True)}}}"
    return ""


class CSSScoper:
    """Scopes stylesheets for one skin."""

    def __init__(self, skin_id: str, options: ScopeOptions | None = None):
        self.skin_id = skin_id
        self.options = options or ScopeOptions()
        self.scope = f'[data-skin="{skin_id}"]'
        self.marker = MARKER_TEMPLATE.format(skin_id=skin_id)
        self._warnings: list[str] = []
        self._stats = self._empty_stats()
        self._keyframes: set[str] = set()

    @staticmethod
    def _empty_stats() -> dict:
        return {
            "rules_scoped": 0,
            "keyframes_scoped": 0,
            "variables_scoped": 0,
            "animations_updated": 0,
            "size": 0,
        }

    def process_file(self, file_path: str | Path) -> ScopeResult:
        return self.process(Path(file_path).read_text(encoding="utf-8"))

    def process(self, source: str) -> ScopeResult:
        """Scope ``source``. Never raises; failures return the input unchanged."""
        self._warnings = []
        self._stats = self._empty_stats()
        self._keyframes = set()

        if source.lstrip().startswith(self.marker):
            return ScopeResult(css=source, warnings=[], stats={**self._stats, "size": len(source.encode("utf-8"))})

        self._check_security(source)

        try:
            nodes = parse_stylesheet(source)
            self._collect_keyframes(nodes)
            self._rewrite(nodes, scoping=self.options.add_containment)
            body = serialize(nodes, minify=self.options.minify)
        except CSSParseError as e:
            logger.warning("css_parse_failed", skin_id=self.skin_id, error=str(e))
            self._warnings.append(f"Could not parse stylesheet, left unscoped: {e}")
            return self._result(source)
        except Exception as e:
            logger.error("css_scope_failed", skin_id=self.skin_id, error=str(e))
            self._warnings.append(f"Stylesheet scoping failed, left unscoped: {e}")
            return self._result(source)

        separator = "" if self.options.minify else "\n"
        css = f"{self.marker}{separator}{body}" if body else self.marker
        result = self._result(css)

        logger.debug("css_scoped", skin_id=self.skin_id, warnings=len(result.warnings), **result.stats)
        return result

    def _result(self, css: str) -> ScopeResult:
        stats = {**self._stats, "size": len(css.encode("utf-8"))}
        record_scope_warnings(self.skin_id, len(self._warnings))
        return ScopeResult(css=css, warnings=list(self._warnings), stats=stats)

    def _check_security(self, source: str) -> None:
        for pattern, message in SECURITY_PATTERNS:
            if pattern.search(source):
                self._warnings.append(message)
                logger.warning("css_security_warning", skin_id=self.skin_id, message=message)

    # Rewrites

    def _collect_keyframes(self, nodes: list) -> None:
        for node in nodes:
            if isinstance(node, AtRule) and node.children is not None:
                if node.base_name == "keyframes":
                    name = node.params.strip().strip("'\"")
                    if name:
                        self._keyframes.add(name)
                else:
                    self._collect_keyframes(node.children)

    def _scoped_keyframe_name(self, name: str) -> str:
        if name.startswith(f"{self.skin_id}-"):
            return name
        return f"{self.skin_id}-{name}"

    def _rewrite(self, nodes: list, scoping: bool) -> None:
        for node in nodes:
            if isinstance(node, StyleRule):
                if self.options.enforce_naming:
                    self._check_naming(node.selector)
                if scoping:
                    node.selector = self.scope_selector_list(node.selector)
                    self._stats["rules_scoped"] += 1
                self._rewrite(node.children, scoping=False)
            elif isinstance(node, AtRule):
                if node.children is None:
                    continue
                name = node.base_name
                if name == "keyframes" and self.options.scope_keyframes:
                    scoped = self._scoped_keyframe_name(node.params.strip().strip("'\""))
                    if scoped != node.params:
                        node.params = scoped
                        self._stats["keyframes_scoped"] += 1
                self._rewrite(node.children, scoping=scoping and name in GROUPING_AT_RULES)
            elif isinstance(node, Declaration):
                self._rewrite_declaration(node)

    def _rewrite_declaration(self, decl: Declaration) -> None:
        if self.options.scope_variables:
            if decl.prop.startswith("--") and not decl.prop.startswith(f"--{self.skin_id}-"):
                decl.prop = f"--{self.skin_id}-{decl.prop[2:]}"
                self._stats["variables_scoped"] += 1
            if "var(" in decl.value:
                decl.value = VAR_REFERENCE_RE.sub(self._scope_var_reference, decl.value)

        if self.options.scope_keyframes and self._keyframes and ANIMATION_PROP_RE.match(decl.prop):
            updated = self._rewrite_animation(decl.value)
            if updated != decl.value:
                decl.value = updated
                self._stats["animations_updated"] += 1

    def _scope_var_reference(self, match: re.Match) -> str:
        name = match.group(1)
        if name.startswith(f"{self.skin_id}-"):
            return match.group(0)
        return f"var(--{self.skin_id}-{name}"

    def _rewrite_animation(self, value: str) -> str:
        animations = []
        for animation in split_top_level(value):
            tokens = animation.split()
            tokens = [
                self._scoped_keyframe_name(token) if token in self._keyframes else token
                for token in tokens
            ]
            animations.append(" ".join(tokens))
        return ", ".join(animations)

    def scope_selector_list(self, selector_list: str) -> str:
        return ", ".join(self.scope_selector(part) for part in split_top_level(selector_list))

    def scope_selector(self, selector: str) -> str:
        """Prefix one selector with the skin scope.

        ``:root``, ``html`` and ``body`` become the scope element itself and
        pseudo-only selectors attach to it directly.
        """
        selector = " ".join(selector.split())
        if not selector or self.scope in selector:
            return selector

        for preserved in self.options.preserve_globals:
            if selector == preserved or selector.startswith(f"{preserved}:"):
                return selector

        root = ROOT_SELECTOR_RE.match(selector)
        if root:
            return self.scope + selector[root.end():]
        if selector.startswith(":"):
            return self.scope + selector
        return f"{self.scope} {selector}"

    def _check_naming(self, selector: str) -> None:
        prefix = self.options.naming_prefix or f"{self.skin_id}-"
        for class_name in CLASS_RE.findall(ATTRIBUTE_RE.sub("", selector)):
            if class_name.startswith(prefix):
                continue
            message = f"Class '.{class_name}' does not follow the '{prefix}' naming convention"
            if message not in self._warnings:
                self._warnings.append(message)


def scope_css(source: str, skin_id: str, options: ScopeOptions | None = None) -> ScopeResult:
    """Scope a stylesheet for ``skin_id``."""
    return CSSScoper(skin_id, options).process(source)
