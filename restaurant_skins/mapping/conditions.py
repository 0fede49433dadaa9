"""Visibility conditions: a small boolean expression language over data paths.

Grammar::

    expr       := or
    or         := and (("||" | "or") and)*
    and        := not (("&&" | "and") not)*
    not        := ("!" | "not") not | comparison
    comparison := operand (("==" | "!=" | ">" | ">=" | "<" | "<=") operand)?
    operand    := "(" expr ")" | number | string | true | false | null | path
"""

import operator
import re
from dataclasses import dataclass
from typing import Any

from restaurant_skins.mapping.paths import MISSING, parse_path, resolve_path

_TOKEN_RE = re.compile(
    r"""
    (?P<number>-?\d+(?:\.\d+)?(?![\w.]))
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<op>==|!=|>=|<=|&&|\|\||[<>!()])
  | (?P<path>\$?\.?[A-Za-z_][\w-]*(?:\.[A-Za-z_][\w-]*|\[-?\d+\])*)
    """,
    re.VERBOSE,
)

_ESCAPE_RE = re.compile(r"\\(.)")
_KEYWORDS = {"and": "&&", "or": "||", "not": "!"}
_CONSTANTS = {"true": True, "false": False, "null": None, "none": None}

_COMPARISONS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


class ConditionSyntaxError(ValueError):
    """Condition text does not match the grammar."""


def truthy(value: Any) -> bool:
    """Empty strings, sequences and mappings are false, as are None and MISSING."""
    if value is None or value is MISSING:
        return False
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return bool(value)


@dataclass(frozen=True)
class Const:
    value: Any

    def evaluate(self, data: Any) -> Any:
        return self.value


@dataclass(frozen=True)
class PathExpr:
    path: tuple

    def evaluate(self, data: Any) -> Any:
        value = resolve_path(data, self.path)
        return None if value is MISSING else value


@dataclass(frozen=True)
class Not:
    operand: Any

    def evaluate(self, data: Any) -> bool:
        return not truthy(self.operand.evaluate(data))


@dataclass(frozen=True)
class And:
    left: Any
    right: Any

    def evaluate(self, data: Any) -> bool:
        return truthy(self.left.evaluate(data)) and truthy(self.right.evaluate(data))


@dataclass(frozen=True)
class Or:
    left: Any
    right: Any

    def evaluate(self, data: Any) -> bool:
        return truthy(self.left.evaluate(data)) or truthy(self.right.evaluate(data))


@dataclass(frozen=True)
class Compare:
    op: str
    left: Any
    right: Any

    def evaluate(self, data: Any) -> bool:
        left = self.left.evaluate(data)
        right = self.right.evaluate(data)
        if self.op in ("==", "!="):
            return _COMPARISONS[self.op](left, right)
        # Ordering against null or across incompatible types is false.
        if left is None or right is None:
            return False
        try:
            return _COMPARISONS[self.op](left, right)
        except TypeError:
            return False


@dataclass(frozen=True)
class Condition:
    """Parsed condition together with its source text."""

    source: str
    node: Any

    def evaluate(self, data: Any) -> bool:
        return truthy(self.node.evaluate(data))


def tokenize(text: str) -> list[tuple[str, Any]]:
    tokens = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ConditionSyntaxError(f"unexpected character {text[pos]!r} at offset {pos} in {text!r}")
        kind = match.lastgroup
        raw = match.group()
        if kind == "number":
            tokens.append(("const", float(raw) if "." in raw else int(raw)))
        elif kind == "string":
            tokens.append(("const", _ESCAPE_RE.sub(r"\1", raw[1:-1])))
        elif kind == "op":
            tokens.append(("op", raw))
        elif raw.lower() in _KEYWORDS:
            tokens.append(("op", _KEYWORDS[raw.lower()]))
        elif raw.lower() in _CONSTANTS:
            tokens.append(("const", _CONSTANTS[raw.lower()]))
        else:
            tokens.append(("path", parse_path(raw)))
        pos = match.end()
    return tokens


class _ConditionParser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def parse(self):
        if not self.tokens:
            raise ConditionSyntaxError("empty condition")
        node = self._or()
        if self.pos != len(self.tokens):
            raise ConditionSyntaxError(f"unexpected {self.tokens[self.pos][1]!r} in {self.text!r}")
        return node

    def _peek_op(self, *ops: str) -> str | None:
        if self.pos < len(self.tokens):
            kind, value = self.tokens[self.pos]
            if kind == "op" and value in ops:
                return value
        return None

    def _or(self):
        node = self._and()
        while self._peek_op("||"):
            self.pos += 1
            node = Or(node, self._and())
        return node

    def _and(self):
        node = self._not()
        while self._peek_op("&&"):
            self.pos += 1
            node = And(node, self._not())
        return node

    def _not(self):
        if self._peek_op("!"):
            self.pos += 1
            return Not(self._not())
        return self._comparison()

    def _comparison(self):
        left = self._operand()
        op = self._peek_op(*_COMPARISONS)
        if op:
            self.pos += 1
            return Compare(op, left, self._operand())
        return left

    def _operand(self):
        if self.pos >= len(self.tokens):
            raise ConditionSyntaxError(f"unexpected end of condition {self.text!r}")
        kind, value = self.tokens[self.pos]
        self.pos += 1
        if kind == "const":
            return Const(value)
        if kind == "path":
            return PathExpr(value)
        if value == "(":
            node = self._or()
            if not self._peek_op(")"):
                raise ConditionSyntaxError(f"missing ')' in {self.text!r}")
            self.pos += 1
            return node
        raise ConditionSyntaxError(f"unexpected {value!r} in {self.text!r}")


def parse_condition(text: str) -> Condition:
    """Parse condition text. Raises ConditionSyntaxError."""
    try:
        node = _ConditionParser(text).parse()
    except ConditionSyntaxError:
        raise
    except ValueError as e:
        raise ConditionSyntaxError(str(e)) from e
    return Condition(text, node)
