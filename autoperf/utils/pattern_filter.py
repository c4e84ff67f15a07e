#!filepath: autoperf/utils/pattern_filter.py
"""
Declarative record filter.

    items = [
        {"id": "A", "value": 200, "selected": True},
        {"id": "B", "value": 500, "selected": True},
    ]
    pattern_filter(items, ["selected", "value>300"])   # -> [items[1]]

Every expression is parsed into a small AST (path / literal / comparison /
negation / && / ||) and interpreted against the record. Nothing is ever
compiled or executed as Python code.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from autoperf import logs
from autoperf.utils.errors import FilterSyntaxError
from autoperf.utils.object_path import MISSING, lookup_key

UNDEFINED = MISSING

COMPARATORS = ("===", "!==", "==", "!=", ">=", "<=", ">", "<")

_TOKEN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<op>===|!==|==|!=|>=|<=|&&|\|\||[><!().\[\]])
  | (?P<ident>[A-Za-z_$][\w$]*)
    """,
    re.VERBOSE,
)

_KEYWORDS = {"true": True, "false": False, "null": None, "undefined": UNDEFINED}
_ESCAPE = re.compile(r"\\(.)")


# ------------------------------------------------------------------
# AST
# ------------------------------------------------------------------
@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class PathRef:
    keys: Tuple[Union[str, int], ...]


@dataclass(frozen=True)
class Not:
    operand: "Node"


@dataclass(frozen=True)
class Compare:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class BoolOp:
    op: str  # "&&" | "||"
    operands: Tuple["Node", ...]


Node = Union[Literal, PathRef, Not, Compare, BoolOp]


class EvaluationError(Exception):
    """Raised while interpreting a node; the record simply does not match."""


# ------------------------------------------------------------------
# Tokenizer / parser
# ------------------------------------------------------------------
@dataclass(frozen=True)
class _Token:
    kind: str
    text: str


def _tokenize(expression: str) -> List[_Token]:
    tokens: List[_Token] = []
    pos = 0
    while pos < len(expression):
        match = _TOKEN.match(expression, pos)
        if not match:
            raise FilterSyntaxError(
                expression, f"unexpected character {expression[pos]!r} at {pos}"
            )
        kind = match.lastgroup
        if kind != "ws":
            tokens.append(_Token(kind, match.group()))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive descent over the token list."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = _tokenize(expression)
        self.pos = 0

    # -------- helpers --------
    def _peek(self) -> Optional[_Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, *texts: str) -> Optional[_Token]:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in texts:
            self.pos += 1
            return token
        return None

    def _expect(self, text: str) -> None:
        if not self._accept(text):
            raise self._error(f"expected {text!r}")

    def _error(self, message: str) -> FilterSyntaxError:
        token = self._peek()
        where = f"near {token.text!r}" if token else "at end of expression"
        return FilterSyntaxError(self.expression, f"{message} {where}")

    # -------- grammar --------
    def parse(self) -> Node:
        if not self.tokens:
            raise FilterSyntaxError(self.expression, "empty expression")
        node = self._or()
        if self._peek() is not None:
            raise self._error("unexpected token")
        return node

    def _or(self) -> Node:
        operands = [self._and()]
        while self._accept("||"):
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else BoolOp("||", tuple(operands))

    def _and(self) -> Node:
        operands = [self._unary()]
        while self._accept("&&"):
            operands.append(self._unary())
        return operands[0] if len(operands) == 1 else BoolOp("&&", tuple(operands))

    def _unary(self) -> Node:
        if self._accept("!"):
            return Not(self._unary())
        return self._comparison()

    def _comparison(self) -> Node:
        left = self._operand()
        op = self._accept(*COMPARATORS)
        if op is None:
            return left
        return Compare(op.text, left, self._operand())

    def _operand(self) -> Node:
        if self._accept("("):
            node = self._or()
            self._expect(")")
            return node

        token = self._peek()
        if token is None:
            raise self._error("expected a value")

        if token.kind == "number":
            self.pos += 1
            return Literal(_number(token.text))
        if token.kind == "string":
            self.pos += 1
            return Literal(_unquote(token.text))
        if token.kind == "ident":
            if token.text in _KEYWORDS:
                self.pos += 1
                return Literal(_KEYWORDS[token.text])
            return self._path()
        raise self._error("expected a value")

    def _path(self) -> PathRef:
        keys: List[Union[str, int]] = [self.tokens[self.pos].text]
        self.pos += 1
        while True:
            if self._accept("."):
                token = self._peek()
                if token is None or token.kind != "ident":
                    raise self._error("expected a property name")
                keys.append(token.text)
                self.pos += 1
            elif self._accept("["):
                token = self._peek()
                if token is not None and token.kind == "number" and token.text.isdigit():
                    keys.append(int(token.text))
                elif token is not None and token.kind == "string":
                    keys.append(_unquote(token.text))
                else:
                    raise self._error("expected an index or quoted key")
                self.pos += 1
                self._expect("]")
            else:
                return PathRef(tuple(keys))


def _number(text: str) -> Union[int, float]:
    try:
        return int(text)
    except ValueError:
        return float(text)


def _unquote(text: str) -> str:
    return _ESCAPE.sub(r"\1", text[1:-1])


@lru_cache(maxsize=512)
def compile_filter(expression: str) -> Node:
    """
    Parse one expression. Raises FilterSyntaxError on malformed input.
    """
    return _Parser(expression.strip()).parse()


# ------------------------------------------------------------------
# Interpreter
# ------------------------------------------------------------------
def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def truthy(value: Any) -> bool:
    """
    missing / None / False / 0 / NaN / "" -> False
    anything else (including empty containers) -> True
    """
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _strict_equal(left: Any, right: Any) -> bool:
    if left is UNDEFINED or right is UNDEFINED:
        return left is right
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _loose_equal(left: Any, right: Any) -> bool:
    nullish = (None, UNDEFINED)
    if left in nullish or right in nullish:
        return left in nullish and right in nullish
    if isinstance(left, str) != isinstance(right, str) or isinstance(left, bool) != isinstance(right, bool):
        a, b = _as_number(left), _as_number(right)
        if a is not None and b is not None:
            return a == b
    return _strict_equal(left, right)


def _ordered(left: Any, right: Any) -> Tuple[Any, Any]:
    if isinstance(left, str) and isinstance(right, str):
        return left, right
    if isinstance(left, bool) or isinstance(right, bool):
        raise EvaluationError(f"cannot order {left!r} and {right!r}")
    a, b = _as_number(left), _as_number(right)
    if a is None or b is None:
        raise EvaluationError(f"cannot order {left!r} and {right!r}")
    return a, b


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "===":
        return _strict_equal(left, right)
    if op == "!==":
        return not _strict_equal(left, right)
    if op == "==":
        return _loose_equal(left, right)
    if op == "!=":
        return not _loose_equal(left, right)

    a, b = _ordered(left, right)
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    if op == "<":
        return a < b
    return a <= b


def evaluate(node: Node, record: Any) -> Any:
    """Interpret `node` against `record` (read-only)."""
    if isinstance(node, Literal):
        return node.value

    if isinstance(node, PathRef):
        current = record
        for key in node.keys:
            if current is UNDEFINED or current is None:
                raise EvaluationError(f"cannot read {key!r} of {current!r}")
            current = lookup_key(current, key)
        # Status.RETRIEVED reads as "Retrieved"
        return current.value if isinstance(current, Enum) else current

    if isinstance(node, Not):
        return not truthy(evaluate(node.operand, record))

    if isinstance(node, Compare):
        return _compare(node.op, evaluate(node.left, record), evaluate(node.right, record))

    if node.op == "&&":
        return all(truthy(evaluate(operand, record)) for operand in node.operands)
    return any(truthy(evaluate(operand, record)) for operand in node.operands)


def matches(node: Node, record: Any) -> bool:
    try:
        return truthy(evaluate(node, record))
    except (EvaluationError, TypeError, ValueError):
        return False


# ------------------------------------------------------------------
# Public entry
# ------------------------------------------------------------------
def pattern_filter(items: Iterable[Any], filters: Optional[Sequence[str]] = None) -> List[Any]:
    """
    Keep the items for which every expression in `filters` is truthy.

    Expressions are applied one at a time, each narrowing the previous
    survivors. A malformed expression matches nothing (and is logged).
    """
    items = list(items)

    if filters is None:
        return items
    if isinstance(filters, str):
        filters = [filters]

    for expression in filters:
        expression = (expression or "").strip()
        if not expression:
            continue

        try:
            node = compile_filter(expression)
        except FilterSyntaxError as e:
            logs.warning(f"[PatternFilter] {e} -> no record matches")
            return []

        items = [item for item in items if matches(node, item)]

    return items
