"""
Filter expression parser.

Turns a caller-supplied filter string into a Specification tree, validated
against the entity's capability descriptor. Only this closed grammar is
accepted; anything else is rejected with InvalidFilterExpressionError:

    expr       := or_expr
    or_expr    := and_expr (("or" | "||") and_expr)*
    and_expr   := not_expr (("and" | "&&") not_expr)*
    not_expr   := ("not" | "!") not_expr | primary
    primary    := "(" expr ")" | field op literal | field "." method "(" string ")" | field
    op         := "==" | "=" | "!=" | "<>" | "<" | "<=" | ">" | ">="
    method     := Contains | StartsWith | EndsWith
    literal    := string | number | true | false | null

A bare field is only valid for boolean columns. Keywords and method names
are case-insensitive; field names resolve like everywhere else (see
EntityCapabilities.resolve_field).

Examples:
    Nid == "A1"
    Country = 'CO' and not (City == "Cali" || City == "Cartagena")
    Name.Contains("acme") && IsActive
    Phone != null
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from rest_api.services.crud.capabilities import EntityCapabilities, FieldInfo, convert_scalar
from rest_api.services.crud.specification import (
    COMPARISON_OPERATORS,
    ComparisonSpecification,
    IsTrueSpecification,
    Specification,
    TextMatchSpecification,
)
from shared.utils.exceptions import InvalidFilterExpressionError

_TOKEN_RE = re.compile(
    r"""
    (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    | (?P<number>-?\d+(?:\.\d+)?)
    | (?P<op>==|!=|<>|<=|>=|&&|\|\||[<>=!().])
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)

_KEYWORDS = {"and", "or", "not", "true", "false", "null"}
_TEXT_METHODS = {"contains": "contains", "startswith": "startswith", "endswith": "endswith"}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int

    @property
    def keyword(self) -> str | None:
        if self.kind == "name" and self.text.lower() in _KEYWORDS:
            return self.text.lower()
        return None


class FilterSyntaxError(ValueError):
    """Raised by the parser; converted to InvalidFilterExpressionError."""


def tokenize(expression: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    length = len(expression)
    while pos < length:
        if expression[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise FilterSyntaxError(f"unexpected character {expression[pos]!r} at position {pos}")
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), pos))
        pos = match.end()
    return tokens


def _unquote(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text[1:-1])


class _Parser:
    def __init__(self, tokens: list[Token], caps: EntityCapabilities):
        self._tokens = tokens
        self._index = 0
        self._caps = caps

    # -- token helpers -------------------------------------------------------

    def _peek(self) -> Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise FilterSyntaxError("unexpected end of expression")
        self._index += 1
        return token

    def _expect_op(self, text: str) -> Token:
        token = self._advance()
        if token.kind != "op" or token.text != text:
            raise FilterSyntaxError(f"expected '{text}' at position {token.pos}")
        return token

    def _at_op(self, *texts: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == "op" and token.text in texts

    def _at_keyword(self, word: str) -> bool:
        token = self._peek()
        return token is not None and token.keyword == word

    # -- grammar -------------------------------------------------------------

    def parse(self) -> Specification:
        if not self._tokens:
            raise FilterSyntaxError("empty expression")
        spec = self._or_expr()
        token = self._peek()
        if token is not None:
            raise FilterSyntaxError(f"unexpected '{token.text}' at position {token.pos}")
        return spec

    def _or_expr(self) -> Specification:
        spec = self._and_expr()
        while self._at_op("||") or self._at_keyword("or"):
            self._advance()
            spec = spec | self._and_expr()
        return spec

    def _and_expr(self) -> Specification:
        spec = self._not_expr()
        while self._at_op("&&") or self._at_keyword("and"):
            self._advance()
            spec = spec & self._not_expr()
        return spec

    def _not_expr(self) -> Specification:
        if self._at_op("!") or self._at_keyword("not"):
            self._advance()
            return ~self._not_expr()
        return self._primary()

    def _primary(self) -> Specification:
        if self._at_op("("):
            self._advance()
            spec = self._or_expr()
            self._expect_op(")")
            return spec

        token = self._advance()
        if token.kind != "name" or token.keyword is not None:
            raise FilterSyntaxError(f"expected a field name at position {token.pos}, got '{token.text}'")

        info = self._caps.resolve_field(token.text)
        if info is None:
            raise FilterSyntaxError(f"unknown field '{token.text}'")
        column = self._caps.column(info.name)

        if self._at_op("."):
            return self._text_method(info, column)

        if self._at_op(*COMPARISON_OPERATORS):
            op = self._advance().text
            value = self._literal(info)
            if value is None and COMPARISON_OPERATORS[op] not in (
                COMPARISON_OPERATORS["=="],
                COMPARISON_OPERATORS["!="],
            ):
                raise FilterSyntaxError(f"null can only be compared with == or != ({info.name})")
            return ComparisonSpecification(column, op, value)

        if info.python_type is not bool:
            raise FilterSyntaxError(f"field '{info.name}' is not boolean and needs a comparison")
        return IsTrueSpecification(column)

    def _text_method(self, info: FieldInfo, column: Any) -> Specification:
        self._expect_op(".")
        token = self._advance()
        mode = _TEXT_METHODS.get(token.text.lower()) if token.kind == "name" else None
        if mode is None:
            raise FilterSyntaxError(f"unsupported method '{token.text}' at position {token.pos}")
        if not info.is_text:
            raise FilterSyntaxError(f"{token.text}() requires a text field, '{info.name}' is {info.kind}")
        self._expect_op("(")
        argument = self._advance()
        if argument.kind != "string":
            raise FilterSyntaxError(f"{token.text}() takes a quoted string at position {argument.pos}")
        self._expect_op(")")
        return TextMatchSpecification(column, mode, _unquote(argument.text))

    def _literal(self, info: FieldInfo) -> Any:
        token = self._advance()
        if token.kind == "string":
            raw: Any = _unquote(token.text)
        elif token.kind == "number":
            raw = token.text
        elif token.keyword in ("true", "false"):
            raw = token.keyword == "true"
        elif token.keyword == "null":
            return None
        else:
            raise FilterSyntaxError(f"expected a literal at position {token.pos}, got '{token.text}'")

        try:
            return convert_scalar(info.python_type, raw)
        except ValueError:
            raise FilterSyntaxError(f"{token.text} is not a valid {info.kind} for '{info.name}'")


def parse_filter(caps: EntityCapabilities, expression: str) -> Specification:
    """
    Parse and validate a filter expression for one entity type.

    Raises:
        InvalidFilterExpressionError: On syntax errors, unknown fields or
            literals that do not fit the field's kind.
    """
    try:
        return _Parser(tokenize(expression or ""), caps).parse()
    except FilterSyntaxError as e:
        raise InvalidFilterExpressionError(caps.entity_name, expression, str(e))
