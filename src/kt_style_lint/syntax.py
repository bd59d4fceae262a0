"""Token and node types describing a scanned Kotlin file.

A :class:`SyntaxView` is the only thing rules see. It carries the raw text,
the token stream and the structural nodes derived from it. Nodes come from a
closed set of kinds so rules can dispatch on ``node.kind``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class TokenKind(str, Enum):
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    NUMBER = "number"
    STRING = "string"
    CHAR = "char"
    OPERATOR = "operator"
    ANNOTATION = "annotation"
    LABEL = "label"
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COLON = ":"
    COMMA = ","
    SEMICOLON = ";"
    ARROW = "->"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int
    start: int
    end: int
    index: int

    @property
    def backticked(self) -> bool:
        return self.text.startswith("`")


class ParseError(ValueError):
    """Malformed source.

    ``line``/``column`` locate the problem; ``offset`` is where the
    well-formed prefix of the file ends.
    """

    def __init__(self, message: str, line: int, column: int, *, offset: int = 0):
        super().__init__(f"{message} at {line}:{column}")
        self.message = message
        self.line = line
        self.column = column
        self.offset = offset


class NodeKind(str, Enum):
    DECLARATION = "declaration"
    COLON = "colon"
    LAMBDA = "lambda"
    IDENTIFIER = "identifier"


class DeclarationKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    OBJECT = "object"
    FUNCTION = "function"
    PROPERTY = "property"
    TYPEALIAS = "typealias"


class ColonKind(str, Enum):
    TYPE_ANNOTATION = "type_annotation"
    SUPERTYPE = "supertype"
    OTHER = "other"


class IdentifierRole(str, Enum):
    TYPE = "type"
    FUNCTION = "function"
    PROPERTY = "property"


@dataclass(frozen=True)
class Declaration:
    kind: ClassVar[NodeKind] = NodeKind.DECLARATION

    declaration_kind: DeclarationKind
    keyword: Token
    name: Token | None
    modifiers: frozenset[str] = frozenset()
    return_type: str | None = None

    @property
    def anchor(self) -> Token:
        return self.name or self.keyword

    @property
    def end(self) -> int:
        return self.anchor.end


@dataclass(frozen=True)
class ColonUse:
    kind: ClassVar[NodeKind] = NodeKind.COLON

    token: Token
    colon_kind: ColonKind

    @property
    def anchor(self) -> Token:
        return self.token

    @property
    def end(self) -> int:
        return self.token.end


@dataclass(frozen=True)
class LambdaSpan:
    kind: ClassVar[NodeKind] = NodeKind.LAMBDA

    open: Token
    close: Token
    parameters: tuple[Token, ...] = ()
    arrow: Token | None = None

    @property
    def anchor(self) -> Token:
        return self.open

    @property
    def end(self) -> int:
        return self.close.end

    @property
    def empty(self) -> bool:
        return self.close.index == self.open.index + 1


@dataclass(frozen=True)
class Identifier:
    kind: ClassVar[NodeKind] = NodeKind.IDENTIFIER

    token: Token
    role: IdentifierRole

    @property
    def anchor(self) -> Token:
        return self.token

    @property
    def end(self) -> int:
        return self.token.end


Node = Union[Declaration, ColonUse, LambdaSpan, Identifier]


@dataclass(frozen=True)
class SyntaxView:
    path: str
    text: str
    tokens: tuple[Token, ...]
    nodes: tuple[Node, ...]
    error: ParseError | None = None

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def of_kind(self, kind: NodeKind) -> Iterator[Node]:
        return (node for node in self.nodes if node.kind is kind)

    def declarations(self) -> Iterator[Declaration]:
        return self.of_kind(NodeKind.DECLARATION)  # type: ignore[return-value]

    def colons(self) -> Iterator[ColonUse]:
        return self.of_kind(NodeKind.COLON)  # type: ignore[return-value]

    def lambdas(self) -> Iterator[LambdaSpan]:
        return self.of_kind(NodeKind.LAMBDA)  # type: ignore[return-value]

    def identifiers(self) -> Iterator[Identifier]:
        return self.of_kind(NodeKind.IDENTIFIER)  # type: ignore[return-value]

    def previous(self, token: Token) -> Token | None:
        if token.index == 0:
            return None
        return self.tokens[token.index - 1]

    def following(self, token: Token) -> Token | None:
        if token.index + 1 >= len(self.tokens):
            return None
        return self.tokens[token.index + 1]

    def touches_previous(self, token: Token) -> bool:
        prev = self.previous(token)
        return prev is not None and prev.end == token.start

    def touches_next(self, token: Token) -> bool:
        nxt = self.following(token)
        return nxt is not None and nxt.start == token.end


_UPPER_CAMEL_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_LOWER_CAMEL_RE = re.compile(r"^[a-z][A-Za-z0-9]*$")
_SCREAMING_SNAKE_RE = re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*$")


def is_upper_camel(name: str) -> bool:
    return bool(_UPPER_CAMEL_RE.match(name))


def is_lower_camel(name: str) -> bool:
    return bool(_LOWER_CAMEL_RE.match(name))


def is_screaming_snake(name: str) -> bool:
    return bool(_SCREAMING_SNAKE_RE.match(name))
