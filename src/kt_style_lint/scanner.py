from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass

from kt_style_lint.syntax import (
    ColonKind,
    ColonUse,
    Declaration,
    DeclarationKind,
    Identifier,
    IdentifierRole,
    LambdaSpan,
    Node,
    NodeKind,
    ParseError,
    SyntaxView,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)


KEYWORDS = frozenset(
    {
        "as",
        "break",
        "class",
        "continue",
        "do",
        "else",
        "false",
        "for",
        "fun",
        "if",
        "in",
        "interface",
        "is",
        "null",
        "object",
        "package",
        "return",
        "super",
        "this",
        "throw",
        "true",
        "try",
        "typealias",
        "typeof",
        "val",
        "var",
        "when",
        "while",
    }
)

MODIFIERS = frozenset(
    {
        "abstract",
        "actual",
        "annotation",
        "companion",
        "const",
        "data",
        "enum",
        "expect",
        "external",
        "final",
        "infix",
        "inline",
        "inner",
        "internal",
        "lateinit",
        "open",
        "operator",
        "override",
        "private",
        "protected",
        "public",
        "sealed",
        "suspend",
        "tailrec",
        "value",
    }
)

OPERATORS = (
    "===",
    "!==",
    "..<",
    "?.",
    "?:",
    "::",
    "->",
    "..",
    "!!",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "++",
    "--",
)

PUNCTUATION = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
}

DECLARATION_KEYWORDS = {
    "class": DeclarationKind.CLASS,
    "interface": DeclarationKind.INTERFACE,
    "object": DeclarationKind.OBJECT,
    "fun": DeclarationKind.FUNCTION,
    "val": DeclarationKind.PROPERTY,
    "var": DeclarationKind.PROPERTY,
    "typealias": DeclarationKind.TYPEALIAS,
}

TYPE_DECLARATIONS = {
    DeclarationKind.CLASS,
    DeclarationKind.INTERFACE,
    DeclarationKind.OBJECT,
    DeclarationKind.TYPEALIAS,
}

ROLE_BY_DECLARATION = {
    DeclarationKind.CLASS: IdentifierRole.TYPE,
    DeclarationKind.INTERFACE: IdentifierRole.TYPE,
    DeclarationKind.OBJECT: IdentifierRole.TYPE,
    DeclarationKind.TYPEALIAS: IdentifierRole.TYPE,
    DeclarationKind.FUNCTION: IdentifierRole.FUNCTION,
    DeclarationKind.PROPERTY: IdentifierRole.PROPERTY,
}

CONTROL_KEYWORDS = frozenset({"if", "for", "while", "when", "catch"})
BLOCK_KEYWORDS = frozenset({"else", "try", "finally", "do", "init"})

CONTINUE_AFTER = frozenset({",", ":", "(", "<", ".", "?.", "=", "->", "where", "by", "&", "|"})
CONTINUE_BEFORE = frozenset({":", "{", ".", "?.", "where", "by", "=", ",", ")", ">", "<"})

CLOSERS = {
    TokenKind.RBRACE: TokenKind.LBRACE,
    TokenKind.RPAREN: TokenKind.LPAREN,
    TokenKind.RBRACKET: TokenKind.LBRACKET,
}

NODE_ORDER = {
    NodeKind.DECLARATION: 0,
    NodeKind.IDENTIFIER: 1,
    NodeKind.COLON: 2,
    NodeKind.LAMBDA: 3,
}

IDENT_RE = re.compile(r"[^\W\d]\w*")
NUMBER_RE = re.compile(
    r"(?:0[xX][0-9a-fA-F_]+|0[bB][01_]+|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d[\d_]*)?)[uUlLfFdD]*"
)


def scan(text: str, path: str = "<memory>") -> SyntaxView:
    """Build a :class:`SyntaxView` for one Kotlin source file.

    Malformed input never raises: the first :class:`ParseError` is stored on
    the view and only nodes that end before the error point are kept.
    """
    lexer = _Lexer(text)
    error: ParseError | None = None
    cutoff = len(text)

    try:
        lexer.run()
    except ParseError as exc:
        error = exc
        cutoff = exc.offset

    tokens = lexer.tokens
    analyzer = _Analyzer(tokens, end_offset=len(text), truncated=error is not None)
    try:
        analyzer.run()
    except ParseError as exc:
        error = exc
        cutoff = exc.offset

    nodes = [node for node in analyzer.finish() if node.end <= cutoff]
    nodes.sort(key=lambda node: (node.anchor.start, NODE_ORDER[node.kind]))
    kept_tokens = tuple(token for token in tokens if token.end <= cutoff)

    if error is not None:
        logger.debug("%s: %s (kept %d of %d tokens)", path, error, len(kept_tokens), len(tokens))

    return SyntaxView(
        path=path,
        text=text,
        tokens=kept_tokens,
        nodes=tuple(nodes),
        error=error,
    )


class _Lexer:
    def __init__(self, text: str):
        self.text = text
        self.tokens: list[Token] = []
        self._line_starts = [0] + [match.end() for match in re.finditer(r"\n", text)]

    def position(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def error(self, message: str, offset: int) -> ParseError:
        line, column = self.position(offset)
        return ParseError(message, line, column, offset=offset)

    def run(self) -> list[Token]:
        text = self.text
        size = len(text)
        pos = 0

        while pos < size:
            ch = text[pos]

            if ch in " \t\r\n\f":
                pos += 1
                continue

            if text.startswith("//", pos):
                newline = text.find("\n", pos)
                pos = size if newline == -1 else newline
                continue

            if text.startswith("/*", pos):
                pos = self._block_comment_end(pos)
                continue

            if text.startswith('"""', pos):
                pos = self._emit(TokenKind.STRING, pos, self._raw_string_end(pos))
                continue

            if ch == '"':
                pos = self._emit(TokenKind.STRING, pos, self._string_end(pos))
                continue

            if ch == "'":
                pos = self._emit(TokenKind.CHAR, pos, self._char_end(pos))
                continue

            match = NUMBER_RE.match(text, pos)
            if match:
                pos = self._emit(TokenKind.NUMBER, pos, match.end())
                continue

            if ch == "`":
                closing = text.find("`", pos + 1)
                newline = text.find("\n", pos + 1)
                if closing == -1 or (newline != -1 and newline < closing):
                    raise self.error("unterminated backticked identifier", pos)
                pos = self._emit(TokenKind.IDENTIFIER, pos, closing + 1)
                continue

            match = IDENT_RE.match(text, pos)
            if match:
                word = match.group()
                end = match.end()
                if word in KEYWORDS:
                    pos = self._emit(TokenKind.KEYWORD, pos, end)
                elif end < size and text[end] == "@":
                    pos = self._emit(TokenKind.LABEL, pos, end + 1)
                else:
                    pos = self._emit(TokenKind.IDENTIFIER, pos, end)
                continue

            if ch == "@":
                match = IDENT_RE.match(text, pos + 1)
                if match:
                    pos = self._emit(TokenKind.ANNOTATION, pos, match.end())
                else:
                    pos = self._emit(TokenKind.OPERATOR, pos, pos + 1)
                continue

            operator = next((op for op in OPERATORS if text.startswith(op, pos)), None)
            if operator == "->":
                pos = self._emit(TokenKind.ARROW, pos, pos + 2)
            elif operator is not None:
                pos = self._emit(TokenKind.OPERATOR, pos, pos + len(operator))
            elif ch in PUNCTUATION:
                pos = self._emit(PUNCTUATION[ch], pos, pos + 1)
            else:
                pos = self._emit(TokenKind.OPERATOR, pos, pos + 1)

        return self.tokens

    def _emit(self, kind: TokenKind, start: int, end: int) -> int:
        line, column = self.position(start)
        self.tokens.append(
            Token(
                kind=kind,
                text=self.text[start:end],
                line=line,
                column=column,
                start=start,
                end=end,
                index=len(self.tokens),
            )
        )
        return end

    def _block_comment_end(self, start: int) -> int:
        text = self.text
        depth = 0
        pos = start
        while pos < len(text):
            if text.startswith("/*", pos):
                depth += 1
                pos += 2
            elif text.startswith("*/", pos):
                depth -= 1
                pos += 2
                if depth == 0:
                    return pos
            else:
                pos += 1
        raise self.error("unterminated block comment", start)

    def _string_end(self, start: int) -> int:
        text = self.text
        pos = start + 1
        while pos < len(text) and text[pos] != "\n":
            ch = text[pos]
            if ch == "\\":
                pos += 2
            elif ch == '"':
                return pos + 1
            elif text.startswith("${", pos):
                pos = self._template_end(pos + 2, start)
            else:
                pos += 1
        raise self.error("unterminated string literal", start)

    def _raw_string_end(self, start: int) -> int:
        text = self.text
        pos = start + 3
        while pos < len(text):
            if text.startswith('"""', pos):
                pos += 3
                while pos < len(text) and text[pos] == '"':
                    pos += 1
                return pos
            if text.startswith("${", pos):
                pos = self._template_end(pos + 2, start)
            else:
                pos += 1
        raise self.error("unterminated raw string literal", start)

    def _template_end(self, pos: int, origin: int) -> int:
        text = self.text
        depth = 1
        while pos < len(text):
            ch = text[pos]
            if text.startswith('"""', pos):
                pos = self._raw_string_end(pos)
                continue
            if ch == '"':
                pos = self._string_end(pos)
                continue
            if ch == "'":
                pos = self._char_end(pos)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return pos + 1
            pos += 1
        raise self.error("unterminated string template", origin)

    def _char_end(self, start: int) -> int:
        text = self.text
        pos = start + 1
        while pos < len(text) and text[pos] not in "'\n":
            pos += 2 if text[pos] == "\\" else 1
        if pos >= len(text) or text[pos] != "'":
            raise self.error("unterminated character literal", start)
        return pos + 1


@dataclass
class _Frame:
    token: Token
    role: str
    owner: str = ""
    parameters: tuple[Token, ...] = ()
    arrow: Token | None = None
    entries_done: bool = False


@dataclass
class _Header:
    kind: DeclarationKind | None
    keyword: Token
    depth: int
    modifiers: frozenset[str]
    name: Token | None = None
    name_closed: bool = False
    last_ident: Token | None = None
    angle: int = 0
    where: bool = False
    seen_params: bool = False
    expect_return: bool = False
    return_type: str | None = None


class _Analyzer:
    """Single pass over the token stream tracking brackets and declaration headers.

    A header is the part of a declaration between its keyword and its body
    (or the end of the declaration). Colons and braces are classified by the
    header active at the current bracket depth, if any.
    """

    def __init__(self, tokens: list[Token], *, end_offset: int, truncated: bool):
        self.tokens = tokens
        self.end_offset = end_offset
        self.truncated = truncated
        self.stack: list[_Frame] = []
        self.headers: list[_Header] = []
        self.nodes: list[Node] = []
        self.closed_owner: dict[int, str] = {}

    def run(self) -> None:
        prev: Token | None = None
        for token in self.tokens:
            self._end_header_on_newline(prev, token)
            self._visit(token, prev)
            prev = token

        if self.stack and not self.truncated:
            opener = self.stack[-1].token
            raise ParseError(
                f"'{opener.text}' is never closed",
                opener.line,
                opener.column,
                offset=self.end_offset,
            )

    def finish(self) -> list[Node]:
        while self.headers:
            self._end_header(self.headers[-1])
        return self.nodes

    def _header_here(self) -> _Header | None:
        if self.headers and self.headers[-1].depth == len(self.stack):
            return self.headers[-1]
        return None

    def _visit(self, token: Token, prev: Token | None) -> None:
        kind = token.kind
        header = self._header_here()

        if kind is TokenKind.KEYWORD and token.text in DECLARATION_KEYWORDS:
            self._start_header(token, prev, header)
            return

        if kind is TokenKind.IDENTIFIER:
            if token.text == "constructor" and header is None and self._next_is(token, TokenKind.LPAREN):
                self.headers.append(_Header(kind=None, keyword=token, depth=len(self.stack), modifiers=frozenset()))
            elif header is not None:
                self._header_identifier(header, token)
            return

        if kind is TokenKind.OPERATOR:
            if header is None:
                return
            if token.text == "<":
                header.angle += 1
            elif token.text == ">" and header.angle > 0:
                header.angle -= 1
            elif token.text == "=" and header.angle == 0 and header.kind in (
                DeclarationKind.FUNCTION,
                DeclarationKind.PROPERTY,
                DeclarationKind.TYPEALIAS,
            ):
                self._end_header(header)
            return

        if kind is TokenKind.COLON:
            self.nodes.append(ColonUse(token=token, colon_kind=self._classify_colon(token, prev, header)))
            if header is None or header.angle > 0 or header.where:
                return
            if header.kind in (DeclarationKind.FUNCTION, DeclarationKind.PROPERTY):
                self._close_name(header)
                if header.kind is DeclarationKind.FUNCTION and header.seen_params:
                    header.expect_return = True
            else:
                header.name_closed = True
            return

        if kind is TokenKind.COMMA:
            if header is not None and header.kind is DeclarationKind.PROPERTY and header.angle == 0:
                self._end_header(header)
            return

        if kind is TokenKind.SEMICOLON:
            if header is not None:
                self._end_header(header)
            if self.stack and self.stack[-1].role == "enum_body":
                self.stack[-1].entries_done = True
            return

        if kind is TokenKind.LPAREN:
            self.stack.append(_Frame(token=token, role="paren", owner=self._paren_owner(token, prev, header)))
            return

        if kind is TokenKind.LBRACKET:
            self.stack.append(_Frame(token=token, role="bracket"))
            return

        if kind is TokenKind.LBRACE:
            role = self._brace_role(prev, header)
            if header is not None:
                self._end_header(header)
            frame = _Frame(token=token, role=role)
            if role == "lambda":
                frame.parameters, frame.arrow = self._lambda_parameters(token)
            self.stack.append(frame)
            return

        if kind in CLOSERS:
            self._close(token)

    def _start_header(self, token: Token, prev: Token | None, header: _Header | None) -> None:
        if token.text == "class" and prev is not None and prev.text == "::":
            return
        if token.text == "fun" and self._next_text(token) == "interface":
            return
        if header is not None:
            self._end_header(header)
        self.headers.append(
            _Header(
                kind=DECLARATION_KEYWORDS[token.text],
                keyword=token,
                depth=len(self.stack),
                modifiers=self._modifiers_before(token),
            )
        )

    def _header_identifier(self, header: _Header, token: Token) -> None:
        if token.text == "where":
            header.where = True
            return
        if header.angle > 0 or header.where:
            return
        if token.text == "by" and header.kind is DeclarationKind.PROPERTY:
            self._end_header(header)
            return
        if header.expect_return and header.return_type is None:
            header.return_type = token.text
            header.expect_return = False
        if header.name_closed:
            return
        if header.kind in TYPE_DECLARATIONS:
            header.name = token
            header.name_closed = True
        else:
            header.last_ident = token

    def _close_name(self, header: _Header) -> None:
        if header.name_closed:
            return
        header.name_closed = True
        if header.kind in (DeclarationKind.FUNCTION, DeclarationKind.PROPERTY):
            header.name = header.last_ident

    def _end_header(self, header: _Header) -> None:
        self._close_name(header)
        self.headers.remove(header)
        if header.kind is None or header.name is None:
            return
        self.nodes.append(
            Declaration(
                declaration_kind=header.kind,
                keyword=header.keyword,
                name=header.name,
                modifiers=header.modifiers,
                return_type=header.return_type,
            )
        )
        self.nodes.append(Identifier(token=header.name, role=ROLE_BY_DECLARATION[header.kind]))

    def _end_header_on_newline(self, prev: Token | None, token: Token) -> None:
        header = self._header_here()
        if header is None or prev is None or token.line == prev.line:
            return
        if header.angle > 0 or prev is header.keyword:
            return
        if prev.text in CONTINUE_AFTER or token.text in CONTINUE_BEFORE:
            return
        self._end_header(header)

    def _classify_colon(self, token: Token, prev: Token | None, header: _Header | None) -> ColonKind:
        if prev is not None and prev.kind is TokenKind.ANNOTATION and prev.end == token.start:
            return ColonKind.OTHER
        if header is None:
            return ColonKind.TYPE_ANNOTATION
        if header.angle > 0 or header.where:
            return ColonKind.SUPERTYPE
        if header.kind is None or header.kind in (
            DeclarationKind.CLASS,
            DeclarationKind.INTERFACE,
            DeclarationKind.OBJECT,
        ):
            return ColonKind.SUPERTYPE
        return ColonKind.TYPE_ANNOTATION

    def _paren_owner(self, token: Token, prev: Token | None, header: _Header | None) -> str:
        if header is not None:
            if header.angle == 0 and header.kind in (DeclarationKind.FUNCTION, DeclarationKind.PROPERTY):
                self._close_name(header)
                header.seen_params = True
            return "declaration"
        if prev is None:
            return "call"
        if prev.text in CONTROL_KEYWORDS:
            return prev.text
        if prev.kind is TokenKind.IDENTIFIER and prev.text in ("get", "set"):
            before = self.tokens[prev.index - 1] if prev.index > 0 else None
            if before is None or before.text not in (".", "?.", "::"):
                return "accessor"
        return "call"

    def _brace_role(self, prev: Token | None, header: _Header | None) -> str:
        if header is not None:
            if header.kind is DeclarationKind.CLASS and "enum" in header.modifiers:
                return "enum_body"
            return "body"

        top = self.stack[-1] if self.stack else None
        if top is not None and top.role == "enum_body" and not top.entries_done:
            return "body"
        if prev is None:
            return "lambda"
        if prev.text in BLOCK_KEYWORDS:
            return "block"
        if prev.text == "when":
            return "when"
        if prev.kind is TokenKind.ARROW and top is not None and top.role == "when":
            return "block"
        if prev.kind is TokenKind.RPAREN:
            owner = self.closed_owner.get(prev.index, "call")
            if owner == "when":
                return "when"
            if owner in CONTROL_KEYWORDS or owner == "accessor":
                return "block"
            if owner == "declaration":
                return "body"
        return "lambda"

    def _lambda_parameters(self, brace: Token) -> tuple[tuple[Token, ...], Token | None]:
        parameters: list[Token] = []
        depth = 0
        angle = 0
        after_colon = False

        for token in self.tokens[brace.index + 1 :]:
            kind = token.kind
            if kind is TokenKind.ARROW and depth == 0:
                return tuple(parameters), token
            if kind is TokenKind.LPAREN:
                depth += 1
            elif kind is TokenKind.RPAREN:
                if depth == 0:
                    break
                depth -= 1
            elif kind is TokenKind.COMMA:
                if angle == 0:
                    after_colon = False
            elif kind is TokenKind.COLON:
                after_colon = True
            elif kind is TokenKind.IDENTIFIER:
                if not after_colon and angle == 0:
                    parameters.append(token)
            elif kind is TokenKind.OPERATOR and token.text in ("<", ">", "?", ".", "*"):
                if token.text == "<":
                    angle += 1
                elif token.text == ">" and angle > 0:
                    angle -= 1
            elif kind is not TokenKind.ANNOTATION:
                break

        return (), None

    def _close(self, token: Token) -> None:
        expected = CLOSERS[token.kind]
        if not self.stack or self.stack[-1].token.kind is not expected:
            raise ParseError(
                f"unbalanced '{token.text}'",
                token.line,
                token.column,
                offset=token.start,
            )

        for header in [item for item in self.headers if item.depth >= len(self.stack)]:
            self._end_header(header)

        frame = self.stack.pop()
        if token.kind is TokenKind.RPAREN:
            self.closed_owner[token.index] = frame.owner
        if frame.role == "lambda":
            self.nodes.append(
                LambdaSpan(
                    open=frame.token,
                    close=token,
                    parameters=frame.parameters,
                    arrow=frame.arrow,
                )
            )

    def _modifiers_before(self, token: Token) -> frozenset[str]:
        found: set[str] = set()
        index = token.index - 1
        while index >= 0:
            candidate = self.tokens[index]
            if candidate.kind is TokenKind.IDENTIFIER and candidate.text in MODIFIERS:
                found.add(candidate.text)
            elif candidate.kind is not TokenKind.ANNOTATION:
                break
            index -= 1
        return frozenset(found)

    def _next_text(self, token: Token) -> str | None:
        if token.index + 1 < len(self.tokens):
            return self.tokens[token.index + 1].text
        return None

    def _next_is(self, token: Token, kind: TokenKind) -> bool:
        return token.index + 1 < len(self.tokens) and self.tokens[token.index + 1].kind is kind
