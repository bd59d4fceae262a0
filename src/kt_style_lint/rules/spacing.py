from __future__ import annotations

from collections.abc import Iterator

from kt_style_lint.models import Hit
from kt_style_lint.syntax import ColonKind, SyntaxView


def check_colon_spacing(view: SyntaxView) -> Iterator[Hit]:
    """Type annotations read ``name: Type``; supertype lists read ``Child : Parent``."""
    for node in view.colons():
        token = node.token
        prev = view.previous(token)

        if node.colon_kind is ColonKind.TYPE_ANNOTATION:
            if prev is not None and prev.line == token.line and prev.end < token.start:
                yield Hit(token.line, token.column, "Unexpected space before ':' in type annotation")
            if view.touches_next(token):
                yield Hit(token.line, token.column, "Missing space after ':' in type annotation")

        elif node.colon_kind is ColonKind.SUPERTYPE:
            if view.touches_previous(token):
                yield Hit(token.line, token.column, "Missing space before ':' separating a type and its supertype")
            if view.touches_next(token):
                yield Hit(token.line, token.column, "Missing space after ':' separating a type and its supertype")
