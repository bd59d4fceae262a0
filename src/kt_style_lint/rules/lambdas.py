from __future__ import annotations

from collections.abc import Iterator

from kt_style_lint.models import Hit
from kt_style_lint.syntax import SyntaxView, TokenKind


# A lambda may hug these without a space: foo({ ... }), arr[{ ... }], label@{ ... }
ADJACENT_OK = {TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE, TokenKind.LABEL}


def check_lambda_spacing(view: SyntaxView) -> Iterator[Hit]:
    for span in view.lambdas():
        opening = span.open
        prev = view.previous(opening)
        if prev is not None and prev.end == opening.start and prev.kind not in ADJACENT_OK:
            yield Hit(opening.line, opening.column, "Missing space before '{' of lambda")

        if span.empty:
            continue

        if view.touches_next(opening):
            yield Hit(opening.line, opening.column, "Missing space after '{' of lambda")
        if view.touches_previous(span.close):
            yield Hit(span.close.line, span.close.column, "Missing space before '}' of lambda")

        arrow = span.arrow
        if arrow is not None:
            if view.touches_previous(arrow) and view.previous(arrow) is not opening:
                yield Hit(arrow.line, arrow.column, "Missing space before '->' of lambda")
            if view.touches_next(arrow):
                yield Hit(arrow.line, arrow.column, "Missing space after '->' of lambda")


def check_explicit_it(view: SyntaxView) -> Iterator[Hit]:
    for span in view.lambdas():
        if len(span.parameters) == 1 and span.parameters[0].text == "it":
            param = span.parameters[0]
            yield Hit(param.line, param.column, "Use the implicit 'it' instead of declaring it")
