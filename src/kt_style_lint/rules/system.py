from __future__ import annotations

from collections.abc import Iterator

from kt_style_lint.models import Hit, Rule, Severity
from kt_style_lint.syntax import SyntaxView


PARSE_ERROR = "parse-error"
RULE_FAILED = "rule-failed"
IO_ERROR = "io-error"

SYSTEM_RULE_IDS = frozenset({PARSE_ERROR, RULE_FAILED, IO_ERROR})


def report_parse_error(view: SyntaxView) -> Iterator[Hit]:
    if view.error is not None:
        yield Hit(view.error.line, view.error.column, f"Parse error: {view.error.message}")


def no_hits(view: SyntaxView) -> tuple[Hit, ...]:
    return ()


def system_rules() -> list[Rule]:
    return [
        Rule(
            id=PARSE_ERROR,
            description="File could not be parsed past this point",
            severity=Severity.ERROR,
            matcher=report_parse_error,
        ),
        Rule(
            id=RULE_FAILED,
            description="A rule raised while checking the file",
            severity=Severity.ERROR,
            matcher=no_hits,
        ),
        Rule(
            id=IO_ERROR,
            description="File could not be read",
            severity=Severity.ERROR,
            matcher=no_hits,
        ),
    ]
