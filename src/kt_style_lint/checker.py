from __future__ import annotations

import logging

from kt_style_lint.models import Violation
from kt_style_lint.registry import RuleRegistry
from kt_style_lint.rules.system import RULE_FAILED
from kt_style_lint.syntax import SyntaxView

logger = logging.getLogger(__name__)


def check(registry: RuleRegistry, view: SyntaxView) -> list[Violation]:
    """Run every registered rule against one view.

    A rule that raises contributes a single ``rule-failed`` violation instead
    of its partial output. The result is sorted by (line, column, rule id).
    """
    failed_rule = registry.get(RULE_FAILED)
    violations: list[Violation] = []

    for rule in registry.all():
        try:
            found = rule.apply(view)
        except Exception as exc:
            logger.warning("Rule %s failed on %s: %s", rule.id, view.path, exc, exc_info=True)
            violations.append(
                Violation(
                    rule_id=failed_rule.id,
                    path=view.path,
                    line=1,
                    column=1,
                    message=f"Rule '{rule.id}' failed: {type(exc).__name__}: {exc}",
                    severity=failed_rule.severity,
                )
            )
            continue
        violations.extend(found)

    violations.sort(key=lambda item: (item.line, item.column, item.rule_id))
    return violations
