from dataclasses import replace

import pytest

from kt_style_lint.checker import check
from kt_style_lint.models import Hit, Rule, Severity
from kt_style_lint.registry import (
    DuplicateRuleId,
    MissingSystemRule,
    RegistryFrozen,
    RuleRegistry,
    UnknownRule,
)
from kt_style_lint.rules import IO_ERROR, PARSE_ERROR, RULE_FAILED, builtin_rules
from kt_style_lint.rules.system import system_rules
from kt_style_lint.scanner import scan


def _rule(rule_id: str, severity: Severity = Severity.WARNING) -> Rule:
    return Rule(id=rule_id, description=f"{rule_id} rule", severity=severity, matcher=lambda view: [])


def test_new_registry_carries_system_rules():
    registry = RuleRegistry()

    assert registry.ids() == [PARSE_ERROR, RULE_FAILED, IO_ERROR]
    assert all(rule.severity is Severity.ERROR for rule in registry.all())
    assert registry.is_system(RULE_FAILED)
    assert not registry.is_system("type-naming")


def test_rules_keep_registration_order():
    registry = RuleRegistry(builtin_rules())

    assert registry.ids()[3:] == [
        "type-naming",
        "function-naming",
        "property-naming",
        "colon-spacing",
        "lambda-spacing",
        "lambda-it-parameter",
    ]
    assert [rule.id for rule in registry] == registry.ids()
    assert len(registry) == 9


def test_duplicate_id_is_rejected_and_registry_unchanged():
    original = _rule("custom", Severity.INFO)
    registry = RuleRegistry([original])
    before = list(registry.all())

    with pytest.raises(DuplicateRuleId) as excinfo:
        registry.register(_rule("custom", Severity.ERROR))

    assert excinfo.value.rule_id == "custom"
    assert list(registry.all()) == before
    assert registry.get("custom") is original


def test_get_unknown_rule():
    registry = RuleRegistry()

    with pytest.raises(UnknownRule):
        registry.get("no-such-rule")
    assert "no-such-rule" not in registry


def test_all_is_restartable():
    registry = RuleRegistry([_rule("one"), _rule("two")])
    view = registry.all()

    assert [rule.id for rule in view] == [rule.id for rule in view]


def test_frozen_registry_rejects_register():
    registry = RuleRegistry().freeze()

    assert registry.frozen
    with pytest.raises(RegistryFrozen):
        registry.register(_rule("late"))
    assert "late" not in registry


def test_system_argument_only_accepts_system_rules():
    with pytest.raises(UnknownRule):
        RuleRegistry(system=[_rule("not-system")])


def test_system_argument_must_cover_every_system_rule():
    with pytest.raises(MissingSystemRule) as excinfo:
        RuleRegistry(system=[])
    assert excinfo.value.rule_id == IO_ERROR

    partial = [rule for rule in system_rules() if rule.id != RULE_FAILED]
    with pytest.raises(MissingSystemRule) as excinfo:
        RuleRegistry(system=partial)
    assert excinfo.value.rule_id == RULE_FAILED


def test_overridden_system_rules_still_check_files():
    system = [replace(rule, severity=Severity.WARNING) for rule in system_rules()]
    registry = RuleRegistry(builtin_rules(), system=system).freeze()

    violations = check(registry, scan("class foo"))

    assert [item.rule_id for item in violations] == ["type-naming"]
    assert registry.get(PARSE_ERROR).severity is Severity.WARNING


def test_rule_apply_stamps_id_and_severity():
    rule = Rule(
        id="demo",
        description="demo",
        severity=Severity.INFO,
        matcher=lambda view: [Hit(2, 3, "found")],
    )

    class _View:
        path = "Demo.kt"

    [violation] = rule.apply(_View())

    assert violation.rule_id == "demo"
    assert violation.path == "Demo.kt"
    assert (violation.line, violation.column) == (2, 3)
    assert violation.severity is Severity.INFO
