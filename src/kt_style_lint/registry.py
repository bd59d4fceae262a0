from __future__ import annotations

from collections.abc import Iterable, Iterator, ValuesView

from kt_style_lint.models import Rule
from kt_style_lint.rules.system import SYSTEM_RULE_IDS, system_rules


class RegistryError(ValueError):
    def __init__(self, message: str, rule_id: str):
        super().__init__(message)
        self.rule_id = rule_id


class DuplicateRuleId(RegistryError):
    def __init__(self, rule_id: str):
        super().__init__(f"Rule id already registered: {rule_id}", rule_id)


class UnknownRule(RegistryError):
    def __init__(self, rule_id: str):
        super().__init__(f"Unknown rule id: {rule_id}", rule_id)


class MissingSystemRule(RegistryError):
    def __init__(self, rule_id: str):
        super().__init__(f"System rule missing from registry: {rule_id}", rule_id)


class RegistryFrozen(RegistryError):
    def __init__(self, rule_id: str):
        super().__init__(f"Registry is frozen, cannot register: {rule_id}", rule_id)


class RuleRegistry:
    """Active rules indexed by id, in registration order.

    Every registry starts with the system rules so synthetic violations
    (parse errors, failed rules, unreadable files) always reference a
    registered rule. Freeze the registry before sharing it between workers.
    """

    def __init__(self, rules: Iterable[Rule] = (), *, system: Iterable[Rule] | None = None):
        self._rules: dict[str, Rule] = {}
        self._frozen = False
        for rule in system_rules() if system is None else system:
            if rule.id not in SYSTEM_RULE_IDS:
                raise UnknownRule(rule.id)
            self.register(rule)
        missing = sorted(SYSTEM_RULE_IDS - set(self._rules))
        if missing:
            raise MissingSystemRule(missing[0])
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        if self._frozen:
            raise RegistryFrozen(rule.id)
        if rule.id in self._rules:
            raise DuplicateRuleId(rule.id)
        self._rules[rule.id] = rule

    def get(self, rule_id: str) -> Rule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise UnknownRule(rule_id) from None

    def all(self) -> ValuesView[Rule]:
        return self._rules.values()

    def ids(self) -> list[str]:
        return list(self._rules)

    def freeze(self) -> RuleRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def is_system(self, rule_id: str) -> bool:
        return rule_id in SYSTEM_RULE_IDS

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)
