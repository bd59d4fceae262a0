from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path

from kt_style_lint.models import LintConfig, Rule, RuleSetting, Severity
from kt_style_lint.registry import RuleRegistry, UnknownRule
from kt_style_lint.rules import SYSTEM_RULE_IDS, builtin_rules
from kt_style_lint.rules.system import system_rules

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    pass


def load_config(path: str | Path | None) -> LintConfig:
    if path is None:
        return LintConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {config_path}: {exc}") from exc

    return parse_config(raw)


def parse_config(raw: object) -> LintConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    defaults = LintConfig()

    rules_raw = raw.get("rules", {})
    if not isinstance(rules_raw, dict):
        raise ConfigError("'rules' must be an object mapping rule ids to settings")

    settings: list[RuleSetting] = []
    for rule_id, item in rules_raw.items():
        if not isinstance(item, dict):
            raise ConfigError(f"Settings for rule '{rule_id}' must be an object")
        settings.append(
            RuleSetting(
                rule_id=str(rule_id),
                enabled=_optional_bool(item.get("enabled"), rule_id),
                severity=_optional_severity(item.get("severity"), rule_id),
            )
        )

    return LintConfig(
        rules=tuple(settings),
        include_exts=tuple(
            ext.lower() for ext in _ensure_string_list(raw.get("include_exts", list(defaults.include_exts)))
        ),
        exclude_dirs=tuple(_ensure_string_list(raw.get("exclude_dirs", list(defaults.exclude_dirs)))),
        max_file_size_bytes=_positive_int(raw.get("max_file_size_bytes", defaults.max_file_size_bytes), "max_file_size_bytes"),
        jobs=_positive_int(raw.get("jobs", defaults.jobs), "jobs"),
    )


def build_registry(config: LintConfig) -> RuleRegistry:
    """Apply rule settings to the built-in catalog and return a frozen registry.

    Raises UnknownRule for a setting naming a rule that does not exist and
    ConfigError for an attempt to disable a system rule.
    """
    catalog = builtin_rules()
    known = SYSTEM_RULE_IDS | {rule.id for rule in catalog}

    for setting in config.rules:
        if setting.rule_id not in known:
            raise UnknownRule(setting.rule_id)
        if setting.rule_id in SYSTEM_RULE_IDS and setting.enabled is False:
            raise ConfigError(f"System rule '{setting.rule_id}' cannot be disabled")

    overrides = {setting.rule_id: setting for setting in config.rules}

    registry = RuleRegistry(system=[_with_severity(rule, overrides.get(rule.id)) for rule in system_rules()])
    for rule in catalog:
        setting = overrides.get(rule.id)
        if setting is not None and setting.enabled is False:
            logger.debug("Rule %s disabled by configuration", rule.id)
            continue
        registry.register(_with_severity(rule, setting))

    return registry.freeze()


def _with_severity(rule: Rule, setting: RuleSetting | None) -> Rule:
    if setting is None or setting.severity is None or setting.severity is rule.severity:
        return rule
    return dataclasses.replace(rule, severity=setting.severity)


def _optional_bool(value: object, rule_id: str) -> bool | None:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"'enabled' for rule '{rule_id}' must be true or false")
    return value


def _optional_severity(value: object, rule_id: str) -> Severity | None:
    if value is None:
        return None
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise ConfigError(f"Rule '{rule_id}': {exc}") from exc


def _positive_int(value: object, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{name}' must be an integer") from exc
    if number <= 0:
        raise ConfigError(f"'{name}' must be positive")
    return number


def _ensure_string_list(value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("Expected a list of strings")
    return [str(item) for item in value]
