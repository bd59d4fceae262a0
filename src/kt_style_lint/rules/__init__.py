from __future__ import annotations

from kt_style_lint.models import Rule, Severity
from kt_style_lint.rules.lambdas import check_explicit_it, check_lambda_spacing
from kt_style_lint.rules.naming import check_function_names, check_property_names, check_type_names
from kt_style_lint.rules.spacing import check_colon_spacing
from kt_style_lint.rules.system import IO_ERROR, PARSE_ERROR, RULE_FAILED, SYSTEM_RULE_IDS


def builtin_rules() -> list[Rule]:
    return [
        Rule(
            id="type-naming",
            description="Classes, interfaces, objects and type aliases use UpperCamelCase",
            severity=Severity.ERROR,
            matcher=check_type_names,
        ),
        Rule(
            id="function-naming",
            description="Functions use lowerCamelCase",
            severity=Severity.WARNING,
            matcher=check_function_names,
        ),
        Rule(
            id="property-naming",
            description="Properties use lowerCamelCase; read-only constants may use SCREAMING_SNAKE_CASE",
            severity=Severity.WARNING,
            matcher=check_property_names,
        ),
        Rule(
            id="colon-spacing",
            description="No space before a type annotation colon; spaces around a supertype colon",
            severity=Severity.WARNING,
            matcher=check_colon_spacing,
        ),
        Rule(
            id="lambda-spacing",
            description="Spaces around lambda braces and the parameter arrow",
            severity=Severity.WARNING,
            matcher=check_lambda_spacing,
        ),
        Rule(
            id="lambda-it-parameter",
            description="Do not declare a single lambda parameter named 'it'",
            severity=Severity.INFO,
            matcher=check_explicit_it,
        ),
    ]


__all__ = [
    "IO_ERROR",
    "PARSE_ERROR",
    "RULE_FAILED",
    "SYSTEM_RULE_IDS",
    "builtin_rules",
]
