from __future__ import annotations

from collections.abc import Iterator

from kt_style_lint.models import Hit
from kt_style_lint.syntax import (
    DeclarationKind,
    IdentifierRole,
    SyntaxView,
    is_lower_camel,
    is_screaming_snake,
    is_upper_camel,
)


def check_type_names(view: SyntaxView) -> Iterator[Hit]:
    for node in view.identifiers():
        if node.role is not IdentifierRole.TYPE or node.token.backticked:
            continue
        name = node.token.text
        if not is_upper_camel(name):
            yield Hit(node.token.line, node.token.column, f"Type name '{name}' should be UpperCamelCase")


def check_function_names(view: SyntaxView) -> Iterator[Hit]:
    for decl in view.declarations():
        if decl.declaration_kind is not DeclarationKind.FUNCTION or decl.name is None:
            continue
        name = decl.name.text
        # Backticked names are test method descriptions.
        if decl.name.backticked or is_lower_camel(name):
            continue
        # Factory functions may share the name of the type they return.
        if name == decl.return_type and is_upper_camel(name):
            continue
        yield Hit(decl.name.line, decl.name.column, f"Function name '{name}' should be lowerCamelCase")


def check_property_names(view: SyntaxView) -> Iterator[Hit]:
    for decl in view.declarations():
        if decl.declaration_kind is not DeclarationKind.PROPERTY or decl.name is None:
            continue
        if decl.name.backticked:
            continue

        name = decl.name.text
        bare = name[1:] if name.startswith("_") else name
        if is_lower_camel(bare):
            continue
        if decl.keyword.text == "val" and is_screaming_snake(bare):
            continue

        expected = "lowerCamelCase or SCREAMING_SNAKE_CASE" if decl.keyword.text == "val" else "lowerCamelCase"
        yield Hit(decl.name.line, decl.name.column, f"Property name '{name}' should be {expected}")
