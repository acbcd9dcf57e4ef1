#!/usr/bin/env python
"""Example 01: Validating Widgets.

Rules live on the members they check, via ``typing.Annotated``. A class can
also validate itself, and validators can be registered for a class from
outside its definition.

This example demonstrates:
1. Declarative rules with a display name
2. Self-validation with ValidatableObject
3. External validators registered with a decorator
4. Turning an ErrorMap into a problem-details style payload
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from typing_extensions import Annotated

from validgraph import (
    Display,
    MinLength,
    Required,
    Validate,
    ValidatableObject,
    ValidationResult,
    Validator,
    ValidatorRegistry,
)

registry = ValidatorRegistry()
validator = Validator(registry=registry)


def problem(errors) -> str:
    return json.dumps({"title": "One or more validation errors occurred.", "errors": errors.to_dict()}, indent=2)


# =============================================================================
# Part 1: Declarative Rules
# =============================================================================

print("=" * 60)
print("Part 1: Declarative Rules")
print("=" * 60)


@dataclass
class Widget:
    name: Annotated[Optional[str], Required(), MinLength(3), Display("Widget name")] = None


for widget in (Widget("Shinerizer"), Widget("ab"), Widget()):
    valid, errors = validator.validate(widget)
    print(f"{widget!r}: valid={valid}")
    if not valid:
        print(problem(errors))


# =============================================================================
# Part 2: Self-Validation
# =============================================================================

print()
print("=" * 60)
print("Part 2: Self-Validation")
print("=" * 60)


@dataclass
class WidgetWithCustomValidation(Widget, ValidatableObject):
    def validate_object(self, context):
        if (self.name or "").lower() == "widget":
            yield ValidationResult(f"Cannot name a widget '{self.name}'.", ["name"])


valid, errors = validator.validate(WidgetWithCustomValidation("Widget"))
print(f"valid={valid}")
print(problem(errors))


# =============================================================================
# Part 3: External Validators
# =============================================================================

print()
print("=" * 60)
print("Part 3: External Validators")
print("=" * 60)


@dataclass
class WidgetWithClassValidator(Widget):
    pass


@registry.register_validator(WidgetWithClassValidator)
class WidgetValidator(Validate[WidgetWithClassValidator]):
    def validate(self, instance, context):
        if (instance.name or "").lower() == "widget":
            return [ValidationResult(f"Cannot name a widget '{instance.name}'.", ["name"])]
        return []


typed = validator.for_type(WidgetWithClassValidator)
for name in ("Sparklizer", "WIDGET"):
    valid, errors = typed.validate(WidgetWithClassValidator(name))
    print(f"{name}: valid={valid} {errors.to_dict()}")
