#!/usr/bin/env python
"""Example 02: Asynchronous Validation.

Checks that must await something (a database, a remote service) implement
``AsyncValidatableObject`` or ``AsyncValidate``. Graphs that contain them are
validated with ``validate_async``; the synchronous entry point refuses them
unless ``allow_async=True`` is passed.

This example demonstrates:
1. An awaited self-check nested inside an ordinary object
2. PreconditionError from the synchronous entry point
3. Blocking on the asynchronous work with allow_async=True
4. Sequences: only the first invalid item is reported
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from typing_extensions import Annotated

from validgraph import (
    AsyncValidatableObject,
    PreconditionError,
    Range,
    Required,
    ValidationResult,
    Validator,
    configure_logging,
)

configure_logging()

TAKEN_USERNAMES = {"admin", "root"}


@dataclass
class Account(AsyncValidatableObject):
    username: Annotated[Optional[str], Required()] = None

    async def validate_object_async(self, context):
        await asyncio.sleep(0.01)  # pretend to query a user store
        if self.username in TAKEN_USERNAMES:
            return [ValidationResult(f"The username '{self.username}' is taken.", ["username"])]
        return []


@dataclass
class Signup:
    email: Annotated[Optional[str], Required()] = None
    age: Annotated[int, Range(13, 130)] = 18
    account: Optional[Account] = None
    invited: List[Account] = field(default_factory=list)


validator = Validator()
signup = Signup(
    email="someone@example.com",
    account=Account("admin"),
    invited=[Account("friend"), Account("root"), Account(None)],
)

# =============================================================================
# Part 1: Async Entry Point
# =============================================================================

print("=" * 60)
print("Part 1: validate_async")
print("=" * 60)

valid, errors = asyncio.run(validator.validate_async(signup))
print(f"valid={valid}")
for path, messages in errors.items():
    print(f"  {path}: {messages}")

# =============================================================================
# Part 2: Synchronous Entry Point
# =============================================================================

print()
print("=" * 60)
print("Part 2: validate")
print("=" * 60)

try:
    validator.validate(signup)
except PreconditionError as e:
    print(e)

valid, errors = validator.validate(signup, allow_async=True)
print(f"allow_async=True -> valid={valid}, keys={list(errors)}")
