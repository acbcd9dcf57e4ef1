r"""Public entry points.

`Validator` bundles a `TypeMetadataCache`, an external-validator lookup and
default `ValidationOptions`, and exposes:

  - ``validate(target, recurse=None, allow_async=None) -> (valid, errors)``
  - ``await validate_async(target, recurse=None) -> (valid, errors)``
  - ``requires_validation(cls, recurse=True) -> bool``
  - ``for_type(cls) -> TypedValidator`` bound to one class.

The module-level functions of the same names use a shared default validator,
backed by the process-wide `default_cache` and `default_registry`.

Blocking on asynchronous checks (``allow_async=True``) runs them to completion
on the calling thread. An awaitable that can only complete on the blocked
thread never finishes; avoiding that is the caller's responsibility.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Generic, Optional, Tuple, Type, TypeVar

from .accumulator import ErrorMap
from .descriptors import TypeMetadataCache
from .engine import GraphValidator
from .registry import ValidatorRegistry
from .settings import ValidationOptions
from .utils import ArgumentError, get_type_name

__all__ = [
    "Validator",
    "TypedValidator",
    "default_cache",
    "default_registry",
    "get_default_validator",
    "validate",
    "validate_async",
    "requires_validation",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

default_cache = TypeMetadataCache()
default_registry = ValidatorRegistry()


class Validator:
    """Configured entry point for validating object graphs.

    Args:
        cache: Metadata cache; defaults to the process-wide `default_cache`.
        registry: External-validator lookup; defaults to `default_registry`.
        options: Defaults for unset call options.
    """

    def __init__(
        self,
        cache: Optional[TypeMetadataCache] = None,
        registry: Any = None,
        options: Optional[ValidationOptions] = None,
    ):
        self.cache = cache if cache is not None else default_cache
        self.registry = registry if registry is not None else default_registry
        self.options = options if options is not None else ValidationOptions()
        self._engine = GraphValidator(self.cache, self.registry)

    def requires_validation(self, cls: type, recurse: bool = True) -> bool:
        return self.cache.requires_validation(cls, recurse, self.registry)

    def validate(
        self,
        target: Any,
        recurse: Optional[bool] = None,
        allow_async: Optional[bool] = None,
    ) -> Tuple[bool, ErrorMap]:
        """Validate `target` synchronously; see `GraphValidator.validate`."""
        options = self.options.resolve(recurse, allow_async)
        return self._engine.validate(target, options.recurse, options.allow_async)

    async def validate_async(
        self, target: Any, recurse: Optional[bool] = None
    ) -> Tuple[bool, ErrorMap]:
        """Validate `target`, awaiting asynchronous checks."""
        options = self.options.resolve(recurse)
        return await self._engine.validate_async(target, options.recurse)

    def for_type(self, cls: Type[T]) -> "TypedValidator[T]":
        return TypedValidator(cls, self)


class TypedValidator(Generic[T]):
    """A `Validator` bound to one class; rejects instances of other classes."""

    def __init__(self, cls: Type[T], validator: Optional[Validator] = None):
        if not inspect.isclass(cls):
            raise ArgumentError(
                "A type is required",
                ["Pass the class this validator is for, e.g. for_type(Order)"],
                {"expected_type": "class", "actual_type": type(cls).__name__},
            )
        self.cls = cls
        self.validator = validator if validator is not None else get_default_validator()

    def _check(self, target: Any) -> None:
        if target is not None and not isinstance(target, self.cls):
            raise ArgumentError(
                f"Expected an instance of {get_type_name(self.cls)}",
                [f"Use validator.for_type({get_type_name(type(target))}) instead"],
                {
                    "expected_type": get_type_name(self.cls),
                    "actual_type": get_type_name(type(target)),
                },
            )

    def requires_validation(self, recurse: bool = True) -> bool:
        return self.validator.requires_validation(self.cls, recurse)

    def validate(
        self,
        target: T,
        recurse: Optional[bool] = None,
        allow_async: Optional[bool] = None,
    ) -> Tuple[bool, ErrorMap]:
        self._check(target)
        return self.validator.validate(target, recurse, allow_async)

    async def validate_async(
        self, target: T, recurse: Optional[bool] = None
    ) -> Tuple[bool, ErrorMap]:
        self._check(target)
        return await self.validator.validate_async(target, recurse)

    def __repr__(self) -> str:
        return f"TypedValidator({get_type_name(self.cls)})"


_default_validator: Optional[Validator] = None


def get_default_validator() -> Validator:
    """Return the shared validator, creating it on first use."""
    global _default_validator
    if _default_validator is None:
        _default_validator = Validator(default_cache, default_registry)
        logger.debug("Created default validator")
    return _default_validator


def validate(
    target: Any, recurse: Optional[bool] = None, allow_async: Optional[bool] = None
) -> Tuple[bool, ErrorMap]:
    """Validate `target` with the default validator."""
    return get_default_validator().validate(target, recurse, allow_async)


async def validate_async(
    target: Any, recurse: Optional[bool] = None
) -> Tuple[bool, ErrorMap]:
    """Validate `target` with the default validator, awaiting async checks."""
    return await get_default_validator().validate_async(target, recurse)


def requires_validation(cls: type, recurse: bool = True) -> bool:
    """True if instances of `cls` can fail validation."""
    return get_default_validator().requires_validation(cls, recurse)
