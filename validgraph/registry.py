r"""Registry of external validators keyed by exact runtime type.

External validators check a type from outside its definition. The engine
asks the registry for the validators of an object's exact class and runs them
in registration order, after the object's self-validation and before its
members are visited.

Usage:
    registry = ValidatorRegistry()

    @registry.register_validator(Order)
    class OrderTotalMatchesLines(Validate[Order]):
        def validate(self, instance, context):
            ...

    registry.register(Invoice, InvoiceChecker())
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Hashable, List, Protocol, Sequence, Tuple, TypeVar

from .capabilities import AsyncValidate, Validate
from .storage import ThreadSafeLocalStorage
from .utils import ArgumentError, RegistryError, get_type_name

__all__ = [
    "ValidatorLookup",
    "ValidatorRegistry",
]

logger = logging.getLogger(__name__)

V = TypeVar("V")


class ValidatorLookup(Protocol):
    """Anything that resolves the external validators of a class."""

    def get_validators(self, cls: type) -> Sequence[Any]: ...


def _validate_validator(validator: Any) -> Any:
    if isinstance(validator, (Validate, AsyncValidate)):
        return validator
    raise ArgumentError(
        f"{validator!r} is not a validator",
        [
            "Subclass Validate[T] and implement validate(instance, context)",
            "Or subclass AsyncValidate[T] and implement validate_async(instance, context)",
        ],
        {
            "expected_type": "Validate | AsyncValidate",
            "actual_type": type(validator).__name__,
        },
    )


class ValidatorRegistry:
    """Ordered, thread-safe mapping of class -> external validators."""

    def __init__(self):
        self._repository: ThreadSafeLocalStorage[Hashable, Tuple[Any, ...]] = (
            ThreadSafeLocalStorage()
        )

    def __contains__(self, cls: Any) -> bool:
        return bool(self._repository.get(cls))

    def __len__(self) -> int:
        entries = self._repository.snapshot()
        return sum(len(validators) for validators in entries.values())

    def get_validators(self, cls: type) -> Tuple[Any, ...]:
        """Return the validators registered for exactly `cls`, in order."""
        return self._repository.get(cls, ())

    def registered_types(self) -> List[type]:
        entries = self._repository.snapshot()
        return [cls for cls, validators in entries.items() if validators]

    def register(self, cls: type, validator: Any) -> Any:
        """Append `validator` to the validators of `cls`.

        Raises:
            ArgumentError: If `cls` is not a class or `validator` is not one.
            RegistryError: If the same validator is already registered for `cls`.
        """
        if not inspect.isclass(cls):
            raise ArgumentError(
                f"{cls!r} is not a class",
                ["Register validators against the class they validate"],
                {"expected_type": "class", "actual_type": type(cls).__name__},
            )
        _validate_validator(validator)
        current = self._repository.get(cls, ())
        if any(existing is validator for existing in current):
            raise RegistryError(
                f"{validator!r} already registered for {get_type_name(cls)}",
                ["Register each validator instance once per type"],
                {"registry_size": len(self), "key": get_type_name(cls)},
            )
        self._repository[cls] = current + (validator,)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Registered %s for %s (%d validator(s))",
                type(validator).__name__,
                get_type_name(cls),
                len(current) + 1,
            )
        return validator

    def register_validator(self, cls: type) -> Callable[[V], V]:
        """Decorator registering a validator class (instantiated with no args)
        or a validator instance for `cls`."""

        def decorator(validator: V) -> V:
            instance = validator() if inspect.isclass(validator) else validator
            self.register(cls, instance)
            return validator

        return decorator

    def unregister(self, cls: type, validator: Any = None) -> None:
        """Remove `validator` (or every validator) registered for `cls`.

        Raises:
            RegistryError: If nothing matching is registered.
        """
        current = self._repository.get(cls, ())
        if validator is None:
            remaining: Tuple[Any, ...] = ()
        else:
            remaining = tuple(v for v in current if v is not validator)
        if len(remaining) == len(current):
            raise RegistryError(
                f"No matching validator registered for {get_type_name(cls)}",
                ["Check the class and validator instance passed to unregister()"],
                {"registry_size": len(self), "key": get_type_name(cls)},
            )
        if remaining:
            self._repository[cls] = remaining
        else:
            del self._repository[cls]
        logger.debug("Unregistered validator(s) for %s", get_type_name(cls))

    def clear(self) -> None:
        self._repository.clear()
