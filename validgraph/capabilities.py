r"""Validation capabilities an object or an external validator can provide.

Self-validation:
  - :class:`ValidatableObject`: ``validate_object(context)`` returns results.
  - :class:`AsyncValidatableObject`: ``await validate_object_async(context)``.

External validators (registered per type, see :mod:`validgraph.registry`):
  - :class:`Validate`: ``validate(instance, context)``.
  - :class:`AsyncValidate`: ``await validate_async(instance, context)``.

Each returns an iterable of :class:`ValidationResult`. Plain
``(message, member_names)`` tuples and bare message strings are accepted too
and coerced by :func:`coerce_results`. A result naming no member is reported
against the object itself.

Doxygen Dot Graph of Capabilities:
-----------------------------------
\dot
digraph Capabilities {
    node [shape=rectangle];
    "ABC" -> "ValidatableObject";
    "ABC" -> "AsyncValidatableObject";
    "ABC" -> "Validate";
    "ABC" -> "AsyncValidate";
}
\enddot
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Generic,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from pydantic import BaseModel, ConfigDict

from .utils import ArgumentError

if TYPE_CHECKING:
    from .context import ValidationContext

__all__ = [
    "ValidationResult",
    "ResultsLike",
    "ValidatableObject",
    "AsyncValidatableObject",
    "Validate",
    "AsyncValidate",
    "coerce_results",
    "self_validation_kind",
]

T = TypeVar("T")


class ValidationResult(BaseModel):
    """One failed check: a message and the member names it applies to."""

    model_config = ConfigDict(frozen=True)

    message: str
    member_names: Tuple[str, ...] = ()

    def __init__(self, message: str, member_names: Sequence[str] = (), **data: Any):
        if isinstance(member_names, str):
            member_names = (member_names,)
        super().__init__(message=message, member_names=tuple(member_names), **data)


ResultsLike = Optional[
    Iterable[Union[ValidationResult, Tuple[str, Sequence[str]], str]]
]


class ValidatableObject(ABC):
    """Mixin for objects that validate their own state."""

    @abstractmethod
    def validate_object(self, context: "ValidationContext") -> ResultsLike:
        """Return the failed checks for this instance."""


class AsyncValidatableObject(ABC):
    """Mixin for objects whose self-validation must be awaited."""

    @abstractmethod
    def validate_object_async(
        self, context: "ValidationContext"
    ) -> Awaitable[ResultsLike]:
        """Return an awaitable of the failed checks for this instance."""


class Validate(ABC, Generic[T]):
    """External validator for instances of `T`."""

    @abstractmethod
    def validate(self, instance: T, context: "ValidationContext") -> ResultsLike:
        """Return the failed checks for `instance`."""


class AsyncValidate(ABC, Generic[T]):
    """External validator for instances of `T` that must be awaited."""

    @abstractmethod
    def validate_async(
        self, instance: T, context: "ValidationContext"
    ) -> Awaitable[ResultsLike]:
        """Return an awaitable of the failed checks for `instance`."""


def self_validation_kind(cls: type) -> Optional[str]:
    """Return ``"async"``, ``"sync"`` or None for the class's self-validation."""
    if issubclass(cls, AsyncValidatableObject):
        return "async"
    if issubclass(cls, ValidatableObject):
        return "sync"
    return None


def coerce_results(results: ResultsLike) -> List[ValidationResult]:
    """Normalize whatever a capability returned into ValidationResults.

    Raises:
        ArgumentError: If an item is not a result, a tuple or a string.
    """
    if results is None:
        return []
    coerced: List[ValidationResult] = []
    for item in results:
        if isinstance(item, ValidationResult):
            coerced.append(item)
        elif isinstance(item, str):
            coerced.append(ValidationResult(item))
        elif isinstance(item, tuple) and len(item) == 2:
            coerced.append(ValidationResult(item[0], item[1] or ()))
        else:
            raise ArgumentError(
                f"Unsupported validation result {item!r}",
                [
                    "Return ValidationResult(message, member_names)",
                    "Or return (message, member_names) tuples",
                ],
                {"expected_type": "ValidationResult", "actual_type": type(item).__name__},
            )
    return coerced
