r"""Declarative per-member rules and markers.

Rules are attached to members with :data:`typing.Annotated`::

    @dataclass
    class Customer:
        name: Annotated[Optional[str], Required(), MaxLength(50)] = None
        age: Annotated[int, Range(0, 150)] = 0
        account: Annotated[Optional[Account], SkipRecursion] = None

Every rule is evaluated independently against the member's current value, so a
member may collect several messages. Only :class:`Required` treats ``None`` as
a failure; the other stock rules accept it.

Markers carry no predicate:
  - :class:`Display` overrides the member name used in messages.
  - :class:`SkipRecursion` stops descent into the member's value while still
    evaluating the member's own rules.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sized
from typing import Any, Callable, Optional, Pattern as RePattern, Union

__all__ = [
    "Rule",
    "Required",
    "MinLength",
    "MaxLength",
    "Range",
    "Pattern",
    "Predicate",
    "Display",
    "SkipRecursion",
    "is_skip_marker",
]


class Rule(ABC):
    """A predicate over one member value paired with an error message.

    Subclasses implement :meth:`is_valid`. ``message`` is a ``str.format``
    template; ``{name}`` is the member's display name and any other fields
    come from :meth:`format_args`.
    """

    default_message = "The field {name} is invalid."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message

    @abstractmethod
    def is_valid(self, value: Any) -> bool:
        """Return True if `value` satisfies the rule."""

    def format_args(self) -> dict:
        return {}

    def format_message(self, name: str) -> str:
        return self.message.format(name=name, **self.format_args())

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.format_args().items())
        return f"{type(self).__name__}({args})"


class Required(Rule):
    """Fails on ``None`` and, unless `allow_empty_strings`, on blank strings."""

    default_message = "The {name} field is required."

    def __init__(self, allow_empty_strings: bool = False, message: Optional[str] = None):
        super().__init__(message)
        self.allow_empty_strings = allow_empty_strings

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, str) and not self.allow_empty_strings:
            return bool(value.strip())
        return True


class MinLength(Rule):
    default_message = (
        "The field {name} must be a string or array type with a minimum length of '{length}'."
    )

    def __init__(self, length: int, message: Optional[str] = None):
        super().__init__(message)
        self.length = length

    def format_args(self) -> dict:
        return {"length": self.length}

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return True
        return isinstance(value, Sized) and len(value) >= self.length


class MaxLength(Rule):
    default_message = (
        "The field {name} must be a string or array type with a maximum length of '{length}'."
    )

    def __init__(self, length: int, message: Optional[str] = None):
        super().__init__(message)
        self.length = length

    def format_args(self) -> dict:
        return {"length": self.length}

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return True
        return isinstance(value, Sized) and len(value) <= self.length


class Range(Rule):
    """Inclusive bounds check; either bound may be ``None`` for open-ended."""

    default_message = "The field {name} must be between {minimum} and {maximum}."

    def __init__(
        self,
        minimum: Any = None,
        maximum: Any = None,
        message: Optional[str] = None,
    ):
        super().__init__(message)
        self.minimum = minimum
        self.maximum = maximum

    def format_args(self) -> dict:
        return {"minimum": self.minimum, "maximum": self.maximum}

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return True
        try:
            if self.minimum is not None and value < self.minimum:
                return False
            if self.maximum is not None and value > self.maximum:
                return False
        except TypeError:
            return False
        return True


class Pattern(Rule):
    """The whole string value must match `regex`."""

    default_message = "The field {name} must match the regular expression '{pattern}'."

    def __init__(self, regex: Union[str, RePattern], message: Optional[str] = None):
        super().__init__(message)
        self.regex = re.compile(regex)

    def format_args(self) -> dict:
        return {"pattern": self.regex.pattern}

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return True
        return isinstance(value, str) and self.regex.fullmatch(value) is not None


class Predicate(Rule):
    """Wrap an arbitrary ``value -> bool`` callable as a rule."""

    def __init__(self, func: Callable[[Any], bool], message: Optional[str] = None):
        super().__init__(message)
        self.func = func

    def is_valid(self, value: Any) -> bool:
        return bool(self.func(value))

    def __repr__(self) -> str:
        return f"Predicate({getattr(self.func, '__name__', self.func)!r})"


class Display:
    """Marker overriding the name a member is shown under in messages."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Display({self.name!r})"


class SkipRecursion:
    """Marker excluding a member's value from recursive descent.

    Usable bare (``Annotated[Child, SkipRecursion]``) or instantiated.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "SkipRecursion()"


def is_skip_marker(item: Any) -> bool:
    return item is SkipRecursion or isinstance(item, SkipRecursion)
