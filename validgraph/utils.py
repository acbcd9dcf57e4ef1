"""Exceptions and small helpers shared by the validation engine.

This module defines the rich exception hierarchy raised by the engine, plus
helpers for naming types and configuring package logging.

Exceptions:
    ValidatorError: Base class carrying `suggestions` and `context` metadata.
    ArgumentError: Raised when a target or type argument is missing or unusable.
    PreconditionError: Raised when a synchronous call meets asynchronous work.
    MemberAccessError: Raised when reading a member of the graph fails.
    RegistryError: Raised for external-validator registry misuse.

Helpers:
    get_type_name(cls, qualname=False): Return a human-readable type name.
    configure_logging(level=None): Attach a stream handler to the package logger.
"""

import logging
import os
from inspect import isclass
from typing import Any, Dict, List, Optional, Union

__all__ = [
    "ValidatorError",
    "ArgumentError",
    "PreconditionError",
    "MemberAccessError",
    "RegistryError",
    "get_type_name",
    "configure_logging",
]

LOG_FORMAT = "[%(asctime)s] [%(levelname)-5s] [%(name)s:%(lineno)d] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


class ValidatorError(Exception):
    """Base exception for the validator with structured context.

    Attributes:
        message: Human-readable error text.
        suggestions: List of short, imperative hints for remediation.
        context: Free-form key/value details safe to log and render.
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.context = context or {}
        super().__init__(self._build_enhanced_message())

    def _build_enhanced_message(self) -> str:
        """Embed key context and suggestions into the exception string."""
        lines = [self.message]

        if self.context:
            if "expected_type" in self.context and "actual_type" in self.context:
                lines.append(f"  Expected: {self.context['expected_type']}")
                lines.append(f"  Actual: {self.context['actual_type']}")
            if "path" in self.context:
                lines.append(f"  Path: {self.context['path'] or '<root>'}")

        if self.suggestions:
            lines.append("  Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"    • {suggestion}")

        return "\n".join(lines)


class ArgumentError(ValidatorError, ValueError):
    """Raised when a target or type argument is absent or of the wrong kind."""


class PreconditionError(ValidatorError, RuntimeError):
    """Raised when a synchronous validation reaches an asynchronous capability."""


class MemberAccessError(ValidatorError):
    """Raised when a member of the object graph cannot be read during traversal."""


class RegistryError(ValidatorError, KeyError):
    """Raised for duplicate or missing entries in a validator registry."""

    def __str__(self) -> str:
        # KeyError would repr() the message otherwise
        return self.args[0] if self.args else ""


def get_type_name(cls: type, qualname: bool = False) -> str:
    """Return a readable name for a type.

    Args:
        cls: The class or type object.
        qualname: If True, return the qualified name when available.

    Returns:
        The type's `__qualname__`, `__name__`, or a string fallback.

    Raises:
        ArgumentError: If `cls` is not a class.
    """
    if not isclass(cls):
        raise ArgumentError(
            f"{cls!r} is not a class",
            ["Pass a class, not an instance"],
            {"expected_type": "class", "actual_type": type(cls).__name__},
        )
    if qualname and hasattr(cls, "__qualname__"):
        return getattr(cls, "__qualname__")
    elif hasattr(cls, "__name__"):
        return getattr(cls, "__name__")
    else:
        return str(cls)


def configure_logging(level: Union[int, str, None] = None) -> logging.Logger:
    """Attach a stream handler to the `validgraph` logger.

    The level comes from `level` or, when omitted, from the
    ``VALIDGRAPH_LOG_LEVEL`` environment variable (default ``WARNING``).
    Calling this twice does not add a second handler.

    Returns:
        The configured package logger.
    """
    if level is None:
        level = os.getenv("VALIDGRAPH_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        level = level.upper()

    package_logger = logging.getLogger(__name__.partition(".")[0])
    package_logger.setLevel(level)
    if not any(
        getattr(handler, "_validgraph_handler", False)
        for handler in package_logger.handlers
    ):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        handler._validgraph_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
    return package_logger
