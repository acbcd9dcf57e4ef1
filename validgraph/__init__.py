from ._version import __version__, format_version_info, get_version_info
from .accumulator import ErrorMap
from .capabilities import (
    AsyncValidatableObject,
    AsyncValidate,
    ValidatableObject,
    Validate,
    ValidationResult,
)
from .context import ValidationContext
from .descriptors import MemberDescriptor, Requirement, TypeDescriptor, TypeMetadataCache
from .engine import GraphValidator
from .registry import ValidatorLookup, ValidatorRegistry
from .rules import (
    Display,
    MaxLength,
    MinLength,
    Pattern,
    Predicate,
    Range,
    Required,
    Rule,
    SkipRecursion,
)
from .settings import ValidationOptions
from .utils import (
    ArgumentError,
    MemberAccessError,
    PreconditionError,
    RegistryError,
    ValidatorError,
    configure_logging,
)
from .validator import (
    TypedValidator,
    Validator,
    default_cache,
    default_registry,
    get_default_validator,
    requires_validation,
    validate,
    validate_async,
)

__all__ = [
    "Validator",
    "TypedValidator",
    "GraphValidator",
    "validate",
    "validate_async",
    "requires_validation",
    "get_default_validator",
    "default_cache",
    "default_registry",
    "TypeMetadataCache",
    "TypeDescriptor",
    "MemberDescriptor",
    "Requirement",
    "ErrorMap",
    "ValidationContext",
    "ValidationOptions",
    "ValidatorRegistry",
    "ValidatorLookup",
    "ValidationResult",
    "ValidatableObject",
    "AsyncValidatableObject",
    "Validate",
    "AsyncValidate",
    "Rule",
    "Required",
    "MinLength",
    "MaxLength",
    "Range",
    "Pattern",
    "Predicate",
    "Display",
    "SkipRecursion",
    "ValidatorError",
    "ArgumentError",
    "PreconditionError",
    "MemberAccessError",
    "RegistryError",
    "configure_logging",
    "get_version_info",
    "format_version_info",
    "__version__",
]
