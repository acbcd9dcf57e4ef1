r"""Type metadata: what a class can validate, discovered once per class.

`TypeMetadataCache.descriptor_for(cls)` introspects a class a single time and
returns an immutable `TypeDescriptor`:

  - one `MemberDescriptor` per public annotated attribute or property, in
    declaration order, base classes first;
  - the rules and markers found in each member's ``Annotated`` metadata;
  - the value types each member can hold, used to decide whether descending
    into it can ever produce errors;
  - the class's self-validation capability, if any.

On top of descriptors the cache answers `requires_validation` and
`requires_async` by walking the closure of types reachable through
recursion-eligible members. The walk is breadth-first over a visited set, so
self-referencing types terminate without being analysed twice.

A member is *open* when its declared type says nothing useful about the
runtime value (no annotation, ``Any``, ``object``, a ``TypeVar``, an abstract
class or a ``Protocol``). Open members may hold any validatable object, so a
class with an open member requires validation whenever recursion is on.
The same holds for a member declared as a class not marked ``@final``: an
instance of a subclass with rules may sit there, so the closure treats it as
open too.

Doxygen Dot Graph of the cache:
-------------------------------
\dot
digraph TypeMetadataCache {
    rankdir=LR;
    node [shape=rectangle];
    "TypeMetadataCache" -> "TypeDescriptor" [label="descriptor_for"];
    "TypeDescriptor" -> "MemberDescriptor" [label="members"];
    "TypeMetadataCache" -> "Closure" [label="reachable types"];
}
\enddot
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import enum
import inspect
import logging
import types
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from fractions import Fraction
from pathlib import PurePath
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    ForwardRef,
    Hashable,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)
from uuid import UUID

from typing_extensions import Annotated, get_args, get_origin, get_type_hints

from .capabilities import AsyncValidate, self_validation_kind
from .rules import Display, Rule, is_skip_marker
from .storage import ThreadSafeLocalStorage
from .utils import ArgumentError, get_type_name

__all__ = [
    "MemberDescriptor",
    "TypeDescriptor",
    "Requirement",
    "TypeMetadataCache",
    "is_sequence",
]

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Type shape helpers
# -----------------------------------------------------------------------------

SCALAR_TYPES: Tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    memoryview,
    bool,
    int,
    float,
    complex,
    Decimal,
    Fraction,
    date,
    datetime,
    time,
    timedelta,
    UUID,
    enum.Enum,
    PurePath,
    range,
    type(None),
)

SEQUENCE_ORIGINS = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.deque,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Collection,
        collections.abc.Iterable,
        collections.abc.Iterator,
        collections.abc.Generator,
        collections.abc.ValuesView,
    }
)

_STRING_TYPES = (str, bytes, bytearray, memoryview)

# Classes whose own annotations and properties describe library internals,
# never user data.
_IGNORED_MODULES = ("builtins", "abc", "typing", "typing_extensions", "pydantic")

_UNION_TYPES = (Union, types.UnionType) if hasattr(types, "UnionType") else (Union,)


def is_sequence(value: Any) -> bool:
    """True if `value` can be iterated item by item.

    Strings, bytes and mappings never are. Iterables that also declare members
    (a pydantic model, say) are told apart by the engine.
    """
    return isinstance(value, collections.abc.Iterable) and not isinstance(
        value, _STRING_TYPES + (collections.abc.Mapping,)
    )


def is_scalar_type(cls: type) -> bool:
    return inspect.isclass(cls) and issubclass(cls, SCALAR_TYPES)


def _is_mapping_type(cls: type) -> bool:
    return inspect.isclass(cls) and issubclass(cls, collections.abc.Mapping)


def _is_open_type(annotation: Any) -> bool:
    if annotation is Any or annotation is object or isinstance(annotation, TypeVar):
        return True
    if inspect.isclass(annotation):
        return inspect.isabstract(annotation) or bool(
            getattr(annotation, "_is_protocol", False)
        )
    return False


def _may_hold_subclasses(cls: type) -> bool:
    """A member declared as a class may hold any subclass unless it is final."""
    return not getattr(cls, "__final__", False)


def _is_protocol_only_abc(cls: Any) -> bool:
    """``Callable``, ``Iterator``, ``Hashable`` and friends hold no members."""
    return (
        inspect.isclass(cls)
        and cls.__module__ == "collections.abc"
        and cls not in SEQUENCE_ORIGINS
        and not issubclass(cls, collections.abc.Mapping)
    )


def _is_ignored_class(klass: type) -> bool:
    module = getattr(klass, "__module__", "") or ""
    return klass is object or module.split(".")[0] in _IGNORED_MODULES


def _resolve(annotation: Any, owner: Any) -> Any:
    """Return `annotation`, or ``Any`` for a forward reference left unresolved."""
    if isinstance(annotation, (str, ForwardRef)):
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Unresolved annotation %r on %r treated as open", annotation, owner)
        return Any
    return annotation


def _type_hints(owner: Any) -> Optional[Dict[str, Any]]:
    """Evaluate the annotations of a class or function, keeping ``Annotated``.

    Returns None when some annotation cannot be resolved; callers then fall
    back to the raw annotations and treat unresolved ones as open.
    """
    try:
        return get_type_hints(owner, include_extras=True)
    except (NameError, AttributeError, TypeError) as e:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Cannot resolve annotations of %r: %s", owner, e)
        return None


def _class_hints(klass: type, own: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Evaluate only the annotations `klass` declares itself.

    Bases are resolved on their own turn, so one base with an unresolvable
    annotation does not leave every subclass open.
    """
    namespace = {"__annotations__": own, "__module__": klass.__module__}
    return _type_hints(type(klass.__name__, (), namespace))


def _strip_annotated(annotation: Any, owner: Any) -> Tuple[Any, Tuple[Any, ...]]:
    """Return the bare type and the collected ``Annotated`` metadata."""
    annotation = _resolve(annotation, owner)
    metadata: Tuple[Any, ...] = ()
    while get_origin(annotation) is Annotated:
        args = get_args(annotation)
        metadata = metadata + tuple(args[1:])
        annotation = _resolve(args[0], owner)
    return annotation, metadata


def _flatten(annotation: Any, owner: Any) -> List[Any]:
    """Expand unions (dropping ``None``) into their member annotations."""
    annotation, _ = _strip_annotated(annotation, owner)
    if get_origin(annotation) in _UNION_TYPES:
        flat: List[Any] = []
        for arg in get_args(annotation):
            flat.extend(_flatten(arg, owner))
        return flat
    if annotation is None or annotation is type(None):
        return []
    return [annotation]


def _element_annotation(annotation: Any) -> Any:
    """Return the item annotation of a sequence annotation, else None."""
    origin = get_origin(annotation)
    if origin not in SEQUENCE_ORIGINS:
        return None
    args = get_args(annotation)
    if not args:
        return Any
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        return Union[args] if len(args) > 1 else args[0]
    return args[0]


def _value_shape(annotation: Any, owner: Any) -> Tuple[Tuple[type, ...], bool, Any]:
    """Classify what a member declared as `annotation` can hold.

    Returns:
        (value_types, is_open, element_annotation) where value_types lists the
        classes worth descending into (scalars and mappings removed).
    """
    value_types: List[type] = []
    is_open = False
    element = None
    for candidate in _flatten(annotation, owner):
        item = _element_annotation(candidate)
        if item is not None:
            element = item
            targets = _flatten(item, owner)
            if not targets:
                continue
        elif inspect.isclass(candidate) and candidate in SEQUENCE_ORIGINS:
            # bare ``list`` / ``Sequence``: items unknown
            is_open = True
            continue
        else:
            targets = [candidate]
        for target in targets:
            origin = get_origin(target)
            if origin is not None and inspect.isclass(origin):
                target = origin
            if _is_protocol_only_abc(target):
                continue
            if _is_open_type(target):
                is_open = True
            elif inspect.isclass(target):
                if is_scalar_type(target) or _is_mapping_type(target):
                    continue
                if target in SEQUENCE_ORIGINS:
                    is_open = True
                elif target not in value_types:
                    value_types.append(target)
            # Literal[...] and other special forms hold no objects
    return tuple(value_types), is_open, element


def _own_annotations(klass: type) -> Dict[str, Any]:
    try:
        return dict(inspect.get_annotations(klass))
    except NameError:
        # lazily evaluated annotations (3.14+) with names not yet defined
        import annotationlib

        return dict(
            annotationlib.get_annotations(
                klass, format=annotationlib.Format.FORWARDREF
            )
        )


def _is_class_var(annotation: Any) -> bool:
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _make_accessor(name: str) -> Callable[[Any], Any]:
    def accessor(instance: Any) -> Any:
        return getattr(instance, name, None)

    accessor.__name__ = f"get_{name}"
    return accessor


# -----------------------------------------------------------------------------
# Descriptors
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class MemberDescriptor:
    """Compiled metadata for one readable member of a class.

    Attributes:
        name: Attribute name, also the error path segment.
        display_name: Name used inside rule messages.
        rules: Rules evaluated against the member value, in declaration order.
        declared_type: Declared annotation with ``Annotated`` stripped.
        element_type: Item annotation when the member is a typed sequence.
        value_types: Classes the value (or its items) may be worth visiting as.
        is_open: Declared type cannot rule out validatable values.
        skip_recursion: Member carries the `SkipRecursion` marker.
    """

    name: str
    display_name: str
    rules: Tuple[Rule, ...]
    declared_type: Any
    element_type: Any
    value_types: Tuple[type, ...]
    is_open: bool
    skip_recursion: bool
    accessor: Callable[[Any], Any] = field(repr=False, compare=False)

    @property
    def recursion_eligible(self) -> bool:
        return not self.skip_recursion and (self.is_open or bool(self.value_types))

    def get_value(self, instance: Any) -> Any:
        return self.accessor(instance)


@dataclass(frozen=True)
class TypeDescriptor:
    """Compiled metadata for one class. Immutable once built."""

    cls: type
    members: Tuple[MemberDescriptor, ...]
    self_validation: Optional[str] = None

    @property
    def has_rules(self) -> bool:
        return any(member.rules for member in self.members)

    @property
    def validates_itself(self) -> bool:
        """True if the class has direct checks (rules or self-validation)."""
        return self.has_rules or self.self_validation is not None

    def member(self, name: str) -> MemberDescriptor:
        for member in self.members:
            if member.name == name:
                return member
        raise ArgumentError(
            f"{get_type_name(self.cls)} has no member {name!r}",
            [f"Known members: {', '.join(m.name for m in self.members) or '<none>'}"],
        )


class Requirement(enum.Enum):
    """What validating a class may involve, transitively."""

    NOTHING = "nothing"
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class _Closure:
    types: Tuple[type, ...]
    has_open_member: bool


def _member_from_annotation(
    name: str, annotation: Any, owner: Any, accessor: Callable[[Any], Any]
) -> MemberDescriptor:
    declared, metadata = _strip_annotated(annotation, owner)
    value_types, is_open, element = _value_shape(declared, owner)
    display = next((m.name for m in metadata if isinstance(m, Display)), name)
    return MemberDescriptor(
        name=name,
        display_name=display,
        rules=tuple(m for m in metadata if isinstance(m, Rule)),
        declared_type=declared,
        element_type=element,
        value_types=value_types,
        is_open=is_open,
        skip_recursion=any(is_skip_marker(m) for m in metadata),
        accessor=accessor,
    )


def _collect_members(cls: type) -> Tuple[MemberDescriptor, ...]:
    members: Dict[str, MemberDescriptor] = {}
    for klass in reversed(cls.__mro__):
        if _is_ignored_class(klass):
            continue
        own = _own_annotations(klass)
        hints = (_class_hints(klass, own) if own else None) or {}
        for name, annotation in own.items():
            if name.startswith("_"):
                continue
            annotation = hints.get(name, annotation)
            if _is_class_var(annotation) or isinstance(annotation, dataclasses.InitVar):
                continue
            members[name] = _member_from_annotation(
                name, annotation, klass, _make_accessor(name)
            )
        for name, attr in vars(klass).items():
            if name.startswith("_") or not isinstance(attr, property):
                continue
            if attr.fget is None:
                continue
            returns = (_type_hints(attr.fget) or {}).get("return", Any)
            members[name] = _member_from_annotation(
                name, returns, attr.fget, _make_accessor(name)
            )
    return tuple(members.values())


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


class TypeMetadataCache:
    """Process-lifetime cache of type descriptors and requirement answers.

    Instances are independent, so tests can use an isolated cache; the façade
    shares one module-level default. All state lives in
    `ThreadSafeLocalStorage`, and every computation is a pure function of the
    class shape, so concurrent first requests may compute twice and still
    agree.
    """

    def __init__(self):
        self._descriptors: ThreadSafeLocalStorage[type, TypeDescriptor] = (
            ThreadSafeLocalStorage()
        )
        self._closures: ThreadSafeLocalStorage[type, _Closure] = (
            ThreadSafeLocalStorage()
        )
        self._requirements: ThreadSafeLocalStorage[Hashable, bool] = (
            ThreadSafeLocalStorage()
        )

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, cls: Any) -> bool:
        return cls in self._descriptors

    def clear(self) -> None:
        self._descriptors.clear()
        self._closures.clear()
        self._requirements.clear()

    @staticmethod
    def _check_class(cls: Any) -> type:
        if cls is None:
            raise ArgumentError(
                "A type is required",
                ["Pass the class to inspect, e.g. type(instance)"],
            )
        if not inspect.isclass(cls):
            raise ArgumentError(
                f"{cls!r} is not a class",
                ["Pass type(instance) rather than the instance itself"],
                {"expected_type": "class", "actual_type": type(cls).__name__},
            )
        return cls

    def descriptor_for(self, cls: type) -> TypeDescriptor:
        """Return the (memoized) descriptor of `cls`."""
        self._check_class(cls)
        return self._descriptors.get_or_compute(cls, lambda: self._build(cls))

    def _build(self, cls: type) -> TypeDescriptor:
        if is_scalar_type(cls) or _is_mapping_type(cls) or _is_ignored_class(cls):
            descriptor = TypeDescriptor(cls, ())
        else:
            descriptor = TypeDescriptor(
                cls, _collect_members(cls), self_validation_kind(cls)
            )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Built descriptor for %s: %d member(s), %d with rules, self-validation=%s",
                get_type_name(cls, qualname=True),
                len(descriptor.members),
                sum(1 for m in descriptor.members if m.rules),
                descriptor.self_validation,
            )
        return descriptor

    def _closure(self, cls: type) -> _Closure:
        return self._closures.get_or_compute(cls, lambda: self._walk_closure(cls))

    def _walk_closure(self, cls: type) -> _Closure:
        seen: List[type] = [cls]
        has_open = False
        for current in seen:  # grows while iterating
            for member in self.descriptor_for(current).members:
                if not member.recursion_eligible:
                    continue
                has_open = (
                    has_open
                    or member.is_open
                    or any(_may_hold_subclasses(t) for t in member.value_types)
                )
                for value_type in member.value_types:
                    if value_type not in seen:
                        seen.append(value_type)
        return _Closure(tuple(seen), has_open)

    def reachable_types(self, cls: type) -> Tuple[type, ...]:
        """Return `cls` and every class reachable through eligible members."""
        return self._closure(self._check_class(cls)).types

    def requires_validation(
        self, cls: type, recurse: bool = True, lookup: Any = None
    ) -> bool:
        """True if validating an instance of `cls` can ever produce errors.

        Args:
            cls: Class to inspect.
            recurse: Also consider reachable member types.
            lookup: Optional external-validator lookup; checked live because
                registries change after classes are first seen.
        """
        self._check_class(cls)
        if self._requirements.get_or_compute(
            ("sync", cls, recurse), lambda: self._static_requires(cls, recurse)
        ):
            return True
        if lookup is None:
            return False
        candidates = self._closure(cls).types if recurse else (cls,)
        return any(lookup.get_validators(t) for t in candidates)

    def _static_requires(self, cls: type, recurse: bool) -> bool:
        if not recurse:
            return self.descriptor_for(cls).validates_itself
        closure = self._closure(cls)
        return closure.has_open_member or any(
            self.descriptor_for(t).validates_itself for t in closure.types
        )

    def requires_async(self, cls: type, lookup: Any = None) -> bool:
        """True if some reachable type needs an awaited capability.

        Open members are not counted: what they hold is only known at
        traversal time.
        """
        self._check_class(cls)
        if self._requirements.get_or_compute(
            ("async", cls),
            lambda: any(
                self.descriptor_for(t).self_validation == "async"
                for t in self._closure(cls).types
            ),
        ):
            return True
        if lookup is None:
            return False
        return any(
            isinstance(validator, AsyncValidate)
            for t in self._closure(cls).types
            for validator in lookup.get_validators(t)
        )

    def requirement(self, cls: type, lookup: Any = None) -> Requirement:
        if self.requires_async(cls, lookup):
            return Requirement.ASYNC
        if self.requires_validation(cls, True, lookup):
            return Requirement.SYNC
        return Requirement.NOTHING
