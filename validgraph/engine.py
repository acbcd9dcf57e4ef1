r"""Recursive object-graph validation.

`GraphValidator` walks a target and returns ``(valid, errors)`` where
``errors`` is an `ErrorMap` keyed by path (``Field``, ``Child.Field``,
``[1].Field``, ``Children[1].Field``).

For a singular object the checks run in this order, and their errors appear
in the same order:

  1. every rule of every member (all failures, no short-circuit);
  2. the object's self-validation capability;
  3. external validators registered for the exact runtime class;
  4. recursion into eligible members, in declaration order.

Steps 2-4 only run when ``recurse`` is true. Sequences are validated item by
item and iteration stops at the first invalid item.

The traversal is written once, as a generator. Whenever a capability hands
back an awaitable the generator yields it; the blocking driver resolves it on
an event loop (or refuses, raising `PreconditionError`), the async driver
awaits it. Either way the generator resumes where it stopped, so suspension
never changes which errors are produced or their order.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Generator, NamedTuple, Optional, Tuple

from .accumulator import ErrorMap
from .capabilities import AsyncValidate, ResultsLike, coerce_results
from .context import ValidationContext
from .descriptors import MemberDescriptor, TypeMetadataCache, is_scalar_type, is_sequence
from .utils import ArgumentError, MemberAccessError, PreconditionError, get_type_name

__all__ = ["GraphValidator"]

logger = logging.getLogger(__name__)


class _Suspension(NamedTuple):
    awaitable: Awaitable[Any]
    source: str
    path: str


Walk = Generator[_Suspension, Any, ErrorMap]


def _block_on(awaitable: Awaitable[Any]) -> Any:
    """Block the calling thread until `awaitable` completes.

    Runs it on a fresh event loop, or on a worker thread's loop when the
    calling thread already runs one. An awaitable that can only complete on
    the blocked thread never finishes; avoiding that is up to the caller.
    """

    async def _await() -> Any:
        return await awaitable

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await())
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, _await()).result()


def _discard(awaitable: Awaitable[Any]) -> None:
    if inspect.iscoroutine(awaitable):
        awaitable.close()


def _drive_blocking(walk: Walk, context: ValidationContext) -> ErrorMap:
    send, value = walk.send, None
    while True:
        try:
            suspension = send(value)
        except StopIteration as stop:
            return stop.value
        if not context.allow_async:
            _discard(suspension.awaitable)
            walk.close()
            raise PreconditionError(
                f"{suspension.source} requires async validation",
                [
                    "Call validate_async() instead",
                    "Or pass allow_async=True to block on asynchronous checks",
                ],
                {"path": suspension.path},
            )
        try:
            value, send = _block_on(suspension.awaitable), walk.send
        except Exception as exc:
            value, send = exc, walk.throw


async def _drive_async(walk: Walk) -> ErrorMap:
    send, value = walk.send, None
    while True:
        try:
            suspension = send(value)
        except StopIteration as stop:
            return stop.value
        try:
            value, send = await suspension.awaitable, walk.send
        except Exception as exc:
            value, send = exc, walk.throw


class GraphValidator:
    """Validate object graphs using a metadata cache and a validator lookup.

    Args:
        cache: Type metadata cache; a private one is created when omitted.
        lookup: External-validator lookup (``get_validators(cls)``), optional.
    """

    def __init__(self, cache: Optional[TypeMetadataCache] = None, lookup: Any = None):
        self.cache = cache if cache is not None else TypeMetadataCache()
        self.lookup = lookup

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def validate(
        self, target: Any, recurse: bool = True, allow_async: bool = False
    ) -> Tuple[bool, ErrorMap]:
        """Validate `target` on the calling thread.

        Raises:
            ArgumentError: If `target` is None.
            PreconditionError: If asynchronous work is met and `allow_async`
                is false.
            MemberAccessError: If a member visited during recursion cannot be
                read.
        """
        context = self._start(target, recurse, allow_async)
        if context is None:
            return True, ErrorMap()
        if (
            recurse
            and not allow_async
            and not self._is_sequence(target)
            and self.cache.requires_async(type(target), self.lookup)
        ):
            raise PreconditionError(
                f"The target type {get_type_name(type(target))} requires async validation",
                [
                    "Call validate_async() instead",
                    "Or pass allow_async=True to block on asynchronous checks",
                ],
                {"path": ""},
            )
        errors = _drive_blocking(self._walk(target, context), context)
        return self._finish(target, errors)

    async def validate_async(
        self, target: Any, recurse: bool = True
    ) -> Tuple[bool, ErrorMap]:
        """Validate `target`, awaiting asynchronous capabilities as they come."""
        context = self._start(target, recurse, allow_async=True)
        if context is None:
            return True, ErrorMap()
        errors = await _drive_async(self._walk(target, context))
        return self._finish(target, errors)

    def _start(
        self, target: Any, recurse: bool, allow_async: bool
    ) -> Optional[ValidationContext]:
        if target is None:
            raise ArgumentError(
                "A target to validate is required",
                ["Pass the object to validate, not None"],
            )
        if (
            recurse
            and not self._is_sequence(target)
            and not self.cache.requires_validation(type(target), True, self.lookup)
        ):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "%s has nothing to validate", get_type_name(type(target))
                )
            return None
        return ValidationContext(recurse, allow_async, self.lookup)

    @staticmethod
    def _finish(target: Any, errors: ErrorMap) -> Tuple[bool, ErrorMap]:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Validated %s: valid=%s, %d error key(s)",
                get_type_name(type(target)),
                not errors,
                len(errors),
            )
        return not errors, errors

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def _is_sequence(self, value: Any) -> bool:
        """Iterables are walked item by item unless their class declares members."""
        cls = type(value)
        return (
            is_sequence(value)
            and not is_scalar_type(cls)
            and not self.cache.descriptor_for(cls).members
        )

    def _walk(self, target: Any, context: ValidationContext) -> Walk:
        if self._is_sequence(target):
            with context.visit(target):
                return (yield from self._walk_sequence(target, context))
        if context.recurse and not self.cache.requires_validation(
            type(target), True, self.lookup
        ):
            return ErrorMap()
        with context.visit(target):
            return (yield from self._walk_object(target, context))

    def _walk_sequence(self, target: Any, context: ValidationContext) -> Walk:
        errors = ErrorMap()
        for index, item in enumerate(target):
            if item is None or context.is_active(item):
                continue
            with context.descend(index):
                item_errors = yield from self._walk(item, context)
            if item_errors:
                errors.merge(f"[{index}]", item_errors)
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "Item %s is invalid; remaining items are not validated",
                        context.member_path(f"[{index}]"),
                    )
                break
        return errors

    def _walk_object(self, target: Any, context: ValidationContext) -> Walk:
        cls = type(target)
        descriptor = self.cache.descriptor_for(cls)
        errors = ErrorMap()

        for member in descriptor.members:
            if not member.rules:
                continue
            value = self._read(member, target, context)
            for rule in member.rules:
                if not rule.is_valid(value):
                    errors.add(member.name, rule.format_message(member.display_name))

        if not context.recurse:
            return errors

        if descriptor.self_validation == "async":
            results = yield self._suspend(
                target.validate_object_async(context), cls, "validate_object_async", context
            )
            self._merge_results(errors, results)
        elif descriptor.self_validation == "sync":
            results = target.validate_object(context)
            if inspect.isawaitable(results):
                results = yield self._suspend(results, cls, "validate_object", context)
            self._merge_results(errors, results)

        if self.lookup is not None:
            for validator in self.lookup.get_validators(cls):
                if isinstance(validator, AsyncValidate):
                    results = validator.validate_async(target, context)
                else:
                    results = validator.validate(target, context)
                if inspect.isawaitable(results):
                    results = yield self._suspend(
                        results, type(validator), "validate", context
                    )
                self._merge_results(errors, results)

        for member in descriptor.members:
            if not member.recursion_eligible:
                continue
            value = self._read(member, target, context)
            if value is None:
                continue
            if context.is_active(value):
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "Skipping %s: object already being validated",
                        context.member_path(member.name),
                    )
                continue
            with context.descend(member.name):
                child_errors = yield from self._walk(value, context)
            errors.merge(member.name, child_errors)

        return errors

    @staticmethod
    def _suspend(
        awaitable: Awaitable[Any], owner: type, method: str, context: ValidationContext
    ) -> _Suspension:
        return _Suspension(
            awaitable, f"{get_type_name(owner)}.{method}", context.path
        )

    @staticmethod
    def _read(member: MemberDescriptor, target: Any, context: ValidationContext) -> Any:
        try:
            return member.get_value(target)
        except Exception as exc:
            raise MemberAccessError(
                f"Cannot read {get_type_name(type(target))}.{member.name}: {exc!r}",
                [
                    "Make sure the member can be read on a constructed instance",
                    "Mark the member with SkipRecursion to keep traversal out of it",
                ],
                {"path": context.member_path(member.name), "member": member.name},
            ) from exc

    @staticmethod
    def _merge_results(errors: ErrorMap, results: ResultsLike) -> None:
        for result in coerce_results(results):
            for name in result.member_names or ("",):
                errors.add(name, result.message)
