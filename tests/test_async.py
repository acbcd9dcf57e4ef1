"""Asynchronous capabilities: suspension, blocking and precondition checks."""

import asyncio

import pytest

from graph_models import AsyncCheckedItem, AsyncHolder, Customer, Item, Order
from validgraph import (
    AsyncValidate,
    PreconditionError,
    Validate,
    ValidationResult,
)


class CreditLimitCheck(AsyncValidate[Customer]):
    """Pretends to ask a remote service about the customer's credit limit."""

    def __init__(self):
        self.calls = 0

    async def validate_async(self, instance, context):
        self.calls += 1
        await asyncio.sleep(0)
        if instance.credit_limit < 0:
            return [ValidationResult("Credit limit cannot be negative.", ["credit_limit"])]
        return []


class NameCheck(Validate[Customer]):
    def validate(self, instance, context):
        if not instance.name:
            yield ValidationResult("A customer needs a name.", ["name"])


class FailingCheck(AsyncValidate[Customer]):
    async def validate_async(self, instance, context):
        raise ConnectionError("service unavailable")


class AwaitableSyncCheck(Validate[Customer]):
    """A sync validator that hands back an awaitable anyway."""

    def validate(self, instance, context):
        async def check():
            return ["Checked remotely."]

        return check()


def test_requires_async_through_registry(validator, registry):
    assert not validator.cache.requires_async(Customer, registry)

    registry.register(Customer, CreditLimitCheck())

    assert validator.cache.requires_async(Customer, registry)
    assert validator.requires_validation(Customer)


def test_sync_validation_with_async_external_validator_raises(validator, registry):
    check = registry.register(Customer, CreditLimitCheck())

    with pytest.raises(PreconditionError) as excinfo:
        validator.validate(Customer(credit_limit=-1))

    assert "validate_async" in str(excinfo.value)
    assert check.calls == 0


def test_async_external_validator(validator, registry):
    registry.register(Customer, CreditLimitCheck())

    valid, errors = asyncio.run(validator.validate_async(Customer(credit_limit=-1)))

    assert not valid
    assert errors == {"credit_limit": ["Credit limit cannot be negative."]}


def test_sync_and_async_validators_keep_registration_order(validator, registry):
    registry.register(Customer, CreditLimitCheck())
    registry.register(Customer, NameCheck())

    valid, errors = asyncio.run(
        validator.validate_async(Customer(name="", credit_limit=-1))
    )

    assert not valid
    assert list(errors) == ["credit_limit", "name"]


def test_blocking_on_async_work_matches_async_result(validator, registry):
    registry.register(Customer, CreditLimitCheck())
    customers = [Customer(), Customer(credit_limit=-5)]

    blocking = validator.validate(customers, allow_async=True)
    awaited = asyncio.run(validator.validate_async(customers))

    assert blocking == awaited
    assert list(blocking[1]) == ["[1].credit_limit"]


def test_allow_async_inside_running_event_loop(validator):
    holder = AsyncHolder(needs_async=AsyncCheckedItem(twenty_or_more=1))

    async def main():
        return validator.validate(holder, allow_async=True)

    valid, errors = asyncio.run(main())

    assert not valid
    assert list(errors) == ["needs_async.twenty_or_more"]


def test_async_entry_point_never_raises_precondition(validator):
    valid, errors = asyncio.run(validator.validate_async(AsyncHolder()))

    assert valid
    assert errors == {}


def test_async_holder_without_child_still_needs_async_entry_point(validator):
    with pytest.raises(PreconditionError):
        validator.validate(AsyncHolder())


def test_recurse_false_skips_async_work(validator):
    holder = AsyncHolder(needs_async=AsyncCheckedItem(twenty_or_more=1))

    assert validator.validate(holder, recurse=False) == (True, {})


def test_exception_from_awaited_validator_propagates(validator, registry):
    registry.register(Customer, FailingCheck())

    with pytest.raises(ConnectionError):
        asyncio.run(validator.validate_async(Customer()))

    with pytest.raises(ConnectionError):
        validator.validate(Customer(), allow_async=True)


def test_awaitable_from_sync_validator_is_suspended(validator, registry):
    registry.register(Customer, AwaitableSyncCheck())

    with pytest.raises(PreconditionError):
        validator.validate(Customer())

    valid, errors = validator.validate(Customer(), allow_async=True)

    assert not valid
    assert errors == {"": ["Checked remotely."]}


def test_suspension_keeps_error_order(validator, registry):
    registry.register(Customer, CreditLimitCheck())
    order = Order(required_name=None, child=Item(required_category=None))
    graph = [order]

    sync_valid, sync_errors = validator.validate(graph, allow_async=True)
    async_valid, async_errors = asyncio.run(validator.validate_async(graph))

    assert not sync_valid and not async_valid
    assert list(sync_errors) == list(async_errors) == [
        "[0].required_name",
        "[0].child.required_category",
    ]


def test_concurrent_async_validations_are_independent(validator, registry):
    registry.register(Customer, CreditLimitCheck())
    customers = [Customer(credit_limit=limit) for limit in (-1, 5, -2, 10)]

    async def main():
        return await asyncio.gather(*(validator.validate_async(c) for c in customers))

    results = asyncio.run(main())

    assert [valid for valid, _ in results] == [False, True, False, True]
    assert all(list(errors) in ([], ["credit_limit"]) for _, errors in results)
