"""Type metadata: member discovery, shapes and requirement analysis."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Dict, Optional, Protocol, Sequence, Tuple, TypeVar, Union

import pytest
from pydantic import BaseModel
from typing_extensions import Annotated

from graph_models import (
    AsyncCheckedItem,
    AsyncHolder,
    BaseHolder,
    Container,
    DerivedItem,
    Envelope,
    Item,
    Linked,
    Node,
    Order,
    Plain,
    SealedHolder,
    ValidatableItem,
)
from validgraph import (
    ArgumentError,
    Display,
    MaxLength,
    MinLength,
    Required,
    Requirement,
    TypeMetadataCache,
)

T = TypeVar("T")


class Shape(ABC):
    @abstractmethod
    def area(self) -> float: ...


class Named(Protocol):
    name: str


@dataclass
class Shapes:
    by_name: Dict[str, Item] = field(default_factory=dict)
    callback: Optional[Callable[[], None]] = None
    tags: Tuple[str, ...] = ()
    pairs: Tuple[Item, Order] = None
    union: Union[Item, Order, None] = None
    loose: list = field(default_factory=list)
    typed: Sequence[Item] = ()
    shape: Optional[Shape] = None
    named: Optional[Named] = None
    generic: Optional[T] = None


@dataclass
class WithClassState:
    registry: ClassVar[Dict[str, int]] = {}
    _private: Annotated[Optional[str], Required()] = None
    public: Annotated[Optional[str], Required(), MaxLength(3), Display("Public name")] = "x"

    @property
    def computed(self) -> Optional[Item]:
        return None

    @property
    def _hidden(self) -> Item:
        raise AssertionError("private properties are never read")


class ValidatedPart(BaseModel):
    code: Annotated[Optional[str], MinLength(5)] = None


class ValidatedModel(BaseModel):
    title: Annotated[Optional[str], Required()] = None
    part: Optional[ValidatedPart] = None


@dataclass
class Dangling:
    label: Annotated[Optional[str], Required()] = "dangling"
    ghost: "Optional[NotDefinedAnywhere]" = None  # noqa: F821


class TestDescriptors:
    def test_members_in_declaration_order_base_first(self, cache):
        names = [m.name for m in cache.descriptor_for(DerivedItem).members]

        assert names == [
            "required_category",
            "min_length_five",
            "child",
            "derived_min_length_ten",
        ]

    def test_rules_and_markers(self, cache):
        descriptor = cache.descriptor_for(Order)

        required_name = descriptor.member("required_name")
        assert [type(r) for r in required_name.rules] == [Required]
        assert required_name.display_name == "required_name"
        assert not required_name.recursion_eligible

        skipped = descriptor.member("skipped_child")
        assert skipped.skip_recursion
        assert skipped.value_types == (Item,)
        assert not skipped.recursion_eligible

        children = descriptor.member("children")
        assert children.element_type is Item
        assert children.value_types == (Item,)
        assert children.recursion_eligible

    def test_display_name_and_private_members(self, cache):
        descriptor = cache.descriptor_for(WithClassState)

        assert [m.name for m in descriptor.members] == ["public", "computed"]
        public = descriptor.member("public")
        assert public.display_name == "Public name"
        assert [type(r) for r in public.rules] == [Required, MaxLength]
        assert descriptor.member("computed").value_types == (Item,)

    def test_unknown_member_raises(self, cache):
        with pytest.raises(ArgumentError):
            cache.descriptor_for(Item).member("missing")

    def test_value_shapes(self, cache):
        descriptor = cache.descriptor_for(Shapes)

        assert descriptor.member("by_name").value_types == ()
        assert not descriptor.member("by_name").recursion_eligible
        assert not descriptor.member("callback").recursion_eligible
        assert not descriptor.member("tags").recursion_eligible
        assert descriptor.member("pairs").value_types == (Item, Order)
        assert descriptor.member("union").value_types == (Item, Order)
        assert descriptor.member("loose").is_open
        assert descriptor.member("typed").value_types == (Item,)
        assert descriptor.member("shape").is_open
        assert descriptor.member("named").is_open
        assert descriptor.member("generic").is_open

    def test_self_validation_kind(self, cache):
        assert cache.descriptor_for(ValidatableItem).self_validation == "sync"
        assert cache.descriptor_for(AsyncCheckedItem).self_validation == "async"
        assert cache.descriptor_for(Item).self_validation is None

    def test_scalars_have_no_members(self, cache):
        assert cache.descriptor_for(str).members == ()
        assert cache.descriptor_for(dict).members == ()

    def test_pydantic_model_fields(self, cache, validator):
        descriptor = cache.descriptor_for(ValidatedModel)

        assert [m.name for m in descriptor.members] == ["title", "part"]

        valid, errors = validator.validate(ValidatedModel(part=ValidatedPart(code="abc")))
        assert not valid
        assert list(errors) == ["title", "part.code"]

    def test_string_annotations_are_resolved(self, cache, validator):
        descriptor = cache.descriptor_for(Linked)

        assert [type(r) for r in descriptor.member("tag").rules] == [Required]
        assert descriptor.member("head").value_types == (Item,)
        assert not descriptor.member("head").is_open

        target = Linked(tag=None, head=Item(min_length_five="abc"))

        valid, errors = validator.validate(target)
        assert not valid
        assert list(errors) == ["tag", "head.min_length_five"]

    def test_unresolvable_annotation_is_open(self, cache):
        descriptor = cache.descriptor_for(Dangling)

        assert [type(r) for r in descriptor.member("label").rules] == [Required]
        assert descriptor.member("ghost").is_open
        assert descriptor.member("ghost").value_types == ()

    def test_descriptor_is_memoized(self, cache):
        first = cache.descriptor_for(Order)

        assert cache.descriptor_for(Order) is first
        assert Order in cache
        cache.clear()
        assert Order not in cache
        assert cache.descriptor_for(Order) is not first

    def test_rejects_non_classes(self, cache):
        with pytest.raises(ArgumentError):
            cache.descriptor_for(Order())
        with pytest.raises(ArgumentError):
            cache.descriptor_for(None)


class TestRequirements:
    def test_requires_validation(self, cache):
        assert cache.requires_validation(Order)
        assert cache.requires_validation(Item, recurse=False)
        assert not cache.requires_validation(object)
        assert not cache.requires_validation(int)

    def test_container_without_own_rules(self, cache):
        # only the child validates itself
        assert cache.requires_validation(AsyncHolder, recurse=True)
        assert not cache.requires_validation(AsyncHolder, recurse=False)

    def test_self_referencing_type_terminates(self, cache):
        assert cache.reachable_types(Node) == (Node,)
        assert cache.requires_validation(Node)

    def test_reachable_types(self, cache):
        reachable = cache.reachable_types(Container)

        assert reachable[0] is Container
        assert set(reachable) >= {Item}
        assert AsyncCheckedItem not in reachable

    def test_open_members_require_validation_when_recursing(self, cache):
        assert cache.requires_validation(Plain, recurse=True)
        assert not cache.requires_validation(Plain, recurse=False)

    def test_members_of_non_final_classes_require_validation(self, cache):
        # a subclass with rules may sit where the base class is declared
        assert cache.requires_validation(BaseHolder)
        assert cache.requires_validation(Envelope)
        assert not cache.requires_validation(BaseHolder, recurse=False)
        assert not cache.requires_validation(SealedHolder)

    def test_requires_async(self, cache):
        assert cache.requires_async(AsyncHolder)
        assert cache.requires_async(AsyncCheckedItem)
        assert not cache.requires_async(Container)
        assert not cache.requires_async(Order)

    def test_requirement(self, cache):
        assert cache.requirement(AsyncHolder) is Requirement.ASYNC
        assert cache.requirement(Order) is Requirement.SYNC
        assert cache.requirement(int) is Requirement.NOTHING

    def test_answers_are_stable(self, cache):
        answers = [cache.requires_validation(Order) for _ in range(3)]
        assert answers == [True, True, True]

    def test_isolated_caches(self):
        first, second = TypeMetadataCache(), TypeMetadataCache()
        first.descriptor_for(Order)

        assert Order in first
        assert Order not in second
        assert len(second) == 0
