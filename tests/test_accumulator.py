"""Path joining and the ordered error map."""

import pytest

from validgraph import ErrorMap
from validgraph.accumulator import join_path


@pytest.mark.parametrize(
    "prefix, key, expected",
    [
        ("", "Name", "Name"),
        ("Child", "Name", "Child.Name"),
        ("Children", "[1].Name", "Children[1].Name"),
        ("", "[0]", "[0]"),
        ("[0]", "Child", "[0].Child"),
        ("Child", "", "Child"),
        ("", "", ""),
    ],
)
def test_join_path(prefix, key, expected):
    assert join_path(prefix, key) == expected


class TestErrorMap:
    def test_add_keeps_first_insertion_order(self):
        errors = ErrorMap()
        errors.add("b", "one")
        errors.add("a", "two")
        errors.add("b", "three")

        assert list(errors) == ["b", "a"]
        assert errors["b"] == ["one", "three"]
        assert errors.pairs() == [("b", "one"), ("b", "three"), ("a", "two")]

    def test_merge_reroots_keys(self):
        child = ErrorMap({"Name": ["required"], "": ["object level"]})
        errors = ErrorMap({"Name": ["top"]})

        errors.merge("Child", child)

        assert errors.to_dict() == {
            "Name": ["top"],
            "Child.Name": ["required"],
            "Child": ["object level"],
        }

    def test_merge_extends_existing_keys(self):
        errors = ErrorMap({"Child.Name": ["first"]})

        errors.merge("Child", ErrorMap({"Name": ["second"]}))

        assert errors["Child.Name"] == ["first", "second"]

    def test_merge_index_prefix(self):
        errors = ErrorMap()
        errors.merge("[2]", ErrorMap({"Name": ["bad"]}))

        assert list(errors) == ["[2].Name"]

    def test_truthiness_and_length(self):
        assert not ErrorMap()
        assert len(ErrorMap({"a": ["x", "y"]})) == 1

    def test_equality(self):
        assert ErrorMap({"a": ["x"]}) == {"a": ["x"]}
        assert ErrorMap({"a": ["x"], "b": ["y"]}) == ErrorMap({"a": ["x"], "b": ["y"]})
        # order matters between error maps
        assert ErrorMap({"a": ["x"], "b": ["y"]}) != ErrorMap({"b": ["y"], "a": ["x"]})
        assert ErrorMap() != []

    def test_to_dict_is_a_copy(self):
        errors = ErrorMap({"a": ["x"]})
        copy = errors.to_dict()
        copy["a"].append("y")

        assert errors["a"] == ["x"]

    def test_repr(self):
        assert repr(ErrorMap({"a": ["x"]})) == "ErrorMap({'a': ['x']})"
