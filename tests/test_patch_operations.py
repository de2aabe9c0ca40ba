"""Tests for operation parsing and the semantics of each verb."""

from decimal import Decimal

import pytest

from src.patch.errors import (
    InvalidFromPathError,
    InvalidOperationError,
    InvalidPathError,
    PatchTestFailedError,
)
from src.patch.operations import PatchOperation, PatchOperationExecutor, values_equal


def run(document, **raw):
    PatchOperationExecutor().execute(document, PatchOperation.from_dict(raw))
    return document


class TestPatchOperationParsing:
    """Test the wire shape ``{op, path, from?, value?}``."""

    def test_parses_value_operation(self):
        operation = PatchOperation.from_dict({"op": "add", "path": "/a", "value": None})
        assert operation.op == "add"
        assert operation.path == "/a"
        assert operation.value is None

    def test_value_is_copied(self):
        value = {"name": "Math"}
        operation = PatchOperation.from_dict({"op": "add", "path": "/a", "value": value})
        assert operation.value == value
        assert operation.value is not value

    def test_unknown_op(self):
        with pytest.raises(InvalidOperationError):
            PatchOperation.from_dict({"op": "merge", "path": "/a"})

    def test_not_an_object(self):
        with pytest.raises(InvalidOperationError):
            PatchOperation.from_dict(["add", "/a"])

    def test_path_must_be_string(self):
        with pytest.raises(InvalidOperationError):
            PatchOperation.from_dict({"op": "remove", "path": 3})

    @pytest.mark.parametrize("op", ["add", "replace", "test"])
    def test_value_required(self, op):
        with pytest.raises(InvalidOperationError):
            PatchOperation.from_dict({"op": op, "path": "/a"})

    @pytest.mark.parametrize("op", ["copy", "move"])
    def test_from_required(self, op):
        with pytest.raises(InvalidOperationError):
            PatchOperation.from_dict({"op": op, "path": "/a"})

    def test_from_must_be_string(self):
        with pytest.raises(InvalidFromPathError):
            PatchOperation.from_dict({"op": "copy", "path": "/a", "from": ["b"]})


class TestAdd:
    def test_add_mapping_key(self):
        assert run({"a": 1}, op="add", path="/b", value=2) == {"a": 1, "b": 2}

    def test_add_overwrites_existing_key(self):
        assert run({"a": 1}, op="add", path="/a", value=5) == {"a": 5}

    def test_add_inserts_into_list(self):
        assert run({"a": [1, 3]}, op="add", path="/a/1", value=2) == {"a": [1, 2, 3]}

    def test_add_at_length_appends(self):
        assert run({"a": [1]}, op="add", path="/a/1", value=2) == {"a": [1, 2]}

    def test_add_with_append_marker(self):
        assert run({"a": [1]}, op="add", path="/a/-", value=2) == {"a": [1, 2]}

    def test_add_past_length(self):
        doc = {"a": [1]}
        with pytest.raises(InvalidPathError):
            run(doc, op="add", path="/a/3", value=2)
        assert doc == {"a": [1]}

    def test_add_creates_missing_containers(self):
        doc = {"name": "Fall"}
        run(doc, op="add", path="/goals/gpa", value=3.9)
        run(doc, op="add", path="/tags/0", value="honors")
        assert doc == {"name": "Fall", "goals": {"gpa": 3.9}, "tags": ["honors"]}

    def test_failed_add_leaves_no_created_containers(self):
        doc = {"name": "Fall"}
        with pytest.raises(InvalidPathError):
            run(doc, op="add", path="/tags/2", value="x")
        assert doc == {"name": "Fall"}

    def test_add_at_root_is_rejected(self):
        with pytest.raises(InvalidPathError):
            run({}, op="add", path="", value={})


class TestReplace:
    def test_replace_key(self):
        assert run({"a": 1}, op="replace", path="/a", value=2) == {"a": 2}

    def test_replace_list_element(self):
        assert run({"a": [1, 2]}, op="replace", path="/a/0", value=9) == {"a": [9, 2]}

    def test_replace_missing_key(self):
        with pytest.raises(InvalidPathError):
            run({"a": 1}, op="replace", path="/b", value=2)

    def test_replace_out_of_range(self):
        with pytest.raises(InvalidPathError):
            run({"a": [1]}, op="replace", path="/a/1", value=2)

    def test_replace_does_not_create_containers(self):
        with pytest.raises(InvalidPathError):
            run({}, op="replace", path="/a/b", value=2)


class TestRemove:
    def test_remove_key(self):
        assert run({"a": 1, "b": 2}, op="remove", path="/a") == {"b": 2}

    def test_remove_list_element_shifts_left(self):
        assert run({"a": [1, 2, 3]}, op="remove", path="/a/0") == {"a": [2, 3]}

    def test_remove_missing(self):
        with pytest.raises(InvalidPathError):
            run({"a": 1}, op="remove", path="/b")
        with pytest.raises(InvalidPathError):
            run({"a": []}, op="remove", path="/a/0")


class TestCopy:
    def test_copy_is_deep(self):
        doc = {"a": {"list": [1]}}
        run(doc, op="copy", path="/b", **{"from": "/a"})
        doc["b"]["list"].append(2)
        assert doc["a"] == {"list": [1]}
        assert doc["b"] == {"list": [1, 2]}

    def test_copy_into_list(self):
        doc = {"courses": [{"name": "Math"}]}
        run(doc, op="copy", path="/courses/-", **{"from": "/courses/0"})
        assert doc == {"courses": [{"name": "Math"}, {"name": "Math"}]}

    def test_copy_missing_source(self):
        with pytest.raises(InvalidFromPathError):
            run({"a": 1}, op="copy", path="/b", **{"from": "/missing"})

    def test_copy_missing_destination_parent(self):
        with pytest.raises(InvalidPathError):
            run({"a": 1}, op="copy", path="/x/y", **{"from": "/a"})


class TestMove:
    def test_move_key(self):
        assert run({"a": 1}, op="move", path="/b", **{"from": "/a"}) == {"b": 1}

    def test_move_within_list_reindexes(self):
        doc = {"a": ["x", "y", "z"]}
        run(doc, op="move", path="/a/2", **{"from": "/a/0"})
        assert doc == {"a": ["y", "z", "x"]}

    def test_move_between_lists(self):
        doc = {"a": [1, 2], "b": [3]}
        run(doc, op="move", path="/b/0", **{"from": "/a/1"})
        assert doc == {"a": [1], "b": [2, 3]}

    def test_move_to_same_location_is_noop(self):
        assert run({"a": [1, 2]}, op="move", path="/a/1", **{"from": "/a/1"}) == {"a": [1, 2]}

    def test_move_into_own_child(self):
        doc = {"a": {"b": {}}}
        with pytest.raises(InvalidPathError):
            run(doc, op="move", path="/a/b/c", **{"from": "/a"})
        assert doc == {"a": {"b": {}}}

    def test_move_missing_source(self):
        with pytest.raises(InvalidFromPathError):
            run({"a": 1}, op="move", path="/b", **{"from": "/c"})

    def test_failed_destination_restores_source(self):
        doc = {"a": [1, 2, 3], "b": []}
        with pytest.raises(InvalidPathError):
            run(doc, op="move", path="/b/5", **{"from": "/a/1"})
        assert doc == {"a": [1, 2, 3], "b": []}

    def test_move_root_is_rejected(self):
        with pytest.raises(InvalidFromPathError):
            run({"a": 1}, op="move", path="/b", **{"from": ""})


class TestTest:
    def test_matching_value(self):
        doc = {"a": {"b": [1, 2]}}
        assert run(doc, op="test", path="/a", value={"b": [1, 2]}) == {"a": {"b": [1, 2]}}

    def test_mismatch(self):
        with pytest.raises(PatchTestFailedError):
            run({"a": 1}, op="test", path="/a", value=2)

    def test_missing_path_fails(self):
        with pytest.raises(PatchTestFailedError):
            run({"a": 1}, op="test", path="/b", value=None)

    def test_root(self):
        run({"a": 1}, op="test", path="", value={"a": 1})


class TestValuesEqual:
    def test_numbers_compare_by_value(self):
        assert values_equal(1, 1.0)
        assert values_equal(Decimal("0.1"), 0.1)
        assert not values_equal(1, 2)

    def test_booleans_are_not_numbers(self):
        assert not values_equal(True, 1)
        assert not values_equal(0, False)
        assert values_equal(False, False)

    def test_null_and_strings(self):
        assert values_equal(None, None)
        assert not values_equal(None, 0)
        assert not values_equal("1", 1)

    def test_containers(self):
        assert values_equal({"a": [1, {"b": None}]}, {"a": [1.0, {"b": None}]})
        assert not values_equal({"a": 1}, {"a": 1, "b": 2})
        assert not values_equal([1, 2], [2, 1])
        assert not values_equal([], {})
