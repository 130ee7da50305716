"""Tests for memoization policies."""

from dataclasses import dataclass
from functools import partial

import pytest

from atomhub import DEEP, SHALLOW, Memoization, deep_equal, shallow_equal


@dataclass
class Point:
    x: int
    y: int


class Plain:
    def __init__(self, name, tags):
        self.name = name
        self.tags = tags


class TestShallow:
    def test_same_reference(self):
        obj = {"name": "John"}
        assert shallow_equal(obj, obj)

    def test_scalars_by_value(self):
        assert shallow_equal(5, 5)
        assert shallow_equal("test", "test")
        assert shallow_equal(None, None)
        assert not shallow_equal(5, 6)

    def test_scalar_types_must_match(self):
        assert not shallow_equal(1, True)
        assert not shallow_equal(1, 1.0)

    def test_distinct_composites_differ(self):
        assert not shallow_equal([1, 2, 3], [1, 2, 3])
        assert not shallow_equal({"a": 1}, {"a": 1})


class TestDeep:
    def test_dicts(self):
        assert deep_equal({"name": "John", "age": 30}, {"name": "John", "age": 30})
        assert not deep_equal({"name": "John", "age": 30}, {"name": "John", "age": 31})

    def test_nested(self):
        a = {"user": {"name": "John", "settings": {"theme": "dark"}}}
        b = {"user": {"name": "John", "settings": {"theme": "dark"}}}
        assert deep_equal(a, b)
        b["user"]["settings"]["theme"] = "light"
        assert not deep_equal(a, b)

    def test_sequences(self):
        assert deep_equal([1, [2, 3]], [1, [2, 3]])
        assert not deep_equal([1, 2], [1, 2, 3])
        assert not deep_equal([1, 2], (1, 2))

    def test_sets(self):
        assert deep_equal({1, 2}, {2, 1})

    def test_dataclasses_and_plain_objects(self):
        assert deep_equal(Point(1, 2), Point(1, 2))
        assert deep_equal(Plain("a", ["x"]), Plain("a", ["x"]))
        assert not deep_equal(Plain("a", ["x"]), Plain("a", ["y"]))

    def test_type_mismatch(self):
        assert not deep_equal({"a": 1}, [("a", 1)])
        assert not deep_equal(1, "1")

    def test_callables_compare_by_identity(self):
        assert not deep_equal(lambda: 1, lambda: 2)
        assert not deep_equal(partial(int, "1"), partial(int, "2"))
        handler = Plain("a", []).__init__
        assert not deep_equal(handler, Plain("b", []).__init__)

    def test_exceptions_use_their_own_equality(self):
        assert not deep_equal(ValueError("a"), ValueError("b"))

    def test_custom_eq_is_respected(self):
        class AlwaysEqual:
            def __init__(self, tag):
                self.tag = tag

            def __eq__(self, other):
                return True

        assert deep_equal(AlwaysEqual(1), AlwaysEqual(2))


class TestMemoization:
    def test_default_is_shallow(self):
        assert Memoization() == SHALLOW
        assert not SHALLOW.equal([1], [1])
        assert DEEP.equal([1], [1])

    def test_custom(self):
        policy = Memoization("custom", compare=lambda a, b: a["name"] == b["name"])
        assert policy.equal({"name": "John", "age": 25}, {"name": "John", "age": 30})
        assert not policy.equal({"name": "Jane"}, {"name": "John"})

    def test_custom_without_compare_falls_back_to_shallow(self):
        policy = Memoization("custom")
        assert policy.equal("test", "test")
        assert not policy.equal([1], [1])

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            Memoization("fuzzy")
