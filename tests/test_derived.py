"""Tests for DerivedAtom outside of a store."""

import pytest

from atomhub import Atom, DerivedAtom


class TestDerivedAtom:
    def test_initial_value(self):
        a = Atom(1)
        b = Atom(False)
        d = DerivedAtom([a, b], lambda x, y: x > 0 and y)
        assert d.value is False
        assert d.initial_value is False

    def test_recomputes_from_all_sources(self):
        a = Atom(1)
        b = Atom(False)
        d = DerivedAtom([a, b], lambda x, y: x > 0 and y)
        d.connect()
        b.value = True
        assert d.value is True
        a.value = -1
        assert d.value is False

    def test_not_assignable(self):
        d = DerivedAtom([Atom(1)], lambda x: x * 2)
        with pytest.raises(AttributeError):
            d.value = 5

    def test_no_reset(self):
        d = DerivedAtom([Atom(1)], lambda x: x * 2)
        assert not hasattr(d, "reset")

    def test_memoization_gates_notifications(self):
        a = Atom(1)
        d = DerivedAtom([a], lambda x: x > 0)
        d.connect()
        log = []
        d.subscribe(lambda v: log.append(v))
        a.value = 2  # still positive
        assert log == []
        a.value = -2
        assert log == [False]

    def test_one_recompute_per_upstream_notification(self):
        a = Atom(0)
        b = Atom(0)
        d = DerivedAtom([a, b], lambda x, y: (x, y))
        d.connect()
        log = []
        d.subscribe(lambda v: log.append(v))
        a.value = 1
        b.value = 1
        assert log == [(1, 0), (1, 1)]

    def test_recompute_is_nested_in_source_notification(self):
        a = Atom(0)
        order = []
        a.subscribe(lambda v: order.append(("first", v)))
        d = DerivedAtom([a], lambda x: x * 10)
        d.connect()
        d.subscribe(lambda v: order.append(("derived", v)))
        a.subscribe(lambda v: order.append(("last", v)))
        a.value = 1
        assert order == [("first", 1), ("derived", 10), ("last", 1)]

    def test_chained(self):
        a = Atom(3)
        doubled = DerivedAtom([a], lambda x: x * 2)
        doubled.connect()
        quadrupled = DerivedAtom([doubled], lambda x: x * 2)
        quadrupled.connect()
        assert quadrupled.value == 12
        a.value = 5
        assert quadrupled.value == 20

    def test_deep_memoization(self):
        a = Atom([1, 2, 3])
        d = DerivedAtom([a], lambda xs: {"total": sum(xs)}, memoization="deep")
        d.connect()
        log = []
        d.subscribe(lambda v: log.append(v))
        a.value = [3, 2, 1]
        assert log == []
        a.value = [1]
        assert log == [{"total": 1}]
