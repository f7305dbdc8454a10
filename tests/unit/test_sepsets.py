"""Unit tests for the sepset store and knowledge constraints."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from fastadj.graph import Knowledge, SepsetMap, Variable, is_possible_parent, possible_parents


class TestSepsetMap:
    """Tests for SepsetMap."""

    def test_record_and_lookup_unordered(self, variables):
        a, b, c = variables[:3]
        sepsets = SepsetMap()

        assert sepsets.record(a, b, [c]) is True
        assert sepsets.lookup(a, b) == (c,)
        assert sepsets.lookup(b, a) == (c,)

    def test_first_write_wins(self, variables):
        a, b, c, d = variables[:4]
        sepsets = SepsetMap()
        sepsets.record(a, b, [c])

        assert sepsets.record(b, a, [d]) is False
        assert sepsets.lookup(a, b) == (c,)

    def test_unset_returns_none_by_default(self, variables):
        assert SepsetMap().lookup(variables[0], variables[1]) is None

    def test_unset_returns_empty_when_configured(self, variables):
        sepsets = SepsetMap(return_empty_if_not_set=True)
        assert sepsets.lookup(variables[0], variables[1]) == ()

    def test_empty_sepset_is_distinct_from_unset(self, variables):
        a, b = variables[:2]
        sepsets = SepsetMap()
        sepsets.record(a, b, [])

        assert sepsets.lookup(a, b) == ()
        assert (a, b) in sepsets
        assert len(sepsets) == 1

    def test_same_variable_rejected(self, variables):
        with pytest.raises(ValueError):
            SepsetMap().record(variables[0], variables[0], [])

    def test_is_in_sepset(self, variables):
        a, b, c, d = variables[:4]
        sepsets = SepsetMap()
        sepsets.record(a, b, [c])

        assert sepsets.is_in_sepset(c, a, b)
        assert not sepsets.is_in_sepset(d, a, b)
        assert not sepsets.is_in_sepset(c, a, d)

    def test_to_dict_uses_names(self, variables):
        a, b, c = variables[:3]
        sepsets = SepsetMap()
        sepsets.record(b, a, [c])

        assert sepsets.to_dict() == {("A", "B"): ["C"]}

    def test_concurrent_records_store_once(self, variables):
        a, b = variables[:2]
        sepsets = SepsetMap()
        candidates = [[v] for v in variables[2:]] * 20

        with ThreadPoolExecutor(max_workers=8) as executor:
            stored = list(executor.map(lambda z: sepsets.record(a, b, z), candidates))

        assert sum(stored) == 1
        assert len(sepsets) == 1


class TestKnowledge:
    """Tests for required/forbidden edges and possible parents."""

    def test_forbidden_and_required(self):
        knowledge = Knowledge(forbidden=[("D", "B")], required=[("A", "C")])

        assert knowledge.is_forbidden("D", "B")
        assert not knowledge.is_forbidden("B", "D")
        assert knowledge.is_required("A", "C")
        assert not knowledge.is_empty()

    def test_conflicting_edge_rejected(self):
        knowledge = Knowledge(forbidden=[("A", "B")])
        with pytest.raises(ValueError):
            knowledge.set_required("A", "B")

    def test_remove(self):
        knowledge = Knowledge(forbidden=[("A", "B")])
        knowledge.remove_forbidden("A", "B")
        assert knowledge.is_empty()

    def test_forbidden_parent_excluded(self):
        """z -> x forbidden removes z from x's conditioning candidates."""
        b, d = Variable("B"), Variable("D")
        knowledge = Knowledge(forbidden=[("D", "B")])

        assert not is_possible_parent(d, b, knowledge)
        assert is_possible_parent(b, d, knowledge)

    def test_required_child_excluded(self):
        """x -> z required removes z from x's conditioning candidates."""
        a, c = Variable("A"), Variable("C")
        knowledge = Knowledge(required=[("A", "C")])

        assert not is_possible_parent(c, a, knowledge)

    def test_possible_parents_keeps_order(self, variables):
        a, b, c, d, e = variables
        knowledge = Knowledge(forbidden=[("D", "A")], required=[("A", "B")])

        assert possible_parents(a, [e, b, c, d], knowledge) == [e, c]
