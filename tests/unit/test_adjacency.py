"""Unit tests for the live adjacency map and its frozen snapshots."""

import random
from concurrent.futures import ThreadPoolExecutor
from itertools import combinations

import pytest

from fastadj.graph import AdjacencyMap, Variable


@pytest.fixture
def many_variables():
    return [Variable(f"V{i:02d}") for i in range(30)]


def complete_map(variables):
    adjacencies = AdjacencyMap(variables)
    for x, y in combinations(variables, 2):
        adjacencies.connect(x, y)
    return adjacencies


class TestAdjacencyMap:
    """Basic adjacency operations."""

    def test_initially_empty(self, variables):
        adjacencies = AdjacencyMap(variables)
        assert all(adjacencies.degree(v) == 0 for v in variables)
        assert adjacencies.num_edges() == 0

    def test_connect_is_symmetric(self, variables):
        a, b = variables[:2]
        adjacencies = AdjacencyMap(variables)

        assert adjacencies.connect(a, b) is True
        assert adjacencies.connect(b, a) is False
        assert adjacencies.is_adjacent(a, b)
        assert adjacencies.is_adjacent(b, a)
        assert adjacencies.num_edges() == 1

    def test_disconnect_is_idempotent(self, variables):
        a, b = variables[:2]
        adjacencies = AdjacencyMap(variables)
        adjacencies.connect(a, b)

        assert adjacencies.disconnect(b, a) is True
        assert adjacencies.disconnect(a, b) is False
        assert not adjacencies.is_adjacent(a, b)
        assert adjacencies.is_symmetric()

    def test_self_loop_rejected(self, variables):
        adjacencies = AdjacencyMap(variables)
        with pytest.raises(ValueError):
            adjacencies.connect(variables[0], variables[0])

    def test_duplicate_variables_rejected(self):
        with pytest.raises(ValueError):
            AdjacencyMap([Variable("A"), Variable("A")])

    def test_neighbors_is_a_copy(self, variables):
        a, b, c = variables[:3]
        adjacencies = AdjacencyMap(variables)
        adjacencies.connect(a, b)
        adjacencies.connect(a, c)

        neighbors = adjacencies.neighbors(a)
        adjacencies.disconnect(a, b)

        assert neighbors == {b, c}
        assert adjacencies.neighbors(a) == {c}

    def test_free_degree(self, variables):
        a, b, c = variables[:3]
        adjacencies = AdjacencyMap(variables)
        adjacencies.connect(a, b)
        assert not adjacencies.free_degree_greater_than(0)

        adjacencies.connect(a, c)
        assert adjacencies.free_degree_greater_than(0)
        assert not adjacencies.free_degree_greater_than(1)

    def test_reset(self, variables):
        adjacencies = complete_map(variables)
        adjacencies.reset()
        assert adjacencies.num_edges() == 0


class TestSnapshot:
    """Frozen per-pass copies."""

    def test_snapshot_ignores_later_removals(self, variables):
        adjacencies = complete_map(variables)
        snapshot = adjacencies.snapshot()

        adjacencies.disconnect(variables[0], variables[1])

        assert snapshot.is_adjacent(variables[0], variables[1])
        assert not adjacencies.is_adjacent(variables[0], variables[1])

    def test_neighbors_in_universe_order(self, variables):
        a, b, c, d, e = variables
        adjacencies = AdjacencyMap(variables)
        for other in (e, c, b, d):
            adjacencies.connect(a, other)

        assert adjacencies.snapshot().neighbors(a) == (b, c, d, e)

    def test_edges_in_universe_order(self, variables):
        a, b, c, _, e = variables
        adjacencies = AdjacencyMap(variables)
        adjacencies.connect(e, a)
        adjacencies.connect(c, b)

        assert adjacencies.edges() == [(a, e), (b, c)]


class TestConcurrentMutation:
    """Symmetry must hold under concurrent disconnects."""

    def test_concurrent_disconnects_from_both_directions(self, many_variables):
        adjacencies = complete_map(many_variables)
        pairs = list(combinations(many_variables, 2))
        rng = random.Random(7)
        targets = rng.sample(pairs, 200)

        # Each target pair is removed once from each direction, interleaved.
        operations = [(x, y) for x, y in targets] + [(y, x) for x, y in targets]
        rng.shuffle(operations)

        with ThreadPoolExecutor(max_workers=8) as executor:
            removed = list(executor.map(lambda p: adjacencies.disconnect(*p), operations))

        assert sum(removed) == len(targets)
        assert adjacencies.num_edges() == len(pairs) - len(targets)
        assert adjacencies.is_symmetric()

    def test_symmetry_after_every_disconnect(self, many_variables):
        """Check both sides right after each disconnect returns."""
        violations = []

        class CheckingMap(AdjacencyMap):
            def disconnect(self, x, y):
                result = super().disconnect(x, y)
                if y in self.neighbors(x) or x in self.neighbors(y):
                    violations.append((x, y))
                return result

        adjacencies = CheckingMap(many_variables)
        pairs = list(combinations(many_variables, 2))
        for x, y in pairs:
            adjacencies.connect(x, y)

        operations = pairs + [(y, x) for x, y in pairs]
        random.Random(11).shuffle(operations)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda p: adjacencies.disconnect(*p), operations))

        assert violations == []
        assert adjacencies.num_edges() == 0
        assert adjacencies.is_symmetric()

    def test_concurrent_connect_and_disconnect_no_deadlock(self, many_variables):
        adjacencies = AdjacencyMap(many_variables)
        pairs = list(combinations(many_variables, 2))

        def churn(pair):
            x, y = pair
            adjacencies.connect(x, y)
            adjacencies.disconnect(y, x)
            adjacencies.connect(y, x)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(churn, pairs))

        assert adjacencies.num_edges() == len(pairs)
        assert adjacencies.is_symmetric()
