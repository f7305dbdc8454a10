"""Adjacency structures for the evolving candidate graph.

``AdjacencyMap`` is the live structure mutated by worker threads during a
search pass. ``AdjacencySnapshot`` is the frozen copy taken at the start of
each depth pass; depth tasks read only from the snapshot and write only to
the live map.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Sequence

from .variables import Variable


class AdjacencySnapshot:
    """Immutable per-pass copy of an adjacency map.

    Neighbors are ordered by position in the variable universe so that
    conditioning pools do not depend on the order edges were added.
    """

    def __init__(self, variables: Sequence[Variable], neighbors: dict[Variable, tuple[Variable, ...]]):
        self._variables = tuple(variables)
        self._neighbors = dict(neighbors)
        self._sets = {v: frozenset(adj) for v, adj in self._neighbors.items()}

    @property
    def variables(self) -> tuple[Variable, ...]:
        return self._variables

    def neighbors(self, x: Variable) -> tuple[Variable, ...]:
        return self._neighbors[x]

    def is_adjacent(self, x: Variable, y: Variable) -> bool:
        return y in self._sets[x]

    def degree(self, x: Variable) -> int:
        return len(self._neighbors[x])

    def num_edges(self) -> int:
        return sum(len(adj) for adj in self._neighbors.values()) // 2

    def edges(self) -> list[tuple[Variable, Variable]]:
        """Edges as (earlier, later) pairs in universe order."""
        index = {v: i for i, v in enumerate(self._variables)}
        return [
            (x, y)
            for x in self._variables
            for y in self._neighbors[x]
            if index[x] < index[y]
        ]

    def to_dict(self) -> dict[Variable, set[Variable]]:
        return {v: set(adj) for v, adj in self._neighbors.items()}


class AdjacencyMap:
    """Thread-safe symmetric mapping from each variable to its neighbors.

    Every variable owns a lock. ``connect`` and ``disconnect`` take the locks
    of both endpoints in universe order, so concurrent calls cannot deadlock
    and the symmetric invariant (y in adj(x) iff x in adj(y)) holds after
    every call.
    """

    def __init__(self, variables: Sequence[Variable]):
        """Initialize with every variable mapped to an empty neighbor set.

        Args:
            variables: Ordered, duplicate-free variable universe
        """
        self._variables = tuple(variables)
        self._index = {v: i for i, v in enumerate(self._variables)}
        if len(self._index) != len(self._variables):
            raise ValueError("Variables must be unique")

        self._locks = {v: threading.Lock() for v in self._variables}
        self._adjacent: dict[Variable, set[Variable]] = {v: set() for v in self._variables}

    @property
    def variables(self) -> tuple[Variable, ...]:
        return self._variables

    def index(self, x: Variable) -> int:
        return self._index[x]

    def reset(self) -> None:
        """Remove every edge."""
        for v in self._variables:
            with self._locks[v]:
                self._adjacent[v].clear()

    @contextmanager
    def _pair_locked(self, x: Variable, y: Variable) -> Iterator[None]:
        if x == y:
            raise ValueError(f"Self adjacency is not allowed: {x}")
        first, second = (x, y) if self._index[x] < self._index[y] else (y, x)
        with self._locks[first], self._locks[second]:
            yield

    def connect(self, x: Variable, y: Variable) -> bool:
        """Add the edge x - y. Returns False if it was already present."""
        with self._pair_locked(x, y):
            if y in self._adjacent[x]:
                return False
            self._adjacent[x].add(y)
            self._adjacent[y].add(x)
            return True

    def disconnect(self, x: Variable, y: Variable) -> bool:
        """Remove the edge x - y. Idempotent; returns True only for the call that removed it."""
        with self._pair_locked(x, y):
            if y not in self._adjacent[x]:
                return False
            self._adjacent[x].discard(y)
            self._adjacent[y].discard(x)
            return True

    def is_adjacent(self, x: Variable, y: Variable) -> bool:
        with self._locks[x]:
            return y in self._adjacent[x]

    def neighbors(self, x: Variable) -> frozenset[Variable]:
        """Copy of the current neighbors of x, safe to iterate during mutation."""
        with self._locks[x]:
            return frozenset(self._adjacent[x])

    def degree(self, x: Variable) -> int:
        with self._locks[x]:
            return len(self._adjacent[x])

    def num_edges(self) -> int:
        return sum(self.degree(v) for v in self._variables) // 2

    def free_degree_greater_than(self, depth: int) -> bool:
        """True if some variable still has more than ``depth`` neighbors besides any one partner."""
        return any(self.degree(v) - 1 > depth for v in self._variables)

    def snapshot(self) -> AdjacencySnapshot:
        """Freeze the current adjacencies for a depth pass."""
        ordered: dict[Variable, tuple[Variable, ...]] = {}
        for v in self._variables:
            with self._locks[v]:
                adj = list(self._adjacent[v])
            ordered[v] = tuple(sorted(adj, key=self._index.__getitem__))
        return AdjacencySnapshot(self._variables, ordered)

    def edges(self) -> list[tuple[Variable, Variable]]:
        return self.snapshot().edges()

    def to_dict(self) -> dict[Variable, set[Variable]]:
        return self.snapshot().to_dict()

    def is_symmetric(self) -> bool:
        """Check the symmetric invariant over the whole map."""
        view = self.to_dict()
        return all(x in view[y] for x, adj in view.items() for y in adj)
