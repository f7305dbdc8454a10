"""Separating sets found during the adjacency search."""

import threading
from typing import Iterable, Iterator

from .variables import Variable


class SepsetMap:
    """Thread-safe map from an unordered variable pair to its separating set.

    A pair is disconnected at most once, so the first recorded set wins.
    """

    def __init__(self, return_empty_if_not_set: bool = False):
        """Initialize an empty map.

        Args:
            return_empty_if_not_set: Make ``lookup`` total by treating an
                unset pair as separated by the empty set
        """
        self.return_empty_if_not_set = return_empty_if_not_set
        self._sepsets: dict[frozenset[Variable], tuple[Variable, ...]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(x: Variable, y: Variable) -> frozenset[Variable]:
        if x == y:
            raise ValueError(f"A sepset needs two distinct variables, got {x} twice")
        return frozenset((x, y))

    def record(self, x: Variable, y: Variable, z: Iterable[Variable]) -> bool:
        """Store z as the sepset of {x, y}. Returns False if one was already stored."""
        key = self._key(x, y)
        with self._lock:
            if key in self._sepsets:
                return False
            self._sepsets[key] = tuple(z)
            return True

    def lookup(self, x: Variable, y: Variable) -> tuple[Variable, ...] | None:
        with self._lock:
            sepset = self._sepsets.get(self._key(x, y))
        if sepset is None and self.return_empty_if_not_set:
            return ()
        return sepset

    def is_in_sepset(self, z: Variable, x: Variable, y: Variable) -> bool:
        """Check whether z separates x and y, as used by collider orientation."""
        sepset = self.lookup(x, y)
        return sepset is not None and z in sepset

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        with self._lock:
            return frozenset(pair) in self._sepsets

    def __len__(self) -> int:
        with self._lock:
            return len(self._sepsets)

    def __iter__(self) -> Iterator[frozenset[Variable]]:
        return iter(self.pairs())

    def pairs(self) -> list[frozenset[Variable]]:
        with self._lock:
            return list(self._sepsets)

    def items(self) -> list[tuple[frozenset[Variable], tuple[Variable, ...]]]:
        with self._lock:
            return list(self._sepsets.items())

    def to_dict(self) -> dict[tuple[str, str], list[str]]:
        """Name-keyed export with each pair sorted by name."""
        out = {}
        for pair, sepset in self.items():
            a, b = sorted(v.name for v in pair)
            out[(a, b)] = [v.name for v in sepset]
        return out
