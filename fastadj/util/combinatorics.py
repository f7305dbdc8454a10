"""Nonrecursive generators for combinations and selections of indices.

Both generators keep a small counter array and hand back the same list
buffer on every ``next()`` call, so callers must copy a result before the
following call if they intend to keep it. Iterating a generator yields
tuple copies instead. Neither generator can be rewound; construct a new
one to start over.
"""

from math import comb
from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def choose(a: int, b: int) -> int:
    """Number of size-``b`` subsets of ``a`` items (0 when ``b > a``)."""
    if a < 0 or b < 0:
        raise ValueError("a and b must be non-negative")
    return comb(a, b)


class ChoiceGenerator:
    """Generates every size-``b`` subset of ``range(a)`` in lexicographic order.

    Usage:
        cg = ChoiceGenerator(5, 3)
        while (choice := cg.next()) is not None:
            ...

    If ``b`` is zero a single empty list is returned, then ``None``.
    """

    def __init__(self, a: int, b: int):
        """Initialize the generator.

        Args:
            a: Number of items being chosen from
            b: Number of items chosen
        """
        if a < 0 or b < 0 or b > a:
            raise ValueError(f"Need 0 <= b <= a, got a={a}, b={b}")

        self.a = a
        self.b = b
        self._diff = a - b

        # [0, 1, ..., b - 2, b - 2] so that the first call to next() fills the
        # last slot and returns [0, 1, ..., b - 1].
        self._choice_local = list(range(b))
        if b > 0:
            self._choice_local[b - 1] = b - 2
        self._choice_returned = [0] * b
        self._begun = False

    def next(self) -> list[int] | None:
        """Return the next combination, or None once the series is finished."""
        i = self.b

        # Scan from the right for the first index still below its maximum.
        while i > 0:
            i -= 1
            if self._choice_local[i] < i + self._diff:
                self._fill(i)
                self._begun = True
                self._choice_returned[:] = self._choice_local
                return self._choice_returned

        if self._begun:
            return None

        self._begun = True
        self._choice_returned[:] = self._choice_local
        return self._choice_returned

    def _fill(self, index: int) -> None:
        self._choice_local[index] += 1
        for i in range(index + 1, self.b):
            self._choice_local[i] = self._choice_local[i - 1] + 1

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        while (choice := self.next()) is not None:
            yield tuple(choice)

    @staticmethod
    def as_list(choice: Sequence[int], items: Sequence[T]) -> list[T]:
        """Map a choice of indices onto the corresponding items."""
        return [items[i] for i in choice]


class SelectionGenerator:
    """Generates every length-``a`` tuple over ``range(a)`` in odometer order.

    The rightmost position increments fastest, giving ``a ** a`` selections.
    For ``a == 0`` a single empty list is returned, then ``None``.
    """

    def __init__(self, a: int):
        if a < 0:
            raise ValueError(f"a must be non-negative, got {a}")

        self.a = a
        # Last slot starts one below zero so the first next() yields [0, ..., 0].
        self._selection_local = [0] * a
        if a > 0:
            self._selection_local[a - 1] = -1
        self._selection_returned = [0] * a
        self._begun = False

    def next(self) -> list[int] | None:
        """Return the next selection, or None once the series is finished."""
        i = self.a

        while i > 0:
            i -= 1
            if self._selection_local[i] < self.a - 1:
                self._selection_local[i] += 1
                for j in range(i + 1, self.a):
                    self._selection_local[j] = 0

                self._begun = True
                self._selection_returned[:] = self._selection_local
                return self._selection_returned

        if self._begun:
            return None

        self._begun = True
        self._selection_returned[:] = self._selection_local
        return self._selection_returned

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        while (selection := self.next()) is not None:
            yield tuple(selection)
