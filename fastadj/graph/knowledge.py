"""Background knowledge restricting which variables may condition an edge test."""

from typing import Iterable, Protocol

from .variables import Variable


class KnowledgeConstraints(Protocol):
    """Required and forbidden directed edges, by variable name."""

    def is_forbidden(self, source: str, target: str) -> bool: ...

    def is_required(self, source: str, target: str) -> bool: ...


class Knowledge:
    """Explicit sets of forbidden and required directed edges."""

    def __init__(
        self,
        forbidden: Iterable[tuple[str, str]] = (),
        required: Iterable[tuple[str, str]] = (),
    ):
        self._forbidden: set[tuple[str, str]] = set()
        self._required: set[tuple[str, str]] = set()
        for source, target in forbidden:
            self.set_forbidden(source, target)
        for source, target in required:
            self.set_required(source, target)

    def set_forbidden(self, source: str, target: str) -> None:
        if (source, target) in self._required:
            raise ValueError(f"Edge {source} -> {target} is already required")
        self._forbidden.add((source, target))

    def set_required(self, source: str, target: str) -> None:
        if (source, target) in self._forbidden:
            raise ValueError(f"Edge {source} -> {target} is already forbidden")
        self._required.add((source, target))

    def remove_forbidden(self, source: str, target: str) -> None:
        self._forbidden.discard((source, target))

    def remove_required(self, source: str, target: str) -> None:
        self._required.discard((source, target))

    def is_forbidden(self, source: str, target: str) -> bool:
        return (source, target) in self._forbidden

    def is_required(self, source: str, target: str) -> bool:
        return (source, target) in self._required

    def is_empty(self) -> bool:
        return not self._forbidden and not self._required

    def __repr__(self) -> str:
        return f"Knowledge(forbidden={sorted(self._forbidden)}, required={sorted(self._required)})"


def is_possible_parent(z: Variable, x: Variable, knowledge: KnowledgeConstraints) -> bool:
    """z may condition tests on x unless z -> x is forbidden or x -> z is required."""
    return not knowledge.is_forbidden(z.name, x.name) and not knowledge.is_required(x.name, z.name)


def possible_parents(
    x: Variable,
    candidates: Iterable[Variable],
    knowledge: KnowledgeConstraints,
) -> list[Variable]:
    """Filter candidates to the possible parents of x, keeping their order."""
    return [z for z in candidates if is_possible_parent(z, x, knowledge)]
