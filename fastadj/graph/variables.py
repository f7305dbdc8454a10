"""Variables searched over."""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True, order=True)
class Variable:
    """An opaque, named variable. Equality and hashing use the name only."""

    name: str

    def __str__(self) -> str:
        return self.name


def as_variables(items: Iterable["Variable | str"]) -> list[Variable]:
    """Coerce names to variables, rejecting duplicates."""
    variables = [v if isinstance(v, Variable) else Variable(str(v)) for v in items]
    seen: set[Variable] = set()
    for v in variables:
        if v in seen:
            raise ValueError(f"Duplicate variable: {v.name}")
        seen.add(v)
    return variables
