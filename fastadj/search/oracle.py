"""Independence oracles consumed by the adjacency search.

The search only needs a yes/no answer to "is x independent of y given z?".
How a statistical test reaches that answer lives outside this package;
the oracles here either wrap a caller-supplied decision function or read
the answer off a known causal graph.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Sequence

import networkx as nx

from fastadj.graph.variables import Variable, as_variables


class BaseIndependenceTest(ABC):
    """Abstract base class for independence oracles.

    Implementations may raise (for example ``IndependenceTestError`` on
    numerical non-convergence); each search stage decides how to recover.
    Implementations must be safe to call from several threads at once.
    """

    TEST_NAME: str = "base"

    def __init__(self, variables: Iterable[Variable | str]):
        self._variables = as_variables(variables)
        self._by_name = {v.name: v for v in self._variables}

    @property
    def variables(self) -> list[Variable]:
        """Ordered variable universe the test can answer questions about."""
        return list(self._variables)

    def get_variable(self, name: str) -> Variable:
        return self._by_name[name]

    @abstractmethod
    def is_independent(self, x: Variable, y: Variable, z: Sequence[Variable]) -> bool:
        """Decide whether x is independent of y conditional on z."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_variables={len(self._variables)})"


class CallableIndependenceTest(BaseIndependenceTest):
    """Adapts a plain decision function ``func(x, y, z) -> bool``."""

    TEST_NAME = "callable"

    def __init__(
        self,
        variables: Iterable[Variable | str],
        func: Callable[[Variable, Variable, Sequence[Variable]], bool],
    ):
        super().__init__(variables)
        self._func = func

    def is_independent(self, x: Variable, y: Variable, z: Sequence[Variable]) -> bool:
        return bool(self._func(x, y, z))


class DSeparationTest(BaseIndependenceTest):
    """Oracle answering from d-separation in a known DAG.

    With a faithful oracle the search recovers the skeleton of ``dag``
    exactly, which makes it the reference test for end-to-end checks.
    """

    TEST_NAME = "dsep"

    def __init__(self, dag: nx.DiGraph, variables: Iterable[Variable | str] | None = None):
        if not nx.is_directed_acyclic_graph(dag):
            raise ValueError("d-separation requires a directed acyclic graph")
        super().__init__(variables if variables is not None else [str(n) for n in dag.nodes])
        missing = [v.name for v in self._variables if v.name not in dag]
        if missing:
            raise ValueError(f"Variables not in graph: {missing}")
        self._dag = dag

    @property
    def dag(self) -> nx.DiGraph:
        return self._dag

    def is_independent(self, x: Variable, y: Variable, z: Sequence[Variable]) -> bool:
        return nx.is_d_separator(self._dag, {x.name}, {y.name}, {v.name for v in z})
