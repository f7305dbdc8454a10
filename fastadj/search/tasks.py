"""Parallel tasks for the depth-0 screening pass and the depth-d passes.

Each task owns a range of variable indices and, for every index i in it,
handles the pairs (i, j) with j > i. Tasks hold read-only references to
the variable universe, the oracle and any frozen structure they read, plus
shared handles to the live adjacency map, the sepset store and the run
statistics, all of which synchronize internally.

Independence test failures are absorbed per stage: depth 0 treats a failed
test as "independent", depth d treats it as "dependent".
"""

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Mapping, Sequence

import networkx as nx

from fastadj.graph.adjacency import AdjacencyMap, AdjacencySnapshot
from fastadj.graph.knowledge import KnowledgeConstraints, possible_parents
from fastadj.graph.sepsets import SepsetMap
from fastadj.graph.variables import Variable
from fastadj.logging_config import get_logger
from fastadj.util.combinatorics import ChoiceGenerator

from .oracle import BaseIndependenceTest
from .scheduler import RangeTask

logger = get_logger(__name__)


class SearchStats:
    """Thread-safe per-depth counters for a single search run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.tests_by_depth: Counter[int] = Counter()
        self.failures_by_depth: Counter[int] = Counter()
        self.removals_by_depth: Counter[int] = Counter()

    def record_test(self, depth: int) -> None:
        with self._lock:
            self.tests_by_depth[depth] += 1

    def record_failure(self, depth: int) -> None:
        with self._lock:
            self.failures_by_depth[depth] += 1

    def record_removal(self, depth: int) -> None:
        with self._lock:
            self.removals_by_depth[depth] += 1

    @property
    def num_independence_tests(self) -> int:
        with self._lock:
            return sum(self.tests_by_depth.values())


@dataclass(frozen=True)
class MarkovBoundary:
    """Descendants of a variable and its adjacents that are not descendants."""

    descendants: frozenset[Variable]
    boundary: tuple[Variable, ...]


def markov_boundaries(
    reference_graph: nx.DiGraph,
    variables: Sequence[Variable],
) -> dict[Variable, MarkovBoundary]:
    """Compute the local Markov boundary of every variable in a reference graph.

    Boundaries are ordered by position in ``variables``. Variables missing
    from the reference graph get empty descendants and an empty boundary.
    """
    by_name = {v.name: v for v in variables}
    index = {v: i for i, v in enumerate(variables)}
    boundaries = {}

    for v in variables:
        if v.name not in reference_graph:
            boundaries[v] = MarkovBoundary(frozenset(), ())
            continue

        descendants = {
            by_name[n] for n in nx.descendants(reference_graph, v.name) if n in by_name
        }
        adjacent = set(reference_graph.predecessors(v.name)) | set(reference_graph.successors(v.name))
        boundary = sorted(
            (by_name[n] for n in adjacent if n in by_name and by_name[n] not in descendants and n != v.name),
            key=index.__getitem__,
        )
        boundaries[v] = MarkovBoundary(frozenset(descendants), tuple(boundary))

    return boundaries


@dataclass(frozen=True)
class _PairTask(RangeTask):
    """Shared machinery for tasks that test variable pairs."""

    variables: tuple[Variable, ...]
    test: BaseIndependenceTest
    adjacencies: AdjacencyMap
    sepsets: SepsetMap | None  # None when sepsets are not recorded
    stats: SearchStats
    progress_interval: int

    FAILURE_MEANS_INDEPENDENT = True

    @property
    def stage_depth(self) -> int:
        return 0

    def _is_independent(self, x: Variable, y: Variable, z: Sequence[Variable]) -> bool:
        self.stats.record_test(self.stage_depth)
        try:
            return self.test.is_independent(x, y, z)
        except Exception as e:
            self.stats.record_failure(self.stage_depth)
            logger.warning(
                "independence_test_failed",
                x=x.name,
                y=y.name,
                z=[v.name for v in z],
                depth=self.stage_depth,
                assumed_independent=self.FAILURE_MEANS_INDEPENDENT,
                error=str(e),
            )
            return self.FAILURE_MEANS_INDEPENDENT

    def _record_separation(self, x: Variable, y: Variable, sepset: Sequence[Variable]) -> None:
        self.stats.record_removal(self.stage_depth)
        if self.sepsets is not None:
            self.sepsets.record(x, y, sepset)

    def _remove(self, x: Variable, y: Variable, sepset: Sequence[Variable]) -> None:
        self.adjacencies.disconnect(x, y)
        self._record_separation(x, y, sepset)

    def _log_progress(self, i: int) -> None:
        if (i + 1) % self.progress_interval == 0:
            logger.debug("pair_progress", depth=self.stage_depth, i=i + 1)


@dataclass(frozen=True)
class Depth0Task(_PairTask):
    """Depth-0 screening by unconditional independence tests.

    Only pairs adjacent in ``initial`` are considered when an initial graph
    was supplied; every other pair starts (and stays) non-adjacent.
    """

    initial: AdjacencySnapshot | None = None

    def compute(self) -> None:
        n = len(self.variables)

        for i in range(self.start, self.stop):
            self._log_progress(i)
            x = self.variables[i]

            for j in range(i + 1, n):
                y = self.variables[j]

                if self.initial is not None and not self.initial.is_adjacent(x, y):
                    continue

                sepset = self._separating_set(x, y)
                if sepset is None:
                    self.adjacencies.connect(x, y)
                else:
                    # Separated pairs are never connected, so there is nothing to disconnect.
                    self._record_separation(x, y, sepset)

    def _separating_set(self, x: Variable, y: Variable) -> tuple[Variable, ...] | None:
        """Return the set that separates x and y, or None if they are dependent."""
        if self._is_independent(x, y, ()):
            return ()
        return None


@dataclass(frozen=True)
class LocalMarkovDepth0Task(Depth0Task):
    """Depth-0 screening against local Markov boundaries of a reference graph.

    For each direction (x, y) and (y, x): if y is a descendant of x or in
    x's boundary the pair is dependent without a test; otherwise x and y are
    tested conditional on x's boundary. The pair is separated if either
    direction finds independence.
    """

    boundaries: Mapping[Variable, MarkovBoundary] | None = None

    def _separating_set(self, x: Variable, y: Variable) -> tuple[Variable, ...] | None:
        for a, b in ((x, y), (y, x)):
            mb = self.boundaries[a]
            if b in mb.descendants or b in mb.boundary:
                continue
            if self._is_independent(a, b, mb.boundary):
                return mb.boundary
        return None


@dataclass(frozen=True)
class DepthTask(_PairTask):
    """Removes edges separated by a size-``depth`` subset of either endpoint's neighbors.

    Reads adjacencies only from ``snapshot`` (frozen at the start of the
    pass) and writes removals to the live map, so the outcome of a pair
    never depends on removals made by other tasks in the same pass.
    """

    depth: int = 1
    snapshot: AdjacencySnapshot | None = None
    knowledge: KnowledgeConstraints | None = None

    FAILURE_MEANS_INDEPENDENT = False

    @property
    def stage_depth(self) -> int:
        return self.depth

    def compute(self) -> None:
        n = len(self.variables)

        for i in range(self.start, self.stop):
            self._log_progress(i)
            x = self.variables[i]

            for j in range(i + 1, n):
                y = self.variables[j]

                if not self.snapshot.is_adjacent(x, y):
                    continue

                adj_x = [v for v in self.snapshot.neighbors(x) if v != y]
                adj_y = [v for v in self.snapshot.neighbors(y) if v != x]

                if self.knowledge is not None:
                    adj_x = possible_parents(x, adj_x, self.knowledge)
                    adj_y = possible_parents(y, adj_y, self.knowledge)

                if self._separate(x, y, adj_x):
                    continue
                self._separate(x, y, adj_y)

    def _separate(self, x: Variable, y: Variable, pool: list[Variable]) -> bool:
        """Try every size-``depth`` subset of pool; remove the edge on the first independence."""
        if len(pool) < self.depth:
            return False

        for choice in ChoiceGenerator(len(pool), self.depth):
            cond_set = ChoiceGenerator.as_list(choice, pool)

            if self._is_independent(x, y, cond_set):
                self._remove(x, y, cond_set)
                logger.debug(
                    "edge_removed",
                    x=x.name,
                    y=y.name,
                    depth=self.depth,
                    sepset=[v.name for v in cond_set],
                )
                return True

        return False
