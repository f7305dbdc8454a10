"""Fast adjacency search - stable, concurrent implementation.

An edge X - Y is removed from the candidate graph if X _||_ Y | S for some
subset S of size d of adj(X) or of adj(Y), where d is the depth of the
current pass. Passes run for d = 0, 1, 2, ... until either the maximum
depth is reached or no variable has enough neighbors left to need the next
depth. Each depth-d pass reads a frozen snapshot of the adjacencies left by
the previous pass, so the result does not depend on the order in which
pairs are processed or on how the work is spread over threads.

The separating set of every removed pair is recorded for downstream
orientation rules.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import networkx as nx
import numpy as np
import pandas as pd

from fastadj.config import UNBOUNDED_DEPTH, SearchSettings, get_settings, resolve_depth
from fastadj.errors import SearchConfigurationError
from fastadj.graph.adjacency import AdjacencyMap, AdjacencySnapshot
from fastadj.graph.knowledge import Knowledge, KnowledgeConstraints
from fastadj.graph.sepsets import SepsetMap
from fastadj.graph.variables import Variable
from fastadj.logging_config import get_logger, search_context

from .oracle import BaseIndependenceTest
from .scheduler import ForkJoinScheduler
from .tasks import (
    Depth0Task,
    DepthTask,
    LocalMarkovDepth0Task,
    SearchStats,
    markov_boundaries,
)

logger = get_logger(__name__)

Depth0Policy = Literal["unconditional", "local_markov"]


class SearchState(str, Enum):
    """Lifecycle of a single search run."""
    INITIALIZING = "initializing"
    DEPTH0 = "depth0"
    DEPTH_K = "depth_k"
    DONE = "done"


@dataclass
class SearchResult:
    """Result of an adjacency search."""
    nodes: list[Variable]
    graph: nx.Graph
    sepsets: SepsetMap
    diagnostics: dict[str, Any] = field(default_factory=dict)

    def edges(self) -> list[tuple[str, str]]:
        """Surviving adjacencies as name pairs in universe order."""
        index = {v.name: i for i, v in enumerate(self.nodes)}
        pairs = [tuple(sorted((a, b), key=index.__getitem__)) for a, b in self.graph.edges]
        return sorted(pairs, key=lambda p: (index[p[0]], index[p[1]]))

    def is_adjacent(self, x: str, y: str) -> bool:
        return self.graph.has_edge(x, y)

    def sepset(self, x: str, y: str) -> list[str] | None:
        """Names of the separating set of x and y (see ``SepsetMap.lookup``)."""
        by_name = {v.name: v for v in self.nodes}
        sepset = self.sepsets.lookup(by_name[x], by_name[y])
        return None if sepset is None else [v.name for v in sepset]

    def adjacency_matrix(self) -> np.ndarray:
        """Symmetric 0/1 adjacency matrix in universe order."""
        names = [v.name for v in self.nodes]
        return nx.to_numpy_array(self.graph, nodelist=names, dtype=int)

    def to_frame(self) -> pd.DataFrame:
        """Adjacency matrix labelled by variable name."""
        names = [v.name for v in self.nodes]
        return pd.DataFrame(self.adjacency_matrix(), index=names, columns=names)

    def sepsets_frame(self) -> pd.DataFrame:
        """One row per separated pair."""
        rows = [
            {"x": x, "y": y, "sepset": sepset, "size": len(sepset)}
            for (x, y), sepset in sorted(self.sepsets.to_dict().items())
        ]
        return pd.DataFrame(rows, columns=["x", "y", "sepset", "size"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [v.name for v in self.nodes],
            "edges": [list(e) for e in self.edges()],
            "sepsets": [
                {"pair": list(pair), "sepset": sepset}
                for pair, sepset in sorted(self.sepsets.to_dict().items())
            ],
            "diagnostics": self.diagnostics,
        }


class FastAdjacencySearch:
    """Parallel, depth-staged search for the adjacencies among a set of variables.

    Usage:
        fas = FastAdjacencySearch(test, depth=3, knowledge=knowledge)
        result = fas.search()
        result.graph, result.sepsets
    """

    DEPTH0_POLICIES = ("unconditional", "local_markov")

    def __init__(
        self,
        test: BaseIndependenceTest,
        *,
        knowledge: KnowledgeConstraints | None = None,
        depth: int | None = None,
        record_sepsets: bool | None = None,
        depth0_policy: Depth0Policy | None = None,
        reference_graph: nx.DiGraph | None = None,
        initial_graph: nx.Graph | None = None,
        chunk_size: int | None = None,
        n_workers: int | None = None,
        settings: SearchSettings | None = None,
    ):
        """Initialize the search. Unspecified parameters come from settings.

        Args:
            test: Independence oracle; its variables form the search universe
            knowledge: Required/forbidden edges restricting conditioning sets
            depth: Maximum conditioning set size, -1 for unbounded
            record_sepsets: Whether separating sets are stored
            depth0_policy: "unconditional" or "local_markov"
            reference_graph: Directed graph supplying local Markov boundaries
            initial_graph: Undirected graph restricting the depth-0 candidate pairs
            chunk_size: Largest index range a worker processes serially
            n_workers: Thread pool size (None for the CPU count)
            settings: Settings to take defaults from

        Raises:
            SearchConfigurationError: If any parameter is invalid
        """
        settings = settings or get_settings()

        if test is None:
            raise SearchConfigurationError("test", "an independence test is required")

        self.test = test
        self.knowledge: KnowledgeConstraints = knowledge if knowledge is not None else Knowledge()
        self.depth = settings.max_depth if depth is None else depth
        self.unbounded_depth_ceiling = settings.unbounded_depth_ceiling
        self.record_sepsets = settings.record_sepsets if record_sepsets is None else record_sepsets
        self.sepsets_empty_if_unset = settings.sepsets_empty_if_unset
        self.depth0_policy = depth0_policy or settings.depth0_policy
        self.reference_graph = reference_graph
        self.initial_graph = initial_graph
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        self.n_workers = settings.n_workers if n_workers is None else n_workers
        self.progress_interval = settings.progress_interval
        self.verbose = settings.verbose

        if self.depth0_policy not in self.DEPTH0_POLICIES:
            raise SearchConfigurationError(
                "depth0_policy", f"must be one of {self.DEPTH0_POLICIES}, got {self.depth0_policy!r}"
            )
        if self.depth0_policy == "local_markov":
            if reference_graph is None:
                raise SearchConfigurationError(
                    "reference_graph", "the local_markov depth-0 policy needs a reference graph"
                )
            if not isinstance(reference_graph, nx.DiGraph) or not nx.is_directed_acyclic_graph(reference_graph):
                raise SearchConfigurationError(
                    "reference_graph", "local Markov boundaries need a directed acyclic graph"
                )
        if self.chunk_size < 1:
            raise SearchConfigurationError("chunk_size", f"must be >= 1, got {self.chunk_size}")
        if self.n_workers is not None and self.n_workers < 1:
            raise SearchConfigurationError("n_workers", f"must be >= 1, got {self.n_workers}")

        self.state = SearchState.INITIALIZING
        self.sepsets = self._new_sepset_map()
        self._stats = SearchStats()
        self._elapsed = 0.0

    @property
    def depth(self) -> int:
        return self._depth

    @depth.setter
    def depth(self, depth: int) -> None:
        if depth < UNBOUNDED_DEPTH:
            raise SearchConfigurationError("depth", f"must be -1 (unlimited) or >= 0, got {depth}")
        self._depth = depth

    @property
    def effective_depth(self) -> int:
        return resolve_depth(self._depth, self.unbounded_depth_ceiling)

    @property
    def num_independence_tests(self) -> int:
        return self._stats.num_independence_tests

    @property
    def elapsed_time(self) -> float:
        """Wall-clock seconds taken by the last search."""
        return self._elapsed

    @property
    def nodes(self) -> list[Variable]:
        return self.test.variables

    def search(self) -> SearchResult:
        """Discover the adjacencies among the test's variables.

        Edges are removed in tiers: first those separated by the empty set,
        then by one other variable, then two, and so on until no more edges
        can be removed or the maximum depth is reached.

        Returns:
            SearchResult with the undirected adjacency graph and sepsets
        """
        nodes = self.nodes
        adjacencies, diagnostics = self._run(nodes)

        graph = nx.Graph()
        graph.add_nodes_from(v.name for v in nodes)
        graph.add_edges_from((x.name, y.name) for x, y in adjacencies.edges())

        logger.info(
            "search_finished",
            n_variables=len(nodes),
            n_edges=graph.number_of_edges(),
            n_tests=diagnostics["num_independence_tests"],
            elapsed_seconds=round(self._elapsed, 4),
        )

        return SearchResult(
            nodes=nodes,
            graph=graph,
            sepsets=self.sepsets,
            diagnostics=diagnostics,
        )

    def search_map_only(self) -> dict[Variable, set[Variable]]:
        """Run the search and return only the adjacency map."""
        adjacencies, _ = self._run(self.nodes)
        return adjacencies.to_dict()

    def _run(self, nodes: list[Variable]) -> tuple[AdjacencyMap, dict[str, Any]]:
        start_time = time.perf_counter()

        self.state = SearchState.INITIALIZING
        self.sepsets = self._new_sepset_map()
        self._stats = SearchStats()

        adjacencies = AdjacencyMap(nodes)
        max_depth = self.effective_depth
        edges_per_depth: dict[int, int] = {}

        with search_context(test=self.test.TEST_NAME), ForkJoinScheduler(self.n_workers, self.chunk_size) as scheduler:
            logger.info(
                "search_started",
                n_variables=len(nodes),
                max_depth=max_depth,
                depth0_policy=self.depth0_policy,
                chunk_size=self.chunk_size,
            )

            depth = 0
            while depth <= max_depth:
                if depth == 0:
                    self.state = SearchState.DEPTH0
                    more = self._search_at_depth0(scheduler, nodes, adjacencies)
                else:
                    self.state = SearchState.DEPTH_K
                    more = self._search_at_depth(scheduler, nodes, adjacencies, depth)

                edges_per_depth[depth] = adjacencies.num_edges()

                if not more:
                    break
                depth += 1

            n_workers = scheduler.n_workers

        self.state = SearchState.DONE
        self._elapsed = time.perf_counter() - start_time

        depths_searched = len(edges_per_depth)
        diagnostics = {
            "num_independence_tests": self._stats.num_independence_tests,
            "tests_by_depth": dict(self._stats.tests_by_depth),
            "failed_tests_by_depth": dict(self._stats.failures_by_depth),
            "removals_by_depth": dict(self._stats.removals_by_depth),
            "edges_per_depth": edges_per_depth,
            "depths_searched": depths_searched,
            "max_depth_reached": depths_searched - 1,
            "depth0_policy": self.depth0_policy,
            "chunk_size": self.chunk_size,
            "n_workers": n_workers,
            "elapsed_seconds": self._elapsed,
        }
        return adjacencies, diagnostics

    def _search_at_depth0(
        self,
        scheduler: ForkJoinScheduler,
        nodes: list[Variable],
        adjacencies: AdjacencyMap,
    ) -> bool:
        self._log_depth(0, adjacencies)

        common = dict(
            start=0,
            stop=len(nodes),
            variables=tuple(nodes),
            test=self.test,
            adjacencies=adjacencies,
            sepsets=self.sepsets if self.record_sepsets else None,
            stats=self._stats,
            progress_interval=self.progress_interval,
            initial=self._initial_snapshot(nodes),
        )

        if self.depth0_policy == "local_markov":
            task = LocalMarkovDepth0Task(
                **common, boundaries=markov_boundaries(self.reference_graph, nodes)
            )
        else:
            task = Depth0Task(**common)

        scheduler.invoke(task)
        return adjacencies.free_degree_greater_than(0)

    def _search_at_depth(
        self,
        scheduler: ForkJoinScheduler,
        nodes: list[Variable],
        adjacencies: AdjacencyMap,
        depth: int,
    ) -> bool:
        self._log_depth(depth, adjacencies)

        task = DepthTask(
            start=0,
            stop=len(nodes),
            variables=tuple(nodes),
            test=self.test,
            adjacencies=adjacencies,
            sepsets=self.sepsets if self.record_sepsets else None,
            stats=self._stats,
            progress_interval=self.progress_interval,
            depth=depth,
            snapshot=adjacencies.snapshot(),
            knowledge=self.knowledge,
        )

        scheduler.invoke(task)
        return adjacencies.free_degree_greater_than(depth)

    def _new_sepset_map(self) -> SepsetMap:
        # Without recording every lookup must still succeed, with the empty set.
        empty_if_unset = self.sepsets_empty_if_unset or not self.record_sepsets
        return SepsetMap(return_empty_if_not_set=empty_if_unset)

    def _initial_snapshot(self, nodes: list[Variable]) -> AdjacencySnapshot | None:
        if self.initial_graph is None:
            return None

        index = {v: i for i, v in enumerate(nodes)}
        by_name = {v.name: v for v in nodes}
        neighbors = {}
        for v in nodes:
            adj = self.initial_graph[v.name] if v.name in self.initial_graph else ()
            neighbors[v] = tuple(sorted(
                (by_name[n] for n in adj if n in by_name and n != v.name),
                key=index.__getitem__,
            ))
        return AdjacencySnapshot(nodes, neighbors)

    def _log_depth(self, depth: int, adjacencies: AdjacencyMap) -> None:
        log = logger.info if self.verbose else logger.debug
        log("depth_search_started", depth=depth, n_edges=adjacencies.num_edges())
