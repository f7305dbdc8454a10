"""Parallel fast adjacency search."""

from .fas import FastAdjacencySearch, SearchResult, SearchState
from .oracle import BaseIndependenceTest, CallableIndependenceTest, DSeparationTest
from .scheduler import ForkJoinScheduler, RangeTask
from .tasks import Depth0Task, DepthTask, LocalMarkovDepth0Task, SearchStats, markov_boundaries

__all__ = [
    # Orchestration
    "FastAdjacencySearch",
    "SearchResult",
    "SearchState",
    # Oracles
    "BaseIndependenceTest",
    "CallableIndependenceTest",
    "DSeparationTest",
    # Scheduling
    "ForkJoinScheduler",
    "RangeTask",
    "Depth0Task",
    "DepthTask",
    "LocalMarkovDepth0Task",
    "SearchStats",
    "markov_boundaries",
]
