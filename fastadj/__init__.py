"""Stable, concurrent fast adjacency search for constraint-based causal discovery."""

from .errors import FastAdjError, IndependenceTestError, SearchConfigurationError
from .graph import AdjacencyMap, Knowledge, SepsetMap, Variable
from .search import (
    BaseIndependenceTest,
    CallableIndependenceTest,
    DSeparationTest,
    FastAdjacencySearch,
    SearchResult,
    SearchState,
)
from .util import ChoiceGenerator, SelectionGenerator

__version__ = "1.0.0"

__all__ = [
    # Search
    "FastAdjacencySearch",
    "SearchResult",
    "SearchState",
    # Oracles
    "BaseIndependenceTest",
    "CallableIndependenceTest",
    "DSeparationTest",
    # Bookkeeping
    "AdjacencyMap",
    "Knowledge",
    "SepsetMap",
    "Variable",
    # Enumerators
    "ChoiceGenerator",
    "SelectionGenerator",
    # Errors
    "FastAdjError",
    "IndependenceTestError",
    "SearchConfigurationError",
]
