"""Graph bookkeeping structures for the adjacency search."""

from .adjacency import AdjacencyMap, AdjacencySnapshot
from .knowledge import Knowledge, KnowledgeConstraints, is_possible_parent, possible_parents
from .sepsets import SepsetMap
from .variables import Variable, as_variables

__all__ = [
    "AdjacencyMap",
    "AdjacencySnapshot",
    "Knowledge",
    "KnowledgeConstraints",
    "SepsetMap",
    "Variable",
    "as_variables",
    "is_possible_parent",
    "possible_parents",
]
