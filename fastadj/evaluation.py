"""Evaluation of discovered skeletons against a known graph.

Metrics:
- Adjacency precision, recall and F1 (edge direction ignored)
- Arrowhead precision restricted to edges both graphs share
"""

from dataclasses import dataclass

import networkx as nx

from fastadj.logging_config import get_logger
from fastadj.search.fas import SearchResult

logger = get_logger(__name__)


def _adjacencies(graph: nx.Graph) -> set[frozenset[str]]:
    return {frozenset((str(a), str(b))) for a, b in graph.edges if a != b}


def _ratio(num: int, den: int) -> float:
    return num / den if den else float("nan")


def adjacency_precision(true_graph: nx.Graph, est_graph: nx.Graph) -> float:
    """Fraction of estimated adjacencies present in the true graph."""
    true_adj, est_adj = _adjacencies(true_graph), _adjacencies(est_graph)
    return _ratio(len(true_adj & est_adj), len(est_adj))


def adjacency_recall(true_graph: nx.Graph, est_graph: nx.Graph) -> float:
    """Fraction of true adjacencies recovered by the estimate."""
    true_adj, est_adj = _adjacencies(true_graph), _adjacencies(est_graph)
    return _ratio(len(true_adj & est_adj), len(true_adj))


def adjacency_f1(true_graph: nx.Graph, est_graph: nx.Graph) -> float:
    p = adjacency_precision(true_graph, est_graph)
    r = adjacency_recall(true_graph, est_graph)
    if p != p or r != r or p + r == 0:
        return float("nan")
    return 2 * p * r / (p + r)


def arrowhead_precision_common_edges(true_graph: nx.DiGraph, est_graph: nx.DiGraph) -> float:
    """Arrowhead precision over adjacencies present in both graphs.

    An estimated arrowhead into ``b`` on edge a -> b is a true positive if the
    true graph also has a -> b. Undirected estimates (both directions present)
    contribute no arrowheads.
    """
    common = _adjacencies(true_graph) & _adjacencies(est_graph)
    tp = fp = 0

    for a, b in est_graph.edges:
        if frozenset((str(a), str(b))) not in common or est_graph.has_edge(b, a):
            continue
        if true_graph.has_edge(a, b):
            tp += 1
        else:
            fp += 1

    return _ratio(tp, tp + fp)


@dataclass
class EvaluationMetrics:
    """Metrics for evaluating a discovered skeleton."""

    adjacency_precision: float
    adjacency_recall: float
    adjacency_f1: float
    n_true_edges: int
    n_estimated_edges: int
    n_independence_tests: int | None = None

    def to_dict(self) -> dict[str, float | int | None]:
        return {
            "adjacency_precision": self.adjacency_precision,
            "adjacency_recall": self.adjacency_recall,
            "adjacency_f1": self.adjacency_f1,
            "n_true_edges": self.n_true_edges,
            "n_estimated_edges": self.n_estimated_edges,
            "n_independence_tests": self.n_independence_tests,
        }

    def summary(self) -> str:
        """Human-readable summary."""
        return (
            f"AP: {self.adjacency_precision:.3f} | AR: {self.adjacency_recall:.3f} | "
            f"F1: {self.adjacency_f1:.3f} | edges: {self.n_estimated_edges}/{self.n_true_edges}"
        )


def evaluate_skeleton(true_graph: nx.Graph, result: SearchResult) -> EvaluationMetrics:
    """Compare a search result's skeleton to the skeleton of a known graph."""
    est = result.graph
    metrics = EvaluationMetrics(
        adjacency_precision=adjacency_precision(true_graph, est),
        adjacency_recall=adjacency_recall(true_graph, est),
        adjacency_f1=adjacency_f1(true_graph, est),
        n_true_edges=len(_adjacencies(true_graph)),
        n_estimated_edges=len(_adjacencies(est)),
        n_independence_tests=result.diagnostics.get("num_independence_tests"),
    )
    logger.info("skeleton_evaluated", **metrics.to_dict())
    return metrics
