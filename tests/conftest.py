"""Pytest configuration and shared fixtures."""

import os

import networkx as nx
import pytest

# Set test environment
os.environ["FASTADJ_ENVIRONMENT"] = "development"
os.environ.setdefault("FASTADJ_LOG_LEVEL", "WARNING")


@pytest.fixture
def settings():
    """Fresh settings independent of the cached instance."""
    from fastadj.config import SearchSettings

    return SearchSettings(_env_file=None)


@pytest.fixture
def variables():
    """Five variables in a fixed universe order."""
    from fastadj.graph import Variable

    return [Variable(name) for name in ["A", "B", "C", "D", "E"]]


@pytest.fixture
def collider_dag():
    """A -> C <- B, C -> D, D -> E."""
    dag = nx.DiGraph()
    dag.add_nodes_from(["A", "B", "C", "D", "E"])
    dag.add_edges_from([("A", "C"), ("B", "C"), ("C", "D"), ("D", "E")])
    return dag


@pytest.fixture
def dense_dag():
    """Eight-variable DAG with several paths, used for determinism checks."""
    dag = nx.DiGraph()
    dag.add_nodes_from([f"X{i}" for i in range(8)])
    dag.add_edges_from([
        ("X0", "X1"), ("X0", "X2"), ("X1", "X3"), ("X2", "X3"),
        ("X3", "X4"), ("X1", "X5"), ("X4", "X6"), ("X5", "X6"),
        ("X2", "X7"), ("X6", "X7"),
    ])
    return dag
