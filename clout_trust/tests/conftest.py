"""
clout_trust/tests/conftest.py — Shared pytest fixtures for the trust engines.

Small hand-built graphs whose scores can be checked by hand, plus a seeded
random graph for property-style checks (SEED=41).

Fixtures:
    mutual_pair_graph   — A ↔ B, full mutual trust.
    three_vertex_graph  — A has no allocations, B → C, C → B.
    asymmetric_graph    — Three vertices with unequal, partly one-way trust.
    star_graph          — Four leaves all trusting a hub; hub trusts nobody.
    cycle_graph         — A → B → C → D → A.
    disconnected_graph  — Two mutual pairs with no edges between them.
    random_graph        — 8 vertices, seeded random allocations incl. self-loops.
"""

import numpy as np
import pytest

from clout_trust.graph.normalizer import UNIT_VERTEX

SEED = 41


@pytest.fixture
def mutual_pair_graph():
    return {"A": {"B": 1.0}, "B": {"A": 1.0}}


@pytest.fixture
def three_vertex_graph():
    return {"A": {}, "B": {"C": 1.0}, "C": {"B": 1.0}}


@pytest.fixture
def asymmetric_graph():
    return {
        "A": {"B": 0.7, "C": 0.3},
        "B": {"C": 1.0},
        "C": {"A": 0.2, UNIT_VERTEX: 0.8},
    }


@pytest.fixture
def star_graph():
    return {
        "hub": {},
        "leaf-1": {"hub": 1.0},
        "leaf-2": {"hub": 1.0},
        "leaf-3": {"hub": 1.0},
        "leaf-4": {"hub": 1.0},
    }


@pytest.fixture
def cycle_graph():
    return {"A": {"B": 1.0}, "B": {"C": 1.0}, "C": {"D": 1.0}, "D": {"A": 1.0}}


@pytest.fixture
def disconnected_graph():
    return {
        "A": {"B": 1.0},
        "B": {"A": 1.0},
        "C": {"D": 1.0},
        "D": {"C": 1.0},
    }


@pytest.fixture
def random_graph():
    """8 participants with seeded random allocations (some self-loops, some empty)."""
    rng = np.random.default_rng(SEED)
    vertices = [f"user-{i}" for i in range(8)]
    graph = {}
    for v in vertices:
        k = int(rng.integers(0, 4))
        targets = rng.choice(vertices, size=k, replace=False) if k else []
        graph[v] = {str(t): float(w) for t, w in zip(targets, rng.random(k))}
    return graph
