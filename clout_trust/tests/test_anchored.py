"""
clout_trust/tests/test_anchored.py — Tests for admin-anchored propagation.
"""

import pytest

from clout_trust.exceptions import InvalidGraph
from clout_trust.propagation.anchored import compute_anchored_trust


def test_anchor_pinned_at_one(random_graph):
    result = compute_anchored_trust(random_graph, "user-0")
    assert result.scores["user-0"] == 1.0


def test_direct_trust_from_anchor():
    """X → A; A allocates nothing and falls back to X. A = 0.85."""
    graph = {"X": {"A": 1.0}, "A": {}}
    result = compute_anchored_trust(graph, "X")
    assert result.scores == pytest.approx({"X": 1.0, "A": 0.85})
    assert result.converged is True


def test_unreachable_vertex_scores_zero():
    graph = {"X": {"A": 1.0}, "A": {"X": 1.0}, "B": {"C": 1.0}, "C": {"B": 1.0}}
    scores = compute_anchored_trust(graph, "X").scores
    assert scores["B"] == 0.0
    assert scores["C"] == 0.0
    assert scores["A"] > 0.0


def test_trust_decays_with_distance():
    graph = {"X": {"A": 1.0}, "A": {"B": 1.0}, "B": {"X": 1.0}}
    scores = compute_anchored_trust(graph, "X").scores
    assert scores["X"] > scores["A"] > scores["B"] > 0.0


def test_scores_not_normalized():
    graph = {"X": {"A": 0.5, "B": 0.5}, "A": {}, "B": {}}
    scores = compute_anchored_trust(graph, "X").scores
    assert sum(scores.values()) > 1.0


def test_missing_anchor_raises(mutual_pair_graph):
    with pytest.raises(InvalidGraph):
        compute_anchored_trust(mutual_pair_graph, "admin")
