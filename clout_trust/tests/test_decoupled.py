"""
clout_trust/tests/test_decoupled.py — Tests for modified (decoupled) EigenTrust.

Tests verify:
- A vertex's own allocations never change its own score.
- The 2-cycle diverges from the standard 0.5 / 0.5 result.
- Results are raw (no normalization to 1).
- Iteration metadata summarises the per-vertex sub-runs.
"""

import dataclasses

import pytest

from clout_trust.config import DEFAULT_CONFIG
from clout_trust.graph.normalizer import UNIT_VERTEX
from clout_trust.propagation.decoupled import compute_modified_trust
from clout_trust.propagation.standard import compute_standard_trust


def test_mutual_pair_differs_from_standard(mutual_pair_graph):
    """
    Hand-computed: with A's row zeroed, subScores = [0.13875, 0.075],
    so A = 0.85 · 0.075 + 0.15 · 0.5 = 0.13875 (B by symmetry).
    """
    modified = compute_modified_trust(mutual_pair_graph).scores
    standard = compute_standard_trust(mutual_pair_graph).scores
    assert modified["A"] == pytest.approx(0.13875)
    assert modified["B"] == pytest.approx(0.13875)
    assert abs(modified["A"] - standard["A"]) > 0.1


def test_own_allocations_do_not_change_own_score(random_graph):
    baseline = compute_modified_trust(random_graph).scores
    for vertex in random_graph:
        for allocations in ({}, {vertex: 1.0}, {UNIT_VERTEX: 1.0}):
            edited = dict(random_graph)
            edited[vertex] = allocations
            assert compute_modified_trust(edited).scores[vertex] == pytest.approx(
                baseline[vertex], abs=1e-9
            )


def test_scores_are_not_normalized(mutual_pair_graph):
    scores = compute_modified_trust(mutual_pair_graph).scores
    assert sum(scores.values()) == pytest.approx(0.2775)


def test_single_vertex_scores_prior_only():
    result = compute_modified_trust({"solo": {}})
    assert result.scores == {"solo": pytest.approx(0.15)}


def test_empty_graph():
    result = compute_modified_trust({})
    assert result.scores == {}
    assert result.iterations == 0
    assert result.converged is True


def test_hub_still_ranks_first(star_graph):
    scores = compute_modified_trust(star_graph).scores
    assert max(scores, key=scores.get) == "hub"


def test_iteration_metadata_is_max_over_sub_runs(mutual_pair_graph):
    result = compute_modified_trust(mutual_pair_graph)
    assert result.iterations == 3
    assert result.converged is True


def test_iteration_cap_reports_not_converged(asymmetric_graph):
    config = dataclasses.replace(DEFAULT_CONFIG, max_iterations=1)
    result = compute_modified_trust(asymmetric_graph, config)
    assert result.iterations == 1
    assert result.converged is False


def test_deterministic(random_graph):
    assert compute_modified_trust(random_graph).scores == compute_modified_trust(
        random_graph
    ).scores


# ── Givers without allocations ───────────────────────────────────────────────

def test_edgeless_giver_adds_nothing_to_scores(three_vertex_graph):
    """
    A allocates nothing. With B's row zeroed the sub-run settles at
    sub[A] = 0.05, sub[C] = 0.85 · 0.5 · 0.05 + 0.05 = 0.07125, and only
    C → B is folded into B: B = 0.85 · 0.07125 + 0.15 / 3.
    """
    scores = compute_modified_trust(three_vertex_graph).scores
    assert scores["B"] == pytest.approx(0.85 * 0.07125 + 0.15 / 3)
    assert scores["C"] == pytest.approx(scores["B"])
    # Nobody allocates to A, so A keeps only its prior share.
    assert scores["A"] == pytest.approx(0.15 / 3)


def test_leaves_receive_nothing_from_edgeless_hub(star_graph):
    scores = compute_modified_trust(star_graph).scores
    for leaf in ("leaf-1", "leaf-2", "leaf-3", "leaf-4"):
        assert scores[leaf] == pytest.approx(0.15 / 5)
    assert scores["hub"] == pytest.approx(0.85 * 4 * 0.03 + 0.03)
