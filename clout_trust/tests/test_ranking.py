"""
clout_trust/tests/test_ranking.py — Tests for the Rank / Display Mapper.

Tests verify:
- Ranks follow descending score, ties broken by vertex id.
- Display scores round half up and stay inside [0, scale].
- Percentile ranks are bounded and handle the excluded anchor.
"""

import dataclasses

import pytest

from clout_trust.config import DEFAULT_CONFIG
from clout_trust.ranking import (
    compute_percentiles,
    default_display_score,
    rank_scores,
    ranked_scores_frame,
)


# ── rank_scores tests ────────────────────────────────────────────────────────

def test_ranks_descending_by_score():
    ranked = rank_scores({"a": 0.2, "b": 0.5, "c": 0.3})
    assert [r.vertex for r in ranked] == ["b", "c", "a"]
    assert [r.rank for r in ranked] == [1, 2, 3]


def test_ties_broken_by_vertex_id():
    ranked = rank_scores({"b": 0.5, "a": 0.5, "c": 0.9})
    assert [(r.vertex, r.rank) for r in ranked] == [("c", 1), ("a", 2), ("b", 3)]


def test_tie_order_independent_of_input_order():
    first = rank_scores({"x": 0.1, "y": 0.1, "z": 0.1})
    second = rank_scores({"z": 0.1, "y": 0.1, "x": 0.1})
    assert first == second


def test_display_scores_attached():
    ranked = rank_scores({"a": 0.5, "b": 0.125})
    assert {r.vertex: r.display_score for r in ranked} == {"a": 50, "b": 13}


def test_custom_display_fn():
    ranked = rank_scores({"a": 0.5}, display_fn=lambda raw: 7)
    assert ranked[0].display_score == 7


def test_display_scale_from_config():
    config = dataclasses.replace(DEFAULT_CONFIG, display_scale=10)
    ranked = rank_scores({"a": 0.55}, config=config)
    assert ranked[0].display_score == 6


def test_empty_scores():
    assert rank_scores({}) == []


def test_to_dict_keys():
    ranked = rank_scores({"a": 0.25})
    assert ranked[0].to_dict() == {"id": "a", "rawScore": 0.25, "displayScore": 25, "rank": 1}


# ── default_display_score tests ──────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw, expected",
    [
        (0.0, 0),
        (0.124, 12),
        (0.125, 13),
        (0.5, 50),
        (1.0, 100),
        (1.7, 100),
        (-0.2, 0),
    ],
)
def test_default_display_score(raw, expected):
    assert default_display_score(raw) == expected


# ── compute_percentiles tests ────────────────────────────────────────────────

def test_percentiles_span_zero_to_hundred():
    pct = compute_percentiles({"a": 0.1, "b": 0.2, "c": 0.3})
    assert pct == {"a": 0, "b": 50, "c": 100}


def test_percentiles_rounded():
    pct = compute_percentiles({"a": 0.1, "b": 0.2, "c": 0.3, "d": 0.4})
    assert pct == {"a": 0, "b": 33, "c": 67, "d": 100}


def test_lone_vertex_is_median():
    assert compute_percentiles({"a": 0.4}) == {"a": 50}


def test_excluded_anchor_reported_at_hundred():
    pct = compute_percentiles({"admin": 1.0, "a": 0.1, "b": 0.2}, exclude="admin")
    assert pct == {"a": 0, "b": 100, "admin": 100}


def test_percentiles_bounded(random_graph):
    from clout_trust.propagation.standard import compute_standard_trust

    pct = compute_percentiles(compute_standard_trust(random_graph).scores)
    assert all(0 <= v <= 100 for v in pct.values())


def test_ranked_scores_frame_columns():
    df = ranked_scores_frame(rank_scores({"a": 0.6, "b": 0.4}))
    assert list(df.columns) == ["id", "rawScore", "displayScore", "rank"]
    assert df["id"].tolist() == ["a", "b"]
