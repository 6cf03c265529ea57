"""
clout_trust/tests/test_builder.py — Tests for graph construction and I/O.
"""

import json

import networkx as nx
import pandas as pd
import pytest

from clout_trust.exceptions import InvalidGraph
from clout_trust.graph.builder import (
    graph_from_networkx,
    graph_from_records,
    graph_to_networkx,
    load_allocations_csv,
    load_graph_json,
    mutual_trust_pairs,
    strip_self_allocations,
)
from clout_trust.graph.normalizer import UNIT_VERTEX


def make_records_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "giver_id": ["alice", "alice", "bob"],
            "receiver_id": ["bob", "carol", "alice"],
            "proportion": [0.6, 0.4, 1.0],
        }
    )


# ── graph_from_records tests ─────────────────────────────────────────────────

def test_records_to_graph():
    graph = graph_from_records(make_records_df())
    assert graph == {
        "alice": {"bob": 0.6, "carol": 0.4},
        "bob": {"alice": 1.0},
        "carol": {},
    }


def test_participants_without_records_included():
    graph = graph_from_records(make_records_df(), participants=["dave"])
    assert list(graph)[0] == "dave"
    assert graph["dave"] == {}


def test_points_converted_to_proportions():
    records = [
        {"giver_id": "a", "receiver_id": "b", "proportion": 75},
        {"giver_id": "a", "receiver_id": "c", "proportion": "25"},
    ]
    graph = graph_from_records(records, points=True)
    assert graph["a"] == pytest.approx({"b": 0.75, "c": 0.25})


def test_custom_column_names():
    df = pd.DataFrame({"from": ["x"], "to": ["y"], "points": [100]})
    graph = graph_from_records(
        df, giver_col="from", receiver_col="to", weight_col="points", points=True
    )
    assert graph == {"x": {"y": 1.0}, "y": {}}


def test_duplicate_edge_keeps_last():
    records = [
        {"giver_id": "a", "receiver_id": "b", "proportion": 0.2},
        {"giver_id": "a", "receiver_id": "b", "proportion": 0.9},
    ]
    assert graph_from_records(records)["a"] == {"b": 0.9}


def test_unit_receiver_not_a_vertex():
    records = [{"giver_id": "a", "receiver_id": UNIT_VERTEX, "proportion": 1.0}]
    graph = graph_from_records(records)
    assert list(graph) == ["a"]


def test_empty_records():
    assert graph_from_records([], participants=["a", "b"]) == {"a": {}, "b": {}}


def test_missing_column_raises():
    df = make_records_df().drop(columns=["proportion"])
    with pytest.raises(InvalidGraph):
        graph_from_records(df)


def test_non_numeric_weight_raises():
    records = [{"giver_id": "a", "receiver_id": "b", "proportion": "lots"}]
    with pytest.raises(InvalidGraph):
        graph_from_records(records)


def test_negative_weight_raises():
    records = [{"giver_id": "a", "receiver_id": "b", "proportion": -0.5}]
    with pytest.raises(InvalidGraph):
        graph_from_records(records)


# ── File loaders ─────────────────────────────────────────────────────────────

def test_load_allocations_csv(tmp_path):
    path = tmp_path / "allocations.csv"
    make_records_df().to_csv(path, index=False)
    graph = load_allocations_csv(str(path))
    assert graph["alice"] == {"bob": 0.6, "carol": 0.4}


def test_load_graph_json_wrapped(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"graph": {"A": {"B": 1.0}, "B": None}}))
    assert load_graph_json(str(path)) == {"A": {"B": 1.0}, "B": {}}


def test_load_graph_json_bare(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"A": {"B": 0.5}, "B": {}}))
    assert load_graph_json(str(path)) == {"A": {"B": 0.5}, "B": {}}


def test_load_graph_json_invalid(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"A": {"B": -1}}))
    with pytest.raises(InvalidGraph):
        load_graph_json(str(path))


def test_load_graph_json_malformed(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text('{"A": {"B": 1.0')
    with pytest.raises(InvalidGraph):
        load_graph_json(str(path))


def test_load_graph_json_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_graph_json(str(tmp_path / "nope.json"))


# ── networkx interop ─────────────────────────────────────────────────────────

def test_graph_from_networkx():
    G = nx.DiGraph()
    G.add_node("lonely")
    G.add_edge("a", "b", weight=0.3)
    G.add_edge("b", "a")
    graph = graph_from_networkx(G)
    assert graph == {"lonely": {}, "a": {"b": 0.3}, "b": {"a": 1.0}}


def test_graph_to_networkx_drops_unit_and_zero_edges():
    graph = {"a": {"b": 0.0, "c": 1.0, UNIT_VERTEX: 0.5}, "b": {}, "c": {}}
    G = graph_to_networkx(graph)
    assert set(G.nodes) == {"a", "b", "c"}
    assert list(G.edges(data="weight")) == [("a", "c", 1.0)]


def test_strip_self_allocations():
    graph = {"a": {"a": 0.5, "b": 0.5}, "b": None}
    assert strip_self_allocations(graph) == {"a": {"b": 0.5}, "b": {}}
    assert graph["a"] == {"a": 0.5, "b": 0.5}


def test_mutual_trust_pairs(asymmetric_graph, mutual_pair_graph):
    assert mutual_trust_pairs(asymmetric_graph) == [("A", "C")]
    assert mutual_trust_pairs(mutual_pair_graph) == [("A", "B")]


def test_mutual_trust_pairs_ignores_self_loops():
    assert mutual_trust_pairs({"a": {"a": 1.0}, "b": {}}) == []
