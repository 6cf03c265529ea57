"""
clout_trust/graph/builder.py — Allocation graph construction and I/O.

The engines consume a plain mapping {giver: {receiver: weight}}. This module
builds that mapping from the shapes a caller actually holds:

    - allocation record tables (pandas DataFrame, list of dicts, or a CSV file)
      as exported from the TrustAllocation store,
    - JSON documents ({"graph": {...}} or a bare mapping),
    - networkx DiGraphs with a weight attribute on each edge.

It also exports a graph back to networkx for structural inspection
(e.g. reciprocal trust pairs, the 2-cycles that inflate standard scores).
"""

import json
import logging
import os
from typing import Any, Hashable, Iterable, Optional, Union

import networkx as nx
import pandas as pd

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import InvalidGraph
from clout_trust.graph.normalizer import UNIT_VERTEX, AllocationGraph, validate_graph

logger = logging.getLogger(__name__)


def graph_from_records(
    records: Union[pd.DataFrame, Iterable[dict]],
    participants: Optional[Iterable[Hashable]] = None,
    giver_col: str = "giver_id",
    receiver_col: str = "receiver_id",
    weight_col: str = "proportion",
    points: bool = False,
    config: TrustConfig = DEFAULT_CONFIG,
) -> dict:
    """
    Build an allocation graph from flat allocation records.

    Every participant must appear as a key to receive a score, so givers,
    receivers and the optional participants list all become vertices (those
    without allocations map to an empty dict).

    Args:
        records:      DataFrame or iterable of row dicts with giver, receiver
                      and weight columns.
        participants: Extra vertex ids to include even if they appear in no
                      record (e.g. newly joined users). Listed first, in order.
        giver_col:    Column holding the giver id.
        receiver_col: Column holding the receiver id.
        weight_col:   Column holding the allocation weight.
        points:       True if weights are trust points (0–100); they are
                      divided by config.points_scale.
        config:       TrustConfig. Uses config.points_scale.

    Returns:
        graph: dict giver → dict receiver → weight. Duplicate (giver, receiver)
               rows keep the last value.

    Raises:
        InvalidGraph: a required column is missing, a weight cannot be parsed
                      as a number, or a weight is negative.
    """
    df = records.copy() if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))

    graph: dict = {}
    for p in participants or ():
        graph.setdefault(p, {})

    if df.empty:
        logger.info("No allocation records; graph has %d isolated participants.", len(graph))
        return graph

    missing = [c for c in (giver_col, receiver_col, weight_col) if c not in df.columns]
    if missing:
        raise InvalidGraph(f"allocation records missing columns: {missing}")

    weights = pd.to_numeric(df[weight_col], errors="coerce")
    bad_rows = df.index[weights.isna()].tolist()
    if bad_rows:
        raise InvalidGraph(
            f"non-numeric {weight_col!r} in {len(bad_rows)} record(s), first at row {bad_rows[0]}"
        )
    if points:
        weights = weights / config.points_scale
    df[weight_col] = weights.astype(float)

    for row in df[[giver_col, receiver_col, weight_col]].itertuples(index=False):
        giver, receiver, weight = row
        graph.setdefault(giver, {})[receiver] = float(weight)
        if receiver != UNIT_VERTEX:
            graph.setdefault(receiver, {})

    validate_graph(graph)
    logger.info(
        "Built allocation graph from %d records: %d vertices.", len(df), len(graph)
    )
    return graph


def load_allocations_csv(path: str, **kwargs: Any) -> dict:
    """Read an allocation CSV and pass it to graph_from_records()."""
    logger.info("Loading allocation records from: %s", path)
    return graph_from_records(pd.read_csv(path), **kwargs)


def load_graph_json(path: str) -> dict:
    """
    Load an allocation graph from a JSON file.

    Accepts either {"graph": {giver: {receiver: weight}}} (the comparison
    request body) or the bare mapping. Unparseable JSON raises InvalidGraph.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(path)
    with open(path, encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise InvalidGraph(f"{path} is not valid JSON: {exc}") from exc

    graph = payload.get("graph", payload) if isinstance(payload, dict) else payload
    validate_graph(graph)
    return {giver: dict(allocs or {}) for giver, allocs in graph.items()}


def graph_from_networkx(G: nx.DiGraph, weight: str = "weight", default: float = 1.0) -> dict:
    """
    Convert a weighted DiGraph to an allocation graph.

    Every node becomes a vertex. Edges without the weight attribute count as
    `default`.
    """
    graph: dict = {node: {} for node in G.nodes}
    for u, v, data in G.edges(data=True):
        graph[u][v] = data.get(weight, default)
    validate_graph(graph)
    return graph


def graph_to_networkx(graph: AllocationGraph) -> nx.DiGraph:
    """
    Export an allocation graph as a DiGraph with a 'weight' edge attribute.

    Zero-weight edges and edges to the unit vertex are dropped.
    """
    validate_graph(graph)
    G = nx.DiGraph()
    G.add_nodes_from(v for v in graph if v != UNIT_VERTEX)
    for giver, allocations in graph.items():
        if giver == UNIT_VERTEX:
            continue
        for receiver, w in (allocations or {}).items():
            if receiver == UNIT_VERTEX or w <= 0:
                continue
            G.add_edge(giver, receiver, weight=float(w))
    return G


def strip_self_allocations(graph: AllocationGraph) -> dict:
    """Return a copy of the graph with every giver → giver edge removed."""
    stripped: dict = {}
    removed = 0
    for giver, allocations in graph.items():
        allocs = dict(allocations or {})
        if giver in allocs:
            del allocs[giver]
            removed += 1
        stripped[giver] = allocs
    if removed:
        logger.info("Removed %d self-allocation(s).", removed)
    return stripped


def mutual_trust_pairs(graph: AllocationGraph) -> list[tuple]:
    """
    List reciprocal trust pairs (a → b and b → a both positive).

    These 2-cycles are where standard propagation lets a participant's own
    allocations feed back into its own score.
    """
    G = graph_to_networkx(graph)
    reciprocal = G.to_undirected(reciprocal=True)
    reciprocal.remove_edges_from(nx.selfloop_edges(reciprocal))
    pairs = sorted(
        (tuple(sorted((u, v), key=str)) for u, v in reciprocal.edges()),
        key=lambda pair: (str(pair[0]), str(pair[1])),
    )
    logger.debug("Found %d mutual trust pairs.", len(pairs))
    return pairs
