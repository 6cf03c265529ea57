"""
clout_trust/graph/normalizer.py — Graph Normalizer (local trust matrix C).

Turns raw allocations {giver: {receiver: weight}} into the row-stochastic local
trust matrix every propagation engine iterates against:

    C[g][r] = w(g→r) / Σ w(g→·)        (self-loops and the unit vertex excluded)

A giver with no usable outgoing weight is treated as trusting everyone else
equally (1/(n-1) per other vertex). That keeps C row-stochastic and stops
edgeless participants from becoming dead ends in the random walk. The fallback
is computed on every call, never stored, so edits to the graph are always
reflected.

The matrix is dense. Networks in scope run from tens to low thousands of
vertices, where an n×n float64 array is both the simplest and the fastest
representation for the repeated Cᵀ·t products.
"""

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Hashable, Iterable, Mapping, Optional

import numpy as np

from clout_trust.exceptions import InvalidGraph

logger = logging.getLogger(__name__)

# Placeholder receiver meaning "this allocation flows nowhere real".
UNIT_VERTEX = "__UNIT__"

AllocationGraph = Mapping[Hashable, Optional[Mapping[Hashable, float]]]


@dataclass(frozen=True)
class LocalTrustMatrix:
    """
    Row-normalized local trust matrix over an ordered vertex set.

    Fields:
        vertices: Vertex ids in matrix order (graph key insertion order).
        matrix:   float64 array of shape (n, n). Row i is the trust
                  distribution of vertices[i]. Each row sums to 1, except
                  for the cases documented on normalize_local_trust().
        fallback: bool array of shape (n,). True where the row was filled by
                  the no-allocation fallback rather than the giver's own weights.
    """

    vertices: tuple
    matrix: np.ndarray
    fallback: np.ndarray

    @property
    def n(self) -> int:
        return len(self.vertices)

    @property
    def index(self) -> dict:
        return {v: i for i, v in enumerate(self.vertices)}

    def row(self, vertex: Hashable) -> dict:
        """Non-zero normalized allocations of one giver."""
        i = self.index[vertex]
        return {
            self.vertices[j]: float(w)
            for j, w in enumerate(self.matrix[i])
            if w > 0.0
        }

    def to_dict(self) -> dict:
        return {v: self.row(v) for v in self.vertices}


def _is_valid_weight(weight) -> bool:
    return (
        isinstance(weight, Real)
        and not isinstance(weight, bool)
        and math.isfinite(weight)
        and weight >= 0
    )


def validate_graph(graph: AllocationGraph) -> None:
    """
    Fail fast on graphs that break the input contract.

    Args:
        graph: Mapping giver → mapping receiver → weight. A giver may map to
               None or an empty mapping (no allocations).

    Raises:
        InvalidGraph: graph or an allocation map is not a mapping, or a weight
                      is non-numeric, boolean, negative, NaN or infinite.
    """
    if not isinstance(graph, Mapping):
        raise InvalidGraph(
            f"graph must be a mapping of vertex -> allocations, got {type(graph).__name__}"
        )

    for giver, allocations in graph.items():
        if allocations is None:
            continue
        if not isinstance(allocations, Mapping):
            raise InvalidGraph(
                f"allocations of {giver!r} must be a mapping, got {type(allocations).__name__}"
            )
        for receiver, weight in allocations.items():
            if not _is_valid_weight(weight):
                raise InvalidGraph(
                    f"invalid weight {weight!r} on edge {giver!r} -> {receiver!r}: "
                    f"weights must be finite, non-negative numbers"
                )


def graph_vertices(graph: AllocationGraph) -> tuple:
    """Ordered vertex set: the graph keys, minus the unit vertex."""
    return tuple(v for v in graph if v != UNIT_VERTEX)


def normalize_local_trust(
    graph: AllocationGraph,
    vertices: Optional[Iterable[Hashable]] = None,
    fallback_target: Optional[Hashable] = None,
) -> LocalTrustMatrix:
    """
    Build the row-stochastic local trust matrix C.

    Algorithm (O(n² + E)):
        1. For each giver, total its weights over receivers that are real
           vertices other than itself. Self-loops, the unit vertex and
           receivers outside the vertex set carry no score and are excluded.
        2. Total > 0 → row = weight / total.
        3. Total == 0 → uniform row 1/(n-1) over every other vertex
           (or, with fallback_target, 1.0 on that target).

    Args:
        graph:           Validated allocation graph (see validate_graph()).
        vertices:        Explicit vertex order. Defaults to graph_vertices(graph).
        fallback_target: Anchor vertex that receives the whole row of any giver
                         without allocations, instead of the uniform spread.
                         The target's own empty row stays zero.

    Returns:
        LocalTrustMatrix over the vertex set.

    Notes:
        - Rows that end up all-zero: the only vertex of a 1-vertex graph, and
          an empty fallback_target row. Every other row sums to 1.
        - The function is total over any validated graph; it never divides
          by zero.
    """
    verts = tuple(vertices) if vertices is not None else graph_vertices(graph)
    n = len(verts)
    index = {v: i for i, v in enumerate(verts)}
    C = np.zeros((n, n), dtype=float)
    fallback = np.zeros(n, dtype=bool)

    if fallback_target is not None and fallback_target not in index:
        raise InvalidGraph(f"fallback target {fallback_target!r} is not a vertex")

    fallback_rows = 0
    for i, giver in enumerate(verts):
        allocations = graph.get(giver) or {}

        total = 0.0
        for receiver, weight in allocations.items():
            j = index.get(receiver)
            if j is None or j == i:
                continue
            total += weight

        if total > 0:
            for receiver, weight in allocations.items():
                j = index.get(receiver)
                if j is None or j == i:
                    continue
                C[i, j] += weight / total
            continue

        fallback_rows += 1
        fallback[i] = True
        if fallback_target is not None:
            if giver != fallback_target:
                C[i, index[fallback_target]] = 1.0
        elif n > 1:
            C[i, :] = 1.0 / (n - 1)
            C[i, i] = 0.0

    logger.debug(
        "Local trust matrix built: %d vertices, %d fallback rows%s.",
        n,
        fallback_rows,
        f" (anchored to {fallback_target!r})" if fallback_target is not None else "",
    )
    return LocalTrustMatrix(vertices=verts, matrix=C, fallback=fallback)
