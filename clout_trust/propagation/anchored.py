"""
clout_trust/propagation/anchored.py — Admin-anchored EigenTrust.

The production variant used to compute clout for the live network. All
pretrust sits on a single anchor vertex, the network administrator. Trust
propagates outward from it:

    p = e_anchor,   t(0) = p
    t(k+1) = (1 - α) · Cᵀ · t(k) + α · p,   then t(k+1)[anchor] = 1.0

Participants who have not allocated anything default to trusting the anchor
only, which preserves the anchor's signal instead of diluting it uniformly.
Scores are absolute (the anchor is 1.0 by construction) and are not rescaled.
"""

import logging
from typing import Hashable

import numpy as np

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import InvalidGraph
from clout_trust.graph.normalizer import (
    AllocationGraph,
    graph_vertices,
    normalize_local_trust,
    validate_graph,
)
from clout_trust.propagation.standard import PropagationResult, power_iterate

logger = logging.getLogger(__name__)


def compute_anchored_trust(
    graph: AllocationGraph,
    anchor: Hashable,
    config: TrustConfig = DEFAULT_CONFIG,
) -> PropagationResult:
    """
    Compute anchored EigenTrust scores.

    Args:
        graph:  Allocation graph {giver: {receiver: weight}}.
        anchor: Vertex id of the administrator. Must be a key of the graph.
        config: TrustConfig. Uses decay_factor, max_iterations and
                convergence_threshold.

    Returns:
        PropagationResult. scores[anchor] == 1.0 always. A participant reached
        by no trust path from the anchor scores 0.

    Raises:
        InvalidGraph: malformed input, or the anchor is not a vertex.
    """
    validate_graph(graph)
    vertices = graph_vertices(graph)
    if anchor not in vertices:
        raise InvalidGraph(f"anchor vertex {anchor!r} is not in the graph")

    ltm = normalize_local_trust(graph, vertices, fallback_target=anchor)
    anchor_idx = ltm.index[anchor]

    p = np.zeros(ltm.n, dtype=float)
    p[anchor_idx] = 1.0

    t, iterations, converged = power_iterate(
        ltm.matrix,
        p,
        config.decay_factor,
        config.max_iterations,
        config.convergence_threshold,
        pinned=anchor_idx,
    )

    if converged:
        logger.info(
            "Anchored EigenTrust converged: %d vertices, %d iterations (anchor=%r).",
            ltm.n,
            iterations,
            anchor,
        )
    else:
        logger.warning(
            "Anchored EigenTrust did not converge after %d iterations.", iterations
        )

    return PropagationResult(
        scores={v: float(t[i]) for i, v in enumerate(vertices)},
        iterations=iterations,
        converged=converged,
    )
