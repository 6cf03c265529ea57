"""
clout_trust/propagation/standard.py — Standard (coupled) EigenTrust propagation.

Power iteration of the damped random walk over the local trust matrix:

    t(k+1) = (1 - α) · Cᵀ · t(k) + α · p        t(0) = p

Score is *pulled* along edges: receiver j collects C[i][j] · t[i] from every
giver i, hence the transpose. The pretrust vector p anchors the walk, so it
cannot drift into a degenerate fixed point. The returned vector is
rescaled to sum to 1 to absorb floating-point drift.

In this engine a vertex's own allocations can flow back to it through cycles
(mutual trust pairs inflate each other). See decoupled.py for the variant
that removes that self-influence.
"""

import logging
from dataclasses import dataclass
from typing import Hashable, Mapping, Optional, Sequence

import numpy as np

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import InvalidGraph
from clout_trust.graph.normalizer import (
    AllocationGraph,
    graph_vertices,
    normalize_local_trust,
    validate_graph,
)

logger = logging.getLogger(__name__)


@dataclass
class PropagationResult:
    """
    Output of one propagation run.

    Fields:
        scores:     Dict vertex → score.
        iterations: Update steps performed (always <= the iteration cap).
        converged:  False if the cap was reached before the threshold.
                    A non-converged result is degraded but valid.
    """

    scores: dict
    iterations: int
    converged: bool

    def to_dict(self) -> dict:
        return {
            "scores": dict(self.scores),
            "iterations": self.iterations,
            "converged": self.converged,
        }


def resolve_pretrust(
    vertices: Sequence[Hashable],
    pretrust: Optional[Mapping[Hashable, float]] = None,
) -> np.ndarray:
    """
    Build the pretrust vector p over `vertices`.

    Args:
        vertices: Ordered vertex set.
        pretrust: Optional mapping vertex → non-negative prior weight. Missing
                  vertices get 0. None means uniform 1/n.

    Returns:
        p: float64 array summing to 1. If a supplied pretrust totals 0, p stays
           all-zero (and so will every score; see normalize_score_vector()).

    Raises:
        InvalidGraph: a pretrust weight is negative or non-finite.
    """
    n = len(vertices)
    if n == 0:
        return np.zeros(0, dtype=float)
    if pretrust is None:
        return np.full(n, 1.0 / n)

    p = np.array([float(pretrust.get(v, 0.0)) for v in vertices], dtype=float)
    if not np.all(np.isfinite(p)) or np.any(p < 0):
        raise InvalidGraph("pretrust weights must be finite and non-negative")

    total = p.sum()
    if total > 0:
        p = p / total
    else:
        logger.warning("Pretrust vector sums to zero; all scores will be zero.")
    return p


def power_iterate(
    C: np.ndarray,
    p: np.ndarray,
    decay_factor: float,
    max_iterations: int,
    convergence_threshold: float,
    pinned: Optional[int] = None,
) -> tuple[np.ndarray, int, bool]:
    """
    Run the damped fixed-point iteration t ← (1-α)·Cᵀ·t + α·p from t = p.

    Args:
        C:                     (n, n) local trust matrix.
        p:                     Pretrust vector, also the starting estimate.
        decay_factor:          α, weight of the pretrust in each step.
        max_iterations:        Iteration cap M.
        convergence_threshold: ε on the max absolute per-vertex change.
        pinned:                Optional vertex index held at 1.0 after every
                               step (anchored propagation).

    Returns:
        (t, iterations, converged). iterations <= max_iterations always.

    Complexity:
        O(M · n²). One dense matrix-vector product per step.
    """
    CT = C.T
    t = p.copy()
    if pinned is not None:
        t[pinned] = 1.0

    iterations = 0
    converged = False
    while iterations < max_iterations:
        iterations += 1
        t_new = (1.0 - decay_factor) * (CT @ t) + decay_factor * p
        if pinned is not None:
            t_new[pinned] = 1.0

        max_change = float(np.max(np.abs(t_new - t))) if t.size else 0.0
        t = t_new
        if iterations % 10 == 0:
            logger.debug("Iteration %d: max change = %.3e", iterations, max_change)
        if max_change < convergence_threshold:
            converged = True
            break

    return t, iterations, converged


def normalize_score_vector(t: np.ndarray) -> np.ndarray:
    """
    Rescale t to sum to 1.

    A zero total (every score is 0) is returned unchanged instead of
    producing NaN.
    """
    total = float(t.sum())
    if total == 0.0:
        logger.warning("Score vector sums to zero; skipping normalization.")
        return t
    return t / total


def compute_standard_trust(
    graph: AllocationGraph,
    config: TrustConfig = DEFAULT_CONFIG,
    pretrust: Optional[Mapping[Hashable, float]] = None,
) -> PropagationResult:
    """
    Compute standard EigenTrust scores for every vertex of the graph.

    Algorithm:
        1. Validate the graph and build C with normalize_local_trust().
        2. p = uniform 1/n (or the supplied pretrust, rescaled).
        3. power_iterate() until max change < config.convergence_threshold
           or config.max_iterations steps.
        4. Rescale the final vector to sum to 1 (skipped if it sums to 0).

    Args:
        graph:    Allocation graph {giver: {receiver: weight}}.
        config:   TrustConfig. Uses decay_factor, max_iterations and
                  convergence_threshold.
        pretrust: Optional prior weights per vertex.

    Returns:
        PropagationResult. An empty graph gives ({}, 0, True). A single vertex
        gives ({v: 1.0}, 0, True).

    Raises:
        InvalidGraph: malformed input (see validate_graph()).
    """
    validate_graph(graph)
    vertices = graph_vertices(graph)
    n = len(vertices)

    if n == 0:
        return PropagationResult(scores={}, iterations=0, converged=True)
    if n == 1:
        return PropagationResult(scores={vertices[0]: 1.0}, iterations=0, converged=True)

    ltm = normalize_local_trust(graph, vertices)
    p = resolve_pretrust(vertices, pretrust)

    t, iterations, converged = power_iterate(
        ltm.matrix,
        p,
        config.decay_factor,
        config.max_iterations,
        config.convergence_threshold,
    )
    t = normalize_score_vector(t)

    if converged:
        logger.info(
            "Standard EigenTrust converged: %d vertices, %d iterations.", n, iterations
        )
    else:
        logger.warning(
            "Standard EigenTrust did not converge after %d iterations (%d vertices).",
            iterations,
            n,
        )

    return PropagationResult(
        scores={v: float(t[i]) for i, v in enumerate(vertices)},
        iterations=iterations,
        converged=converged,
    )
