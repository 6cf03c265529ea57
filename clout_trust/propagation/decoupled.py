"""
clout_trust/propagation/decoupled.py — Modified (decoupled) EigenTrust.

In standard propagation a participant can raise its own score by how it
allocates trust, whenever a cycle leads back to it. The decoupled engine
removes that lever: vertex k's score is computed on a network in which k has
no outgoing flow at all, and is then read off k's *incoming* edges only.

For each vertex k:
    1. Zero row k of the full local trust matrix C (k allocates to the unit
       vertex, i.e. nowhere real).
    2. Iterate the standard damped update on that matrix → subScores.
    3. kScore = Σ_{g ≠ k} C[g][k] · subScores[g], summed only over givers who
       made allocations. A fallback row spreads a sub-run's walk but is not
       trust anyone actually gave to k.
    4. result[k] = (1 - α) · kScore + α · p[k].

Nothing in steps 1–4 reads row k, so changing k's own allocations cannot change
result[k].

The results are deliberately NOT rescaled to sum to 1. A global
normalization would make every displayed score depend on every other
vertex's raw computation again, which defeats the decoupling.

Complexity: n propagations of up to M iterations of O(n²) each, i.e. O(n⁴) for
M ~ n. Run it as a background batch job, not on a request path.
"""

import logging
from typing import Hashable, Mapping, Optional

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.graph.normalizer import (
    AllocationGraph,
    graph_vertices,
    normalize_local_trust,
    validate_graph,
)
from clout_trust.propagation.standard import (
    PropagationResult,
    power_iterate,
    resolve_pretrust,
)

logger = logging.getLogger(__name__)


def compute_modified_trust(
    graph: AllocationGraph,
    config: TrustConfig = DEFAULT_CONFIG,
    pretrust: Optional[Mapping[Hashable, float]] = None,
) -> PropagationResult:
    """
    Compute decoupled EigenTrust scores for every vertex of the graph.

    The full matrix is normalized once. Each per-vertex subgraph is realised by
    zeroing one row of a single working copy and restoring it afterwards,
    which is equivalent to rebuilding the subgraph with k → unit vertex.

    Args:
        graph:    Allocation graph {giver: {receiver: weight}}.
        config:   TrustConfig. Uses decay_factor, max_iterations and
                  convergence_threshold for every sub-run.
        pretrust: Optional prior weights per vertex (default uniform 1/n).

    Returns:
        PropagationResult with:
            scores     — raw, un-normalized decoupled scores.
            iterations — largest iteration count of any sub-run.
            converged  — True only if every sub-run converged.
        An empty graph gives ({}, 0, True). A single vertex has no incoming
        trust and scores α · p[v].

    Raises:
        InvalidGraph: malformed input (see validate_graph()).
    """
    validate_graph(graph)
    vertices = graph_vertices(graph)
    n = len(vertices)
    if n == 0:
        return PropagationResult(scores={}, iterations=0, converged=True)

    alpha = config.decay_factor
    ltm = normalize_local_trust(graph, vertices)
    C = ltm.matrix
    # Column weights used for the fold: fallback rows give nobody real trust.
    C_given = C.copy()
    C_given[ltm.fallback] = 0.0
    p = resolve_pretrust(vertices, pretrust)
    working = C.copy()

    scores: dict = {}
    max_iterations_seen = 0
    all_converged = True

    for k, vertex in enumerate(vertices):
        saved_row = working[k].copy()
        working[k] = 0.0
        sub_scores, iterations, converged = power_iterate(
            working,
            p,
            alpha,
            config.max_iterations,
            config.convergence_threshold,
        )
        working[k] = saved_row

        max_iterations_seen = max(max_iterations_seen, iterations)
        all_converged = all_converged and converged
        if not converged:
            logger.debug("Sub-run for %r hit the iteration cap.", vertex)

        # C[k][k] is always 0, so the column dot product only sums g != k.
        k_score = float(C_given[:, k] @ sub_scores)
        scores[vertex] = (1.0 - alpha) * k_score + alpha * float(p[k])

    if all_converged:
        logger.info(
            "Modified EigenTrust complete: %d vertices, max %d iterations per sub-run.",
            n,
            max_iterations_seen,
        )
    else:
        logger.warning(
            "Modified EigenTrust: at least one of %d sub-runs hit the %d-iteration cap.",
            n,
            config.max_iterations,
        )

    return PropagationResult(
        scores=scores,
        iterations=max_iterations_seen,
        converged=all_converged,
    )
