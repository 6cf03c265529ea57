"""
clout_trust/grants/allocation.py — Grant Allocation Engine.

Applicants in a grant round allocate trust to each other's applications. This
module propagates that trust once (no decoupling), ranks the applications and
recommends a funding amount for each:

    t(0) = 1/n
    t(k+1)[i] = (1 - α)/n + α · Σ_j t(k)[j] · C[j][i]
    recommendedFunding[i] = max(totalFunding · t[i] / Σt, minimumGrantSize)

Note the weighting: here α multiplies the *network* term and (1 - α) the
uniform prior, the inverse of the participant engines. With the default
α = 0.15 grant scores stay close to uniform. This is the round's calibration
and is kept as is.

The minimum-grant floor is applied per applicant and the result is NOT
rebalanced, so the recommended total can exceed the round budget when many
low-trust applicants are floored. Recommendations are advisory and subject to
human review. funding_summary() reports any over-allocation.
"""

import logging
import math
from dataclasses import dataclass
from typing import Hashable, Mapping

import numpy as np

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import InvalidParameters
from clout_trust.graph.normalizer import (
    AllocationGraph,
    graph_vertices,
    normalize_local_trust,
    validate_graph,
)
from clout_trust.propagation.standard import PropagationResult, power_iterate

logger = logging.getLogger(__name__)


@dataclass
class GrantAllocation:
    """
    Funding recommendation for one application.

    Fields:
        application_id:      Application (vertex) id.
        allocated_trust:     Final propagated trust score.
        recommended_funding: max(proportional share, minimum grant size).
        rank:                1-based rank by allocated_trust (ties keep input order).
    """

    application_id: Hashable
    allocated_trust: float
    recommended_funding: float
    rank: int

    def to_dict(self) -> dict:
        return {
            "applicationId": self.application_id,
            "allocatedTrust": self.allocated_trust,
            "recommendedFunding": self.recommended_funding,
            "rank": self.rank,
        }


def _check_amount(value, name: str) -> float:
    if (
        not isinstance(value, (int, float))
        or isinstance(value, bool)
        or not math.isfinite(value)
        or value < 0
    ):
        raise InvalidParameters(f"{name} must be a finite, non-negative number, got {value!r}")
    return float(value)


def propagate_application_trust(
    graph: AllocationGraph,
    config: TrustConfig = DEFAULT_CONFIG,
) -> PropagationResult:
    """
    Propagate trust over the application graph.

    Applications without outgoing trust get the uniform fallback row from the
    Graph Normalizer. The update (1-α)/n + α·Cᵀt is the standard damped step
    with the decay factor mirrored (1 - α), so it reuses power_iterate().

    Args:
        graph:  Application graph {application: {application: weight}}.
        config: TrustConfig. Uses grant_decay_factor, grant_max_iterations and
                grant_convergence_threshold.

    Returns:
        PropagationResult (scores not rescaled; they already sum to 1 for a
        row-stochastic C).
    """
    validate_graph(graph)
    vertices = graph_vertices(graph)
    n = len(vertices)
    if n == 0:
        return PropagationResult(scores={}, iterations=0, converged=True)

    ltm = normalize_local_trust(graph, vertices)
    p = np.full(n, 1.0 / n)
    t, iterations, converged = power_iterate(
        ltm.matrix,
        p,
        1.0 - config.grant_decay_factor,
        config.grant_max_iterations,
        config.grant_convergence_threshold,
    )
    if not converged:
        logger.warning(
            "Grant trust propagation did not converge after %d iterations.", iterations
        )
    return PropagationResult(
        scores={v: float(t[i]) for i, v in enumerate(vertices)},
        iterations=iterations,
        converged=converged,
    )


def recommend_funding(
    scores: Mapping[Hashable, float],
    total_funding: float,
    minimum_grant_size: float,
) -> dict:
    """
    Proportional funding with a per-applicant floor.

    Args:
        scores:             Dict application → trust score (non-negative).
        total_funding:      Round budget.
        minimum_grant_size: Floor applied independently to each applicant.

    Returns:
        Dict application → max(total_funding · score / Σscores, minimum).
        If Σscores is 0 every applicant receives the floor. No rebalancing:
        the sum may exceed total_funding.
    """
    total_funding = _check_amount(total_funding, "total_funding")
    minimum_grant_size = _check_amount(minimum_grant_size, "minimum_grant_size")

    score_sum = float(sum(scores.values()))
    funding: dict = {}
    for app_id, score in scores.items():
        base = total_funding * score / score_sum if score_sum > 0 else 0.0
        funding[app_id] = max(base, minimum_grant_size)
    return funding


def compute_grant_allocations(
    graph: AllocationGraph,
    total_funding: float,
    minimum_grant_size: float,
    config: TrustConfig = DEFAULT_CONFIG,
) -> list[GrantAllocation]:
    """
    Rank applications by propagated trust and recommend funding.

    Args:
        graph:              Application trust graph.
        total_funding:      Round budget.
        minimum_grant_size: Per-applicant floor.
        config:             TrustConfig (grant_* parameters).

    Returns:
        List of GrantAllocation sorted by allocated_trust descending
        (stable: equal scores keep the graph's key order). Empty for an
        empty graph.
    """
    result = propagate_application_trust(graph, config)
    if not result.scores:
        return []

    funding = recommend_funding(result.scores, total_funding, minimum_grant_size)
    ordered = sorted(result.scores.items(), key=lambda item: item[1], reverse=True)

    allocations = [
        GrantAllocation(
            application_id=app_id,
            allocated_trust=score,
            recommended_funding=funding[app_id],
            rank=position + 1,
        )
        for position, (app_id, score) in enumerate(ordered)
    ]

    logger.info(
        "Grant allocation: %d applications ranked in %d iterations. "
        "Recommended %.2f of %.2f budget.",
        len(allocations),
        result.iterations,
        sum(a.recommended_funding for a in allocations),
        float(total_funding),
    )
    return allocations


def funding_summary(
    allocations: list[GrantAllocation],
    total_funding: float,
    minimum_grant_size: float,
) -> dict:
    """
    Budget check for a set of recommendations.

    Returns:
        {'total_recommended', 'total_funding', 'over_allocation',
         'over_budget', 'floored_count', 'applications'} where
        floored_count counts applicants whose recommendation came from the
        minimum-grant floor rather than their proportional share.
    """
    total_funding = _check_amount(total_funding, "total_funding")
    minimum_grant_size = _check_amount(minimum_grant_size, "minimum_grant_size")
    total_recommended = float(sum(a.recommended_funding for a in allocations))
    trust_sum = float(sum(a.allocated_trust for a in allocations))

    floored = 0
    for a in allocations:
        share = total_funding * a.allocated_trust / trust_sum if trust_sum > 0 else 0.0
        if share < minimum_grant_size:
            floored += 1

    over_allocation = max(total_recommended - total_funding, 0.0)
    if over_allocation > 0:
        logger.warning(
            "Recommended funding %.2f exceeds the round budget %.2f by %.2f "
            "(%d applicant(s) raised to the minimum grant).",
            total_recommended,
            total_funding,
            over_allocation,
            floored,
        )
    return {
        "total_recommended": total_recommended,
        "total_funding": total_funding,
        "over_allocation": over_allocation,
        "over_budget": over_allocation > 0,
        "floored_count": floored,
        "applications": len(allocations),
    }
