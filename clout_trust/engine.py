"""
clout_trust/engine.py — Production compute and comparison entry points.

Single-call facade over the propagation engines and the Rank/Display Mapper.
This is the layer a service or background job calls with a graph snapshot:

    from clout_trust.engine import run_trust_computation
    result = run_trust_computation(graph)
    payload = result.to_dict()   # {success, iterations, converged, numVertices, scores}

Persisting the payload and deciding when to recompute stay with the caller.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import TrustComputationError
from clout_trust.graph.normalizer import AllocationGraph
from clout_trust.propagation.anchored import compute_anchored_trust
from clout_trust.propagation.decoupled import compute_modified_trust
from clout_trust.propagation.standard import PropagationResult, compute_standard_trust
from clout_trust.ranking import RankedScore, rank_scores

logger = logging.getLogger(__name__)


@dataclass
class TrustComputation:
    """
    Result of a production trust computation.

    Fields:
        success:      False only when the input or parameters were rejected.
        mode:         Engine used: 'standard' | 'modified' | 'anchored'.
        iterations:   Iterations performed (max per sub-run for 'modified').
        converged:    False if the iteration cap was reached.
        num_vertices: Number of scored vertices.
        scores:       RankedScore list in rank order.
        error:        Error message when success is False.
        duration_ms:  Wall-clock computation time in milliseconds.
    """

    success: bool
    mode: str
    iterations: int = 0
    converged: bool = False
    num_vertices: int = 0
    scores: list[RankedScore] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "iterations": self.iterations,
            "converged": self.converged,
            "numVertices": self.num_vertices,
            "scores": [s.to_dict() for s in self.scores],
        }


@dataclass
class TrustComparison:
    """Standard and modified scores over the same graph (parallel mappings)."""

    standard: dict
    modified: dict

    def to_dict(self) -> dict:
        return {"standard": dict(self.standard), "modified": dict(self.modified)}


def _propagate(graph: AllocationGraph, config: TrustConfig) -> PropagationResult:
    if config.mode == "modified":
        return compute_modified_trust(graph, config)
    if config.mode == "anchored":
        return compute_anchored_trust(graph, config.anchor_vertex, config)
    return compute_standard_trust(graph, config)


def compute_trust_scores(
    graph: AllocationGraph,
    config: TrustConfig = DEFAULT_CONFIG,
) -> TrustComputation:
    """
    Run the engine selected by config.mode and rank the result.

    Args:
        graph:  Allocation graph {giver: {receiver: weight}}.
        config: TrustConfig (mode, propagation parameters, display scale).

    Returns:
        TrustComputation with success=True. An empty graph yields an empty
        score list, not an error.

    Raises:
        InvalidGraph: malformed graph or unknown anchor.
    """
    start = time.monotonic()
    result = _propagate(graph, config)
    ranked = rank_scores(result.scores, config=config)
    duration_ms = (time.monotonic() - start) * 1000.0

    logger.info(
        "Trust computation (%s): %d vertices, %d iterations, %s, %.1f ms.",
        config.mode,
        len(ranked),
        result.iterations,
        "converged" if result.converged else "max iterations reached",
        duration_ms,
    )
    return TrustComputation(
        success=True,
        mode=config.mode,
        iterations=result.iterations,
        converged=result.converged,
        num_vertices=len(ranked),
        scores=ranked,
        duration_ms=duration_ms,
    )


def run_trust_computation(
    graph: AllocationGraph,
    config: TrustConfig = DEFAULT_CONFIG,
) -> TrustComputation:
    """
    compute_trust_scores(), with contract violations reported in the result.

    A TrustComputationError becomes success=False plus the error message.
    Nothing is retried. Any other exception propagates.
    """
    try:
        return compute_trust_scores(graph, config)
    except TrustComputationError as exc:
        logger.error("Trust computation rejected: %s", exc)
        return TrustComputation(success=False, mode=config.mode, error=str(exc))


def compare_trust_algorithms(
    graph: AllocationGraph,
    config: TrustConfig = DEFAULT_CONFIG,
) -> TrustComparison:
    """
    Score the same graph with the standard and the modified engine.

    Standard scores sum to 1. Modified scores are raw and un-normalized, so
    compare orderings and ratios, not absolute sums.
    """
    standard = compute_standard_trust(graph, config)
    modified = compute_modified_trust(graph, config)
    return TrustComparison(standard=standard.scores, modified=modified.scores)
