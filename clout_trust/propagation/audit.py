"""
clout_trust/propagation/audit.py — Self-exclusion audit.

Answers one question for a given graph and algorithm: can any participant move
its OWN score by changing how it allocates trust?

For every vertex, a fixed battery of alternative allocations is substituted
for the vertex's real ones (all to the unit vertex, self-loop only, equal
split, single targets, mixes, seeded random splits). The algorithm is rerun
and the vertex's score is compared. The decoupled engine must report no
changes. The standard engine usually does change scores on any graph with
cycles.
"""

import logging
from dataclasses import dataclass
from typing import Hashable, Iterator, Optional

import numpy as np

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import InvalidParameters
from clout_trust.graph.normalizer import (
    UNIT_VERTEX,
    AllocationGraph,
    graph_vertices,
    validate_graph,
)
from clout_trust.propagation.decoupled import compute_modified_trust
from clout_trust.propagation.standard import compute_standard_trust

logger = logging.getLogger(__name__)

_ALGORITHMS = {
    "standard": compute_standard_trust,
    "modified": compute_modified_trust,
}


@dataclass
class SelfInfluenceFinding:
    """
    One audited reallocation.

    Fields:
        vertex:          Vertex whose allocations were replaced.
        allocations:     The substituted allocation map.
        original_score:  Score of `vertex` on the unmodified graph.
        new_score:       Score of `vertex` after the substitution.
        difference:      new_score - original_score.
        changed:         |difference| > tolerance.
    """

    vertex: Hashable
    allocations: dict
    original_score: float
    new_score: float
    difference: float
    changed: bool


def _random_allocation(targets: list, rng: np.random.Generator) -> dict:
    picks = rng.integers(0, len(targets), size=int(rng.integers(1, len(targets) + 1)))
    chosen = list(dict.fromkeys(targets[i] for i in picks))
    weights = rng.random(len(chosen))
    total = float(weights.sum())
    if total == 0.0:
        return {UNIT_VERTEX: 1.0}
    return {t: float(w / total) for t, w in zip(chosen, weights)}


def candidate_reallocations(
    graph: AllocationGraph,
    vertex: Hashable,
    rng: Optional[np.random.Generator] = None,
    random_variants: int = 5,
) -> Iterator[dict]:
    """
    Yield alternative allocation maps for `vertex`.

    Deterministic cases first, then `random_variants` random splits over the
    other vertices, the vertex itself and the unit vertex.
    """
    others = [v for v in graph_vertices(graph) if v != vertex]

    yield {UNIT_VERTEX: 1.0}
    yield {vertex: 1.0}
    if others:
        yield {v: 1.0 / len(others) for v in others}
        for target in others:
            yield {target: 1.0}
        yield {vertex: 0.5, others[0]: 0.5}
        yield {others[0]: 0.7, UNIT_VERTEX: 0.3}
    if len(others) >= 2:
        yield {others[0]: 0.5, others[1]: 0.3, UNIT_VERTEX: 0.2}
        yield {vertex: 0.25, others[0]: 0.5, others[1]: 0.25}

    if random_variants > 0:
        rng = rng if rng is not None else np.random.default_rng()
        targets = [vertex, *others, UNIT_VERTEX]
        for _ in range(random_variants):
            yield _random_allocation(targets, rng)


def audit_self_exclusion(
    graph: AllocationGraph,
    algorithm: str = "modified",
    config: TrustConfig = DEFAULT_CONFIG,
    tolerance: float = 1e-6,
    seed: Optional[int] = None,
    random_variants: int = 5,
) -> list[SelfInfluenceFinding]:
    """
    Check every vertex against every candidate reallocation.

    Args:
        graph:           Allocation graph to audit.
        algorithm:       'standard' or 'modified'.
        config:          TrustConfig passed to the algorithm.
        tolerance:       Absolute score change regarded as a violation.
        seed:            Seed for the random reallocations.
        random_variants: Random reallocations per vertex.

    Returns:
        One SelfInfluenceFinding per (vertex, reallocation) pair.

    Complexity:
        Reruns the algorithm once per finding. With the modified engine that
        is O(n⁵)-ish work per vertex battery, so keep audited graphs small.
    """
    if algorithm not in _ALGORITHMS:
        raise InvalidParameters(
            f"algorithm must be one of {sorted(_ALGORITHMS)}, got {algorithm!r}"
        )
    validate_graph(graph)
    compute = _ALGORITHMS[algorithm]
    rng = np.random.default_rng(seed)

    baseline = compute(graph, config).scores
    findings: list[SelfInfluenceFinding] = []

    for vertex in graph_vertices(graph):
        for allocations in candidate_reallocations(graph, vertex, rng, random_variants):
            modified_graph = {g: dict(a or {}) for g, a in graph.items()}
            modified_graph[vertex] = dict(allocations)

            new_score = compute(modified_graph, config).scores[vertex]
            difference = new_score - baseline[vertex]
            findings.append(
                SelfInfluenceFinding(
                    vertex=vertex,
                    allocations=dict(allocations),
                    original_score=baseline[vertex],
                    new_score=new_score,
                    difference=difference,
                    changed=abs(difference) > tolerance,
                )
            )

    violations = sum(1 for f in findings if f.changed)
    logger.info(
        "Self-exclusion audit (%s): %d reallocations tested, %d changed the giver's own score.",
        algorithm,
        len(findings),
        violations,
    )
    return findings


def audit_summary(findings: list[SelfInfluenceFinding]) -> dict:
    """
    Summarise audit findings.

    Returns:
        {'total', 'violations', 'passed', 'max_abs_difference',
         'violating_vertices'} where violating_vertices is sorted by str().
    """
    violating = {f.vertex for f in findings if f.changed}
    return {
        "total": len(findings),
        "violations": sum(1 for f in findings if f.changed),
        "passed": not violating,
        "max_abs_difference": max((abs(f.difference) for f in findings), default=0.0),
        "violating_vertices": sorted(violating, key=str),
    }
