"""
clout_trust.propagation — Fixed-point trust propagation engines.

Modules:
    standard  — Coupled power iteration against a uniform pretrust vector.
    decoupled — Per-vertex computation excluding the vertex's own outflow.
    anchored  — Power iteration pinned to a single administrator anchor.
    audit     — Checks whether a vertex can move its own score by reallocating.

All engines take the allocation graph and a TrustConfig as explicit arguments
and return a fresh PropagationResult. Nothing is cached between calls.
"""
