"""
clout_trust.graph — Allocation graph construction and normalization.

Modules:
    normalizer — Validation and the row-stochastic local trust matrix C.
    builder    — Build allocation graphs from records, CSV, JSON or networkx.

An allocation graph is a plain mapping {giver: {receiver: weight}} whose keys
define the vertex set.
"""
