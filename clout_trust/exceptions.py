"""
clout_trust/exceptions.py — Error taxonomy for the trust computation core.

Only caller contract violations are errors. An empty graph, a run that hits the
iteration cap, and zero-sum rows or vectors are all valid (possibly degraded)
results and are never raised.
"""


class TrustComputationError(Exception):
    """Base class for every error raised by clout_trust."""


class InvalidGraph(TrustComputationError, ValueError):
    """
    The allocation graph violates the input contract.

    Raised for non-mapping input, non-numeric / negative / non-finite weights,
    and for an anchor vertex that is not part of the graph.
    """


class InvalidParameters(TrustComputationError, ValueError):
    """A tuning parameter or funding amount is outside its valid range."""
