"""
clout_trust/grants/utility.py — Utility-based capital allocation.

An alternative to proportional-with-floor funding. Each participant states a
funding window [min, max] and is assumed to value money linearly inside it:

    u(x) = 0                        x < min
         = (x - min) / (max - min)  min <= x <= max
         = 1                        x > max

The goal is a large trust-weighted utility Σ t_i · u_i(x_i) within the capital
budget. Three strategies are provided:

    merit_rank              — Greedy: highest trust first, each filled from
                              min towards max until the capital runs out.
    iterative_proportional  — Everyone starts at min; the remainder is shared
                              by trust among those below max, capped excess
                              returns to the pool, repeat.
    direct_merit            — Everyone at min; remainder split by trust,
                              clipped to max; one redistribution of the
                              clipped excess. (Default.)

Trust scores normally come from the decoupled engine, so an applicant cannot
improve its own share by how it allocates trust.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Mapping

import pandas as pd

from clout_trust.config import DEFAULT_CONFIG, TrustConfig
from clout_trust.exceptions import InvalidParameters
from clout_trust.graph.normalizer import AllocationGraph
from clout_trust.propagation.decoupled import compute_modified_trust

logger = logging.getLogger(__name__)

# Capital below this is treated as fully distributed.
_CAPITAL_EPSILON = 0.01


@dataclass(frozen=True)
class PiecewiseLinearUtility:
    """
    Linear utility between a minimum useful and a maximum useful amount.

    A window with minimum >= maximum is a point mass: utility 1 within one
    currency unit of `minimum`, 0 otherwise (amounts above are already 1).
    """

    minimum: float
    maximum: float

    def evaluate(self, amount: float) -> float:
        if amount < self.minimum:
            return 0.0
        if amount > self.maximum:
            return 1.0
        if self.minimum >= self.maximum:
            return 1.0 if abs(amount - self.minimum) < 1 else 0.0
        return (amount - self.minimum) / (self.maximum - self.minimum)

    def marginal_utility(self) -> float:
        """Slope inside the window (0 for a point mass)."""
        if self.minimum >= self.maximum:
            return 0.0
        return 1.0 / (self.maximum - self.minimum)


def _check_inputs(trust_scores, utilities, total_capital) -> None:
    missing = [u for u in trust_scores if u not in utilities]
    if missing:
        raise InvalidParameters(f"no utility defined for: {missing}")
    if total_capital < 0:
        raise InvalidParameters(f"total_capital must be >= 0, got {total_capital!r}")


def allocate_merit_rank(
    trust_scores: Mapping[Hashable, float],
    utilities: Mapping[Hashable, PiecewiseLinearUtility],
    total_capital: float,
) -> dict:
    """
    Greedy merit rank: highest trust takes first.

    Each participant in descending trust order receives
    min(max, max(min, remaining)), so a participant reached at all is
    guaranteed its minimum even if that overdraws the last of the capital.
    Participants reached after the capital is gone get 0.
    """
    _check_inputs(trust_scores, utilities, total_capital)
    ranked = sorted(trust_scores, key=lambda u: trust_scores[u], reverse=True)

    allocations = {u: 0.0 for u in trust_scores}
    remaining = float(total_capital)
    for user in ranked:
        if remaining <= 0:
            break
        window = utilities[user]
        amount = min(window.maximum, max(window.minimum, remaining))
        allocations[user] = float(amount)
        remaining -= amount
    return allocations


def allocate_iterative_proportional(
    trust_scores: Mapping[Hashable, float],
    utilities: Mapping[Hashable, PiecewiseLinearUtility],
    total_capital: float,
) -> dict:
    """
    Minimums first, then rounds of trust-proportional top-ups.

    Each round shares the remaining capital by trust among participants
    still below their maximum. Whatever a capped participant could not absorb
    stays in the pool for the next round. Stops when the capital is spent,
    nobody has room, the remaining trust is zero, or a round makes no
    progress.
    """
    _check_inputs(trust_scores, utilities, total_capital)
    allocations = {u: float(utilities[u].minimum) for u in trust_scores}
    remaining = float(total_capital) - sum(allocations.values())

    while remaining > _CAPITAL_EPSILON:
        with_room = [u for u in trust_scores if allocations[u] < utilities[u].maximum]
        if not with_room:
            break
        room_trust = sum(trust_scores[u] for u in with_room)
        if room_trust <= 0:
            break

        distributed = 0.0
        for user in with_room:
            share = trust_scores[user] / room_trust * remaining
            amount = min(share, utilities[user].maximum - allocations[user])
            allocations[user] += amount
            distributed += amount

        remaining -= distributed
        if distributed <= _CAPITAL_EPSILON:
            break

    return allocations


def allocate_direct_merit(
    trust_scores: Mapping[Hashable, float],
    utilities: Mapping[Hashable, PiecewiseLinearUtility],
    total_capital: float,
) -> dict:
    """
    Minimums, then a single trust-weighted split of the remainder.

    deserved_i = min_i + (t_i / Σt) · (capital - Σmin), clipped to max_i.
    The clipped excess is redistributed once, by trust, among participants
    still below their maximum (again clipped).
    """
    _check_inputs(trust_scores, utilities, total_capital)
    users = list(trust_scores)
    allocations = {u: float(utilities[u].minimum) for u in users}
    remaining_after_min = float(total_capital) - sum(allocations.values())
    total_trust = sum(trust_scores[u] for u in users)
    if total_trust <= 0:
        return allocations

    excess = 0.0
    for user in users:
        window = utilities[user]
        deserved = window.minimum + trust_scores[user] / total_trust * remaining_after_min
        allocations[user] = min(window.maximum, deserved)
        if deserved > window.maximum:
            excess += deserved - window.maximum

    if excess > _CAPITAL_EPSILON:
        with_room = [u for u in users if allocations[u] < utilities[u].maximum]
        room_trust = sum(trust_scores[u] for u in with_room)
        if room_trust > 0:
            for user in with_room:
                share = trust_scores[user] / room_trust * excess
                allocations[user] = min(utilities[user].maximum, allocations[user] + share)

    return allocations


ALLOCATION_STRATEGIES: dict[str, Callable[..., dict]] = {
    "merit_rank": allocate_merit_rank,
    "iterative_proportional": allocate_iterative_proportional,
    "direct_merit": allocate_direct_merit,
}


def weighted_utility(
    trust_scores: Mapping[Hashable, float],
    utilities: Mapping[Hashable, PiecewiseLinearUtility],
    allocations: Mapping[Hashable, float],
) -> float:
    """Σ t_i · u_i(x_i) over every participant in trust_scores."""
    return float(
        sum(
            trust_scores[u] * utilities[u].evaluate(allocations.get(u, 0.0))
            for u in trust_scores
        )
    )


def compare_allocation_strategies(
    trust_scores: Mapping[Hashable, float],
    utilities: Mapping[Hashable, PiecewiseLinearUtility],
    total_capital: float,
) -> pd.DataFrame:
    """
    Run every strategy on the same inputs.

    Returns:
        DataFrame with one row per strategy, sorted by weighted_utility
        descending. Columns: strategy, weighted_utility, total_allocated,
        capacity_utilization (percent of total_capital), allocations (dict).
    """
    rows = []
    for name, strategy in ALLOCATION_STRATEGIES.items():
        allocations = strategy(trust_scores, utilities, total_capital)
        total_allocated = float(sum(allocations.values()))
        rows.append(
            {
                "strategy": name,
                "weighted_utility": weighted_utility(trust_scores, utilities, allocations),
                "total_allocated": total_allocated,
                "capacity_utilization": (
                    total_allocated / total_capital * 100.0 if total_capital > 0 else 0.0
                ),
                "allocations": allocations,
            }
        )

    df = pd.DataFrame(rows)
    return df.sort_values("weighted_utility", ascending=False, kind="stable").reset_index(
        drop=True
    )


def compute_utility_allocations(
    graph: AllocationGraph,
    utilities: Mapping[Hashable, PiecewiseLinearUtility],
    total_capital: float,
    strategy: str = "direct_merit",
    config: TrustConfig = DEFAULT_CONFIG,
) -> dict:
    """
    Decoupled trust scores → capital allocation with the named strategy.

    Args:
        graph:         Participant trust graph.
        utilities:     Funding window per participant.
        total_capital: Budget.
        strategy:      Key of ALLOCATION_STRATEGIES.
        config:        TrustConfig for the decoupled engine.

    Returns:
        Dict participant → allocated capital.
    """
    if strategy not in ALLOCATION_STRATEGIES:
        raise InvalidParameters(
            f"strategy must be one of {sorted(ALLOCATION_STRATEGIES)}, got {strategy!r}"
        )
    trust_scores = compute_modified_trust(graph, config).scores
    allocations = ALLOCATION_STRATEGIES[strategy](trust_scores, utilities, total_capital)
    logger.info(
        "Utility allocation (%s): %.2f of %.2f allocated across %d participants.",
        strategy,
        sum(allocations.values()),
        float(total_capital),
        len(allocations),
    )
    return allocations
