"""
clout_trust/ranking.py — Rank / Display Mapper.

Turns a raw score vector into what the UI shows: a rank (1 = most trusted)
and a bounded display score.

Tie policy: scores are sorted descending, and equal scores are ordered by
str(vertex id) ascending. Ranks are positional (1..n, no gaps), so tied
vertices always receive adjacent ranks in the same order on every run.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Hashable, Mapping, Optional

import pandas as pd

from clout_trust.config import DEFAULT_CONFIG, TrustConfig

logger = logging.getLogger(__name__)

DisplayFn = Callable[[float], int]


@dataclass(frozen=True)
class RankedScore:
    """
    A vertex's score as presented to callers.

    Fields:
        vertex:        Vertex id.
        raw_score:     Fixed-point score from the propagation engine.
        display_score: Bounded presentation value (0–display_scale by default).
        rank:          1-based position in the descending order.
    """

    vertex: Hashable
    raw_score: float
    display_score: int
    rank: int

    def to_dict(self) -> dict:
        return {
            "id": self.vertex,
            "rawScore": self.raw_score,
            "displayScore": self.display_score,
            "rank": self.rank,
        }


def default_display_score(raw_score: float, scale: int = 100) -> int:
    """
    Map a raw score to an integer in [0, scale].

    Rounds half up (2.5 → 3), matching how the scores were always shown, and
    clamps anything outside [0, 1] so the display range stays bounded.
    """
    value = math.floor(raw_score * scale + 0.5)
    return int(min(max(value, 0), scale))


def _rank_key(item: tuple) -> tuple:
    vertex, score = item
    return (-score, str(vertex))


def rank_scores(
    scores: Mapping[Hashable, float],
    display_fn: Optional[DisplayFn] = None,
    config: TrustConfig = DEFAULT_CONFIG,
) -> list[RankedScore]:
    """
    Sort scores descending and assign ranks and display scores.

    Args:
        scores:     Dict vertex → raw score.
        display_fn: Pure function raw score → display value. Defaults to
                    default_display_score() with config.display_scale.
        config:     TrustConfig. Uses config.display_scale.

    Returns:
        List of RankedScore in rank order (rank 1 first).
    """
    if display_fn is None:
        scale = config.display_scale

        def display_fn(raw: float) -> int:
            return default_display_score(raw, scale)

    ordered = sorted(scores.items(), key=_rank_key)
    logger.debug("Ranking %d scores.", len(ordered))
    return [
        RankedScore(
            vertex=vertex,
            raw_score=float(score),
            display_score=display_fn(float(score)),
            rank=position + 1,
        )
        for position, (vertex, score) in enumerate(ordered)
    ]


def compute_percentiles(
    scores: Mapping[Hashable, float],
    exclude: Optional[Hashable] = None,
) -> dict:
    """
    Percentile rank of every vertex in [0, 100].

    Scores are sorted ascending (ties by str(vertex id)). Position i of m
    vertices gets round(i / (m - 1) * 100), and a lone vertex gets 50. The
    `exclude`d vertex (the anchor) is left out of the ordering and reported
    at 100.
    """
    ranked = sorted(
        ((v, s) for v, s in scores.items() if v != exclude),
        key=lambda item: (item[1], str(item[0])),
    )
    m = len(ranked)
    percentiles: dict = {}
    for i, (vertex, _) in enumerate(ranked):
        percentiles[vertex] = (
            int(math.floor(i / (m - 1) * 100 + 0.5)) if m > 1 else 50
        )
    if exclude is not None and exclude in scores:
        percentiles[exclude] = 100
    return percentiles


def ranked_scores_frame(ranked: list[RankedScore]) -> pd.DataFrame:
    """Tabular view of ranked scores (columns: id, rawScore, displayScore, rank)."""
    return pd.DataFrame(
        [r.to_dict() for r in ranked],
        columns=["id", "rawScore", "displayScore", "rank"],
    )
