"""
clout_trust/config.py — All tunable parameters for the trust engines.

No decay factor, iteration cap or display scale should be hardcoded in an
engine module. Every knob lives here so that recalibrating the network is a
single-file diff.
"""

import math
from dataclasses import dataclass
from typing import Hashable, Optional

from clout_trust.exceptions import InvalidParameters

TRUST_MODES = ("standard", "modified", "anchored")


@dataclass(frozen=True)
class TrustConfig:
    """
    Immutable configuration for the trust and grant engines.

    All fields have documented defaults. Override by constructing a new
    TrustConfig (or dataclasses.replace(DEFAULT_CONFIG, ...)) with the desired
    values. Invalid values raise InvalidParameters at construction time.
    """

    # ── Propagation (standard / modified / anchored) ──────────────────────────
    decay_factor: float = 0.15
    # Weight of the pretrust prior in every update:
    #   t_new = (1 - decay_factor) * C^T t + decay_factor * p
    # 0.15 means 85% of each score comes from the network, 15% from the prior.

    max_iterations: int = 100
    # Iteration cap. Hitting it is not an error: the result is returned with
    # converged=False.

    convergence_threshold: float = 1e-6
    # Converged once max_i |t_new[i] - t[i]| drops below this value.

    mode: str = "standard"
    # Engine used by clout_trust.engine.compute_trust_scores():
    # 'standard' | 'modified' | 'anchored'.

    anchor_vertex: Optional[Hashable] = None
    # Administrator vertex for mode='anchored'. Holds all the pretrust and is
    # pinned at 1.0 every iteration.

    # ── Display ───────────────────────────────────────────────────────────────
    display_scale: int = 100
    # Display score = round(raw_score * display_scale), clamped to
    # [0, display_scale]. 100 matches the 0–100 scale shown in the UI.

    # ── Input conversion ──────────────────────────────────────────────────────
    points_scale: float = 100.0
    # Relationship allocations are entered as trust points out of 100.
    # Builders divide by this value when points=True.

    # ── Grant Allocation ──────────────────────────────────────────────────────
    grant_decay_factor: float = 0.15
    # Grant rounds weight the propagation the other way round:
    #   t_new = (1 - grant_decay_factor) / n + grant_decay_factor * C^T t

    grant_max_iterations: int = 100

    grant_convergence_threshold: float = 1e-6

    def __post_init__(self):
        _check_decay(self.decay_factor, "decay_factor")
        _check_decay(self.grant_decay_factor, "grant_decay_factor")
        _check_iterations(self.max_iterations, "max_iterations")
        _check_iterations(self.grant_max_iterations, "grant_max_iterations")
        _check_threshold(self.convergence_threshold, "convergence_threshold")
        _check_threshold(self.grant_convergence_threshold, "grant_convergence_threshold")

        if self.mode not in TRUST_MODES:
            raise InvalidParameters(
                f"mode must be one of {TRUST_MODES}, got {self.mode!r}"
            )
        if self.mode == "anchored" and self.anchor_vertex is None:
            raise InvalidParameters("mode='anchored' requires anchor_vertex")
        if not isinstance(self.display_scale, int) or self.display_scale <= 0:
            raise InvalidParameters(
                f"display_scale must be a positive integer, got {self.display_scale!r}"
            )
        if not _is_real(self.points_scale) or self.points_scale <= 0:
            raise InvalidParameters(
                f"points_scale must be a positive number, got {self.points_scale!r}"
            )


def _is_real(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _check_decay(value, name: str) -> None:
    if not _is_real(value) or not 0.0 <= value <= 1.0:
        raise InvalidParameters(f"{name} must be in [0, 1], got {value!r}")


def _check_iterations(value, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise InvalidParameters(f"{name} must be an integer >= 1, got {value!r}")


def _check_threshold(value, name: str) -> None:
    if not _is_real(value) or value <= 0:
        raise InvalidParameters(f"{name} must be > 0, got {value!r}")


# Singleton default. Import this instead of constructing a new one.
DEFAULT_CONFIG = TrustConfig()
