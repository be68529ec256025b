"""
Configuration for the fermentation estimator.

Everything that tunes the numerical behaviour of a prediction lives here:
parameter bounds, grid resolutions, trial counts, the recency weight applied
to the latest sample and the name of the ABV formula. All configuration
objects are frozen dataclasses; use :func:`dataclasses.replace` (or the small
``with_*`` helpers) to derive a variant.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .abv import ABV_FORMULAS
from .constants import DEFAULT_CONSTANTS, PhysicalConstants


@dataclass(frozen=True)
class ParameterBounds:
    """Physical plausibility box for the Monod parameters (inclusive)."""
    mu_max: Tuple[float, float] = (0.001, 5.0)   # [1/day]
    ks: Tuple[float, float] = (0.01, 50.0)       # [g]
    kd: Tuple[float, float] = (0.0, 5.0)         # [1/day]

    def __post_init__(self):
        for name in ("mu_max", "ks", "kd"):
            lo, hi = getattr(self, name)
            if not lo < hi:
                raise ValueError(f"Bounds for {name} must satisfy lo < hi, got ({lo}, {hi})")


@dataclass(frozen=True)
class MonodEstimatorConfig:
    # --- Coarse grid ---
    grid_points: int = 16          # points per parameter axis
    grid_batch: int = 1024         # grid candidates integrated per batch

    # --- Randomized refinement around the best grid point ---
    refine_trials: int = 300
    refine_batch: int = 25         # candidates evaluated per refinement round
    refine_scale: float = 0.1      # perturbation as a fraction of each bound range

    # --- Objective ---
    fit_dt_days: float = 0.05      # step of the fitting time grid [day]
    recency_weight: float = 20.0   # weight of the latest sample's squared residual

    seed: Optional[int] = None
    bounds: ParameterBounds = field(default_factory=ParameterBounds)

    def __post_init__(self):
        if self.grid_points < 2:
            raise ValueError(f"grid_points must be >= 2, got {self.grid_points}")
        if self.grid_batch < 1:
            raise ValueError(f"grid_batch must be >= 1, got {self.grid_batch}")
        if self.refine_trials < 0 or self.refine_batch < 1:
            raise ValueError("refine_trials must be >= 0 and refine_batch >= 1")
        if self.fit_dt_days <= 0:
            raise ValueError(f"fit_dt_days must be > 0, got {self.fit_dt_days}")


@dataclass(frozen=True)
class LogisticFitConfig:
    k_min: float = 0.001
    k_max: float = 5.0
    k_steps: int = 60              # log-spaced steepness samples
    t0_steps: int = 80             # linear inflection-time samples
    refine_trials: int = 400
    refine_batch: int = 20
    recency_weight: float = 20.0
    seed: Optional[int] = None

    def __post_init__(self):
        if not 0.0 < self.k_min < self.k_max:
            raise ValueError(f"Need 0 < k_min < k_max, got ({self.k_min}, {self.k_max})")
        if self.k_steps < 2 or self.t0_steps < 2:
            raise ValueError("k_steps and t0_steps must be >= 2")


@dataclass(frozen=True)
class FermentationConfig:
    sg_min: float = 0.990          # lower SG asymptote / floor
    sg_display_max: float = 1.5    # upper clip of the logistic display series
    n_grid_points: int = 400       # uniform points of the evaluation grid
    abv_formula: str = "hmrc"

    estimator: MonodEstimatorConfig = field(default_factory=MonodEstimatorConfig)
    logistic: LogisticFitConfig = field(default_factory=LogisticFitConfig)
    constants: PhysicalConstants = DEFAULT_CONSTANTS

    def __post_init__(self):
        if not isinstance(self.abv_formula, str) or self.abv_formula.strip().lower() not in ABV_FORMULAS:
            raise ValueError(
                f"Unknown ABV formula {self.abv_formula!r}. Available: {sorted(ABV_FORMULAS)}"
            )
        if self.n_grid_points < 2:
            raise ValueError(f"n_grid_points must be >= 2, got {self.n_grid_points}")

    def with_seed(self, seed: Optional[int]) -> "FermentationConfig":
        """Return a copy whose estimator and logistic fitter share ``seed``."""
        return replace(
            self,
            estimator=replace(self.estimator, seed=seed),
            logistic=replace(self.logistic, seed=seed),
        )


def default_config() -> FermentationConfig:
    return FermentationConfig()
