"""
Monod parameter estimation from sparse gravity samples.

The objective is the weighted sum of squared SG residuals

    SSE = sum_i w_i (SG_model(t_i) - SG_i)^2,   w_last = recency_weight,

where SG_model(t_i) is obtained by linear interpolation of the simulated
sugar trace at the exact sample time, converted with
:func:`fermtrack.conversions.sugar_to_sg` and floored at ``sg_min``.

The search is a heuristic, not a general optimiser:

1. a coarse grid over (mu_max, Ks) for a sample pair, or over
   (mu_max, Ks, kd) for a triple;
2. randomized refinement around the incumbent, each perturbation a fraction
   of that parameter's bound range; the fraction is halved after a round
   without improvement.

Candidates outside the bounds score infinity. Every round is integrated as
one vectorised batch through :func:`fermtrack.simulator.simulate_monod`;
the coarse grid is split into chunks of ``grid_batch`` candidates so memory
stays bounded for fine grids and long sample spans.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .config import MonodEstimatorConfig, ParameterBounds
from .constants import DEFAULT_CONSTANTS, PhysicalConstants
from .conversions import sugar_to_sg
from .model import MonodParameters, initial_state
from .samples import MeasurementSet
from .simulator import interp_columns, simulate_monod, stepped_grid

logger = logging.getLogger(__name__)

# Smallest perturbation fraction used by the refinement
MIN_REFINE_SCALE = 1e-4


@dataclass(frozen=True)
class MonodFit:
    params: MonodParameters
    sse: float
    variant: str
    x0: float
    s0: float


class MonodEstimator:
    """
    Grid-plus-refinement estimator of the Monod parameters.

    Parameters
    ----------
    config
        Search configuration; ``config.seed`` seeds the random source when no
        ``rng`` is given.
    constants
        Physical constants used by the sugar/SG conversions.
    sg_min
        Floor applied to simulated gravities.
    rng
        Optional :class:`numpy.random.Generator`.
    """

    def __init__(
        self,
        config: MonodEstimatorConfig | None = None,
        constants: PhysicalConstants | None = None,
        sg_min: float = 0.990,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or MonodEstimatorConfig()
        self.constants = constants or DEFAULT_CONSTANTS
        self.sg_min = sg_min
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

    # ------------------------------------------------------------------
    # Parameter space
    # ------------------------------------------------------------------
    @property
    def bounds(self) -> ParameterBounds:
        return self.config.bounds

    def _box(self, variant: str) -> Tuple[np.ndarray, np.ndarray]:
        b = self.bounds
        names = ["mu_max", "ks"] + (["kd"] if variant == "decay" else [])
        lo = np.array([getattr(b, n)[0] for n in names], dtype=float)
        hi = np.array([getattr(b, n)[1] for n in names], dtype=float)
        return lo, hi

    @staticmethod
    def _as_params(P: np.ndarray, variant: str) -> MonodParameters:
        """Columns of ``P`` (shape (n, d)) as a batched MonodParameters."""
        kd = P[:, 2] if variant == "decay" else None
        return MonodParameters(mu_max=P[:, 0], ks=P[:, 1], kd=kd)

    def grid_candidates(self, variant: str) -> np.ndarray:
        """Full factorial grid over the bound box, shape (n, d)."""
        lo, hi = self._box(variant)
        axes = [np.linspace(l, h, self.config.grid_points) for l, h in zip(lo, hi)]
        mesh = np.meshgrid(*axes, indexing="ij")
        return np.column_stack([m.ravel() for m in mesh])

    # ------------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------------
    def objective(
        self,
        P: np.ndarray,
        measurements: MeasurementSet,
        volume_l: float,
        x0: float,
        s0: float,
        t_grid: np.ndarray,
        variant: str,
    ) -> np.ndarray:
        """
        Weighted SSE of every candidate row in ``P``.

        Returns an array of shape (n,); out-of-bounds rows are ``inf``.
        """
        P = np.atleast_2d(np.asarray(P, dtype=float))
        lo, hi = self._box(variant)
        inside = np.all((P >= lo) & (P <= hi), axis=1)

        err = np.full(P.shape[0], np.inf)
        if not inside.any():
            return err

        P_in = P[inside]
        trace = simulate_monod(
            self._as_params(P_in, variant), t_grid, x0, s0,
            variant=variant, constants=self.constants,
        )

        times = measurements.times
        sg_meas = measurements.gravities
        w = np.ones(times.size, dtype=float)
        w[-1] = self.config.recency_weight

        S_at = interp_columns(t_grid, trace.S, times)            # (n_samples, n)
        sg_pred = np.maximum(sugar_to_sg(S_at, volume_l, self.constants), self.sg_min)
        sse = np.sum(w[:, None] * (sg_pred - sg_meas[:, None]) ** 2, axis=0)

        err[inside] = np.where(np.isfinite(sse), sse, np.inf)
        return err

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def fit(self, measurements: MeasurementSet, volume_l: float, yeast_mass_g: float) -> MonodFit:
        """
        Fit the Monod parameters to ``measurements``.

        The model variant is the one carried by the measurement set
        (pair -> basic, triple -> decay).
        """
        variant = measurements.variant
        x0, s0 = initial_state(yeast_mass_g, volume_l, measurements.initial.specific_gravity, self.constants)
        t_grid = np.union1d(stepped_grid(measurements.t_max, self.config.fit_dt_days), measurements.times)

        def score(P):
            return self.objective(P, measurements, volume_l, x0, s0, t_grid, variant)

        # --- coarse grid, scored in chunks of grid_batch candidates ---
        P_grid = self.grid_candidates(variant)
        best, best_err = P_grid[0].copy(), np.inf
        for start in range(0, len(P_grid), self.config.grid_batch):
            chunk = P_grid[start:start + self.config.grid_batch]
            err = score(chunk)
            i = int(np.argmin(err))
            if err[i] < best_err:
                best, best_err = chunk[i].copy(), float(err[i])
        logger.debug("Grid search (%s, %d candidates): SSE=%.3e at %s", variant, len(P_grid), best_err, best)

        # --- randomized refinement ---
        lo, hi = self._box(variant)
        scale = self.config.refine_scale
        remaining = self.config.refine_trials
        while remaining > 0:
            n = min(self.config.refine_batch, remaining)
            remaining -= n
            step = (self.rng.random((n, lo.size)) - 0.5) * 2.0 * scale * (hi - lo)
            P_try = np.clip(best + step, lo, hi)
            e_try = score(P_try)
            j = int(np.argmin(e_try))
            if e_try[j] < best_err:
                best, best_err = P_try[j].copy(), float(e_try[j])
            else:
                scale = max(scale * 0.5, MIN_REFINE_SCALE)

        params = MonodParameters(
            mu_max=float(best[0]),
            ks=float(best[1]),
            kd=float(best[2]) if variant == "decay" else None,
        )
        logger.debug("Monod fit (%s): %s SSE=%.3e", variant, params.as_dict(), best_err)
        return MonodFit(params=params, sse=best_err, variant=variant, x0=x0, s0=s0)


def fit_monod(
    measurements: MeasurementSet,
    volume_l: float,
    yeast_mass_g: float,
    config: MonodEstimatorConfig | None = None,
    constants: PhysicalConstants | None = None,
    sg_min: float = 0.990,
    rng: np.random.Generator | None = None,
) -> MonodFit:
    """Functional shortcut for ``MonodEstimator(...).fit(...)``."""
    estimator = MonodEstimator(config=config, constants=constants, sg_min=sg_min, rng=rng)
    return estimator.fit(measurements, volume_l, yeast_mass_g)
