"""
Empirical logistic ("shape") fit of the gravity curve.

    SG(t) = sg_min + (sg_max - sg_min) / (1 + exp(-k * (t - t0)))

sg_min is a fixed floor slightly below 1.000 and sg_max the largest measured
gravity. The curve is independent of the Monod model and serves as a simpler
cross-check prediction.

- Two samples: exact solve through the logit transform.
- Three samples: weighted least squares (latest sample weighted x20 by
  default) by a coarse (|k|, t0) grid followed by randomized refinement.
  The sign of k follows the direction of the samples, so a falling gravity
  gives a negative k.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import LogisticFitConfig
from .samples import MeasurementSet, SamplePair

logger = logging.getLogger(__name__)

# Clamp for normalised gravities before taking log-odds
Y_EPS = 1e-6


@dataclass(frozen=True)
class LogisticFitParams:
    k: float    # steepness [1/day]
    t0: float   # inflection time [day]


def logistic_sg(t, k: float, t0: float, sg_min: float, sg_max: float):
    """Evaluate the logistic gravity curve at ``t`` (scalar or array)."""
    t = np.asarray(t, dtype=float)
    with np.errstate(over="ignore"):
        sg = sg_min + (sg_max - sg_min) / (1.0 + np.exp(-k * (t - t0)))
    return float(sg) if sg.ndim == 0 else sg


def fit_logistic_two_points(
    t1: float, sg1: float, t2: float, sg2: float, sg_min: float, sg_max: float
) -> Optional[LogisticFitParams]:
    """
    Closed-form logistic through two points.

    With y = (SG - sg_min) / (sg_max - sg_min), the log-odds ln(y / (1 - y))
    equal k (t - t0), so k follows from the two log-odds and the elapsed time
    and t0 from either point.

    Returns None when sg_max <= sg_min, the points are (almost) simultaneous,
    or k is not finite or (almost) zero.
    """
    denom = sg_max - sg_min
    if not denom > 0:
        return None

    dt = t2 - t1
    if abs(dt) < 1e-9:
        return None

    y1 = min(max((sg1 - sg_min) / denom, Y_EPS), 1.0 - Y_EPS)
    y2 = min(max((sg2 - sg_min) / denom, Y_EPS), 1.0 - Y_EPS)

    ln1 = math.log(y1 / (1.0 - y1))
    ln2 = math.log(y2 / (1.0 - y2))

    k = (ln2 - ln1) / dt
    if not math.isfinite(k) or abs(k) < 1e-9:
        return None

    t0 = t1 - ln1 / k
    return LogisticFitParams(k=k, t0=t0)


def _weights(n: int, recency_weight: float) -> np.ndarray:
    w = np.ones(n, dtype=float)
    w[-1] = recency_weight
    return w


def _weighted_sse(k, t0, t, y, w, sg_min, sg_max) -> np.ndarray:
    """Weighted SSE for arrays of candidates ``k``/``t0`` (same shape)."""
    k = np.asarray(k, dtype=float)[..., None]
    t0 = np.asarray(t0, dtype=float)[..., None]
    pred = logistic_sg(t - t0, k, 0.0, sg_min, sg_max)
    err = np.sum(w * (pred - y) ** 2, axis=-1)
    return np.where(np.isfinite(err), err, np.inf)


def fit_logistic_weighted(
    times,
    gravities,
    sg_min: float,
    sg_max: float,
    config: LogisticFitConfig | None = None,
    rng: np.random.Generator | None = None,
) -> Optional[LogisticFitParams]:
    """
    Heuristic weighted least-squares logistic fit (three or more samples).

    Grid: |k| log-spaced in [k_min, k_max] times t0 linear over the sample
    span widened by one span on each side. Refinement: ``refine_trials``
    random perturbations around the incumbent, evaluated in batches of
    ``refine_batch``; the lowest-error candidate ever seen is kept.

    The result is bounded and repeatable for a fixed seed, not guaranteed
    to be the global optimum.
    """
    if config is None:
        config = LogisticFitConfig()
    if rng is None:
        rng = np.random.default_rng(config.seed)

    t = np.asarray(times, dtype=float)
    y = np.asarray(gravities, dtype=float)
    order = np.argsort(t)
    t, y = t[order], y[order]

    if not (sg_max - sg_min) > 0:
        return None

    # Direction of the trend; a flat series has no inflection to fit
    direction = np.sign(y[-1] - y[0])
    if direction == 0:
        logger.debug("Flat gravity samples, logistic fit unavailable")
        return None

    w = _weights(t.size, config.recency_weight)
    t_min, t_max = float(t[0]), float(t[-1])
    span = max(1e-6, t_max - t_min)
    t0_lo, t0_hi = t_min - span, t_max + span
    k_lo, k_hi = config.k_min, config.k_max

    # --- coarse grid ---
    k_axis = k_lo * (k_hi / k_lo) ** np.linspace(0.0, 1.0, config.k_steps)
    t0_axis = np.linspace(t0_lo, t0_hi, config.t0_steps)
    K, T0 = np.meshgrid(k_axis, t0_axis, indexing="ij")
    err = _weighted_sse(direction * K, T0, t, y, w, sg_min, sg_max)

    i_best = np.unravel_index(np.argmin(err), err.shape)
    best_k, best_t0, best_err = K[i_best], T0[i_best], err[i_best]

    # --- random refinement around the incumbent ---
    remaining = config.refine_trials
    while remaining > 0:
        n = min(config.refine_batch, remaining)
        remaining -= n
        k_try = np.clip(best_k * (0.7 + 0.6 * rng.random(n)), k_lo, k_hi)
        t0_try = np.clip(best_t0 + (rng.random(n) - 0.5) * 0.6 * span, t0_lo, t0_hi)
        e_try = _weighted_sse(direction * k_try, t0_try, t, y, w, sg_min, sg_max)
        j = int(np.argmin(e_try))
        if e_try[j] < best_err:
            best_k, best_t0, best_err = k_try[j], t0_try[j], e_try[j]

    if not np.isfinite(best_err):
        return None

    logger.debug(
        "Logistic fit: k=%.4f t0=%.3f weighted SSE=%.3e",
        direction * best_k, best_t0, best_err,
    )
    return LogisticFitParams(k=float(direction * best_k), t0=float(best_t0))


def fit_logistic_best_fit(
    measurements: MeasurementSet,
    sg_min: float,
    sg_max: Optional[float] = None,
    config: LogisticFitConfig | None = None,
    rng: np.random.Generator | None = None,
) -> Optional[LogisticFitParams]:
    """
    Logistic fit for a measurement set: exact for a pair, weighted least
    squares for a triple. ``sg_max`` defaults to the largest measured SG.
    """
    if sg_max is None:
        sg_max = measurements.sg_max

    if isinstance(measurements, SamplePair):
        a, b = measurements.samples
        return fit_logistic_two_points(
            a.time_days, a.specific_gravity, b.time_days, b.specific_gravity, sg_min, sg_max
        )

    return fit_logistic_weighted(
        measurements.times, measurements.gravities, sg_min, sg_max, config=config, rng=rng
    )
