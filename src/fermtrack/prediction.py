"""
Fermentation prediction: the query/interpolation layer.

One call of :func:`predict_fermentation` does the whole estimate-and-simulate
cycle for a request:

1. validate the samples and the horizon and build the measurement set;
2. build a single evaluation grid, i.e. a uniform partition of
   ``[0, predict_end_days]`` united with the sample times and the query time;
3. fit the logistic shape curve and evaluate it on the grid;
4. fit the Monod parameters (basic model for a pair, decay model for a triple)
   and simulate once on the grid;
5. interpolate both series at the requested elapsed time.

Each sub-result is either a value or :class:`fermtrack.errors.Unavailable`.
A degenerate logistic fit does not prevent the mechanistic prediction and
vice versa. Nothing is stored between calls.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd

from .abv import AbvFormula, abv_series, get_abv_formula
from .config import FermentationConfig, default_config
from .duration import DurationError, TimestampLike, elapsed_days
from .errors import ErrorKind, InvalidInputError, Unavailable
from .estimator import MonodEstimator, MonodFit
from .logistic import LogisticFitParams, fit_logistic_best_fit, logistic_sg
from .samples import MeasurementSet, measurement_set
from .simulator import SimulationTrace, evaluation_grid, interp_at, simulate_monod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogisticSeries:
    t: np.ndarray
    sg: np.ndarray
    abv: np.ndarray
    params: LogisticFitParams


@dataclass(frozen=True)
class MechanisticSeries:
    t: np.ndarray
    sg: np.ndarray
    biomass: np.ndarray       # yeast concentration [g/L]
    abv: np.ndarray
    fit: MonodFit
    trace: SimulationTrace
    residuals: np.ndarray     # model - measured SG at the sample times

    @property
    def variant(self) -> str:
        return self.fit.variant


@dataclass(frozen=True)
class PointPrediction:
    """
    Both models read at one elapsed time.

    The Monod fields (``sg``, ``abv``, ``biomass_concentration``) are None
    when only the mechanistic model is unavailable; ``logistic_sg`` is None
    when only the logistic fit is.
    """
    t_days: float
    sg: Optional[float]
    abv: Optional[float]
    biomass_concentration: Optional[float]
    logistic_sg: Optional[float] = None


@dataclass(frozen=True)
class FermentationPrediction:
    measurements: Optional[MeasurementSet]
    logistic: Union[LogisticSeries, Unavailable]
    mechanistic: Union[MechanisticSeries, Unavailable]
    point: Union[PointPrediction, Unavailable, None] = None

    def point_at(self, t_days: float) -> Union[PointPrediction, Unavailable]:
        """Point prediction at ``t_days`` from the already computed series."""
        return _point_from_series(self.logistic, self.mechanistic, t_days)

    def to_frame(self) -> pd.DataFrame:
        """
        Both series on their shared time axis as a DataFrame.

        Columns of an unavailable model are left out.
        """
        columns = {}
        if isinstance(self.mechanistic, MechanisticSeries):
            m = self.mechanistic
            columns.update(t_days=m.t, sg_monod=m.sg, abv_monod=m.abv, biomass_g_per_l=m.biomass)
        if isinstance(self.logistic, LogisticSeries):
            lg = self.logistic
            columns.setdefault("t_days", lg.t)
            columns.update(sg_logistic=lg.sg, abv_logistic=lg.abv)
        df = pd.DataFrame(columns)
        if "t_days" in df:
            df = df.set_index("t_days")
        return df


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _require_finite(name: str, value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(v):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return v


def _validate_horizon(measurements: MeasurementSet, predict_end_days) -> float:
    t_end = _require_finite("predict_end_days", predict_end_days)
    if t_end < measurements.t_max:
        raise InvalidInputError(
            f"predict_end_days ({t_end}) must be >= the last sample time ({measurements.t_max})"
        )
    return t_end


def _validate_batch(volume_l, yeast_mass_g):
    v = _require_finite("volume_l", volume_l)
    y = _require_finite("yeast_mass_g", yeast_mass_g)
    if v <= 0:
        raise InvalidInputError(f"volume_l must be > 0, got {v}")
    if y < 0:
        raise InvalidInputError(f"yeast_mass_g must be >= 0, got {y}")
    return v, y


# ---------------------------------------------------------------------------
# Model paths
# ---------------------------------------------------------------------------

def _logistic_path(
    measurements: MeasurementSet,
    t_grid: np.ndarray,
    abv_formula: AbvFormula,
    config: FermentationConfig,
    rng: np.random.Generator,
) -> Union[LogisticSeries, Unavailable]:
    sg_min = config.sg_min
    sg_max = measurements.sg_max
    params = fit_logistic_best_fit(measurements, sg_min, sg_max, config=config.logistic, rng=rng)
    if params is None:
        msg = "Logistic fit is degenerate for these samples"
        logger.warning(msg)
        return Unavailable(ErrorKind.DEGENERATE_FIT, msg)

    sg = np.clip(logistic_sg(t_grid, params.k, params.t0, sg_min, sg_max), sg_min, config.sg_display_max)
    abv = abv_series(measurements.initial.specific_gravity, sg, abv_formula)
    return LogisticSeries(t=t_grid, sg=sg, abv=abv, params=params)


def _mechanistic_path(
    measurements: MeasurementSet,
    t_grid: np.ndarray,
    volume_l: float,
    yeast_mass_g: float,
    abv_formula: AbvFormula,
    config: FermentationConfig,
    rng: np.random.Generator,
) -> MechanisticSeries:
    estimator = MonodEstimator(
        config=config.estimator, constants=config.constants, sg_min=config.sg_min, rng=rng
    )
    fit = estimator.fit(measurements, volume_l, yeast_mass_g)

    trace = simulate_monod(fit.params, t_grid, fit.x0, fit.s0, variant=fit.variant, constants=config.constants)
    sg = trace.sg(volume_l, config.sg_min, config.constants)
    abv = abv_series(measurements.initial.specific_gravity, sg, abv_formula)
    residuals = np.interp(measurements.times, t_grid, sg) - measurements.gravities

    logger.info(
        "Monod %s fit: %s (weighted SSE %.3e)", fit.variant, fit.params.as_dict(), fit.sse
    )
    return MechanisticSeries(
        t=t_grid, sg=sg, biomass=trace.X, abv=abv, fit=fit, trace=trace, residuals=residuals
    )


def _point_from_series(logistic, mechanistic, t_days: float) -> Union[PointPrediction, Unavailable]:
    has_logistic = isinstance(logistic, LogisticSeries)
    has_monod = isinstance(mechanistic, MechanisticSeries)
    if not (has_logistic or has_monod):
        return mechanistic

    logistic_value = interp_at(logistic.t, logistic.sg, t_days) if has_logistic else None
    if not has_monod:
        return PointPrediction(float(t_days), None, None, None, logistic_sg=logistic_value)

    m = mechanistic
    return PointPrediction(
        t_days=float(t_days),
        sg=interp_at(m.t, m.sg, t_days),
        abv=interp_at(m.t, m.abv, t_days),
        biomass_concentration=interp_at(m.t, m.biomass, t_days),
        logistic_sg=logistic_value,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def predict_fermentation(
    samples: Iterable,
    volume_l: float,
    yeast_mass_g: float,
    predict_end_days: float,
    *,
    query_days: Optional[float] = None,
    day0: TimestampLike = None,
    query_time: TimestampLike = None,
    config: FermentationConfig | None = None,
    rng: np.random.Generator | None = None,
) -> FermentationPrediction:
    """
    Estimate the fermentation trajectory and answer one point query.

    Parameters
    ----------
    samples
        Two or three ``(time_days, sg)`` pairs; the first at t = 0.
    volume_l
        Must volume [L], > 0.
    yeast_mass_g
        Pitched yeast mass [g], >= 0.
    predict_end_days
        Horizon of the series [day], >= the last sample time.
    query_days
        Elapsed time of the point query [day].
    day0, query_time
        Alternatively, absolute timestamps (``datetime`` or ISO-8601 strings)
        from which the elapsed query time is derived. Ignored when
        ``query_days`` is given.
    config
        Numerical configuration. If None, :func:`default_config` is used.
    rng
        Random source shared by both fitters. If None, each fitter seeds its
        own generator from its configuration.

    Returns
    -------
    FermentationPrediction
        ``point`` is None when no query was requested. It is
        :class:`Unavailable` when the query is invalid or neither model is
        available; otherwise it carries whatever the available models give.
    """
    if config is None:
        config = default_config()
    abv_formula = get_abv_formula(config.abv_formula, config.constants)

    try:
        measurements = measurement_set(samples)
        t_end = _validate_horizon(measurements, predict_end_days)
    except InvalidInputError as exc:
        logger.warning("Invalid fermentation input: %s", exc)
        unavailable = Unavailable(ErrorKind.INVALID_INPUT, str(exc))
        return FermentationPrediction(None, unavailable, unavailable, unavailable)

    # --- resolve the query time ---
    query: Union[float, Unavailable, None] = None
    if query_days is not None:
        try:
            query = _require_finite("query_days", query_days)
        except InvalidInputError as exc:
            query = Unavailable(ErrorKind.INVALID_INPUT, str(exc))
    elif day0 is not None or query_time is not None:
        elapsed = elapsed_days(day0, query_time)
        if isinstance(elapsed, DurationError):
            query = Unavailable(ErrorKind.DATE_ERROR, elapsed.error)
        else:
            query = elapsed

    q_grid = query if isinstance(query, float) else None
    t_grid = evaluation_grid(t_end, config.n_grid_points, measurements.times, q_grid)

    logistic_rng = rng if rng is not None else np.random.default_rng(config.logistic.seed)
    estimator_rng = rng if rng is not None else np.random.default_rng(config.estimator.seed)

    logistic = _logistic_path(measurements, t_grid, abv_formula, config, logistic_rng)

    try:
        volume, yeast = _validate_batch(volume_l, yeast_mass_g)
    except InvalidInputError as exc:
        logger.warning("Mechanistic model unavailable: %s", exc)
        mechanistic = Unavailable(ErrorKind.INVALID_INPUT, str(exc))
    else:
        mechanistic = _mechanistic_path(
            measurements, t_grid, volume, yeast, abv_formula, config, estimator_rng
        )

    if query is None:
        point = None
    elif isinstance(query, Unavailable):
        point = query
    else:
        point = _point_from_series(logistic, mechanistic, query)

    return FermentationPrediction(measurements, logistic, mechanistic, point)
