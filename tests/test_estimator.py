from __future__ import annotations

import numpy as np
import pytest

from fermtrack.config import MonodEstimatorConfig, ParameterBounds
from fermtrack.conversions import sugar_to_sg
from fermtrack.estimator import MonodEstimator, fit_monod
from fermtrack.model import initial_state
from fermtrack.samples import measurement_set
from fermtrack.simulator import interp_at, simulate_monod, uniform_grid

VOLUME = 20.0
YEAST = 5.0


def _model_sg_at(fit, t):
    grid = np.union1d(uniform_grid(t, 200), [t])
    trace = simulate_monod(fit.params, grid, fit.x0, fit.s0)
    return interp_at(grid, trace.sg(VOLUME, 0.990), t)


def _within(value, bounds) -> bool:
    lo, hi = bounds
    return lo <= value <= hi


def test_pair_fit_basic_variant(pair_samples) -> None:
    ms = measurement_set(pair_samples)
    fit = fit_monod(ms, VOLUME, YEAST, config=MonodEstimatorConfig(seed=1234))
    b = ParameterBounds()

    assert fit.variant == "basic"
    assert fit.params.kd is None
    assert _within(fit.params.mu_max, b.mu_max)
    assert _within(fit.params.ks, b.ks)
    assert np.isfinite(fit.sse)
    assert abs(_model_sg_at(fit, 3.0) - 1.060) < 0.005


def test_triple_fit_decay_variant(triple_samples) -> None:
    ms = measurement_set(triple_samples)
    fit = fit_monod(ms, VOLUME, YEAST, config=MonodEstimatorConfig(seed=1234))
    b = ParameterBounds()

    assert fit.variant == "decay"
    assert fit.params.kd is not None
    assert _within(fit.params.mu_max, b.mu_max)
    assert _within(fit.params.ks, b.ks)
    assert _within(fit.params.kd, b.kd)
    assert set(fit.params.as_dict()) == {"mu_max", "ks", "kd"}


def test_initial_state_matches_batch(pair_samples) -> None:
    fit = fit_monod(measurement_set(pair_samples), VOLUME, YEAST, config=MonodEstimatorConfig(seed=0))
    assert (fit.x0, fit.s0) == initial_state(YEAST, VOLUME, 1.100)
    assert sugar_to_sg(fit.s0, VOLUME) == pytest.approx(1.100)


def test_fit_is_repeatable_for_a_seed(triple_samples) -> None:
    ms = measurement_set(triple_samples)
    cfg = MonodEstimatorConfig(seed=42)
    a = MonodEstimator(config=cfg).fit(ms, VOLUME, YEAST)
    b = MonodEstimator(config=cfg).fit(ms, VOLUME, YEAST)
    assert a.params == b.params
    assert a.sse == b.sse


def test_custom_bounds_are_respected(pair_samples) -> None:
    bounds = ParameterBounds(mu_max=(0.1, 0.5), ks=(1.0, 2.0))
    cfg = MonodEstimatorConfig(seed=7, bounds=bounds, grid_points=4, refine_trials=50)
    fit = fit_monod(measurement_set(pair_samples), VOLUME, YEAST, config=cfg)
    assert 0.1 <= fit.params.mu_max <= 0.5
    assert 1.0 <= fit.params.ks <= 2.0


def test_objective_scores_out_of_bounds_as_inf(pair_samples) -> None:
    ms = measurement_set(pair_samples)
    est = MonodEstimator(config=MonodEstimatorConfig(seed=0))
    x0, s0 = initial_state(YEAST, VOLUME, 1.100)
    grid = uniform_grid(3.0, 61)

    P = np.array([[6.0, 1.0], [1.0, 1.0], [1.0, 0.0], [5.0, 50.0]])
    err = est.objective(P, ms, VOLUME, x0, s0, grid, "basic")
    assert np.isinf(err[0])
    assert np.isfinite(err[1])
    assert np.isinf(err[2])
    assert np.isfinite(err[3])


def test_grid_candidates_shape() -> None:
    est = MonodEstimator(config=MonodEstimatorConfig(grid_points=5))
    assert est.grid_candidates("basic").shape == (25, 2)
    assert est.grid_candidates("decay").shape == (125, 3)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"grid_points": 1},
        {"refine_batch": 0},
        {"refine_trials": -1},
        {"fit_dt_days": 0.0},
    ],
)
def test_invalid_estimator_config(kwargs) -> None:
    with pytest.raises(ValueError):
        MonodEstimatorConfig(**kwargs)


def test_invalid_bounds() -> None:
    with pytest.raises(ValueError):
        ParameterBounds(ks=(5.0, 1.0))


def test_latest_sample_dominates_monod_fit() -> None:
    ms = measurement_set([(0.0, 1.100), (3.0, 1.050), (6.0, 1.045)])
    weighted = fit_monod(ms, VOLUME, YEAST, config=MonodEstimatorConfig(seed=1))
    plain = fit_monod(ms, VOLUME, YEAST, config=MonodEstimatorConfig(seed=1, recency_weight=1.0))

    r_weighted = abs(_model_sg_at(weighted, 6.0) - 1.045)
    r_plain = abs(_model_sg_at(plain, 6.0) - 1.045)
    assert r_weighted < 0.005
    assert r_weighted < 0.5 * r_plain


def test_chunked_grid_matches_single_batch(triple_samples) -> None:
    ms = measurement_set(triple_samples)
    one_batch = fit_monod(ms, VOLUME, YEAST, config=MonodEstimatorConfig(seed=3, grid_points=6, grid_batch=10_000))
    chunked = fit_monod(ms, VOLUME, YEAST, config=MonodEstimatorConfig(seed=3, grid_points=6, grid_batch=7))
    assert chunked.params == one_batch.params
    assert chunked.sse == one_batch.sse


def test_grid_is_scored_in_bounded_chunks(triple_samples, monkeypatch) -> None:
    est = MonodEstimator(config=MonodEstimatorConfig(seed=0, grid_points=6, grid_batch=50, refine_trials=0))
    sizes = []
    original = est.objective

    def spy(P, *args, **kwargs):
        sizes.append(len(P))
        return original(P, *args, **kwargs)

    monkeypatch.setattr(est, "objective", spy)
    est.fit(measurement_set(triple_samples), VOLUME, YEAST)
    assert sum(sizes) == 6 ** 3
    assert max(sizes) <= 50
