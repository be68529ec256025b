from __future__ import annotations

import numpy as np
import pytest

from fermtrack.config import LogisticFitConfig
from fermtrack.logistic import (
    fit_logistic_best_fit,
    fit_logistic_two_points,
    fit_logistic_weighted,
    logistic_sg,
)
from fermtrack.samples import measurement_set


def test_two_point_fit_passes_through_samples() -> None:
    p = fit_logistic_two_points(0.0, 1.090, 5.0, 1.050, sg_min=1.0, sg_max=1.090)
    assert p is not None
    assert p.k < 0
    assert logistic_sg(0.0, p.k, p.t0, 1.0, 1.090) == pytest.approx(1.090, abs=1e-6)
    assert logistic_sg(5.0, p.k, p.t0, 1.0, 1.090) == pytest.approx(1.050, abs=1e-6)


def test_two_point_fit_rising_data_gives_positive_k() -> None:
    p = fit_logistic_two_points(0.0, 1.01, 2.0, 1.05, sg_min=1.0, sg_max=1.08)
    assert p is not None and p.k > 0


@pytest.mark.parametrize(
    "args",
    [
        (0.0, 1.090, 5.0, 1.050, 1.0, 1.0),       # sg_max == sg_min
        (0.0, 1.090, 5.0, 1.050, 1.1, 1.0),       # sg_max < sg_min
        (2.0, 1.090, 2.0, 1.050, 1.0, 1.090),     # simultaneous samples
        (0.0, 1.050, 5.0, 1.050, 1.0, 1.090),     # flat gravity
    ],
)
def test_two_point_fit_degenerate(args) -> None:
    assert fit_logistic_two_points(*args) is None


def test_logistic_sg_scalar_and_array() -> None:
    assert isinstance(logistic_sg(1.0, -0.5, 2.0, 0.99, 1.1), float)
    sg = logistic_sg(np.linspace(0, 20, 50), -0.5, 2.0, 0.99, 1.1)
    assert sg.shape == (50,)
    assert np.all(np.diff(sg) < 0)
    assert np.all((sg > 0.99) & (sg < 1.1))


def test_best_fit_delegates_pair_to_closed_form(pair_samples) -> None:
    ms = measurement_set(pair_samples)
    p = fit_logistic_best_fit(ms, 0.990)
    q = fit_logistic_two_points(0.0, 1.100, 3.0, 1.060, 0.990, 1.100)
    assert p == q


def test_weighted_fit_on_triple(triple_samples) -> None:
    ms = measurement_set(triple_samples)
    cfg = LogisticFitConfig(seed=5)
    p = fit_logistic_best_fit(ms, 0.990, config=cfg)
    assert p is not None
    assert p.k < 0

    resid = np.abs(logistic_sg(ms.times, p.k, p.t0, 0.990, ms.sg_max) - ms.gravities)
    assert resid[-1] < 0.006
    assert resid.max() < 0.025


def test_weighted_fit_is_repeatable_for_a_seed(triple_samples) -> None:
    ms = measurement_set(triple_samples)
    cfg = LogisticFitConfig(seed=11)
    assert fit_logistic_best_fit(ms, 0.990, config=cfg) == fit_logistic_best_fit(ms, 0.990, config=cfg)


def test_latest_sample_dominates_weighted_fit() -> None:
    t = [0.0, 4.0, 8.0]
    sg = [1.100, 1.040, 1.070]

    weighted = fit_logistic_weighted(t, sg, 1.0, 1.100, config=LogisticFitConfig(seed=3))
    plain = fit_logistic_weighted(t, sg, 1.0, 1.100, config=LogisticFitConfig(seed=3, recency_weight=1.0))

    r_weighted = abs(logistic_sg(8.0, weighted.k, weighted.t0, 1.0, 1.100) - 1.070)
    r_plain = abs(logistic_sg(8.0, plain.k, plain.t0, 1.0, 1.100) - 1.070)
    assert r_weighted < 0.005
    assert r_weighted < 0.5 * r_plain


def test_weighted_fit_flat_samples_unavailable() -> None:
    assert fit_logistic_weighted([0.0, 2.0, 4.0], [1.05, 1.04, 1.05], 0.99, 1.05) is None


def test_weighted_fit_stays_within_steepness_bounds(triple_samples) -> None:
    ms = measurement_set(triple_samples)
    cfg = LogisticFitConfig(k_min=0.01, k_max=0.5, seed=2)
    p = fit_logistic_best_fit(ms, 0.990, config=cfg)
    assert 0.01 <= abs(p.k) <= 0.5
