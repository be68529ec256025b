from __future__ import annotations

import numpy as np
import pytest

from fermtrack.constants import DEFAULT_CONSTANTS
from fermtrack.model import MonodParameters, f_basic, f_decay, initial_state, mu_monod
from fermtrack.simulator import (
    evaluation_grid,
    interp_at,
    interp_columns,
    simulate_monod,
    stepped_grid,
    uniform_grid,
)

X0, S0 = initial_state(yeast_mass_g=5.0, volume_l=20.0, sg0=1.100)


def _random_params(rng, n, with_kd):
    mu = rng.uniform(0.001, 5.0, n)
    ks = rng.uniform(0.01, 50.0, n)
    kd = rng.uniform(0.0, 5.0, n) if with_kd else None
    return MonodParameters(mu_max=mu, ks=ks, kd=kd)


def _nonuniform_grid(rng, t_end=20.0, n=120):
    return np.unique(np.concatenate([[0.0, t_end], rng.uniform(0.0, t_end, n)]))


def test_initial_state() -> None:
    assert X0 == pytest.approx(0.25)
    assert S0 > 0


def test_mu_monod_saturates_and_handles_zero_sugar() -> None:
    assert mu_monod(1e9, 2.0, 5.0) == pytest.approx(2.0, rel=1e-6)
    assert mu_monod(5.0, 2.0, 5.0) == pytest.approx(1.0, rel=1e-9)
    assert np.isfinite(mu_monod(0.0, 2.0, 0.0))
    assert mu_monod(-1.0, 2.0, 5.0) >= 0.0


def test_no_sugar_uptake_once_exhausted() -> None:
    th = MonodParameters(mu_max=1.0, ks=1.0, kd=0.5)
    for f in (f_basic, f_decay):
        _, dS = f(np.array(2.0), np.array(0.0), th)
        assert dS == 0.0


@pytest.mark.parametrize("with_kd", [False, True])
def test_states_never_negative(with_kd: bool) -> None:
    rng = np.random.default_rng(7)
    params = _random_params(rng, 300, with_kd)
    grid = _nonuniform_grid(rng)
    trace = simulate_monod(params, grid, X0, S0)
    assert trace.X.shape == (grid.size, 300)
    assert np.all(trace.X >= 0.0)
    assert np.all(trace.S >= 0.0)


def test_states_never_negative_at_extreme_bounds() -> None:
    grid = uniform_grid(30.0, 61)
    params = MonodParameters(
        mu_max=np.array([5.0, 0.001, 5.0]),
        ks=np.array([0.01, 50.0, 0.01]),
        kd=np.array([5.0, 5.0, 0.0]),
    )
    trace = simulate_monod(params, grid, X0, S0)
    assert np.all(trace.X >= 0.0)
    assert np.all(trace.S >= 0.0)


def test_basic_variant_conserves_biomass_plus_yield_times_sugar() -> None:
    grid = uniform_grid(2.0, 41)
    trace = simulate_monod(MonodParameters(mu_max=0.3, ks=10.0), grid, 0.25, 4000.0)
    invariant = trace.X + DEFAULT_CONSTANTS.yxs * trace.S
    assert np.allclose(invariant, invariant[0], rtol=1e-9)


def test_basic_variant_is_monotone_through_depletion() -> None:
    grid = uniform_grid(30.0, 301)
    trace = simulate_monod(MonodParameters(mu_max=2.0, ks=1.0), grid, X0, S0)
    assert np.all(np.diff(trace.S) <= 0.0)
    assert np.all(np.diff(trace.X) >= 0.0)
    assert trace.S[-1] < 1e-3 * S0


def test_decay_variant_loses_biomass_after_depletion() -> None:
    grid = uniform_grid(30.0, 301)
    trace = simulate_monod(MonodParameters(mu_max=2.0, ks=1.0, kd=0.2), grid, X0, S0)
    assert trace.variant == "decay"
    assert trace.X[-1] < trace.X.max()


def test_batch_matches_single_runs() -> None:
    grid = _nonuniform_grid(np.random.default_rng(3), t_end=10.0, n=40)
    mus, kss, kds = [0.5, 1.5, 3.0], [1.0, 10.0, 40.0], [0.0, 0.1, 1.0]
    batch = simulate_monod(
        MonodParameters(mu_max=np.array(mus), ks=np.array(kss), kd=np.array(kds)), grid, X0, S0
    )
    for j, (mu, ks, kd) in enumerate(zip(mus, kss, kds)):
        single = simulate_monod(MonodParameters(mu, ks, kd), grid, X0, S0)
        assert np.allclose(batch.X[:, j], single.X)
        assert np.allclose(batch.S[:, j], single.S)


def test_trace_points_and_sg() -> None:
    grid = uniform_grid(5.0, 11)
    trace = simulate_monod(MonodParameters(mu_max=1.0, ks=5.0), grid, X0, S0)
    points = list(trace.points())
    assert len(points) == 11
    assert points[0] == (0.0, pytest.approx(X0), pytest.approx(S0))
    sg = trace.sg(20.0, sg_min=0.990)
    assert sg[0] == pytest.approx(1.100)
    assert np.all(sg >= 0.990)


def test_unknown_variant_rejected() -> None:
    with pytest.raises(ValueError):
        simulate_monod(MonodParameters(1.0, 1.0), [0.0, 1.0], X0, S0, variant="gompertz")


# ---------------------------------------------------------------------------
# Grids and interpolation
# ---------------------------------------------------------------------------

def test_interp_at_boundaries_and_nodes() -> None:
    grid = np.array([0.0, 1.0, 2.5, 4.0])
    y = np.array([10.0, 8.0, 5.0, 1.0])
    assert interp_at(grid, y, -3.0) == 10.0
    assert interp_at(grid, y, 100.0) == 1.0
    for t, v in zip(grid, y):
        assert interp_at(grid, y, t) == v
    assert interp_at(grid, y, 0.5) == pytest.approx(9.0)
    assert interp_at(grid, y, 3.25) == pytest.approx(3.0)


def test_interp_columns_matches_scalar_interpolation() -> None:
    grid = np.array([0.0, 1.0, 3.0])
    Y = np.array([[1.0, 10.0], [2.0, 20.0], [4.0, 40.0]])
    out = interp_columns(grid, Y, [0.0, 2.0, 3.0, 9.0])
    assert out.shape == (4, 2)
    assert np.allclose(out[:, 0], [1.0, 3.0, 4.0, 4.0])
    assert np.allclose(out[:, 1], [10.0, 30.0, 40.0, 40.0])


def test_evaluation_grid_contains_samples_and_query() -> None:
    grid = evaluation_grid(10.0, 5, sample_times=[0.0, 3.3, 7.0], query_time=4.2)
    assert grid[0] == 0.0 and grid[-1] == 10.0
    assert np.all(np.diff(grid) > 0)
    for t in (3.3, 7.0, 4.2, 2.5):
        assert t in grid


def test_evaluation_grid_ignores_query_outside_horizon() -> None:
    grid = evaluation_grid(10.0, 3, sample_times=[0.0, 5.0], query_time=12.0)
    assert grid.tolist() == [0.0, 5.0, 10.0]


def test_stepped_grid_step_size() -> None:
    grid = stepped_grid(3.0, 0.05)
    assert grid[0] == 0.0 and grid[-1] == pytest.approx(3.0)
    assert np.max(np.diff(grid)) <= 0.05 + 1e-12
