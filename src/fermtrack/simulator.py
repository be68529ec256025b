"""
Fixed-step integration of the Monod model and grid utilities.

The integrator is the classical 4th-order Runge-Kutta scheme. The step size
is recomputed on every interval of the (possibly non-uniform) time grid, so a
grid that contains the exact sample times is integrated node by node without
interpolation. After each step both states are clamped to be non-negative.

Parameters may be arrays: with ``mu_max`` of shape (n,), the returned
``X`` and ``S`` have shape (T, n) and each column is an independent
trajectory. The estimator relies on this to score a whole grid of candidate
parameters at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Tuple

import numpy as np

from .constants import DEFAULT_CONSTANTS, PhysicalConstants
from .conversions import sugar_to_sg
from .model import MonodParameters, dynamics_for


@dataclass(frozen=True)
class SimulationTrace:
    t: np.ndarray
    X: np.ndarray
    S: np.ndarray
    variant: str

    def points(self) -> Iterator[Tuple[float, float, float]]:
        """Iterate over ``(t, X, S)`` triples (single-trajectory traces)."""
        for t, x, s in zip(self.t, self.X, self.S):
            yield float(t), float(x), float(s)

    def sg(self, volume_l: float, sg_min: float, constants: PhysicalConstants | None = None) -> np.ndarray:
        """Specific gravity implied by the sugar trace, floored at ``sg_min``."""
        return np.maximum(sugar_to_sg(self.S, volume_l, constants), sg_min)


# ---------------------------------------------------------------------------
# Grids and interpolation
# ---------------------------------------------------------------------------

def uniform_grid(t_end: float, n_points: int) -> np.ndarray:
    """``n_points`` evenly spaced times from 0 to ``t_end`` (inclusive)."""
    if n_points <= 1:
        return np.array([0.0])
    return np.linspace(0.0, float(t_end), int(n_points))


def stepped_grid(t_end: float, dt: float) -> np.ndarray:
    """Uniform grid from 0 to ``t_end`` with a step no larger than ``dt``."""
    n_steps = max(2, int(np.ceil(t_end / dt)) + 1)
    return uniform_grid(t_end, n_steps)


def evaluation_grid(
    t_end: float,
    n_points: int,
    sample_times: Iterable[float] = (),
    query_time: Optional[float] = None,
) -> np.ndarray:
    """
    Shared evaluation grid: uniform partition of ``[0, t_end]`` united with
    the exact sample times and an optional query time.

    The query time is added only when it lies inside ``[0, t_end]``; queries
    outside the horizon are answered by clamping in :func:`interp_at`.
    """
    parts = [uniform_grid(t_end, n_points), np.asarray(list(sample_times), dtype=float)]
    if query_time is not None and 0.0 <= query_time <= t_end:
        parts.append(np.array([float(query_time)]))
    # np.unique sorts and removes duplicates
    return np.unique(np.concatenate(parts))


def interp_at(grid, values, t: float) -> float:
    """
    Linear interpolation of ``values`` on ``grid`` at time ``t``.

    Below the first node the first value is returned, above the last node the
    last value: the series is never extrapolated past the simulated horizon.
    """
    grid = np.asarray(grid, dtype=float)
    values = np.asarray(values, dtype=float)
    if grid.size == 0:
        raise ValueError("interp_at needs a non-empty grid")
    return float(np.interp(float(t), grid, values, left=values[0], right=values[-1]))


def interp_columns(grid: np.ndarray, Y: np.ndarray, t_query) -> np.ndarray:
    """
    Interpolate every column of ``Y`` (shape (T, ...)) at the times ``t_query``.

    Returns an array of shape (len(t_query), ...). Used to read a batch of
    trajectories at the exact measurement times.
    """
    grid = np.asarray(grid, dtype=float)
    tq = np.clip(np.asarray(t_query, dtype=float), grid[0], grid[-1])
    if grid.size == 1:
        return np.repeat(Y[:1], tq.size, axis=0)

    idx = np.clip(np.searchsorted(grid, tq, side="right") - 1, 0, grid.size - 2)
    t_lo = grid[idx]
    t_hi = grid[idx + 1]
    w = (tq - t_lo) / (t_hi - t_lo)
    w = w.reshape((-1,) + (1,) * (Y.ndim - 1))
    return Y[idx] * (1.0 - w) + Y[idx + 1] * w


# ---------------------------------------------------------------------------
# RK4
# ---------------------------------------------------------------------------

def rk4_integrate(
    rhs: Callable[[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]],
    t_grid,
    x0,
    s0,
    batch_shape: Tuple[int, ...] = (),
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Integrate ``(dX, dS) = rhs(X, S)`` over ``t_grid`` with classical RK4.

    Parameters
    ----------
    rhs
        Autonomous right-hand side.
    t_grid
        Increasing 1D array of time nodes.
    x0, s0
        Initial biomass and sugar.
    batch_shape
        Shape of the parameter batch carried by ``rhs`` (``()`` for a single
        trajectory).

    Returns
    -------
    X, S : ndarray, shape (T,) + batch_shape
    """
    t_grid = np.asarray(t_grid, dtype=float)
    T = t_grid.size

    X = np.empty((T,) + batch_shape, dtype=float)
    S = np.empty((T,) + batch_shape, dtype=float)
    X[0] = x0
    S[0] = s0

    for i in range(1, T):
        h = t_grid[i] - t_grid[i - 1]
        Xn = X[i - 1]
        Sn = S[i - 1]

        k1x, k1s = rhs(Xn, Sn)
        k2x, k2s = rhs(Xn + 0.5 * h * k1x, Sn + 0.5 * h * k1s)
        k3x, k3s = rhs(Xn + 0.5 * h * k2x, Sn + 0.5 * h * k2s)
        k4x, k4s = rhs(Xn + h * k3x, Sn + h * k3s)

        X[i] = np.maximum(Xn + (h / 6.0) * (k1x + 2.0 * k2x + 2.0 * k3x + k4x), 0.0)
        S[i] = np.maximum(Sn + (h / 6.0) * (k1s + 2.0 * k2s + 2.0 * k3s + k4s), 0.0)

    return X, S


def simulate_monod(
    params: MonodParameters,
    t_grid,
    x0: float,
    s0: float,
    variant: Optional[str] = None,
    constants: PhysicalConstants | None = None,
) -> SimulationTrace:
    """
    Simulate the Monod model over ``t_grid``.

    Parameters
    ----------
    params
        Kinetic parameters; fields may be arrays of equal shape for a batch.
    t_grid
        Time nodes [day], starting at the fermentation start.
    x0, s0
        Initial biomass concentration [g/L] and sugar [g].
    variant
        ``"basic"`` or ``"decay"``. If None, it follows ``params.variant``.
    constants
        Physical constants (only Yxs is used). Defaults to
        :data:`DEFAULT_CONSTANTS`.

    Returns
    -------
    SimulationTrace
    """
    if constants is None:
        constants = DEFAULT_CONSTANTS
    if variant is None:
        variant = params.variant
    f = dynamics_for(variant)

    shapes = [np.shape(params.mu_max), np.shape(params.ks)]
    if params.kd is not None:
        shapes.append(np.shape(params.kd))
    batch_shape = np.broadcast_shapes(*shapes)

    yxs = constants.yxs

    def rhs(X, S):
        return f(X, S, params, yxs)

    t_grid = np.asarray(t_grid, dtype=float)
    X, S = rk4_integrate(rhs, t_grid, x0, s0, batch_shape=batch_shape)
    return SimulationTrace(t=t_grid, X=X, S=S, variant=variant)
