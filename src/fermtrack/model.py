"""
Monod kinetics for a batch fermentation.

Two states are tracked,

    X : yeast biomass concentration [g/L]
    S : dissolved sugar [g]

with Monod growth

    mu(S) = mu_max * S / (Ks + S + eps).

Two variants of the dynamics are provided:

    basic : dX/dt = mu(S) X,           dS/dt = -(dX/dt) / Yxs
    decay : dX/dt = (mu(S) - kd) X,    dS/dt = -mu(S) X / Yxs

In the decay variant sugar uptake follows gross growth, not net growth.

The right-hand sides are written with numpy operations only, so every
parameter may be a scalar or an array; an array of candidate parameter sets
is then integrated in one pass by :mod:`fermtrack.simulator`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .constants import DEFAULT_CONSTANTS, PhysicalConstants
from .conversions import initial_sugar_from_sg

# Floor applied to S before evaluating mu, and the denominator guard
S_FLOOR = 1e-9
MU_EPS = 1e-12


@dataclass(frozen=True)
class MonodParameters:
    mu_max: float              # maximum specific growth rate [1/day]
    ks: float                  # half-saturation constant [g], same units as S
    kd: Optional[float] = None  # biomass decay rate [1/day], decay variant only

    @property
    def variant(self) -> str:
        return "basic" if self.kd is None else "decay"

    def as_dict(self) -> Dict[str, float]:
        out = {"mu_max": float(self.mu_max), "ks": float(self.ks)}
        if self.kd is not None:
            out["kd"] = float(self.kd)
        return out


def mu_monod(S, mu_max, ks):
    """Specific growth rate mu(S); S is floored at :data:`S_FLOOR`."""
    S = np.maximum(S, S_FLOOR)
    return mu_max * S / (ks + S + MU_EPS)


def f_basic(X, S, th: MonodParameters, yxs: float = DEFAULT_CONSTANTS.yxs) -> Tuple[np.ndarray, np.ndarray]:
    """
    Basic Monod dynamics.

    Parameters
    ----------
    X, S
        Current biomass concentration and sugar (scalars or arrays).
    th
        Kinetic parameters; fields may be arrays broadcastable with X and S.
    yxs
        Biomass yield coefficient.

    Returns
    -------
    dX, dS : ndarray
    """
    mu = mu_monod(S, th.mu_max, th.ks)
    dX = mu * X
    # No uptake once the sugar is exhausted
    dS = np.where(S > S_FLOOR, -dX / yxs, 0.0)
    return dX, dS


def f_decay(X, S, th: MonodParameters, yxs: float = DEFAULT_CONSTANTS.yxs) -> Tuple[np.ndarray, np.ndarray]:
    """Monod dynamics with first-order biomass decay ``kd``."""
    kd = 0.0 if th.kd is None else th.kd
    mu = mu_monod(S, th.mu_max, th.ks)
    dX = (mu - kd) * X
    dS = np.where(S > S_FLOOR, -mu * X / yxs, 0.0)
    return dX, dS


DYNAMICS: Dict[str, Callable] = {
    "basic": f_basic,
    "decay": f_decay,
}


def dynamics_for(variant: str) -> Callable:
    try:
        return DYNAMICS[variant]
    except KeyError:
        raise ValueError(f"Unknown model variant '{variant}'. Available: {list(DYNAMICS)}") from None


def initial_state(
    yeast_mass_g: float,
    volume_l: float,
    sg0: float,
    constants: PhysicalConstants | None = None,
) -> Tuple[float, float]:
    """
    Initial condition (X0, S0) from the pitched yeast and the starting gravity.

    X0 = yeast_mass_g / volume_l, S0 = initial_sugar_from_sg(sg0, volume_l).
    """
    x0 = float(yeast_mass_g) / float(volume_l)
    s0 = float(initial_sugar_from_sg(sg0, volume_l, constants))
    return x0, max(s0, 0.0)
