"""
Unit conversions between dissolved sugar and gravity scales.

The sugar <-> SG pair follows the stoichiometric relation used by the mead
calculators

    SG = 1 + (1 - Yxs) * (S / V - F_SP) / D,
    D  = (1.05 / 0.79) * rho_eth * (1 + MW_CO2 / MW_eth),

where S is the dissolved sugar mass (g) and V the must volume (L). The two
functions are exact algebraic inverses for identical constants and volume.

All functions accept scalars or numpy arrays.
"""

from __future__ import annotations

import numpy as np

from .constants import DEFAULT_CONSTANTS, PhysicalConstants


def sugar_to_sg(S, volume_l, constants: PhysicalConstants | None = None):
    """
    Specific gravity of a must holding ``S`` grams of sugar in ``volume_l`` litres.

    Parameters
    ----------
    S
        Dissolved sugar mass [g]. Scalar or array.
    volume_l
        Must volume [L].
    constants
        Physical constants. If None, :data:`DEFAULT_CONSTANTS` is used.

    Returns
    -------
    float or ndarray
        Specific gravity (1.xxx).
    """
    if constants is None:
        constants = DEFAULT_CONSTANTS
    c = constants
    return 1.0 + (1.0 - c.yxs) * ((S / volume_l) - c.f_sp) / c.sg_denominator


def initial_sugar_from_sg(sg0, volume_l, constants: PhysicalConstants | None = None):
    """Inverse of :func:`sugar_to_sg`: sugar mass [g] for a gravity ``sg0``."""
    if constants is None:
        constants = DEFAULT_CONSTANTS
    c = constants
    return volume_l * (((sg0 - 1.0) * c.sg_denominator / (1.0 - c.yxs)) + c.f_sp)


def brix_from_sg(sg):
    """Brix estimate from specific gravity (cubic fit)."""
    g = np.asarray(sg, dtype=float)
    brix = 182.46007 * g ** 3 - 775.68212 * g ** 2 + 1262.7794 * g - 669.56218
    return float(brix) if brix.ndim == 0 else brix


def sg_from_brix(brix):
    """Specific gravity from Brix (inverse approximation of :func:`brix_from_sg`)."""
    b = np.asarray(brix, dtype=float)
    sg = 1.0 + b / (258.6 - (b / 258.2) * 227.1)
    return float(sg) if sg.ndim == 0 else sg


def plato_from_sg(sg):
    """Degrees Plato from specific gravity (cubic fit)."""
    g = np.asarray(sg, dtype=float)
    plato = -616.868 + 1111.14 * g - 630.272 * g ** 2 + 135.997 * g ** 3
    return float(plato) if plato.ndim == 0 else plato
