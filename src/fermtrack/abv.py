"""
Alcohol-by-volume formulas.

Two families of OG/FG -> ABV relations circulate among home brewers and give
slightly different answers. They are exposed behind a single
:class:`AbvFormula` interface and picked by name from configuration, so that
every computation site of one prediction uses the same convention:

    hmrc   : ABV = (OG - FG) / (A0 - A1 * OG)          (canonical)
    linear : ABV = 131.25 * (OG - FG)
    plato  : Balling/Lincoln path via the cubic SG -> Plato fit

Each formula also solves the inverse problem, the OG needed to reach a target
ABV for a given FG.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

import numpy as np
from scipy.optimize import brentq

from .constants import DEFAULT_CONSTANTS, PhysicalConstants
from .conversions import plato_from_sg


class AbvFormula(ABC):
    name: str = "base"

    @abstractmethod
    def abv(self, og, fg):
        """ABV [%] for original gravity ``og`` and current gravity ``fg``."""

    @abstractmethod
    def og_for_target_abv(self, fg: float, abv: float) -> float:
        """Original gravity that ferments down to ``fg`` at ``abv`` percent."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class HmrcAbv(AbvFormula):
    """HMRC-style rational approximation; closed-form inverse."""

    name = "hmrc"

    def __init__(self, constants: PhysicalConstants | None = None):
        self.constants = constants or DEFAULT_CONSTANTS

    def abv(self, og, fg):
        c = self.constants
        return (og - fg) / (c.a0 - c.a1 * og)

    def og_for_target_abv(self, fg: float, abv: float) -> float:
        c = self.constants
        return (abv * c.a0 + fg) / (1.0 + abv * c.a1)


class LinearAbv(AbvFormula):
    """Classic linear approximation ABV = factor * (OG - FG)."""

    name = "linear"

    def __init__(self, factor: float = 131.25):
        self.factor = factor

    def abv(self, og, fg):
        return self.factor * (og - fg)

    def og_for_target_abv(self, fg: float, abv: float) -> float:
        return fg + abv / self.factor


class PlatoAbv(AbvFormula):
    """
    Balling/Lincoln formula evaluated in degrees Plato.

    OE and AE are the original and apparent extracts, RE the real extract:

        RE  = 0.1808 * OE + 0.8192 * AE
        ABW = (OE - RE) / (2.0665 - 0.010665 * OE)
        ABV = ABW * FG / 0.794
    """

    name = "plato"

    # Upper end of the OG bracket used by the inverse
    og_search_max = 1.5

    def abv(self, og, fg):
        oe = plato_from_sg(og)
        ae = plato_from_sg(fg)
        re = 0.1808 * oe + 0.8192 * ae
        abw = (oe - re) / (2.0665 - 0.010665 * oe)
        return abw * fg / 0.794

    def og_for_target_abv(self, fg: float, abv: float) -> float:
        if abv <= 0:
            return float(fg)

        def residual(og):
            return float(self.abv(og, fg)) - abv

        if residual(self.og_search_max) < 0:
            raise ValueError(
                f"Target ABV {abv}% is not reachable from FG {fg} below OG {self.og_search_max}"
            )
        return float(brentq(residual, fg, self.og_search_max))


ABV_FORMULAS: Dict[str, AbvFormula] = {
    "hmrc": HmrcAbv(),
    "linear": LinearAbv(),
    "plato": PlatoAbv(),
}

DEFAULT_ABV_FORMULA = "hmrc"


def get_abv_formula(name: str | None = None, constants: PhysicalConstants | None = None) -> AbvFormula:
    """
    Look up an ABV formula by name.

    Raises
    ------
    ValueError
        If ``name`` is not one of :data:`ABV_FORMULAS`.
    """
    if name is None:
        name = DEFAULT_ABV_FORMULA
    key = name.strip().lower()
    if key not in ABV_FORMULAS:
        raise ValueError(f"Unknown ABV formula '{name}'. Available: {sorted(ABV_FORMULAS)}")
    if key == "hmrc" and constants is not None:
        return HmrcAbv(constants)
    return ABV_FORMULAS[key]


def abv_series(og: float, sg, formula: AbvFormula) -> np.ndarray:
    """ABV [%] of every gravity in ``sg`` relative to ``og``."""
    return np.asarray(formula.abv(og, np.asarray(sg, dtype=float)), dtype=float)
