"""
Physical and empirical constants shared by the fermentation model.

The values below are the ones used throughout the mead calculators: the
stoichiometry of sugar -> ethanol + CO2, the density of ethanol and the
biomass yield coefficient Yxs. They are collected in a frozen dataclass so
that a caller can override a single value (e.g. a different yield) without
touching module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PhysicalConstants:
    # Stoichiometry / densities
    rho_ethanol: float = 789.45     # ethanol density [kg/m^3]
    mw_co2: float = 44.01           # molar mass CO2 [g/mol]
    mw_ethanol: float = 46.069      # molar mass ethanol [g/mol]

    # Biology
    yxs: float = 0.1                # biomass yield per unit sugar consumed
    f_sp: float = 0.0128            # fermentable sugar offset [g/L equivalent]
    fraction_fermentable: float = 0.925  # share of honey sugar that ferments

    # HMRC-style ABV coefficients (OG/FG in 1.xxx SG)
    a0: float = 0.0102939642333984375
    a1: float = 0.0026341854919339838

    @property
    def sg_denominator(self) -> float:
        """Density term shared by the sugar <-> SG conversions."""
        return ((1.05 / 0.79) * self.rho_ethanol) * (1.0 + self.mw_co2 / self.mw_ethanol)


DEFAULT_CONSTANTS = PhysicalConstants()
