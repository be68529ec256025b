"""
Mead recipe arithmetic.

Sugar, honey and nutrient quantities for a target ABV, the sugar needed to
back-sweeten to a target gravity, and the chalk (CaCO3) needed to raise pH.
All results are plain dataclasses; the honey figures are ``0.0`` when the
honey sugar content is not positive.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .abv import AbvFormula, get_abv_formula
from .constants import DEFAULT_CONSTANTS, PhysicalConstants
from .conversions import brix_from_sg

# Yeast nitrogen requirement -> Fermaid-O factor
NITROGEN_FACTORS: Dict[str, float] = {
    "Low": 0.75,
    "Medium": 0.9,
    "High": 1.25,
}

LITRES_PER_US_GALLON = 3.78541
FERMAID_MAX_ABV = 14.0
FERMAID_DAYS = 4
MW_CACO3 = 100.09   # g/mol


@dataclass(frozen=True)
class MeadRecipe:
    starting_gravity: float
    brix: float
    total_sugar_needed_g: float
    honey_mass_g: float
    honey_volume_l: float
    cost: float
    water_volume_l: float
    fermaid_o_total_g: Optional[float]
    fermaid_o_per_day_g: Optional[float]
    sweetening_abv: float
    sweetening_sugar_g: float
    sweetening_honey_g: float


@dataclass(frozen=True)
class Backsweetening:
    sugar_g: float
    honey_g: float


@dataclass(frozen=True)
class PhAdjustment:
    h_initial: float
    h_target: float
    delta_h_mol: float
    caco3_mol: float
    caco3_g: float


def sugar_for_ethanol(volume_l: float, abv: float, constants: PhysicalConstants | None = None) -> float:
    """
    Pure sugar [g] that ferments to ``abv`` percent in ``volume_l`` litres.

    Ethanol mass plus the CO2 released, corrected for the share of sugar
    diverted to biomass and the fermentable offset.
    """
    c = constants or DEFAULT_CONSTANTS
    ethanol_kg = (volume_l / 1000.0) * c.rho_ethanol * abv / 100.0
    return (1.0 / (1.0 - c.yxs)) * (ethanol_kg * (1.0 + c.mw_co2 / c.mw_ethanol) + c.f_sp * volume_l) * 1000.0


def honey_for_sugar(sugar_g: float, sugar_conc_pct: float, constants: PhysicalConstants | None = None) -> float:
    """Honey mass [g] supplying ``sugar_g`` of fermentable sugar."""
    c = constants or DEFAULT_CONSTANTS
    if sugar_conc_pct <= 0:
        return 0.0
    return sugar_g / (sugar_conc_pct / 100.0) / c.fraction_fermentable


def calculate_mead_recipe(
    volume_l: float,
    final_gravity: float,
    target_abv: float,
    sugar_conc_pct: float,
    density_kg_per_m3: float,
    cost_per_100g: float,
    yeast_n_requirement: str = "Medium",
    abv_formula: AbvFormula | None = None,
    constants: PhysicalConstants | None = None,
) -> MeadRecipe:
    """
    Honey, nutrient and back-sweetening quantities for a target ABV.

    Parameters
    ----------
    volume_l
        Batch size [L].
    final_gravity
        Expected final gravity (SG).
    target_abv
        Target ABV [%].
    sugar_conc_pct
        Sugar content of the honey [%].
    density_kg_per_m3
        Honey density [kg/m^3].
    cost_per_100g
        Honey price per 100 g.
    yeast_n_requirement
        ``"Low"``, ``"Medium"`` or ``"High"``; unknown values count as Medium.
    abv_formula
        Formula used to derive the starting gravity. Defaults to the
        canonical formula.
    """
    c = constants or DEFAULT_CONSTANTS
    if abv_formula is None:
        abv_formula = get_abv_formula(constants=constants)

    starting_gravity = abv_formula.og_for_target_abv(final_gravity, target_abv)
    total_sugar = sugar_for_ethanol(volume_l, target_abv, c)

    honey_g = honey_for_sugar(total_sugar, sugar_conc_pct, c)
    honey_volume_l = (honey_g / 1000.0) / (density_kg_per_m3 / 1000.0) if honey_g > 0 else 0.0
    cost = (honey_g / 100.0) * cost_per_100g

    brix = brix_from_sg(starting_gravity)

    fermaid_total = fermaid_per_day = None
    if target_abv <= FERMAID_MAX_ABV:
        n_req = NITROGEN_FACTORS.get(yeast_n_requirement, NITROGEN_FACTORS["Medium"])
        gallons = volume_l / LITRES_PER_US_GALLON
        fermaid_total = (brix * 10.0) * n_req * gallons / 50.0
        fermaid_per_day = fermaid_total / FERMAID_DAYS

    # Back-sweetening from the final gravity down to 1.000
    sweetening_abv = abv_formula.abv(final_gravity, 1.0)
    sweetening_sugar = sugar_for_ethanol(volume_l, sweetening_abv, c)

    return MeadRecipe(
        starting_gravity=float(starting_gravity),
        brix=float(brix),
        total_sugar_needed_g=total_sugar,
        honey_mass_g=honey_g,
        honey_volume_l=honey_volume_l,
        cost=cost,
        water_volume_l=volume_l - honey_volume_l,
        fermaid_o_total_g=fermaid_total,
        fermaid_o_per_day_g=fermaid_per_day,
        sweetening_abv=float(sweetening_abv),
        sweetening_sugar_g=sweetening_sugar,
        sweetening_honey_g=honey_for_sugar(sweetening_sugar, sugar_conc_pct, c),
    )


def calculate_backsweetening(
    current_gravity: float,
    target_gravity: float,
    volume_l: float,
    sugar_conc_pct: float,
    abv_formula: AbvFormula | None = None,
    constants: PhysicalConstants | None = None,
) -> Backsweetening:
    """Sugar and honey [g] that raise ``current_gravity`` to ``target_gravity``."""
    if abv_formula is None:
        abv_formula = get_abv_formula(constants=constants)
    equivalent_abv = abv_formula.abv(target_gravity, current_gravity)
    sugar = sugar_for_ethanol(volume_l, equivalent_abv, constants)
    return Backsweetening(sugar_g=sugar, honey_g=honey_for_sugar(sugar, sugar_conc_pct, constants))


def calculate_ph_adjustment(current_ph: float, target_ph: float, volume_l: float) -> PhAdjustment:
    """CaCO3 needed to move ``volume_l`` litres from ``current_ph`` to ``target_ph``."""
    h_initial = 10.0 ** (-current_ph)
    h_target = 10.0 ** (-target_ph)
    delta_h = (h_initial - h_target) * volume_l * 1000.0
    caco3_mol = delta_h / 2.0   # one carbonate neutralises two H+
    return PhAdjustment(
        h_initial=h_initial,
        h_target=h_target,
        delta_h_mol=delta_h,
        caco3_mol=caco3_mol,
        caco3_g=caco3_mol * MW_CACO3,
    )
