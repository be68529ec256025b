"""
Fermentation trajectory estimation from sparse gravity readings.

This package bundles the sugar/gravity conversions, the Monod growth model
with its RK4 simulator, the logistic shape fitter, the Monod parameter
estimator and the query layer that turns two or three gravity readings into
predicted SG, ABV and yeast concentration curves.

Typical usage::

    from fermtrack import predict_fermentation

    pred = predict_fermentation(
        [(0.0, 1.100), (3.0, 1.060)],
        volume_l=20.0,
        yeast_mass_g=5.0,
        predict_end_days=14.0,
        query_days=7.0,
    )
    pred.point.sg, pred.point.abv
    pred.to_frame()
"""

__version__ = "0.1.0"

from .constants import PhysicalConstants, DEFAULT_CONSTANTS
from .config import (
    ParameterBounds,
    MonodEstimatorConfig,
    LogisticFitConfig,
    FermentationConfig,
    default_config,
)
from .errors import ErrorKind, InvalidInputError, Unavailable
from .conversions import (
    sugar_to_sg,
    initial_sugar_from_sg,
    brix_from_sg,
    sg_from_brix,
    plato_from_sg,
)
from .abv import (
    AbvFormula,
    HmrcAbv,
    LinearAbv,
    PlatoAbv,
    ABV_FORMULAS,
    get_abv_formula,
)
from .samples import (
    MeasurementSample,
    SamplePair,
    SampleTriple,
    MeasurementSet,
    measurement_set,
)
from .model import MonodParameters, mu_monod, f_basic, f_decay, initial_state
from .simulator import (
    SimulationTrace,
    simulate_monod,
    evaluation_grid,
    interp_at,
)
from .logistic import (
    LogisticFitParams,
    logistic_sg,
    fit_logistic_two_points,
    fit_logistic_best_fit,
)
from .estimator import MonodEstimator, MonodFit, fit_monod
from .duration import Duration, DurationError, duration_between, elapsed_days
from .prediction import (
    FermentationPrediction,
    LogisticSeries,
    MechanisticSeries,
    PointPrediction,
    predict_fermentation,
)
from .recipe import (
    MeadRecipe,
    Backsweetening,
    PhAdjustment,
    sugar_for_ethanol,
    honey_for_sugar,
    calculate_mead_recipe,
    calculate_backsweetening,
    calculate_ph_adjustment,
)

__all__ = [
    # constants / config
    "PhysicalConstants",
    "DEFAULT_CONSTANTS",
    "ParameterBounds",
    "MonodEstimatorConfig",
    "LogisticFitConfig",
    "FermentationConfig",
    "default_config",
    # errors
    "ErrorKind",
    "InvalidInputError",
    "Unavailable",
    # conversions
    "sugar_to_sg",
    "initial_sugar_from_sg",
    "brix_from_sg",
    "sg_from_brix",
    "plato_from_sg",
    # abv
    "AbvFormula",
    "HmrcAbv",
    "LinearAbv",
    "PlatoAbv",
    "ABV_FORMULAS",
    "get_abv_formula",
    # samples
    "MeasurementSample",
    "SamplePair",
    "SampleTriple",
    "MeasurementSet",
    "measurement_set",
    # model / simulator
    "MonodParameters",
    "mu_monod",
    "f_basic",
    "f_decay",
    "initial_state",
    "SimulationTrace",
    "simulate_monod",
    "evaluation_grid",
    "interp_at",
    # fitting
    "LogisticFitParams",
    "logistic_sg",
    "fit_logistic_two_points",
    "fit_logistic_best_fit",
    "MonodEstimator",
    "MonodFit",
    "fit_monod",
    # duration
    "Duration",
    "DurationError",
    "duration_between",
    "elapsed_days",
    # prediction
    "FermentationPrediction",
    "LogisticSeries",
    "MechanisticSeries",
    "PointPrediction",
    "predict_fermentation",
    # recipe
    "MeadRecipe",
    "Backsweetening",
    "PhAdjustment",
    "sugar_for_ethanol",
    "honey_for_sugar",
    "calculate_mead_recipe",
    "calculate_backsweetening",
    "calculate_ph_adjustment",
]
