"""
Command-line front end.

Example::

    python -m fermtrack --sample 0 1.100 --sample 3 1.060 \
        --volume 20 --yeast 5 --predict-end 14 --query-days 7 --seed 1
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

import pandas as pd

from .abv import ABV_FORMULAS
from .config import default_config
from .errors import Unavailable
from .logging_config import setup_logging
from .prediction import FermentationPrediction, predict_fermentation

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    cfg = default_config()

    parser = argparse.ArgumentParser(
        prog="fermtrack",
        description="Estimate a fermentation trajectory from 2 or 3 gravity readings.",
    )
    parser.add_argument("--sample", nargs=2, type=float, action="append", required=True,
                        metavar=("DAYS", "SG"), help="Gravity reading; repeat 2 or 3 times (first at day 0).")
    parser.add_argument("--volume", type=float, required=True, help="Must volume [L].")
    parser.add_argument("--yeast", type=float, required=True, help="Pitched yeast mass [g].")
    parser.add_argument("--predict-end", type=float, required=True, help="Prediction horizon [days].")

    query = parser.add_mutually_exclusive_group()
    query.add_argument("--query-days", type=float, default=None, help="Elapsed days of the point query.")
    query.add_argument("--query", type=str, default=None, help="Query timestamp (ISO-8601); needs --day0.")
    parser.add_argument("--day0", type=str, default=None, help="Timestamp of the first reading (ISO-8601).")

    parser.add_argument("--abv-formula", choices=sorted(ABV_FORMULAS), default=cfg.abv_formula)
    parser.add_argument("--sg-min", type=float, default=cfg.sg_min, help="Lower SG asymptote.")
    parser.add_argument("--grid-points", type=int, default=cfg.n_grid_points,
                        help="Uniform points of the output series.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the randomized search.")
    parser.add_argument("--table", action="store_true", help="Print the full series table.")
    parser.add_argument("--plot", type=str, default=None, metavar="PATH",
                        help="Save the prediction panels to an image file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def _describe(label: str, value) -> str:
    if isinstance(value, Unavailable):
        return f"{label}: unavailable ({value.kind.value}: {value.message})"
    return f"{label}: {value}"


def report(prediction: FermentationPrediction, show_table: bool = False) -> str:
    lines = []
    lg = prediction.logistic
    lines.append(_describe("Logistic fit", lg if isinstance(lg, Unavailable) else
                           f"k={lg.params.k:.4f} 1/day, t0={lg.params.t0:.3f} day"))

    m = prediction.mechanistic
    if isinstance(m, Unavailable):
        lines.append(_describe("Monod fit", m))
    else:
        params = ", ".join(f"{k}={v:.4g}" for k, v in m.fit.params.as_dict().items())
        lines.append(f"Monod fit ({m.variant}): {params}")
        lines.append("Residuals at samples: " + ", ".join(f"{r:+.4f}" for r in m.residuals))

    p = prediction.point
    if isinstance(p, Unavailable):
        lines.append(_describe("Prediction", p))
    elif p is not None:
        if p.sg is not None:
            lines.append(
                f"Day {p.t_days:.3f}: SG {p.sg:.4f}, ABV {p.abv:.2f} %, yeast {p.biomass_concentration:.3f} g/L"
            )
        else:
            lines.append(f"Day {p.t_days:.3f}: Monod prediction unavailable")
        if p.logistic_sg is not None:
            lines.append(f"  logistic SG {p.logistic_sg:.4f}")

    if show_table:
        with pd.option_context("display.max_rows", None, "display.float_format", "{:.4f}".format):
            lines.append(str(prediction.to_frame()))
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    cfg = replace(
        default_config(),
        abv_formula=args.abv_formula,
        sg_min=args.sg_min,
        n_grid_points=args.grid_points,
    ).with_seed(args.seed)

    prediction = predict_fermentation(
        [tuple(s) for s in args.sample],
        args.volume,
        args.yeast,
        args.predict_end,
        query_days=args.query_days,
        day0=args.day0,
        query_time=args.query,
        config=cfg,
    )
    print(report(prediction, show_table=args.table))
    if args.plot and prediction.measurements is not None:
        from .plotting import plot_prediction

        plot_prediction(prediction).savefig(args.plot, dpi=150)
        logger.info("Saved plot to %s", args.plot)
    return 0 if prediction.measurements is not None else 1


if __name__ == "__main__":
    sys.exit(main())
