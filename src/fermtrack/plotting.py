"""
Plotting helpers for a :class:`fermtrack.prediction.FermentationPrediction`.

:func:`plot_prediction` draws the five panels of a prediction on one figure:
logistic SG and ABV, Monod SG, yeast concentration and ABV. The measured
gravities are overlaid as markers on both SG panels. A panel whose model is
unavailable shows the reason instead of a curve.
"""

from __future__ import annotations

from typing import Optional, Sequence

import matplotlib.pyplot as plt

from .errors import Unavailable
from .prediction import FermentationPrediction

PANELS = (
    ("logistic", "sg", "Logistic SG", "Specific gravity"),
    ("logistic", "abv", "Logistic ABV", "ABV (%)"),
    ("mechanistic", "sg", "Monod SG", "Specific gravity"),
    ("mechanistic", "biomass", "Yeast", "Yeast concentration (g/L)"),
    ("mechanistic", "abv", "Monod ABV", "ABV (%)"),
)


def plot_series(t, y, ax=None, label: str = "y", ylabel: Optional[str] = None,
                measured_t=None, measured_y=None):
    """
    Plot one predicted series, optionally with the measured samples.

    Parameters
    ----------
    t, y
        1D arrays with the time axis [day] and the predicted values.
    ax
        Optional :class:`matplotlib.axes.Axes`. If None, a new figure and
        axes are created.
    label
        Legend label of the predicted curve.
    ylabel
        Y-axis label; defaults to ``label``.
    measured_t, measured_y
        Sample times and values drawn as markers. Omitted if None.

    Returns
    -------
    ax
        The :class:`matplotlib.axes.Axes` instance with the plot.
    """
    if ax is None:
        fig = plt.figure(figsize=(6, 4))
        ax = fig.add_subplot(111)

    ax.plot(t, y, label=label)
    if measured_t is not None and measured_y is not None:
        ax.plot(measured_t, measured_y, "o", label="measured")

    ax.set_xlabel("Time (days)")
    ax.set_ylabel(ylabel or label)
    ax.legend()
    return ax


def _mark_unavailable(ax, title: str, reason: Unavailable) -> None:
    ax.set_title(title)
    ax.text(0.5, 0.5, f"unavailable\n({reason.kind.value})", ha="center", va="center",
            transform=ax.transAxes)
    ax.set_xticks([])
    ax.set_yticks([])


def plot_prediction(prediction: FermentationPrediction, axes: Optional[Sequence] = None):
    """
    Draw all prediction panels.

    Parameters
    ----------
    prediction
        Result of :func:`fermtrack.predict_fermentation`.
    axes
        Optional sequence of five axes. If None, a 2x3 figure is created and
        its sixth axes is hidden.

    Returns
    -------
    fig
        The :class:`matplotlib.figure.Figure` holding the panels.
    """
    if axes is None:
        fig, grid = plt.subplots(2, 3, figsize=(15, 8))
        grid = grid.ravel()
        grid[-1].set_visible(False)
        axes = grid[:5]
    if len(axes) != len(PANELS):
        raise ValueError(f"plot_prediction needs {len(PANELS)} axes, got {len(axes)}")
    fig = axes[0].figure

    ms = prediction.measurements
    for ax, (model, field, title, ylabel) in zip(axes, PANELS):
        series = getattr(prediction, model)
        if isinstance(series, Unavailable):
            _mark_unavailable(ax, title, series)
            continue

        measured_t = measured_y = None
        if field == "sg" and ms is not None:
            measured_t, measured_y = ms.times, ms.gravities
        plot_series(series.t, getattr(series, field), ax=ax, label=title, ylabel=ylabel,
                    measured_t=measured_t, measured_y=measured_y)
        ax.set_title(title)

    point = prediction.point
    if point is not None and not isinstance(point, Unavailable):
        for ax in axes:
            if ax.lines:
                ax.axvline(point.t_days, linestyle="--", color="gray", linewidth=1)

    fig.tight_layout()
    return fig
