"""
Gravity measurements and the measurement-set variant.

A prediction is driven by either two or three (time, SG) samples. Instead of
inferring behaviour from an array length, :func:`measurement_set` returns an
explicit variant:

    SamplePair    -> basic Monod model  (mu_max, Ks)
    SampleTriple  -> decay Monod model  (mu_max, Ks, kd)

Both variants expose the same read-only views (``times``, ``gravities``,
``latest`` ...) so the fitters can treat them uniformly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

import numpy as np

from .errors import InvalidInputError


@dataclass(frozen=True)
class MeasurementSample:
    time_days: float
    specific_gravity: float


class _MeasurementSetBase:
    samples: Tuple[MeasurementSample, ...]
    variant: str = ""

    @property
    def times(self) -> np.ndarray:
        return np.array([s.time_days for s in self.samples], dtype=float)

    @property
    def gravities(self) -> np.ndarray:
        return np.array([s.specific_gravity for s in self.samples], dtype=float)

    @property
    def initial(self) -> MeasurementSample:
        return self.samples[0]

    @property
    def latest(self) -> MeasurementSample:
        return self.samples[-1]

    @property
    def sg_max(self) -> float:
        return float(self.gravities.max())

    @property
    def t_max(self) -> float:
        return self.latest.time_days

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class SamplePair(_MeasurementSetBase):
    first: MeasurementSample
    second: MeasurementSample

    variant = "basic"

    @property
    def samples(self) -> Tuple[MeasurementSample, ...]:
        return (self.first, self.second)


@dataclass(frozen=True)
class SampleTriple(_MeasurementSetBase):
    first: MeasurementSample
    second: MeasurementSample
    third: MeasurementSample

    variant = "decay"

    @property
    def samples(self) -> Tuple[MeasurementSample, ...]:
        return (self.first, self.second, self.third)


MeasurementSet = Union[SamplePair, SampleTriple]


def _coerce_sample(item) -> MeasurementSample:
    if isinstance(item, MeasurementSample):
        return item
    try:
        t, sg = item
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Sample must be a (time_days, sg) pair, got {item!r}") from exc
    try:
        return MeasurementSample(float(t), float(sg))
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Sample values must be numbers, got {item!r}") from exc


def measurement_set(samples: Iterable) -> MeasurementSet:
    """
    Validate and sort raw samples and wrap them in the matching variant.

    Parameters
    ----------
    samples
        Two or three :class:`MeasurementSample` objects or ``(time_days, sg)``
        pairs, in any order.

    Returns
    -------
    SamplePair or SampleTriple

    Raises
    ------
    InvalidInputError
        On a wrong sample count, non-finite values, negative times,
        non-positive gravities, duplicate times, or a first time other than 0,
        or when ``samples`` is not iterable.
    """
    try:
        items = list(samples)
    except TypeError as exc:
        raise InvalidInputError(
            f"Samples must be an iterable of (time_days, sg) pairs, got {samples!r}"
        ) from exc
    parsed = [_coerce_sample(s) for s in items]

    if len(parsed) not in (2, 3):
        raise InvalidInputError(f"Expected 2 or 3 samples, got {len(parsed)}")

    for s in parsed:
        if not (math.isfinite(s.time_days) and math.isfinite(s.specific_gravity)):
            raise InvalidInputError(f"Sample values must be finite, got {s}")
        if s.time_days < 0:
            raise InvalidInputError(f"Sample time must be >= 0, got {s.time_days}")
        if s.specific_gravity <= 0:
            raise InvalidInputError(f"Specific gravity must be > 0, got {s.specific_gravity}")

    parsed.sort(key=lambda s: s.time_days)

    if parsed[0].time_days != 0.0:
        raise InvalidInputError(
            f"The first sample must be taken at t = 0 (fermentation start), got {parsed[0].time_days}"
        )
    times = [s.time_days for s in parsed]
    if len(set(times)) != len(times):
        raise InvalidInputError(f"Duplicate sample times are not allowed: {times}")

    if len(parsed) == 2:
        return SamplePair(*parsed)
    return SampleTriple(*parsed)
