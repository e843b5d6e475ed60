"""Doubling-rate estimation from a metric's first and latest samples."""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable, Sequence

from .errors import InvalidInput
from .schemas import DoublingRate, Metric, RateStatus, Sample

DAYS_PER_MONTH = 30


def estimate(samples: Sequence[Sample]) -> DoublingRate | RateStatus:
    """Estimate how long the metric takes to double.

    Samples must already be sorted by date; the first and last entries are
    taken as the growth window without re-sorting.

    Raises:
        InvalidInput: If the first sample's value is zero or negative,
            or the projected date falls past the end of the calendar.
    """
    if len(samples) < 2:
        return RateStatus.INSUFFICIENT_DATA

    first = samples[0]
    last = samples[-1]
    if first.value <= 0:
        raise InvalidInput(
            f"Cannot estimate growth from a non-positive starting value ({first.value})"
        )

    total_growth = last.value / first.value
    if total_growth < 2:
        return RateStatus.NOT_YET_DOUBLED

    elapsed_days = (last.date - first.date).days
    doublings = math.log2(total_growth)
    days_per_doubling = elapsed_days / doublings

    # Fractional days are truncated for the projected calendar day.
    try:
        projected = last.date + dt.timedelta(days=int(days_per_doubling))
    except OverflowError as e:
        raise InvalidInput(
            f"Projected doubling date is past {dt.date.max.isoformat()}"
        ) from e
    return DoublingRate(
        days_per_doubling=round(days_per_doubling, 1),
        months_per_doubling=round(days_per_doubling / DAYS_PER_MONTH, 1),
        projected_next_double_date=projected,
    )


def estimate_all(metrics: Iterable[Metric]) -> dict[int, DoublingRate | RateStatus]:
    return {metric.id: estimate(metric.samples) for metric in metrics}


def describe(result: DoublingRate | RateStatus) -> str:
    if isinstance(result, RateStatus):
        return result.value
    return (
        f"{result.days_per_doubling:.1f} days per doubling "
        f"({result.months_per_doubling:.1f} months), "
        f"next double around {result.projected_next_double_date.isoformat()}"
    )
