"""
Metric repository backed by a key/value store.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from doubling_core.errors import InvalidInput, NotFound, PersistenceFailure
from doubling_core.schemas import Metric, Sample, dump_metrics, load_metrics

from .kv import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "doublingMetrics"

DEFAULT_METRICS: tuple[tuple[str, float], ...] = (
    ("Followers", 100),
    ("Revenue", 1000),
    ("Customers", 10),
)


def default_metrics(seed: Sequence[tuple[str, float]] = DEFAULT_METRICS) -> list[Metric]:
    return [
        Metric(id=index, name=name, base_value=base_value)
        for index, (name, base_value) in enumerate(seed, start=1)
    ]


def _require_finite(value: object, field: str) -> float:
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"{field} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise InvalidInput(f"{field} must be finite, got {value!r}")
    return number


def _coerce_date(value: dt.date | str) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"date must be YYYY-MM-DD, got {value!r}") from e


def _sorted_samples(samples: Sequence[Sample]) -> tuple[Sample, ...]:
    # sorted() is stable, so same-day samples keep their insertion order.
    return tuple(sorted(samples, key=lambda sample: sample.date))


class MetricStore:
    """Own the tracked metrics and write the full state back after every change.

    State is read once from ``kv`` on construction. A missing entry falls back
    to ``defaults``; an unreadable or corrupt entry is logged and also falls
    back. Write failures are logged and never undo the in-memory change.
    """

    storage_key: str

    def __init__(
        self,
        kv: KeyValueStore,
        storage_key: str = STORAGE_KEY,
        defaults: Sequence[Metric] | None = None,
        clock: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self._kv = kv
        self.storage_key = storage_key
        self._clock = clock
        fallback = list(defaults) if defaults is not None else default_metrics()
        self._metrics: list[Metric] = self._load(fallback)

    def _load(self, fallback: list[Metric]) -> list[Metric]:
        try:
            payload = self._kv.get(self.storage_key)
        except PersistenceFailure as e:
            logger.error(f"Error loading metrics from store: {e}")
            return fallback
        if payload is None:
            return fallback
        try:
            metrics = self.parse(payload)
        except ValidationError as e:
            logger.error(f"Error loading metrics from store, using defaults: {e}")
            return fallback
        ids = [metric.id for metric in metrics]
        duplicates = sorted({metric_id for metric_id in ids if ids.count(metric_id) > 1})
        if duplicates:
            logger.error(f"Error loading metrics from store, duplicate ids {duplicates}; using defaults")
            return fallback
        return [
            metric.model_copy(update={"samples": _sorted_samples(metric.samples)})
            for metric in metrics
        ]

    def _save(self) -> None:
        try:
            self._kv.set(self.storage_key, self.dump())
        except PersistenceFailure as e:
            logger.error(f"Error saving metrics to store: {e}")

    def _index_of(self, metric_id: int) -> int:
        for index, metric in enumerate(self._metrics):
            if metric.id == metric_id:
                return index
        raise NotFound(metric_id)

    def next_id(self) -> int:
        return max((metric.id for metric in self._metrics), default=0) + 1

    def create_metric(self, name: str, base_value: float) -> Metric:
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput("Metric name must not be empty")
        metric = Metric(
            id=self.next_id(),
            name=name.strip(),
            base_value=_require_finite(base_value, "base_value"),
        )
        self._metrics.append(metric)
        logger.debug(f"Created metric {metric.id} ({metric.name})")
        self._save()
        return metric

    def delete_metric(self, metric_id: int) -> None:
        remaining = [metric for metric in self._metrics if metric.id != metric_id]
        if len(remaining) == len(self._metrics):
            return
        self._metrics = remaining
        logger.debug(f"Deleted metric {metric_id}")
        self._save()

    def append_sample(
        self,
        metric_id: int,
        value: float,
        date: dt.date | str | None = None,
    ) -> Metric:
        index = self._index_of(metric_id)
        sample_date = self._clock() if date is None else _coerce_date(date)
        sample = Sample(date=sample_date, value=_require_finite(value, "value"))
        current = self._metrics[index]
        updated = current.model_copy(
            update={
                "samples": _sorted_samples([*current.samples, sample]),
                "last_updated": sample.date,
            }
        )
        self._metrics[index] = updated
        self._save()
        return updated

    def get_metric(self, metric_id: int) -> Metric:
        return self._metrics[self._index_of(metric_id)]

    def list_metrics(self) -> list[Metric]:
        return list(self._metrics)

    def dump(self) -> str:
        return dump_metrics(self._metrics)

    @staticmethod
    def parse(payload: str | bytes) -> list[Metric]:
        return load_metrics(payload)
