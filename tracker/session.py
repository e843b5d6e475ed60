"""Session that owns one MetricStore and keeps derived doubling rates current."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass

from doubling_core.errors import InvalidInput, PersistenceFailure
from doubling_core.estimator import describe, estimate
from doubling_core.schemas import DoublingRate, Metric, RateStatus
from store.kv import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from store.repository import MetricStore

from .config import TrackerConfig

logger = logging.getLogger(__name__)


def _open_backend(db_path: str) -> KeyValueStore:
    try:
        return SQLiteKeyValueStore(db_path)
    except PersistenceFailure as e:
        logger.error(f"{e}; changes will not be saved")
        return MemoryKeyValueStore()


@dataclass(frozen=True)
class MetricOverview:
    id: int
    name: str
    base_value: float
    current_value: float | None
    last_updated: dt.date | None
    sample_count: int
    rate: DoublingRate | RateStatus | None
    rate_text: str


class TrackerSession:
    """Route every mutation through the store, then recompute all rates.

    Rates are rebuilt from scratch after each change. A metric whose samples
    cannot be estimated (non-positive first value) has no entry in ``rates``;
    the reason is kept in ``rate_errors`` instead.
    """

    def __init__(self, store: MetricStore) -> None:
        self.store = store
        self.rates: dict[int, DoublingRate | RateStatus] = {}
        self.rate_errors: dict[int, str] = {}
        self.refresh()

    @classmethod
    def from_config(
        cls,
        config: TrackerConfig,
        kv: KeyValueStore | None = None,
    ) -> "TrackerSession":
        backend = kv if kv is not None else _open_backend(config.db_path)
        store = MetricStore(
            backend,
            storage_key=config.storage_key,
            defaults=config.initial_metrics(),
        )
        return cls(store)

    def refresh(self) -> None:
        rates: dict[int, DoublingRate | RateStatus] = {}
        errors: dict[int, str] = {}
        for metric in self.store.list_metrics():
            try:
                rates[metric.id] = estimate(metric.samples)
            except InvalidInput as e:
                logger.warning(f"Cannot estimate doubling rate for {metric.name}: {e}")
                errors[metric.id] = str(e)
        self.rates = rates
        self.rate_errors = errors

    def add_metric(self, name: str, base_value: float) -> Metric:
        metric = self.store.create_metric(name, base_value)
        self.refresh()
        return metric

    def remove_metric(self, metric_id: int) -> None:
        self.store.delete_metric(metric_id)
        self.refresh()

    def record_value(
        self,
        metric_id: int,
        value: float,
        date: dt.date | str | None = None,
    ) -> Metric:
        metric = self.store.append_sample(metric_id, value, date)
        self.refresh()
        return metric

    def rate_text(self, metric_id: int) -> str:
        if metric_id in self.rate_errors:
            return self.rate_errors[metric_id]
        return describe(self.rates[metric_id])

    def overview(self) -> list[MetricOverview]:
        return [
            MetricOverview(
                id=metric.id,
                name=metric.name,
                base_value=metric.base_value,
                current_value=metric.current_value,
                last_updated=metric.last_updated,
                sample_count=len(metric.samples),
                rate=self.rates.get(metric.id),
                rate_text=self.rate_text(metric.id),
            )
            for metric in self.store.list_metrics()
        ]
