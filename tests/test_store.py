import json
import logging
from datetime import date

import pytest
from pydantic import ValidationError

from doubling_core.errors import InvalidInput, NotFound, PersistenceFailure
from doubling_core.schemas import Metric, Sample
from store.kv import MemoryKeyValueStore
from store.repository import STORAGE_KEY, MetricStore


class FailingKeyValueStore:
    """Backend whose reads and writes always fail."""

    def __init__(self) -> None:
        self.set_calls = 0

    def get(self, key: str) -> str | None:
        raise PersistenceFailure("disk unavailable")

    def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        raise PersistenceFailure("disk full")


def _empty_store(kv: MemoryKeyValueStore | None = None) -> MetricStore:
    return MetricStore(kv or MemoryKeyValueStore(), defaults=[])


def test_defaults_used_when_nothing_persisted() -> None:
    store = MetricStore(MemoryKeyValueStore())

    names = [(metric.id, metric.name, metric.base_value) for metric in store.list_metrics()]

    assert names == [(1, "Followers", 100), (2, "Revenue", 1000), (3, "Customers", 10)]
    assert all(metric.samples == () for metric in store.list_metrics())


def test_create_metric_assigns_increasing_ids() -> None:
    store = MetricStore(MemoryKeyValueStore())

    metric = store.create_metric("Stars", 5)

    assert metric.id == 4
    assert metric.samples == ()
    assert metric.last_updated is None
    assert metric.id > max(m.id for m in store.list_metrics() if m is not metric)


def test_create_metric_on_empty_store_starts_at_one() -> None:
    store = _empty_store()
    assert store.create_metric("Followers", 100).id == 1


def test_id_follows_current_maximum_after_delete() -> None:
    store = _empty_store()
    store.create_metric("a", 1)
    store.create_metric("b", 1)
    third = store.create_metric("c", 1)

    store.delete_metric(2)

    assert store.create_metric("d", 1).id == third.id + 1


@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
def test_create_metric_rejects_blank_name(name: str) -> None:
    kv = MemoryKeyValueStore()
    store = _empty_store(kv)

    with pytest.raises(InvalidInput):
        _ = store.create_metric(name, 100)

    assert store.list_metrics() == []
    assert kv.get(STORAGE_KEY) is None


def test_create_metric_rejects_non_finite_base_value() -> None:
    store = _empty_store()
    with pytest.raises(InvalidInput):
        _ = store.create_metric("Followers", float("inf"))


def test_delete_missing_metric_is_noop() -> None:
    kv = MemoryKeyValueStore()
    store = MetricStore(kv)
    before = store.list_metrics()

    store.delete_metric(99)

    assert store.list_metrics() == before
    assert kv.get(STORAGE_KEY) is None


def test_delete_keeps_remaining_order() -> None:
    store = MetricStore(MemoryKeyValueStore())

    store.delete_metric(2)

    assert [metric.name for metric in store.list_metrics()] == ["Followers", "Customers"]


def test_append_sample_keeps_samples_sorted() -> None:
    store = MetricStore(MemoryKeyValueStore())
    days = ["2024-03-01", "2024-01-01", "2024-02-15", "2024-01-10"]

    for index, day in enumerate(days):
        metric = store.append_sample(1, index, day)
        sample_days = [sample.date for sample in metric.samples]
        assert sample_days == sorted(sample_days)

    assert [sample.value for sample in store.get_metric(1).samples] == [1, 3, 2, 0]


def test_same_day_samples_keep_insertion_order() -> None:
    store = MetricStore(MemoryKeyValueStore())

    store.append_sample(1, 10, "2024-01-02")
    store.append_sample(1, 20, "2024-01-01")
    store.append_sample(1, 30, "2024-01-02")

    assert [sample.value for sample in store.get_metric(1).samples] == [20, 10, 30]


def test_last_updated_is_appended_date_not_latest() -> None:
    store = MetricStore(MemoryKeyValueStore())

    store.append_sample(1, 100, "2024-05-01")
    metric = store.append_sample(1, 50, "2024-01-01")

    assert metric.last_updated == date(2024, 1, 1)
    assert metric.samples[-1].date == date(2024, 5, 1)


def test_append_sample_defaults_to_today() -> None:
    store = MetricStore(MemoryKeyValueStore(), clock=lambda: date(2026, 10, 19))

    metric = store.append_sample(2, 1200)

    assert metric.samples[0].date == date(2026, 10, 19)
    assert metric.last_updated == date(2026, 10, 19)


def test_append_sample_to_unknown_metric() -> None:
    store = MetricStore(MemoryKeyValueStore())
    with pytest.raises(NotFound):
        _ = store.append_sample(42, 10, "2024-01-01")


def test_append_sample_rejects_bad_input() -> None:
    store = MetricStore(MemoryKeyValueStore())
    with pytest.raises(InvalidInput):
        _ = store.append_sample(1, float("nan"), "2024-01-01")
    with pytest.raises(InvalidInput):
        _ = store.append_sample(1, 10, "01/02/2024")
    assert store.get_metric(1).samples == ()


def test_metric_id_zero_is_addressable() -> None:
    kv = MemoryKeyValueStore(
        {STORAGE_KEY: json.dumps([{"id": 0, "name": "Zero", "values": [], "baseValue": 1}])}
    )
    store = MetricStore(kv)

    metric = store.append_sample(0, 3, "2024-01-01")

    assert metric.id == 0
    assert len(metric.samples) == 1


def test_list_metrics_is_idempotent() -> None:
    store = MetricStore(MemoryKeyValueStore())
    store.append_sample(1, 1, "2024-01-01")

    assert store.list_metrics() == store.list_metrics()


def test_state_round_trips_through_store() -> None:
    kv = MemoryKeyValueStore()
    store = MetricStore(kv)
    store.create_metric("Stars", 5)
    store.append_sample(4, 5, "2024-01-01")
    store.append_sample(4, 12, "2024-02-01")
    store.delete_metric(1)

    reloaded = MetricStore(kv)

    assert reloaded.list_metrics() == store.list_metrics()


def test_persisted_layout() -> None:
    kv = MemoryKeyValueStore()
    store = _empty_store(kv)
    store.create_metric("Followers", 100)
    store.append_sample(1, 120, "2024-01-01")

    payload = json.loads(kv.get(STORAGE_KEY) or "null")

    assert payload == [
        {
            "id": 1,
            "name": "Followers",
            "baseValue": 100.0,
            "values": [{"date": "2024-01-01", "value": 120.0}],
            "lastUpdated": "2024-01-01",
        }
    ]


def test_corrupt_state_falls_back_to_defaults(caplog: pytest.LogCaptureFixture) -> None:
    kv = MemoryKeyValueStore({STORAGE_KEY: "{not json"})

    with caplog.at_level(logging.ERROR, logger="store.repository"):
        store = MetricStore(kv)

    assert [metric.name for metric in store.list_metrics()] == [
        "Followers",
        "Revenue",
        "Customers",
    ]
    assert any("Error loading metrics" in record.message for record in caplog.records)


def test_write_failure_is_logged_and_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    kv = FailingKeyValueStore()

    with caplog.at_level(logging.ERROR, logger="store.repository"):
        store = MetricStore(kv, defaults=[Metric(id=1, name="Followers", base_value=100)])
        metric = store.append_sample(1, 150, "2024-01-01")

    assert kv.set_calls == 1
    assert store.get_metric(1) == metric
    assert any("Error saving metrics" in record.message for record in caplog.records)
    assert any("Error loading metrics" in record.message for record in caplog.records)


def test_listed_metrics_cannot_change_store_state() -> None:
    store = MetricStore(MemoryKeyValueStore())
    store.append_sample(1, 200, "2024-02-01")
    listed = store.list_metrics()[0]

    with pytest.raises(ValidationError):
        listed.base_value = -1  # type: ignore[misc]
    with pytest.raises(AttributeError):
        listed.samples.insert(0, Sample(date=date(2030, 1, 1), value=1))  # type: ignore[attr-defined]

    stored = store.get_metric(1)
    assert stored.base_value == 100
    assert [sample.date for sample in stored.samples] == [date(2024, 2, 1)]


def test_duplicate_ids_fall_back_to_defaults(caplog: pytest.LogCaptureFixture) -> None:
    payload = json.dumps(
        [
            {"id": 5, "name": "Stars", "values": [], "baseValue": 1},
            {"id": 5, "name": "Forks", "values": [], "baseValue": 2},
        ]
    )
    kv = MemoryKeyValueStore({STORAGE_KEY: payload})

    with caplog.at_level(logging.ERROR, logger="store.repository"):
        store = MetricStore(kv)

    assert [metric.id for metric in store.list_metrics()] == [1, 2, 3]
    assert any("duplicate ids [5]" in record.message for record in caplog.records)
