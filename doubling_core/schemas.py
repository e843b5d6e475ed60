from __future__ import annotations

import datetime as dt
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")


class BaseSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class Sample(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date: dt.date
    value: float = Field(allow_inf_nan=False)


class Metric(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(ge=0)
    name: str
    base_value: float = Field(alias="baseValue", allow_inf_nan=False)
    samples: tuple[Sample, ...] = Field(default_factory=tuple, alias="values")
    last_updated: dt.date | None = Field(default=None, alias="lastUpdated")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @property
    def current_value(self) -> float | None:
        if not self.samples:
            return None
        return self.samples[-1].value

    def series(self) -> list[tuple[dt.date, float]]:
        """Chart points for this metric; empty until there are two samples."""
        if len(self.samples) < 2:
            return []
        return [(sample.date, sample.value) for sample in self.samples]


class RateStatus(str, Enum):
    INSUFFICIENT_DATA = "insufficient data"
    NOT_YET_DOUBLED = "not yet doubled"


class DoublingRate(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    days_per_doubling: float
    months_per_doubling: float
    projected_next_double_date: dt.date


_METRIC_LIST = TypeAdapter(list[Metric])


def dump_metrics(metrics: Sequence[Metric]) -> str:
    return _METRIC_LIST.dump_json(list(metrics), by_alias=True).decode("utf-8")


def load_metrics(payload: str | bytes) -> list[Metric]:
    return _METRIC_LIST.validate_json(payload)
