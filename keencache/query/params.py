"""Keen IO query parameters.

These models describe what to compute: the analysis (``Metric``), the event
collection, the time range (``TimeFrame``), optional ``Filter`` clauses and
an optional bucketing ``Interval``. ``QueryRequest`` renders them into the
query-string parameters of the Keen IO analysis endpoint.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, cast

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from keencache.core.exceptions import ValidationError


class AnalysisType(str, Enum):
    COUNT = "count"
    COUNT_UNIQUE = "count_unique"
    MINIMUM = "minimum"
    MAXIMUM = "maximum"
    SUM = "sum"
    AVERAGE = "average"
    MEDIAN = "median"
    PERCENTILE = "percentile"
    SELECT_UNIQUE = "select_unique"


class Interval(str, Enum):
    """Bucket size for series results."""

    MINUTELY = "minutely"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class FilterOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    EXISTS = "exists"
    IN = "in"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


def _invalid(message: str, **details: Any) -> ValidationError:
    return ValidationError(message, details=details)


def _translate(model: str, error: pydantic.ValidationError) -> ValidationError:
    first = error.errors()[0]
    where = ".".join(str(part) for part in first["loc"])
    return ValidationError(
        f"Invalid {model}: {where + ': ' if where else ''}{first['msg']}",
        details={"model": model, "errors": error.errors()},
    )


class KeenParams(BaseModel):
    """Base for query parameter models.

    Fields are validated on construction and on assignment; pydantic
    errors surface as keencache ``ValidationError``.
    """

    model_config = ConfigDict(validate_assignment=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except pydantic.ValidationError as e:
            raise _translate(type(self).__name__, e) from e

    def __setattr__(self, name: str, value: Any) -> None:
        try:
            super().__setattr__(name, value)
        except pydantic.ValidationError as e:
            raise _translate(type(self).__name__, e) from e


class Metric(KeenParams):
    """Analysis to run, with the property it aggregates.

    Example:
        >>> Metric.count()
        >>> Metric.sum("price")
        >>> Metric.percentile_of("load_time", 95)
    """

    analysis_type: AnalysisType
    target_property: str | None = None
    percentile: float | None = Field(default=None, gt=0, le=100)

    @model_validator(mode="after")
    def check_arguments(self) -> "Metric":
        if self.analysis_type is AnalysisType.COUNT:
            if self.target_property is not None:
                raise _invalid("count does not take a target property")
        elif not self.target_property:
            raise _invalid(
                f"{self.analysis_type.value} requires a target property",
                analysis_type=self.analysis_type.value,
            )
        if (self.analysis_type is AnalysisType.PERCENTILE) != (
            self.percentile is not None
        ):
            raise _invalid("percentile value is required by, and only by, percentile")
        return self

    @classmethod
    def count(cls) -> "Metric":
        return cls(analysis_type=AnalysisType.COUNT)

    @classmethod
    def count_unique(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.COUNT_UNIQUE, target_property=target_property)

    @classmethod
    def minimum(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.MINIMUM, target_property=target_property)

    @classmethod
    def maximum(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.MAXIMUM, target_property=target_property)

    @classmethod
    def sum(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.SUM, target_property=target_property)

    @classmethod
    def average(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.AVERAGE, target_property=target_property)

    @classmethod
    def median(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.MEDIAN, target_property=target_property)

    @classmethod
    def percentile_of(cls, target_property: str, percentile: float) -> "Metric":
        return cls(
            analysis_type=AnalysisType.PERCENTILE,
            target_property=target_property,
            percentile=percentile,
        )

    @classmethod
    def select_unique(cls, target_property: str) -> "Metric":
        return cls(analysis_type=AnalysisType.SELECT_UNIQUE, target_property=target_property)


class TimeFrame(KeenParams):
    """Relative (``this_7_days``) or absolute (start/end) time range."""

    relative: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def check_form(self) -> "TimeFrame":
        absolute = self.start is not None or self.end is not None
        if self.relative is not None and absolute:
            raise _invalid("timeframe is either relative or absolute, not both")
        if self.relative is None:
            if self.start is None or self.end is None:
                raise _invalid("absolute timeframe needs both start and end")
            if self.start >= self.end:
                raise _invalid(
                    "timeframe start must be before end",
                    start=self.start.isoformat(),
                    end=self.end.isoformat(),
                )
        elif not self.relative.strip():
            raise _invalid("relative timeframe cannot be empty")
        return self

    @classmethod
    def of(cls, relative: str) -> "TimeFrame":
        return cls(relative=relative)

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "TimeFrame":
        return cls(start=start, end=end)

    def to_param(self) -> str:
        if self.relative is not None:
            return self.relative
        start, end = cast(datetime, self.start), cast(datetime, self.end)
        return json.dumps({"start": start.isoformat(), "end": end.isoformat()})


class Filter(KeenParams):
    """One ``property_name operator property_value`` clause."""

    property_name: str = Field(..., min_length=1)
    operator: FilterOperator
    property_value: Any

    @classmethod
    def eq(cls, name: str, value: Any) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.EQ, property_value=value)

    @classmethod
    def ne(cls, name: str, value: Any) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.NE, property_value=value)

    @classmethod
    def lt(cls, name: str, value: Any) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.LT, property_value=value)

    @classmethod
    def lte(cls, name: str, value: Any) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.LTE, property_value=value)

    @classmethod
    def gt(cls, name: str, value: Any) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.GT, property_value=value)

    @classmethod
    def gte(cls, name: str, value: Any) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.GTE, property_value=value)

    @classmethod
    def exists(cls, name: str, value: bool = True) -> "Filter":
        return cls(
            property_name=name, operator=FilterOperator.EXISTS, property_value=value
        )

    @classmethod
    def isin(cls, name: str, values: list[Any]) -> "Filter":
        return cls(property_name=name, operator=FilterOperator.IN, property_value=values)

    @classmethod
    def contains(cls, name: str, value: str) -> "Filter":
        return cls(
            property_name=name, operator=FilterOperator.CONTAINS, property_value=value
        )

    @classmethod
    def not_contains(cls, name: str, value: str) -> "Filter":
        return cls(
            property_name=name,
            operator=FilterOperator.NOT_CONTAINS,
            property_value=value,
        )


class QueryRequest(KeenParams):
    """Everything the executor needs to run one analysis."""

    metric: Metric
    collection: str = Field(..., min_length=1)
    timeframe: TimeFrame
    group_by: list[str] = Field(default_factory=list)
    filters: list[Filter] = Field(default_factory=list)
    interval: Interval | None = None
    max_age: int | None = Field(default=None, ge=0)

    def to_params(self) -> dict[str, str]:
        """Render as Keen IO query-string parameters."""
        params: dict[str, str] = {
            "event_collection": self.collection,
            "timeframe": self.timeframe.to_param(),
        }
        if self.metric.target_property is not None:
            params["target_property"] = self.metric.target_property
        if self.metric.percentile is not None:
            params["percentile"] = f"{self.metric.percentile:g}"
        if len(self.group_by) == 1:
            params["group_by"] = self.group_by[0]
        elif self.group_by:
            params["group_by"] = json.dumps(self.group_by)
        if self.filters:
            params["filters"] = json.dumps(
                [f.model_dump(mode="json") for f in self.filters]
            )
        if self.interval is not None:
            params["interval"] = self.interval.value
        if self.max_age is not None:
            params["max_age"] = str(self.max_age)
        return params
