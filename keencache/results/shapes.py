"""Result payload shapes returned by Keen IO analyses.

Keen wraps every analysis result as ``{"result": <payload>}``. The payload
takes one of four shapes, depending on whether the query was grouped
(``group_by``) and/or bucketed (``interval``):

    Scalar       42
    ItemList     [{"country": "NL", "result": 12}, ...]
    DaysScalar   [{"value": 42, "timeframe": {"start": ..., "end": ...}}, ...]
    DaysItems    [{"value": [<items>], "timeframe": {...}}, ...]

Each shape declares its ``ResultType`` tag and implements the
transformations that make sense for it. Transformations a shape does not
support raise the operation's error.
"""

import json
from enum import IntEnum
from typing import Annotated, Any, ClassVar, Generic, TypeVar, Union, cast

import pydantic
from pydantic import (
    AllowInfNan,
    BaseModel,
    RootModel,
    Strict,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)

from keencache.core.exceptions import AccumulationError, DecodeError, SelectionError

# Field holding the aggregate number in every grouped item
RESULT_FIELD = "result"

# NaN and Infinity are not valid JSON and never cached
FiniteFloat = Annotated[float, Strict(), AllowInfNan(False)]

Number = Union[StrictInt, FiniteFloat]
GroupValue = Union[StrictStr, StrictInt, FiniteFloat, StrictBool, None]
GroupKey = tuple[tuple[str, bool, Any], ...]

# Select predicate value: Keen group values are compared as strings or integers
PredicateValue = Union[str, int]

T = TypeVar("T")


class ResultType(IntEnum):
    """Shape discriminator exposed to callers that cannot see the payload type.

    Values are stable; they cross the FFI boundary as plain integers.
    """

    SCALAR = 0
    ITEMS = 1
    DAYS_SCALAR = 2
    DAYS_ITEMS = 3


class ResultShape:
    """Capability interface shared by the four payload shapes."""

    tag: ClassVar[ResultType]

    def accumulate(self) -> "ResultShape":
        """Collapse this payload into a single aggregate of a related shape."""
        raise AccumulationError(f"{type(self).__name__} cannot be accumulated")

    def select(self, field: str, value: PredicateValue) -> "ResultShape":
        """Project this payload onto the entry whose `field` equals `value`."""
        raise SelectionError(f"{type(self).__name__} does not support select")

    @classmethod
    def decode(cls, body: str | bytes) -> Any:
        """Decode a Keen response body ``{"result": ...}`` into this shape.

        Raises:
            DecodeError: body is not JSON or does not match the shape
        """
        try:
            document = json.loads(body)
        except ValueError as e:
            raise DecodeError(f"Result body is not valid JSON: {e}") from e

        if not isinstance(document, dict) or RESULT_FIELD not in document:
            raise DecodeError(
                f"Result body has no {RESULT_FIELD!r} field",
                details={"shape": cls.__name__},
            )

        try:
            return cls.model_validate(document[RESULT_FIELD])  # type: ignore[attr-defined]
        except pydantic.ValidationError as e:
            raise DecodeError(
                f"Result does not match shape {cls.__name__}: {e.error_count()} errors",
                details={"shape": cls.__name__, "errors": e.errors()},
            ) from e

    def encode(self) -> str:
        """Serialize as a Keen response body ``{"result": ...}``."""
        payload = self.model_dump(mode="json")  # type: ignore[attr-defined]
        return json.dumps({RESULT_FIELD: payload}, separators=(",", ":"))


class Scalar(ResultShape, RootModel[Number]):
    """A single aggregate number."""

    tag: ClassVar[ResultType] = ResultType.SCALAR


class ItemList(ResultShape, RootModel[list[dict[str, GroupValue]]]):
    """Grouped result: one item per group, each with a numeric ``result``."""

    tag: ClassVar[ResultType] = ResultType.ITEMS

    @field_validator("root")
    @classmethod
    def items_have_result(
        cls, items: list[dict[str, GroupValue]]
    ) -> list[dict[str, GroupValue]]:
        for index, item in enumerate(items):
            value = item.get(RESULT_FIELD)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"item {index} has no numeric {RESULT_FIELD!r}")
        return items

    def accumulate(self) -> Scalar:
        """Sum the ``result`` of every group.

        Raises:
            AccumulationError: the list is empty
        """
        if not self.root:
            raise AccumulationError("Cannot accumulate an empty item list")
        return Scalar(sum(_result_of(item) for item in self.root))

    def select(self, field: str, value: PredicateValue) -> Scalar:
        """Return the ``result`` of the one item whose `field` equals `value`.

        Raises:
            SelectionError: no item matches, or more than one does
        """
        return Scalar(_select_one(self.root, field, value))

    def group_key(self, item: dict[str, GroupValue]) -> GroupKey:
        # bools are tagged so that True and 1 stay distinct groups
        return tuple(
            sorted((k, isinstance(v, bool), v) for k, v in item.items() if k != RESULT_FIELD)
        )


class Timeframe(BaseModel):
    """Bucket boundaries as returned by Keen (ISO-8601 strings)."""

    start: StrictStr
    end: StrictStr


class Day(BaseModel, Generic[T]):
    """One interval bucket of a series."""

    value: T
    timeframe: Timeframe


class DaysScalar(ResultShape, RootModel[list[Day[Number]]]):
    """Interval series of single numbers."""

    tag: ClassVar[ResultType] = ResultType.DAYS_SCALAR

    def accumulate(self) -> Scalar:
        """Sum the value of every bucket.

        Raises:
            AccumulationError: the series is empty
        """
        if not self.root:
            raise AccumulationError("Cannot accumulate an empty series")
        return Scalar(sum(day.value for day in self.root))


class DaysItems(ResultShape, RootModel[list[Day[ItemList]]]):
    """Interval series of grouped results."""

    tag: ClassVar[ResultType] = ResultType.DAYS_ITEMS

    def accumulate(self) -> ItemList:
        """Merge every bucket into one item list.

        Items with identical group fields are combined by summing their
        ``result``. Groups keep the order in which they first appear.

        Raises:
            AccumulationError: the series is empty
        """
        if not self.root:
            raise AccumulationError("Cannot accumulate an empty series")

        merged: dict[GroupKey, dict[str, GroupValue]] = {}
        for day in self.root:
            for item in day.value.root:
                key = day.value.group_key(item)
                if key in merged:
                    merged[key][RESULT_FIELD] = _result_of(merged[key]) + _result_of(
                        item
                    )
                else:
                    merged[key] = dict(item)
        return ItemList(list(merged.values()))

    def select(self, field: str, value: PredicateValue) -> DaysScalar:
        """Select one group in every bucket, keeping the bucket timeframes.

        A bucket without a matching item contributes 0: the group had no
        events in that interval.

        Raises:
            SelectionError: no bucket has a match, or a bucket has several
        """
        days: list[Day[Number]] = []
        matched = False
        for day in self.root:
            matches = _matching(day.value.root, field, value)
            if len(matches) > 1:
                raise _ambiguous(field, value, len(matches), day.timeframe.start)
            if matches:
                matched = True
            result = _result_of(matches[0]) if matches else 0
            days.append(Day[Number](value=result, timeframe=day.timeframe))

        if not matched:
            raise _no_match(field, value)
        return DaysScalar(days)


SHAPES: dict[ResultType, type[ResultShape]] = {
    ResultType.SCALAR: Scalar,
    ResultType.ITEMS: ItemList,
    ResultType.DAYS_SCALAR: DaysScalar,
    ResultType.DAYS_ITEMS: DaysItems,
}


def shape_for(tag: ResultType | int) -> type[ResultShape]:
    """Return the shape class for a type tag (or its integer value)."""
    return SHAPES[ResultType(tag)]


def _result_of(item: dict[str, GroupValue]) -> int | float:
    # ItemList validation guarantees a numeric result
    return cast(Union[int, float], item[RESULT_FIELD])


def _matching(
    items: list[dict[str, GroupValue]], field: str, value: PredicateValue
) -> list[dict[str, GroupValue]]:
    return [item for item in items if field in item and _same(item[field], value)]


def _same(group_value: GroupValue, value: PredicateValue) -> bool:
    return group_value == value and isinstance(group_value, bool) == isinstance(value, bool)


def _select_one(
    items: list[dict[str, GroupValue]], field: str, value: PredicateValue
) -> int | float:
    matches = _matching(items, field, value)
    if not matches:
        raise _no_match(field, value)
    if len(matches) > 1:
        raise _ambiguous(field, value, len(matches))
    return _result_of(matches[0])


def _no_match(field: str, value: PredicateValue) -> SelectionError:
    return SelectionError(
        f"No entry with {field} == {value!r}",
        details={"field": field, "value": value, "matches": 0},
    )


def _ambiguous(
    field: str, value: PredicateValue, count: int, bucket: str | None = None
) -> SelectionError:
    details: dict[str, Any] = {"field": field, "value": value, "matches": count}
    if bucket is not None:
        details["bucket"] = bucket
    return SelectionError(
        f"{count} entries with {field} == {value!r}, expected exactly one",
        details=details,
    )
