"""Aggregations that combine the values ending up in the same cell.

When casting long data into wide data, each cell of the
result is identified by the identifier columns and the key.
In tidy data there is exactly one value for each cell, but
real data frequently has more than one::

    Name, FY, Dollars
    NASA, FY2000, 10
    NASA, FY2000, 2
    NOAA, FY2000, 5

Casting by ``FY`` would put both ``10`` and ``2`` in the
``NASA/FY2000`` cell, the aggregation decides how to combine
them. For example with :class:`SumAggregation` we would get::

    Name, FY2000
    NASA, 12
    NOAA, 5
"""

import abc
from typing import Type

import pyarrow as pa
import pyarrow.compute as pc

__all__ = (
    "Aggregation",
    "FirstAggregation",
    "LastAggregation",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "CountAggregation",
    "AGGREGATIONS",
    "get_aggregation",
)


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation receives all the values for a cell
    and must reduce them to a single scalar value.
    """

    def __str__(self) -> str:
        return f"{self.__class__.__name__}()"

    __repr__ = __str__

    @abc.abstractmethod
    def __call__(self, values: pa.Array) -> pa.Scalar: ...

    def result_type(self, value_type: pa.DataType) -> pa.DataType:
        """The type of the aggregated values given the type of the input.

        Computed by aggregating an empty array, so that the
        result type is always the one pyarrow would pick.
        """
        return self(pa.array([], type=value_type)).type


class FirstAggregation(Aggregation):
    """Keep the first value found for the cell, in input order."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        if len(values) == 0:
            return pa.scalar(None, type=values.type)
        return values[0]


class LastAggregation(Aggregation):
    """Keep the last value found for the cell, in input order."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        if len(values) == 0:
            return pa.scalar(None, type=values.type)
        return values[-1]


class SumAggregation(Aggregation):
    """Compute the sum of the values."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        return pc.sum(values)


class MinAggregation(Aggregation):
    """Compute the min of the values."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        return pc.min(values)


class MaxAggregation(Aggregation):
    """Compute the max of the values."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        return pc.max(values)


class MeanAggregation(Aggregation):
    """Compute the mean of the values."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        return pc.mean(values)


class CountAggregation(Aggregation):
    """Count how many non missing values ended up in the cell."""

    def __call__(self, values: pa.Array) -> pa.Scalar:
        return pc.count(values)


AGGREGATIONS: dict[str, Type[Aggregation]] = {
    "first": FirstAggregation,
    "last": LastAggregation,
    "sum": SumAggregation,
    "min": MinAggregation,
    "max": MaxAggregation,
    "mean": MeanAggregation,
    "count": CountAggregation,
}


def get_aggregation(
    aggregation: Aggregation | Type[Aggregation] | str | None,
) -> Aggregation | None:
    """Resolve an aggregation from its name, class or instance.

    >>> get_aggregation("sum")
    SumAggregation()
    >>> get_aggregation(FirstAggregation)
    FirstAggregation()
    >>> get_aggregation(None) is None
    True
    """
    if aggregation is None or isinstance(aggregation, Aggregation):
        return aggregation
    if isinstance(aggregation, type) and issubclass(aggregation, Aggregation):
        return aggregation()
    try:
        return AGGREGATIONS[aggregation]()
    except (KeyError, TypeError):
        raise ValueError(
            f"Unknown aggregation: {aggregation!r}, "
            f"expected one of {', '.join(AGGREGATIONS)}"
        ) from None
