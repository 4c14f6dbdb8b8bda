"""Reshaping functions working directly on Arrow tables.

The functions in this module wrap the nodes of the
:mod:`tidyground.compute` engine for the cases where
the data is already in memory and there is no plan to build.

Each function accepts :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch`
objects and returns a new :class:`pyarrow.Table`, the inputs are never modified.

>>> import pyarrow as pa
>>> budget = pa.table({"Name": ["NASA"], "FY2000": [10], "FY2001": [12]})
>>> long = melt(budget, ["Name"], "FY", "Dollars")
>>> long.column_names
['Name', 'FY', 'Dollars']
>>> cast(long, ["Name"], "FY", "Dollars").column_names
['Name', 'FY2000', 'FY2001']
"""

from typing import Any, Type

import pyarrow as pa

from .compute import (
    BindColumnsNode,
    BindRowsNode,
    CastNode,
    JoinNode,
    MeltNode,
    PyArrowTableDataSource,
)
from .compute.aggregate import Aggregation

TableLike = pa.Table | pa.RecordBatch

__all__ = ("melt", "cast", "bind_rows", "bind_columns", "join")


def melt(
    table: TableLike,
    id_columns: list[str],
    key_name: str,
    value_name: str,
    measure_columns: list[str] | None = None,
    drop_missing: bool = False,
) -> pa.Table:
    """Turn wide data into long data, see :class:`tidyground.compute.MeltNode`."""
    return MeltNode(
        id_columns,
        key_name,
        value_name,
        PyArrowTableDataSource(table),
        measure_columns=measure_columns,
        drop_missing=drop_missing,
    ).to_table()


def cast(
    table: TableLike,
    id_columns: list[str] | None,
    key_column: str,
    value_column: str,
    aggregation: Aggregation | Type[Aggregation] | str | None = None,
    fill_value: Any = None,
    column_order: str = "first-seen",
) -> pa.Table:
    """Turn long data into wide data, see :class:`tidyground.compute.CastNode`."""
    return CastNode(
        id_columns,
        key_column,
        value_column,
        PyArrowTableDataSource(table),
        aggregation=aggregation,
        fill_value=fill_value,
        column_order=column_order,
    ).to_table()


def bind_rows(*tables: TableLike, strict: bool = True) -> pa.Table:
    """Stack the rows of the tables, see :class:`tidyground.compute.BindRowsNode`."""
    return BindRowsNode(
        *(PyArrowTableDataSource(t) for t in tables), strict=strict
    ).to_table()


def bind_columns(*tables: TableLike) -> pa.Table:
    """Put the tables side by side, see :class:`tidyground.compute.BindColumnsNode`."""
    return BindColumnsNode(*(PyArrowTableDataSource(t) for t in tables)).to_table()


def join(
    left: TableLike,
    right: TableLike,
    left_key: str,
    right_key: str,
    how: str = "inner",
) -> pa.Table:
    """Join two tables on a key, see :class:`tidyground.compute.JoinNode`."""
    return JoinNode(
        left_key,
        right_key,
        PyArrowTableDataSource(left),
        PyArrowTableDataSource(right),
        how=how,
    ).to_table()
