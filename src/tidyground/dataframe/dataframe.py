"""The Dataframe object itself."""
from typing import Any, Self, Type

import pyarrow as pa

from ..compute import (
  BindColumnsNode,
  BindRowsNode,
  CastNode,
  CSVDataSource,
  JoinNode,
  MeltNode,
  ParquetDataSource,
  PyArrowTableDataSource,
)
from ..compute.aggregate import Aggregation
from ..compute.base import QueryPlanNode
from ..utils.tabulate import tabulate


class Dataframe:
  """Data structure that handles data in rows and columns.

  The Dataframe object allows to represent in-memory data
  and reshape it.

  The tidyground dataframe object is lazy, which means that
  any transformation will be applied only when the
  ``.collect()`` method will be invoked and no data is kept
  in memory until that moment (unless it already was).

  >>> import pyarrow as pa
  >>> df = Dataframe(pa.table({"Name": ["NASA"], "FY2000": [10], "FY2001": [12]}))
  >>> df.melt(["Name"], "FY", "Dollars").to_arrow().num_rows
  2
  """
  def __init__(self, node_or_table: QueryPlanNode|pa.Table|pa.RecordBatch) -> None:
    """
    :param node_or_table: A compute engine node expected to emit
                          the data for the dataframe or a `pyarrow.Table`.
    """
    if isinstance(node_or_table, (pa.Table, pa.RecordBatch)):
      node_or_table = PyArrowTableDataSource(node_or_table)

    if not isinstance(node_or_table, QueryPlanNode):
      raise ValueError("Invalid input, expected a QueryPlanNode or a PyArrow Table")

    self.node = node_or_table

  def __str__(self) -> str:
    return tabulate(self.to_arrow())

  @classmethod
  def open_csv(cls, filename: str) -> Self:
    """Open a CSV file and create a Dataframe out of its data.

    :param filename: The path to a local CSV file.
    """
    return cls(CSVDataSource(filename))

  @classmethod
  def open_parquet(cls, filename: str) -> Self:
    """Open a Parquet file and create a Dataframe out of its data.

    :param filename: The path to a local Parquet file.
    """
    return cls(ParquetDataSource(filename))

  def melt(self, id_columns: list[str], key_name: str, value_name: str,
           measure_columns: list[str]|None = None, drop_missing: bool = False) -> Self:
    """Turn the wide data into long data and return a new Dataframe.

    See :class:`tidyground.compute.MeltNode` for details.
    """
    return self.__class__(MeltNode(
      id_columns, key_name, value_name, self.node,
      measure_columns=measure_columns, drop_missing=drop_missing
    ))

  def cast(self, id_columns: list[str]|None, key_column: str, value_column: str,
           aggregation: Aggregation|Type[Aggregation]|str|None = None,
           fill_value: Any = None, column_order: str = "first-seen") -> Self:
    """Turn the long data into wide data and return a new Dataframe.

    See :class:`tidyground.compute.CastNode` for details.
    """
    return self.__class__(CastNode(
      id_columns, key_column, value_column, self.node,
      aggregation=aggregation, fill_value=fill_value, column_order=column_order
    ))

  def bind_rows(self, *others: Self, strict: bool = True) -> Self:
    """Append the rows of the other dataframes after the rows of this one."""
    return self.__class__(BindRowsNode(self.node, *(o.node for o in others), strict=strict))

  def bind_columns(self, *others: Self) -> Self:
    """Append the columns of the other dataframes after the columns of this one."""
    return self.__class__(BindColumnsNode(self.node, *(o.node for o in others)))

  def join(self, other: Self, left_key: str, right_key: str|None = None, how: str = "inner") -> Self:
    """Join this dataframe with another one.

    :param other: The dataframe to join with, this one will be the left side.
    :param left_key: The column to join on in this dataframe.
    :param right_key: The column to join on in the other dataframe,
                      when omitted it's the same as ``left_key``.
    :param how: The type of join, one of ``inner``, ``left``, ``right``, ``full``.
    """
    return self.__class__(JoinNode(left_key, right_key or left_key, self.node, other.node, how=how))

  def collect(self) -> Self:
    """Collect all data of the dataframe in memory.

    Returns a new Dataframe that has all data from the
    previous dataframe eagerly loaded in memory.
    """
    return self.__class__(self.node.to_table())

  def to_arrow(self) -> pa.Table:
    """Collect all the data and return a pyarrow.Table"""
    return self.node.to_table()
