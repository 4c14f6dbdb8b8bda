"""The TidyGround reshaping engine

The engine defines the in-memory format for reshaping
plans and the plan nodes supported.

The engine is tightly bound to Apache Arrow,
thus the engine will expect to always deal with
:class:`pyarrow.RecordBatch` and emit a new RecordBatch
as the result of the node execution.

This allows to easily build reshaping pipelines like::

    (RecordBatch)-->Node1--(RecordBatch)-->Node2--(RecordBatch)-->...

The plan nodes themselves are in charge of their execution,
this keeps the behavior near to the node and thus makes easy to
know how a Node is actually executed without having to look around too much.

Building a plan requires to combine the nodes that we want
to be executed starting with one or more ``DataSource`` nodes as the
leafs of the plan:

>>> import pyarrow as pa
>>> data = pa.table({
...    "Name": pa.array(["NASA", "NOAA"]),
...    "FY2000": pa.array([10, 5]),
...    "FY2001": pa.array([12, 6]),
... })
>>>
>>> from tidyground.compute import CastNode, MeltNode, PyArrowTableDataSource
>>> melted = MeltNode(["Name"], "FY", "Dollars", PyArrowTableDataSource(data))
>>> melted.to_table().to_pydict()["Dollars"]
[10, 12, 5, 6]
>>> casted = CastNode(["Name"], "FY", "Dollars", melted)
>>> casted.to_table().equals(data)
True
"""

from .aggregate import (
    CountAggregation,
    FirstAggregation,
    LastAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)
from .bind import BindColumnsNode, BindRowsNode
from .cast import CastNode
from .datasources import (
    CSVDataSource,
    ParquetDataSource,
    PyArrowTableDataSource,
    open_datasource,
)
from .errors import (
    AmbiguousCast,
    EmptyMeasuredSet,
    InvalidColumnReference,
    ReshapeError,
    RowCountMismatch,
    SchemaMismatch,
)
from .join import JoinNode
from .melt import MeltNode

__all__ = (
    "CSVDataSource",
    "ParquetDataSource",
    "PyArrowTableDataSource",
    "open_datasource",
    "MeltNode",
    "CastNode",
    "BindRowsNode",
    "BindColumnsNode",
    "JoinNode",
    "FirstAggregation",
    "LastAggregation",
    "CountAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "SumAggregation",
    "ReshapeError",
    "InvalidColumnReference",
    "EmptyMeasuredSet",
    "AmbiguousCast",
    "SchemaMismatch",
    "RowCountMismatch",
)
