"""Base classes and interfaces for the reshaping engine.

This module defines the base components that are
necessary to represent a reshaping plan and execute it,
plus a few helpers shared by the nodes to deal with
column names and to materialize their results.
"""

import abc
from typing import Iterable, Iterator

import pyarrow as pa

from .errors import InvalidColumnReference


class QueryPlanNode(abc.ABC):
    """A node of a reshaping plan.

    The plan is represented as a tree
    of nodes. Each node is a step in the execution
    and all previous steps are children of the
    last one.

    For example a simple plan might involve
    loading data and melting it::

        CSVDataSource -> MeltNode(...)

    That would be a plan where the last step
    is melting, and the CSVDataSource is a child
    of the melt node.

    The number of children can be variable, some
    nodes like for example Joins or Binds will accept two or
    more child nodes that have to be combined together.

    Each Node accepts :class:`pyarrow.RecordBatch`
    data as its input and emits a new
    :class:`pyarrow.RecordBatch` as its output.

    For example a simple node that takes data
    and just forwards it as is after printing
    its content can be implemented as::

        class DebugDataNode(QueryPlanNode):
            def __init__(self, child):
                self.child = child

            def batches(self):
                for b in self.child.batches():
                    print(b)
                    yield b

            def __str__(self):
                return f"DebugDataNode()"
    """

    RecordBatchesGenerator = Iterator[pa.RecordBatch]

    @abc.abstractmethod
    def batches(self) -> RecordBatchesGenerator:
        """Emits the batches for the next node.

        Each node is expected to be able to
        generate data that has to be provided to the next
        node in the plan.

        Usually this happens by consuming data from its
        child nodes, transforming it somehow, and yielding
        it back to the next consumer.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the node."""
        ...

    def poll_schema(self) -> pa.Schema:
        """Provide the schema of the emitted data without computing it.

        Only nodes that can know their output upfront implement this,
        for example data sources or the melt node whose output
        only depends on the schema of its input.
        """
        raise NotImplementedError(f"{self} can't provide its schema in advance")

    def to_table(self) -> pa.Table:
        """Consume all the batches and gather them in a :class:`pyarrow.Table`.

        When the node emitted no batches at all, the schema is
        polled so that an empty table with the right columns
        can still be returned.
        """
        batches = list(self.batches())
        if not batches:
            return self.poll_schema().empty_table()
        return pa.Table.from_batches(batches)


def check_columns(available: Iterable[str], requested: Iterable[str]) -> None:
    """Ensure that all the requested columns exist.

    :param available: The columns provided by the data.
    :param requested: The columns that an operation needs.
    :raises InvalidColumnReference: listing all the missing columns.
    """
    available = list(available)
    missing = [c for c in requested if c not in available]
    if missing:
        raise InvalidColumnReference(missing, available)


def unique_name(name: str, taken: Iterable[str], suffix: str = "") -> str:
    """Find a name that doesn't clash with the taken ones.

    The name is returned as is when free, otherwise ``suffix``
    is appended and then a counter, until a free name is found.

    >>> unique_name("age", ["id", "name"])
    'age'
    >>> unique_name("name", ["id", "name"], "_right")
    'name_right'
    >>> unique_name("name", ["name", "name_1"])
    'name_2'
    """
    taken = set(taken)
    if name not in taken:
        return name

    candidate = name + suffix
    counter = 1
    while candidate in taken or candidate == name:
        candidate = f"{name}{suffix}_{counter}"
        counter += 1
    return candidate


def table_to_batch(table: pa.Table) -> pa.RecordBatch:
    """Merge all the chunks of a table in a single RecordBatch.

    Unlike ``table.to_batches()`` this always returns exactly one
    batch, even when the table has no rows, so that the schema
    of the data is never lost.
    """
    return pa.RecordBatch.from_arrays(
        [column.combine_chunks() for column in table.columns], schema=table.schema
    )
