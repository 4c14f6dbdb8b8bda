"""Query plan nodes that concatenate data from multiple sources.

Data frequently comes split across multiple files,
for example one file per year with the same columns,
or one file per set of measures for the same rows.

Binding Rows
============

Provided by :class:`BindRowsNode`, stacks the rows of
multiple sources one after the other::

    Name, FY2000        Name, FY2000        Name, FY2000
    NASA, 10       +    NOAA, 5        =    NASA, 10
                                            NOAA, 5

Binding Columns
===============

Provided by :class:`BindColumnsNode`, puts the columns of
multiple sources side by side::

    Name, FY2000        FY2001              Name, FY2000, FY2001
    NASA, 10       +    12             =    NASA, 10, 12
"""

import logging

import pyarrow as pa

from .base import QueryPlanNode, table_to_batch, unique_name
from .errors import RowCountMismatch, SchemaMismatch

logger = logging.getLogger(__name__)


class BindRowsNode(QueryPlanNode):
    """Concatenate the rows of multiple sources.

    In ``strict`` mode all sources must provide the same columns,
    in any order. Otherwise the columns are the union of the columns
    of all the sources and missing columns are filled with nulls.

    The resulting columns are in the order they are first seen,
    starting from the columns of the first source.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> first = PyArrowTableDataSource(pa.record_batch({"id": [1], "name": ["NASA"]}))
    >>> second = PyArrowTableDataSource(pa.record_batch({"name": ["NOAA"], "id": [2]}))
    >>> next(BindRowsNode(first, second).batches()).to_pydict()
    {'id': [1, 2], 'name': ['NASA', 'NOAA']}
    """

    def __init__(self, *children: QueryPlanNode, strict: bool = True) -> None:
        """
        :param children: The nodes whose rows have to be concatenated, in order.
        :param strict: Require all children to provide exactly the same columns.
        """
        if not children:
            raise ValueError("At least one child node is required")
        self.children = children
        self.strict = strict

    def __str__(self) -> str:
        children = ", ".join(str(c) for c in self.children)
        return f"BindRowsNode(strict={self.strict}, {children})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Concatenate all the data of the children.

        The schemas of all the children are unified
        so that every source is conformed to the same
        columns and types before being concatenated.
        """
        tables = [child.to_table() for child in self.children]
        if len(tables) == 1:
            yield table_to_batch(tables[0])
            return

        if self.strict:
            expected = set(tables[0].column_names)
            for idx, table in enumerate(tables[1:], start=1):
                if set(table.column_names) != expected:
                    raise SchemaMismatch(
                        f"Table {idx} has columns {table.column_names}, "
                        f"expected {tables[0].column_names}"
                    )

        try:
            schema = pa.unify_schemas(
                [t.schema for t in tables], promote_options="permissive"
            )
        except (pa.ArrowTypeError, pa.ArrowInvalid) as e:
            raise SchemaMismatch(f"Unable to combine column types: {e}") from e

        conformed = [self._conform(table, schema) for table in tables]
        result = pa.concat_tables(conformed, promote_options="none")
        logger.debug(
            "Bound %d tables into %d rows", len(tables), result.num_rows
        )
        yield table_to_batch(result)

    @staticmethod
    def _conform(table: pa.Table, schema: pa.Schema) -> pa.Table:
        """Reorder, cast and fill the columns of table to match schema."""
        columns = []
        for field in schema:
            if field.name in table.column_names:
                columns.append(table.column(field.name).cast(field.type))
            else:
                columns.append(pa.nulls(table.num_rows, type=field.type))
        return pa.Table.from_arrays(columns, schema=schema)


class BindColumnsNode(QueryPlanNode):
    """Put side by side the columns of multiple sources.

    All the sources must have the same number of rows,
    rows are matched by their position.

    When a column name was already used by a previous source,
    it gets renamed appending the position of the source
    (starting from 1) so that no column is lost.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> first = PyArrowTableDataSource(pa.record_batch({"id": [1, 2]}))
    >>> second = PyArrowTableDataSource(pa.record_batch({"id": [3, 4]}))
    >>> next(BindColumnsNode(first, second).batches()).to_pydict()
    {'id': [1, 2], 'id_2': [3, 4]}
    """

    def __init__(self, *children: QueryPlanNode) -> None:
        """
        :param children: The nodes whose columns have to be combined, left to right.
        """
        if not children:
            raise ValueError("At least one child node is required")
        self.children = children

    def __str__(self) -> str:
        children = ", ".join(str(c) for c in self.children)
        return f"BindColumnsNode({children})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Combine the columns of all children in a single batch."""
        tables = [child.to_table() for child in self.children]

        num_rows = tables[0].num_rows
        for idx, table in enumerate(tables[1:], start=1):
            if table.num_rows != num_rows:
                raise RowCountMismatch(
                    f"Table {idx} has {table.num_rows} rows, expected {num_rows}"
                )

        names: list[str] = []
        columns: list[pa.Array] = []
        for position, table in enumerate(tables, start=1):
            for name in table.column_names:
                names.append(unique_name(name, names, f"_{position}"))
                columns.append(table.column(name).combine_chunks())

        logger.debug("Bound %d tables into %d columns", len(tables), len(names))
        yield pa.RecordBatch.from_arrays(columns, names=names)
