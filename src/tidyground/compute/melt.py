"""Query plan node that turns wide data into long data.

Data is frequently collected in a *wide* format, where
each observed variable or time period gets its own column.
For example, the budget of a few agencies by fiscal year::

    Name, FY2000, FY2001
    NASA, 10, 12
    NOAA, 5, 6

Most analyses and plotting tools instead prefer a *long*
(tidy) format, where each row is a single observation
and the name of the variable is stored as data::

    Name, FY, Dollars
    NASA, FY2000, 10
    NASA, FY2001, 12
    NOAA, FY2000, 5
    NOAA, FY2001, 6

Moving from the first format to the second is usually called
``melt`` (or ``gather``) and is implemented by :class:`MeltNode`.
"""

import logging

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode, check_columns
from .errors import EmptyMeasuredSet

logger = logging.getLogger(__name__)


class MeltNode(QueryPlanNode):
    """Melt the measured columns into key/value pairs.

    Each input row is expanded into one row per measured column,
    the identifier columns are copied as they are, while the name
    of the measured column ends up in the key column and its value
    in the value column.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    "Name": ["NASA", "NOAA"],
    ...    "FY2000": [10, 5],
    ...    "FY2001": [12, 6],
    ... })
    >>> melt = MeltNode(["Name"], "FY", "Dollars", PyArrowTableDataSource(data))
    >>> next(melt.batches()).to_pydict()["FY"]
    ['FY2000', 'FY2001', 'FY2000', 'FY2001']
    """

    def __init__(
        self,
        id_columns: list[str],
        key_name: str,
        value_name: str,
        child: QueryPlanNode,
        measure_columns: list[str] | None = None,
        drop_missing: bool = False,
    ) -> None:
        """
        :param id_columns: The columns that identify an entity and are preserved.
        :param key_name: Name of the new column that will contain the melted column names.
        :param value_name: Name of the new column that will contain the melted values.
        :param child: The node emitting the data to melt.
        :param measure_columns: The columns to melt, ``None`` means all
                                the columns that are not identifiers.
        :param drop_missing: Skip the rows where the melted value is missing.
        """
        if key_name == value_name:
            raise ValueError("Key and value columns must have different names")
        if key_name in id_columns or value_name in id_columns:
            raise ValueError("Key and value columns can't be named like an identifier")
        if measure_columns is not None and set(measure_columns) & set(id_columns):
            raise ValueError("Identifier columns can't be melted")

        self.id_columns = list(id_columns)
        self.key_name = key_name
        self.value_name = value_name
        self.measure_columns = measure_columns
        self.drop_missing = drop_missing
        self.child = child

    def __str__(self) -> str:
        return (
            f"MeltNode(ids={self.id_columns}, key={self.key_name}, "
            f"value={self.value_name}, child={self.child})"
        )

    def measured_columns(self, schema: pa.Schema) -> list[str]:
        """Detect which columns of the data have to be melted.

        :raises InvalidColumnReference: when identifier or measure columns are missing.
        :raises EmptyMeasuredSet: when there is nothing left to melt.
        """
        check_columns(schema.names, self.id_columns)
        if self.measure_columns is not None:
            check_columns(schema.names, self.measure_columns)
            measured = list(self.measure_columns)
        else:
            measured = [c for c in schema.names if c not in self.id_columns]

        if not measured:
            raise EmptyMeasuredSet(
                f"No columns to melt, all columns are identifiers: {self.id_columns}"
            )
        return measured

    def value_type(self, schema: pa.Schema) -> pa.DataType:
        """Compute the type of the value column.

        All the melted columns end up in the same column, so
        they must share a type. Types are promoted when possible
        (int64 and double become double), when the columns have
        nothing in common (numbers and strings) all the values
        are converted to strings.
        """
        measured_schemas = [
            pa.schema([pa.field(self.value_name, schema.field(c).type)])
            for c in self.measured_columns(schema)
        ]
        try:
            unified = pa.unify_schemas(measured_schemas, promote_options="permissive")
        except (pa.ArrowTypeError, pa.ArrowInvalid):
            logger.warning(
                "Melted columns have incompatible types, values will be converted to strings"
            )
            return pa.string()
        return unified.field(self.value_name).type

    def poll_schema(self) -> pa.Schema:
        """The melted schema only depends on the schema of the child."""
        schema = self.child.poll_schema()
        # Validates the columns before any of them is looked up.
        self.measured_columns(schema)
        return pa.schema(
            [schema.field(c) for c in self.id_columns]
            + [
                pa.field(self.key_name, pa.string()),
                pa.field(self.value_name, self.value_type(schema)),
            ]
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Melt each batch emitted by the child node.

        Batches are melted independently, so the node doesn't need
        to keep more than one batch in memory at the time.
        """
        measured = None
        value_type = None
        for batch in self.child.batches():
            if measured is None:
                measured = self.measured_columns(batch.schema)
                value_type = self.value_type(batch.schema)
            melted = self._melt_batch(batch, measured, value_type)
            logger.debug(
                "Melted %d rows and %d columns into %d rows",
                batch.num_rows,
                len(measured),
                melted.num_rows,
            )
            yield melted

    def _melt_batch(
        self, batch: pa.RecordBatch, measured: list[str], value_type: pa.DataType
    ) -> pa.RecordBatch:
        """Melt a single batch.

        Supposing we have a batch with 2 rows and 2 measured columns::

            Name | FY2000 | FY2001
            NASA | 10     | 12
            NOAA | 5      | 6

        1. The identifiers are repeated once for each measured column,
           taking row indices ``[0, 0, 1, 1]``.
        2. The key column is the list of measured column names
           repeated once for each row.
        3. The measured columns are stacked one after the other
           ``[10, 5, 12, 6]`` and then reordered so that values
           of the same row are next to each other, taking
           indices ``[0, 2, 1, 3]`` which leads to ``[10, 12, 5, 6]``.
        """
        num_rows = batch.num_rows
        num_measured = len(measured)

        row_indices = pa.array(
            [row for row in range(num_rows) for _ in range(num_measured)],
            type=pa.int64(),
        )
        ids = [batch.column(c).take(row_indices) for c in self.id_columns]

        keys = pa.array(measured * num_rows, type=pa.string())

        stacked = pa.concat_arrays(
            [batch.column(c).cast(value_type) for c in measured]
        )
        values = stacked.take(
            pa.array(
                [
                    col * num_rows + row
                    for row in range(num_rows)
                    for col in range(num_measured)
                ],
                type=pa.int64(),
            )
        )

        melted = pa.RecordBatch.from_arrays(
            ids + [keys, values],
            names=self.id_columns + [self.key_name, self.value_name],
        )
        if self.drop_missing:
            melted = melted.filter(pc.is_valid(melted.column(self.value_name)))
        return melted
