"""Query plan node that turns long data into wide data.

This is the inverse of :mod:`tidyground.compute.melt`,
given data in a long format where the name of the
variable is stored in a key column::

    Name, FY, Dollars
    NASA, FY2000, 10
    NASA, FY2001, 12
    NOAA, FY2000, 5

Each distinct value of the key column becomes a new column
populated with the content of the value column::

    Name, FY2000, FY2001
    NASA, 10, 12
    NOAA, 5, null

The operation is usually called ``cast`` (or ``spread``/``pivot``)
and is implemented by :class:`CastNode`.
"""

import logging
from typing import Any, Type

import pyarrow as pa
import pyarrow.compute as pc

from .aggregate import Aggregation, get_aggregation
from .base import QueryPlanNode, check_columns, unique_name
from .errors import AmbiguousCast

logger = logging.getLogger(__name__)

COLUMN_ORDERS = ("first-seen", "sorted")


class CastNode(QueryPlanNode):
    """Spread the key/value pairs into one column per key.

    Rows are grouped by their identifier columns, each group
    becomes a row in the output and each distinct key becomes
    a column. When a group has no value for a key the cell
    is filled with ``fill_value`` (missing by default).

    When a group has more than one value for the same key
    an ``aggregation`` is required to combine them, otherwise
    :class:`tidyground.compute.errors.AmbiguousCast` is raised.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    "Name": ["NASA", "NASA", "NOAA"],
    ...    "FY": ["FY2000", "FY2001", "FY2000"],
    ...    "Dollars": [10, 12, 5],
    ... })
    >>> cast = CastNode(["Name"], "FY", "Dollars", PyArrowTableDataSource(data))
    >>> next(cast.batches()).to_pydict()
    {'Name': ['NASA', 'NOAA'], 'FY2000': [10, 5], 'FY2001': [12, None]}
    """

    def __init__(
        self,
        id_columns: list[str] | None,
        key_column: str,
        value_column: str,
        child: QueryPlanNode,
        aggregation: Aggregation | Type[Aggregation] | str | None = None,
        fill_value: Any = None,
        column_order: str = "first-seen",
    ) -> None:
        """
        :param id_columns: The columns identifying the rows of the result,
                           ``None`` means all columns except key and value.
        :param key_column: The column whose values become the new column names.
        :param value_column: The column whose values populate the new columns.
        :param child: The node emitting the data to cast.
        :param aggregation: How to combine multiple values for the same cell,
                            see :mod:`tidyground.compute.aggregate`.
        :param fill_value: The value for cells that have no data.
        :param column_order: ``"first-seen"`` to create the new columns in the order
                             keys appear in the data, ``"sorted"`` to sort them by key.
        """
        if key_column == value_column:
            raise ValueError("Key and value must be different columns")
        if id_columns is not None and (
            key_column in id_columns or value_column in id_columns
        ):
            raise ValueError("Key and value columns can't be identifiers")
        if column_order not in COLUMN_ORDERS:
            raise ValueError(
                f"Unsupported column order: {column_order}, expected one of {COLUMN_ORDERS}"
            )

        self.id_columns = list(id_columns) if id_columns is not None else None
        self.key_column = key_column
        self.value_column = value_column
        self.aggregation = get_aggregation(aggregation)
        self.fill_value = fill_value
        self.column_order = column_order
        self.child = child

    def __str__(self) -> str:
        return (
            f"CastNode(ids={self.id_columns}, key={self.key_column}, "
            f"value={self.value_column}, aggregation={self.aggregation}, child={self.child})"
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Cast the data of the child node.

        Accumulates all the rows of the child, as the rows
        of the same group could be anywhere in the data,
        so it is not suitable for datasets that don't fit memory.

        The process happens in three steps:

        1. Find the distinct keys, they will be the new columns.
        2. Group the rows by their identifiers and for each group
           record which rows provide the value of each key.
        3. Build the new columns by picking (or aggregating) the
           values of the rows recorded for each cell.
        """
        table = self.child.to_table()

        id_columns = self.id_columns
        if id_columns is None:
            id_columns = [
                c
                for c in table.column_names
                if c not in (self.key_column, self.value_column)
            ]
        check_columns(
            table.column_names, id_columns + [self.key_column, self.value_column]
        )

        key_column = table.column(self.key_column).combine_chunks()
        distinct_keys = self._distinct_keys(key_column)
        keys = distinct_keys.to_pylist()
        # Matched by Arrow, so that NaN keys find their own column.
        key_positions = pc.index_in(key_column, value_set=distinct_keys).to_pylist()

        # groups maps the identifiers of each group to its position in the result,
        # cells maps (group position, key position) to the rows providing the value.
        groups: dict[tuple, int] = {}
        first_rows: list[int] = []
        cells: dict[tuple[int, int], list[int]] = {}
        id_values = [table.column(c).to_pylist() for c in id_columns]
        skipped = 0
        for row, key_pos in enumerate(key_positions):
            group_id = tuple(values[row] for values in id_values)
            group = groups.get(group_id)
            if group is None:
                group = groups[group_id] = len(first_rows)
                first_rows.append(row)
            if key_pos is None:
                skipped += 1
                continue
            cells.setdefault((group, key_pos), []).append(row)

        if skipped:
            logger.warning(
                "Skipped %d rows with a missing value for key column %s",
                skipped,
                self.key_column,
            )

        if self.aggregation is None:
            for (group, key_pos), rows in cells.items():
                if len(rows) > 1:
                    group_id = tuple(values[rows[0]] for values in id_values)
                    raise AmbiguousCast(group_id, keys[key_pos], len(rows))

        first_rows_indices = pa.array(first_rows, type=pa.int64())
        names = list(id_columns)
        arrays = [
            table.column(c).take(first_rows_indices).combine_chunks()
            for c in id_columns
        ]
        values = table.column(self.value_column).combine_chunks()
        values_list = values.to_pylist()
        for key_pos, key in enumerate(keys):
            names.append(unique_name(str(key), names))
            arrays.append(
                self._build_column(
                    values,
                    values_list,
                    [cells.get((group, key_pos)) for group in range(len(first_rows))],
                )
            )

        logger.debug(
            "Cast %d rows into %d rows and %d new columns",
            table.num_rows,
            len(first_rows),
            len(keys),
        )
        yield pa.RecordBatch.from_arrays(arrays, names=names)

    def _distinct_keys(self, key_column: pa.Array) -> pa.Array:
        """Distinct non missing keys in the order requested for the columns."""
        keys = pc.unique(key_column).drop_null()
        if self.column_order == "sorted":
            keys = keys.take(pc.array_sort_indices(keys))
        return keys

    def _build_column(
        self, values: pa.Array, values_list: list, cells: list[list[int] | None]
    ) -> pa.Array:
        """Build the content of one of the new columns.

        :param values: The whole value column of the input.
        :param values_list: The same values as Python objects.
        :param cells: For each row of the result, the rows
                      of the input that provide its value.
        """
        if self.aggregation is None:
            result_type = values.type
            data = [
                values_list[rows[0]] if rows is not None else self.fill_value
                for rows in cells
            ]
        else:
            result_type = self.aggregation.result_type(values.type)
            data = [
                self.aggregation(values.take(pa.array(rows, type=pa.int64()))).as_py()
                if rows is not None
                else self.fill_value
                for rows in cells
            ]
        return pa.array(data, type=result_type)
