"""Query plan node that implements key based joins.

The join is implemented as a hash join: the rows of the right
table are indexed by their key, then the rows of the left table
probe the index to find the rows they match.

Supported join types are:

* ``inner``: only rows with a match on both sides.
* ``left``: all rows of the left table, matched or not.
* ``right``: all rows of the right table, matched or not.
* ``full``: all rows of both tables.

>>> import pyarrow as pa
>>> from tidyground.compute import JoinNode
>>> from tidyground.compute import PyArrowTableDataSource
>>> left = PyArrowTableDataSource(pa.record_batch({"id": [1, 2, 3], "name": ["Alice", "Bob", "Charlie"]}))
>>> right = PyArrowTableDataSource(pa.record_batch({"id": [3, 2], "age": [25, 30]}))
>>> join_node = JoinNode("id", "id", left, right, how="left")
>>> next(join_node.batches()).to_pydict()
{'id': [1, 2, 3], 'name': ['Alice', 'Bob', 'Charlie'], 'age': [None, 30, 25]}
"""

import logging

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode, check_columns, table_to_batch, unique_name
from .errors import SchemaMismatch

logger = logging.getLogger(__name__)

JOIN_TYPES = ("inner", "left", "right", "full")


class JoinNode(QueryPlanNode):
    """Join two data sources on a key.

    Supposing we have two tables::

        left:
        +----+--------+
        | id | name   |
        +----+--------+
        | 1  | Alice  |
        | 2  | Bob    |
        | 3  | Charlie|
        +----+--------+


        right:
        +----+-----+
        | id | age |
        +----+-----+
        | 3  | 25  |
        | 2  | 30  |
        | 4  | 40  |
        +----+-----+

    We would perform the following steps:

    1. Index the rows of the right table by their key::

        {3: [0], 2: [1], 4: [2]}

    2. Probe the index with the key of each left row to find
       which right rows it matches. This gives two lists of indices,
       one for each table, that are aligned so that the same position
       in the two lists refers to the two rows being joined. When there is
       no match (and the join type wants to keep the row) ``None`` is used::

        left_indices  = [0,    1, 2]
        right_indices = [None, 1, 0]

    3. For ``right`` and ``full`` joins, the rows of the right table
       that never matched are appended::

        left_indices  = [0,    1, 2, None]
        right_indices = [None, 1, 0, 2]

    4. Take the rows from each table, ``None`` indices lead to missing
       values, and put the resulting columns side by side::

        +----+--------+------+
        | id | name   | age  |
        +----+--------+------+
        | 1  | Alice  | null |
        | 2  | Bob    | 30   |
        | 3  | Charlie| 25   |
        | 4  | null   | 40   |
        +----+--------+------+

    Rows with a missing key never match any row. Keys of different
    types are promoted to a common type (int64 and double become double),
    keys that can't be compared raise :class:`SchemaMismatch`.
    """

    def __init__(
        self,
        left_key: str,
        right_key: str,
        left_child: QueryPlanNode,
        right_child: QueryPlanNode,
        how: str = "inner",
    ) -> None:
        """
        :param left_key: The key to join on in the left table.
        :param right_key: The key to join on in the right table.
        :param left_child: The left source of data to join.
        :param right_child: The right source of data to join.
        :param how: The type of join, one of ``inner``, ``left``, ``right``, ``full``.
        """
        if how not in JOIN_TYPES:
            raise ValueError(f"Unsupported join type: {how}, expected one of {JOIN_TYPES}")

        self.left_key = left_key
        self.right_key = right_key
        self.left_child = left_child
        self.right_child = right_child
        self.how = how

    def __str__(self) -> str:
        return f"JoinNode(how={self.how}, left_key={self.left_key}, right_key={self.right_key}, left={self.left_child}, right={self.right_child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Perform the join operation.

        Accumulates all rows of both children to
        perform the join operation, so it is not suitable
        for datasets that don't fit in memory.
        """
        left = self.left_child.to_table()
        right = self.right_child.to_table()
        check_columns(left.column_names, [self.left_key])
        check_columns(right.column_names, [self.right_key])
        key_type = self._key_type(left.schema, right.schema)

        left_indices, right_indices = self._match_rows(
            left.column(self.left_key).to_pylist(),
            right.column(self.right_key).to_pylist(),
        )
        left_rows = left.take(pa.array(left_indices, type=pa.int64()))
        right_rows = right.take(pa.array(right_indices, type=pa.int64()))

        combined_data = {}
        for col in left_rows.column_names:
            combined_data[col] = left_rows.column(col)
        combined_data[self.left_key] = left_rows.column(self.left_key).cast(key_type)
        if self.how in ("right", "full"):
            # Rows coming only from the right table have no left key,
            # take it from the right key so that the key is never lost.
            combined_data[self.left_key] = pc.coalesce(
                combined_data[self.left_key],
                right_rows.column(self.right_key).cast(key_type),
            )
        for col in right_rows.column_names:
            if col == self.right_key:
                # Skip the right key as it has the same values of the left key
                # and we don't want to duplicate it in the resulting data
                continue
            new_col_name = unique_name(col, combined_data, "_right")
            combined_data[new_col_name] = right_rows.column(col)

        logger.debug(
            "Joined %d left rows and %d right rows into %d rows",
            left.num_rows,
            right.num_rows,
            len(left_indices),
        )
        yield table_to_batch(pa.table(combined_data))

    def _key_type(self, left_schema: pa.Schema, right_schema: pa.Schema) -> pa.DataType:
        """The type both keys are promoted to, like int64 and double become double.

        :raises SchemaMismatch: when the keys can't be compared.
        """
        left_type = left_schema.field(self.left_key).type
        right_type = right_schema.field(self.right_key).type
        try:
            unified = pa.unify_schemas(
                [
                    pa.schema([pa.field(self.left_key, left_type)]),
                    pa.schema([pa.field(self.left_key, right_type)]),
                ],
                promote_options="permissive",
            )
        except (pa.ArrowTypeError, pa.ArrowInvalid):
            raise SchemaMismatch(
                f"Join keys have incompatible types: {self.left_key} is {left_type}, "
                f"{self.right_key} is {right_type}"
            ) from None
        return unified.field(self.left_key).type

    def _match_rows(
        self, left_keys: list, right_keys: list
    ) -> tuple[list[int | None], list[int | None]]:
        """Compute the aligned indices of the rows to join."""
        index: dict = {}
        for row, key in enumerate(right_keys):
            if key is not None:
                index.setdefault(key, []).append(row)

        keep_left = self.how in ("left", "full")
        keep_right = self.how in ("right", "full")

        left_indices: list[int | None] = []
        right_indices: list[int | None] = []
        matched_right = set()
        for row, key in enumerate(left_keys):
            matches = index.get(key, []) if key is not None else []
            for match in matches:
                left_indices.append(row)
                right_indices.append(match)
                matched_right.add(match)
            if not matches and keep_left:
                left_indices.append(row)
                right_indices.append(None)

        if keep_right:
            for row in range(len(right_keys)):
                if row not in matched_right:
                    left_indices.append(None)
                    right_indices.append(row)

        return left_indices, right_indices
