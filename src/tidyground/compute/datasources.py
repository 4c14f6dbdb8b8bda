"""Query plan nodes that load data.

The datasource nodes are the leaves of a reshaping plan,
they fetch the data from files or memory, convert it into
Arrow format and forward it to the next node in the plan.

Use :func:`open_datasource` to pick the right node
based on the extension of a file.
"""

from abc import abstractmethod

import pyarrow as pa
import pyarrow.csv
import pyarrow.parquet

from .base import QueryPlanNode


class DataSourceNode(QueryPlanNode):
    """Base class for nodes that load data from a source."""

    @abstractmethod
    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the data source without loading its content."""
        ...


class CSVDataSource(DataSourceNode):
    """Load data from a CSV file.

    Given a local CSV file path, load the content,
    convert it into Arrow format, and emit it
    for the next nodes of the plan to consume.

    Empty cells and values like ``NA`` or ``null``
    are loaded as missing values.
    """

    def __init__(
        self, filename: str, block_size: int | None = None, delimiter: str = ","
    ) -> None:
        """
        :param filename: The path of the local CSV file.
        :param block_size: How big to make batches of data,
                           Influences how many batches will be produced
        :param delimiter: The character separating the values.
        """
        self.filename = filename
        self.block_size = block_size
        self.delimiter = delimiter

    def __str__(self) -> str:
        return f"CSVDataSource({self.filename}, block_size={self.block_size})"

    def _open(self) -> pa.csv.CSVStreamingReader:
        return pa.csv.open_csv(
            self.filename,
            read_options=pa.csv.ReadOptions(block_size=self.block_size),
            parse_options=pa.csv.ParseOptions(delimiter=self.delimiter),
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Open CSV file and emit the batches."""
        with self._open() as reader:
            for batch in reader:
                yield batch

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the CSV file."""
        with self._open() as reader:
            return reader.schema


class ParquetDataSource(DataSourceNode):
    """Load data from a Parquet file."""

    def __init__(self, filename: str, batch_size: int | None = None) -> None:
        """
        :param filename: The path of the local parquet file.
        :param batch_size: How big to make batches of data,
                           Influences how many batches will be produced
        """
        self.filename = filename
        self.batch_size = batch_size or 65536

    def __str__(self) -> str:
        return f"ParquetDataSource({self.filename}, batch_size={self.batch_size})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Open the Parquet file and emit the batches."""
        with pa.parquet.ParquetFile(self.filename) as reader:
            yield from reader.iter_batches(batch_size=self.batch_size)

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the Parquet file."""
        with pa.parquet.ParquetFile(self.filename) as reader:
            return reader.schema_arrow


class PyArrowTableDataSource(DataSourceNode):
    """Load data from an in-memory pyarrow.Table or pyarrow.RecordBatch.

    Given a :class:`pyarrow.Table` or `pyarrow.RecordBatch` object,
    allow to use its data in a reshaping plan.
    """

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        """
        :param table: The table or recordbatch with the data to read.
        """
        self.table = table
        self.is_recordbatch = isinstance(table, pa.RecordBatch)

    def __str__(self) -> str:
        return f"PyArrowTableDataSource(columns={self.table.column_names}, rows={self.table.num_rows})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the data contained in the Table for consumption by other node."""
        if self.is_recordbatch:
            yield self.table
        else:
            yield from self.table.to_batches()

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the Table."""
        return self.table.schema


def open_datasource(filename: str) -> DataSourceNode:
    """Create the data source able to read a file based on its extension.

    >>> open_datasource("budget.csv")
    <tidyground.compute.datasources.CSVDataSource object at ...>
    >>> open_datasource("budget.tsv").delimiter
    '\\t'
    """
    if filename.endswith(".csv"):
        return CSVDataSource(filename)
    elif filename.endswith(".tsv"):
        return CSVDataSource(filename, delimiter="\t")
    elif filename.endswith(".parquet"):
        return ParquetDataSource(filename)
    else:
        raise NotImplementedError(f"File format not supported: {filename}")
