import logging

import pyarrow as pa
import pytest

from tidyground.compute import CSVDataSource, PyArrowTableDataSource
from tidyground.compute.base import QueryPlanNode
from tidyground.compute.errors import EmptyMeasuredSet, InvalidColumnReference
from tidyground.compute.melt import MeltNode

BUDGET = pa.record_batch(
    {
        "Name": pa.array(["NASA", "NOAA", "NSF"]),
        "FY2000": pa.array([10, 5, 3]),
        "FY2001": pa.array([12, 6, 4]),
    }
)


class MockQueryPlanNode(QueryPlanNode):
    def __init__(self, batches):
        self._batches = batches

    def batches(self):
        for batch in self._batches:
            yield batch

    def __str__(self):
        return "MockQueryPlanNode"


@pytest.fixture
def budget_source():
    return PyArrowTableDataSource(BUDGET)


def test_melt_node(budget_source):
    melt = MeltNode(["Name"], "FY", "Dollars", budget_source)
    result = melt.to_table()

    assert result.column_names == ["Name", "FY", "Dollars"]
    assert result.to_pydict() == {
        "Name": ["NASA", "NASA", "NOAA", "NOAA", "NSF", "NSF"],
        "FY": ["FY2000", "FY2001"] * 3,
        "Dollars": [10, 12, 5, 6, 3, 4],
    }
    assert result.schema.field("FY").type == pa.string()
    assert result.schema.field("Dollars").type == pa.int64()


@pytest.mark.parametrize(
    "data",
    [
        {"id": [1, 2], "a": [1, 2]},
        {"id": [1, 2, 3], "a": [1, 2, 3], "b": [4, 5, 6], "c": [7, 8, 9]},
        {"id": [], "a": [], "b": []},
    ],
)
def test_melt_row_count(data):
    table = pa.table(data)
    result = MeltNode(["id"], "key", "value", PyArrowTableDataSource(table)).to_table()

    assert result.num_rows == table.num_rows * (table.num_columns - 1)


def test_melt_no_identifiers():
    data = pa.record_batch({"a": [1, 2], "b": [3, 4]})
    result = MeltNode([], "key", "value", PyArrowTableDataSource(data)).to_table()

    assert result.to_pydict() == {
        "key": ["a", "b", "a", "b"],
        "value": [1, 3, 2, 4],
    }


def test_melt_multiple_identifiers():
    data = pa.record_batch(
        {"Name": ["NASA"], "Agency": ["Space"], "FY2000": [10], "FY2001": [12]}
    )
    result = MeltNode(
        ["Name", "Agency"], "FY", "Dollars", PyArrowTableDataSource(data)
    ).to_table()

    assert result.column_names == ["Name", "Agency", "FY", "Dollars"]
    assert result.column("Agency").to_pylist() == ["Space", "Space"]


def test_melt_identifiers_keep_input_order():
    data = pa.record_batch({"b": [1], "x": [2], "a": [3]})
    result = MeltNode(["a", "b"], "key", "value", PyArrowTableDataSource(data)).to_table()

    assert result.column_names == ["a", "b", "key", "value"]


def test_melt_keeps_missing_values():
    data = pa.record_batch({"Name": ["NASA", "NOAA"], "FY2000": [10, None]})
    result = MeltNode(["Name"], "FY", "Dollars", PyArrowTableDataSource(data)).to_table()

    assert result.column("Dollars").to_pylist() == [10, None]


def test_melt_drop_missing():
    data = pa.record_batch(
        {"Name": ["NASA", "NOAA"], "FY2000": [10, None], "FY2001": [None, 6]}
    )
    result = MeltNode(
        ["Name"], "FY", "Dollars", PyArrowTableDataSource(data), drop_missing=True
    ).to_table()

    assert result.to_pydict() == {
        "Name": ["NASA", "NOAA"],
        "FY": ["FY2000", "FY2001"],
        "Dollars": [10, 6],
    }


def test_melt_measure_columns(budget_source):
    melt = MeltNode(
        ["Name"], "FY", "Dollars", budget_source, measure_columns=["FY2001"]
    )
    result = melt.to_table()

    assert result.to_pydict() == {
        "Name": ["NASA", "NOAA", "NSF"],
        "FY": ["FY2001"] * 3,
        "Dollars": [12, 6, 4],
    }


def test_melt_promotes_numeric_types():
    data = pa.record_batch({"id": [1], "a": pa.array([1], pa.int64()), "b": [2.5]})
    result = MeltNode(["id"], "key", "value", PyArrowTableDataSource(data)).to_table()

    assert result.schema.field("value").type == pa.float64()
    assert result.column("value").to_pylist() == [1.0, 2.5]


def test_melt_incompatible_types_become_strings(caplog):
    data = pa.record_batch({"id": [1], "a": [1], "b": ["x"]})
    with caplog.at_level(logging.WARNING, logger="tidyground.compute.melt"):
        result = MeltNode(
            ["id"], "key", "value", PyArrowTableDataSource(data)
        ).to_table()

    assert result.schema.field("value").type == pa.string()
    assert result.column("value").to_pylist() == ["1", "x"]
    assert "incompatible types" in caplog.text


def test_melt_multiple_batches():
    child = MockQueryPlanNode(
        [
            pa.record_batch({"id": [1], "a": [10], "b": [20]}),
            pa.record_batch({"id": [2], "a": [30], "b": [40]}),
        ]
    )
    batches = list(MeltNode(["id"], "key", "value", child).batches())

    assert len(batches) == 2
    assert batches[0].to_pydict() == {"id": [1, 1], "key": ["a", "b"], "value": [10, 20]}
    assert batches[1].to_pydict() == {"id": [2, 2], "key": ["a", "b"], "value": [30, 40]}


def test_melt_poll_schema(budget_source):
    melt = MeltNode(["Name"], "FY", "Dollars", budget_source)
    assert melt.poll_schema() == pa.schema(
        [("Name", pa.string()), ("FY", pa.string()), ("Dollars", pa.int64())]
    )


def test_melt_empty_child_uses_schema():
    table = pa.table({"id": pa.array([], pa.int64()), "a": pa.array([], pa.float64())})
    result = MeltNode(["id"], "key", "value", PyArrowTableDataSource(table)).to_table()

    assert result.num_rows == 0
    assert result.column_names == ["id", "key", "value"]


def test_melt_invalid_identifier(budget_source):
    melt = MeltNode(["NoSuchColumn"], "key", "value", budget_source)
    with pytest.raises(InvalidColumnReference) as excinfo:
        melt.to_table()

    assert excinfo.value.columns == ["NoSuchColumn"]
    assert excinfo.value.available == ["Name", "FY2000", "FY2001"]


@pytest.mark.parametrize("header_only", [True, False])
def test_melt_invalid_identifier_without_rows(tmp_path, header_only):
    if header_only:
        filename = tmp_path / "empty.csv"
        filename.write_text("a,b\n")
        child = CSVDataSource(str(filename))
    else:
        schema = pa.schema([("a", pa.int64()), ("b", pa.int64())])
        child = PyArrowTableDataSource(schema.empty_table())

    melt = MeltNode(["NoSuchColumn"], "key", "value", child)
    with pytest.raises(InvalidColumnReference):
        melt.to_table()


def test_melt_invalid_measure_column(budget_source):
    melt = MeltNode(
        ["Name"], "key", "value", budget_source, measure_columns=["FY1999"]
    )
    with pytest.raises(InvalidColumnReference):
        melt.to_table()


def test_melt_nothing_to_melt(budget_source):
    melt = MeltNode(["Name", "FY2000", "FY2001"], "key", "value", budget_source)
    with pytest.raises(EmptyMeasuredSet):
        melt.to_table()


@pytest.mark.parametrize(
    "key_name,value_name", [("same", "same"), ("Name", "value"), ("key", "Name")]
)
def test_melt_conflicting_names(budget_source, key_name, value_name):
    with pytest.raises(ValueError):
        MeltNode(["Name"], key_name, value_name, budget_source)


def test_melt_node_str(budget_source):
    melt = MeltNode(["Name"], "FY", "Dollars", budget_source)
    assert (
        str(melt)
        == "MeltNode(ids=['Name'], key=FY, value=Dollars, child=PyArrowTableDataSource(columns=['Name', 'FY2000', 'FY2001'], rows=3))"
    )
