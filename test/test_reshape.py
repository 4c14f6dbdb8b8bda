import pyarrow as pa
import pytest

from tidyground import reshape
from tidyground.compute.errors import (
    AmbiguousCast,
    EmptyMeasuredSet,
    InvalidColumnReference,
    RowCountMismatch,
    SchemaMismatch,
)

BUDGET = pa.table(
    {
        "Name": ["NASA", "NOAA", "NSF"],
        "FY2000": [13.6, 2.3, 3.9],
        "FY2001": [14.1, 2.5, 4.4],
    }
)


def test_melt_budget_example():
    result = reshape.melt(BUDGET, ["Name"], "FY", "Dollars")

    assert result.column_names == ["Name", "FY", "Dollars"]
    assert result.num_rows == BUDGET.num_rows * 2
    assert set(result.column("FY").to_pylist()) == {"FY2000", "FY2001"}


def test_cast_budget_example():
    long = reshape.melt(BUDGET, ["Name"], "FY", "Dollars")
    result = reshape.cast(long, ["Name"], "FY", "Dollars")

    assert result.column_names == ["Name", "FY2000", "FY2001"]


@pytest.mark.parametrize(
    "table,ids",
    [
        (BUDGET, ["Name"]),
        (
            pa.table(
                {
                    "agency": ["NASA", "NASA", "NOAA"],
                    "program": ["Mars", "Moon", "Ocean"],
                    "q1": [1, 2, 3],
                    "q2": [4, None, 6],
                    "q3": [7, 8, 9],
                }
            ),
            ["agency", "program"],
        ),
        (pa.table({"id": [1, 2], "value_a": ["x", "y"]}), ["id"]),
    ],
)
def test_melt_then_cast_round_trip(table, ids):
    long = reshape.melt(table, ids, "key", "value")
    wide = reshape.cast(long, ids, "key", "value", aggregation="first")

    assert wide.select(table.column_names).equals(table)


def test_bind_rows_single_table_identity():
    assert reshape.bind_rows(BUDGET).equals(BUDGET)


def test_bind_rows_and_columns():
    extra_rows = pa.table({"Name": ["USGS"], "FY2000": [1.0], "FY2001": [1.1]})
    rows = reshape.bind_rows(BUDGET, extra_rows)
    assert rows.num_rows == 4

    extra_columns = pa.table({"FY2002": [14.8, None, 4.8]})
    columns = reshape.bind_columns(BUDGET, extra_columns)
    assert columns.column_names == ["Name", "FY2000", "FY2001", "FY2002"]


def test_bind_relaxed():
    result = reshape.bind_rows(
        BUDGET, pa.table({"Name": ["USGS"]}), strict=False
    )
    assert result.column("FY2000").to_pylist()[-1] is None


def test_join():
    departments = pa.record_batch(
        {"Agency": ["NASA", "NOAA"], "Department": ["Independent", "Commerce"]}
    )
    result = reshape.join(BUDGET, departments, "Name", "Agency", how="left")

    assert result.column_names == ["Name", "FY2000", "FY2001", "Department"]
    assert result.column("Department").to_pylist() == [
        "Independent",
        "Commerce",
        None,
    ]


def test_inputs_are_not_modified():
    before = BUDGET.to_pydict()
    reshape.melt(BUDGET, ["Name"], "FY", "Dollars")
    reshape.bind_columns(BUDGET, BUDGET)
    assert BUDGET.to_pydict() == before


@pytest.mark.parametrize(
    "operation,error",
    [
        (lambda: reshape.melt(BUDGET, ["NoSuchColumn"], "key", "value"), InvalidColumnReference),
        (lambda: reshape.melt(BUDGET, ["Name", "FY2000", "FY2001"], "key", "value"), EmptyMeasuredSet),
        (
            lambda: reshape.cast(
                pa.table({"id": [1, 1], "key": ["a", "a"], "value": [1, 2]}),
                ["id"],
                "key",
                "value",
            ),
            AmbiguousCast,
        ),
        (lambda: reshape.bind_rows(BUDGET, pa.table({"Name": ["USGS"]})), SchemaMismatch),
        (lambda: reshape.bind_columns(BUDGET, pa.table({"x": [1]})), RowCountMismatch),
        (lambda: reshape.join(BUDGET, BUDGET, "Name", "NoSuchColumn"), InvalidColumnReference),
    ],
)
def test_errors(operation, error):
    with pytest.raises(error):
        operation()
