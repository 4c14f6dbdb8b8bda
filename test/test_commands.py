import pyarrow as pa
import pyarrow.csv as csv
import pyarrow.parquet as pq
import pytest

from tidyground.commands import reshape

BUDGET = pa.table({"Name": ["NASA", "NOAA"], "FY2000": [10, 5], "FY2001": [12, 6]})
AGENCIES = pa.table({"Name": ["NASA"], "Department": ["Independent"]})


@pytest.fixture
def budget_csv(tmp_path):
    filename = str(tmp_path / "budget.csv")
    csv.write_csv(BUDGET, filename)
    return filename


@pytest.fixture
def agencies_csv(tmp_path):
    filename = str(tmp_path / "agencies.csv")
    csv.write_csv(AGENCIES, filename)
    return filename


def test_melt_prints_table(budget_csv, capsys):
    exit_code = reshape.main(
        ["melt", budget_csv, "--id", "Name", "--key", "FY", "--value", "Dollars"]
    )

    assert exit_code == 0
    output = capsys.readouterr().out.splitlines()
    assert output[0] == "Name | FY     | Dollars"
    assert output[2] == "NASA | FY2000 | 10"
    assert len(output) == 6


def test_melt_then_cast_through_files(budget_csv, tmp_path):
    long_file = str(tmp_path / "long.parquet")
    assert reshape.main(
        ["melt", budget_csv, "--id", "Name", "--key", "FY", "--value", "Dollars", "-o", long_file]
    ) == 0
    assert pq.read_table(long_file).num_rows == 4

    wide_file = str(tmp_path / "wide.csv")
    assert reshape.main(
        ["cast", long_file, "--id", "Name", "--key", "FY", "--value", "Dollars", "--output", wide_file]
    ) == 0
    assert csv.read_csv(wide_file).equals(BUDGET)


def test_cast_with_aggregation(tmp_path, capsys):
    long_file = str(tmp_path / "long.csv")
    csv.write_csv(
        pa.table({"Name": ["NASA", "NASA"], "FY": ["FY2001", "FY2001"], "Dollars": [1, 2]}),
        long_file,
    )

    assert reshape.main(
        ["cast", long_file, "--key", "FY", "--value", "Dollars", "--aggregation", "sum"]
    ) == 0
    assert capsys.readouterr().out.splitlines()[2] == "NASA | 3"


def test_cast_ambiguous_fails(tmp_path, capsys):
    long_file = str(tmp_path / "long.csv")
    csv.write_csv(
        pa.table({"Name": ["NASA", "NASA"], "FY": ["FY2001", "FY2001"], "Dollars": [1, 2]}),
        long_file,
    )

    assert reshape.main(["cast", long_file, "--key", "FY", "--value", "Dollars"]) == 1
    assert "Unable to cast" in capsys.readouterr().err


def test_melt_invalid_column(budget_csv, capsys):
    exit_code = reshape.main(
        ["melt", budget_csv, "--id", "Missing", "--key", "FY", "--value", "Dollars"]
    )

    assert exit_code == 1
    assert "Columns not found: Missing" in capsys.readouterr().err


def test_bind_rows(budget_csv, capsys):
    assert reshape.main(["bind-rows", budget_csv, budget_csv, "--max-rows", "1"]) == 0
    assert capsys.readouterr().out.splitlines()[-1] == "... and 3 more rows"


def test_bind_columns(budget_csv, capsys):
    assert reshape.main(["bind-columns", budget_csv, budget_csv]) == 0
    assert "Name_2" in capsys.readouterr().out.splitlines()[0]


def test_join(budget_csv, agencies_csv, capsys):
    assert reshape.main(
        ["join", budget_csv, agencies_csv, "--left-key", "Name", "--how", "left"]
    ) == 0
    output = capsys.readouterr().out.splitlines()
    assert output[0] == "Name | FY2000 | FY2001 | Department"
    assert output[3] == "NOAA | 5      | 6      | NA"


def test_unsupported_output(tmp_path, capsys):
    missing = str(tmp_path / "missing.csv")
    exit_code = reshape.main(["bind-rows", missing, "-o", str(tmp_path / "out.xlsx")])

    assert exit_code == 1
    assert "File format not supported" in capsys.readouterr().err
    assert not (tmp_path / "out.xlsx").exists()


def test_missing_input_file(tmp_path, capsys):
    missing = str(tmp_path / "missing.csv")
    assert reshape.main(["melt", missing, "--key", "FY", "--value", "Dollars"]) == 1
    assert "Unable to melt" in capsys.readouterr().err


def test_requires_command():
    with pytest.raises(SystemExit):
        reshape.main([])
