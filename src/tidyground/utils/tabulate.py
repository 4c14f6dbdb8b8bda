"""Format tabular data into a text table for print.

the `tabulate` function takes a `pyarrow.Table` or `pyarrow.RecordBatch` and formats it into a text table.
It will truncate long strings, format floats to 2 decimal places, show missing values as ``NA``
and limit the number of rows to display.
The function is used to display the result of a reshaping in the command line tool.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "Name": ["NASA", "NASA", "NOAA"],
    ...     "FY": ["FY2000", "FY2001", "FY2000"],
    ...     "Dollars": [66.5, 38.72, None],
    ... }
    >>> table = pa.table(data)
    >>> print(tabulate(table))
    Name | FY     | Dollars
    ---- | ------ | -------
    NASA | FY2000 | 66.50
    NASA | FY2001 | 38.72
    NOAA | FY2000 | NA
"""

from typing import Any

import pyarrow as pa

MISSING = "NA"


def tabulate(data: pa.Table | pa.RecordBatch, max_rows: int = 20) -> str:
    """Format a Table or RecordBatch into a text table.

    Will produce a string like::

        Name | FY2000 | FY2001
        ---- | ------ | ------
        NASA | 10     | 12
        NOAA | 5      | NA
    """
    cols = data.column_names
    rows = [
        [format_value(row[c]) for c in cols]
        for row in data.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    table = "\n".join(header + separator + textrows)
    if data.num_rows > max_rows:
        table += f"\n... and {data.num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes."""
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip()


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    This function will format floats to 2 decimal places,
    and truncate long strings.

    >>> format_value(None)
    'NA'
    >>> format_value(3.14159)
    '3.14'
    """
    if v is None:
        return MISSING
    elif isinstance(v, float):
        return f"{v:.2f}"
    elif isinstance(v, bool):
        return "true" if v else "false"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
