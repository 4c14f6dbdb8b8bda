import pyarrow.compute as pc

from tidyground.compute import (
    BindColumnsNode,
    CastNode,
    CSVDataSource,
    JoinNode,
    MeltNode,
    PyArrowTableDataSource,
)
from tidyground.utils.tabulate import tabulate

budget = CSVDataSource("data/budget.csv")

# Add the 2003 budget as a new column
budget = BindColumnsNode(budget, CSVDataSource("data/budget_2003.csv"))
print(tabulate(budget.to_table()))

# Wide to long, one row per agency and fiscal year
long = MeltNode(["Name"], "FY", "Dollars", budget, drop_missing=True).to_table()
print("---")
print(tabulate(long))

# Extract the year from the fiscal year label, FY2000 -> 2000
long = long.append_column(
    "Year", pc.cast(pc.utf8_slice_codeunits(long.column("FY"), 2), "int64")
)

# Who they are, joined by name
joined = JoinNode(
    "Name",
    "Name",
    PyArrowTableDataSource(long),
    CSVDataSource("data/agencies.csv"),
    how="left",
)
print("---")
print(tabulate(joined.to_table()))

# Back to wide, one column per year
wide = CastNode(["Name"], "Year", "Dollars", PyArrowTableDataSource(long.drop_columns(["FY"])))
print("---")
print(tabulate(wide.to_table()))
