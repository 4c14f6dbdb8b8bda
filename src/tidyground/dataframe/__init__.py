"""Dataframe library built on top of tidyground.

A dataframe library is a tool designed to handle and manipulate structured data,
typically in the form of tables (i.e., rows and columns).
It allows users to load data from various sources (like CSV files),
explore it, and reshape it.

When exploring data, the same information frequently has to move
between a wide format, convenient to read, and a long format,
convenient to plot and aggregate. The :class:`Dataframe` exposes
the reshaping nodes of the engine as chainable methods::

    budget = Dataframe.open_csv("budget.csv")
    long = budget.melt(["Name"], "FY", "Dollars")
    wide = long.cast(["Name"], "FY", "Dollars").collect()

This module shows how to implement a custom dataframe library,
using the tidyground compute capabilities as its foundation.
"""

from .dataframe import Dataframe

__all__ = ("Dataframe",)
