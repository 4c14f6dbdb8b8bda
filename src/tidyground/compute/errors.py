"""Errors raised when reshaping data.

Reshaping operations are pure and deterministic,
so any error they raise is due to the data or to
the way the operation was requested and retrying
won't help. The caller has to decide whether to
fix the column names, provide an aggregation or give up.
"""

from typing import Any, Iterable


class ReshapeError(Exception):
    """Base class for all the errors raised by the reshaping nodes."""

    pass


class InvalidColumnReference(ReshapeError):
    """One or more of the referenced columns do not exist in the data."""

    def __init__(self, columns: Iterable[str], available: Iterable[str]) -> None:
        """
        :param columns: The columns that were requested but are missing.
        :param available: The columns that the data actually provides.
        """
        self.columns = list(columns)
        self.available = list(available)
        super().__init__(
            f"Columns not found: {', '.join(self.columns)} "
            f"(available columns: {', '.join(self.available)})"
        )


class EmptyMeasuredSet(ReshapeError):
    """There are no columns left to melt once the identifiers are excluded."""

    pass


class AmbiguousCast(ReshapeError):
    """Multiple values ended up in the same cell and no aggregation was provided."""

    def __init__(self, identifiers: tuple[Any, ...], key: Any, count: int) -> None:
        """
        :param identifiers: The values of the identifier columns for the cell.
        :param key: The key value for the cell.
        :param count: How many values were found for the cell.
        """
        self.identifiers = identifiers
        self.key = key
        self.count = count
        super().__init__(
            f"Found {count} values for identifiers {identifiers!r} and key {key!r}, "
            "provide an aggregation to combine them"
        )


class SchemaMismatch(ReshapeError):
    """The tables being combined do not share compatible columns."""

    pass


class RowCountMismatch(ReshapeError):
    """The tables being combined side by side have a different number of rows."""

    pass
