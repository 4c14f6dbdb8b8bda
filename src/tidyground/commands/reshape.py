"""Command line interface for reshaping files.

This module provides a command line interface to melt, cast,
bind and join CSV or Parquet files using the
:mod:`tidyground.compute` nodes.

The results are printed to the console in a tabular format
using the :mod:`tidyground.utils.tabulate` module,
or saved to a file when ``--output`` is provided.
"""

import argparse
import logging
import sys

import pyarrow as pa
import pyarrow.csv
import pyarrow.parquet

from tidyground.compute import (
    BindColumnsNode,
    BindRowsNode,
    CastNode,
    JoinNode,
    MeltNode,
    ReshapeError,
    open_datasource,
)
from tidyground.compute.aggregate import AGGREGATIONS
from tidyground.compute.base import QueryPlanNode
from tidyground.compute.join import JOIN_TYPES
from tidyground.utils import tabulate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the parser for the command line arguments."""
    # Options shared by all the commands.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-o", "--output", help="Save the result to a .csv or .parquet file."
    )
    common.add_argument(
        "--max-rows", type=int, default=20, help="How many rows to print."
    )
    common.add_argument(
        "-v", "--verbose", action="store_true", help="Log what each step is doing."
    )
    parser = argparse.ArgumentParser(
        prog="tidyground-reshape", description="Reshape tabular data files."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    melt = commands.add_parser("melt", parents=[common], help="Turn wide data into long data.")
    melt.add_argument("file", help="The file to melt.")
    melt.add_argument(
        "--id", action="append", default=[], dest="ids",
        help="An identifier column. Can be provided multiple times.",
    )
    melt.add_argument("--key", required=True, help="Name of the new key column.")
    melt.add_argument("--value", required=True, help="Name of the new value column.")
    melt.add_argument(
        "--measure", action="append", dest="measures",
        help="A column to melt, defaults to all non identifier columns. Can be provided multiple times.",
    )
    melt.add_argument(
        "--drop-missing", action="store_true", help="Skip rows with missing values."
    )

    cast = commands.add_parser("cast", parents=[common], help="Turn long data into wide data.")
    cast.add_argument("file", help="The file to cast.")
    cast.add_argument(
        "--id", action="append", dest="ids",
        help="An identifier column, defaults to all columns except key and value. Can be provided multiple times.",
    )
    cast.add_argument("--key", required=True, help="The column providing the new column names.")
    cast.add_argument("--value", required=True, help="The column providing the values.")
    cast.add_argument(
        "--aggregation", choices=sorted(AGGREGATIONS),
        help="How to combine multiple values for the same cell.",
    )
    cast.add_argument(
        "--sorted", action="store_true", help="Sort the new columns by key."
    )

    bind_rows = commands.add_parser("bind-rows", parents=[common], help="Stack the rows of multiple files.")
    bind_rows.add_argument("files", nargs="+", help="The files to stack, in order.")
    bind_rows.add_argument(
        "--relaxed", action="store_true",
        help="Allow files with different columns, filling the missing ones.",
    )

    bind_columns = commands.add_parser("bind-columns", parents=[common], help="Put multiple files side by side.")
    bind_columns.add_argument("files", nargs="+", help="The files to combine, left to right.")

    join = commands.add_parser("join", parents=[common], help="Join two files on a key.")
    join.add_argument("left", help="The left file.")
    join.add_argument("right", help="The right file.")
    join.add_argument("--left-key", required=True, help="The key column of the left file.")
    join.add_argument("--right-key", help="The key column of the right file, defaults to --left-key.")
    join.add_argument("--how", choices=JOIN_TYPES, default="inner", help="The type of join.")

    return parser


def build_plan(args: argparse.Namespace) -> QueryPlanNode:
    """Create the plan that performs the requested command."""
    if args.command == "melt":
        return MeltNode(
            args.ids, args.key, args.value, open_datasource(args.file),
            measure_columns=args.measures, drop_missing=args.drop_missing,
        )
    elif args.command == "cast":
        return CastNode(
            args.ids, args.key, args.value, open_datasource(args.file),
            aggregation=args.aggregation,
            column_order="sorted" if args.sorted else "first-seen",
        )
    elif args.command == "bind-rows":
        return BindRowsNode(
            *(open_datasource(f) for f in args.files), strict=not args.relaxed
        )
    elif args.command == "bind-columns":
        return BindColumnsNode(*(open_datasource(f) for f in args.files))
    elif args.command == "join":
        return JoinNode(
            args.left_key, args.right_key or args.left_key,
            open_datasource(args.left), open_datasource(args.right), how=args.how,
        )
    else:
        raise ValueError(f"Unsupported command: {args.command}")


OUTPUT_FORMATS = (".csv", ".parquet")


def check_output(filename: str) -> None:
    """Ensure the output file is in a format that can be written."""
    if not filename.endswith(OUTPUT_FORMATS):
        raise NotImplementedError(f"File format not supported: {filename}")


def write_output(table: pa.Table, filename: str) -> None:
    """Save the table in the format detected by the file extension."""
    check_output(filename)
    if filename.endswith(".csv"):
        pa.csv.write_csv(table, filename)
    else:
        pa.parquet.write_table(table, filename)


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and execute the reshaping."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.output:
            check_output(args.output)
        plan = build_plan(args)
        logger.debug("Executing %s", plan)
        result = plan.to_table()
        if args.output:
            write_output(result, args.output)
            logger.debug("Saved %d rows to %s", result.num_rows, args.output)
    except (ReshapeError, ValueError, NotImplementedError, OSError) as e:
        print(f"Unable to {args.command}, {e}", file=sys.stderr)
        return 1

    if not args.output:
        print(tabulate.tabulate(result, max_rows=args.max_rows))
    return 0


if __name__ == "__main__":
    sys.exit(main())
