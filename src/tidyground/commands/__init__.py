"""Shell commands exposing TidyGround functionalities.

This module contains the shell commands that can be used to interact with TidyGround.

Reshape
=======

``tidyground-reshape`` reshapes CSV and Parquet files::

    tidyground-reshape melt budget.csv --id Name --key FY --value Dollars

It can be tested against provided example data running it with the following commands::

    tidyground-reshape melt examples/data/budget.csv --id Name --key FY --value Dollars -o long.csv
    tidyground-reshape cast long.csv --id Name --key FY --value Dollars
    tidyground-reshape join examples/data/budget.csv examples/data/agencies.csv --left-key Name --how left
"""
