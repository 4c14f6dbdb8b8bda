"""TidyGround

A data reshaping engine built from scratch for learning and teaching purposes.

Data rarely comes in the shape an analysis needs. Budgets are published
with one column per fiscal year, measures are split across multiple files,
lookup information lives in separate tables. TidyGround shows how the
classic reshaping operations work under the hood:

* Melt (or gather), turning wide data into long data.
* Cast (or spread), turning long data back into wide data.
* Binding rows and columns of multiple tables together.
* Joining tables on a key.

The platform is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Compute Engine, in charge of executing the reshaping on Arrow data.
* The Dataframe API, which provides an high level API for the compute engine.
* The reshape functions, which work directly on in memory Arrow tables.
* The ``tidyground-reshape`` command, to reshape files from the shell.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute, reshape

__all__ = ("compute", "reshape")
