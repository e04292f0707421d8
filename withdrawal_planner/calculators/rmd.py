"""Required Minimum Distribution (RMD) calculator.

RMDs begin at the statutory start age (73 under SECURE Act 2.0 for the
households this planner targets) and equal the prior year-end traditional
balance divided by the distribution period from the IRS Uniform Lifetime
Table (2022 update).  Ages missing from the table use a fixed fallback
divisor instead of producing an undefined amount.

Example
-------

>>> round(compute_rmd(balance=500000, age=73), 2)
18867.92
"""

from __future__ import annotations

from typing import Optional

from .taxes import TaxTables, load_tax_tables


def _distribution(tax_tables: Optional[TaxTables] = None):
    tables = tax_tables or load_tax_tables()
    return tables["distribution"]


def rmd_start_age(tax_tables: Optional[TaxTables] = None) -> int:
    """Age at which RMDs must begin."""
    return int(_distribution(tax_tables)["rmd_start_age"])


def distribution_period(age: int, tax_tables: Optional[TaxTables] = None) -> float:
    """Uniform Lifetime Table divisor for ``age`` (fallback when not listed)."""
    dist = _distribution(tax_tables)
    period = dist["uniform_lifetime"].get(str(int(age)))
    if not period:
        return float(dist["rmd_fallback_divisor"])
    return float(period)


def compute_rmd(balance: float, age: int, tax_tables: Optional[TaxTables] = None) -> float:
    """Compute the Required Minimum Distribution for a given age and balance.

    Parameters
    ----------
    balance : float
        The traditional account balance at the start of the year.
    age : int
        Age of the account owner in the distribution year.

    Returns
    -------
    float
        The RMD amount.  Zero before the start age or for a non-positive
        balance.
    """
    if balance <= 0 or age < rmd_start_age(tax_tables):
        return 0.0
    return balance / distribution_period(age, tax_tables)


__all__ = ["rmd_start_age", "distribution_period", "compute_rmd"]
