"""72(t) Substantially Equal Periodic Payments.

A SEPP program gives penalty-free access to a traditional IRA before 59½ in
exchange for a fixed annual payment.  The amortization method is used:

    payment = balance * r (1 + r)^n / ((1 + r)^n - 1)

where ``n`` is the Single Life Expectancy divisor for the starting age and
``r`` the interest rate allowed by the IRS (5% here).  The payment is fixed
when the program starts and must be taken every year for five years or until
59½, whichever is longer; recomputing it mid-program would bust the
exemption.

Example
-------

>>> # amortization pays more than straight-line division by n
>>> sepp_payment(500000, 50) > 500000 / life_expectancy(50)
True
>>> sepp_window(50)
(50, 59.5)
"""

from __future__ import annotations

from typing import Optional, Tuple

from .taxes import TaxTables, load_tax_tables, rules


def life_expectancy(age: int, tax_tables: Optional[TaxTables] = None) -> float:
    """Single Life Expectancy divisor, falling back when ``age`` is not listed."""
    dist = (tax_tables or load_tax_tables())["distribution"]
    value = dist["single_life"].get(str(int(age)))
    if not value:
        return float(dist["single_life_fallback"])
    return float(value)


def sepp_payment(balance: float, age: int, tax_tables: Optional[TaxTables] = None) -> float:
    """Annual amortized SEPP payment for a program starting at ``age``."""
    if balance <= 0:
        return 0.0
    tables = tax_tables or load_tax_tables()
    n = life_expectancy(age, tables)
    r = float(tables["distribution"]["sepp_rate"])
    if r == 0:
        return balance / n
    growth = (1 + r) ** n
    return balance * (r * growth) / (growth - 1)


def sepp_window(start_age: int, tax_tables: Optional[TaxTables] = None) -> Tuple[int, float]:
    """Return ``(start, end)`` of the mandatory payment window.

    Payments are required for ages in ``[start, end)``.
    """
    r = rules(tax_tables)
    end = max(start_age + int(r["sepp_min_years"]), float(r["penalty_free_age"]))
    return start_age, end


__all__ = ["life_expectancy", "sepp_payment", "sepp_window"]
