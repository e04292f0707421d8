"""Tax calculation utilities.

This module implements a simplified U.S. federal income tax model for a
retired household.  Tables for 2025 (default) and 2024 ship in
``data/tax_tables.json``; they cover the single and married-filing-jointly
statuses, ordinary and long-term capital gains brackets, the additional
deduction for filers 65 and older and the Social Security taxability
thresholds.  State tax, itemized deductions and credits are not modelled.

Ordinary income fills the progressive brackets first.  Capital gains and
qualified dividends are then stacked on top of that ordinary position
("two-layer cake"), so gains first use whatever remains of the 0% band.

Example
-------

>>> # $60 000 of ordinary income for a single filer in 2024
>>> round(compute_federal_tax(60000, 0, "single", 14600, year=2024), 2)
5216.0

>>> # Taxable portion of a $30 000 benefit with $40 000 of other income
>>> round(taxable_social_security(30000, 40000, "single"), 2)
22350.0
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from ..models import FilingStatus

_DEFAULT_TAX_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "tax_tables.json"

DEFAULT_YEAR = 2025

TaxTables = Mapping[str, Any]


def _freeze(obj: Any) -> Any:
    if isinstance(obj, dict):
        return MappingProxyType({k: _freeze(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return tuple(_freeze(v) for v in obj)
    return obj


def load_tax_tables(path: Optional[Path] = None) -> TaxTables:
    """Load tax tables from JSON.

    Parameters
    ----------
    path : Path, optional
        Path to a JSON file following the schema of the bundled
        ``data/tax_tables.json``.  The bundled file is used when omitted.

    Returns
    -------
    Mapping
        The parsed tables as read-only mappings (lists become tuples).
    """
    if path is None:
        return _default_tables()
    with open(path, "r", encoding="utf-8") as f:
        return _freeze(json.load(f))


@lru_cache(maxsize=1)
def _default_tables() -> TaxTables:
    with open(_DEFAULT_TAX_TABLE_PATH, "r", encoding="utf-8") as f:
        return _freeze(json.load(f))


def _status_key(filing_status: Union[FilingStatus, str]) -> str:
    try:
        return FilingStatus(filing_status).value
    except ValueError:
        raise ValueError(f"Unknown filing status: {filing_status!r}") from None


def _year_tables(tables: TaxTables, year: int) -> Mapping[str, Any]:
    return tables[str(year)]


def federal_table(
    filing_status: Union[FilingStatus, str],
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> Mapping[str, Any]:
    """Return the federal table (deductions and brackets) for one filing status."""
    tables = tax_tables or load_tax_tables()
    return _year_tables(tables, year)["federal"][_status_key(filing_status)]


def year_section(
    section: str,
    filing_status: Union[FilingStatus, str],
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
    required: bool = False,
) -> Optional[Any]:
    """Return a per-status section of a tax year (e.g. ``irmaa``).

    Optional sections that are absent give None; with ``required=True`` a
    missing section raises ``ValueError`` naming it.
    """
    tables = tax_tables or load_tax_tables()
    data = _year_tables(tables, year).get(section)
    value = data.get(_status_key(filing_status)) if data else None
    if value is None and required:
        raise ValueError(f"Tax tables for {year} have no {section!r} section for {FilingStatus(filing_status).value}")
    return value


def rules(tax_tables: Optional[TaxTables] = None) -> Mapping[str, Any]:
    """Return the statutory constants (penalty rate, early-access ages, ...)."""
    tables = tax_tables or load_tax_tables()
    return tables["rules"]


def _bracket_end(bracket: Mapping[str, Any]) -> float:
    end = bracket["end"]
    return float("inf") if end is None else float(end)


def standard_deduction(
    age: float,
    filing_status: Union[FilingStatus, str] = FilingStatus.SINGLE,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> float:
    """Standard deduction including the additional amount for filers 65+.

    The additional amount is per person, so a joint return gets it twice.
    """
    table = federal_table(filing_status, year, tax_tables)
    deduction = float(table.get("standard_deduction", 0.0))
    if age >= 65:
        deduction += float(table.get("age_deduction", 0.0)) * FilingStatus(filing_status).people
    return deduction


def bracket_fill_ceiling(
    filing_status: Union[FilingStatus, str],
    deduction: float,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> float:
    """Gross ordinary income that exactly fills the deduction plus the two
    lowest ordinary brackets.

    Used as the traditional-IRA withdrawal target once penalty-free access is
    available.  It leaves the 0%/15% capital gains bands for brokerage sales
    but ignores the Social Security torpedo and Medicare surcharge cliffs, so
    it is a heuristic rather than an optimum.
    """
    brackets: Sequence[Mapping[str, Any]] = federal_table(filing_status, year, tax_tables)["brackets"]
    if not brackets:
        return deduction
    second = brackets[1] if len(brackets) > 1 else brackets[0]
    return deduction + _bracket_end(second)


def taxable_social_security(
    benefit: float,
    other_income: float,
    filing_status: Union[FilingStatus, str] = FilingStatus.SINGLE,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> float:
    """Portion of a Social Security benefit included in taxable income.

    Provisional income is ``other_income + benefit / 2``.  Below the first
    threshold nothing is taxable; between the thresholds half of the excess
    (capped at half the benefit); above the second threshold 85% of the
    excess plus the filing-status secondary amount, capped at 85% of the
    benefit.
    """
    if benefit <= 0:
        return 0.0
    thresholds = year_section("social_security", filing_status, year, tax_tables, required=True)
    base1 = float(thresholds["base1"])
    base2 = float(thresholds["base2"])

    provisional = other_income + 0.5 * benefit
    if provisional <= base1:
        return 0.0
    if provisional <= base2:
        return min(0.5 * benefit, 0.5 * (provisional - base1))

    secondary = min(0.5 * benefit, float(thresholds["secondary"]))
    return min(0.85 * benefit, 0.85 * (provisional - base2) + secondary)


def compute_federal_tax(
    ordinary_income: float,
    capital_gains: float,
    filing_status: Union[FilingStatus, str] = FilingStatus.SINGLE,
    standard_deduction: float = 0.0,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> float:
    """Compute federal income tax on ordinary income and preferential income.

    ``ordinary_income`` should already include the taxable part of any Social
    Security benefit.  ``capital_gains`` covers long-term gains and qualified
    dividends.  The deduction only offsets ordinary income.
    """
    table = federal_table(filing_status, year, tax_tables)

    taxable_ordinary = max(0.0, ordinary_income - standard_deduction)
    tax = 0.0
    remaining = taxable_ordinary
    for bracket in table["brackets"]:
        if remaining <= 0:
            break
        width = _bracket_end(bracket) - float(bracket["start"])
        amount = min(remaining, width)
        tax += amount * float(bracket["rate"])
        remaining -= amount

    remaining_gains = max(0.0, capital_gains)
    position = taxable_ordinary
    for bracket in table.get("cap_gains", ()):
        if remaining_gains <= 0:
            break
        room = max(0.0, _bracket_end(bracket) - position)
        if room > 0:
            taxed_here = min(remaining_gains, room)
            tax += taxed_here * float(bracket["rate"])
            remaining_gains -= taxed_here
            position += taxed_here
    return tax


def marginal_bracket(
    taxable_income: float,
    filing_status: Union[FilingStatus, str] = FilingStatus.SINGLE,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> Dict[str, float]:
    """Rate of the ordinary bracket containing ``taxable_income`` and the
    headroom left before the next one starts."""
    brackets = federal_table(filing_status, year, tax_tables)["brackets"]
    for bracket in brackets:
        end = _bracket_end(bracket)
        if taxable_income <= end:
            return {"rate": float(bracket["rate"]), "next_at": end, "headroom": end - taxable_income}
    top = brackets[-1]
    return {"rate": float(top["rate"]), "next_at": float("inf"), "headroom": float("inf")}


__all__ = [
    "DEFAULT_YEAR",
    "bracket_fill_ceiling",
    "compute_federal_tax",
    "federal_table",
    "load_tax_tables",
    "marginal_bracket",
    "rules",
    "standard_deduction",
    "taxable_social_security",
    "year_section",
]
