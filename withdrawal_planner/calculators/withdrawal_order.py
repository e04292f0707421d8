"""Withdrawal priority rules.

Which accounts to tap, and in what order, depends only on age:

* **Early phase** (before 59½) favours penalty-free money: a mandatory 72(t)
  SEPP draw before 55, the taxable brokerage account, Roth contributions,
  the rule-of-55 exception from 55, and only then penalized traditional and
  Roth-earnings withdrawals.
* **Standard phase** (59½ and later) fills the standard deduction and the
  two lowest ordinary brackets with traditional IRA money, lets brokerage
  gains sit on top in the 0%/15% bands, then takes any further traditional
  money and finally the Roth.

The boundary is a hard cut at 59½.  Buckets are rebuilt for every
evaluation and never mutated.
"""

from __future__ import annotations

from typing import FrozenSet, List, Optional, Union

from ..models import Assets, BucketKind, FilingStatus, TaxTreatment, WithdrawalBucket
from .sepp import sepp_payment
from .taxes import DEFAULT_YEAR, TaxTables, bracket_fill_ceiling, rules

EARLY = "early"
STANDARD = "standard"

EARLY_PHASE_KINDS: FrozenSet[BucketKind] = frozenset({
    BucketKind.SEPP,
    BucketKind.TAXABLE,
    BucketKind.ROTH_BASIS,
    BucketKind.RULE_OF_55,
    BucketKind.PRE_TAX_PENALTY,
    BucketKind.ROTH_EARNINGS_PENALTY,
})

STANDARD_PHASE_KINDS: FrozenSet[BucketKind] = frozenset({
    BucketKind.PRE_TAX_BRACKET_FILL,
    BucketKind.TAXABLE,
    BucketKind.PRE_TAX_ADDITIONAL,
    BucketKind.ROTH,
})


def phase(age: float, tax_tables: Optional[TaxTables] = None) -> str:
    """Return ``"early"`` before the penalty-free age and ``"standard"`` after."""
    return EARLY if age < float(rules(tax_tables)["penalty_free_age"]) else STANDARD


def _early_phase(age: float, assets: Assets, tax_tables: Optional[TaxTables]) -> List[WithdrawalBucket]:
    order: List[WithdrawalBucket] = []
    rule_of_55_age = float(rules(tax_tables)["rule_of_55_age"])

    if age < rule_of_55_age:
        payment = sepp_payment(assets.pre_tax, int(age), tax_tables)
        if payment > 0:
            order.append(WithdrawalBucket(BucketKind.SEPP, payment, TaxTreatment.ORDINARY, mandatory=True))

    order.append(WithdrawalBucket(BucketKind.TAXABLE, assets.taxable, TaxTreatment.CAPITAL_GAINS))
    order.append(WithdrawalBucket(BucketKind.ROTH_BASIS, assets.roth_basis_available, TaxTreatment.NONE))

    if age >= rule_of_55_age:
        order.append(WithdrawalBucket(BucketKind.RULE_OF_55, assets.pre_tax, TaxTreatment.ORDINARY))

    order.append(WithdrawalBucket(BucketKind.PRE_TAX_PENALTY, assets.pre_tax, TaxTreatment.ORDINARY, penalty=True))

    earnings = max(0.0, assets.roth - assets.roth_basis_available)
    if earnings > 0:
        order.append(
            WithdrawalBucket(BucketKind.ROTH_EARNINGS_PENALTY, earnings, TaxTreatment.ORDINARY, penalty=True)
        )
    return order


def _standard_phase(
    assets: Assets,
    deduction: float,
    filing_status: Union[FilingStatus, str],
    year: int,
    tax_tables: Optional[TaxTables],
) -> List[WithdrawalBucket]:
    order: List[WithdrawalBucket] = []
    fill = min(assets.pre_tax, bracket_fill_ceiling(filing_status, deduction, year, tax_tables))

    if assets.pre_tax > 0:
        order.append(WithdrawalBucket(BucketKind.PRE_TAX_BRACKET_FILL, fill, TaxTreatment.ORDINARY))
    if assets.taxable > 0:
        order.append(WithdrawalBucket(BucketKind.TAXABLE, assets.taxable, TaxTreatment.CAPITAL_GAINS))
    if assets.pre_tax > fill:
        order.append(WithdrawalBucket(BucketKind.PRE_TAX_ADDITIONAL, assets.pre_tax - fill, TaxTreatment.ORDINARY))
    # after 59½ (and the five-year rule) basis and earnings are both tax-free
    if assets.roth > 0:
        order.append(WithdrawalBucket(BucketKind.ROTH, assets.roth, TaxTreatment.NONE))
    return order


def withdrawal_order(
    age: float,
    assets: Assets,
    standard_deduction: float,
    filing_status: Union[FilingStatus, str] = FilingStatus.SINGLE,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> List[WithdrawalBucket]:
    """Ordered withdrawal buckets for ``age``.

    Parameters
    ----------
    age : float
        Age in the withdrawal year.
    assets : Assets
        Balances used to size each bucket's limit.
    standard_deduction : float
        Deduction for the year; part of the standard-phase bracket-fill
        ceiling.
    filing_status : FilingStatus or str
        Selects the ordinary brackets used for the ceiling.

    Returns
    -------
    list of WithdrawalBucket
        Highest priority first.
    """
    if phase(age, tax_tables) == EARLY:
        return _early_phase(age, assets, tax_tables)
    return _standard_phase(assets, standard_deduction, filing_status, year, tax_tables)


__all__ = [
    "EARLY",
    "STANDARD",
    "EARLY_PHASE_KINDS",
    "STANDARD_PHASE_KINDS",
    "phase",
    "withdrawal_order",
]
