"""Multi-decade longevity simulation.

Starting from the first withdrawal year the simulation walks one year at a
time to age 100 (at least 40 years).  Each year:

* income arrives first: the claimed benefit (inflated since the claim), the
  pension and brokerage dividends on the start-of-year balance;
* the RMD is taken once it applies;
* the remaining gross need is drawn with the same two-phase priority order
  as the strategy solver, with the SEPP payment fixed at its starting value
  for the whole mandatory window; any mandatory excess is redeposited into
  the brokerage account;
* the year is recorded, then every account grows at the retirement return.

The gross need starts at the solver's total withdrawal for year one (which
already includes tax) and rises with retirement inflation.  The tax is not
re-solved each year; each year's tax is only estimated for reporting.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..models import (
    Account,
    Assets,
    BucketKind,
    LongevityResult,
    StrategyResult,
    TaxTreatment,
    UserProfile,
    WithdrawalBucket,
    WithdrawalSource,
    YearProjection,
)
from . import rmd
from .sepp import sepp_payment, sepp_window
from .social_security import benefit_for_age, is_claimed
from .strategy import draw_buckets, split_income, working_balances
from .taxes import (
    DEFAULT_YEAR,
    TaxTables,
    compute_federal_tax,
    load_tax_tables,
    rules,
    standard_deduction,
    taxable_social_security,
)
from .withdrawal_order import EARLY, phase, withdrawal_order

logger = logging.getLogger(__name__)

MAX_AGE = 100
MIN_YEARS = 40


def _total(bal) -> float:
    return bal["pre_tax"] + bal["roth"] + bal["taxable"] + bal["hsa"]


def _drawn(sources: List[WithdrawalSource], account: Account) -> float:
    return sum(s.amount for s in sources if s.kind.account is account)


def simulate_longevity(
    profile: UserProfile,
    strategy: StrategyResult,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
    max_age: int = MAX_AGE,
    min_years: int = MIN_YEARS,
) -> LongevityResult:
    """Project balances year by year and report depletion and sustainability.

    Parameters
    ----------
    profile : UserProfile
        Retirement-start profile (``profile.age`` is the first withdrawal year).
    strategy : StrategyResult
        Year-one solution; its ``total_withdrawal`` seeds the gross need.
    max_age : int
        Last simulated age (the horizon is never shorter than ``min_years``).

    Returns
    -------
    LongevityResult
        One :class:`YearProjection` per simulated year, the first age at which
        assets ran out (if any), the initial withdrawal rate and whether it is
        within the sustainable rate.
    """
    tables = tax_tables or load_tax_tables()
    r = rules(tables)
    status = profile.filing_status
    income = profile.income
    growth = profile.assumptions.rate_of_return_in_retirement
    inflation = profile.assumptions.inflation_rate_in_retirement

    balances = working_balances(profile.assets)
    initial_total = profile.assets.total
    gross_need = strategy.total_withdrawal

    start = profile.age
    sepp_start, sepp_end = sepp_window(start, tables)
    # fixed once; never recomputed while the program runs
    fixed_sepp = 0.0
    if start < float(r["rule_of_55_age"]):
        fixed_sepp = sepp_payment(profile.assets.pre_tax, start, tables)

    projection: List[YearProjection] = []
    depletion_age: Optional[int] = None
    years = max(min_years, max_age - start)

    for i in range(years + 1):
        age = start + i

        ss = benefit_for_age(income.social_security, income.social_security_start_age, age, inflation)
        dividends = balances["taxable"] * income.dividend_yield
        fixed_income = ss + income.pension + dividends

        snapshot = Assets(**balances)
        remaining = max(0.0, gross_need - fixed_income)
        sources: List[WithdrawalSource] = []

        rmd_amount = rmd.compute_rmd(balances["pre_tax"], age, tables)
        if rmd_amount > 0:
            take = min(rmd_amount, balances["pre_tax"])
            balances["pre_tax"] -= take
            remaining -= take
            sources.append(WithdrawalSource(BucketKind.RMD, take, take, TaxTreatment.ORDINARY))

        deduction = standard_deduction(age, status, year, tables)
        buckets = [
            b for b in withdrawal_order(age, snapshot, deduction, status, year, tables)
            if b.kind is not BucketKind.SEPP
        ]
        if fixed_sepp > 0 and sepp_start <= age < sepp_end and phase(age, tables) == EARLY:
            buckets.insert(0, WithdrawalBucket(BucketKind.SEPP, fixed_sepp, TaxTreatment.ORDINARY, mandatory=True))

        drawn, remaining, penalty = draw_buckets(buckets, balances, remaining, tables)
        sources.extend(drawn)

        if remaining > 0 and balances["hsa"] > 0:
            take = min(balances["hsa"], remaining)
            balances["hsa"] -= take
            remaining -= take
            sources.append(WithdrawalSource(BucketKind.HSA, take, 0.0, TaxTreatment.NONE))

        if remaining < 0:
            balances["taxable"] += -remaining
            remaining = 0.0

        withdrawal = sum(s.amount for s in sources)
        qualified = dividends * income.qualified_dividend_ratio
        drawn_ordinary, drawn_gains = split_income(sources)
        ordinary = income.pension + (dividends - qualified) + drawn_ordinary
        gains = qualified + drawn_gains
        taxable_ss = taxable_social_security(ss, ordinary, status, year, tables)
        estimated_tax = compute_federal_tax(ordinary + taxable_ss, gains, status, deduction, year, tables)
        cash_flow = withdrawal + fixed_income

        total = _total(balances)
        depleted = total <= 0
        projection.append(YearProjection(
            age=age,
            year=i,
            total_assets=max(0.0, total),
            pre_tax=balances["pre_tax"],
            roth=balances["roth"],
            taxable=balances["taxable"],
            hsa=balances["hsa"],
            withdrawal=withdrawal,
            withdrawal_pre_tax=_drawn(sources, Account.PRE_TAX),
            withdrawal_taxable=_drawn(sources, Account.TAXABLE),
            withdrawal_roth=_drawn(sources, Account.ROTH),
            withdrawal_hsa=_drawn(sources, Account.HSA),
            social_security_income=ss,
            pension_income=income.pension,
            dividend_income=dividends,
            rmd_amount=rmd_amount,
            withdrawal_sepp=sum(s.amount for s in sources if s.kind is BucketKind.SEPP),
            withdrawal_pre_tax_penalty=sum(s.amount for s in sources if s.kind is BucketKind.PRE_TAX_PENALTY),
            early_withdrawal_penalty=penalty,
            is_depleted=depleted,
            estimated_tax=estimated_tax,
            effective_tax_rate=estimated_tax / cash_flow if cash_flow > 0 else 0.0,
        ))

        if depleted and depletion_age is None:
            depletion_age = age
            logger.info("assets depleted at age %d", age)

        for key in ("pre_tax", "roth", "taxable", "hsa"):
            balances[key] *= 1 + growth
        gross_need *= 1 + inflation

    a = profile.assets
    initial_ss = income.social_security if is_claimed(start, income.social_security_start_age) else 0.0
    initial_income = income.pension + a.taxable * income.dividend_yield + initial_ss
    initial_draw = max(0.0, strategy.total_withdrawal - initial_income)
    initial_rate = initial_draw / initial_total if initial_total > 0 else 0.0

    return LongevityResult(
        projection=tuple(projection),
        depletion_age=depletion_age,
        initial_withdrawal_rate=initial_rate,
        sustainable=initial_rate <= float(r["sustainable_withdrawal_rate"]),
    )


__all__ = ["MAX_AGE", "MIN_YEARS", "simulate_longevity"]
