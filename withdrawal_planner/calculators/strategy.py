"""Single-year withdrawal strategy solver.

The gross amount to withdraw depends on the tax it triggers, and the tax
depends on what is withdrawn.  :func:`calculate_strategy` resolves this with
a bounded fixed-point iteration: start with zero tax and penalty, size the
withdrawals for ``need + tax + penalty``, recompute tax and penalty from the
resulting income, and repeat until both move by less than the tolerance.
When the cap is reached the last iteration is returned as a best-effort
answer.

Brokerage withdrawals are assumed to be 50% realized gain; lot-level basis is
not tracked.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import (
    Account,
    Assets,
    BucketKind,
    StrategyResult,
    TaxTreatment,
    UserProfile,
    WithdrawalBucket,
    WithdrawalSource,
)
from . import rmd, roth
from .projection import nominal_spending_need
from .social_security import is_claimed
from .taxes import (
    DEFAULT_YEAR,
    TaxTables,
    compute_federal_tax,
    load_tax_tables,
    rules,
    standard_deduction,
    taxable_social_security,
)
from .withdrawal_order import withdrawal_order

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 15
TOLERANCE = 5.0

# a remaining gap this small counts as filled
_GAP_SLACK = 0.5
_GAP_FILLED = 1.0


def working_balances(assets: Assets) -> Dict[str, float]:
    return {
        "pre_tax": float(assets.pre_tax),
        "roth": float(assets.roth),
        "roth_basis": float(assets.roth_basis),
        "taxable": float(assets.taxable),
        "hsa": float(assets.hsa),
    }


def _available(kind: BucketKind, bal: Dict[str, float]) -> float:
    basis = max(0.0, min(bal["roth_basis"], bal["roth"]))
    if kind is BucketKind.ROTH_BASIS:
        return basis
    if kind is BucketKind.ROTH_EARNINGS_PENALTY:
        return max(0.0, bal["roth"] - basis)
    return max(0.0, bal[kind.account.value])


def _debit(kind: BucketKind, bal: Dict[str, float], amount: float) -> None:
    bal[kind.account.value] -= amount
    if kind is BucketKind.ROTH_BASIS:
        bal["roth_basis"] -= amount
    elif kind.account is Account.ROTH:
        bal["roth_basis"] = min(bal["roth_basis"], bal["roth"])


def taxable_portion(amount: float, treatment: TaxTreatment, gain_fraction: float) -> float:
    if treatment is TaxTreatment.NONE:
        return 0.0
    if treatment is TaxTreatment.CAPITAL_GAINS:
        return amount * gain_fraction
    return amount


def _note(bucket: WithdrawalBucket) -> str:
    if bucket.penalty:
        return "WARN: Early withdrawal penalty applies."
    if bucket.mandatory:
        return "72(t) SEPP withdrawal (fixed requirement)."
    return "Standard withdrawal."


def draw_buckets(
    buckets: Iterable[WithdrawalBucket],
    balances: Dict[str, float],
    gap: float,
    tax_tables: Optional[TaxTables] = None,
) -> Tuple[List[WithdrawalSource], float, float]:
    """Walk ``buckets`` in order, debiting ``balances`` in place.

    Discretionary buckets draw ``min(gap, limit, available)``; mandatory
    buckets always draw their full limit (capped by the balance), even when
    the gap is already closed, so ``gap`` may end negative.

    Returns
    -------
    tuple
        ``(sources, remaining_gap, penalty)``
    """
    r = rules(tax_tables)
    penalty_rate = float(r["early_penalty_rate"])
    gain_fraction = float(r["capital_gain_fraction"])

    sources: List[WithdrawalSource] = []
    penalty = 0.0
    for bucket in buckets:
        if gap <= _GAP_SLACK and not bucket.mandatory:
            continue
        available = _available(bucket.kind, balances)
        if bucket.mandatory:
            pull = min(available, bucket.limit)
        else:
            pull = min(max(0.0, gap), available, bucket.limit)
        if pull <= 0:
            continue

        _debit(bucket.kind, balances, pull)
        sources.append(
            WithdrawalSource(
                kind=bucket.kind,
                amount=pull,
                taxable_amount=taxable_portion(pull, bucket.treatment, gain_fraction),
                treatment=bucket.treatment,
                note=_note(bucket),
            )
        )
        if bucket.penalty:
            penalty += pull * penalty_rate
        gap -= pull
    return sources, gap, penalty


def split_income(sources: Iterable[WithdrawalSource]) -> Tuple[float, float]:
    """Sum the taxable amounts of ``sources`` into ``(ordinary, capital_gains)``."""
    ordinary = gains = 0.0
    for s in sources:
        if s.treatment is TaxTreatment.ORDINARY:
            ordinary += s.taxable_amount
        elif s.treatment is TaxTreatment.CAPITAL_GAINS:
            gains += s.taxable_amount
    return ordinary, gains


def calculate_strategy(
    profile: UserProfile,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    optimize_roth: bool = True,
) -> StrategyResult:
    """Solve the first withdrawal year for ``profile``.

    ``profile.age`` is the withdrawal year; ``profile.assets`` are the
    balances at its start.  Social Security, pension and brokerage dividends
    are received before any account is tapped.  RMDs are taken first and in
    full.  The Roth conversion optimizer is consulted with the final figures
    unless ``optimize_roth`` is False.
    """
    tables = tax_tables or load_tax_tables()
    age = profile.age
    status = profile.filing_status
    assets = profile.assets
    income = profile.income

    annual_ss = income.social_security if is_claimed(age, income.social_security_start_age) else 0.0
    dividends = assets.taxable * income.dividend_yield
    qualified_dividends = dividends * income.qualified_dividend_ratio
    ordinary_dividends = dividends - qualified_dividends

    nominal_need = nominal_spending_need(profile)
    deduction = standard_deduction(age, status, year, tables)

    estimated_tax = 0.0
    penalty_tax = 0.0
    result: Optional[StrategyResult] = None
    converged = False

    for iteration in range(1, max(1, max_iterations) + 1):
        target = nominal_need + estimated_tax + penalty_tax
        balances = working_balances(assets)
        plan: List[WithdrawalSource] = []

        gross_cash = annual_ss + income.pension + dividends
        ordinary = income.pension + ordinary_dividends
        gains = qualified_dividends

        rmd_amount = rmd.compute_rmd(balances["pre_tax"], age, tables)
        if rmd_amount > 0:
            actual = min(rmd_amount, balances["pre_tax"])
            balances["pre_tax"] -= actual
            plan.append(
                WithdrawalSource(BucketKind.RMD, actual, actual, TaxTreatment.ORDINARY, "Mandatory IRS distribution.")
            )
            gross_cash += actual
            ordinary += actual

        buckets = withdrawal_order(age, assets, deduction, status, year, tables)
        sources, gap, penalty = draw_buckets(buckets, balances, target - gross_cash, tables)
        plan.extend(sources)
        gross_cash += sum(s.amount for s in sources)
        drawn_ordinary, drawn_gains = split_income(sources)
        ordinary += drawn_ordinary
        gains += drawn_gains

        taxable_ss = taxable_social_security(annual_ss, ordinary, status, year, tables)
        tax = compute_federal_tax(ordinary + taxable_ss, gains, status, deduction, year, tables)
        converged = abs(tax - estimated_tax) < tolerance and abs(penalty - penalty_tax) < tolerance
        logger.debug(
            "iteration %d: target=%.2f tax=%.2f penalty=%.2f gap=%.2f", iteration, target, tax, penalty, gap
        )

        notes: List[str] = []
        if penalty > 0:
            notes.append(f"Includes ${penalty:,.0f} early withdrawal penalty.")
        if gap > _GAP_FILLED:
            notes.append(f"Available accounts leave ${gap:,.0f} of the spending need unfunded.")

        result = StrategyResult(
            total_withdrawal=gross_cash,
            gap_filled=gap <= _GAP_FILLED,
            liquidity_gap_warning=gap > _GAP_FILLED or penalty > 0,
            withdrawal_plan=tuple(plan),
            estimated_federal_tax=tax,
            penalty_tax=penalty,
            effective_tax_rate=tax / (gross_cash or 1),
            rmd_amount=rmd_amount,
            taxable_social_security=taxable_ss,
            current_year_social_security=annual_ss,
            provisional_income=ordinary + 0.5 * annual_ss,
            standard_deduction=deduction,
            nominal_spending_needed=nominal_need,
            notes=tuple(notes),
            iterations=iteration,
            converged=converged,
        )
        if converged:
            break
        estimated_tax = tax
        penalty_tax = penalty

    if not converged:
        logger.warning(
            "tax estimate did not converge after %d iterations; returning last estimate", result.iterations
        )
        result = replace(
            result,
            notes=result.notes + (
                f"Tax estimate did not converge after {result.iterations} iterations; figures are approximate.",
            ),
        )

    if not optimize_roth:
        return result

    total_assets = assets.total
    withdrawal_rate = result.total_withdrawal / total_assets * 100 if total_assets > 0 else 0.0
    detail = roth.optimize_conversion(
        profile,
        provisional_income=result.provisional_income,
        taxable_social_security=result.taxable_social_security,
        withdrawal_rate=withdrawal_rate,
        liquidity_gap_warning=result.liquidity_gap_warning,
        year=year,
        tax_tables=tables,
    )
    return replace(result, roth_conversion_amount=detail.recommended_amount, roth_conversion_detail=detail)


__all__ = [
    "MAX_ITERATIONS",
    "TOLERANCE",
    "calculate_strategy",
    "draw_buckets",
    "split_income",
    "taxable_portion",
    "working_balances",
]
