"""End-to-end planning pipeline.

``run_plan`` projects a profile to its retirement year, solves the first
withdrawal year and simulates the balances through age 100.
``scenario_summary`` runs the same pipeline for a different set of annual
contributions and condenses the result so that a baseline and a what-if
variant can be compared side by side.

Example
-------

>>> from withdrawal_planner.models import Assets, Contributions, UserProfile
>>> profile = UserProfile(age=65, base_age=55, spending_need=20000,
...                       assets=Assets(pre_tax=400000, taxable=100000))
>>> base = scenario_summary(profile)
>>> more = scenario_summary(profile, Contributions(pre_tax=10000))
>>> more["ending_balance"] > base["ending_balance"]
True
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from .calculators.longevity import MAX_AGE, simulate_longevity
from .calculators.projection import retirement_profile
from .calculators.strategy import calculate_strategy
from .calculators.taxes import DEFAULT_YEAR, TaxTables
from .models import Contributions, LongevityResult, StrategyResult, UserProfile


def run_plan(
    profile: UserProfile,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> Tuple[StrategyResult, LongevityResult]:
    """Solve the first retirement year and simulate the years after it."""
    start = retirement_profile(profile)
    strategy = calculate_strategy(start, year=year, tax_tables=tax_tables)
    longevity = simulate_longevity(start, strategy, year=year, tax_tables=tax_tables)
    return strategy, longevity


def scenario_summary(
    profile: UserProfile,
    contributions: Optional[Contributions] = None,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> Dict[str, Any]:
    """Summarise the plan for ``profile`` with alternative ``contributions``.

    Parameters
    ----------
    profile : UserProfile
        Baseline profile.
    contributions : Contributions, optional
        Annual contributions until retirement replacing the profile's own.

    Returns
    -------
    dict
        ``lifetime_tax`` (sum of the estimated tax of every simulated year),
        ``ending_balance`` (total assets at age 100; 0 when the simulation
        has no age-100 year), ``ending_balance_pv`` (the same in today's
        dollars, discounted by the accumulation inflation rate from
        ``base_age``), ``start_assets`` (total assets at retirement start),
        ``depletion_age``, ``sustainable``, ``initial_withdrawal_rate``,
        ``first_year_withdrawal`` and ``first_year_tax``.
    """
    if contributions is not None:
        profile = replace(profile, contributions=contributions)
    start = retirement_profile(profile)
    strategy = calculate_strategy(start, year=year, tax_tables=tax_tables)
    longevity = simulate_longevity(start, strategy, year=year, tax_tables=tax_tables)

    df = longevity.to_frame()
    ending = 0.0
    lifetime_tax = 0.0
    if not df.empty:
        if MAX_AGE in df.index:
            ending = float(df.loc[MAX_AGE, "total_assets"])
        lifetime_tax = float(df["estimated_tax"].sum())
    discount = (1 + profile.assumptions.inflation_rate) ** (MAX_AGE - profile.base_age)

    return {
        "lifetime_tax": lifetime_tax,
        "ending_balance": ending,
        "ending_balance_pv": ending / discount,
        "start_assets": start.assets.total,
        "depletion_age": longevity.depletion_age,
        "sustainable": longevity.sustainable,
        "initial_withdrawal_rate": longevity.initial_withdrawal_rate,
        "first_year_withdrawal": strategy.total_withdrawal,
        "first_year_tax": strategy.estimated_federal_tax,
    }


__all__ = ["run_plan", "scenario_summary"]
