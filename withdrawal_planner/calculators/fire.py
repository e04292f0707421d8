"""FIRE (financial independence) milestones.

Five targets are measured in today's dollars against a balance that grows at
the real (inflation-adjusted) return from the Fisher relation
``(1 + nominal) / (1 + inflation) - 1``:

* **Lean**: 70% of spending at a 4% withdrawal rate (x25);
* **Barista**: spending less part-time income at 4%, never below zero;
* **Coast**: the Standard target discounted at the real rate back from the
  retirement age, i.e. enough to coast there without further saving;
* **Standard**: full spending at 4% (x25);
* **Fat**: 150% of spending at a 3% rate (x33).

The balance is projected a year at a time (growth, then the year's savings)
until every target is met or age 100.

Example
-------

>>> ms = fire_milestones(annual_spending=40000, total_assets=500000,
...                      annual_savings=20000, rate_of_return=0.07,
...                      inflation_rate=0.03, current_age=40, current_year=2025)
>>> [m.type.value for m in ms]
['Barista', 'Coast', 'Lean', 'Standard', 'Fat']
>>> ms[0].age_reached
40
"""

from __future__ import annotations

import math
from datetime import date
from typing import List, Optional

from ..models import FireMilestone, FireMilestoneType, UserProfile

MAX_AGE = 100
DEFAULT_CONSULTING_INCOME = 25000.0
DEFAULT_COAST_AGE = 65


def real_rate(rate_of_return: float, inflation_rate: float) -> float:
    """Fisher real rate of return."""
    return (1 + rate_of_return) / (1 + inflation_rate) - 1


def _progress(assets: float, target: float) -> int:
    if target <= 0:
        return 100
    # round half up
    return int(min(100, math.floor(assets / target * 100 + 0.5)))


def fire_milestones(
    annual_spending: float,
    total_assets: float,
    annual_savings: float,
    rate_of_return: float,
    inflation_rate: float,
    current_age: int,
    retirement_age: Optional[int] = None,
    consulting_income: float = DEFAULT_CONSULTING_INCOME,
    current_year: Optional[int] = None,
    max_age: int = MAX_AGE,
) -> List[FireMilestone]:
    """Compute the five FIRE targets and the age each one is reached.

    Parameters
    ----------
    annual_spending : float
        Spending in today's dollars.
    total_assets : float
        Invested assets today.
    annual_savings : float
        Total contributions added at the end of each year.
    rate_of_return, inflation_rate : float
        Nominal return and inflation; only their real combination is used.
    current_age : int
        Age today; a target already met is reached at this age.
    retirement_age : int, optional
        Age the Coast target aims for (65 when omitted).
    consulting_income : float
        Part-time income assumed by the Barista target.
    current_year : int, optional
        Calendar year of ``current_age`` (this year when omitted).

    Returns
    -------
    list of FireMilestone
        Sorted by target amount, smallest first.  ``age_reached`` and
        ``year_reached`` stay None for targets not met by ``max_age``.
    """
    rate = real_rate(rate_of_return, inflation_rate)
    year0 = current_year if current_year is not None else date.today().year

    standard = annual_spending * 25
    coast_age = retirement_age or DEFAULT_COAST_AGE
    years_to_coast = max(0, coast_age - current_age)

    targets = [
        (FireMilestoneType.LEAN, annual_spending * 0.7 * 25,
         "Expenses reduced by 30%, 4% withdrawal rate"),
        (FireMilestoneType.BARISTA, max(0.0, (annual_spending - consulting_income) / 0.04),
         f"Expenses covered by 4% withdrawal + ${consulting_income / 1000:,g}k part-time income"),
        (FireMilestoneType.COAST, standard / (1 + rate) ** years_to_coast,
         f"Invested assets grow to standard FIRE by age {coast_age} without further contributions"),
        (FireMilestoneType.STANDARD, standard,
         "Full current expenses coverage at 4% withdrawal rate"),
        (FireMilestoneType.FAT, annual_spending * 1.5 * 33,
         "Expenses increased by 50%, 3% conservative withdrawal rate"),
    ]

    reached = {}
    assets = total_assets
    age = current_age
    for kind, target, _ in targets:
        if assets >= target:
            reached[kind] = (age, year0)

    while age < max_age and len(reached) < len(targets):
        age += 1
        assets = assets * (1 + rate) + annual_savings
        for kind, target, _ in targets:
            if kind not in reached and assets >= target:
                reached[kind] = (age, year0 + age - current_age)

    milestones = [
        FireMilestone(
            type=kind,
            target_amount=target,
            description=description,
            age_reached=reached.get(kind, (None, None))[0],
            year_reached=reached.get(kind, (None, None))[1],
            percentage_progress=_progress(total_assets, target),
        )
        for kind, target, description in targets
    ]
    return sorted(milestones, key=lambda m: m.target_amount)


def profile_fire_milestones(
    profile: UserProfile,
    consulting_income: float = DEFAULT_CONSULTING_INCOME,
    current_year: Optional[int] = None,
) -> List[FireMilestone]:
    """FIRE milestones for a "today" profile.

    Spending, balances and contributions are read as of ``base_age``; the
    profile's retirement age is the Coast target age.
    """
    c = profile.contributions
    return fire_milestones(
        annual_spending=profile.spending_need,
        total_assets=profile.assets.total,
        annual_savings=c.pre_tax + c.roth + c.taxable + c.hsa,
        rate_of_return=profile.assumptions.rate_of_return,
        inflation_rate=profile.assumptions.inflation_rate,
        current_age=profile.base_age,
        retirement_age=profile.age,
        consulting_income=consulting_income,
        current_year=current_year,
    )


__all__ = ["fire_milestones", "profile_fire_milestones", "real_rate"]
