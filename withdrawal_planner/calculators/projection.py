"""Accumulation-phase projection.

Carries a "today" profile forward to the first withdrawal year: balances
grow at the accumulation return and receive their annual contributions, and a
spending need stated in today's dollars is inflated to nominal dollars.
"""

from __future__ import annotations

from dataclasses import replace

from ..models import Assets, Contributions, MarketAssumptions, UserProfile


def nominal_spending_need(profile: UserProfile) -> float:
    """Spending need in dollars of the first withdrawal year."""
    need = profile.spending_need
    if profile.is_spending_real and profile.age > profile.base_age:
        need *= (1 + profile.assumptions.inflation_rate) ** (profile.age - profile.base_age)
    return need


def project_assets(
    assets: Assets,
    contributions: Contributions,
    current_age: int,
    retirement_age: int,
    assumptions: MarketAssumptions,
) -> Assets:
    """Grow balances (then add contributions) once per year until retirement.

    New Roth contributions are added to the Roth basis; growth is earnings
    and never becomes basis.
    """
    years = max(0, retirement_age - current_age)
    if years <= 0:
        return assets

    ret = assumptions.rate_of_return
    pre_tax, roth, taxable, hsa = assets.pre_tax, assets.roth, assets.taxable, assets.hsa
    basis = assets.roth_basis
    for _ in range(years):
        pre_tax = pre_tax * (1 + ret) + contributions.pre_tax
        roth = roth * (1 + ret) + contributions.roth
        taxable = taxable * (1 + ret) + contributions.taxable
        hsa = hsa * (1 + ret) + contributions.hsa
        basis += contributions.roth

    return Assets(pre_tax=pre_tax, roth=roth, roth_basis=basis, taxable=taxable, hsa=hsa)


def retirement_profile(profile: UserProfile) -> UserProfile:
    """Profile as seen from the first withdrawal year.

    Assets are projected, spending becomes nominal, contributions stop and
    the retirement-phase return/inflation replace the accumulation ones.
    """
    if profile.age <= profile.base_age:
        return profile

    a = profile.assumptions
    return replace(
        profile,
        base_age=profile.age,
        assets=project_assets(profile.assets, profile.contributions, profile.base_age, profile.age, a),
        spending_need=nominal_spending_need(profile),
        is_spending_real=False,
        contributions=Contributions(),
        assumptions=replace(
            a,
            inflation_rate=a.inflation_rate_in_retirement,
            rate_of_return=a.rate_of_return_in_retirement,
        ),
    )


__all__ = ["nominal_spending_need", "project_assets", "retirement_profile"]
