"""Social Security benefit helpers.

The planner takes the household's annual benefit at its claiming age as an
input.  When only a Primary Insurance Amount (PIA) is known,
:func:`social_security_benefit` converts it to an annual amount using the
usual approximations: 7% less per year claimed before full retirement age
(FRA, default 67) and 8% more per year of delay up to 70.

Once claimed, the benefit receives a cost-of-living adjustment equal to the
retirement-phase inflation assumption.

Example
-------

>>> round(social_security_benefit(PIA=2000, start_age=65), 2)
20640.0
>>> round(benefit_for_age(30000, 62, 64, 0.03), 2)
31827.0
"""

from __future__ import annotations


def social_security_benefit(PIA: float, start_age: int, FRA: int = 67) -> float:
    """Estimate the annual benefit for a PIA (monthly) claimed at ``start_age``.

    Claiming ages are clamped to 62..70.
    """
    claim_age = max(62, min(70, start_age))
    years_diff = claim_age - FRA
    if years_diff < 0:
        factor = 1 + 0.07 * years_diff
    else:
        factor = 1 + 0.08 * years_diff
    return PIA * factor * 12


def is_claimed(age: float, claim_age: int) -> bool:
    return age >= claim_age


def benefit_for_age(benefit: float, claim_age: int, age: int, inflation: float) -> float:
    """Annual benefit received at ``age``: zero before claiming, then grown by
    ``inflation`` for each year since the claim."""
    if not is_claimed(age, claim_age) or benefit <= 0:
        return 0.0
    return benefit * (1 + inflation) ** (age - claim_age)


__all__ = ["social_security_benefit", "is_claimed", "benefit_for_age"]
