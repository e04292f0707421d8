# calculators/roth.py
"""Roth conversion sizing ("fill strategy").

Given the year's figures from the strategy solver, recommend how much of the
traditional IRA to convert: fill up to the nearest of the next ordinary
bracket, the next Medicare premium (IRMAA) tier and the start of the senior
deduction phase-out, never more than the traditional balance.  The Social
Security torpedo does not cap the amount but raises the effective rate.

A plan that already has a liquidity gap or a withdrawal rate above 8% gets no
recommendation: paying tax early would only bring depletion closer.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple

from ..models import ConversionConstraint, FilingStatus, RothConversionRecommendation, UserProfile
from .social_security import is_claimed
from .taxes import (
    DEFAULT_YEAR,
    TaxTables,
    load_tax_tables,
    marginal_bracket,
    standard_deduction,
    taxable_social_security,
    year_section,
)

MAX_SAFE_WITHDRAWAL_RATE = 8.0  # percent
IRMAA_WARNING_HEADROOM = 5000.0


def torpedo_multiplier(provisional_income: float, benefit: float, filing_status, year: int = DEFAULT_YEAR,
                       tax_tables: Optional[TaxTables] = None) -> Tuple[float, bool, str]:
    """How many dollars of taxable income one extra ordinary dollar creates.

    Returns ``(multiplier, in_zone, description)``: 1.0 below the first
    threshold or once 85% of the benefit is already taxable, 1.5 between the
    thresholds and 1.85 above the second one.
    """
    if benefit <= 0:
        return 1.0, False, "Below SS taxation threshold"
    thresholds = year_section("social_security", filing_status, year, tax_tables, required=True)
    if provisional_income <= float(thresholds["base1"]):
        return 1.0, False, "Below SS taxation threshold"

    taxable = taxable_social_security(benefit, provisional_income - 0.5 * benefit, filing_status, year, tax_tables)
    if taxable >= 0.85 * benefit * 0.99:
        return 1.0, False, "SS already fully taxed (85%)"

    if provisional_income <= float(thresholds["base2"]):
        return 1.5, True, "In 50% SS taxation zone (1.5x multiplier)"
    return 1.85, True, 'In 85% SS taxation zone (1.85x "Torpedo" multiplier)'


def _limit(tier: Mapping[str, Any]) -> float:
    return float("inf") if tier["limit"] is None else float(tier["limit"])


def irmaa_tier(magi: float, filing_status, year: int = DEFAULT_YEAR,
               tax_tables: Optional[TaxTables] = None) -> Optional[dict]:
    """Current IRMAA tier, headroom to its cliff and the annual cost of crossing it."""
    irmaa = (tax_tables or load_tax_tables())[str(year)].get("irmaa")
    if not irmaa:
        return None
    tiers = irmaa[FilingStatus(filing_status).value]
    buffer = float(irmaa.get("safety_buffer", 0.0))
    for i, tier in enumerate(tiers):
        limit = _limit(tier)
        if magi <= limit:
            nxt = tiers[i + 1] if i + 1 < len(tiers) else tier
            monthly = (float(nxt["part_b"]) + float(nxt["part_d"])) - (float(tier["part_b"]) + float(tier["part_d"]))
            return {
                "tier": i,
                "cliff": limit,
                "headroom": max(0.0, limit - magi - buffer),
                "annual_cost": monthly * 12,
            }
    return None


def senior_deduction(age: int, magi: float, filing_status, year: int = DEFAULT_YEAR,
                     tax_tables: Optional[TaxTables] = None) -> Optional[dict]:
    """Senior deduction after phase-out, or None when it does not apply."""
    info = year_section("senior_deduction", filing_status, year, tax_tables)
    if age < 65 or not info:
        return None
    start, end = float(info["phaseout_start"]), float(info["phaseout_end"])
    amount = float(info["amount"])
    if magi <= start:
        return {"deduction": amount, "headroom": start - magi, "in_phaseout": False}
    if magi >= end:
        return {"deduction": 0.0, "headroom": 0.0, "in_phaseout": True}
    reduced = max(0.0, amount - (magi - start) * float(info["rate"]))
    return {"deduction": reduced, "headroom": 0.0, "in_phaseout": True}


def optimize_conversion(
    profile: UserProfile,
    provisional_income: float,
    taxable_social_security: float,
    withdrawal_rate: Optional[float] = None,
    liquidity_gap_warning: bool = False,
    year: int = DEFAULT_YEAR,
    tax_tables: Optional[TaxTables] = None,
) -> RothConversionRecommendation:
    """Recommend a Roth conversion amount for the profile's first withdrawal year.

    Parameters
    ----------
    profile : UserProfile
        Household profile; the traditional balance bounds the conversion.
    provisional_income : float
        Provisional income computed by the strategy solver (ordinary income
        plus half the benefit).
    taxable_social_security : float
        Taxable part of the benefit computed by the solver.
    withdrawal_rate : float, optional
        Current withdrawal rate in percent.
    liquidity_gap_warning : bool
        The solver's liquidity-gap flag.
    """
    status = profile.filing_status
    age = profile.age
    pre_tax = profile.assets.pre_tax

    if (withdrawal_rate and withdrawal_rate > MAX_SAFE_WITHDRAWAL_RATE) or liquidity_gap_warning:
        if liquidity_gap_warning:
            why = "You have an immediate liquidity gap or early withdrawal penalties. Preserving cash is critical."
        else:
            why = (f"Current withdrawal rate ({withdrawal_rate:.1f}%) is critically high "
                   f"(>{MAX_SAFE_WITHDRAWAL_RATE:.0f}%). Paying taxes now may make things worse.")
        return RothConversionRecommendation(
            recommended_amount=0.0,
            effective_marginal_rate=0.0,
            binding_constraint=None,
            in_torpedo_zone=False,
            torpedo_multiplier=1.0,
            warnings=("Sustainability Risk: Portfolio depletion is imminent. "
                      "Tax optimization is secondary to solvency.",),
            reasoning=("SUSTAINABILITY OVERRIDE: Roth conversion not recommended.", why),
        )

    if pre_tax <= 0:
        return RothConversionRecommendation(
            recommended_amount=0.0,
            effective_marginal_rate=0.0,
            binding_constraint=None,
            in_torpedo_zone=False,
            torpedo_multiplier=1.0,
            reasoning=("No Traditional IRA balance available for conversion.",),
        )

    income = profile.income
    benefit = income.social_security if is_claimed(age, income.social_security_start_age) else 0.0
    ordinary = provisional_income - 0.5 * benefit
    magi = ordinary + taxable_social_security
    deduction = standard_deduction(age, status, year, tax_tables)
    taxable_income = max(0.0, magi - deduction)

    constraints: List[ConversionConstraint] = []
    reasoning: List[str] = []
    warnings: List[str] = []

    bracket = marginal_bracket(taxable_income, status, year, tax_tables)
    rate = bracket["rate"]
    constraints.append(ConversionConstraint(
        type="bracket",
        headroom=bracket["headroom"],
        description=f"${bracket['headroom']:,.0f} until {rate:.0%} -> next bracket",
        effective_rate=rate,
    ))
    reasoning.append(f"Current tax bracket: {rate:.0%}")

    irmaa = irmaa_tier(magi, status, year, tax_tables)
    if irmaa and irmaa["cliff"] < float("inf"):
        constraints.append(ConversionConstraint(
            type="irmaa",
            headroom=irmaa["headroom"],
            description=f"${irmaa['headroom']:,.0f} until IRMAA Tier {irmaa['tier'] + 1} cliff",
            annual_cost=irmaa["annual_cost"],
        ))
        if irmaa["headroom"] < IRMAA_WARNING_HEADROOM:
            warnings.append(
                f"Close to IRMAA cliff! Crossing adds ${irmaa['annual_cost']:,.0f}/year to Medicare premiums."
            )

    senior = senior_deduction(age, magi, status, year, tax_tables)
    if senior is not None:
        constraints.append(ConversionConstraint(
            type="senior_phaseout",
            headroom=senior["headroom"],
            description=f"${senior['headroom']:,.0f} until Senior Deduction phase-out begins",
        ))
        if senior["in_phaseout"]:
            warnings.append(
                f"In Senior Deduction phase-out zone. Effective rate increased by ~{rate * 0.06:.1%}."
            )

    multiplier, in_zone, description = torpedo_multiplier(provisional_income, benefit, status, year, tax_tables)
    if benefit > 0 and in_zone:
        constraints.append(ConversionConstraint(
            type="ss_torpedo",
            headroom=0.0,
            description=description,
            effective_rate=rate * multiplier,
        ))
        warnings.append(f"SS Tax Torpedo active! Each $1 converted is taxed at ~{rate * multiplier:.0%} effective rate.")

    ceilings = [c for c in constraints if c.headroom > 0 and c.type != "ss_torpedo"]
    binding: Optional[str] = None
    safe = pre_tax
    for c in ceilings:
        if c.headroom < safe:
            safe = c.headroom
            binding = c.type
    if binding is None:
        reasoning.append("Recommended converting entire Traditional IRA balance.")

    effective = rate * multiplier if in_zone else rate
    if senior is not None and senior["in_phaseout"]:
        effective += rate * 0.06

    if safe > 0:
        reasoning.append(f"Recommended conversion: ${safe:,.0f} at ~{effective:.0%} effective rate.")
        if binding == "irmaa":
            reasoning.append("Limited by IRMAA cliff - avoiding Medicare premium surcharge.")
        elif binding == "bracket":
            reasoning.append("Filling current tax bracket before jumping to higher rate.")
        elif binding == "senior_phaseout":
            reasoning.append("Limited to preserve Senior Deduction.")

    return RothConversionRecommendation(
        recommended_amount=float(round(safe)),
        effective_marginal_rate=effective,
        binding_constraint=binding,
        in_torpedo_zone=in_zone,
        torpedo_multiplier=multiplier,
        warnings=tuple(warnings),
        reasoning=tuple(reasoning),
        constraints=tuple(constraints),
    )


__all__ = ["optimize_conversion", "torpedo_multiplier", "irmaa_tier", "senior_deduction"]
