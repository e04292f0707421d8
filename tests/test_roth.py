"""Tests for the Roth conversion optimizer."""

import json
import math

import pytest

from withdrawal_planner.calculators import roth, taxes
from withdrawal_planner.models import Assets, IncomeProfile, UserProfile


def _base_profile(pre_tax=500000.0, social_security=0.0, claim_age=70):
    return UserProfile(
        age=67,
        base_age=67,
        filing_status="single",
        assets=Assets(pre_tax=pre_tax),
        income=IncomeProfile(social_security=social_security, social_security_start_age=claim_age),
    )


def test_override_on_high_withdrawal_rate():
    rec = roth.optimize_conversion(_base_profile(), 20000.0, 0.0, withdrawal_rate=9.0)
    assert rec.recommended_amount == 0.0
    assert rec.binding_constraint is None
    assert "SUSTAINABILITY OVERRIDE" in rec.reasoning[0]
    assert "9.0%" in rec.reasoning[1]
    assert rec.warnings


def test_override_on_liquidity_gap():
    rec = roth.optimize_conversion(_base_profile(), 20000.0, 0.0, withdrawal_rate=3.0, liquidity_gap_warning=True)
    assert rec.recommended_amount == 0.0
    assert "liquidity gap" in rec.reasoning[1]


def test_nothing_to_convert():
    rec = roth.optimize_conversion(_base_profile(pre_tax=0.0), 20000.0, 0.0, withdrawal_rate=3.0)
    assert rec.recommended_amount == 0.0
    assert rec.constraints == ()


def test_fill_current_bracket():
    """With $20k of income the 10% bracket is the nearest ceiling."""
    rec = roth.optimize_conversion(_base_profile(), 20000.0, 0.0, withdrawal_rate=3.0)
    # taxable income 20 000 - 16 950 = 3 050
    assert rec.recommended_amount == 11925 - 3050
    assert rec.binding_constraint == "bracket"
    assert rec.effective_marginal_rate == pytest.approx(0.10)
    assert {c.type for c in rec.constraints} == {"bracket", "irmaa", "senior_phaseout"}
    assert not rec.in_torpedo_zone


def test_whole_balance_fits():
    rec = roth.optimize_conversion(_base_profile(pre_tax=5000.0), 20000.0, 0.0, withdrawal_rate=3.0)
    assert rec.recommended_amount == 5000.0
    assert rec.binding_constraint is None
    assert any("entire Traditional IRA" in r for r in rec.reasoning)


def test_irmaa_cliff_binds():
    rec = roth.optimize_conversion(_base_profile(), 104000.0, 0.0, withdrawal_rate=3.0)
    assert rec.binding_constraint == "irmaa"
    # 106 000 cliff less the 1 000 safety buffer
    assert rec.recommended_amount == 1000.0
    assert any("IRMAA" in w for w in rec.warnings)
    # 22% bracket plus the senior deduction phase-out
    assert rec.effective_marginal_rate == pytest.approx(0.22 * 1.06)


def test_torpedo_raises_effective_rate():
    profile = _base_profile(social_security=20000.0, claim_age=62)
    rec = roth.optimize_conversion(profile, 40000.0, 9600.0, withdrawal_rate=3.0)
    assert rec.in_torpedo_zone
    assert rec.torpedo_multiplier == pytest.approx(1.85)
    assert rec.effective_marginal_rate == pytest.approx(0.12 * 1.85)
    assert rec.binding_constraint == "bracket"
    assert rec.recommended_amount == 48475 - (39600 - 16950)
    assert "ss_torpedo" in {c.type for c in rec.constraints}


@pytest.mark.parametrize(
    "provisional,benefit,multiplier,in_zone",
    [
        (20000.0, 20000.0, 1.0, False),
        (30000.0, 20000.0, 1.5, True),
        (40000.0, 20000.0, 1.85, True),
        (100000.0, 20000.0, 1.0, False),
        (40000.0, 0.0, 1.0, False),
    ],
)
def test_torpedo_multiplier(provisional, benefit, multiplier, in_zone):
    mult, zone, _ = roth.torpedo_multiplier(provisional, benefit, "single")
    assert mult == multiplier
    assert zone is in_zone


def test_irmaa_tier():
    tier = roth.irmaa_tier(100000.0, "single")
    assert tier["tier"] == 0
    assert tier["cliff"] == 106000.0
    assert tier["headroom"] == pytest.approx(5000.0)
    assert tier["annual_cost"] == pytest.approx((74.0 + 13.7) * 12)
    top = roth.irmaa_tier(900000.0, "single")
    assert math.isinf(top["cliff"])


def test_senior_deduction():
    assert roth.senior_deduction(64, 50000.0, "single") is None
    assert roth.senior_deduction(66, 50000.0, "single", year=2024) is None
    full = roth.senior_deduction(66, 50000.0, "single")
    assert full["deduction"] == 6000.0
    assert full["headroom"] == 25000.0
    partial = roth.senior_deduction(66, 100000.0, "single")
    assert partial["in_phaseout"]
    assert partial["deduction"] == pytest.approx(6000.0 - 25000.0 * 0.06)


def test_torpedo_without_social_security_section():
    with open(taxes._DEFAULT_TAX_TABLE_PATH, "r", encoding="utf-8") as f:
        data = json.load(f)
    del data["2025"]["social_security"]
    assert roth.torpedo_multiplier(40000.0, 0.0, "single", tax_tables=data)[0] == 1.0
    with pytest.raises(ValueError, match="social_security"):
        roth.torpedo_multiplier(40000.0, 20000.0, "single", tax_tables=data)
