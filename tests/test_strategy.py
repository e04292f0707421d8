"""Tests for the single-year withdrawal strategy solver."""

import logging

import pytest

from withdrawal_planner.calculators import strategy
from withdrawal_planner.calculators.rmd import compute_rmd
from withdrawal_planner.calculators.sepp import sepp_payment
from withdrawal_planner.models import (
    Assets,
    BucketKind,
    IncomeProfile,
    MarketAssumptions,
    UserProfile,
)


def _base_profile(**overrides):
    params = dict(
        age=67,
        base_age=67,
        filing_status="single",
        spending_need=60000.0,
        assets=Assets(pre_tax=500000.0, taxable=150000.0),
        income=IncomeProfile(social_security=30000.0, social_security_start_age=62),
        assumptions=MarketAssumptions(inflation_rate=0.03, rate_of_return=0.05),
    )
    params.update(overrides)
    return UserProfile(**params)


def test_solver_converges_and_nets_the_need():
    res = strategy.calculate_strategy(_base_profile())
    assert res.converged
    assert res.iterations <= strategy.MAX_ITERATIONS
    assert res.gap_filled
    assert not res.liquidity_gap_warning
    assert res.total_withdrawal - res.estimated_federal_tax == pytest.approx(res.nominal_spending_needed, abs=5)
    assert res.nominal_spending_needed == pytest.approx(60000.0)


def test_standard_phase_draws_traditional_first():
    res = strategy.calculate_strategy(_base_profile())
    assert res.withdrawal_plan[0].kind is BucketKind.PRE_TAX_BRACKET_FILL
    assert res.current_year_social_security == pytest.approx(30000.0)
    ordinary = sum(s.taxable_amount for s in res.withdrawal_plan)
    assert res.provisional_income == pytest.approx(ordinary + 15000.0)


def test_real_need_is_inflated_to_retirement_year():
    res = strategy.calculate_strategy(_base_profile(base_age=62), optimize_roth=False)
    assert res.nominal_spending_needed == pytest.approx(60000.0 * 1.03 ** 5)


def test_iteration_cap_returns_best_effort(caplog):
    with caplog.at_level(logging.WARNING, logger="withdrawal_planner.calculators.strategy"):
        res = strategy.calculate_strategy(_base_profile(), max_iterations=1, optimize_roth=False)
    assert not res.converged
    assert res.iterations == 1
    assert "did not converge" in res.notes[-1]
    assert any("did not converge" in r.getMessage() for r in caplog.records)


def test_sepp_drawn_in_full_even_above_need():
    profile = _base_profile(
        age=50,
        base_age=50,
        spending_need=10000.0,
        assets=Assets(pre_tax=500000.0),
        income=IncomeProfile(),
    )
    res = strategy.calculate_strategy(profile, optimize_roth=False)
    first = res.withdrawal_plan[0]
    assert first.kind is BucketKind.SEPP
    assert first.amount == pytest.approx(sepp_payment(500000.0, 50))
    assert res.total_withdrawal == pytest.approx(first.amount)
    assert res.gap_filled
    assert res.penalty_tax == 0.0
    assert not res.liquidity_gap_warning


def test_early_penalty_sets_liquidity_warning():
    profile = _base_profile(
        age=50,
        base_age=50,
        spending_need=40000.0,
        assets=Assets(pre_tax=100000.0),
        income=IncomeProfile(),
    )
    res = strategy.calculate_strategy(profile, optimize_roth=False)
    kinds = [s.kind for s in res.withdrawal_plan]
    assert kinds[:2] == [BucketKind.SEPP, BucketKind.PRE_TAX_PENALTY]
    penalized = sum(s.amount for s in res.withdrawal_plan if s.kind is BucketKind.PRE_TAX_PENALTY)
    assert res.penalty_tax == pytest.approx(penalized * 0.10)
    assert res.gap_filled
    assert res.liquidity_gap_warning
    assert any("penalty" in n for n in res.notes)


def test_insufficient_assets_reported_not_raised():
    profile = _base_profile(
        spending_need=100000.0,
        assets=Assets(taxable=10000.0),
        income=IncomeProfile(),
    )
    res = strategy.calculate_strategy(profile, optimize_roth=False)
    assert not res.gap_filled
    assert res.liquidity_gap_warning
    assert res.total_withdrawal == pytest.approx(10000.0)
    assert any("unfunded" in n for n in res.notes)


def test_brokerage_withdrawal_half_gain():
    profile = _base_profile(
        spending_need=20000.0,
        assets=Assets(taxable=100000.0),
        income=IncomeProfile(),
    )
    res = strategy.calculate_strategy(profile, optimize_roth=False)
    source = res.withdrawal_plan[0]
    assert source.kind is BucketKind.TAXABLE
    assert source.taxable_amount == pytest.approx(source.amount * 0.5)
    # gains inside the 0% band
    assert res.estimated_federal_tax == 0.0


def test_rmd_taken_first_and_in_full():
    profile = _base_profile(
        age=75,
        base_age=75,
        spending_need=10000.0,
        assets=Assets(pre_tax=1000000.0),
        income=IncomeProfile(),
    )
    res = strategy.calculate_strategy(profile, optimize_roth=False)
    expected = compute_rmd(1000000.0, 75)
    assert res.rmd_amount == pytest.approx(expected)
    assert res.withdrawal_plan[0].kind is BucketKind.RMD
    assert res.total_withdrawal == pytest.approx(expected)


def test_input_profile_is_not_modified():
    profile = _base_profile()
    strategy.calculate_strategy(profile)
    assert profile.assets == Assets(pre_tax=500000.0, taxable=150000.0)


def test_high_withdrawal_rate_suppresses_conversion():
    res = strategy.calculate_strategy(_base_profile())
    assert res.roth_conversion_detail is not None
    assert res.roth_conversion_amount == 0.0
    assert "SUSTAINABILITY OVERRIDE" in res.roth_conversion_detail.reasoning[0]


def test_conversion_recommended_for_low_withdrawal_rate():
    profile = _base_profile(spending_need=40000.0, assets=Assets(pre_tax=2000000.0))
    res = strategy.calculate_strategy(profile)
    detail = res.roth_conversion_detail
    assert res.roth_conversion_amount > 0
    assert res.roth_conversion_amount == detail.recommended_amount
    assert detail.binding_constraint is not None


def test_roth_optimizer_can_be_skipped():
    res = strategy.calculate_strategy(_base_profile(), optimize_roth=False)
    assert res.roth_conversion_detail is None
    assert res.roth_conversion_amount == 0.0
