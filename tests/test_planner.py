"""Tests for the end-to-end planning pipeline."""

import pytest

from withdrawal_planner import planner
from withdrawal_planner.calculators.projection import retirement_profile
from withdrawal_planner.models import Assets, Contributions, IncomeProfile, UserProfile


def _base_profile():
    return UserProfile(
        age=65,
        base_age=55,
        spending_need=20000.0,
        assets=Assets(pre_tax=400000.0, taxable=100000.0),
        contributions=Contributions(pre_tax=5000.0),
        income=IncomeProfile(social_security=24000.0, social_security_start_age=67),
    )


def test_run_plan_starts_at_retirement():
    strategy, result = planner.run_plan(_base_profile())
    assert result.ages[0] == 65
    assert result.ages[-1] == 105
    assert strategy.nominal_spending_needed == pytest.approx(20000.0 * 1.03 ** 10)
    assert strategy.gap_filled


def test_scenario_summary_matches_pipeline():
    summary = planner.scenario_summary(_base_profile())
    strategy, result = planner.run_plan(_base_profile())
    assert summary["lifetime_tax"] == pytest.approx(sum(p.estimated_tax for p in result.projection))
    at_100 = next(p for p in result.projection if p.age == 100)
    assert summary["ending_balance"] == pytest.approx(at_100.total_assets)
    assert summary["depletion_age"] == result.depletion_age
    assert summary["sustainable"] == result.sustainable
    assert summary["first_year_withdrawal"] == pytest.approx(strategy.total_withdrawal)


def test_higher_contributions_end_richer():
    base = planner.scenario_summary(_base_profile())
    more = planner.scenario_summary(_base_profile(), Contributions(pre_tax=15000.0, roth=5000.0))
    assert more["ending_balance"] > base["ending_balance"]
    assert more["depletion_age"] is None


def test_scenario_summary_present_value_and_start_assets():
    profile = _base_profile()
    summary = planner.scenario_summary(profile)
    assert summary["ending_balance_pv"] == pytest.approx(summary["ending_balance"] / 1.03 ** (100 - 55))
    assert summary["start_assets"] == pytest.approx(retirement_profile(profile).assets.total)
    assert summary["start_assets"] > profile.assets.total


def test_scenario_summary_without_age_100_year():
    """A plan starting past 100 has no age-100 row and ends at zero."""
    profile = UserProfile(age=101, base_age=101, assets=Assets(taxable=100000.0))
    summary = planner.scenario_summary(profile)
    assert summary["ending_balance"] == 0.0
    assert summary["ending_balance_pv"] == 0.0
    assert summary["start_assets"] == 100000.0
