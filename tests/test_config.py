"""Tests for loading and saving scenario profiles."""

import json
import logging

import pytest

from withdrawal_planner import config
from withdrawal_planner.models import Assets, FilingStatus, IncomeProfile, UserProfile


def _base_plan():
    return {
        "age": 67,
        "base_age": 60,
        "filing_status": "married_joint",
        "spending_need": 80000,
        "assets": {"pre_tax": 600000, "roth": 100000, "roth_basis": 60000, "taxable": 200000},
        "contributions": {"pre_tax": 23000, "roth": 7000},
        "income": {"social_security": 40000, "social_security_start_age": 67, "pension": 12000},
        "assumptions": {"inflation_rate": 0.025, "rate_of_return_in_retirement": 0.045},
    }


def test_profile_from_dict():
    profile = config.profile_from_dict(_base_plan())
    assert profile.filing_status is FilingStatus.MARRIED_JOINT
    assert profile.assets.roth_basis == 60000.0
    assert profile.contributions.roth == 7000.0
    assert profile.income.pension == 12000.0
    assert profile.income.qualified_dividend_ratio == 0.9
    assert profile.assumptions.inflation_rate == 0.025
    assert profile.assumptions.rate_of_return == 0.07
    assert profile.is_spending_real


def test_defaults_for_missing_keys():
    profile = config.profile_from_dict({"age": 62})
    assert profile.base_age == 62
    assert profile.filing_status is FilingStatus.SINGLE
    assert profile.assets == Assets()
    assert profile.income == IncomeProfile()


def test_negative_amounts_clamped(caplog):
    plan = _base_plan()
    plan["assets"]["taxable"] = -5000
    plan["contributions"]["pre_tax"] = -1
    with caplog.at_level(logging.WARNING, logger="withdrawal_planner.config"):
        profile = config.profile_from_dict(plan)
    assert profile.assets.taxable == 0.0
    assert profile.contributions.pre_tax == 0.0
    assert len(caplog.records) == 2


def test_basis_above_balance_clamped(caplog):
    plan = _base_plan()
    plan["assets"]["roth_basis"] = 150000
    with caplog.at_level(logging.WARNING, logger="withdrawal_planner.config"):
        profile = config.profile_from_dict(plan)
    assert profile.assets.roth_basis == 100000.0
    assert any("roth_basis" in r.getMessage() for r in caplog.records)


def test_base_age_after_age_clamped():
    plan = _base_plan()
    plan["base_age"] = 70
    assert config.profile_from_dict(plan).base_age == 67


def test_unknown_filing_status():
    plan = _base_plan()
    plan["filing_status"] = "head_of_household"
    with pytest.raises(ValueError):
        config.profile_from_dict(plan)


def test_pia_converted_to_annual_benefit():
    plan = {"age": 65, "income": {"PIA": 2000, "social_security_start_age": 65}}
    profile = config.profile_from_dict(plan)
    assert profile.income.social_security == pytest.approx(2000 * 0.86 * 12)


def test_save_and_load_round_trip(tmp_path):
    profile = config.profile_from_dict(_base_plan())
    path = tmp_path / "scenario.json"
    config.save_profile(profile, path)
    with open(path, "r", encoding="utf-8") as f:
        assert json.load(f)["filing_status"] == "married_joint"
    assert config.load_profile(path) == profile


def test_profile_to_dict():
    data = config.profile_to_dict(UserProfile(age=65, base_age=60))
    assert data["filing_status"] == "single"
    assert data["assets"]["roth_basis"] == 0.0


@pytest.mark.parametrize(
    "value, expected",
    [(True, True), (False, False), ("false", False), ("True", True), ("no", False), (1, True), (0, False)],
)
def test_is_spending_real_parsed(value, expected):
    plan = _base_plan()
    plan["is_spending_real"] = value
    assert config.profile_from_dict(plan).is_spending_real is expected


def test_is_spending_real_from_json_false():
    plan = json.loads('{"age": 65, "is_spending_real": false}')
    assert config.profile_from_dict(plan).is_spending_real is False


@pytest.mark.parametrize("value", ["maybe", 2, None])
def test_is_spending_real_rejects_non_boolean(value):
    plan = _base_plan()
    plan["is_spending_real"] = value
    with pytest.raises(ValueError, match="is_spending_real"):
        config.profile_from_dict(plan)
