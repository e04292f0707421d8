"""Tax-aware retirement withdrawal planning.

For a household's first year of retirement the planner works out which
accounts to draw from and how much, accounting for the federal tax and early
withdrawal penalties the draw itself causes, then projects the balances year
by year to age 100 to report depletion and sustainability.

>>> from withdrawal_planner import UserProfile, Assets, IncomeProfile, run_plan
>>> profile = UserProfile(age=67, base_age=67, spending_need=60000,
...                       assets=Assets(pre_tax=500000, taxable=150000),
...                       income=IncomeProfile(social_security=30000))
>>> strategy, longevity = run_plan(profile)
>>> strategy.gap_filled
True
"""

from .models import (
    Account,
    Assets,
    BucketKind,
    Contributions,
    FilingStatus,
    FireMilestone,
    FireMilestoneType,
    IncomeProfile,
    LongevityResult,
    MarketAssumptions,
    StrategyResult,
    TaxTreatment,
    UserProfile,
    WithdrawalBucket,
    WithdrawalSource,
    YearProjection,
)
from .calculators.fire import fire_milestones, profile_fire_milestones
from .config import load_profile, profile_from_dict, profile_to_dict
from .planner import run_plan, scenario_summary

__version__ = "0.1.0"

__all__ = [
    "Account",
    "Assets",
    "BucketKind",
    "Contributions",
    "FilingStatus",
    "FireMilestone",
    "FireMilestoneType",
    "IncomeProfile",
    "LongevityResult",
    "MarketAssumptions",
    "StrategyResult",
    "TaxTreatment",
    "UserProfile",
    "WithdrawalBucket",
    "WithdrawalSource",
    "YearProjection",
    "fire_milestones",
    "load_profile",
    "profile_from_dict",
    "profile_fire_milestones",
    "profile_to_dict",
    "run_plan",
    "scenario_summary",
]
