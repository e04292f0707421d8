"""Data model shared by the calculators.

Inputs (:class:`UserProfile` and its parts) are frozen dataclasses so a single
profile can be handed to several calculations at once; each calculation copies
balances into its own working state.  Outputs are frozen as well and are built
once per call.

Example
-------

>>> assets = Assets(pre_tax=500000, taxable=150000)
>>> assets.total
650000.0
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd


class FilingStatus(str, Enum):
    SINGLE = "single"
    MARRIED_JOINT = "married_joint"

    @property
    def people(self) -> int:
        """Number of filers covered by the return."""
        return 2 if self is FilingStatus.MARRIED_JOINT else 1


class TaxTreatment(str, Enum):
    ORDINARY = "Ordinary"
    CAPITAL_GAINS = "CapitalGains"
    NONE = "None"


class Account(str, Enum):
    PRE_TAX = "pre_tax"
    ROTH = "roth"
    TAXABLE = "taxable"
    HSA = "hsa"


class BucketKind(str, Enum):
    """Tag identifying where a withdrawal comes from and under which rule."""

    RMD = "rmd"
    SEPP = "sepp"
    TAXABLE = "taxable"
    ROTH_BASIS = "roth_basis"
    RULE_OF_55 = "rule_of_55"
    PRE_TAX_PENALTY = "pre_tax_penalty"
    ROTH_EARNINGS_PENALTY = "roth_earnings_penalty"
    PRE_TAX_BRACKET_FILL = "pre_tax_bracket_fill"
    PRE_TAX_ADDITIONAL = "pre_tax_additional"
    ROTH = "roth"
    HSA = "hsa"

    @property
    def account(self) -> Account:
        return _BUCKET_ACCOUNTS[self]

    @property
    def label(self) -> str:
        return _BUCKET_LABELS[self]


_BUCKET_ACCOUNTS: Dict[BucketKind, Account] = {
    BucketKind.RMD: Account.PRE_TAX,
    BucketKind.SEPP: Account.PRE_TAX,
    BucketKind.TAXABLE: Account.TAXABLE,
    BucketKind.ROTH_BASIS: Account.ROTH,
    BucketKind.RULE_OF_55: Account.PRE_TAX,
    BucketKind.PRE_TAX_PENALTY: Account.PRE_TAX,
    BucketKind.ROTH_EARNINGS_PENALTY: Account.ROTH,
    BucketKind.PRE_TAX_BRACKET_FILL: Account.PRE_TAX,
    BucketKind.PRE_TAX_ADDITIONAL: Account.PRE_TAX,
    BucketKind.ROTH: Account.ROTH,
    BucketKind.HSA: Account.HSA,
}

_BUCKET_LABELS: Dict[BucketKind, str] = {
    BucketKind.RMD: "Traditional IRA (RMD)",
    BucketKind.SEPP: "Traditional IRA (72t/SEPP)",
    BucketKind.TAXABLE: "Taxable Brokerage",
    BucketKind.ROTH_BASIS: "Roth IRA (Basis)",
    BucketKind.RULE_OF_55: "Traditional IRA (Rule of 55)",
    BucketKind.PRE_TAX_PENALTY: "Traditional IRA (Penalty)",
    BucketKind.ROTH_EARNINGS_PENALTY: "Roth IRA Earnings (Penalty)",
    BucketKind.PRE_TAX_BRACKET_FILL: "Traditional IRA (Fill deduction & low brackets)",
    BucketKind.PRE_TAX_ADDITIONAL: "Traditional IRA (Additional)",
    BucketKind.ROTH: "Roth IRA",
    BucketKind.HSA: "HSA",
}


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Assets:
    pre_tax: float = 0.0
    roth: float = 0.0
    roth_basis: float = 0.0
    taxable: float = 0.0
    hsa: float = 0.0

    @property
    def total(self) -> float:
        # roth_basis is a part of roth, not a separate account
        return float(self.pre_tax + self.roth + self.taxable + self.hsa)

    @property
    def roth_basis_available(self) -> float:
        return max(0.0, min(self.roth_basis, self.roth))


@dataclass(frozen=True)
class Contributions:
    pre_tax: float = 0.0
    roth: float = 0.0
    taxable: float = 0.0
    hsa: float = 0.0


@dataclass(frozen=True)
class IncomeProfile:
    social_security: float = 0.0
    social_security_start_age: int = 62
    pension: float = 0.0
    dividend_yield: float = 0.0
    qualified_dividend_ratio: float = 0.9


@dataclass(frozen=True)
class MarketAssumptions:
    inflation_rate: float = 0.03
    rate_of_return: float = 0.07
    inflation_rate_in_retirement: float = 0.03
    rate_of_return_in_retirement: float = 0.05


@dataclass(frozen=True)
class UserProfile:
    """Household snapshot.

    ``age`` is the first year of withdrawals and ``base_age`` is today; the
    difference drives accumulation and the real-to-nominal spending
    conversion.
    """

    age: int
    base_age: int
    filing_status: FilingStatus = FilingStatus.SINGLE
    spending_need: float = 0.0
    is_spending_real: bool = True
    assets: Assets = field(default_factory=Assets)
    contributions: Contributions = field(default_factory=Contributions)
    income: IncomeProfile = field(default_factory=IncomeProfile)
    assumptions: MarketAssumptions = field(default_factory=MarketAssumptions)


# ---------------------------------------------------------------------------
# Withdrawal buckets and plans
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WithdrawalBucket:
    kind: BucketKind
    limit: float
    treatment: TaxTreatment
    penalty: bool = False
    mandatory: bool = False

    @property
    def account(self) -> Account:
        return self.kind.account


@dataclass(frozen=True)
class WithdrawalSource:
    kind: BucketKind
    amount: float
    taxable_amount: float
    treatment: TaxTreatment
    note: str = ""

    @property
    def source(self) -> str:
        return self.kind.label


# ---------------------------------------------------------------------------
# Roth conversion optimizer contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConversionConstraint:
    type: str  # "bracket" | "irmaa" | "senior_phaseout" | "ss_torpedo"
    headroom: float
    description: str
    effective_rate: Optional[float] = None
    annual_cost: Optional[float] = None


@dataclass(frozen=True)
class RothConversionRecommendation:
    recommended_amount: float
    effective_marginal_rate: float
    binding_constraint: Optional[str]
    in_torpedo_zone: bool
    torpedo_multiplier: float
    warnings: Tuple[str, ...] = ()
    reasoning: Tuple[str, ...] = ()
    constraints: Tuple[ConversionConstraint, ...] = ()


# ---------------------------------------------------------------------------
# FIRE milestones
# ---------------------------------------------------------------------------


class FireMilestoneType(str, Enum):
    LEAN = "Lean"
    BARISTA = "Barista"
    COAST = "Coast"
    STANDARD = "Standard"
    FAT = "Fat"


@dataclass(frozen=True)
class FireMilestone:
    type: FireMilestoneType
    target_amount: float
    description: str
    age_reached: Optional[int] = None  # None if not reached by age 100
    year_reached: Optional[int] = None
    percentage_progress: int = 0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrategyResult:
    total_withdrawal: float
    gap_filled: bool
    liquidity_gap_warning: bool
    withdrawal_plan: Tuple[WithdrawalSource, ...]
    estimated_federal_tax: float
    penalty_tax: float
    effective_tax_rate: float
    rmd_amount: float
    taxable_social_security: float
    current_year_social_security: float
    provisional_income: float
    standard_deduction: float
    nominal_spending_needed: float
    notes: Tuple[str, ...] = ()
    iterations: int = 0
    converged: bool = True
    roth_conversion_amount: float = 0.0
    roth_conversion_detail: Optional[RothConversionRecommendation] = None


@dataclass(frozen=True)
class YearProjection:
    age: int
    year: int
    total_assets: float
    pre_tax: float
    roth: float
    taxable: float
    hsa: float
    withdrawal: float
    withdrawal_pre_tax: float
    withdrawal_taxable: float
    withdrawal_roth: float
    withdrawal_hsa: float
    social_security_income: float
    pension_income: float
    dividend_income: float
    rmd_amount: float
    withdrawal_sepp: float
    withdrawal_pre_tax_penalty: float
    early_withdrawal_penalty: float
    is_depleted: bool
    estimated_tax: float
    effective_tax_rate: float


_SERIES_FIELDS = ("pre_tax", "roth", "taxable", "hsa", "total_assets")


@dataclass(frozen=True)
class LongevityResult:
    projection: Tuple[YearProjection, ...]
    depletion_age: Optional[int]
    initial_withdrawal_rate: float
    sustainable: bool

    @property
    def ages(self) -> List[int]:
        return [p.age for p in self.projection]

    def balance_series(self) -> Dict[str, np.ndarray]:
        """Per-account balances across the horizon, one array per account."""
        return {
            k: np.array([getattr(p, k) for p in self.projection], dtype=float)
            for k in _SERIES_FIELDS
        }

    def to_frame(self) -> pd.DataFrame:
        """Year-by-year ledger as a DataFrame indexed by age."""
        df = pd.DataFrame([asdict(p) for p in self.projection])
        if df.empty:
            return df
        return df.set_index("age")


__all__ = [
    "Account",
    "Assets",
    "BucketKind",
    "Contributions",
    "ConversionConstraint",
    "FilingStatus",
    "FireMilestone",
    "FireMilestoneType",
    "IncomeProfile",
    "LongevityResult",
    "MarketAssumptions",
    "RothConversionRecommendation",
    "StrategyResult",
    "TaxTreatment",
    "UserProfile",
    "WithdrawalBucket",
    "WithdrawalSource",
    "YearProjection",
]
