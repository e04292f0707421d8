"""Profile loading and saving.

Scenarios are stored as plain JSON dictionaries so they can be saved next to
one another and compared.  A scenario looks like::

    {
      "age": 67, "base_age": 60, "filing_status": "single",
      "spending_need": 60000, "is_spending_real": true,
      "assets": {"pre_tax": 500000, "roth": 0, "roth_basis": 0,
                 "taxable": 150000, "hsa": 0},
      "contributions": {"pre_tax": 23000, "roth": 7000, "taxable": 0, "hsa": 0},
      "income": {"social_security": 30000, "social_security_start_age": 67,
                 "pension": 0, "dividend_yield": 0.0,
                 "qualified_dividend_ratio": 0.9},
      "assumptions": {"inflation_rate": 0.03, "rate_of_return": 0.07,
                      "inflation_rate_in_retirement": 0.03,
                      "rate_of_return_in_retirement": 0.05}
    }

Missing keys take the defaults of the model classes.  Instead of an annual
``social_security`` amount the income block may give a monthly ``PIA``; it is
converted with :func:`~withdrawal_planner.calculators.social_security.social_security_benefit`
at ``social_security_start_age``.

Malformed values are repaired rather than rejected: negative balances and
contributions become zero and a Roth basis larger than the Roth balance is
lowered to the balance.  Each repair is logged as a warning.  An unknown
filing status cannot be repaired and raises ``ValueError``, as does an
``is_spending_real`` that is not a boolean (JSON booleans, 0/1 and the
strings "true"/"false", "yes"/"no" are accepted).
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from .calculators.social_security import social_security_benefit
from .models import (
    Assets,
    Contributions,
    FilingStatus,
    IncomeProfile,
    MarketAssumptions,
    UserProfile,
)

logger = logging.getLogger(__name__)

_TRUE = frozenset({"true", "yes", "1"})
_FALSE = frozenset({"false", "no", "0"})


def _flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _non_negative(section: str, name: str, value: Any) -> float:
    value = float(value)
    if value < 0:
        logger.warning("%s.%s is negative (%s); using 0", section, name, value)
        return 0.0
    return value


def _amounts(cls, section: str, data: Mapping[str, Any]) -> Dict[str, float]:
    names = {f.name for f in fields(cls)}
    return {k: _non_negative(section, k, v) for k, v in data.items() if k in names}


def _assets(data: Mapping[str, Any]) -> Assets:
    values = _amounts(Assets, "assets", data)
    roth = values.get("roth", 0.0)
    if values.get("roth_basis", 0.0) > roth:
        logger.warning("assets.roth_basis (%s) exceeds the Roth balance; using %s", values["roth_basis"], roth)
        values["roth_basis"] = roth
    return Assets(**values)


def _income(data: Mapping[str, Any]) -> IncomeProfile:
    data = dict(data)
    start_age = int(data.get("social_security_start_age", IncomeProfile.social_security_start_age))
    pia = data.pop("PIA", None)
    if pia is not None and "social_security" not in data:
        data["social_security"] = social_security_benefit(float(pia), start_age)

    values: Dict[str, Any] = {"social_security_start_age": start_age}
    for name in ("social_security", "pension", "dividend_yield"):
        if name in data:
            values[name] = _non_negative("income", name, data[name])
    if "qualified_dividend_ratio" in data:
        ratio = float(data["qualified_dividend_ratio"])
        clamped = min(1.0, max(0.0, ratio))
        if clamped != ratio:
            logger.warning("income.qualified_dividend_ratio %s outside [0, 1]; using %s", ratio, clamped)
        values["qualified_dividend_ratio"] = clamped
    return IncomeProfile(**values)


def _assumptions(data: Mapping[str, Any]) -> MarketAssumptions:
    names = {f.name for f in fields(MarketAssumptions)}
    return MarketAssumptions(**{k: float(v) for k, v in data.items() if k in names})


def profile_from_dict(plan: Mapping[str, Any]) -> UserProfile:
    """Build a :class:`UserProfile` from a scenario dictionary.

    Parameters
    ----------
    plan : Mapping
        Scenario in the JSON shape shown in the module docstring.

    Returns
    -------
    UserProfile
        The profile with defaults filled and malformed amounts repaired.

    Raises
    ------
    ValueError
        If ``filing_status`` is not ``"single"`` or ``"married_joint"``, or
        ``is_spending_real`` cannot be read as a boolean.
    """
    status = plan.get("filing_status", FilingStatus.SINGLE.value)
    try:
        filing_status = FilingStatus(status)
    except ValueError:
        raise ValueError(f"Unknown filing status: {status!r}") from None

    age = int(plan["age"])
    base_age = int(plan.get("base_age", age))
    if base_age > age:
        logger.warning("base_age %d is after retirement age %d; using %d", base_age, age, age)
        base_age = age

    return UserProfile(
        age=age,
        base_age=base_age,
        filing_status=filing_status,
        spending_need=_non_negative("profile", "spending_need", plan.get("spending_need", 0.0)),
        is_spending_real=_flag("is_spending_real", plan.get("is_spending_real", True)),
        assets=_assets(plan.get("assets", {})),
        contributions=Contributions(**_amounts(Contributions, "contributions", plan.get("contributions", {}))),
        income=_income(plan.get("income", {})),
        assumptions=_assumptions(plan.get("assumptions", {})),
    )


def profile_to_dict(profile: UserProfile) -> Dict[str, Any]:
    """Inverse of :func:`profile_from_dict` (enums become their values)."""
    plan = asdict(profile)
    plan["filing_status"] = FilingStatus(profile.filing_status).value
    return plan


def load_profile(path: Union[str, Path]) -> UserProfile:
    """Read a scenario JSON file and build its profile."""
    with open(path, "r", encoding="utf-8") as f:
        return profile_from_dict(json.load(f))


def save_profile(profile: UserProfile, path: Union[str, Path]) -> None:
    """Write ``profile`` as a scenario JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(profile_to_dict(profile), f, indent=2)


__all__ = ["load_profile", "profile_from_dict", "profile_to_dict", "save_profile"]
