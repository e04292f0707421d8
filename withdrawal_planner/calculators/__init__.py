"""Helper package that exposes the withdrawal planning calculators.

The `calculators` package contains small, focused modules that each implement
specific pieces of the withdrawal planning logic:

* ``taxes`` – progressive federal tax with capital gains stacked on ordinary income.
* ``rmd`` – Required Minimum Distribution rules and Uniform Lifetime table.
* ``sepp`` – 72(t) substantially equal periodic payments (amortization method).
* ``social_security`` – benefit estimation from PIA and claiming age.
* ``withdrawal_order`` – age-based priority of withdrawal buckets.
* ``strategy`` – single-year withdrawal and tax solver.
* ``longevity`` – year-by-year simulation through age 100.
* ``roth`` – Roth conversion sizing against bracket and surcharge cliffs.
* ``projection`` – accumulation of balances until retirement.
* ``fire`` – Lean, Barista, Coast, Standard and Fat FIRE milestones.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import (  # noqa: F401
    taxes,
    rmd,
    sepp,
    social_security,
    withdrawal_order,
    projection,
    roth,
    strategy,
    longevity,
    fire,
)

__all__ = [
    "taxes",
    "rmd",
    "sepp",
    "social_security",
    "withdrawal_order",
    "projection",
    "roth",
    "strategy",
    "longevity",
    "fire",
]
