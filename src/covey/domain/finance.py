import math
from typing import Sequence


def growth_factor(rate: float, periods: float) -> float:
    """
    (1 + rate) ** periods, saturating instead of raising.

    Overflow and a zero base raised to a negative power both come back as
    inf, so a runaway growth assumption shows up in the numbers rather than
    as an exception.
    """
    try:
        return (1 + rate) ** periods
    except (OverflowError, ZeroDivisionError):
        return math.inf


def monthly_payment(
    principal: float,
    annual_rate: float,
    amort_years: float,
    interest_only: bool,
) -> float:
    """
    Monthly debt service for a fixed-rate loan.

    annual_rate is a percent (6.5 means 6.5%).
    Amortizing: M = P * r(1+r)^n / ((1+r)^n - 1), r monthly, n months.
    Interest-only: M = P * r.
    """
    if principal <= 0:
        return 0.0

    r = annual_rate / 100.0 / 12.0

    if interest_only:
        return principal * r

    n = amort_years * 12
    if n <= 0:
        return 0.0

    growth = growth_factor(r, n)
    if r == 0 or growth == 1:
        return principal / n
    if math.isinf(growth):
        # limit as the term runs out to forever: interest only
        return principal * r

    return principal * r * growth / (growth - 1)


def loan_balance(
    principal: float,
    annual_rate: float,
    amort_years: float,
    years_elapsed: float,
    interest_only: bool,
) -> float:
    """
    Remaining balance after `years_elapsed` years of level payments.

    Future value of the principal minus the future value of the payments
    made so far. Interest-only loans never amortize.
    """
    if principal <= 0:
        return 0.0
    if interest_only:
        return principal

    n = amort_years * 12
    if n <= 0:
        return principal

    r = annual_rate / 100.0 / 12.0
    p = years_elapsed * 12

    if r == 0:
        return principal - (principal / n) * p

    payment = monthly_payment(principal, annual_rate, amort_years, False)
    growth = growth_factor(r, p)
    return principal * growth - payment * ((growth - 1) / r)


def npv(rate: float, cash_flows: Sequence[float]) -> float:
    """Net present value with cash_flows[0] at t=0 (undiscounted)."""
    return sum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows))


def irr(
    cash_flows: Sequence[float],
    max_iterations: int = 1000,
    tolerance: float = 1e-5,
) -> float:
    """
    Internal rate of return via Newton's method, as a fraction (0.10 = 10%).

    Returns 0.0 instead of raising when there is nothing sensible to report:
      - fewer than two cash flows
      - the iteration walks outside (-99%, 1000%)
      - a cash flow is inf or nan
    A flat derivative stops the search and returns the current estimate.
    """
    if len(cash_flows) < 2:
        return 0.0

    rate = 0.1

    for _ in range(max_iterations):
        value = 0.0
        slope = 0.0
        try:
            for t, cf in enumerate(cash_flows):
                value += cf / (1 + rate) ** t
                slope -= t * cf / (1 + rate) ** (t + 1)
        except (OverflowError, ZeroDivisionError):
            # long series at an extreme rate over- or underflows the discount factor
            return 0.0

        if abs(slope) < 1e-10:
            break

        new_rate = rate - value / slope
        if not math.isfinite(new_rate):
            # non-finite cash flows
            return 0.0

        if abs(new_rate - rate) < tolerance:
            return new_rate

        rate = new_rate

        if rate < -0.99 or rate > 10:
            return 0.0

    return rate
