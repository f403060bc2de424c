"""
Valuation metrics.

Pure functions turning price series and fundamentals into screening metrics:
- Simple moving average
- Return on equity
- Intrinsic value (fixed-multiple growth model)
- Margin of safety
- Dividend yield
- Compound annual growth rate
"""

from typing import Iterable, Sequence

import pandas as pd

from equity_screener.core.exceptions import (
    DivisionByZeroError,
    InsufficientDataError,
    InvalidValuationInputError,
)
from equity_screener.data.models import Dividend

# Intrinsic value model constants. Kept exactly as published for
# compatibility with stored values.
NO_GROWTH_MULTIPLE = 8.5
GROWTH_MULTIPLIER = 2
REFERENCE_YIELD = 4.4


def closes_frame(series: Iterable[tuple[str, float]]) -> pd.Series:
    """Build a close-price Series indexed by date string, newest first."""
    pairs = list(series)
    closes = pd.Series(
        [float(close) for _, close in pairs],
        index=[str(day) for day, _ in pairs],
        dtype="float64",
    )
    return closes.sort_index(ascending=False, kind="mergesort")


def simple_moving_average(series: Sequence[tuple[str, float]], window: int) -> float:
    """
    Mean of the `window` most recent closes.

    Args:
        series: (date, close) pairs in any order; dates are YYYY-MM-DD
        window: Number of observations to average

    Raises:
        InsufficientDataError: fewer than `window` observations
    """
    if window <= 0:
        raise InvalidValuationInputError(f"sma{window}", "window must be positive")
    if len(series) < window:
        raise InsufficientDataError(f"sma{window}", required=window, available=len(series))

    closes = closes_frame(series)
    return float(closes.iloc[:window].mean())


def return_on_equity(net_income: float, equity: float) -> float:
    """Net income over shareholders' equity."""
    if equity == 0:
        raise DivisionByZeroError("roe", "equity")
    return net_income / equity


def intrinsic_value(
    eps: float,
    growth_rate_percent: float,
    current_yield: float,
    reference_yield: float = REFERENCE_YIELD,
) -> float:
    """
    EPS x (8.5 + 2g) x reference_yield / current_yield.

    `growth_rate_percent` is expressed in percent (5.0 for 5%). A
    non-positive `current_yield` falls back to the reference yield.
    """
    if eps <= 0 or growth_rate_percent < 0:
        raise InvalidValuationInputError(
            "intrinsic_value",
            f"requires EPS > 0 and growth rate >= 0 (eps={eps}, growth={growth_rate_percent})",
        )
    if current_yield <= 0:
        current_yield = reference_yield
    return eps * (NO_GROWTH_MULTIPLE + GROWTH_MULTIPLIER * growth_rate_percent) * reference_yield / current_yield


def margin_of_safety(intrinsic: float, price: float) -> float:
    """Fractional discount of price below intrinsic value; 0 when intrinsic is 0."""
    if intrinsic == 0:
        return 0.0
    return (intrinsic - price) / intrinsic


def dividend_yield(dividends_per_share: float, price: float) -> float:
    """Trailing dividends per share over price; 0 when price is 0."""
    if price == 0:
        return 0.0
    return dividends_per_share / price


def compound_annual_growth_rate(start: float, end: float, years: float) -> float:
    """
    (end / start) ** (1 / years) - 1.

    Returns 0 when either value is non-positive or years <= 0; callers
    apply their own fallback.
    """
    if start <= 0 or end <= 0 or years <= 0:
        return 0.0
    return (end / start) ** (1.0 / years) - 1


def price_earnings_ratio(price: float, eps: float) -> float:
    """Price over EPS; 0 when EPS is 0."""
    if eps == 0:
        return 0.0
    return price / eps


def annual_dividends(dividends: Sequence[Dividend]) -> dict[int, float]:
    """Sum dividend payments per calendar year."""
    if not dividends:
        return {}
    frame = pd.DataFrame(
        {"year": [d.year for d in dividends], "value": [d.value for d in dividends]}
    )
    totals = frame.groupby("year")["value"].sum()
    return {int(year): float(total) for year, total in totals.items()}


def earnings_outlook(net_income_by_period: dict[str, float], tolerance: float = 0.02) -> str:
    """
    Label the direction of the last year-over-year net income change.

    Returns 'positive', 'negative' or 'stable', or 'neutral' when fewer than
    two periods are available or the prior period is not positive.
    """
    periods = sorted(net_income_by_period)
    if len(periods) < 2:
        return "neutral"
    previous = net_income_by_period[periods[-2]]
    latest = net_income_by_period[periods[-1]]
    if previous <= 0:
        return "neutral"
    change = (latest - previous) / previous
    if change > tolerance:
        return "positive"
    if change < -tolerance:
        return "negative"
    return "stable"
