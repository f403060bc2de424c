"""Valuation calculator."""

from equity_screener.valuation.metrics import (
    simple_moving_average,
    return_on_equity,
    intrinsic_value,
    margin_of_safety,
    dividend_yield,
    compound_annual_growth_rate,
    price_earnings_ratio,
    annual_dividends,
    earnings_outlook,
)

__all__ = [
    "simple_moving_average",
    "return_on_equity",
    "intrinsic_value",
    "margin_of_safety",
    "dividend_yield",
    "compound_annual_growth_rate",
    "price_earnings_ratio",
    "annual_dividends",
    "earnings_outlook",
]
