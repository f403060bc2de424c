# tests/test_metrics.py
import pytest

from equity_screener.core.exceptions import (
    DivisionByZeroError,
    InsufficientDataError,
    InvalidValuationInputError,
)
from equity_screener.data.models import Dividend
from equity_screener.valuation import metrics


def test_sma_uses_most_recent_window_regardless_of_input_order():
    series = [
        ("2024-01-03", 30.0),
        ("2024-01-01", 10.0),
        ("2024-01-04", 40.0),
        ("2024-01-02", 20.0),
    ]
    assert metrics.simple_moving_average(series, 2) == pytest.approx(35.0)
    assert metrics.simple_moving_average(series, 4) == pytest.approx(25.0)


def test_sma_short_series_raises():
    series = [("2024-01-01", 10.0)] * 10
    with pytest.raises(InsufficientDataError) as exc:
        metrics.simple_moving_average(series, 50)
    assert exc.value.required == 50
    assert exc.value.available == 10


def test_sma_rejects_non_positive_window():
    with pytest.raises(InvalidValuationInputError):
        metrics.simple_moving_average([("2024-01-01", 1.0)], 0)


def test_roe():
    assert metrics.return_on_equity(100, 1000) == pytest.approx(0.1)
    with pytest.raises(DivisionByZeroError):
        metrics.return_on_equity(100, 0)


def test_intrinsic_value_at_reference_yield():
    # 5 * (8.5 + 2 * 5) * 4.4 / 4.4
    assert metrics.intrinsic_value(5.0, 5.0, 4.4) == pytest.approx(92.5)


def test_intrinsic_value_scales_with_yield():
    assert metrics.intrinsic_value(5.0, 5.0, 8.8) == pytest.approx(46.25)


def test_intrinsic_value_non_positive_yield_falls_back():
    assert metrics.intrinsic_value(5.0, 5.0, 0.0) == pytest.approx(92.5)


@pytest.mark.parametrize("eps,growth", [(0.0, 5.0), (-1.0, 5.0), (5.0, -1.0)])
def test_intrinsic_value_invalid_inputs(eps, growth):
    with pytest.raises(InvalidValuationInputError):
        metrics.intrinsic_value(eps, growth, 4.4)


def test_margin_of_safety():
    assert metrics.margin_of_safety(180.50, 150.25) == pytest.approx(0.1676, abs=1e-3)
    assert metrics.margin_of_safety(0.0, 150.25) == 0.0
    assert metrics.margin_of_safety(100.0, 120.0) == pytest.approx(-0.2)


def test_cagr():
    assert metrics.compound_annual_growth_rate(100, 200, 5) == pytest.approx(2 ** 0.2 - 1)
    assert metrics.compound_annual_growth_rate(200, 100, 5) < 0
    assert metrics.compound_annual_growth_rate(0, 100, 5) == 0.0
    assert metrics.compound_annual_growth_rate(100, -5, 5) == 0.0
    assert metrics.compound_annual_growth_rate(100, 200, 0) == 0.0


def test_dividend_yield_and_pe():
    assert metrics.dividend_yield(2.0, 100.0) == pytest.approx(0.02)
    assert metrics.dividend_yield(2.0, 0.0) == 0.0
    assert metrics.price_earnings_ratio(150.0, 10.0) == pytest.approx(15.0)
    assert metrics.price_earnings_ratio(150.0, 0.0) == 0.0


def test_annual_dividends_sums_per_year():
    dividends = [
        Dividend(date="2022-03-01", value=0.25),
        Dividend(date="2022-09-01", value=0.25),
        Dividend(date="2023-03-01", value=0.30),
    ]
    assert metrics.annual_dividends(dividends) == {2022: pytest.approx(0.5), 2023: pytest.approx(0.3)}
    assert metrics.annual_dividends([]) == {}


@pytest.mark.parametrize(
    "series,expected",
    [
        ({"2022-12-31": 100.0, "2023-12-31": 120.0}, "positive"),
        ({"2022-12-31": 100.0, "2023-12-31": 80.0}, "negative"),
        ({"2022-12-31": 100.0, "2023-12-31": 101.0}, "stable"),
        ({"2023-12-31": 100.0}, "neutral"),
        ({"2022-12-31": -5.0, "2023-12-31": 10.0}, "neutral"),
    ],
)
def test_earnings_outlook(series, expected):
    assert metrics.earnings_outlook(series) == expected
