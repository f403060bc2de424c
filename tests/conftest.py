"""Shared fixtures."""

from datetime import date, timedelta

import pytest

from equity_screener.data.cache import DataCache
from equity_screener.data.models import Dividend, EODBar, Fundamentals
from equity_screener.data.store import ScreenerStore


@pytest.fixture
def store(tmp_path):
    store = ScreenerStore.from_path(tmp_path / "screener.db")
    store.init_schema()
    return store


@pytest.fixture
def sample_store(store):
    store.insert_sample_data()
    return store


@pytest.fixture
def memory_cache(tmp_path):
    return DataCache(cache_dir=tmp_path / "cache", enable_disk_cache=False)


def make_bars(count, end=date(2024, 1, 12), start_close=100.0, step=1.0):
    """`count` consecutive daily bars ending at `end`, closes rising by `step`."""
    bars = []
    for i in range(count):
        day = end - timedelta(days=count - 1 - i)
        close = start_close + i * step
        bars.append(EODBar(date=day.isoformat(), close=close, adjusted_close=close))
    return bars


def make_fundamentals(ticker="TEST.US", eps_now=5.0, eps_past=None, equity=1000.0, net_income=100.0):
    raw = {
        "General": {"Code": ticker.split(".")[0]},
        "Earnings": {
            "Annual": {
                "2023-12-31": {"date": "2023-12-31", "epsActual": eps_now},
            }
        },
        "Financials": {
            "Balance_Sheet": {
                "yearly": {
                    "2022-12-31": {"totalStockholderEquity": "900"},
                    "2023-12-31": {"totalStockholderEquity": str(equity)},
                }
            },
            "Income_Statement": {
                "yearly": {
                    "2022-12-31": {"netIncome": "80", "totalRevenue": "800"},
                    "2023-12-31": {"netIncome": str(net_income), "totalRevenue": "1000"},
                }
            },
        },
    }
    if eps_past is not None:
        raw["Earnings"]["Annual"]["2018-12-31"] = {"date": "2018-12-31", "epsActual": eps_past}
    return Fundamentals(ticker=ticker, raw=raw)


class FakeProvider:
    """In-memory provider with per-ticker canned responses."""

    def __init__(self, bars=None, fundamentals=None, dividends=None):
        self.bars = bars or {}
        self.fundamentals = fundamentals or {}
        self.dividends = dividends or {}
        self.calls = []

    def get_eod_data(self, ticker, from_date=None, to_date=None):
        self.calls.append(("eod", ticker))
        return list(self.bars.get(ticker, []))

    def get_fundamentals(self, ticker):
        self.calls.append(("fundamentals", ticker))
        return self.fundamentals[ticker]

    def get_dividends(self, ticker, from_date=None, to_date=None):
        self.calls.append(("div", ticker))
        return list(self.dividends.get(ticker, []))


def make_dividends(per_year):
    """Quarterly payments summing to per_year[year]."""
    dividends = []
    for year, total in per_year.items():
        for month in (3, 6, 9, 12):
            dividends.append(Dividend(date=f"{year}-{month:02d}-15", value=total / 4))
    return dividends
