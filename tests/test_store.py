# tests/test_store.py
import json
from datetime import datetime

from sqlalchemy import text

from equity_screener.data.models import FundamentalsRecord, PricePoint
from equity_screener.data.store import SAMPLE_FUNDAMENTALS


def test_price_upsert_idempotent(store):
    store.upsert_price(PricePoint("TEST", "2024-01-02", 100.0, 95.0, 90.0))
    store.upsert_price(PricePoint("TEST", "2024-01-02", 101.0, 95.5, 90.5))

    rows = store.price_rows("TEST")
    assert len(rows) == 1
    assert abs(rows[0]["close"] - 101.0) < 1e-9


def test_price_history_keeps_one_row_per_date(store):
    store.upsert_price(PricePoint("TEST", "2024-01-02", 100.0))
    store.upsert_price(PricePoint("TEST", "2024-01-03", 102.0))
    assert [r["date"] for r in store.price_rows("TEST")] == ["2024-01-02", "2024-01-03"]


def test_fundamentals_upsert_replaces_row(store):
    when = datetime(2024, 1, 15, 22, 0, 0)
    store.upsert_fundamentals(FundamentalsRecord("TEST", pe_ratio=10.0, updated_at=when))
    store.upsert_fundamentals(
        FundamentalsRecord(
            "TEST",
            pe_ratio=12.0,
            roe=0.2,
            yoy_profit={"2023-12-31": 100.0},
            earnings_outlook="positive",
            updated_at=when,
        )
    )

    with store.engine.begin() as conn:
        cnt = conn.execute(text("SELECT COUNT(*) FROM fundamentals WHERE ticker='TEST'")).scalar_one()
    row = store.fundamentals_row("TEST")

    assert cnt == 1
    assert row["pe_ratio"] == 12.0
    assert row["earnings_outlook"] == "positive"
    assert row["updated_at"] == "2024-01-15 22:00:00"
    assert json.loads(row["yoy_profit"]) == {"2023-12-31": 100.0}
    assert row["yoy_turnover"] is None


def test_init_schema_is_repeatable(store):
    store.init_schema()
    store.init_schema()
    assert store.tickers() == []


def test_sample_data_and_reset(store):
    store.insert_sample_data()
    assert len(store.tickers()) == len(SAMPLE_FUNDAMENTALS)
    assert len(store.price_rows("AAPL")) == 4

    store.insert_sample_data()
    assert len(store.tickers()) == len(SAMPLE_FUNDAMENTALS)

    store.reset()
    assert store.tickers() == []
    assert store.fundamentals_row("AAPL") is None
