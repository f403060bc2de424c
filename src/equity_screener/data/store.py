"""
Persistent two-table store (fundamentals + prices) on SQLite.

Each upsert is a single atomic statement; no transaction spans the two tables.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from equity_screener.core.exceptions import StoreError
from equity_screener.core.logging import get_logger
from equity_screener.data.models import FundamentalsRecord, PricePoint

logger = get_logger("data.store")

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS fundamentals (
      ticker TEXT PRIMARY KEY,
      pe_ratio REAL,
      roe REAL,
      yoy_profit JSON,
      yoy_turnover JSON,
      earnings_outlook TEXT,
      updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
      dividend_yield REAL,
      dividend_growth_5y REAL,
      intrinsic_value REAL,
      margin_of_safety REAL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS prices (
      ticker TEXT,
      date TEXT,
      close REAL,
      sma50 REAL,
      sma200 REAL,
      PRIMARY KEY (ticker, date)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_fundamentals_pe_ratio ON fundamentals(pe_ratio)",
    "CREATE INDEX IF NOT EXISTS idx_fundamentals_roe ON fundamentals(roe)",
    "CREATE INDEX IF NOT EXISTS idx_fundamentals_dividend_yield ON fundamentals(dividend_yield)",
    "CREATE INDEX IF NOT EXISTS idx_fundamentals_margin_of_safety ON fundamentals(margin_of_safety)",
    "CREATE INDEX IF NOT EXISTS idx_fundamentals_earnings_outlook ON fundamentals(earnings_outlook)",
    "CREATE INDEX IF NOT EXISTS idx_prices_ticker_date ON prices(ticker, date)",
    "CREATE INDEX IF NOT EXISTS idx_prices_close ON prices(close)",
]

UPSERT_PRICE = """
INSERT INTO prices(ticker, date, close, sma50, sma200)
VALUES(:ticker, :date, :close, :sma50, :sma200)
ON CONFLICT(ticker, date) DO UPDATE SET
  close=excluded.close,
  sma50=excluded.sma50,
  sma200=excluded.sma200
"""

UPSERT_FUNDAMENTALS = """
INSERT INTO fundamentals(
  ticker, pe_ratio, roe, yoy_profit, yoy_turnover, earnings_outlook, updated_at,
  dividend_yield, dividend_growth_5y, intrinsic_value, margin_of_safety
)
VALUES(
  :ticker, :pe_ratio, :roe, :yoy_profit, :yoy_turnover, :earnings_outlook, :updated_at,
  :dividend_yield, :dividend_growth_5y, :intrinsic_value, :margin_of_safety
)
ON CONFLICT(ticker) DO UPDATE SET
  pe_ratio=excluded.pe_ratio,
  roe=excluded.roe,
  yoy_profit=excluded.yoy_profit,
  yoy_turnover=excluded.yoy_turnover,
  earnings_outlook=excluded.earnings_outlook,
  updated_at=excluded.updated_at,
  dividend_yield=excluded.dividend_yield,
  dividend_growth_5y=excluded.dividend_growth_5y,
  intrinsic_value=excluded.intrinsic_value,
  margin_of_safety=excluded.margin_of_safety
"""

SAMPLE_FUNDAMENTALS = [
    ("AAPL", 14.5, 0.25, "positive", 0.005, 0.08, 180.50, 0.25),
    ("GOOGL", 13.1, 0.18, "positive", 0.0, 0.0, 3100.0, 0.15),
    ("MSFT", 12.5, 0.22, "positive", 0.035, 0.12, 375.0, 0.22),
    ("TSLA", 45.2, 0.15, "neutral", 0.0, 0.0, 800.0, -0.05),
    ("IBM", 8.3, 0.08, "negative", 0.045, 0.08, 120.0, 0.35),
    ("KO", 9.7, 0.16, "positive", 0.045, 0.08, 65.0, 0.25),
    ("JNJ", 11.2, 0.18, "positive", 0.038, 0.06, 170.0, 0.18),
    ("PFE", 7.8, 0.12, "positive", 0.055, 0.10, 55.0, 0.30),
    ("WMT", 26.5, 0.19, "stable", 0.016, 0.04, 145.0, 0.05),
    ("XOM", 13.8, 0.14, "neutral", 0.058, 0.03, 95.0, 0.12),
    ("JPM", 10.2, 0.16, "positive", 0.025, 0.05, 155.0, 0.18),
    ("DIS", 22.1, 0.08, "neutral", 0.0, 0.0, 110.0, 0.08),
    ("NVDA", 65.3, 0.35, "positive", 0.003, 0.15, 420.0, -0.12),
    ("AMZN", 48.7, 0.12, "positive", 0.0, 0.0, 3200.0, 0.02),
    ("META", 18.9, 0.24, "positive", 0.0, 0.0, 285.0, 0.15),
]

SAMPLE_PRICES = [
    ("AAPL", "2024-01-15", 150.25, 145.80, 140.30),
    ("GOOGL", "2024-01-15", 2750.80, 2720.50, 2680.20),
    ("MSFT", "2024-01-15", 330.59, 325.20, 315.80),
    ("TSLA", "2024-01-15", 220.45, 235.60, 245.90),
    ("IBM", "2024-01-15", 78.20, 82.40, 85.10),
    ("KO", "2024-01-15", 48.75, 52.20, 55.50),
    ("JNJ", "2024-01-15", 158.30, 162.10, 165.80),
    ("PFE", "2024-01-15", 42.15, 45.20, 48.90),
    ("WMT", "2024-01-15", 162.85, 158.40, 155.20),
    ("XOM", "2024-01-15", 104.25, 98.70, 95.30),
    ("JPM", "2024-01-15", 168.90, 165.20, 160.50),
    ("DIS", "2024-01-15", 98.75, 102.30, 105.80),
    ("NVDA", "2024-01-15", 875.28, 820.50, 750.20),
    ("AMZN", "2024-01-15", 3087.50, 3120.80, 3200.40),
    ("META", "2024-01-15", 378.42, 365.20, 350.10),
    # older rows; screening must ignore them
    ("AAPL", "2024-01-14", 148.50, 145.20, 140.10),
    ("AAPL", "2024-01-13", 147.75, 144.80, 139.90),
    ("AAPL", "2024-01-12", 149.20, 144.50, 139.70),
    ("GOOGL", "2024-01-14", 2730.20, 2715.30, 2675.80),
    ("GOOGL", "2024-01-13", 2742.15, 2710.50, 2670.40),
    ("GOOGL", "2024-01-12", 2755.80, 2705.20, 2665.20),
    ("MSFT", "2024-01-14", 328.75, 324.80, 315.40),
    ("MSFT", "2024-01-13", 332.20, 324.50, 315.10),
    ("MSFT", "2024-01-12", 329.85, 324.20, 314.80),
]


def get_engine(db_path: Union[str, Path]) -> Engine:
    return create_engine(f"sqlite:///{db_path}", future=True)


class ScreenerStore:
    """SQLite-backed fundamentals and prices tables."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_path(cls, db_path: Union[str, Path]) -> "ScreenerStore":
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(get_engine(path))

    def init_schema(self) -> None:
        """Create tables and indexes if they don't exist."""
        with engine_errors("schema creation"):
            with self.engine.begin() as conn:
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(text(statement))

    def reset(self) -> None:
        """Drop both tables and recreate the schema."""
        with engine_errors("schema reset"):
            with self.engine.begin() as conn:
                conn.execute(text("DROP TABLE IF EXISTS prices"))
                conn.execute(text("DROP TABLE IF EXISTS fundamentals"))
        self.init_schema()

    def upsert_price(self, point: PricePoint) -> None:
        with engine_errors(f"price upsert for {point.ticker}"):
            with self.engine.begin() as conn:
                conn.execute(text(UPSERT_PRICE), point.to_row())

    def upsert_fundamentals(self, record: FundamentalsRecord) -> None:
        with engine_errors(f"fundamentals upsert for {record.ticker}"):
            with self.engine.begin() as conn:
                conn.execute(text(UPSERT_FUNDAMENTALS), record.to_row())

    def insert_sample_data(self) -> None:
        """Load the demonstration universe."""
        with engine_errors("sample data insert"):
            with self.engine.begin() as conn:
                conn.execute(
                    text(UPSERT_FUNDAMENTALS),
                    [
                        {
                            "ticker": t,
                            "pe_ratio": pe,
                            "roe": roe,
                            "yoy_profit": None,
                            "yoy_turnover": None,
                            "earnings_outlook": outlook,
                            "updated_at": None,
                            "dividend_yield": dy,
                            "dividend_growth_5y": dg,
                            "intrinsic_value": iv,
                            "margin_of_safety": mos,
                        }
                        for t, pe, roe, outlook, dy, dg, iv, mos in SAMPLE_FUNDAMENTALS
                    ],
                )
                conn.execute(
                    text(UPSERT_PRICE),
                    [
                        {"ticker": t, "date": d, "close": c, "sma50": s50, "sma200": s200}
                        for t, d, c, s50, s200 in SAMPLE_PRICES
                    ],
                )

    def fetch_all(self, query: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a '?'-placeholder query and return rows as dicts."""
        with engine_errors("query execution"):
            with self.engine.connect() as conn:
                result = conn.exec_driver_sql(query, tuple(params))
                return [dict(row) for row in result.mappings().all()]

    def price_rows(self, ticker: str) -> list[dict[str, Any]]:
        return self.fetch_all(
            "SELECT ticker, date, close, sma50, sma200 FROM prices WHERE ticker = ? ORDER BY date",
            (ticker,),
        )

    def fundamentals_row(self, ticker: str) -> Optional[dict[str, Any]]:
        rows = self.fetch_all("SELECT * FROM fundamentals WHERE ticker = ?", (ticker,))
        return rows[0] if rows else None

    def tickers(self) -> list[str]:
        return [row["ticker"] for row in self.fetch_all("SELECT ticker FROM fundamentals ORDER BY ticker")]


@contextmanager
def engine_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into StoreError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Store {operation} failed: {exc}")
        raise StoreError(f"{operation} failed: {exc}") from exc
