"""
Data models for the equity screener.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

PATH_SEPARATOR = "::"


@dataclass
class EODBar:
    """Single end-of-day bar as returned by the provider."""

    date: str
    close: float
    adjusted_close: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "EODBar":
        close = float(raw.get("close") or 0.0)
        adjusted = raw.get("adjusted_close")
        return cls(
            date=str(raw["date"]),
            close=close,
            adjusted_close=float(adjusted) if adjusted is not None else close,
            open=float(raw.get("open") or 0.0),
            high=float(raw.get("high") or 0.0),
            low=float(raw.get("low") or 0.0),
            volume=int(raw.get("volume") or 0),
        )


@dataclass
class Dividend:
    """Single dividend payment."""

    date: str
    value: float
    currency: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Dividend":
        return cls(
            date=str(raw["date"]),
            value=float(raw.get("value") or 0.0),
            currency=str(raw.get("currency") or ""),
        )

    @property
    def year(self) -> int:
        return int(self.date[:4])


@dataclass
class Fundamentals:
    """
    Wrapper over the raw fundamentals document.

    Values are addressed with '::'-separated paths such as
    'Financials::Balance_Sheet::yearly::2023-12-31::totalStockholderEquity'.
    """

    ticker: str
    raw: dict[str, Any] = field(default_factory=dict)

    def get_section(self, path: str) -> dict[str, Any]:
        """Return the mapping at path, or an empty dict."""
        current: Any = self.raw
        for key in path.split(PATH_SEPARATOR):
            if not isinstance(current, dict):
                return {}
            current = current.get(key)
        return current if isinstance(current, dict) else {}

    def get_float(self, path: str) -> float:
        """Return the number at path; 0.0 when absent or not numeric."""
        *parents, leaf = path.split(PATH_SEPARATOR)
        section = self.get_section(PATH_SEPARATOR.join(parents)) if parents else self.raw
        value = section.get(leaf)
        if isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return 0.0
        return 0.0

    def latest_period(self, path: str) -> str:
        """Return the greatest (most recent) date key under path, or ''."""
        section = self.get_section(path)
        return max(section.keys(), default="")

    def periods(self, path: str) -> list[str]:
        """Return all date keys under path, oldest first."""
        return sorted(self.get_section(path).keys())


@dataclass
class PricePoint:
    """Row of the prices table."""

    ticker: str
    date: str
    close: float
    sma50: Optional[float] = None
    sma200: Optional[float] = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FundamentalsRecord:
    """Row of the fundamentals table."""

    ticker: str
    pe_ratio: float = 0.0
    roe: float = 0.0
    yoy_profit: Optional[dict[str, float]] = None
    yoy_turnover: Optional[dict[str, float]] = None
    earnings_outlook: str = ""
    updated_at: Optional[datetime] = None
    dividend_yield: float = 0.0
    dividend_growth_5y: float = 0.0
    intrinsic_value: float = 0.0
    margin_of_safety: float = 0.0

    def to_row(self) -> dict[str, Any]:
        """Serialize for the store; blobs become JSON text."""
        row = asdict(self)
        for key in ("yoy_profit", "yoy_turnover"):
            if row[key] is not None:
                row[key] = json.dumps(row[key], sort_keys=True)
        updated_at = self.updated_at or datetime.now()
        row["updated_at"] = updated_at.strftime("%Y-%m-%d %H:%M:%S")
        return row
