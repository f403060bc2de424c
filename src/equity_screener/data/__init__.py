"""Data layer: provider client, cache, persisted store."""

from equity_screener.data.models import (
    EODBar,
    Dividend,
    Fundamentals,
    PricePoint,
    FundamentalsRecord,
)
from equity_screener.data.cache import DataCache
from equity_screener.data.provider import EODHDClient
from equity_screener.data.store import ScreenerStore
from equity_screener.data.universe import UniverseManager

__all__ = [
    "EODBar",
    "Dividend",
    "Fundamentals",
    "PricePoint",
    "FundamentalsRecord",
    "DataCache",
    "EODHDClient",
    "ScreenerStore",
    "UniverseManager",
]
