"""Nightly update orchestration."""

from equity_screener.pipeline.updater import (
    TickerUpdate,
    UpdateOrchestrator,
    UpdateReport,
    should_update_now,
)

__all__ = [
    "TickerUpdate",
    "UpdateOrchestrator",
    "UpdateReport",
    "should_update_now",
]
