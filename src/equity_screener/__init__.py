"""
Equity Screener

Screens equities on stored fundamentals and prices, refreshed nightly
from an end-of-day market data provider.
"""

__version__ = "1.0.0"
__author__ = "Equity Screener Team"

from equity_screener.core.config import Config, get_config
from equity_screener.core.logging import get_logger, setup_logging

# Lazy imports for main components
def get_screening_engine():
    """Get a screening engine over the configured database."""
    from equity_screener.data.store import ScreenerStore
    from equity_screener.screener.engine import ScreeningEngine
    config = Config.get_config()
    return ScreeningEngine(ScreenerStore.from_path(config.data.paths.db_path), config.screener)


def get_provider():
    """Get the market data provider client."""
    from equity_screener.data.cache import DataCache
    from equity_screener.data.provider import EODHDClient
    config = Config.get_config()
    cache = DataCache(
        cache_dir=config.data.paths.cache_dir,
        max_memory_items=config.cache.max_memory_items,
        enable_disk_cache=config.cache.enable_disk_cache,
    )
    return EODHDClient(config.provider, cache=cache)


__all__ = [
    "__version__",
    "Config",
    "get_config",
    "get_logger",
    "setup_logging",
    "get_screening_engine",
    "get_provider",
]
