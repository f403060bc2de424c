"""Core utilities and infrastructure."""

from equity_screener.core.config import AppConfig, Config, ConfigLoader, get_config
from equity_screener.core.logging import get_logger, setup_logging
from equity_screener.core.exceptions import (
    ScreenerError,
    ValidationError,
    FilterParseError,
    UnmappedFieldError,
    ComputedFieldError,
    PaginationError,
    ValuationError,
    InsufficientDataError,
    DivisionByZeroError,
    InvalidValuationInputError,
    DataError,
    DataNotFoundError,
    ProviderError,
    CacheError,
    StoreError,
    ConfigError,
    PipelineError,
)

__all__ = [
    "AppConfig",
    "Config",
    "ConfigLoader",
    "get_config",
    "get_logger",
    "setup_logging",
    "ScreenerError",
    "ValidationError",
    "FilterParseError",
    "UnmappedFieldError",
    "ComputedFieldError",
    "PaginationError",
    "ValuationError",
    "InsufficientDataError",
    "DivisionByZeroError",
    "InvalidValuationInputError",
    "DataError",
    "DataNotFoundError",
    "ProviderError",
    "CacheError",
    "StoreError",
    "ConfigError",
    "PipelineError",
]
