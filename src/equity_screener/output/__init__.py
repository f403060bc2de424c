"""Output formatters for screening results."""

from equity_screener.output.formatters import (
    OutputFormatter,
    TextFormatter,
    JSONFormatter,
    CSVFormatter,
    get_formatter,
)

__all__ = [
    "OutputFormatter",
    "TextFormatter",
    "JSONFormatter",
    "CSVFormatter",
    "get_formatter",
]
