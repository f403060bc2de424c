"""
Output formatters for screening results.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

import pandas as pd

from equity_screener.screener.engine import ScreenerPage, ScreenerResult
from equity_screener.screener.query import RESULT_COLUMNS


class OutputFormatter(ABC):
    """Base class for output formatters."""

    @abstractmethod
    def format(self, result: ScreenerResult) -> str:
        """Format a single result."""
        pass

    @abstractmethod
    def format_page(self, page: ScreenerPage) -> str:
        """Format a page of results."""
        pass

    def save(self, content: str, path: str | Path) -> None:
        """Save formatted content to file."""
        Path(path).write_text(content)


class TextFormatter(OutputFormatter):
    """Plain text formatter."""

    def format(self, result: ScreenerResult) -> str:
        """Format a single result as text."""
        lines = [
            "=" * 50,
            f"TICKER: {result.ticker}",
            "=" * 50,
            f"Close:            {result.close:12.2f}",
            f"SMA50:            {result.sma50:12.2f}",
            f"SMA200:           {result.sma200:12.2f}",
            f"P/E:              {result.pe_ratio:12.2f}",
            f"ROE:              {result.roe * 100:11.1f}%",
            f"Dividend yield:   {result.dividend_yield * 100:11.2f}%",
            f"Dividend growth:  {result.dividend_growth_5y * 100:11.2f}%",
            f"Intrinsic value:  {result.intrinsic_value:12.2f}",
            f"Margin of safety: {result.margin_of_safety * 100:11.1f}%",
            f"Outlook:          {result.earnings_outlook:>12}",
            "=" * 50,
        ]
        return "\n".join(lines)

    def format_page(self, page: ScreenerPage) -> str:
        """Format a page of results as a text table."""
        lines = [
            "=" * 96,
            "SCREENING RESULTS",
            f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"Page {page.page} | limit {page.limit} | {page.total_count} rows"
            + (" | more available" if page.has_more else ""),
            "=" * 96,
            "",
        ]

        header = (
            f"{'Ticker':<8}{'P/E':>8}{'ROE':>8}{'Close':>11}{'SMA50':>11}{'SMA200':>11}"
            f"{'Yield':>8}{'Intrinsic':>11}{'MoS':>8}  {'Outlook':<10}"
        )
        lines.append(header)
        lines.append("-" * 96)

        for r in page.data:
            row = (
                f"{r.ticker:<8}{r.pe_ratio:>8.2f}{r.roe * 100:>7.1f}%{r.close:>11.2f}"
                f"{r.sma50:>11.2f}{r.sma200:>11.2f}{r.dividend_yield * 100:>7.2f}%"
                f"{r.intrinsic_value:>11.2f}{r.margin_of_safety * 100:>7.1f}%  {r.earnings_outlook:<10}"
            )
            lines.append(row)

        if not page.data:
            lines.append("No tickers matched.")

        lines.append("")
        lines.append("=" * 96)

        return "\n".join(lines)


class JSONFormatter(OutputFormatter):
    """JSON formatter; a page renders as the paginated response envelope."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format(self, result: ScreenerResult) -> str:
        """Format a single result as JSON."""
        return json.dumps(result.to_dict(), indent=self.indent, default=str)

    def format_page(self, page: ScreenerPage) -> str:
        """Format a page as the {data, page, limit, total_count, has_more} envelope."""
        return json.dumps(page.to_dict(), indent=self.indent, default=str)


class CSVFormatter(OutputFormatter):
    """CSV formatter."""

    def format(self, result: ScreenerResult) -> str:
        """Format a single result as CSV."""
        df = pd.DataFrame([result.to_dict()], columns=list(RESULT_COLUMNS))
        return df.to_csv(index=False)

    def format_page(self, page: ScreenerPage) -> str:
        """Format a page of results as CSV."""
        records = [r.to_dict() for r in page.data]
        df = pd.DataFrame(records, columns=list(RESULT_COLUMNS))
        return df.to_csv(index=False)


def get_formatter(format_type: str, **kwargs) -> OutputFormatter:
    """Factory function to get appropriate formatter."""
    formatters = {
        "text": TextFormatter,
        "json": JSONFormatter,
        "csv": CSVFormatter,
    }

    formatter_class = formatters.get(format_type.lower())
    if formatter_class is None:
        raise ValueError(f"Unknown format type: {format_type}")

    return formatter_class(**kwargs)
