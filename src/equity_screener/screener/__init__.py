"""Screening engine, filter translation and field catalog."""

from equity_screener.screener.fields import FieldCatalog, Table, DEFAULT_CATALOG
from equity_screener.screener.filters import (
    FilterBuilder,
    FilterCondition,
    Number,
    ScreenerFilter,
    Text,
    TextList,
    parse_filter_json,
    preset_filter,
)
from equity_screener.screener.query import build_query, resolve_sort
from equity_screener.screener.engine import ScreenerPage, ScreenerResult, ScreeningEngine

__all__ = [
    "FieldCatalog",
    "Table",
    "DEFAULT_CATALOG",
    "FilterBuilder",
    "FilterCondition",
    "Number",
    "ScreenerFilter",
    "Text",
    "TextList",
    "parse_filter_json",
    "preset_filter",
    "build_query",
    "resolve_sort",
    "ScreenerPage",
    "ScreenerResult",
    "ScreeningEngine",
]
