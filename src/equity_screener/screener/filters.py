"""
Filter conditions, the filter wire format, and a fluent builder.

Wire format: a JSON array of [field, operator, value] triples, conjoined
with AND, e.g. [["pe_ratio","<",15],["roe",">",0.15]].
"""

import json
import math
from dataclasses import dataclass, field, replace
from typing import Any, Union

from equity_screener.core.exceptions import FilterParseError, ValidationError
from equity_screener.screener.fields import DEFAULT_CATALOG, FieldCatalog

OPERATORS = ("=", "<", ">", "<=", ">=", "!=", "LIKE", "IN")

DEFAULT_SORT = "pe_ratio.asc"
DEFAULT_LIMIT = 50


@dataclass(frozen=True)
class Number:
    value: float

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Text:
    value: str

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class TextList:
    values: tuple[str, ...]

    def __str__(self) -> str:
        return repr(list(self.values))


FilterValue = Union[Number, Text, TextList]


def to_filter_value(raw: Any) -> FilterValue:
    """Wrap a decoded JSON value in its variant."""
    if isinstance(raw, (Number, Text, TextList)):
        return raw
    if isinstance(raw, bool):
        raise FilterParseError(f"unsupported value type: {raw!r}")
    if isinstance(raw, (int, float)):
        try:
            number = float(raw)
        except OverflowError as e:
            raise FilterParseError(f"numeric value out of range: {raw!r}") from e
        if not math.isfinite(number):
            raise FilterParseError(f"numeric value must be finite: {raw!r}")
        return Number(number)
    if isinstance(raw, str):
        return Text(raw)
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(item, str) for item in raw):
            raise FilterParseError("list values must contain only strings")
        return TextList(tuple(raw))
    raise FilterParseError(f"unsupported value type: {type(raw).__name__}")


@dataclass(frozen=True)
class FilterCondition:
    """A single (field, operator, value) predicate."""

    field: str
    operator: str
    value: FilterValue

    def __post_init__(self) -> None:
        if self.operator not in OPERATORS:
            raise ValidationError(f"unsupported operator '{self.operator}'", field=self.field)
        object.__setattr__(self, "value", to_filter_value(self.value))


@dataclass(frozen=True)
class ScreenerFilter:
    """Conditions plus sort key and pagination window."""

    conditions: tuple[FilterCondition, ...] = field(default_factory=tuple)
    sort: str = DEFAULT_SORT
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def with_pagination(self, sort: str, limit: int, offset: int) -> "ScreenerFilter":
        return replace(self, sort=sort, limit=limit, offset=offset)


def parse_filter_json(filter_json: str, catalog: FieldCatalog = DEFAULT_CATALOG) -> ScreenerFilter:
    """
    Parse the wire format into a ScreenerFilter with default sort/pagination.

    Field names pass through the catalog's legacy alias table. An empty
    string yields a filter without conditions.
    """
    if not filter_json or not filter_json.strip():
        return ScreenerFilter()

    try:
        raw_conditions = json.loads(filter_json)
    except json.JSONDecodeError as e:
        raise FilterParseError(f"invalid filter JSON: {e}") from e

    if not isinstance(raw_conditions, list):
        raise FilterParseError("filter must be a JSON array of conditions")

    conditions = []
    for raw in raw_conditions:
        if not isinstance(raw, list) or len(raw) != 3:
            raise FilterParseError("invalid condition format: expected [field, operator, value]")
        name, operator, value = raw
        if not isinstance(name, str):
            raise FilterParseError("field must be a string")
        if not isinstance(operator, str):
            raise FilterParseError("operator must be a string")
        conditions.append(FilterCondition(catalog.rename(name), operator, to_filter_value(value)))

    return ScreenerFilter(conditions=tuple(conditions))


def filter_to_json(conditions: tuple[FilterCondition, ...]) -> str:
    """Serialize conditions back to the wire format."""
    triples = []
    for condition in conditions:
        value = condition.value
        if isinstance(value, TextList):
            raw: Any = list(value.values)
        else:
            raw = value.value
        triples.append([condition.field, condition.operator, raw])
    return json.dumps(triples, separators=(",", ":"))


class FilterBuilder:
    """Fluent construction of screener filters."""

    def __init__(self) -> None:
        self._conditions: list[FilterCondition] = []

    def add(self, field_name: str, operator: str, value: Any) -> "FilterBuilder":
        self._conditions.append(FilterCondition(field_name, operator, to_filter_value(value)))
        return self

    def pe_less_than(self, value: float) -> "FilterBuilder":
        return self.add("pe_ratio", "<", value)

    def pe_greater_than(self, value: float) -> "FilterBuilder":
        return self.add("pe_ratio", ">", value)

    def pe_between(self, low: float, high: float) -> "FilterBuilder":
        return self.add("pe_ratio", ">=", low).add("pe_ratio", "<=", high)

    def roe_greater_than(self, value: float) -> "FilterBuilder":
        return self.add("roe", ">", value)

    def roe_less_than(self, value: float) -> "FilterBuilder":
        return self.add("roe", "<", value)

    def roe_between(self, low: float, high: float) -> "FilterBuilder":
        return self.add("roe", ">=", low).add("roe", "<=", high)

    def price_below_sma50(self) -> "FilterBuilder":
        return self.add("price_vs_sma50", "<", 1.0)

    def price_above_sma50(self) -> "FilterBuilder":
        return self.add("price_vs_sma50", ">", 1.0)

    def price_below_sma200(self) -> "FilterBuilder":
        return self.add("price_vs_sma200", "<", 1.0)

    def price_above_sma200(self) -> "FilterBuilder":
        return self.add("price_vs_sma200", ">", 1.0)

    def price_between(self, low: float, high: float) -> "FilterBuilder":
        return self.add("close", ">=", low).add("close", "<=", high)

    def dividend_yield_greater_than(self, value: float) -> "FilterBuilder":
        return self.add("dividend_yield", ">", value)

    def dividend_growth_greater_than(self, value: float) -> "FilterBuilder":
        return self.add("dividend_growth_5y", ">", value)

    def margin_of_safety_greater_than(self, value: float) -> "FilterBuilder":
        return self.add("margin_of_safety", ">", value)

    def intrinsic_value_above_price(self) -> "FilterBuilder":
        return self.add("intrinsic_vs_price", ">", 1.0)

    def earnings_outlook(self, outlook: str) -> "FilterBuilder":
        return self.add("earnings_outlook", "=", outlook)

    def ticker(self, ticker: str) -> "FilterBuilder":
        return self.add("ticker", "=", ticker)

    def ticker_in(self, tickers: list[str]) -> "FilterBuilder":
        return self.add("ticker", "IN", list(tickers))

    def build(self, sort: str = DEFAULT_SORT, limit: int = DEFAULT_LIMIT, offset: int = 0) -> ScreenerFilter:
        return ScreenerFilter(conditions=tuple(self._conditions), sort=sort, limit=limit, offset=offset)


def preset_filter(
    name: str, presets: dict[str, str], catalog: FieldCatalog = DEFAULT_CATALOG
) -> ScreenerFilter:
    """Look up a named preset and parse it."""
    if name not in presets:
        raise ValidationError(f"unknown preset '{name}'", field="preset")
    return parse_filter_json(presets[name], catalog)
