"""
Translate a ScreenerFilter into a parameterized SQL query.

Values are always bound through '?' placeholders. ORDER BY cannot be
parameterized, so sort keys are only ever taken from SORT_WHITELIST.
"""

from typing import Any

from equity_screener.core.exceptions import ComputedFieldError, ValidationError
from equity_screener.screener.fields import DEFAULT_CATALOG, FieldCatalog
from equity_screener.screener.filters import (
    DEFAULT_SORT,
    FilterCondition,
    Number,
    ScreenerFilter,
    Text,
    TextList,
)

RESULT_COLUMNS = (
    "ticker",
    "pe_ratio",
    "roe",
    "close",
    "sma50",
    "sma200",
    "earnings_outlook",
    "dividend_yield",
    "dividend_growth_5y",
    "intrinsic_value",
    "margin_of_safety",
)

BASE_QUERY = """
SELECT
  f.ticker,
  COALESCE(f.pe_ratio, 0) AS pe_ratio,
  COALESCE(f.roe, 0) AS roe,
  COALESCE(p.close, 0) AS close,
  COALESCE(p.sma50, 0) AS sma50,
  COALESCE(p.sma200, 0) AS sma200,
  COALESCE(f.earnings_outlook, '') AS earnings_outlook,
  COALESCE(f.dividend_yield, 0) AS dividend_yield,
  COALESCE(f.dividend_growth_5y, 0) AS dividend_growth_5y,
  COALESCE(f.intrinsic_value, 0) AS intrinsic_value,
  COALESCE(f.margin_of_safety, 0) AS margin_of_safety
FROM fundamentals f
LEFT JOIN (
  SELECT ticker, close, sma50, sma200
  FROM prices p1
  WHERE date = (SELECT MAX(date) FROM prices p2 WHERE p2.ticker = p1.ticker)
) p ON f.ticker = p.ticker"""

SORT_WHITELIST = {
    "pe_ratio.asc": "f.pe_ratio ASC",
    "pe_ratio.desc": "f.pe_ratio DESC",
    "roe.asc": "f.roe ASC",
    "roe.desc": "f.roe DESC",
    "close.asc": "p.close ASC",
    "close.desc": "p.close DESC",
    "dividend_yield.asc": "f.dividend_yield ASC",
    "dividend_yield.desc": "f.dividend_yield DESC",
    "margin_of_safety.asc": "f.margin_of_safety ASC",
    "margin_of_safety.desc": "f.margin_of_safety DESC",
    "ticker.asc": "f.ticker ASC",
    "ticker.desc": "f.ticker DESC",
}

COMPARISON_OPERATORS = ("=", "<", ">", "<=", ">=", "!=")


def resolve_sort(sort: str) -> str:
    """Whitelisted ORDER BY expression; unknown keys fall back to pe_ratio.asc."""
    return SORT_WHITELIST.get(sort, SORT_WHITELIST[DEFAULT_SORT])


def translate_condition(
    condition: FilterCondition,
    catalog: FieldCatalog = DEFAULT_CATALOG,
) -> tuple[str, list[Any]]:
    """Return (predicate, params) for one condition."""
    name, operator, value = condition.field, condition.operator, condition.value

    if catalog.is_computed(name):
        if isinstance(value, Number):
            predicate = catalog.computed[name].get((operator, value.value))
            if predicate is not None:
                return predicate, []
        raise ComputedFieldError(name, operator, value)

    column = catalog.column(name)

    if operator == "IN":
        if not isinstance(value, TextList) or not value.values:
            raise ValidationError("IN requires a non-empty list of strings", field=name)
        placeholders = ", ".join("?" for _ in value.values)
        return f"{column} IN ({placeholders})", list(value.values)

    if isinstance(value, TextList):
        raise ValidationError(f"operator '{operator}' does not accept a list", field=name)

    if operator == "LIKE":
        if not isinstance(value, Text):
            raise ValidationError("LIKE requires a string pattern", field=name)
        return f"{column} LIKE ?", [value.value]

    if operator in COMPARISON_OPERATORS:
        return f"{column} {operator} ?", [value.value]

    raise ValidationError(f"unsupported operator '{operator}'", field=name)


def build_query(
    screener_filter: ScreenerFilter,
    catalog: FieldCatalog = DEFAULT_CATALOG,
) -> tuple[str, list[Any]]:
    """
    Build the screening query.

    Returns the SQL text and its positional parameters, in condition order.
    Limit and offset are emitted as integer literals; callers validate them.
    """
    predicates: list[str] = []
    params: list[Any] = []

    for condition in screener_filter.conditions:
        predicate, condition_params = translate_condition(condition, catalog)
        predicates.append(predicate)
        params.extend(condition_params)

    query = BASE_QUERY
    if predicates:
        query += "\nWHERE " + " AND ".join(predicates)

    order_by = resolve_sort(screener_filter.sort)
    if not order_by.startswith("f.ticker"):
        # stable paging across equal sort keys
        order_by += ", f.ticker ASC"
    query += f"\nORDER BY {order_by}"

    limit = int(screener_filter.limit)
    offset = int(screener_filter.offset)
    if limit > 0:
        query += f"\nLIMIT {limit}"
    elif offset > 0:
        query += "\nLIMIT -1"
    if offset > 0:
        query += f" OFFSET {offset}"

    return query, params
