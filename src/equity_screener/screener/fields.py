"""
Field catalog: where each filterable/sortable field lives.
"""

from enum import Enum

from equity_screener.core.exceptions import UnmappedFieldError


class Table(str, Enum):
    FUNDAMENTALS = "fundamentals"
    PRICES = "prices"
    UNKNOWN = "unknown"


TABLE_ALIASES = {
    Table.FUNDAMENTALS: "f",
    Table.PRICES: "p",
}

FUNDAMENTAL_FIELDS = frozenset(
    {
        "ticker",
        "pe_ratio",
        "roe",
        "earnings_outlook",
        "dividend_yield",
        "dividend_growth_5y",
        "intrinsic_value",
        "margin_of_safety",
    }
)

PRICE_FIELDS = frozenset({"close", "sma50", "sma200"})

# (operator, value) -> SQL predicate; no bound parameters.
COMPUTED_FIELDS: dict[str, dict[tuple[str, float], str]] = {
    "price_vs_sma50": {
        ("<", 1.0): "p.close < p.sma50",
        (">", 1.0): "p.close > p.sma50",
    },
    "price_vs_sma200": {
        ("<", 1.0): "p.close < p.sma200",
        (">", 1.0): "p.close > p.sma200",
    },
    "intrinsic_vs_price": {
        (">", 1.0): "f.intrinsic_value > p.close",
    },
}

# Legacy external names kept for backward compatibility.
FIELD_ALIASES = {
    "market_capitalization": "market_cap",
    "dividend_yield": "dividend_yield",
    "earnings_share": "eps",
    "sector": "sector",
    "industry": "industry",
    "exchange": "exchange",
    "refund_5d_p": "return_5d",
    "avgvol_200d": "avg_volume_200d",
    "type": "asset_type",
}


class FieldCatalog:
    """Maps external field names to tables, columns and computed predicates."""

    def __init__(
        self,
        fundamentals: frozenset[str] = FUNDAMENTAL_FIELDS,
        prices: frozenset[str] = PRICE_FIELDS,
        computed: dict[str, dict[tuple[str, float], str]] = COMPUTED_FIELDS,
        aliases: dict[str, str] = FIELD_ALIASES,
    ):
        self.fundamentals = fundamentals
        self.prices = prices
        self.computed = computed
        self.aliases = aliases

    def rename(self, name: str) -> str:
        """Translate a legacy external name; identity when unmapped."""
        return self.aliases.get(name, name)

    def locate(self, field: str) -> Table:
        if field in self.fundamentals:
            return Table.FUNDAMENTALS
        if field in self.prices:
            return Table.PRICES
        return Table.UNKNOWN

    def is_computed(self, field: str) -> bool:
        return field in self.computed

    def column(self, field: str) -> str:
        """Qualified column such as 'f.pe_ratio'."""
        table = self.locate(field)
        if table is Table.UNKNOWN:
            raise UnmappedFieldError(field)
        return f"{TABLE_ALIASES[table]}.{field}"

    def fields(self) -> list[str]:
        return sorted(self.fundamentals | self.prices | set(self.computed))


DEFAULT_CATALOG = FieldCatalog()
