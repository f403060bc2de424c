"""
Screening engine: the read path over the persisted store.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union

from equity_screener.core.config import ScreenerConfig
from equity_screener.core.exceptions import PaginationError
from equity_screener.core.logging import get_logger
from equity_screener.data.store import ScreenerStore
from equity_screener.screener.fields import DEFAULT_CATALOG, FieldCatalog
from equity_screener.screener.filters import ScreenerFilter, parse_filter_json, preset_filter
from equity_screener.screener.query import build_query

logger = get_logger("screener.engine")


@dataclass
class ScreenerResult:
    """One matched ticker joined to its most recent price row."""

    ticker: str
    pe_ratio: float
    roe: float
    close: float
    sma50: float
    sma200: float
    earnings_outlook: str
    dividend_yield: float
    dividend_growth_5y: float
    intrinsic_value: float
    margin_of_safety: float

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ScreenerResult":
        return cls(
            ticker=row["ticker"],
            pe_ratio=float(row["pe_ratio"]),
            roe=float(row["roe"]),
            close=float(row["close"]),
            sma50=float(row["sma50"]),
            sma200=float(row["sma200"]),
            earnings_outlook=str(row["earnings_outlook"]),
            dividend_yield=float(row["dividend_yield"]),
            dividend_growth_5y=float(row["dividend_growth_5y"]),
            intrinsic_value=float(row["intrinsic_value"]),
            margin_of_safety=float(row["margin_of_safety"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScreenerPage:
    """
    Response envelope for one page of results.

    total_count is the size of this page, not a global count.
    """

    data: list[ScreenerResult] = field(default_factory=list)
    page: int = 1
    limit: int = 50
    total_count: int = 0
    has_more: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [result.to_dict() for result in self.data],
            "page": self.page,
            "limit": self.limit,
            "total_count": self.total_count,
            "has_more": self.has_more,
        }


def _as_int(value: Union[int, str, None], default: int, name: str) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise PaginationError(f"{name} must be an integer", field=name)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise PaginationError(f"{name} must be an integer", field=name) from e


class ScreeningEngine:
    """
    Stateless screening over the fundamentals/prices store.

    Safe to call concurrently; each call runs a single query.
    """

    def __init__(
        self,
        store: ScreenerStore,
        config: Optional[ScreenerConfig] = None,
        catalog: FieldCatalog = DEFAULT_CATALOG,
    ):
        self.store = store
        self.config = config or ScreenerConfig()
        self.catalog = catalog

    def screen(self, screener_filter: ScreenerFilter) -> list[ScreenerResult]:
        """Run a filter as-is and return the matching rows in sort order."""
        query, params = build_query(screener_filter, self.catalog)
        logger.debug(f"Screening with {len(screener_filter.conditions)} conditions, sort={screener_filter.sort}")
        rows = self.store.fetch_all(query, params)
        return [ScreenerResult.from_row(row) for row in rows]

    def screen_page(
        self,
        filters: Union[str, ScreenerFilter, None] = None,
        sort: Optional[str] = None,
        page: Union[int, str, None] = None,
        limit: Union[int, str, None] = None,
    ) -> ScreenerPage:
        """
        Validate pagination, run one page and compute has_more.

        Args:
            filters: Wire-format JSON string or an already parsed filter
            sort: Whitelisted '<field>.<direction>' key
            page: 1-based page number
            limit: Page size, 1..max_limit
        """
        page_number = _as_int(page, 1, "page")
        if page_number < 1:
            raise PaginationError("page must be a positive integer", field="page")

        page_size = _as_int(limit, self.config.default_limit, "limit")
        if page_size < 1 or page_size > self.config.max_limit:
            raise PaginationError(
                f"limit must be between 1 and {self.config.max_limit}", field="limit"
            )

        if isinstance(filters, ScreenerFilter):
            base = filters
        else:
            base = parse_filter_json(filters or "", self.catalog)

        paged = base.with_pagination(
            sort=sort or self.config.default_sort,
            limit=page_size + 1,
            offset=(page_number - 1) * page_size,
        )
        results = self.screen(paged)

        has_more = len(results) > page_size
        if has_more:
            results = results[:page_size]

        return ScreenerPage(
            data=results,
            page=page_number,
            limit=page_size,
            total_count=len(results),
            has_more=has_more,
        )

    def screen_preset(
        self,
        name: str,
        sort: Optional[str] = None,
        page: Union[int, str, None] = None,
        limit: Union[int, str, None] = None,
    ) -> ScreenerPage:
        """Run one of the configured preset filters."""
        return self.screen_page(preset_filter(name, self.config.presets, self.catalog), sort, page, limit)
