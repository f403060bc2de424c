"""
Client for the end-of-day market data REST service.
"""

from datetime import date
from typing import Any, Optional, Union

import httpx

from equity_screener.core.config import ProviderConfig
from equity_screener.core.exceptions import DataNotFoundError, ProviderError
from equity_screener.core.logging import get_logger
from equity_screener.data.cache import DataCache
from equity_screener.data.models import Dividend, EODBar, Fundamentals

logger = get_logger("data.provider")

DateLike = Union[str, date, None]


def _format_date(value: DateLike) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class EODHDClient:
    """
    Fetches price series, fundamentals and dividends for a ticker.

    Every request consults the cache first; successful responses are cached
    under a key built from the endpoint and all query parameters, so distinct
    parameterizations never share an entry. The API token is not part of
    the key.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        cache: Optional[DataCache] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config or ProviderConfig()
        self.cache = cache
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self.config.timeout_seconds)

    def __enter__(self) -> "EODHDClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _get(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET endpoint and return decoded JSON, via the cache."""
        params = {k: v for k, v in (params or {}).items() if v is not None}
        params["fmt"] = self.config.response_format

        cache_key = DataCache.make_key(endpoint, params)
        if self.cache is not None:
            found, cached = self.cache.get(cache_key)
            if found:
                logger.debug(f"Cache hit for {cache_key}")
                return cached

        url = f"{self.config.base_url.rstrip('/')}/{endpoint}"
        request_params = dict(params)
        if self.config.api_token:
            request_params["api_token"] = self.config.api_token

        logger.debug(f"Fetching {endpoint}")
        try:
            response = self._client.get(url, params=request_params)
        except httpx.TimeoutException as e:
            raise ProviderError(endpoint, f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(endpoint, f"http request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(endpoint, response.text, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(endpoint, f"decode failed: {e}") from e

        if self.cache is not None:
            self.cache.set(cache_key, payload, ttl_hours=self.config.cache_ttl_hours)

        return payload

    def get_eod_data(
        self,
        ticker: str,
        from_date: DateLike = None,
        to_date: DateLike = None,
    ) -> list[EODBar]:
        """
        Get end-of-day bars for a ticker.

        Args:
            ticker: Provider symbol, e.g. 'AAPL.US'
            from_date: Optional inclusive start (YYYY-MM-DD)
            to_date: Optional inclusive end (YYYY-MM-DD)
        """
        payload = self._get(
            f"eod/{ticker}",
            {"from": _format_date(from_date), "to": _format_date(to_date)},
        )
        if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
            raise ProviderError(f"eod/{ticker}", "expected a list of bar objects")
        return [EODBar.from_dict(row) for row in payload]

    def get_fundamentals(self, ticker: str) -> Fundamentals:
        """Get the full fundamentals document for a ticker."""
        payload = self._get(f"fundamentals/{ticker}")
        if not isinstance(payload, dict) or not payload:
            raise DataNotFoundError(ticker, "fundamental")
        return Fundamentals(ticker=ticker, raw=payload)

    def get_fundamentals_general(self, ticker: str) -> dict[str, Any]:
        """Get the 'General' section (name, sector, industry...)."""
        payload = self._get(f"fundamentals/{ticker}", {"filter": "General"})
        if not isinstance(payload, dict):
            raise DataNotFoundError(ticker, "general")
        return payload

    def get_dividends(
        self,
        ticker: str,
        from_date: DateLike = None,
        to_date: DateLike = None,
    ) -> list[Dividend]:
        """Get dividend payments for a ticker."""
        payload = self._get(
            f"div/{ticker}",
            {"from": _format_date(from_date), "to": _format_date(to_date)},
        )
        if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
            raise ProviderError(f"div/{ticker}", "expected a list of dividend objects")
        return [Dividend.from_dict(row) for row in payload]

    def search(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        """Look up tickers by name or code."""
        payload = self._get(f"search/{query}", {"limit": limit})
        return payload if isinstance(payload, list) else []
