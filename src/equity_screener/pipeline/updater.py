"""
Nightly refresh of the fundamentals and prices tables.

The orchestrator is idle on weekends. When refreshing it walks the ticker
universe; a failure on one ticker is logged and recorded, and the loop moves
on to the next. Partial completion is a normal outcome.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional

from equity_screener.core.config import AppConfig
from equity_screener.core.exceptions import InsufficientDataError, PipelineError, ScreenerError
from equity_screener.core.logging import get_logger
from equity_screener.data.models import Fundamentals, FundamentalsRecord, PricePoint
from equity_screener.data.store import ScreenerStore
from equity_screener.valuation import metrics

logger = get_logger("pipeline.updater")

BALANCE_SHEET_YEARLY = "Financials::Balance_Sheet::yearly"
INCOME_STATEMENT_YEARLY = "Financials::Income_Statement::yearly"
EARNINGS_ANNUAL = "Earnings::Annual"
EARNINGS_HISTORY = "Earnings::History"


@dataclass
class TickerUpdate:
    """Computed rows for one ticker, ready to upsert."""

    price: PricePoint
    fundamentals: FundamentalsRecord


@dataclass
class UpdateReport:
    """Outcome of one refresh run."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    skipped: bool = False
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "skipped": self.skipped,
            "succeeded": list(self.succeeded),
            "failed": dict(self.failed),
        }


def should_update_now(now: datetime, skip_weekends: bool = True) -> bool:
    """False on Saturday and Sunday when weekends are skipped."""
    if not skip_weekends:
        return True
    return now.weekday() < 5


def period_for_year(fundamentals: Fundamentals, path: str, year: int) -> str:
    """Most recent period key under path that falls in `year`, or ''."""
    candidates = [p for p in fundamentals.periods(path) if p.startswith(f"{year:04d}")]
    return candidates[-1] if candidates else ""


def yearly_series(fundamentals: Fundamentals, path: str, item: str) -> dict[str, float]:
    """Map of period -> value for one line item of a yearly statement."""
    return {
        period: fundamentals.get_float(f"{path}::{period}::{item}")
        for period in fundamentals.periods(path)
    }


class UpdateOrchestrator:
    """
    Refresh stored metrics from the market data provider.

    The provider must expose get_eod_data, get_fundamentals and
    get_dividends with the EODHDClient signatures.
    """

    def __init__(self, provider: Any, store: ScreenerStore, config: Optional[AppConfig] = None):
        self.provider = provider
        self.store = store
        self.config = config or AppConfig()

    def run(
        self,
        tickers: list[str],
        now: Optional[datetime] = None,
        force: bool = False,
    ) -> UpdateReport:
        """
        Refresh every ticker in the universe.

        Args:
            tickers: Provider symbols to refresh
            now: Clock override, also used as the rows' update timestamp
            force: Run even outside the refresh window
        """
        now = now or datetime.now()
        report = UpdateReport(started_at=now)

        if not force and not should_update_now(now, self.config.update.skip_weekends):
            logger.info("Skipping nightly update: weekend.")
            report.skipped = True
            report.finished_at = now
            return report

        logger.info(f"Starting nightly update of {len(tickers)} tickers...")

        max_workers = max(1, self.config.update.max_workers)
        if max_workers == 1:
            for ticker in tickers:
                self._record(report, ticker, self._safe_process(ticker, now))
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [(t, executor.submit(self._safe_process, t, now)) for t in tickers]
                for ticker, future in futures:
                    self._record(report, ticker, future.result())

        report.finished_at = datetime.now()
        logger.info(
            f"Nightly update complete: {len(report.succeeded)} updated, {len(report.failed)} failed."
        )
        return report

    @staticmethod
    def _record(report: UpdateReport, ticker: str, error: Optional[str]) -> None:
        if error is None:
            report.succeeded.append(ticker)
        else:
            report.failed[ticker] = error

    def _safe_process(self, ticker: str, now: datetime) -> Optional[str]:
        """Process one ticker; return an error message instead of raising."""
        logger.info(f"Updating: {ticker}")
        try:
            self.process_ticker(ticker, now)
        except ScreenerError as e:
            logger.warning(f"Error updating {ticker}: {e}")
            return str(e)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed provider data for {ticker}: {e!r}")
            return f"malformed provider data: {e!r}"
        return None

    def process_ticker(self, ticker: str, now: Optional[datetime] = None) -> TickerUpdate:
        """Compute both rows for a ticker and upsert them."""
        update = self.compute_ticker(ticker, now)
        self.store.upsert_price(update.price)
        self.store.upsert_fundamentals(update.fundamentals)
        return update

    def compute_ticker(self, ticker: str, now: Optional[datetime] = None) -> TickerUpdate:
        """Fetch provider data and derive every stored metric for a ticker."""
        now = now or datetime.now()
        today = now.date()
        valuation = self.config.valuation

        # Prices and moving averages
        bars = self.provider.get_eod_data(
            ticker,
            from_date=today - timedelta(days=valuation.history_lookback_days),
            to_date=today,
        )
        if len(bars) < valuation.min_history_days:
            raise PipelineError(
                f"not enough EOD data ({len(bars)} points, {valuation.min_history_days} required)",
                stage="prices",
                ticker=ticker,
            )

        series = [(bar.date, bar.adjusted_close) for bar in bars]
        try:
            sma_short = metrics.simple_moving_average(series, valuation.sma_short)
            sma_long = metrics.simple_moving_average(series, valuation.sma_long)
        except InsufficientDataError as e:
            raise PipelineError(str(e), stage="prices", ticker=ticker) from e

        latest = max(bars, key=lambda bar: bar.date)
        price = latest.adjusted_close

        # Fundamentals: EPS, P/E, ROE
        fundamentals = self.provider.get_fundamentals(ticker)

        eps_path = EARNINGS_ANNUAL if fundamentals.get_section(EARNINGS_ANNUAL) else EARNINGS_HISTORY
        eps_period = fundamentals.latest_period(eps_path)
        if not eps_period:
            raise PipelineError("no earnings data available", stage="fundamentals", ticker=ticker)
        eps = fundamentals.get_float(f"{eps_path}::{eps_period}::epsActual")
        pe_ratio = metrics.price_earnings_ratio(price, eps)

        period = fundamentals.latest_period(BALANCE_SHEET_YEARLY)
        if not period:
            raise PipelineError("no financial data available", stage="fundamentals", ticker=ticker)
        equity = fundamentals.get_float(f"{BALANCE_SHEET_YEARLY}::{period}::totalStockholderEquity")
        net_income = fundamentals.get_float(f"{INCOME_STATEMENT_YEARLY}::{period}::netIncome")
        roe = metrics.return_on_equity(net_income, equity)

        # EPS growth over the configured window, with a conservative fallback
        past_year = int(eps_period[:4]) - valuation.growth_years
        past_period = period_for_year(fundamentals, eps_path, past_year)
        eps_past = fundamentals.get_float(f"{eps_path}::{past_period}::epsActual") if past_period else 0.0
        growth_rate = metrics.compound_annual_growth_rate(eps_past, eps, valuation.growth_years)
        if growth_rate == 0:
            growth_rate = valuation.default_growth_rate

        # Dividends: last complete calendar year vs `growth_years` before it
        last_year = today.year - 1
        first_year = last_year - valuation.growth_years
        dividends = self.provider.get_dividends(ticker, from_date=date(first_year, 1, 1), to_date=today)
        per_year = metrics.annual_dividends(dividends)
        dividends_last = per_year.get(last_year, 0.0)
        dividends_past = per_year.get(first_year, 0.0)

        div_yield = metrics.dividend_yield(dividends_last, price)
        div_growth = metrics.compound_annual_growth_rate(
            dividends_past, dividends_last, valuation.growth_years
        )

        intrinsic = metrics.intrinsic_value(
            eps,
            growth_rate * 100,
            valuation.bond_yield,
            valuation.reference_yield,
        )
        safety = metrics.margin_of_safety(intrinsic, price)

        yoy_profit = yearly_series(fundamentals, INCOME_STATEMENT_YEARLY, "netIncome")
        yoy_turnover = yearly_series(fundamentals, INCOME_STATEMENT_YEARLY, "totalRevenue")

        return TickerUpdate(
            price=PricePoint(
                ticker=ticker,
                date=latest.date,
                close=price,
                sma50=sma_short,
                sma200=sma_long,
            ),
            fundamentals=FundamentalsRecord(
                ticker=ticker,
                pe_ratio=pe_ratio,
                roe=roe,
                yoy_profit=yoy_profit or None,
                yoy_turnover=yoy_turnover or None,
                earnings_outlook=metrics.earnings_outlook(yoy_profit),
                updated_at=now,
                dividend_yield=div_yield,
                dividend_growth_5y=div_growth,
                intrinsic_value=intrinsic,
                margin_of_safety=safety,
            ),
        )
