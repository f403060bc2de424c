# tests/test_engine.py
import pytest

from equity_screener.core.config import ScreenerConfig
from equity_screener.core.exceptions import FilterParseError, PaginationError, UnmappedFieldError
from equity_screener.data.models import FundamentalsRecord, PricePoint
from equity_screener.screener.engine import ScreeningEngine
from equity_screener.screener.fields import FieldCatalog
from equity_screener.screener.filters import FilterBuilder


def tickers(page):
    return [r.ticker for r in page.data]


def test_two_ticker_screen_sorted_by_pe(store):
    store.upsert_fundamentals(FundamentalsRecord("AAPL", pe_ratio=14.5, roe=0.25, earnings_outlook="positive"))
    store.upsert_fundamentals(FundamentalsRecord("GOOGL", pe_ratio=13.1, roe=0.18, earnings_outlook="positive"))
    store.upsert_price(PricePoint("AAPL", "2024-01-15", 150.25, 145.80, 140.30))
    store.upsert_price(PricePoint("GOOGL", "2024-01-15", 2750.80, 2720.50, 2680.20))

    page = ScreeningEngine(store).screen_page('[["pe_ratio","<",15],["roe",">",0.15]]')

    assert tickers(page) == ["GOOGL", "AAPL"]
    assert page.data[1].close == pytest.approx(150.25)
    assert page.has_more is False


def test_value_screen_on_sample_data(sample_store):
    page = ScreeningEngine(sample_store).screen_page('[["pe_ratio","<",15],["roe",">",0.15]]')
    assert tickers(page) == ["KO", "JPM", "JNJ", "MSFT", "GOOGL", "AAPL"]


def test_only_latest_price_row_is_joined(sample_store):
    page = ScreeningEngine(sample_store).screen_page('[["ticker","=","AAPL"]]')
    assert len(page.data) == 1
    result = page.data[0]
    assert result.close == pytest.approx(150.25)
    assert result.sma50 == pytest.approx(145.80)
    assert result.sma200 == pytest.approx(140.30)


def test_ticker_without_prices_reads_zero(store):
    store.upsert_fundamentals(FundamentalsRecord("ZZZ", pe_ratio=9.0, roe=0.1))
    page = ScreeningEngine(store).screen_page('[["ticker","=","ZZZ"]]')
    assert tickers(page) == ["ZZZ"]
    assert page.data[0].close == 0.0
    assert page.data[0].sma200 == 0.0


def test_computed_field_filter(sample_store):
    page = ScreeningEngine(sample_store).screen_page('[["price_vs_sma50","<",1.0]]')
    assert tickers(page) == ["PFE", "IBM", "KO", "JNJ", "DIS", "TSLA", "AMZN"]


def test_intrinsic_above_price(sample_store):
    page = ScreeningEngine(sample_store).screen_page(
        FilterBuilder().intrinsic_value_above_price().build(), sort="ticker.asc"
    )
    assert tickers(page) == ["AAPL", "AMZN", "DIS", "GOOGL", "IBM", "JNJ", "KO", "MSFT", "PFE", "TSLA"]


def test_like_and_text_equality(sample_store):
    engine = ScreeningEngine(sample_store)
    assert tickers(engine.screen_page('[["ticker","LIKE","A%"]]', sort="ticker.asc")) == ["AAPL", "AMZN"]
    assert tickers(engine.screen_page('[["earnings_outlook","=","negative"]]')) == ["IBM"]


def test_sort_options(sample_store):
    engine = ScreeningEngine(sample_store)
    assert tickers(engine.screen_page(None, sort="roe.desc"))[0] == "NVDA"
    assert tickers(engine.screen_page(None, sort="close.desc"))[0] == "AMZN"
    assert tickers(engine.screen_page(None, sort="bogus.asc"))[0] == "PFE"


def test_empty_filter_returns_everything(sample_store):
    page = ScreeningEngine(sample_store).screen_page("")
    assert page.total_count == 15
    assert page.limit == 50
    assert page.has_more is False


def test_pagination_walks_all_matches(sample_store):
    engine = ScreeningEngine(sample_store)
    filters = '[["ticker","IN",["AAPL","GOOGL","MSFT"]]]'

    first = engine.screen_page(filters, page=1, limit=1)
    second = engine.screen_page(filters, page=2, limit=1)
    third = engine.screen_page(filters, page=3, limit=1)

    assert (tickers(first), first.has_more, first.total_count) == (["MSFT"], True, 1)
    assert (tickers(second), second.has_more) == (["GOOGL"], True)
    assert (tickers(third), third.has_more) == (["AAPL"], False)


def test_page_past_the_end_is_empty(sample_store):
    page = ScreeningEngine(sample_store).screen_page('[["ticker","=","AAPL"]]', page=5, limit=10)
    assert page.data == []
    assert page.total_count == 0
    assert page.has_more is False


def test_page_string_values_are_accepted(sample_store):
    page = ScreeningEngine(sample_store).screen_page(None, page="2", limit="10")
    assert page.page == 2
    assert page.total_count == 5


@pytest.mark.parametrize(
    "page,limit,code",
    [
        (0, 10, "INVALID_PAGE"),
        (-1, 10, "INVALID_PAGE"),
        ("abc", 10, "INVALID_PAGE"),
        (1, 0, "INVALID_LIMIT"),
        (1, 1001, "INVALID_LIMIT"),
        (1, "ten", "INVALID_LIMIT"),
    ],
)
def test_invalid_pagination(sample_store, page, limit, code):
    with pytest.raises(PaginationError) as exc:
        ScreeningEngine(sample_store).screen_page(None, page=page, limit=limit)
    assert exc.value.code == code


def test_max_limit_follows_config(sample_store):
    engine = ScreeningEngine(sample_store, ScreenerConfig(max_limit=5))
    with pytest.raises(PaginationError):
        engine.screen_page(None, limit=6)
    assert engine.screen_page(None, limit=5).has_more is True


def test_invalid_filter_json(sample_store):
    with pytest.raises(FilterParseError):
        ScreeningEngine(sample_store).screen_page("[[")


def test_unmapped_field(sample_store):
    with pytest.raises(UnmappedFieldError):
        ScreeningEngine(sample_store).screen_page('[["market_capitalization",">",1000]]')


def test_preset(sample_store):
    page = ScreeningEngine(sample_store).screen_preset("value")
    assert tickers(page) == ["KO", "JPM", "JNJ", "MSFT", "GOOGL", "AAPL"]


def test_page_to_dict_envelope(sample_store):
    envelope = ScreeningEngine(sample_store).screen_page('[["ticker","=","KO"]]').to_dict()
    assert set(envelope) == {"data", "page", "limit", "total_count", "has_more"}
    assert envelope["data"][0]["ticker"] == "KO"
    assert envelope["data"][0]["earnings_outlook"] == "positive"


def test_preset_resolves_names_through_engine_catalog(sample_store):
    config = ScreenerConfig(presets={"cheap": '[["pe","<",10]]'})
    engine = ScreeningEngine(sample_store, config, FieldCatalog(aliases={"pe": "pe_ratio"}))
    assert tickers(engine.screen_preset("cheap")) == ["PFE", "IBM", "KO"]


def test_overflowing_number_is_a_filter_error(sample_store):
    huge = "1" + "0" * 400
    with pytest.raises(FilterParseError):
        ScreeningEngine(sample_store).screen_page(f'[["pe_ratio","<",{huge}]]')
