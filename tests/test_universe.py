# tests/test_universe.py
import pytest

from equity_screener.core.config import UpdateConfig
from equity_screener.core.exceptions import ConfigError
from equity_screener.data.universe import UniverseManager


def test_default_universe_from_config():
    manager = UniverseManager(UpdateConfig())
    assert manager.get_universe()[:2] == ["AAPL.US", "MSFT.US"]


def test_named_universe_is_cleaned():
    manager = UniverseManager(UpdateConfig(universes={"mine": [" ko.us", "KO.US", "pfe.us", ""]}))
    assert manager.get_universe("mine") == ["KO.US", "PFE.US"]


def test_registered_universe_takes_precedence():
    manager = UniverseManager(UpdateConfig())
    manager.register("default", ["ibm.us"])
    assert manager.get_universe("default") == ["IBM.US"]
    assert "default" in manager.list_universes()


def test_file_universe(tmp_path):
    path = tmp_path / "tickers.txt"
    path.write_text("# watchlist\nAAPL.US\nko.us  # beverages\n\nAAPL.US\n")
    assert UniverseManager().get_universe(str(path)) == ["AAPL.US", "KO.US"]


def test_unknown_universe():
    with pytest.raises(ConfigError):
        UniverseManager().get_universe("nope")
