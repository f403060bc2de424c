"""
Ticker universe resolution for the nightly refresh.
"""

from pathlib import Path
from typing import Optional

from equity_screener.core.config import UpdateConfig
from equity_screener.core.exceptions import ConfigError
from equity_screener.core.logging import get_logger

logger = get_logger("data.universe")


class UniverseManager:
    """
    Resolve named ticker universes.

    Names are looked up in custom registrations first, then in the
    `update.universes` configuration. A path to an existing text file
    (one ticker per line, '#' comments) is also accepted as a name.
    """

    def __init__(self, config: Optional[UpdateConfig] = None):
        self.config = config or UpdateConfig()
        self._custom_universes: dict[str, list[str]] = {}

    def register(self, name: str, tickers: list[str]) -> None:
        """Register a custom universe."""
        self._custom_universes[name] = self._clean(tickers)

    def get_universe(self, name: Optional[str] = None) -> list[str]:
        """Return the tickers of a universe, de-duplicated in order."""
        name = name or self.config.universe

        if name in self._custom_universes:
            return list(self._custom_universes[name])

        if name in self.config.universes:
            return self._clean(self.config.universes[name])

        path = Path(name)
        if path.is_file():
            return self.load_file(path)

        raise ConfigError(f"Unknown universe: {name}", key="update.universe")

    def load_file(self, path: Path) -> list[str]:
        """Load tickers from a text file."""
        lines = Path(path).read_text(encoding="utf-8").splitlines()
        tickers = [line.split("#", 1)[0].strip() for line in lines]
        cleaned = self._clean(tickers)
        logger.info(f"Loaded {len(cleaned)} tickers from {path}")
        return cleaned

    def list_universes(self) -> list[str]:
        return sorted(set(self.config.universes) | set(self._custom_universes))

    @staticmethod
    def _clean(tickers: list[str]) -> list[str]:
        seen: set[str] = set()
        cleaned = []
        for ticker in tickers:
            ticker = ticker.strip().upper()
            if ticker and ticker not in seen:
                seen.add(ticker)
                cleaned.append(ticker)
        return cleaned
