"""
Configuration management for the equity screener.
"""

import os
import re
import threading
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DataPathsConfig(BaseModel):
    """Data paths configuration."""

    base_dir: str = Field(default_factory=lambda: str(Path.home() / ".equity-screener"))
    cache_dir: str = ""
    db_path: str = ""
    logs_dir: str = ""

    def model_post_init(self, __context: Any) -> None:
        """Set derived paths after initialization."""
        if not self.cache_dir:
            self.cache_dir = str(Path(self.base_dir) / "cache")
        if not self.db_path:
            self.db_path = str(Path(self.base_dir) / "screener.db")
        if not self.logs_dir:
            self.logs_dir = str(Path(self.base_dir) / "logs")


class DataConfig(BaseModel):
    """Data configuration."""

    paths: DataPathsConfig = Field(default_factory=DataPathsConfig)


class ProviderConfig(BaseModel):
    """End-of-day market data provider configuration."""

    base_url: str = "https://eodhd.com/api"
    api_token: Optional[str] = None
    timeout_seconds: float = 10.0
    cache_ttl_hours: float = 24.0
    response_format: str = "json"


class CacheConfig(BaseModel):
    """Provider response cache configuration."""

    max_memory_items: int = 1000
    enable_disk_cache: bool = True


class ValuationConfig(BaseModel):
    """Valuation model configuration."""

    reference_yield: float = 4.4
    bond_yield: float = 4.4
    default_growth_rate: float = 0.05
    growth_years: int = 5
    min_history_days: int = 200
    history_lookback_days: int = 400
    sma_short: int = 50
    sma_long: int = 200


DEFAULT_PRESETS = {
    "value": '[["pe_ratio","<",15],["roe",">",0.15]]',
    "dividend": '[["dividend_yield",">",0.03],["dividend_growth_5y",">",0.05]]',
    "undervalued": '[["margin_of_safety",">",0.20],["intrinsic_vs_price",">",1.0]]',
    "growth": '[["roe",">",0.20],["earnings_outlook","=","positive"]]',
    "bargain": '[["pe_ratio","<",10],["price_vs_sma200","<",1.0]]',
}


class ScreenerConfig(BaseModel):
    """Screening engine configuration."""

    default_sort: str = "pe_ratio.asc"
    default_limit: int = 50
    max_limit: int = 1000
    presets: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PRESETS))


class UpdateConfig(BaseModel):
    """Nightly refresh configuration."""

    universe: str = "default"
    universes: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "default": ["AAPL.US", "MSFT.US", "GOOGL.US", "KO.US", "JNJ.US", "PFE.US"],
        }
    )
    skip_weekends: bool = True
    max_workers: int = 1


class ConsoleLoggingConfig(BaseModel):
    """Console logging configuration."""

    enabled: bool = True
    level: str = "INFO"
    format: str = "simple"
    colors: bool = True


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    level: str = "DEBUG"
    path: str = ""
    max_size_mb: int = 100
    backup_count: int = 5


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    console: ConsoleLoggingConfig = Field(default_factory=ConsoleLoggingConfig)
    file: FileLoggingConfig = Field(default_factory=FileLoggingConfig)
    components: dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseSettings):
    """Main application configuration."""

    version: str = "1.0"
    data: DataConfig = Field(default_factory=DataConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    valuation: ValuationConfig = Field(default_factory=ValuationConfig)
    screener: ScreenerConfig = Field(default_factory=ScreenerConfig)
    update: UpdateConfig = Field(default_factory=UpdateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        env_prefix = "EQUITY_SCREENER_"
        env_nested_delimiter = "__"


class ConfigLoader:
    """
    Load and merge configuration from multiple sources.

    Precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Default values
    """

    ENV_PREFIX = "EQUITY_SCREENER_"
    DEFAULT_CONFIG_PATHS = [
        Path("screener.yaml"),
        Path("screener.yml"),
        Path.home() / ".equity-screener" / "config.yaml",
    ]

    def __init__(
        self,
        config_path: Optional[Path] = None,
        cli_overrides: Optional[dict[str, Any]] = None,
    ):
        self.config_path = config_path
        self.cli_overrides = cli_overrides or {}

    def load(self) -> AppConfig:
        """Load and merge configuration from all sources."""
        file_config = self._load_file_config()
        file_config = self._resolve_variables(file_config)
        merged = self._merge(file_config, self.cli_overrides)

        return AppConfig(**merged) if merged else AppConfig()

    def _load_file_config(self) -> dict[str, Any]:
        """Load configuration from file."""
        config_path = self.config_path

        if config_path is None:
            for path in self.DEFAULT_CONFIG_PATHS:
                if path.exists():
                    config_path = path
                    break

        if config_path is None or not config_path.exists():
            return {}

        with open(config_path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge(self, base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
        """Deep-merge overrides into base."""
        result = dict(base)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def _resolve_variables(
        self, config: dict[str, Any], root: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """Resolve ${variable} references in config."""
        if root is None:
            root = config

        result = {}

        for key, value in config.items():
            if isinstance(value, dict):
                result[key] = self._resolve_variables(value, root)
            elif isinstance(value, str):
                result[key] = self._resolve_string(value, root)
            elif isinstance(value, list):
                result[key] = [
                    self._resolve_string(v, root) if isinstance(v, str) else v for v in value
                ]
            else:
                result[key] = value

        return result

    def _resolve_string(self, value: str, root: dict[str, Any]) -> str:
        """Resolve variables in a string."""

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)

            if var_name in os.environ:
                return os.environ[var_name]

            if var_name == "HOME":
                return str(Path.home())

            # Config reference (e.g., data.paths.base_dir)
            parts = var_name.split(".")
            current: Any = root
            for part in parts:
                if isinstance(current, dict) and part in current:
                    current = current[part]
                else:
                    return match.group(0)

            return str(current) if not isinstance(current, dict) else match.group(0)

        return re.sub(r"\$\{([^}]+)\}", replace_var, value)


class Config:
    """
    Process-wide configuration accessor used by the CLI entry point.

    Library components take an AppConfig at construction instead.
    """

    _instance: Optional["Config"] = None
    _lock = threading.Lock()
    _config: Optional[AppConfig] = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def initialize(cls, config: AppConfig) -> None:
        """Initialize configuration."""
        cls._config = config

    @classmethod
    def get_config(cls) -> AppConfig:
        """Get the full configuration object."""
        if cls._config is None:
            cls._config = ConfigLoader().load()
        return cls._config

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Example: Config.get('valuation.bond_yield')
        """
        config = cls.get_config()

        parts = key.split(".")
        current: Any = config

        for part in parts:
            if hasattr(current, part):
                current = getattr(current, part)
            elif isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current


def get_config(key: Optional[str] = None, default: Any = None) -> Any:
    """
    Get configuration value.

    If key is None, returns the full config object.
    """
    if key is None:
        return Config.get_config()
    return Config.get(key, default)
