"""
Exception hierarchy for the equity screener.
"""

from typing import Any, Optional


class ScreenerError(Exception):
    """Base exception for all equity screener errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        recoverable: bool = False,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "recoverable": self.recoverable,
            "details": self.details,
        }


class ValidationError(ScreenerError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: str = "VALIDATION_ERROR",
        **kwargs: Any,
    ):
        full_message = f"Validation error" + (f" for '{field}'" if field else "") + f": {message}"
        super().__init__(full_message, code=code, **kwargs)
        self.field = field


class FilterParseError(ValidationError):
    """Filter JSON could not be parsed into conditions."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, code="INVALID_FILTER", **kwargs)


class UnmappedFieldError(ValidationError):
    """Filter field is not known to the field catalog."""

    def __init__(self, field: str, **kwargs: Any):
        super().__init__("field is not filterable", field=field, code="UNMAPPED_FIELD", **kwargs)


class ComputedFieldError(ValidationError):
    """Computed field used with an unsupported operator/value pair."""

    def __init__(self, field: str, operator: str, value: Any, **kwargs: Any):
        super().__init__(
            f"unsupported usage '{operator} {value!r}'",
            field=field,
            code="INVALID_COMPUTED_FIELD",
            **kwargs,
        )
        self.operator = operator
        self.value = value


class PaginationError(ValidationError):
    """Page or limit out of range."""

    def __init__(self, message: str, field: str, **kwargs: Any):
        super().__init__(message, field=field, code=f"INVALID_{field.upper()}", **kwargs)


class ValuationError(ScreenerError):
    """Valuation metric could not be computed."""

    def __init__(self, metric: str, message: str, code: str = "VALUATION_ERROR", **kwargs: Any):
        full_message = f"Metric '{metric}': {message}"
        super().__init__(full_message, code=code, **kwargs)
        self.metric = metric


class InsufficientDataError(ValuationError):
    """Not enough observations for the requested window."""

    def __init__(self, metric: str, required: int, available: int, **kwargs: Any):
        super().__init__(
            metric,
            f"insufficient data ({available} points, {required} required)",
            code="INSUFFICIENT_DATA",
            **kwargs,
        )
        self.required = required
        self.available = available


class DivisionByZeroError(ValuationError):
    """Denominator of a ratio is zero."""

    def __init__(self, metric: str, denominator: str, **kwargs: Any):
        super().__init__(metric, f"{denominator} cannot be zero", code="DIVISION_BY_ZERO", **kwargs)
        self.denominator = denominator


class InvalidValuationInputError(ValuationError):
    """Inputs fall outside the domain of a valuation model."""

    def __init__(self, metric: str, message: str, **kwargs: Any):
        super().__init__(metric, message, code="INVALID_INPUT", **kwargs)


class DataError(ScreenerError):
    """Data loading or validation error."""

    pass


class DataNotFoundError(DataError):
    """Requested data does not exist."""

    def __init__(self, ticker: str, data_type: str = "price", **kwargs: Any):
        message = f"No {data_type} data found for {ticker}"
        super().__init__(message, code="DATA_NOT_FOUND", **kwargs)
        self.ticker = ticker
        self.data_type = data_type


class ProviderError(DataError):
    """Market data provider request failed."""

    def __init__(
        self,
        endpoint: str,
        message: str,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ):
        full_message = f"Provider request '{endpoint}' failed"
        if status_code is not None:
            full_message += f" ({status_code})"
        full_message += f": {message}"
        super().__init__(full_message, code="PROVIDER_ERROR", recoverable=True, **kwargs)
        self.endpoint = endpoint
        self.status_code = status_code


class CacheError(DataError):
    """Cache read or write failed."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, code="CACHE_ERROR", recoverable=True, **kwargs)


class StoreError(ScreenerError):
    """Persisted store query or write failed."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, code="STORE_ERROR", **kwargs)


class ConfigError(ScreenerError):
    """Configuration error."""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs: Any):
        full_message = f"Configuration error" + (f" for '{key}'" if key else "") + f": {message}"
        super().__init__(full_message, code="CONFIG_ERROR", **kwargs)
        self.key = key


class PipelineError(ScreenerError):
    """Pipeline execution error."""

    def __init__(
        self,
        message: str,
        stage: str,
        ticker: Optional[str] = None,
        **kwargs: Any,
    ):
        full_message = f"Pipeline error at {stage}"
        if ticker:
            full_message += f" for {ticker}"
        full_message += f": {message}"
        super().__init__(full_message, code="PIPELINE_ERROR", **kwargs)
        self.stage = stage
        self.ticker = ticker
