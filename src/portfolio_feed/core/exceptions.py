"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class HoldingsSourceError(AppError):
    """Raised when the holdings source cannot be read at all."""

    def __init__(self, message: str):
        super().__init__(message, code="HOLDINGS_SOURCE_UNAVAILABLE")


class RecordParseError(AppError):
    """Raised for a single malformed holdings record; the record is skipped."""

    def __init__(self, row_num: int, reason: str):
        self.row_num = row_num
        super().__init__(f"Row {row_num}: {reason}", code="RECORD_PARSE_ERROR")


class ProviderError(AppError):
    """Base for quote provider failures. Never escapes the provider chain."""

    def __init__(self, provider_id: str, symbol: str, message: str, code: str = "PROVIDER_ERROR"):
        self.provider_id = provider_id
        self.symbol = symbol
        super().__init__(f"{provider_id} [{symbol}]: {message}", code=code)


class ProviderTimeout(ProviderError):
    """Raised when a provider does not answer within its timeout."""

    def __init__(self, provider_id: str, symbol: str, timeout: float):
        super().__init__(
            provider_id,
            symbol,
            f"no response within {timeout:g}s",
            code="PROVIDER_TIMEOUT",
        )


class ProviderNoData(ProviderError):
    """Raised when a provider answers without a usable price or match."""

    def __init__(self, provider_id: str, symbol: str, reason: str = "no data"):
        super().__init__(provider_id, symbol, reason, code="PROVIDER_NO_DATA")
