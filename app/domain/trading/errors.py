"""
Domain-specific errors for the trading bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class TradingDomainError(Exception):
    """Base error for all trading domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidTradeError(TradingDomainError):
    """Raised when trade input is missing or out of range."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid trade field '{field}': {reason}")
        self.field = field
        self.reason = reason


class InvalidQueryError(TradingDomainError):
    """Raised when an analytics or market query parameter is invalid."""

    def __init__(self, parameter: str, reason: str) -> None:
        super().__init__(f"Invalid parameter '{parameter}': {reason}")
        self.parameter = parameter
        self.reason = reason


class TradeNotFoundError(TradingDomainError):
    """Raised when a trade does not exist for the requesting owner."""

    def __init__(self, trade_id: str) -> None:
        super().__init__(f"Trade not found: {trade_id}")
        self.trade_id = trade_id


class UpstreamUnavailableError(TradingDomainError):
    """Raised when the ledger or snapshot store cannot be reached."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Upstream store unavailable during {operation}")
        self.operation = operation
