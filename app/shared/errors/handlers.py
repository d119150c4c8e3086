"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.trading.errors import (
    InvalidQueryError,
    InvalidTradeError,
    TradeNotFoundError,
    TradingDomainError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

HTTP_404 = 404
HTTP_422 = 422
HTTP_500 = 500
HTTP_503 = 503


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(InvalidTradeError)
    async def handle_invalid_trade(
        _request: Request, exc: InvalidTradeError
    ) -> JSONResponse:
        """Handle rejected trade input."""
        logger.warning("Invalid trade field: %s", exc.field)
        return _error_response(HTTP_422, "Invalid trade", exc.message)

    @app.exception_handler(InvalidQueryError)
    async def handle_invalid_query(
        _request: Request, exc: InvalidQueryError
    ) -> JSONResponse:
        """Handle rejected query parameters."""
        logger.warning("Invalid query parameter: %s", exc.parameter)
        return _error_response(HTTP_422, "Invalid query", exc.message)

    @app.exception_handler(TradeNotFoundError)
    async def handle_trade_not_found(
        _request: Request, exc: TradeNotFoundError
    ) -> JSONResponse:
        """Handle missing trade errors."""
        logger.warning("Trade not found: %s", exc.trade_id)
        return _error_response(HTTP_404, "Trade not found")

    @app.exception_handler(UpstreamUnavailableError)
    async def handle_upstream_unavailable(
        _request: Request, exc: UpstreamUnavailableError
    ) -> JSONResponse:
        """Handle store outages."""
        logger.error("Upstream unavailable during %s", exc.operation)
        return _error_response(HTTP_503, "Service temporarily unavailable")

    @app.exception_handler(TradingDomainError)
    async def handle_trading_domain(
        _request: Request, exc: TradingDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled trading domain errors."""
        logger.error("Unhandled trading domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
