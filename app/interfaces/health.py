"""
Liveness endpoint.

Answers from process state alone, so it stays green while PostgreSQL
is down; ledger and trending routes report that outage as 503.
"""

from fastapi import APIRouter

from app.core.config import settings
from app.interfaces.trading.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Reports that the TradeDeck process is serving requests.",
)
def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.version)
