"""
Adapter: Market snapshot repository.

Implements MarketSnapshotRepository port.
Reads the latest card prices from the cards table, which is kept
up to date by an external price ingester.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.domain.trading.entities import MarketSnapshot, Platform, TrendWindow
from app.domain.trading.ports import MarketSnapshotRepository
from app.infrastructure.trading.trade_ledger_repository import translate_db_errors

logger = logging.getLogger(__name__)

WINDOW_COLUMNS = {
    TrendWindow.H6: "price_6h_ago",
    TrendWindow.H12: "price_12h_ago",
    TrendWindow.H24: "price_24h_ago",
}

SNAPSHOT_COLUMNS = (
    "card_id, name, rating, position, club, league, nation, card_type, platform, "
    "current_price, price_6h_ago, price_12h_ago, price_24h_ago, price_7d_ago, "
    "price_30d_ago, volume, updated_at"
)


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _platform(value: Optional[str]) -> Optional[Platform]:
    try:
        return Platform(value) if value else None
    except ValueError:
        logger.warning("Unknown platform in cards table: %s", value)
        return None


def _row_to_snapshot(row: Any) -> MarketSnapshot:
    return MarketSnapshot(
        item_id=str(row["card_id"]),
        name=row["name"],
        rating=row["rating"],
        position=row["position"],
        club=row["club"],
        league=row["league"],
        nation=row["nation"],
        card_type=row["card_type"],
        platform=_platform(row["platform"]),
        current_price=_decimal(row["current_price"]),
        price_6h_ago=_decimal(row["price_6h_ago"]),
        price_12h_ago=_decimal(row["price_12h_ago"]),
        price_24h_ago=_decimal(row["price_24h_ago"]),
        price_7d_ago=_decimal(row["price_7d_ago"]),
        price_30d_ago=_decimal(row["price_30d_ago"]),
        volume=row["volume"],
        timestamp=row["updated_at"],
    )


class SqlMarketSnapshotRepository(MarketSnapshotRepository):
    """PostgreSQL implementation of the snapshot repository."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_eligible(self, window: TrendWindow) -> list[MarketSnapshot]:
        """Return cards priced now and at the start of ``window``.

        Args:
            window: Lookback window selecting the reference column.

        Returns:
            Snapshots ordered by card id.
        """
        reference = WINDOW_COLUMNS[window]
        query = text(
            f"SELECT {SNAPSHOT_COLUMNS} FROM cards "
            f"WHERE current_price IS NOT NULL AND {reference} > 0 "
            "ORDER BY card_id"
        )
        with translate_db_errors("list_snapshots"):
            async with self._engine.connect() as conn:
                result = await conn.execute(query)
                rows = result.mappings().all()

        logger.debug("Loaded %d snapshots for window=%s", len(rows), window.value)
        return [_row_to_snapshot(row) for row in rows]
