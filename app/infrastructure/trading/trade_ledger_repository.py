"""
Adapter: Trade ledger.

Implements TradeLedger port.
Reads and writes the trades table through an async SQLAlchemy engine.
Derived fields are stored exactly as computed by the domain.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, Optional
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.domain.trading.entities import (
    PageRequest,
    Platform,
    Trade,
    TradeDraft,
    TradeFilters,
    TradePage,
    TradeSort,
    TradeStatus,
)
from app.domain.trading.errors import TradeNotFoundError, UpstreamUnavailableError
from app.domain.trading.ports import TradeLedger

logger = logging.getLogger(__name__)

TRADE_COLUMNS = (
    "id, owner_id, subject_name, subject_version, subject_rating, platform, "
    "buy_price, sell_price, quantity, profit, tax, roi, status, tag, notes, "
    "trade_date, created_at"
)

# Whitelist: sort fields are interpolated into SQL
SORT_COLUMNS = {
    "trade_date": "trade_date",
    "created_at": "created_at",
    "subject_name": "subject_name",
    "buy_price": "buy_price",
    "sell_price": "sell_price",
    "quantity": "quantity",
    "profit": "profit",
    "roi": "roi",
}


@contextmanager
def translate_db_errors(operation: str) -> Iterator[None]:
    """Re-raise driver/SQLAlchemy failures as UpstreamUnavailableError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store operation %s failed: %s", operation, type(exc).__name__)
        raise UpstreamUnavailableError(operation) from exc


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _row_to_trade(row: Any) -> Trade:
    return Trade(
        id=row["id"] if isinstance(row["id"], UUID) else UUID(str(row["id"])),
        owner_id=row["owner_id"],
        subject_name=row["subject_name"],
        subject_version=row["subject_version"],
        subject_rating=row["subject_rating"],
        platform=Platform(row["platform"]),
        buy_price=_decimal(row["buy_price"]),
        sell_price=_decimal(row["sell_price"]),
        quantity=row["quantity"],
        profit=_decimal(row["profit"]),
        tax=_decimal(row["tax"]),
        roi=_decimal(row["roi"]),
        status=TradeStatus(row["status"]),
        tag=row["tag"],
        notes=row["notes"],
        trade_date=row["trade_date"],
        created_at=row["created_at"],
    )


def _draft_params(draft: TradeDraft) -> dict[str, Any]:
    return {
        "subject_name": draft.subject_name,
        "subject_version": draft.subject_version,
        "subject_rating": draft.subject_rating,
        "platform": draft.platform.value,
        "buy_price": draft.buy_price,
        "sell_price": draft.sell_price,
        "quantity": draft.quantity,
        "profit": draft.profit,
        "tax": draft.tax,
        "roi": draft.roi,
        "status": draft.status.value,
        "tag": draft.tag,
        "notes": draft.notes,
        "trade_date": draft.trade_date or datetime.now(timezone.utc),
    }


class SqlTradeLedger(TradeLedger):
    """PostgreSQL implementation of the trade ledger."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_by_owner(
        self,
        owner_id: str,
        filters: TradeFilters,
        sort: TradeSort,
        page: Optional[PageRequest] = None,
    ) -> TradePage:
        """Return the owner's trades matching ``filters``.

        Equal sort keys fall back to insertion order so repeated reads of
        an unchanged ledger return trades in the same order.
        """
        clauses = ["owner_id = :owner_id"]
        params: dict[str, Any] = {"owner_id": owner_id}
        if filters.tag is not None:
            clauses.append("tag = :tag")
            params["tag"] = filters.tag
        if filters.platform is not None:
            clauses.append("platform = :platform")
            params["platform"] = filters.platform.value
        if filters.status is not None:
            clauses.append("status = :status")
            params["status"] = filters.status.value
        where = " AND ".join(clauses)

        column = SORT_COLUMNS.get(sort.field, "trade_date")
        direction = "DESC" if sort.descending else "ASC"
        query = (
            f"SELECT {TRADE_COLUMNS} FROM trades WHERE {where} "
            f"ORDER BY {column} {direction} NULLS LAST, created_at ASC, id ASC"
        )
        if page is not None:
            query += " LIMIT :limit OFFSET :offset"
            params["limit"] = page.limit
            params["offset"] = page.offset

        with translate_db_errors("list_trades"):
            async with self._engine.connect() as conn:
                result = await conn.execute(text(query), params)
                rows = result.mappings().all()
                if page is None:
                    total = len(rows)
                else:
                    count = await conn.execute(
                        text(f"SELECT COUNT(*) FROM trades WHERE {where}"), params
                    )
                    total = count.scalar_one()

        return TradePage(
            trades=[_row_to_trade(row) for row in rows],
            total=total,
            limit=page.limit if page is not None else total,
            offset=page.offset if page is not None else 0,
        )

    async def get(self, trade_id: UUID, owner_id: str) -> Optional[Trade]:
        query = text(
            f"SELECT {TRADE_COLUMNS} FROM trades "
            "WHERE id = :id AND owner_id = :owner_id"
        )
        with translate_db_errors("get_trade"):
            async with self._engine.connect() as conn:
                result = await conn.execute(
                    query, {"id": trade_id, "owner_id": owner_id}
                )
                row = result.mappings().first()
        return _row_to_trade(row) if row is not None else None

    async def create(self, owner_id: str, draft: TradeDraft) -> Trade:
        query = text(
            f"""
            INSERT INTO trades ({TRADE_COLUMNS})
            VALUES (
                :id, :owner_id, :subject_name, :subject_version, :subject_rating,
                :platform, :buy_price, :sell_price, :quantity, :profit, :tax, :roi,
                :status, :tag, :notes, :trade_date, :created_at
            )
            RETURNING {TRADE_COLUMNS}
            """
        )
        params = _draft_params(draft)
        params.update(
            id=uuid4(), owner_id=owner_id, created_at=datetime.now(timezone.utc)
        )
        with translate_db_errors("create_trade"):
            async with self._engine.begin() as conn:
                result = await conn.execute(query, params)
                row = result.mappings().one()
        logger.debug("Inserted trade id=%s", row["id"])
        return _row_to_trade(row)

    async def update(self, trade_id: UUID, owner_id: str, draft: TradeDraft) -> Trade:
        query = text(
            f"""
            UPDATE trades SET
                subject_name = :subject_name,
                subject_version = :subject_version,
                subject_rating = :subject_rating,
                platform = :platform,
                buy_price = :buy_price,
                sell_price = :sell_price,
                quantity = :quantity,
                profit = :profit,
                tax = :tax,
                roi = :roi,
                status = :status,
                tag = :tag,
                notes = :notes,
                trade_date = :trade_date
            WHERE id = :id AND owner_id = :owner_id
            RETURNING {TRADE_COLUMNS}
            """
        )
        params = _draft_params(draft)
        params.update(id=trade_id, owner_id=owner_id)
        with translate_db_errors("update_trade"):
            async with self._engine.begin() as conn:
                result = await conn.execute(query, params)
                row = result.mappings().first()
        if row is None:
            raise TradeNotFoundError(str(trade_id))
        return _row_to_trade(row)

    async def delete(self, trade_id: UUID, owner_id: str) -> None:
        query = text(
            "DELETE FROM trades WHERE id = :id AND owner_id = :owner_id RETURNING id"
        )
        with translate_db_errors("delete_trade"):
            async with self._engine.begin() as conn:
                result = await conn.execute(
                    query, {"id": trade_id, "owner_id": owner_id}
                )
                deleted = result.first()
        if deleted is None:
            raise TradeNotFoundError(str(trade_id))
