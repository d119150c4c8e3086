"""
Tabular (CSV) codec for trade import and export.

Exported derived columns (profit, tax, roi) are informational only: the
parser ignores them, and imported rows are priced again through the same
path as a single create.
"""

import io
import logging
from datetime import datetime, timezone
from typing import Optional

import pandas as pd

from app.application.trading.dtos import TradeInput
from app.domain.trading.entities import Platform, Trade, TradeStatus
from app.domain.trading.errors import InvalidQueryError, InvalidTradeError
from app.domain.trading.trade_metrics import to_decimal

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "subjectName",
    "subjectVersion",
    "rating",
    "platform",
    "buyPrice",
    "sellPrice",
    "quantity",
    "profit",
    "tax",
    "roi",
    "tag",
    "notes",
    "status",
    "tradeDate",
]

# Column names used by older exports
COLUMN_ALIASES = {
    "playerName": "subjectName",
    "cardVersion": "subjectVersion",
    "eaTax": "tax",
}

REQUIRED_COLUMNS = ("subjectName", "buyPrice")


def trades_to_csv(trades: list[Trade]) -> str:
    """Serialize trades to CSV text with a header row."""
    rows = [
        {
            "subjectName": t.subject_name,
            "subjectVersion": t.subject_version,
            "rating": t.subject_rating,
            "platform": t.platform.value,
            "buyPrice": t.buy_price,
            "sellPrice": t.sell_price,
            "quantity": t.quantity,
            "profit": t.profit,
            "tax": t.tax,
            "roi": t.roi,
            "tag": t.tag,
            "notes": t.notes,
            "status": t.status.value,
            "tradeDate": t.trade_date.isoformat(),
        }
        for t in trades
    ]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False)


def _blank_to_none(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


def _parse_row(line: int, row: dict) -> TradeInput:
    def field(name: str) -> Optional[str]:
        return _blank_to_none(row.get(name, ""))

    try:
        buy_price = field("buyPrice")
        sell_price = field("sellPrice")
        quantity = field("quantity")
        rating = field("rating")
        platform = field("platform")
        status = field("status")
        trade_date = field("tradeDate")

        parsed_date = None
        if trade_date is not None:
            parsed_date = pd.Timestamp(trade_date).to_pydatetime()
            if parsed_date.tzinfo is None:
                parsed_date = parsed_date.replace(tzinfo=timezone.utc)

        return TradeInput(
            subject_name=field("subjectName") or "",
            buy_price=to_decimal(buy_price) if buy_price is not None else None,
            sell_price=to_decimal(sell_price) if sell_price is not None else None,
            quantity=int(quantity) if quantity is not None else 1,
            subject_version=field("subjectVersion"),
            subject_rating=int(float(rating)) if rating is not None else None,
            platform=Platform(platform.upper()) if platform else Platform.PS,
            status=TradeStatus(status.upper()) if status else None,
            trade_date=parsed_date,
            tag=field("tag"),
            notes=field("notes"),
        )
    except (ValueError, ArithmeticError) as exc:
        raise InvalidTradeError(f"row {line}", str(exc)) from exc


def parse_trade_csv(csv_text: str) -> list[TradeInput]:
    """Parse CSV text into raw trade inputs.

    Args:
        csv_text: CSV with a header row; see EXPORT_COLUMNS.

    Returns:
        One TradeInput per non-empty data row, in file order.

    Raises:
        InvalidQueryError: If the text is empty or lacks required columns.
        InvalidTradeError: If a row holds unparsable values.
    """
    try:
        df = pd.read_csv(
            io.StringIO(csv_text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise InvalidQueryError("csv", "no data") from exc
    except pd.errors.ParserError as exc:
        raise InvalidQueryError("csv", "malformed CSV") from exc

    df = df.rename(columns=lambda c: COLUMN_ALIASES.get(c.strip(), c.strip()))
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidQueryError("csv", f"missing columns: {', '.join(missing)}")

    records = df.to_dict(orient="records")
    # Header is line 1
    trades = [_parse_row(index + 2, record) for index, record in enumerate(records)]
    logger.debug("Parsed %d trade rows from CSV", len(trades))
    return trades


def export_timestamp() -> str:
    """UTC timestamp suffix for export file names."""
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
