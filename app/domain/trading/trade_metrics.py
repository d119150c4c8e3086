"""
Domain service: Per-trade financial metrics.

Pure functions turning a trade's prices and quantity into
profit, marketplace tax and ROI. No state, no IO.

    gross  = (sell - buy) * quantity
    tax    = sell * TAX_RATE * quantity      (levied on the sell side only)
    profit = gross - tax
    roi    = profit / (buy * quantity) * 100

Values are rounded to cents only when returned. Prices are bounded by
MAX_PRICE and quantities by MAX_QUANTITY so every result fits the
default decimal context.
"""

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from app.domain.trading.entities import TradeDraft, TradeMetrics, TradeStatus
from app.domain.trading.errors import InvalidTradeError

TAX_RATE = Decimal("0.05")
CENT = Decimal("0.01")
ZERO = Decimal("0")
MAX_PRICE = Decimal("1000000000000")
MAX_QUANTITY = 1_000_000

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric input to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_trade_metrics(
    buy_price: Number,
    sell_price: Optional[Number],
    quantity: int = 1,
    tax_rate: Decimal = TAX_RATE,
) -> TradeMetrics:
    """Compute profit, tax and ROI for one trade.

    Args:
        buy_price: Unit purchase price.
        sell_price: Unit sale price, or None while the trade is open.
        quantity: Number of units traded.
        tax_rate: Marketplace levy on sale proceeds.

    Returns:
        TradeMetrics with all fields None for open trades, all set otherwise.
        A zero cost basis yields an ROI of 0 rather than an error.

    Raises:
        InvalidTradeError: When a result cannot be represented in cents.
    """
    if sell_price is None:
        return TradeMetrics()

    buy = to_decimal(buy_price)
    sell = to_decimal(sell_price)

    gross = (sell - buy) * quantity
    tax = sell * tax_rate * quantity
    profit = gross - tax
    cost_basis = buy * quantity
    roi = profit / cost_basis * 100 if cost_basis != ZERO else ZERO

    try:
        return TradeMetrics(
            profit=round_cents(profit),
            tax=round_cents(tax),
            roi=round_cents(roi),
        )
    except InvalidOperation as exc:
        raise InvalidTradeError("metrics", "out of representable range") from exc


def validate_trade_inputs(
    subject_name: Optional[str],
    buy_price: Optional[Number],
    sell_price: Optional[Number],
    quantity: Optional[int],
) -> None:
    """Reject inputs the calculator cannot price.

    Raises:
        InvalidTradeError: On an empty subject name, a missing,
            non-finite or out-of-range price, or a quantity outside
            1..MAX_QUANTITY.
    """
    if not subject_name or not subject_name.strip():
        raise InvalidTradeError("subject_name", "is required")
    if buy_price is None:
        raise InvalidTradeError("buy_price", "is required")
    buy = _checked_price("buy_price", buy_price)
    if buy <= ZERO:
        raise InvalidTradeError("buy_price", "must be greater than 0")
    if sell_price is not None and _checked_price("sell_price", sell_price) < ZERO:
        raise InvalidTradeError("sell_price", "must not be negative")
    if quantity is None or quantity < 1:
        raise InvalidTradeError("quantity", "must be at least 1")
    if quantity > MAX_QUANTITY:
        raise InvalidTradeError("quantity", f"must be at most {MAX_QUANTITY}")


def _checked_price(field: str, value: Number) -> Decimal:
    try:
        price = to_decimal(value)
    except InvalidOperation as exc:
        raise InvalidTradeError(field, "must be a number") from exc
    if not price.is_finite():
        raise InvalidTradeError(field, "must be a finite number")
    if price > MAX_PRICE:
        raise InvalidTradeError(field, f"must be at most {MAX_PRICE}")
    return price


def resolve_status(
    sell_price: Optional[Number], explicit: Optional[TradeStatus] = None
) -> TradeStatus:
    """CLOSED iff a sell price is present, unless explicitly overridden."""
    if explicit is not None:
        return explicit
    return TradeStatus.CLOSED if sell_price is not None else TradeStatus.ACTIVE


def apply_trade_metrics(draft: TradeDraft, tax_rate: Decimal = TAX_RATE) -> TradeDraft:
    """Return ``draft`` with its derived fields recomputed.

    This is the only place derived fields are written. Every create,
    update and import path goes through it.
    """
    metrics = compute_trade_metrics(
        draft.buy_price, draft.sell_price, draft.quantity, tax_rate
    )
    return replace(draft, profit=metrics.profit, tax=metrics.tax, roi=metrics.roi)
