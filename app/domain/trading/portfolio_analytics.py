"""
Domain service: Portfolio performance analytics.

Pure business logic over an already-fetched slice of one owner's ledger.
No framework imports. No IO. No side effects.

Computes:
    - Totals (realized profit, completed and active trade counts)
    - Win rate and average ROI
    - Return-to-volatility ratio (mean ROI / population std-dev of ROI).
      No risk-free rate and no annualization, so it is not a textbook Sharpe.
    - Maximum drawdown of cumulative realized profit over the
      date-ordered sequence of completed trades. Open trades are ignored.
    - Most traded card names

Degenerate inputs (no completed trades, zero dispersion) yield zeros,
never NaN, infinity or an exception.
"""

from collections import Counter
from decimal import Decimal
from typing import Optional

from app.domain.trading.entities import (
    AnalyticsResult,
    BestTrade,
    PopularSubject,
    Trade,
    TradeStatus,
)
from app.domain.trading.trade_metrics import ZERO, round_cents

DEFAULT_POPULAR_LIMIT = 5


class PortfolioAnalyticsService:
    """Aggregates a trade ledger snapshot into an AnalyticsResult.

    Output depends only on the values and order of the input trades,
    so repeated calls on the same input are identical.
    """

    def __init__(self, popular_limit: int = DEFAULT_POPULAR_LIMIT) -> None:
        self._popular_limit = popular_limit

    def aggregate(self, trades: list[Trade]) -> AnalyticsResult:
        """Compute portfolio statistics for one owner's trades.

        Args:
            trades: Every trade of the owner, in ledger order.

        Returns:
            The aggregate result, rounded to two decimals.
        """
        completed = [t for t in trades if t.is_completed]
        active = sum(1 for t in trades if t.status is TradeStatus.ACTIVE)

        if not completed:
            return AnalyticsResult(active_trades=active)

        profits = [_profit(t) for t in completed]
        rois = [t.roi if t.roi is not None else ZERO for t in completed]
        total_trades = len(completed)

        wins = sum(1 for p in profits if p > ZERO)
        win_rate = Decimal(wins) / total_trades * 100
        avg_roi = sum(rois, ZERO) / total_trades

        return AnalyticsResult(
            total_profit=round_cents(sum(profits, ZERO)),
            total_trades=total_trades,
            active_trades=active,
            win_rate=round_cents(win_rate),
            avg_roi=round_cents(avg_roi),
            sharpe_ratio=round_cents(return_to_volatility(rois, avg_roi)),
            max_drawdown=round_cents(max_drawdown(completed)),
            best_trade=best_trade(completed),
            popular_subjects=self.popular_subjects(completed),
        )

    def popular_subjects(self, completed: list[Trade]) -> list[PopularSubject]:
        """Top card names by completed trade count.

        Ties keep first-encounter order.
        """
        counts = Counter(t.subject_name for t in completed)
        ranked = sorted(counts.items(), key=lambda item: -item[1])
        return [
            PopularSubject(name=name, count=count)
            for name, count in ranked[: self._popular_limit]
        ]


def _profit(trade: Trade) -> Decimal:
    return trade.profit if trade.profit is not None else ZERO


def return_to_volatility(rois: list[Decimal], avg_roi: Decimal) -> Decimal:
    """Mean ROI divided by the population standard deviation of ROI.

    Returns 0 for an empty list or when every ROI is identical.
    """
    if not rois:
        return ZERO
    variance = sum(((r - avg_roi) ** 2 for r in rois), ZERO) / len(rois)
    std_dev = variance.sqrt()
    if std_dev == ZERO:
        return ZERO
    return avg_roi / std_dev


def drawdown_series(completed: list[Trade]) -> list[tuple[Decimal, Decimal, Decimal]]:
    """Running (cumulative profit, peak, drawdown) per completed trade.

    Trades are ordered by trade date ascending; equal dates keep input
    order. The peak starts at zero, so an opening loss counts as drawdown.
    """
    ordered = sorted(completed, key=lambda t: t.trade_date)
    series = []
    running = ZERO
    peak = ZERO
    for trade in ordered:
        running += _profit(trade)
        if running > peak:
            peak = running
        series.append((running, peak, peak - running))
    return series


def max_drawdown(completed: list[Trade]) -> Decimal:
    """Largest peak-to-trough retracement of cumulative realized profit."""
    return max((dd for _, _, dd in drawdown_series(completed)), default=ZERO)


def best_trade(completed: list[Trade]) -> Optional[BestTrade]:
    """Completed trade with the highest profit; first one wins ties."""
    if not completed:
        return None
    best = max(completed, key=_profit)
    return BestTrade(
        trade_id=best.id,
        subject_name=best.subject_name,
        profit=_profit(best),
        roi=best.roi,
    )
