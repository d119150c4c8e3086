"""
Domain service: Market trend ranking.

Ranks card price snapshots by percentage change over a lookback window.
No framework imports. No IO. No side effects.

Every comparison (direction filter, ordering, classification) is made on
the percent change already rounded to two decimals, so ranked lists and
summary counts always agree with each other.
"""

from decimal import Decimal

from app.domain.trading.entities import (
    MarketMovers,
    MarketSnapshot,
    MarketSummary,
    RankedCard,
    TrendDirection,
    TrendWindow,
)
from app.domain.trading.errors import InvalidQueryError
from app.domain.trading.trade_metrics import ZERO, round_cents, to_decimal


class TrendingRankingService:
    """Computes trending lists, movers and market summaries."""

    def price_changes(
        self, snapshots: list[MarketSnapshot], window: TrendWindow
    ) -> list[RankedCard]:
        """Attach the window's percent change to every eligible snapshot.

        Snapshots missing either price, or with a non-positive price,
        are skipped. Input order is preserved.
        """
        cards = []
        for snapshot in snapshots:
            reference = snapshot.reference_price(window)
            current = snapshot.current_price
            if reference is None or current is None:
                continue
            reference = to_decimal(reference)
            current = to_decimal(current)
            if reference <= ZERO or current <= ZERO:
                continue
            cards.append(
                RankedCard(
                    snapshot=snapshot,
                    reference_price=reference,
                    percent_change=round_cents((current - reference) / reference * 100),
                    change_amount=abs(current - reference),
                )
            )
        return cards

    def rank(
        self,
        snapshots: list[MarketSnapshot],
        window: TrendWindow,
        direction: TrendDirection,
        limit: int,
    ) -> list[RankedCard]:
        """Biggest movers by absolute percent change, optionally one-sided.

        Args:
            snapshots: Candidate snapshots.
            window: Lookback window selecting the reference price.
            direction: Keep rising, falling, or all cards.
            limit: Maximum number of cards returned.

        Returns:
            Cards ordered by |percent change| descending. Ties keep input order.
        """
        _check_limit(limit)
        cards = self.price_changes(snapshots, window)
        if direction is TrendDirection.RISING:
            cards = [c for c in cards if c.percent_change > ZERO]
        elif direction is TrendDirection.FALLING:
            cards = [c for c in cards if c.percent_change < ZERO]
        cards.sort(key=lambda c: abs(c.percent_change), reverse=True)
        return cards[:limit]

    def movers(
        self, snapshots: list[MarketSnapshot], window: TrendWindow, limit: int
    ) -> MarketMovers:
        """Top gainers (highest change first) and losers (lowest first),
        each limited independently."""
        _check_limit(limit)
        cards = self.price_changes(snapshots, window)
        gainers = sorted(
            (c for c in cards if c.percent_change > ZERO),
            key=lambda c: c.percent_change,
            reverse=True,
        )
        losers = sorted(
            (c for c in cards if c.percent_change < ZERO),
            key=lambda c: c.percent_change,
        )
        return MarketMovers(gainers=gainers[:limit], losers=losers[:limit])

    def summarize(
        self,
        snapshots: list[MarketSnapshot],
        window: TrendWindow,
        rise_threshold: Decimal,
        fall_threshold: Decimal,
    ) -> MarketSummary:
        """Classify every eligible card into exactly one bucket.

        A card is trending when its change is at least ``rise_threshold``,
        otherwise falling when it is at most ``-fall_threshold``, otherwise
        stable. The three counts always add up to the total.
        """
        rise = to_decimal(rise_threshold)
        fall = to_decimal(fall_threshold)
        if rise < ZERO:
            raise InvalidQueryError("rise_threshold", "must not be negative")
        if fall < ZERO:
            raise InvalidQueryError("fall_threshold", "must not be negative")

        trending = falling = stable = 0
        cards = self.price_changes(snapshots, window)
        for card in cards:
            if card.percent_change >= rise:
                trending += 1
            elif card.percent_change <= -fall:
                falling += 1
            else:
                stable += 1

        return MarketSummary(
            total=len(cards),
            trending=trending,
            falling=falling,
            stable=stable,
            rise_threshold=rise,
            fall_threshold=fall,
        )


def _check_limit(limit: int) -> None:
    if limit < 1:
        raise InvalidQueryError("limit", "must be at least 1")
