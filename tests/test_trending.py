"""
Tests for the market trend ranking domain service.

Snapshots are plain domain objects; no snapshot store is involved.
"""

from decimal import Decimal

import pytest

from app.domain.trading.entities import TrendDirection, TrendWindow
from app.domain.trading.errors import InvalidQueryError
from app.domain.trading.trending import TrendingRankingService
from tests.conftest import snapshot

H24 = TrendWindow.H24


@pytest.fixture
def service() -> TrendingRankingService:
    return TrendingRankingService()


@pytest.fixture
def market():
    return [
        snapshot("up10", "1100", "1000"),
        snapshot("down10", "900", "1000"),
        snapshot("up2", "1020", "1000"),
        snapshot("up100", "2000", "1000"),
        snapshot("down50", "500", "1000"),
        snapshot("flat", "1000", "1000"),
    ]


class TestPriceChanges:
    """Tests for percent change computation and eligibility."""

    def test_percent_change_and_amount(self, service) -> None:
        [card] = service.price_changes([snapshot("1", "1234", "1000")], H24)
        assert card.percent_change == Decimal("23.40")
        assert card.change_amount == Decimal("234")
        assert card.reference_price == Decimal("1000")

    def test_ineligible_snapshots_skipped(self, service) -> None:
        snapshots = [
            snapshot("no-ref", "100", None),
            snapshot("zero-ref", "100", "0"),
            snapshot("no-current", None, "100"),
            snapshot("ok", "110", "100"),
        ]
        cards = service.price_changes(snapshots, H24)
        assert [c.snapshot.item_id for c in cards] == ["ok"]

    def test_window_selects_reference(self, service) -> None:
        card = snapshot("1", "120", "100", price_6h="110", price_12h="60")
        assert service.price_changes([card], TrendWindow.H6)[0].percent_change == Decimal("9.09")
        assert service.price_changes([card], TrendWindow.H12)[0].percent_change == Decimal("100.00")

    def test_missing_window_price_is_ineligible(self, service) -> None:
        assert service.price_changes([snapshot("1", "120", "100")], TrendWindow.H6) == []


class TestRank:
    """Tests for the trending ranking."""

    def test_all_ordered_by_absolute_change(self, service, market) -> None:
        ranked = service.rank(market, H24, TrendDirection.ALL, 10)
        assert [c.snapshot.item_id for c in ranked] == [
            "up100",
            "down50",
            "up10",
            "down10",
            "up2",
            "flat",
        ]

    def test_ties_keep_input_order(self, service, market) -> None:
        ranked = service.rank(market, H24, TrendDirection.ALL, 10)
        ids = [c.snapshot.item_id for c in ranked]
        assert ids.index("up10") < ids.index("down10")

    def test_rising_excludes_flat_and_falling(self, service, market) -> None:
        ranked = service.rank(market, H24, TrendDirection.RISING, 10)
        assert all(c.percent_change > 0 for c in ranked)
        assert len(ranked) == 3

    def test_falling_only(self, service, market) -> None:
        ranked = service.rank(market, H24, TrendDirection.FALLING, 10)
        assert [c.snapshot.item_id for c in ranked] == ["down50", "down10"]

    def test_limit_applied(self, service, market) -> None:
        assert len(service.rank(market, H24, TrendDirection.ALL, 2)) == 2

    def test_limit_must_be_positive(self, service, market) -> None:
        with pytest.raises(InvalidQueryError):
            service.rank(market, H24, TrendDirection.ALL, 0)

    def test_empty_market(self, service) -> None:
        assert service.rank([], H24, TrendDirection.ALL, 5) == []


class TestMovers:
    """Tests for top gainers and losers."""

    def test_gainers_and_losers_sorted_by_raw_change(self, service, market) -> None:
        movers = service.movers(market, H24, 10)
        assert [c.snapshot.item_id for c in movers.gainers] == ["up100", "up10", "up2"]
        assert [c.snapshot.item_id for c in movers.losers] == ["down50", "down10"]

    def test_each_side_limited_independently(self, service, market) -> None:
        movers = service.movers(market, H24, 1)
        assert len(movers.gainers) == 1
        assert len(movers.losers) == 1


class TestSummarize:
    """Tests for the market summary classification."""

    def test_counts(self, service, market) -> None:
        summary = service.summarize(market, H24, Decimal("5"), Decimal("5"))
        assert summary.total == 6
        assert summary.trending == 2
        assert summary.falling == 2
        assert summary.stable == 2

    def test_threshold_is_inclusive(self, service) -> None:
        snapshots = [snapshot("a", "1050", "1000"), snapshot("b", "950", "1000")]
        summary = service.summarize(snapshots, H24, Decimal("5"), Decimal("5"))
        assert summary.trending == 1
        assert summary.falling == 1

    @pytest.mark.parametrize(
        "rise, fall",
        [("0", "0"), ("5", "5"), ("10", "2"), ("1000", "1000"), ("5.0", "5")],
    )
    def test_buckets_partition_total(self, service, market, rise, fall) -> None:
        summary = service.summarize(market, H24, Decimal(rise), Decimal(fall))
        assert summary.trending + summary.falling + summary.stable == summary.total

    def test_zero_thresholds_count_flat_card_once(self, service) -> None:
        summary = service.summarize(
            [snapshot("flat", "1000", "1000")], H24, Decimal("0"), Decimal("0")
        )
        assert (summary.trending, summary.falling, summary.stable) == (1, 0, 0)

    def test_negative_threshold_rejected(self, service, market) -> None:
        with pytest.raises(InvalidQueryError):
            service.summarize(market, H24, Decimal("-1"), Decimal("5"))
