"""
Tests for the trading application layer (use cases).

Tests use cases against in-memory ports. No real infrastructure needed.
Each test verifies orchestration: validation, derived fields, caching
and cache invalidation.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from app.application.trading.delete_trade import DeleteTradeUseCase
from app.application.trading.dtos import (
    CreateTradeCommand,
    CreateTradesBatchCommand,
    DeleteTradeCommand,
    ExportTradesQuery,
    GetMarketMoversQuery,
    GetMarketSummaryQuery,
    GetPortfolioAnalyticsQuery,
    GetTrendingCardsQuery,
    ImportTradesCommand,
    ListTradesQuery,
    TradeInput,
    UpdateTradeCommand,
)
from app.application.trading.export_trades import ExportTradesUseCase
from app.application.trading.get_market_movers import GetMarketMoversUseCase
from app.application.trading.get_market_summary import GetMarketSummaryUseCase
from app.application.trading.get_portfolio_analytics import (
    GetPortfolioAnalyticsUseCase,
    analytics_cache_key,
)
from app.application.trading.get_trending_cards import GetTrendingCardsUseCase
from app.application.trading.import_trades import ImportTradesUseCase
from app.application.trading.list_trades import ListTradesUseCase
from app.application.trading.record_trade import (
    CreateTradesBatchUseCase,
    CreateTradeUseCase,
)
from app.application.trading.update_trade import UpdateTradeUseCase
from app.domain.trading.entities import Platform, TradeStatus, TrendDirection, TrendWindow
from app.domain.trading.errors import (
    InvalidQueryError,
    InvalidTradeError,
    TradeNotFoundError,
    UpstreamUnavailableError,
)
from tests.conftest import OWNER, InMemoryTradeLedger

CLOSED = TradeInput(
    subject_name="Mbappe",
    buy_price=Decimal("100000"),
    sell_price=Decimal("120000"),
)
OPEN = TradeInput(subject_name="Bellingham", buy_price=Decimal("50000"))


async def _create(ledger, cache, trade: TradeInput = CLOSED, owner: str = OWNER):
    return await CreateTradeUseCase(ledger, cache).execute(
        CreateTradeCommand(owner_id=owner, trade=trade)
    )


class TestCreateTradeUseCase:
    """Tests for recording a single trade."""

    @pytest.mark.asyncio
    async def test_derives_metrics_and_status(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        assert trade.profit == Decimal("14000.00")
        assert trade.tax == Decimal("6000.00")
        assert trade.roi == Decimal("14.00")
        assert trade.status is TradeStatus.CLOSED

    @pytest.mark.asyncio
    async def test_open_trade_defaults(self, ledger, cache) -> None:
        trade = await _create(ledger, cache, OPEN)
        assert trade.status is TradeStatus.ACTIVE
        assert trade.profit is None
        assert trade.platform is Platform.PS
        assert trade.quantity == 1
        assert trade.trade_date.tzinfo is not None

    @pytest.mark.asyncio
    async def test_explicit_status_kept(self, ledger, cache) -> None:
        trade_input = TradeInput(
            subject_name="Mbappe",
            buy_price=Decimal("100"),
            sell_price=Decimal("150"),
            status=TradeStatus.ACTIVE,
        )
        trade = await _create(ledger, cache, trade_input)
        assert trade.status is TradeStatus.ACTIVE
        assert trade.profit is not None

    @pytest.mark.asyncio
    async def test_invalid_trade_not_written(self, ledger, cache) -> None:
        with pytest.raises(InvalidTradeError):
            await _create(
                ledger, cache, TradeInput(subject_name="X", buy_price=Decimal("0"))
            )
        assert ledger.trades == []

    @pytest.mark.asyncio
    async def test_invalidates_owner_analytics(self, ledger, cache) -> None:
        cache.put(analytics_cache_key(OWNER), "stale")
        cache.put(analytics_cache_key("someone-else"), "other")
        await _create(ledger, cache)
        assert cache.get(analytics_cache_key(OWNER)) is None
        assert cache.get(analytics_cache_key("someone-else")) is not None


class TestCreateTradesBatchUseCase:
    """Tests for batch recording."""

    @pytest.mark.asyncio
    async def test_records_every_trade(self, ledger, cache) -> None:
        result = await CreateTradesBatchUseCase(ledger, cache).execute(
            CreateTradesBatchCommand(owner_id=OWNER, trades=[CLOSED, OPEN])
        )
        assert result.count == 2
        assert len(ledger.trades) == 2

    @pytest.mark.asyncio
    async def test_invalid_row_rejects_whole_batch(self, ledger, cache) -> None:
        bad = TradeInput(subject_name="X", buy_price=Decimal("10"), quantity=0)
        with pytest.raises(InvalidTradeError):
            await CreateTradesBatchUseCase(ledger, cache).execute(
                CreateTradesBatchCommand(owner_id=OWNER, trades=[CLOSED, bad])
            )
        assert ledger.trades == []

    @pytest.mark.asyncio
    async def test_oversize_batch_rejected(self, ledger, cache) -> None:
        use_case = CreateTradesBatchUseCase(ledger, cache, max_batch=2)
        with pytest.raises(InvalidQueryError):
            await use_case.execute(
                CreateTradesBatchCommand(owner_id=OWNER, trades=[OPEN] * 3)
            )

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, ledger, cache) -> None:
        with pytest.raises(InvalidQueryError):
            await CreateTradesBatchUseCase(ledger, cache).execute(
                CreateTradesBatchCommand(owner_id=OWNER, trades=[])
            )


class TestUpdateTradeUseCase:
    """Tests for partial updates."""

    async def _update(self, ledger, cache, trade_id, **changes):
        return await UpdateTradeUseCase(ledger, cache).execute(
            UpdateTradeCommand(owner_id=OWNER, trade_id=trade_id, changes=changes)
        )

    @pytest.mark.asyncio
    async def test_closing_an_open_trade(self, ledger, cache) -> None:
        trade = await _create(ledger, cache, OPEN)
        updated = await self._update(ledger, cache, trade.id, sell_price="60000")
        assert updated.status is TradeStatus.CLOSED
        assert updated.tax == Decimal("3000.00")
        assert updated.profit == Decimal("7000.00")
        assert updated.roi == Decimal("14.00")

    @pytest.mark.asyncio
    async def test_clearing_sell_price_reopens(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        updated = await self._update(ledger, cache, trade.id, sell_price=None)
        assert updated.status is TradeStatus.ACTIVE
        assert updated.profit is None
        assert updated.roi is None

    @pytest.mark.asyncio
    async def test_quantity_change_recomputes(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        updated = await self._update(ledger, cache, trade.id, quantity=2)
        assert updated.profit == Decimal("28000.00")
        assert updated.roi == Decimal("14.00")

    @pytest.mark.asyncio
    async def test_non_price_change_keeps_metrics(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        updated = await self._update(ledger, cache, trade.id, tag="flip")
        assert updated.tag == "flip"
        assert updated.profit == trade.profit
        assert updated.id == trade.id

    @pytest.mark.asyncio
    async def test_unknown_trade(self, ledger, cache) -> None:
        with pytest.raises(TradeNotFoundError):
            await self._update(ledger, cache, uuid4(), tag="x")

    @pytest.mark.asyncio
    async def test_other_owner_cannot_update(self, ledger, cache) -> None:
        trade = await _create(ledger, cache, owner="owner-2")
        with pytest.raises(TradeNotFoundError):
            await self._update(ledger, cache, trade.id, tag="x")

    @pytest.mark.asyncio
    async def test_invalid_result_rejected(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        with pytest.raises(InvalidTradeError):
            await self._update(ledger, cache, trade.id, sell_price="-1")

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        with pytest.raises(InvalidTradeError):
            await self._update(ledger, cache, trade.id, profit="1")


class TestDeleteTradeUseCase:
    """Tests for trade deletion."""

    @pytest.mark.asyncio
    async def test_delete(self, ledger, cache) -> None:
        trade = await _create(ledger, cache)
        cache.put(analytics_cache_key(OWNER), "stale")
        await DeleteTradeUseCase(ledger, cache).execute(
            DeleteTradeCommand(owner_id=OWNER, trade_id=trade.id)
        )
        assert ledger.trades == []
        assert cache.get(analytics_cache_key(OWNER)) is None

    @pytest.mark.asyncio
    async def test_delete_unknown(self, ledger, cache) -> None:
        with pytest.raises(TradeNotFoundError):
            await DeleteTradeUseCase(ledger, cache).execute(
                DeleteTradeCommand(owner_id=OWNER, trade_id=uuid4())
            )


class TestListTradesUseCase:
    """Tests for ledger listing."""

    @pytest.mark.asyncio
    async def test_filter_sort_and_page(self, ledger, cache) -> None:
        for price in ("300", "100", "200"):
            await _create(
                ledger, cache, TradeInput(subject_name="A", buy_price=Decimal(price), tag="t")
            )
        await _create(ledger, cache, TradeInput(subject_name="B", buy_price=Decimal("5")))

        page = await ListTradesUseCase(ledger).execute(
            ListTradesQuery(
                owner_id=OWNER, tag="t", sort_by="buy_price", sort_order="asc", limit=2
            )
        )
        assert page.total == 3
        assert [t.buy_price for t in page.trades] == [Decimal("100"), Decimal("200")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [
            {"sort_by": "owner_id"},
            {"sort_order": "up"},
            {"limit": 0},
            {"limit": 201},
            {"offset": -1},
        ],
    )
    async def test_invalid_query_rejected(self, ledger, changes) -> None:
        with pytest.raises(InvalidQueryError):
            await ListTradesUseCase(ledger).execute(
                ListTradesQuery(owner_id=OWNER, **changes)
            )


class TestGetPortfolioAnalyticsUseCase:
    """Tests for cached portfolio analytics."""

    @pytest.mark.asyncio
    async def test_cached_until_mutation(self, ledger, cache) -> None:
        use_case = GetPortfolioAnalyticsUseCase(ledger, cache)
        query = GetPortfolioAnalyticsQuery(owner_id=OWNER)
        await _create(ledger, cache)

        first = await use_case.execute(query)
        second = await use_case.execute(query)
        assert first is second
        assert ledger.list_calls == 1

        await _create(ledger, cache)
        third = await use_case.execute(query)
        assert ledger.list_calls == 2
        assert third.total_trades == 2
        assert third.total_profit == Decimal("28000.00")

    @pytest.mark.asyncio
    async def test_write_during_computation_is_not_hidden(self, cache) -> None:
        reading = asyncio.Event()
        release = asyncio.Event()

        class SlowLedger(InMemoryTradeLedger):
            async def list_by_owner(self, *args, **kwargs):
                page = await super().list_by_owner(*args, **kwargs)
                if not release.is_set():
                    reading.set()
                    await release.wait()
                return page

        slow = SlowLedger()
        use_case = GetPortfolioAnalyticsUseCase(slow, cache)
        query = GetPortfolioAnalyticsQuery(owner_id=OWNER)

        pending = asyncio.create_task(use_case.execute(query))
        await reading.wait()
        await _create(slow, cache)
        release.set()

        assert (await pending).total_trades == 0
        assert (await use_case.execute(query)).total_trades == 1

    @pytest.mark.asyncio
    async def test_empty_ledger(self, ledger, cache) -> None:
        result = await GetPortfolioAnalyticsUseCase(ledger, cache).execute(
            GetPortfolioAnalyticsQuery(owner_id=OWNER)
        )
        assert result.total_trades == 0
        assert result.win_rate == Decimal("0.00")


class TestMarketUseCases:
    """Tests for the cached market trend queries."""

    @pytest.mark.asyncio
    async def test_trending_cached_per_signature(self, snapshot_repo, cache) -> None:
        use_case = GetTrendingCardsUseCase(snapshot_repo, cache)
        first = await use_case.execute(GetTrendingCardsQuery(limit=3))
        second = await use_case.execute(
            GetTrendingCardsQuery(window=TrendWindow.H24, direction=TrendDirection.ALL, limit=3)
        )
        assert first is second
        assert snapshot_repo.calls == 1
        assert first.count == 3
        assert first.cached_at.tzinfo is timezone.utc

        await use_case.execute(GetTrendingCardsQuery(limit=4))
        assert snapshot_repo.calls == 2

    @pytest.mark.asyncio
    async def test_trending_recomputed_after_ttl(self, snapshot_repo, cache, clock) -> None:
        use_case = GetTrendingCardsUseCase(snapshot_repo, cache)
        await use_case.execute(GetTrendingCardsQuery())
        clock.advance(301)
        await use_case.execute(GetTrendingCardsQuery())
        assert snapshot_repo.calls == 2

    @pytest.mark.asyncio
    async def test_summary_equivalent_thresholds_share_entry(self, snapshot_repo, cache) -> None:
        use_case = GetMarketSummaryUseCase(snapshot_repo, cache)
        first = await use_case.execute(GetMarketSummaryQuery(rise_threshold=Decimal("5")))
        await use_case.execute(GetMarketSummaryQuery(rise_threshold=Decimal("5.0")))
        assert snapshot_repo.calls == 1
        summary = first.summary
        assert summary.trending + summary.falling + summary.stable == summary.total

    @pytest.mark.asyncio
    async def test_summary_negative_threshold(self, snapshot_repo, cache) -> None:
        with pytest.raises(InvalidQueryError):
            await GetMarketSummaryUseCase(snapshot_repo, cache).execute(
                GetMarketSummaryQuery(fall_threshold=Decimal("-1"))
            )
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_movers(self, snapshot_repo, cache) -> None:
        result = await GetMarketMoversUseCase(snapshot_repo, cache).execute(
            GetMarketMoversQuery(limit=2)
        )
        assert [c.snapshot.item_id for c in result.movers.gainers] == ["4", "1"]
        assert [c.snapshot.item_id for c in result.movers.losers] == ["5", "2"]

    @pytest.mark.asyncio
    async def test_upstream_failure_not_cached(self, snapshot_repo, cache) -> None:
        snapshot_repo.unavailable = True
        use_case = GetTrendingCardsUseCase(snapshot_repo, cache)
        with pytest.raises(UpstreamUnavailableError):
            await use_case.execute(GetTrendingCardsQuery())
        snapshot_repo.unavailable = False
        result = await use_case.execute(GetTrendingCardsQuery())
        assert result.count == 5


class TestImportExportUseCases:
    """Tests for the CSV round trip."""

    @pytest.mark.asyncio
    async def test_export_then_import_recomputes_metrics(self, ledger, cache) -> None:
        await _create(
            ledger,
            cache,
            TradeInput(
                subject_name="Mbappe",
                buy_price=Decimal("100000"),
                sell_price=Decimal("120000"),
                trade_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
                tag="flip",
            ),
        )
        csv_text = await ExportTradesUseCase(ledger).execute(
            ExportTradesQuery(owner_id=OWNER)
        )

        importer = ImportTradesUseCase(CreateTradesBatchUseCase(ledger, cache))
        result = await importer.execute(
            ImportTradesCommand(owner_id="owner-2", csv_text=csv_text)
        )
        [imported] = result.trades
        assert imported.owner_id == "owner-2"
        assert imported.profit == Decimal("14000.00")
        assert imported.tag == "flip"
        assert imported.trade_date == datetime(2024, 3, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "row, field",
        [
            ("Messi,NaN,100", "buy_price"),
            ("Messi,100,Infinity", "sell_price"),
            ("Messi,100,1e30", "sell_price"),
        ],
    )
    async def test_import_rejects_unpriceable_values(self, ledger, cache, row, field) -> None:
        importer = ImportTradesUseCase(CreateTradesBatchUseCase(ledger, cache))
        with pytest.raises(InvalidTradeError) as exc_info:
            await importer.execute(
                ImportTradesCommand(
                    owner_id=OWNER, csv_text=f"subjectName,buyPrice,sellPrice\n{row}\n"
                )
            )
        assert exc_info.value.field == field
        assert ledger.trades == []
