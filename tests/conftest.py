"""
Shared fixtures: in-memory port implementations and a wired test client.

No database is needed; the SQL adapters are replaced through
FastAPI dependency overrides.
"""

from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.domain.trading.entities import (
    MarketSnapshot,
    PageRequest,
    Trade,
    TradeDraft,
    TradeFilters,
    TradePage,
    TradeSort,
    TrendWindow,
)
from app.domain.trading.errors import TradeNotFoundError, UpstreamUnavailableError
from app.domain.trading.ports import MarketSnapshotRepository, TradeLedger
from app.interfaces.trading.dependencies import (
    get_result_cache,
    get_snapshot_repository,
    get_trade_ledger,
)
from app.main import app
from app.shared.cache import ResultCache
from app.shared.security.rate_limiting import limiter

OWNER = "owner-1"
OWNER_HEADERS = {"X-Owner-Id": OWNER}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryTradeLedger(TradeLedger):
    """TradeLedger backed by a list, in insertion order."""

    def __init__(self) -> None:
        self.trades: list[Trade] = []
        self.list_calls = 0

    async def list_by_owner(
        self,
        owner_id: str,
        filters: TradeFilters,
        sort: TradeSort,
        page: Optional[PageRequest] = None,
    ) -> TradePage:
        self.list_calls += 1
        matching = [
            t
            for t in self.trades
            if t.owner_id == owner_id
            and (filters.tag is None or t.tag == filters.tag)
            and (filters.platform is None or t.platform is filters.platform)
            and (filters.status is None or t.status is filters.status)
        ]
        present = [t for t in matching if getattr(t, sort.field) is not None]
        missing = [t for t in matching if getattr(t, sort.field) is None]
        present.sort(key=lambda t: getattr(t, sort.field), reverse=sort.descending)
        ordered = present + missing

        if page is None:
            return TradePage(trades=ordered, total=len(ordered), limit=len(ordered), offset=0)
        window = ordered[page.offset : page.offset + page.limit]
        return TradePage(
            trades=window, total=len(ordered), limit=page.limit, offset=page.offset
        )

    async def get(self, trade_id: UUID, owner_id: str) -> Optional[Trade]:
        for trade in self.trades:
            if trade.id == trade_id and trade.owner_id == owner_id:
                return trade
        return None

    async def create(self, owner_id: str, draft: TradeDraft) -> Trade:
        fields = asdict(draft)
        fields["trade_date"] = draft.trade_date or datetime.now(timezone.utc)
        trade = Trade(
            id=uuid4(),
            owner_id=owner_id,
            created_at=datetime.now(timezone.utc),
            **fields,
        )
        self.trades.append(trade)
        return trade

    async def update(self, trade_id: UUID, owner_id: str, draft: TradeDraft) -> Trade:
        for index, trade in enumerate(self.trades):
            if trade.id == trade_id and trade.owner_id == owner_id:
                updated = Trade(
                    id=trade.id,
                    owner_id=owner_id,
                    created_at=trade.created_at,
                    **asdict(draft),
                )
                self.trades[index] = updated
                return updated
        raise TradeNotFoundError(str(trade_id))

    async def delete(self, trade_id: UUID, owner_id: str) -> None:
        for index, trade in enumerate(self.trades):
            if trade.id == trade_id and trade.owner_id == owner_id:
                del self.trades[index]
                return
        raise TradeNotFoundError(str(trade_id))


class InMemorySnapshotRepository(MarketSnapshotRepository):
    """MarketSnapshotRepository over a fixed snapshot list."""

    def __init__(self, snapshots: Optional[list[MarketSnapshot]] = None) -> None:
        self.snapshots = list(snapshots or [])
        self.calls = 0
        self.unavailable = False

    async def list_eligible(self, window: TrendWindow) -> list[MarketSnapshot]:
        self.calls += 1
        if self.unavailable:
            raise UpstreamUnavailableError("list_snapshots")
        return [
            s
            for s in self.snapshots
            if s.current_price is not None
            and s.reference_price(window) is not None
            and s.reference_price(window) > 0
        ]


def snapshot(
    item_id: str,
    current: Optional[str],
    price_24h: Optional[str],
    price_6h: Optional[str] = None,
    price_12h: Optional[str] = None,
    name: Optional[str] = None,
) -> MarketSnapshot:
    """Build a MarketSnapshot from string prices."""
    return MarketSnapshot(
        item_id=item_id,
        name=name or f"Card {item_id}",
        current_price=Decimal(current) if current is not None else None,
        price_24h_ago=Decimal(price_24h) if price_24h is not None else None,
        price_6h_ago=Decimal(price_6h) if price_6h is not None else None,
        price_12h_ago=Decimal(price_12h) if price_12h is not None else None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResultCache:
    return ResultCache(ttl_seconds=300.0, clock=clock)


@pytest.fixture
def ledger() -> InMemoryTradeLedger:
    return InMemoryTradeLedger()


@pytest.fixture
def snapshot_repo() -> InMemorySnapshotRepository:
    return InMemorySnapshotRepository(
        [
            snapshot("1", "1100", "1000"),
            snapshot("2", "900", "1000"),
            snapshot("3", "1020", "1000"),
            snapshot("4", "2000", "1000"),
            snapshot("5", "500", "1000"),
        ]
    )


@pytest.fixture
def client(
    ledger: InMemoryTradeLedger,
    snapshot_repo: InMemorySnapshotRepository,
    cache: ResultCache,
):
    """TestClient with both ports replaced by in-memory fakes."""
    app.dependency_overrides[get_trade_ledger] = lambda: ledger
    app.dependency_overrides[get_snapshot_repository] = lambda: snapshot_repo
    app.dependency_overrides[get_result_cache] = lambda: cache
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
