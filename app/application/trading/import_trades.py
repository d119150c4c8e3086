"""
Use case: Import trades from CSV text.

Input: ImportTradesCommand (owner_id, csv_text)
Output: ImportTradesResult
Side effects: Writes to the trade ledger; invalidates the owner's analytics.
Failure cases: InvalidQueryError, InvalidTradeError, UpstreamUnavailableError.
"""

import logging

from app.application.trading.dtos import (
    CreateTradesBatchCommand,
    ImportTradesCommand,
    ImportTradesResult,
)
from app.application.trading.record_trade import CreateTradesBatchUseCase
from app.application.trading.trade_csv import parse_trade_csv

logger = logging.getLogger(__name__)


class ImportTradesUseCase:
    """Parses CSV rows and records them as one batch.

    Rows go through the same validation and metrics derivation as a
    single create. Derived columns in the file are ignored.
    """

    def __init__(self, batch_use_case: CreateTradesBatchUseCase) -> None:
        self._batch_use_case = batch_use_case

    async def execute(self, command: ImportTradesCommand) -> ImportTradesResult:
        trades = parse_trade_csv(command.csv_text)
        logger.info(
            "Importing %d trades for owner=%s", len(trades), command.owner_id
        )
        return await self._batch_use_case.execute(
            CreateTradesBatchCommand(owner_id=command.owner_id, trades=trades)
        )
