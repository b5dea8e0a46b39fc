"""Application service: Show Stock History use case (query)."""

from __future__ import annotations

from datetime import datetime

from ims.application.dto import MovementDTO
from ims.domain.service.stock_ledger_service import StockLedgerService


class ShowStockHistoryHandler:

    def __init__(self, ledger: StockLedgerService) -> None:
        self._ledger = ledger

    def handle(
        self,
        product_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: str | None = None,
    ) -> list[MovementDTO]:
        history = self._ledger.get_history(
            product_id, start=start, end=end, movement_type=movement_type
        )
        return [MovementDTO.from_movement(m) for m in history]
