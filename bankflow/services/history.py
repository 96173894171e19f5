from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Tuple

from bankflow.banking.client import BankingClient
from bankflow.banking.errors import BankingError
from bankflow.banking.models import Transaction, TransferReceipt

if TYPE_CHECKING:
    from bankflow.services.transfer import TransferController

logger = logging.getLogger(__name__)


class TransactionHistoryView:
    """Read-only mirror of the server ledger; order is whatever the server sends."""

    def __init__(self, client: BankingClient) -> None:
        self._client = client
        self._items: List[Transaction] = []

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(self._items)

    async def refresh(self) -> bool:
        try:
            items = await self._client.list_transactions()
        except BankingError as e:
            logger.error("history.refresh failed", extra={"extra": {"err": str(e), "status": e.status_code}})
            return False
        self._items = list(items)
        logger.debug("history.refreshed", extra={"extra": {"count": len(self._items)}})
        return True

    async def _on_completed(self, receipt: TransferReceipt) -> None:
        await self.refresh()

    def attach(self, controller: "TransferController") -> None:
        controller.subscribe(self._on_completed)
