from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from bankflow.banking.client import BankingClient, get_client
from bankflow.banking.models import Beneficiary, Outcome
from bankflow.config import Settings
from bankflow.logging_config import setup_logging
from bankflow.services.beneficiaries import BeneficiaryRegistry
from bankflow.services.history import TransactionHistoryView
from bankflow.services.otp_session import OtpSession
from bankflow.services.transfer import TransferController

logger = logging.getLogger(__name__)


class TransferWorkflow:
    """One user's transfer screen: beneficiaries, OTP, transfer, history.

    ``message`` is the single status line shown to the user; every action
    overwrites it with its own outcome.
    """

    def __init__(self, client: BankingClient) -> None:
        self.client = client
        self.beneficiaries = BeneficiaryRegistry(client)
        self.otp = OtpSession(client)
        self.controller = TransferController(client, self.otp)
        self.history = TransactionHistoryView(client)
        self.history.attach(self.controller)
        self.message = ""

    def _show(self, outcome: Outcome) -> Outcome:
        self.message = outcome.message
        return outcome

    async def start(self) -> None:
        await self.beneficiaries.load()
        await self.history.refresh()

    async def add_beneficiary(self, name: Optional[str] = None, account: Optional[str] = None) -> Outcome:
        return self._show(await self.beneficiaries.add(name, account))

    def select_beneficiary(self, beneficiary: Beneficiary) -> None:
        self.controller.select_beneficiary(beneficiary)

    async def send_otp(self) -> Outcome:
        if self.controller.busy:
            # Refused without a network call; status line keeps the in-flight text
            return await self.controller.request_otp()
        return self._show(await self.controller.request_otp())

    async def transfer(self) -> Outcome:
        if self.controller.busy:
            return await self.controller.submit()
        return self._show(await self.controller.submit())


@asynccontextmanager
async def open_workflow(
    config: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[TransferWorkflow]:
    client = get_client(config, transport=transport)
    try:
        yield TransferWorkflow(client)
    finally:
        await client.aclose()


async def main() -> None:
    setup_logging()
    async with open_workflow() as workflow:
        await workflow.start()
        logger.info(
            "workflow synced",
            extra={
                "extra": {
                    "beneficiaries": len(workflow.beneficiaries.beneficiaries),
                    "transactions": len(workflow.history.transactions),
                }
            },
        )


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
