from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from bankflow.banking.client import BankingClient
from bankflow.banking.errors import BankingError, MalformedResponseError
from bankflow.banking.models import Beneficiary, Outcome
from bankflow.utils.money import is_blank

logger = logging.getLogger(__name__)

MSG_MISSING_INPUT = "Please enter name and account number"
MSG_ADDED = "Beneficiary added successfully!"
MSG_REJECTED = "Failed to add beneficiary"
MSG_ADD_FAILED = "Add beneficiary failed"


@dataclass
class BeneficiaryDraft:
    name: str = ""
    account: str = ""

    def clear(self) -> None:
        self.name = ""
        self.account = ""


class BeneficiaryRegistry:
    """Client-side mirror of the server's beneficiary list."""

    def __init__(self, client: BankingClient) -> None:
        self._client = client
        self._items: List[Beneficiary] = []
        self.draft = BeneficiaryDraft()

    @property
    def beneficiaries(self) -> Tuple[Beneficiary, ...]:
        return tuple(self._items)

    def find_by_account(self, account: str) -> Optional[Beneficiary]:
        for b in self._items:
            if b.account == account:
                return b
        return None

    async def load(self) -> bool:
        """Replace the cache with the server list. Last successful load wins."""
        try:
            items = await self._client.list_beneficiaries()
        except BankingError as e:
            logger.error("beneficiaries.load failed", extra={"extra": {"err": str(e), "status": e.status_code}})
            return False
        self._items = list(items)
        logger.info("beneficiaries.loaded", extra={"extra": {"count": len(self._items)}})
        return True

    async def add(self, name: Optional[str] = None, account: Optional[str] = None) -> Outcome:
        name = self.draft.name if name is None else name
        account = self.draft.account if account is None else account
        if is_blank(name) or is_blank(account):
            return Outcome(ok=False, message=MSG_MISSING_INPUT)

        try:
            data = await self._client.add_beneficiary(name.strip(), account.strip())
        except BankingError as e:
            logger.warning("beneficiaries.add failed", extra={"extra": {"err": str(e), "status": e.status_code}})
            # A rejected add may still come back as {success: false, message} with a 4xx
            return Outcome(ok=False, message=e.server_message or MSG_ADD_FAILED)

        if not data.get("success"):
            msg = data.get("message")
            return Outcome(ok=False, message=msg if isinstance(msg, str) and msg.strip() else MSG_REJECTED)

        try:
            created = Beneficiary.from_payload(data.get("beneficiary"))
        except MalformedResponseError as e:
            logger.error("beneficiaries.add acknowledged without a usable beneficiary", extra={"extra": {"err": str(e)}})
            return Outcome(ok=False, message=MSG_ADD_FAILED)

        # Appended with the server id so the next full load lines up
        self._items.append(created)
        self.draft.clear()
        logger.info("beneficiaries.added", extra={"extra": {"id": created.id}})
        return Outcome(ok=True, message=MSG_ADDED, beneficiary=created)
