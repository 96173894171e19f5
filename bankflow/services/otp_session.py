from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from bankflow.banking.client import BankingClient
from bankflow.banking.errors import BankingError
from bankflow.banking.models import OtpChallenge, Outcome
from bankflow.utils.time import utc_now

logger = logging.getLogger(__name__)

MSG_OTP_SENT = "OTP sent successfully!"
MSG_OTP_FAILED = "Failed to send OTP"


class OtpSession:
    """Lifecycle of the single OTP challenge that authorizes one transfer attempt.

    Only the most recently issued challenge can ever verify. Issuing a new one
    discards the old value for good, and a successful transfer consumes it.
    """

    def __init__(self, client: BankingClient) -> None:
        self._client = client
        self._challenge: Optional[OtpChallenge] = None

    @property
    def challenge(self) -> Optional[OtpChallenge]:
        return self._challenge

    @property
    def has_challenge(self) -> bool:
        return self._challenge is not None and not self._challenge.consumed

    async def request(self) -> Outcome:
        try:
            value = await self._client.send_otp()
        except BankingError as e:
            # Prior challenge, if any, stays usable
            logger.warning("otp.request failed", extra={"extra": {"err": str(e), "status": e.status_code}})
            return Outcome(ok=False, message=MSG_OTP_FAILED)
        self._challenge = OtpChallenge(issued_value=value, issued_at=utc_now())
        logger.info("otp.issued", extra={"extra": {"issued_at": self._challenge.issued_at.isoformat()}})
        return Outcome(ok=True, message=MSG_OTP_SENT)

    def verify(self, candidate: object) -> bool:
        if self._challenge is None or not isinstance(candidate, str):
            return False
        return self._challenge.matches(candidate)

    def consume(self) -> None:
        if self._challenge is not None:
            self._challenge = replace(self._challenge, consumed=True)
