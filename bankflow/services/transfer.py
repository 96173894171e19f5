from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from bankflow.banking.client import BankingClient
from bankflow.banking.errors import BankingError
from bankflow.banking.models import Beneficiary, Outcome, TransferReceipt, TransferRequest
from bankflow.services.otp_session import MSG_OTP_FAILED, OtpSession
from bankflow.services.validator import TransferRequestValidator
from bankflow.utils.correlation import clear_correlation_id, new_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

MSG_TRANSFER_DONE = "Transfer completed"
MSG_TRANSFER_FAILED = "Transfer failed"
MSG_BUSY = "Please wait for the current request to finish"

CompletionCallback = Callable[[TransferReceipt], Awaitable[None]]


class AttemptState(str, enum.Enum):
    IDLE = "idle"
    OTP_PENDING = "otp_pending"
    OTP_ISSUED = "otp_issued"
    OTP_FAILED = "otp_failed"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


# States from which requesting an OTP starts a fresh attempt
_FRESH_ATTEMPT_STATES = {AttemptState.IDLE, AttemptState.OTP_FAILED, AttemptState.COMPLETED}
_IN_FLIGHT_STATES = {AttemptState.OTP_PENDING, AttemptState.SUBMITTING}


@dataclass
class TransferForm:
    account: str = ""
    amount: str = ""
    otp_input: str = ""

    def to_request(self) -> TransferRequest:
        return TransferRequest(account=self.account, amount=self.amount, otp_input=self.otp_input)

    def clear(self) -> None:
        self.account = ""
        self.amount = ""
        self.otp_input = ""


class TransferController:
    """Drives one transfer attempt: OTP issuance, validation, submission.

    State transitions:
      IDLE/OTP_FAILED/COMPLETED --request_otp--> OTP_PENDING --> OTP_ISSUED | OTP_FAILED
      any idle state --submit--> VALIDATING --> (back, on rejection) | SUBMITTING
      SUBMITTING --> COMPLETED (fields cleared, OTP consumed, subscribers notified)
                 --> OTP_ISSUED (failure; fields kept for a retry)

    While OTP_PENDING or SUBMITTING both actions are refused without touching
    the network. Whether an OTP exists is always decided by the validator, never
    inferred from the current state.
    """

    def __init__(
        self,
        client: BankingClient,
        otp_session: OtpSession,
        validator: Optional[TransferRequestValidator] = None,
    ) -> None:
        self._client = client
        self._otp = otp_session
        self._validator = validator or TransferRequestValidator()
        self._state = AttemptState.IDLE
        self._subscribers: List[CompletionCallback] = []
        self.form = TransferForm()
        self.attempt_id = new_correlation_id()
        self.message = ""

    @property
    def state(self) -> AttemptState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state in _IN_FLIGHT_STATES

    def subscribe(self, callback: CompletionCallback) -> None:
        self._subscribers.append(callback)

    def select_beneficiary(self, beneficiary: Beneficiary) -> None:
        self.form.account = beneficiary.account

    def _finish(self, outcome: Outcome) -> Outcome:
        self.message = outcome.message
        return outcome

    async def request_otp(self) -> Outcome:
        if self.busy:
            logger.info("transfer.otp_request_ignored", extra={"extra": {"state": self._state.value}})
            return Outcome(ok=False, message=MSG_BUSY)

        if self._state in _FRESH_ATTEMPT_STATES:
            self.attempt_id = new_correlation_id()
        set_correlation_id(self.attempt_id)
        try:
            self._state = AttemptState.OTP_PENDING
            try:
                outcome = await self._otp.request()
            except Exception:
                logger.exception("transfer.otp_request crashed")
                outcome = Outcome(ok=False, message=MSG_OTP_FAILED)
            self._state = AttemptState.OTP_ISSUED if outcome.ok else AttemptState.OTP_FAILED
            logger.info("transfer.otp_requested", extra={"extra": {"ok": outcome.ok, "state": self._state.value}})
            return self._finish(outcome)
        finally:
            # Never leave the guard set, even on cancellation
            if self._state is AttemptState.OTP_PENDING:
                self._state = AttemptState.OTP_FAILED
            clear_correlation_id()

    async def submit(self) -> Outcome:
        if self.busy:
            logger.info("transfer.submit_ignored", extra={"extra": {"state": self._state.value}})
            return Outcome(ok=False, message=MSG_BUSY)

        previous = self._state
        set_correlation_id(self.attempt_id)
        try:
            self._state = AttemptState.VALIDATING
            request = self.form.to_request()
            verdict = self._validator.validate(request, self._otp)
            if not verdict.ok:
                self._state = previous
                logger.info("transfer.rejected", extra={"extra": {"reason": verdict.reason}})
                return self._finish(Outcome(ok=False, message=verdict.reason or MSG_TRANSFER_FAILED))

            self._state = AttemptState.SUBMITTING
            try:
                data = await self._client.transfer(request)
            except BankingError as e:
                self._state = AttemptState.OTP_ISSUED
                logger.error("transfer.submit failed", extra={"extra": {"err": str(e), "status": e.status_code}})
                return self._finish(Outcome(ok=False, message=e.server_message or MSG_TRANSFER_FAILED))
            except Exception:
                self._state = AttemptState.OTP_ISSUED
                logger.exception("transfer.submit crashed")
                return self._finish(Outcome(ok=False, message=MSG_TRANSFER_FAILED))

            server_msg = data.get("message")
            server_msg = server_msg.strip() if isinstance(server_msg, str) and server_msg.strip() else None
            if data.get("success") is False:
                self._state = AttemptState.OTP_ISSUED
                logger.warning("transfer.declined", extra={"extra": {"message": server_msg}})
                return self._finish(Outcome(ok=False, message=server_msg or MSG_TRANSFER_FAILED))

            self._otp.consume()
            self.form.clear()
            self._state = AttemptState.COMPLETED
            receipt = TransferReceipt(
                attempt_id=self.attempt_id,
                account=request.account,
                amount=request.amount,
                message=server_msg or MSG_TRANSFER_DONE,
            )
            logger.info("transfer.completed", extra={"extra": {"account": request.account, "amount": request.amount}})
            outcome = self._finish(Outcome(ok=True, message=receipt.message))
            await self._emit(receipt)
            return outcome
        finally:
            if self._state is AttemptState.VALIDATING:
                self._state = previous
            elif self._state is AttemptState.SUBMITTING:
                self._state = AttemptState.OTP_ISSUED
            clear_correlation_id()

    async def _emit(self, receipt: TransferReceipt) -> None:
        for callback in list(self._subscribers):
            try:
                await callback(receipt)
            except Exception:
                logger.exception("transfer.completion listener failed")
