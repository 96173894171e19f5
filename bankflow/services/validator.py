from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bankflow.banking.models import TransferRequest
from bankflow.services.otp_session import OtpSession
from bankflow.utils.money import is_blank

MSG_MISSING_FIELDS = "Please fill all fields"
MSG_INVALID_OTP = "Invalid OTP"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None


def validate_transfer(request: TransferRequest, otp_session: OtpSession) -> ValidationResult:
    """Gate a transfer before any network call. First failing rule wins.

    Amount is only checked for presence; balance and limits are the bank's call.
    """
    if is_blank(request.account) or is_blank(request.amount) or is_blank(request.otp_input):
        return ValidationResult(ok=False, reason=MSG_MISSING_FIELDS)
    if not otp_session.verify(request.otp_input):
        return ValidationResult(ok=False, reason=MSG_INVALID_OTP)
    return ValidationResult(ok=True)


class TransferRequestValidator:
    """Stateless wrapper so the controller can take the gate as a collaborator."""

    def validate(self, request: TransferRequest, otp_session: OtpSession) -> ValidationResult:
        return validate_transfer(request, otp_session)
