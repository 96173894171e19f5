from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from bankflow.banking.errors import MalformedResponseError
from bankflow.utils.money import to_decimal
from bankflow.utils.time import parse_timestamp


def _require(data: Dict[str, Any], key: str, what: str) -> Any:
    if key not in data or data[key] is None:
        raise MalformedResponseError(f"{what} missing '{key}'", payload=data)
    return data[key]


@dataclass(frozen=True)
class Beneficiary:
    id: Union[int, str]
    name: str
    account: str

    @classmethod
    def from_payload(cls, data: Any) -> "Beneficiary":
        if not isinstance(data, dict):
            raise MalformedResponseError("beneficiary is not an object", payload=data)
        return cls(
            id=_require(data, "id", "beneficiary"),
            name=str(_require(data, "name", "beneficiary")),
            account=str(_require(data, "account", "beneficiary")),
        )

    @property
    def label(self) -> str:
        return f"{self.name} ({self.account})"


@dataclass(frozen=True)
class Transaction:
    id: Union[int, str]
    account: str
    amount: Decimal
    # Unparseable server dates are kept verbatim rather than dropped
    date: Union[datetime, str, None]

    @classmethod
    def from_payload(cls, data: Any) -> "Transaction":
        if not isinstance(data, dict):
            raise MalformedResponseError("transaction is not an object", payload=data)
        raw_amount = _require(data, "amount", "transaction")
        try:
            amount = to_decimal(raw_amount)
        except ValueError as e:
            raise MalformedResponseError(str(e), payload=data) from e
        raw_date = data.get("date")
        return cls(
            id=_require(data, "id", "transaction"),
            account=str(_require(data, "account", "transaction")),
            amount=amount,
            date=parse_timestamp(raw_date) or raw_date,
        )


@dataclass(frozen=True)
class OtpChallenge:
    issued_value: str
    issued_at: datetime
    consumed: bool = False

    def matches(self, candidate: str) -> bool:
        return not self.consumed and candidate.strip() == self.issued_value.strip()


@dataclass(frozen=True)
class TransferRequest:
    account: str
    amount: str
    otp_input: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "account": self.account.strip(),
            "amount": self.amount.strip(),
            "otp": self.otp_input.strip(),
        }


@dataclass(frozen=True)
class TransferReceipt:
    attempt_id: str
    account: str
    amount: str
    message: str


@dataclass(frozen=True)
class Outcome:
    """Result of a user-triggered action: whether it succeeded and what to tell the user."""

    ok: bool
    message: str
    beneficiary: Optional[Beneficiary] = None
