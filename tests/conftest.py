from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from bankflow.banking.client import BankingClient

BASE_URL = "http://bank.test"


class FakeBank:
    """In-memory stand-in for the remote banking service, served over httpx.MockTransport."""

    def __init__(self) -> None:
        self.beneficiaries: List[Dict[str, Any]] = [
            {"id": 1, "name": "Priya", "account": "1111222233"},
            {"id": 2, "name": "Ravi", "account": "4444555566"},
        ]
        self.transactions: List[Dict[str, Any]] = [
            {"id": 1, "account": "1111222233", "amount": "250.00", "date": "2026-10-18T09:30:00Z"},
        ]
        self.otp_values: List[Any] = ["482913"]
        self.next_beneficiary_id = 9
        self.transfer_message: Optional[str] = "Transfer completed"
        # (method, path) -> Exception to raise, or (status, json body)
        self.overrides: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Tuple[str, str, Any]] = []

    def calls_to(self, method: str, path: str) -> List[Any]:
        return [body for m, p, body in self.calls if m == method and p == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        key = (request.method, request.url.path)
        self.calls.append((request.method, request.url.path, body))

        override = self.overrides.get(key)
        if isinstance(override, Exception):
            raise override
        if override is not None:
            status, payload = override
            return httpx.Response(status, json=payload)

        if key == ("GET", "/api/beneficiaries"):
            return httpx.Response(200, json=self.beneficiaries)
        if key == ("POST", "/api/beneficiaries"):
            created = {"id": self.next_beneficiary_id, "name": body["name"], "account": body["account"]}
            self.next_beneficiary_id += 1
            self.beneficiaries.append(created)
            return httpx.Response(200, json={"success": True, "beneficiary": created})
        if key == ("POST", "/api/otp/send"):
            value = self.otp_values.pop(0) if len(self.otp_values) > 1 else self.otp_values[0]
            return httpx.Response(200, json={"otp": value})
        if key == ("POST", "/api/transfer"):
            self.transactions.append(
                {
                    "id": len(self.transactions) + 1,
                    "account": body["account"],
                    "amount": body["amount"],
                    "date": "2026-10-19T10:00:00Z",
                }
            )
            payload = {} if self.transfer_message is None else {"message": self.transfer_message}
            return httpx.Response(200, json=payload)
        if key == ("GET", "/api/transactions"):
            return httpx.Response(200, json=self.transactions)
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def bank() -> FakeBank:
    return FakeBank()


@pytest.fixture
def client(bank: FakeBank) -> BankingClient:
    return BankingClient(
        BASE_URL,
        max_read_attempts=1,
        backoff_base=0.0,
        transport=httpx.MockTransport(bank.handler),
    )
