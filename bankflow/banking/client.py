from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional

import httpx

from bankflow.banking.errors import (
    BankingServiceError,
    BankingTransportError,
    MalformedResponseError,
)
from bankflow.banking.models import Beneficiary, Transaction, TransferRequest
from bankflow.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_RETRYABLE_STATUSES = {429, 502, 503, 504}


class BankingClient:
    """JSON-over-HTTP client for the remote banking service.

    Only GETs are retried. A POST that times out may or may not have been
    applied server-side, so it is reported as a failure and left to the user.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        max_read_attempts: int = 3,
        backoff_base: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout, read=connect_timeout, write=connect_timeout),
            transport=transport,
        )
        self._max_read_attempts = max(1, max_read_attempts)
        self._backoff_base = backoff_base  # seconds

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "accept": "application/json"}

    def _backoff(self, attempt: int) -> float:
        return self._backoff_base * (2 ** (attempt - 1)) + random.uniform(0, 0.25)

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        attempts = self._max_read_attempts if method == "GET" else 1
        for attempt in range(1, attempts + 1):
            try:
                resp = await self._client.request(method, url, headers=self._headers(), **kwargs)
            except httpx.TransportError as e:
                if attempt < attempts:
                    delay = self._backoff(attempt)
                    logger.warning("Network error on %s %s: %s, attempt %d/%d, sleeping %.2fs", method, url, e, attempt, attempts, delay)
                    await asyncio.sleep(delay)
                    continue
                logger.error("HTTP transport error on %s %s after %d attempts: %s", method, url, attempt, e)
                raise BankingTransportError(f"{method} {path} failed: {e}") from e
            except httpx.RequestError as e:
                # Bad content encoding, redirect loops, invalid URLs: not worth retrying
                logger.error("HTTP request error on %s %s: %s", method, url, e)
                raise BankingTransportError(f"{method} {path} failed: {e}") from e

            if resp.status_code in _RETRYABLE_STATUSES and attempt < attempts:
                delay = self._backoff(attempt)
                logger.warning("Retryable status %s on %s %s, attempt %d/%d, sleeping %.2fs", resp.status_code, method, url, attempt, attempts, delay)
                await asyncio.sleep(delay)
                continue

            if resp.is_error:
                body = self._decode(resp)
                logger.warning("HTTP %s on %s %s", resp.status_code, method, url, extra={"extra": {"body": body}})
                raise BankingServiceError(
                    f"{method} {path} returned {resp.status_code}",
                    status_code=resp.status_code,
                    payload=body,
                )

            try:
                return resp.json()
            except ValueError as e:
                raise MalformedResponseError(
                    f"{method} {path} returned a non-JSON body",
                    status_code=resp.status_code,
                    payload=resp.text[:200],
                ) from e
        # Unreachable: the last attempt either returns or raises
        raise BankingTransportError(f"{method} {path} failed without a response")

    @staticmethod
    def _expect_list(data: Any, what: str) -> List[Any]:
        if not isinstance(data, list):
            raise MalformedResponseError(f"{what} response is not a list", payload=data)
        return data

    @staticmethod
    def _expect_object(data: Any, what: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise MalformedResponseError(f"{what} response is not an object", payload=data)
        return data

    async def list_beneficiaries(self) -> List[Beneficiary]:
        data = await self._request("GET", "/api/beneficiaries")
        return [Beneficiary.from_payload(item) for item in self._expect_list(data, "beneficiaries")]

    async def add_beneficiary(self, name: str, account: str) -> Dict[str, Any]:
        """Return the raw ``{success, beneficiary | message}`` body; the caller decides."""
        data = await self._request("POST", "/api/beneficiaries", json={"name": name, "account": account})
        return self._expect_object(data, "add beneficiary")

    async def send_otp(self) -> str:
        data = self._expect_object(await self._request("POST", "/api/otp/send"), "otp")
        otp = data.get("otp")
        if otp is None or isinstance(otp, bool) or not str(otp).strip():
            raise MalformedResponseError("otp response carries no otp", payload={"keys": sorted(data)})
        # Servers may send the code as a number
        return str(otp)

    async def transfer(self, request: TransferRequest) -> Dict[str, Any]:
        data = await self._request("POST", "/api/transfer", json=request.to_payload())
        return self._expect_object(data, "transfer")

    async def list_transactions(self) -> List[Transaction]:
        data = await self._request("GET", "/api/transactions")
        return [Transaction.from_payload(item) for item in self._expect_list(data, "transactions")]

    async def aclose(self) -> None:
        await self._client.aclose()


def get_client(config: Optional[Settings] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> BankingClient:
    cfg = config or default_settings
    return BankingClient(
        cfg.bank_api_base_url,
        timeout=cfg.http_timeout,
        connect_timeout=cfg.http_connect_timeout,
        max_read_attempts=cfg.read_max_attempts,
        backoff_base=cfg.retry_backoff_base,
        transport=transport,
    )
