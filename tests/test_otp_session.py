from __future__ import annotations

import dataclasses

import httpx
import pytest

from bankflow.services.otp_session import MSG_OTP_FAILED, MSG_OTP_SENT, OtpSession


def test_verify_without_challenge_is_false(client) -> None:
    session = OtpSession(client)
    assert session.verify("482913") is False
    assert session.verify(None) is False  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_request_stores_challenge_and_verifies_trimmed(client) -> None:
    session = OtpSession(client)
    outcome = await session.request()
    assert outcome.ok is True
    assert outcome.message == MSG_OTP_SENT
    assert session.challenge is not None
    assert session.challenge.issued_at.tzinfo is not None
    assert session.verify("482913") is True
    assert session.verify("  482913 ") is True
    # Repeated comparisons are allowed until superseded
    assert session.verify("482913") is True
    assert session.verify("482914") is False


@pytest.mark.asyncio
async def test_new_challenge_invalidates_previous_value(client, bank) -> None:
    bank.otp_values = ["111111", "222222"]
    session = OtpSession(client)
    await session.request()
    assert session.verify("111111") is True
    await session.request()
    assert session.verify("111111") is False
    assert session.verify("222222") is True


@pytest.mark.asyncio
async def test_failed_request_keeps_prior_challenge(client, bank) -> None:
    session = OtpSession(client)
    await session.request()
    bank.overrides[("POST", "/api/otp/send")] = httpx.ReadTimeout("timed out")
    outcome = await session.request()
    assert outcome.ok is False
    assert outcome.message == MSG_OTP_FAILED
    assert session.verify("482913") is True


@pytest.mark.asyncio
async def test_failed_first_request_creates_no_challenge(client, bank) -> None:
    bank.overrides[("POST", "/api/otp/send")] = (500, {"message": "sms gateway down"})
    session = OtpSession(client)
    outcome = await session.request()
    assert outcome.message == MSG_OTP_FAILED
    assert session.challenge is None
    assert session.has_challenge is False


@pytest.mark.asyncio
async def test_consumed_challenge_no_longer_verifies(client) -> None:
    session = OtpSession(client)
    await session.request()
    session.consume()
    assert session.verify("482913") is False
    assert session.has_challenge is False


@pytest.mark.asyncio
async def test_consume_replaces_the_frozen_challenge(client) -> None:
    session = OtpSession(client)
    await session.request()
    issued = session.challenge
    session.consume()
    assert issued.consumed is False
    assert session.challenge.consumed is True
    assert session.challenge.issued_value == issued.issued_value
    with pytest.raises(dataclasses.FrozenInstanceError):
        issued.consumed = True  # type: ignore[misc]
