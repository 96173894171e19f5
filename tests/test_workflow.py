from __future__ import annotations

import httpx
import pytest

import bankflow.healthcheck as hc
from bankflow.banking.client import BankingClient
from bankflow.config import Settings
from bankflow.main import open_workflow
from bankflow.services.transfer import AttemptState


@pytest.mark.asyncio
async def test_full_transfer_scenario(bank) -> None:
    cfg = Settings(bank_api_base_url="http://bank.test", read_max_attempts=1)
    async with open_workflow(cfg, transport=httpx.MockTransport(bank.handler)) as wf:
        await wf.start()
        assert len(wf.beneficiaries.beneficiaries) == 2
        assert len(wf.history.transactions) == 1

        added = await wf.add_beneficiary("Alex", "1234567890")
        assert added.ok is True
        assert wf.message == "Beneficiary added successfully!"

        wf.select_beneficiary(added.beneficiary)
        wf.controller.form.amount = "1500"
        await wf.send_otp()
        assert wf.message == "OTP sent successfully!"

        wf.controller.form.otp_input = "482913"
        done = await wf.transfer()
        assert done.ok is True
        assert wf.message == "Transfer completed"
        assert wf.controller.state is AttemptState.COMPLETED
        assert wf.history.transactions[-1].account == "1234567890"


@pytest.mark.asyncio
async def test_rejections_update_status_line(bank) -> None:
    cfg = Settings(bank_api_base_url="http://bank.test")
    async with open_workflow(cfg, transport=httpx.MockTransport(bank.handler)) as wf:
        await wf.add_beneficiary("", "")
        assert wf.message == "Please enter name and account number"
        await wf.transfer()
        assert wf.message == "Please fill all fields"


def test_healthcheck_ok(monkeypatch, bank, capsys) -> None:
    def fake_get_client(config):
        return BankingClient("http://bank.test", max_read_attempts=1, transport=httpx.MockTransport(bank.handler))

    monkeypatch.setattr(hc, "get_client", fake_get_client)
    assert hc.main(Settings(bank_api_base_url="http://bank.test", healthcheck_skip_remote=False)) == 0
    assert capsys.readouterr().out.strip() == "ok"


def test_healthcheck_remote_down(monkeypatch, bank, capsys) -> None:
    bank.overrides[("GET", "/api/beneficiaries")] = (503, {"message": "asleep"})

    def fake_get_client(config):
        return BankingClient("http://bank.test", max_read_attempts=1, transport=httpx.MockTransport(bank.handler))

    monkeypatch.setattr(hc, "get_client", fake_get_client)
    assert hc.main(Settings(bank_api_base_url="http://bank.test", healthcheck_skip_remote=False)) == 1
    assert "not ready" in capsys.readouterr().err


def test_healthcheck_missing_base_url(capsys) -> None:
    assert hc.main(Settings(bank_api_base_url="  ")) == 1
    assert "BANK_API_BASE_URL" in capsys.readouterr().err


def test_healthcheck_skip_remote() -> None:
    assert hc.main(Settings(bank_api_base_url="http://bank.test", healthcheck_skip_remote=True)) == 0


@pytest.mark.asyncio
async def test_busy_refusal_keeps_status_line(bank) -> None:
    cfg = Settings(bank_api_base_url="http://bank.test")
    async with open_workflow(cfg, transport=httpx.MockTransport(bank.handler)) as wf:
        await wf.send_otp()
        assert wf.message == "OTP sent successfully!"
        wf.controller._state = AttemptState.SUBMITTING

        otp = await wf.send_otp()
        transfer = await wf.transfer()

        assert otp.ok is False and transfer.ok is False
        assert wf.message == "OTP sent successfully!"
        assert len(bank.calls_to("POST", "/api/otp/send")) == 1
