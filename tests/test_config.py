from __future__ import annotations

import pytest

from bankflow.config import DEFAULT_BASE_URL, Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ["BANK_API_BASE_URL", "BANK_HTTP_TIMEOUT", "BANK_READ_MAX_ATTEMPTS", "HEALTHCHECK_SKIP_REMOTE"]:
        monkeypatch.delenv(key, raising=False)
    s = Settings()
    assert s.bank_api_base_url == DEFAULT_BASE_URL
    assert s.http_timeout == 30.0
    assert s.read_max_attempts == 3
    assert s.healthcheck_skip_remote is False


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BANK_API_BASE_URL", "https://sandbox.bank.example")
    monkeypatch.setenv("BANK_HTTP_TIMEOUT", "5")
    monkeypatch.setenv("BANK_READ_MAX_ATTEMPTS", "0")
    monkeypatch.setenv("HEALTHCHECK_SKIP_REMOTE", "yes")
    s = Settings()
    assert s.bank_api_base_url == "https://sandbox.bank.example"
    assert s.http_timeout == 5.0
    # At least one attempt is always made
    assert s.read_max_attempts == 1
    assert s.healthcheck_skip_remote is True


def test_bad_numbers_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BANK_HTTP_CONNECT_TIMEOUT", "soon")
    monkeypatch.setenv("BANK_READ_MAX_ATTEMPTS", "many")
    s = Settings()
    assert s.http_connect_timeout == 10.0
    assert s.read_max_attempts == 3
