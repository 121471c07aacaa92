from pathlib import Path

import pytest
from pydantic import ValidationError

from cgt_ingest.settings import IngestSettings


def test_defaults():
    s = IngestSettings()
    assert s.base_currency == "GBP"
    assert s.fund_prefixes == ("Vanguard", "iShares", "Baillie Gifford")
    assert s.email_concurrency == 4
    assert s.ledger_path == Path("data.txt")


def test_from_env(monkeypatch):
    monkeypatch.setenv("CGT_INGEST_BASE_CURRENCY", " eur ")
    monkeypatch.setenv("CGT_INGEST_FUND_PREFIXES", "Vanguard, HSBC ,,Legal & General")
    monkeypatch.setenv("CGT_INGEST_EMAIL_CONCURRENCY", "8")
    monkeypatch.setenv("CGT_INGEST_LEDGER", "/tmp/ledger.txt")

    s = IngestSettings.from_env()
    assert s.base_currency == "EUR"
    assert s.fund_prefixes == ("Vanguard", "HSBC", "Legal & General")
    assert s.email_concurrency == 8
    assert s.ledger_path == Path("/tmp/ledger.txt")


def test_from_explicit_mapping_ignores_process_env(monkeypatch):
    monkeypatch.setenv("CGT_INGEST_BASE_CURRENCY", "USD")
    assert IngestSettings.from_env({}).base_currency == "GBP"


def test_non_integer_concurrency_env_is_rejected():
    with pytest.raises(ValueError, match="CGT_INGEST_EMAIL_CONCURRENCY"):
        IngestSettings.from_env({"CGT_INGEST_EMAIL_CONCURRENCY": "many"})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_currency": "POUNDS"},
        {"base_currency": "G1P"},
        {"fund_prefixes": ()},
        {"fund_prefixes": (" ",)},
        {"email_concurrency": 0},
        {"email_concurrency": "4"},
        {"unknown": 1},
    ],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ValidationError):
        IngestSettings(**kwargs)


def test_settings_are_frozen():
    s = IngestSettings()
    with pytest.raises(ValidationError):
        s.base_currency = "USD"
