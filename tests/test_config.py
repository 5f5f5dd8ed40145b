from __future__ import annotations

import dataclasses

import pytest

from remongo.config import RemongoConfig

_ENV_KEYS = ("REMONGO_DB", "REMONGO_DB_SAVE", "REMONGO_DRY_RUN", "REMONGO_SERIALIZE_PER_SPEC")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults() -> None:
    assert RemongoConfig.from_env() == RemongoConfig()


def test_from_env_reads_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REMONGO_DB", " app ")
    monkeypatch.setenv("REMONGO_DB_SAVE", "archive")
    monkeypatch.setenv("REMONGO_DRY_RUN", "yes")
    monkeypatch.setenv("REMONGO_SERIALIZE_PER_SPEC", "off")

    config = RemongoConfig.from_env()

    assert config == RemongoConfig(db="app", db_save="archive", dry_run=True, serialize_per_spec=False)


def test_from_env_ignores_blank_and_unparseable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REMONGO_DB", "   ")
    monkeypatch.setenv("REMONGO_DRY_RUN", "maybe")

    config = RemongoConfig.from_env()

    assert config.db is None
    assert config.dry_run is False


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REMONGO_DB", "app")
    monkeypatch.setenv("REMONGO_DRY_RUN", "1")

    config = RemongoConfig.from_env(db="other", dry_run=False)

    assert config.db == "other"
    assert config.dry_run is False


def test_config_is_frozen() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        RemongoConfig().db = "x"  # type: ignore[misc]
