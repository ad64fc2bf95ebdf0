from __future__ import annotations

import pytest

from nutrinorm.config import LogFormat, Settings


def test_regulation_years_from_comma_separated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REGULATION_YEARS", "2025, 2026")
    monkeypatch.setenv("LOG_FORMAT", "console")

    settings = Settings(_env_file=None)

    assert settings.regulation_years == [2025, 2026]
    assert settings.log_format == LogFormat.console


def test_defaults_load_every_year(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REGULATION_YEARS", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.regulation_years == []
    assert settings.cors_allow_origins == ["*"]
