"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bgremove_service.config import Settings


def test_defaults(monkeypatch):
    for name in ("PORT", "HOST", "UPLOAD_DIR", "OUTPUT_STORE", "PROCESS_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.port == 5000
    assert settings.host == "0.0.0.0"
    assert settings.upload_dir == Path("uploads")
    assert settings.output_store == "none"
    assert settings.process_timeout_seconds is None
    assert settings.expose_error_detail is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("UPLOAD_DIR", "/tmp/incoming")
    monkeypatch.setenv("OUTPUT_STORE", "LOCAL")
    monkeypatch.setenv("EXPOSE_ERROR_DETAIL", "false")

    settings = Settings()

    assert settings.port == 8080
    assert settings.upload_dir == Path("/tmp/incoming")
    assert settings.output_store == "local"
    assert settings.expose_error_detail is False


def test_invalid_output_store(monkeypatch):
    monkeypatch.setenv("OUTPUT_STORE", "ftp")
    with pytest.raises(ValidationError):
        Settings()
