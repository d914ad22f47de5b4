"""Tests for the command-line entry point."""

from __future__ import annotations

import pytest
import uvicorn

import run
from s3proxy.services.storage import StorageError


@pytest.fixture
def no_logging_setup(monkeypatch: pytest.MonkeyPatch):
    calls = []
    monkeypatch.setattr(run, "configure_logging", lambda level: calls.append(level))
    return calls


def _set_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("S3_ENDPOINT", "s3.example.net")
    monkeypatch.setenv("S3_BUCKET", "media")
    monkeypatch.setenv("S3_ACCESS_KEY", "access")
    monkeypatch.setenv("S3_SECRET_KEY", "secret")


def test_parse_cli_args() -> None:
    assert run._parse_cli_args(["--config", "a.yml"]) == ("a.yml", [])
    assert run._parse_cli_args(["--config=b.yml", "extra"]) == ("b.yml", ["extra"])
    with pytest.raises(ValueError):
        run._parse_cli_args(["--config"])


def test_unexpected_arguments_exit_with_error(no_logging_setup) -> None:
    assert run.main(["serve"]) == 1
    assert no_logging_setup == []


def test_missing_required_settings_exit_before_logging(no_logging_setup, capsys) -> None:
    assert run.main([]) == 1

    assert no_logging_setup == []
    assert "S3_BUCKET" in capsys.readouterr().err


def test_unreachable_storage_exits_with_error(monkeypatch, no_logging_setup, capsys) -> None:
    _set_required(monkeypatch)

    def _failing_backend(settings):
        raise StorageError("bucket does not exist")

    monkeypatch.setattr(run, "create_storage_backend", _failing_backend)

    assert run.main([]) == 1
    assert "bucket does not exist" in capsys.readouterr().err


def test_main_serves_app_on_configured_address(monkeypatch, no_logging_setup, stub_storage) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("LISTEN", "127.0.0.1:8088")
    monkeypatch.setenv("LOG_LEVEL", "0")
    monkeypatch.setattr(run, "create_storage_backend", lambda settings: stub_storage())
    served = {}

    def _fake_run(app, **kwargs):
        served["app"] = app
        served.update(kwargs)

    monkeypatch.setattr(uvicorn, "run", _fake_run)

    assert run.main([]) == 0
    assert served["host"] == "127.0.0.1"
    assert served["port"] == 8088
    assert served["timeout_graceful_shutdown"] == run.GRACEFUL_SHUTDOWN_SECONDS
    assert served["app"].state.storage is not None
    assert no_logging_setup == [0]
