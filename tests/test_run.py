import logging
import os
from unittest.mock import patch

import pytest

import run


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-api-key")
    monkeypatch.setenv("LOG_LEVEL", "INFO")


def test_log_level_reaches_application_logger():
    with patch("run.uvicorn.run") as mock_run:
        run.main(["--log-level", "DEBUG", "--port", "9000"])

    assert os.environ["LOG_LEVEL"] == "DEBUG"
    assert logging.getLogger("call_bridge").level == logging.DEBUG

    args, kwargs = mock_run.call_args
    assert args == ("callbridge.main:app",)
    assert kwargs["port"] == 9000
    assert kwargs["log_level"] == "debug"


def test_missing_api_key_exits(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY")

    with patch("run.uvicorn.run") as mock_run:
        with pytest.raises(SystemExit):
            run.main([])

    mock_run.assert_not_called()


def test_parse_args_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    args = run.parse_args([])

    assert args.port == 8123
    assert args.log_level == "WARNING"
