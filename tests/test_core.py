"""Tests for settings validation, logging setup and metrics exposition."""

import json
import logging
import sys

import pytest

from visibility_tracker.core import config as config_module
from visibility_tracker.core.config import Settings, validate_settings_for_production
from visibility_tracker.core.logging import JSONFormatter, setup_logging
from visibility_tracker.core.metrics import ANALYSIS_RUNS, metrics_payload


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self):
        cfg = _settings()
        assert cfg.rate_limit_min_interval_seconds == 2.0
        assert cfg.rate_limit_max_calls_per_minute == 10
        assert cfg.in_flight_timeout_seconds == 300.0
        assert cfg.max_prompts_per_run == 6

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_MAX_CALLS_PER_MINUTE", "20")
        monkeypatch.setenv("AI_PROVIDER", "groq")
        cfg = _settings()
        assert cfg.rate_limit_max_calls_per_minute == 20
        assert cfg.ai_provider == "groq"


class TestValidateSettings:
    def test_valid_development(self, monkeypatch):
        monkeypatch.setattr(config_module, "settings", _settings())
        validate_settings_for_production()

    def test_bad_limits(self, monkeypatch):
        monkeypatch.setattr(
            config_module,
            "settings",
            _settings(rate_limit_max_calls_per_minute=0, in_flight_timeout_seconds=0),
        )
        with pytest.raises(SystemExit) as exc_info:
            validate_settings_for_production()
        assert "RATE_LIMIT_MAX_CALLS_PER_MINUTE" in str(exc_info.value)
        assert "IN_FLIGHT_TIMEOUT_SECONDS" in str(exc_info.value)

    def test_production_needs_a_key(self, monkeypatch):
        monkeypatch.setattr(
            config_module,
            "settings",
            _settings(app_env="production", openai_api_key="", gemini_api_key="", groq_api_key="", openrouter_api_key=""),
        )
        with pytest.raises(SystemExit):
            validate_settings_for_production()

    def test_production_with_ollama(self, monkeypatch):
        monkeypatch.setattr(
            config_module,
            "settings",
            _settings(app_env="production", ai_provider="ollama", gemini_api_key=""),
        )
        validate_settings_for_production()


class TestJSONFormatter:
    def test_basic_fields(self):
        record = logging.LogRecord("visibility_tracker.x", logging.INFO, __file__, 1, "run %s", ("ok",), None)
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "visibility_tracker.x"
        assert data["message"] == "run ok"
        assert "brand_id" not in data

    def test_context_extras(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "msg", (), None)
        record.brand_id = 7
        record.run_id = 3
        record.provider = "groq"
        data = json.loads(JSONFormatter().format(record))
        assert (data["brand_id"], data["run_id"], data["provider"]) == (7, 3, "groq")

    def test_timestamp_from_record(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", (), None)
        record.created = 0.0
        data = json.loads(JSONFormatter().format(record))
        assert data["timestamp"] == "1970-01-01T00:00:00+00:00"

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler(self):
        setup_logging("debug", json_output=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_plain_handler(self):
        setup_logging("info", json_output=False)
        assert not isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty", json_output=False)
        assert logging.getLogger().level == logging.INFO

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging("info", json_output=True)
        setup_logging("info", json_output=True)
        assert len(logging.getLogger().handlers) == 1


class TestMetrics:
    def test_payload_lists_counters(self):
        ANALYSIS_RUNS.labels(status="success").inc()
        payload = metrics_payload().decode()
        assert "analysis_runs_total" in payload
        assert "provider_calls_total" in payload
