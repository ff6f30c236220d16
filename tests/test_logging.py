"""Unit tests for expunge.infra.observability.logging."""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from expunge.infra.observability.logging import (
    HANDLER_NAME,
    REDACTED_VALUE,
    LoggingSettings,
    configure_logging,
    get_logger,
    get_logging_settings,
    redact_sensitive,
)


@pytest.mark.unit
class TestLoggingSettings:
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = LoggingSettings()
            assert settings.log_level == "INFO"
            assert settings.log_format == "auto"
            assert settings.renders_json is False

    def test_auto_format_follows_environment(self) -> None:
        assert LoggingSettings(environment="production").renders_json is True
        assert LoggingSettings(environment="staging").renders_json is False

    def test_explicit_format_wins(self) -> None:
        assert LoggingSettings(log_format="json", environment="development").renders_json is True
        assert LoggingSettings(log_format="CONSOLE", environment="production").renders_json is False

    def test_level_is_case_insensitive(self) -> None:
        settings = LoggingSettings(log_level="debug")
        assert settings.log_level == "DEBUG"
        assert settings.level == logging.DEBUG

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(log_level="VERBOSE")

    def test_from_env_vars(self) -> None:
        env = {"LOG_LEVEL": "warning", "LOG_FORMAT": "json", "ENVIRONMENT": "staging"}
        with patch.dict("os.environ", env, clear=True):
            settings = LoggingSettings()
            assert settings.level == logging.WARNING
            assert settings.renders_json is True


@pytest.mark.unit
class TestRedactSensitive:
    @pytest.mark.parametrize("key", ["password", "DATABASE_PASSWORD", "client_secret", "API_KEY"])
    def test_redacts(self, key: str) -> None:
        result = redact_sensitive(None, "info", {"event": "x", key: "value"})
        assert result[key] == REDACTED_VALUE

    def test_keeps_record_identifiers(self) -> None:
        event_dict: dict[str, object] = {
            "event": "user_credential_deleted",
            "record_id": "tok-1",
            "collection": "tokens",
        }
        result = redact_sensitive(None, "info", event_dict)
        assert result["record_id"] == "tok-1"
        assert result["collection"] == "tokens"


@pytest.mark.unit
class TestConfigureLogging:
    def test_configure_from_environment(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            get_logging_settings.cache_clear()
            configure_logging()
        get_logging_settings.cache_clear()

    def test_reconfigure_replaces_root_handler(self) -> None:
        configure_logging(LoggingSettings(log_level="DEBUG"))
        configure_logging(LoggingSettings(log_level="INFO"))

        root = logging.getLogger()
        assert len([h for h in root.handlers if h.get_name() == HANDLER_NAME]) == 1
        assert root.level == logging.INFO

    def test_stdlib_records_render_extra_fields(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="INFO", log_format="json"))

        logging.getLogger("expunge.domain.deletes.bulk").info(
            "group_delete_completed", extra={"deleted": 120, "db_password": "x"}
        )

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["event"] == "group_delete_completed"
        assert event["deleted"] == 120
        assert event["db_password"] == REDACTED_VALUE
        assert event["logger"] == "expunge.domain.deletes.bulk"


@pytest.mark.unit
class TestGetLogger:
    def test_renders_json_lines(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="DEBUG", log_format="json"))

        get_logger("expunge.tests").info("group_delete_chunk", chunk=1, found=50)

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["event"] == "group_delete_chunk"
        assert event["found"] == 50
        assert event["level"] == "info"
        assert event["logger"] == "expunge.tests"

    def test_filters_below_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="WARNING", log_format="json"))

        get_logger("expunge.tests").info("group_delete_chunk")

        assert capsys.readouterr().out == ""

    def test_unnamed_logger(self) -> None:
        configure_logging(LoggingSettings(log_level="DEBUG"))
        assert get_logger() is not None
