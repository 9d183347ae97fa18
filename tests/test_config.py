"""Tests for settings and logging setup."""

import json
import logging

import pytest
from pydantic import ValidationError

from src.config import Settings
from src.logging_config import JsonFormatter, configure_logging


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.grpc_port == 50051
    assert settings.http_port == 8080
    assert settings.shutdown_grace_seconds == 30.0


def test_default_database_url_names_the_driver():
    default = Settings.model_fields["database_url"].default

    assert default.startswith("postgresql+psycopg2://")


def test_environment_helpers_are_gone():
    assert not hasattr(Settings, "is_production")
    assert not hasattr(Settings, "is_development")


def test_production_rejects_localhost_database():
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            environment="production",
            database_url="postgresql://u:p@localhost:5432/users",
        )


def test_rejects_unknown_log_format():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_format="xml")


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        "src.services.user_service", logging.INFO, __file__, 1, "User created", (), None
    )
    record.user_id = "abc"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "User created"
    assert payload["level"] == "info"
    assert payload["logger"] == "src.services.user_service"
    assert payload["user_id"] == "abc"


def test_configure_logging_replaces_root_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("debug", "text")

        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
