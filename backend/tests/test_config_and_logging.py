"""Tests for settings validation and the structured logging helpers."""

import json
import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from material_library.core.config import ConfigurationError, Environment, Settings
from material_library.core.logging_config import _JsonFormatter, _SecretFilter, request_id_var


def _record(msg, **extra):
    record = logging.LogRecord("material_library.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSettings:

    def test_storage_root_is_stripped(self):
        assert Settings(storage_root="  /mnt/drive  ").storage_root == "/mnt/drive"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(log_level="LOUD")

    def test_log_level_is_uppercased(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_wildcard_cors_rejected(self):
        with pytest.raises(ValueError):
            Settings(cors_allowed_origins="*").get_cors_origins()

    def test_production_requires_storage_root(self):
        settings = Settings(
            environment=Environment.PRODUCTION,
            storage_root="",
            cors_allowed_origins="https://library.example.org",
        )
        with pytest.raises(ConfigurationError, match="STORAGE_ROOT"):
            settings.validate_production_config()

    def test_production_requires_absolute_storage_root(self):
        settings = Settings(
            environment=Environment.PRODUCTION,
            storage_root="relative/drive",
            cors_allowed_origins="https://library.example.org",
        )
        with pytest.raises(ConfigurationError, match="absolute"):
            settings.validate_production_config()

    def test_production_accepts_valid_config(self, tmp_path):
        settings = Settings(
            environment=Environment.PRODUCTION,
            storage_root=str(tmp_path),
            cors_allowed_origins="https://library.example.org",
        )
        settings.validate_production_config()

    def test_development_tolerates_missing_storage(self):
        Settings(environment=Environment.DEVELOPMENT, storage_root="").validate_production_config()


class TestSecretFilter:

    def test_database_url_password_redacted(self):
        record = _record("Connecting to postgresql://library:hunter2@db:5432/materials")
        _SecretFilter().filter(record)
        assert "hunter2" not in record.msg
        assert "postgresql://library:***@db" in record.msg

    def test_keyword_secrets_redacted(self):
        record = _record("mount failed password=hunter2 token: abc123")
        _SecretFilter().filter(record)
        assert "hunter2" not in record.msg
        assert "abc123" not in record.msg


class TestJsonFormatter:

    def test_extra_fields_are_top_level(self):
        line = _JsonFormatter().format(_record("Folder created", folder_id="folder-abc", path="Sécurité"))
        payload = json.loads(line)
        assert payload["message"] == "Folder created"
        assert payload["level"] == "INFO"
        assert payload["folder_id"] == "folder-abc"
        assert payload["path"] == "Sécurité"
        assert "Sécurité" in line

    def test_request_id_attached(self):
        token = request_id_var.set("req-42")
        try:
            payload = json.loads(_JsonFormatter().format(_record("hello")))
        finally:
            request_id_var.reset(token)
        assert payload["request_id"] == "req-42"

    def test_no_request_id_outside_requests(self):
        payload = json.loads(_JsonFormatter().format(_record("hello")))
        assert "request_id" not in payload
