"""Tests for structlog processors and configuration."""

import logging
from pathlib import Path

from adboard.config.settings import Settings
from adboard.core.context import RequestContext
from adboard.core.logging import (
    add_app_info_processor,
    add_context_processor,
    configure_structlog,
    filter_sensitive_data,
)


class TestFilterSensitiveData:
    def test_masks_connection_string(self):
        event = filter_sensitive_data(
            None, "info", {"event": "mongodb_connected", "mongodb_uri": "mongodb://u:p@h"}
        )

        assert event["mongodb_uri"].startswith("mo")
        assert event["mongodb_uri"].endswith("@h")
        assert "u:p" not in event["mongodb_uri"]

    def test_short_values_fully_masked(self):
        event = filter_sensitive_data(None, "info", {"token": "abc"})
        assert event["token"] == "***"

    def test_nested_dicts(self):
        event = filter_sensitive_data(
            None, "info", {"headers": {"authorization": "Bearer xyz123"}}
        )
        assert event["headers"]["authorization"] != "Bearer xyz123"

    def test_other_fields_untouched(self):
        event = {"event": "comment_created", "comment_id": "abc", "count": 3}
        assert filter_sensitive_data(None, "info", dict(event)) == event


class TestContextProcessors:
    def test_adds_request_context(self):
        with RequestContext(request_id="r1", author_id="0xabc"):
            event = add_context_processor(None, "info", {"event": "x"})

        assert event["request_id"] == "r1"
        assert event["author_id"] == "0xabc"

    def test_explicit_fields_win(self):
        with RequestContext(request_id="r1"):
            event = add_context_processor(None, "info", {"request_id": "explicit"})

        assert event["request_id"] == "explicit"

    def test_app_info(self):
        settings = Settings(_env_file=None, app_name="adboard", environment="testing")

        event = add_app_info_processor(settings)(None, "info", {})

        assert event["app"] == "adboard"
        assert event["environment"] == "testing"


class TestConfigureStructlog:
    def test_creates_log_files(self, tmp_path: Path):
        """Should attach console, main file and error file handlers."""
        settings = Settings(_env_file=None, log_format="json")

        configure_structlog(settings, log_dir=tmp_path)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 3
        assert (tmp_path / "adboard.log").exists()
        assert (tmp_path / "adboard.error.log").exists()
