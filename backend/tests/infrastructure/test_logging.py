"""Tests for the logging configuration."""

import logging

import pytest

from src.infrastructure.config.settings import get_settings
from src.infrastructure.logging import (
    configure_testing_logging,
    get_logger,
    reset_correlation_id,
    set_correlation_id,
    setup_logging_configuration,
)
from src.infrastructure.logging import config as logging_config
from src.infrastructure.logging import factory as logging_factory


@pytest.fixture
def console_logging(monkeypatch):
    """Configure the root logger with a console handler whose records are captured."""
    settings = get_settings().model_copy(
        update={"LOG_CONSOLE_ENABLED": True, "LOG_FILE_ENABLED": False, "LOG_CORRELATION_ID": True}
    )
    monkeypatch.setattr(logging_config, "get_settings", lambda: settings)
    monkeypatch.setattr(logging_factory, "_logging_configured", True)

    setup_logging_configuration()
    records = []
    for handler in logging.getLogger().handlers:
        monkeypatch.setattr(handler, "emit", records.append)

    yield records

    configure_testing_logging()


def test_correlation_id_reaches_child_logger_records(console_logging):
    """Test records from module loggers carry the correlation id of the current context."""
    token = set_correlation_id("req-123")
    try:
        get_logger("src.modules.library_element.services").warning("Library element created")
    finally:
        reset_correlation_id(token)

    assert len(console_logging) == 1
    assert console_logging[0].correlation_id == "req-123"


def test_correlation_id_placeholder_outside_requests(console_logging):
    """Test records logged outside a request get a placeholder correlation id."""
    get_logger("src.modules.folder.permissions").warning("Folder lookup")

    assert len(console_logging) == 1
    assert console_logging[0].correlation_id == "no-correlation"
