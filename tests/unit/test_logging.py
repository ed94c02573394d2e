import json
import logging

from sqlmigrate.logger import JsonFormatter, RunContextFilter, configure_logging, current_run_id, run_context


def _record(message, **extra):
    record = logging.LogRecord("sqlmigrate.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_masks_credentials_and_keeps_extras():
    # Validates structured output because JSON logs are shipped to collectors.
    # Arrange
    record = _record("connecting to postgresql://u:secret@h/db", table="users")
    RunContextFilter().filter(record)

    # Act
    payload = json.loads(JsonFormatter().format(record))

    # Assert
    assert payload["message"] == "connecting to postgresql://u:***@h/db"
    assert payload["level"] == "INFO"
    assert payload["table"] == "users"
    assert "run_id" not in payload


def test_run_context_binds_run_id_to_records():
    # Arrange
    record = _record("hello")

    # Act
    with run_context("abc123") as run_id:
        RunContextFilter().filter(record)
        inside = current_run_id()

    # Assert
    assert run_id == "abc123"
    assert inside == "abc123"
    assert record.run_id == "abc123"
    assert current_run_id() is None
    assert json.loads(JsonFormatter().format(record))["run_id"] == "abc123"


def test_run_context_generates_an_id_when_none_given():
    with run_context() as run_id:
        assert run_id
        assert current_run_id() == run_id


def test_configure_logging_installs_single_handler():
    # Act
    configure_logging(level="debug", json_format=True)
    configure_logging(level="warning", json_format=True)

    # Assert
    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
