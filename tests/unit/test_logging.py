from __future__ import annotations

import json
import logging

import pytest

from sqlite_entity.utils.logging import (
    PACKAGE_LOGGER,
    ConsoleFormatter,
    JsonFormatter,
    _json_formatter,
    configure_logging,
)

EXPECTED_ROWS = 10


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.table = "Human"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["table"] == "Human"
    assert "lineno" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"column": "Age"}

    payload = json.loads(_json_formatter(record))

    assert payload["column"] == "Age"


def test_json_formatter_renders_non_json_values_as_text() -> None:
    record = _record("[CREATE TABLE] Human")
    record.db_path = object()

    payload = json.loads(_json_formatter(record))

    assert payload["message"] == "[CREATE TABLE] Human"
    assert isinstance(payload["db_path"], str)


def test_console_formatter_appends_context_in_fixed_order() -> None:
    record = _record("[ADD COLUMN] Human.Age")
    record.column = "Age"
    record.table = "Human"
    record.sql = 'ALTER TABLE "Human" ADD COLUMN "Age" INTEGER'

    line = ConsoleFormatter().format(record)

    assert line.endswith("| INFO | test.logger | [ADD COLUMN] Human.Age | table=Human column=Age")


def test_console_formatter_without_context_is_a_plain_line() -> None:
    line = ConsoleFormatter().format(_record("[CONNECTION OPEN]"))

    assert line.endswith("| INFO | test.logger | [CONNECTION OPEN]")


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_configure_logging_targets_the_package_logger_only(package_logger) -> None:
    root_handlers = list(logging.getLogger().handlers)

    configure_logging(level="DEBUG", json_logs=True)

    (handler,) = package_logger.handlers
    assert isinstance(handler.formatter, JsonFormatter)
    assert package_logger.level == logging.DEBUG
    assert package_logger.propagate is False
    assert logging.getLogger().handlers == root_handlers


def test_configure_logging_uses_console_lines_by_default(package_logger) -> None:
    configure_logging(level="WARNING")

    (handler,) = package_logger.handlers
    assert isinstance(handler.formatter, ConsoleFormatter)
    assert package_logger.level == logging.WARNING
