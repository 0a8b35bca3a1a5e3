from __future__ import annotations

import json
import logging

from sakila_admin.utils.logging import (
    REDACTED,
    ConsoleFormatter,
    RedactSecretsFilter,
    _json_formatter,
    configure_logging,
    get_logger,
)

EXPECTED_ROWS = 25
EXPECTED_PAGE = 2


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="page fetched",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.table = "category"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "page fetched"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["table"] == "category"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"page": EXPECTED_PAGE}

    payload = json.loads(_json_formatter(record))

    assert payload["page"] == EXPECTED_PAGE


def test_json_formatter_serialises_non_json_values() -> None:
    record = _record()
    record.code = None
    record.when = object()

    payload = json.loads(_json_formatter(record))

    assert payload["code"] is None
    assert isinstance(payload["when"], str)


def test_configure_logging_sets_root_level() -> None:
    configure_logging(level="WARNING", json_logs=True)
    try:
        assert logging.getLogger().level == logging.WARNING
        assert get_logger("sakila_admin.test").getEffectiveLevel() == logging.WARNING
    finally:
        configure_logging(level="INFO")


def test_console_formatter_appends_extra_fields() -> None:
    record = _record()
    record.table = "film"
    record.page = EXPECTED_PAGE

    line = ConsoleFormatter("%(levelname)s | %(message)s").format(record)

    assert line == "INFO | page fetched | table=film page=2"


def test_secret_fields_are_masked_before_formatting() -> None:
    record = _record()
    record.dsn = "postgresql://postgres:hunter2@db/sakila"
    record.extra = {"db_password": "hunter2", "table": "film"}

    assert RedactSecretsFilter().filter(record) is True
    payload = json.loads(_json_formatter(record))

    assert payload["dsn"] == REDACTED
    assert payload["db_password"] == REDACTED
    assert payload["table"] == "film"
    assert "hunter2" not in json.dumps(payload)


def test_noisy_third_party_loggers_are_quietened() -> None:
    configure_logging(level="DEBUG")
    try:
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
    finally:
        configure_logging(level="INFO")
