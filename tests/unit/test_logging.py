from __future__ import annotations

import json
import logging
import sys

from perfmock.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_STATUS = 200


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
    record.status_code = EXPECTED_STATUS
    record.path = "/api/records"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["service"] == "perfmock"
    assert payload["timestamp"].endswith("Z")
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["status_code"] == EXPECTED_STATUS
    assert payload["path"] == "/api/records"
    assert "pathname" not in payload
    assert "lineno" not in payload


def test_json_formatter_keeps_dict_extras_nested() -> None:
    record = _record()
    record.latency = {"minMs": 1, "maxMs": 2}

    payload = json.loads(_json_formatter(record))

    assert payload["latency"] == {"minMs": 1, "maxMs": 2}
    assert "minMs" not in payload


def test_json_formatter_renders_exceptions_and_unserialisable_values() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            name="test.logger",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="failed",
            args=(),
            exc_info=sys.exc_info(),
        )
    record.sections = {"latency"}

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: boom" in payload["exc_info"]
    assert payload["sections"] == "{'latency'}"


def _uses_json(logger: logging.Logger) -> bool:
    return any(isinstance(handler.formatter, JsonFormatter) for handler in logger.handlers)


def test_configure_logging_sets_root_level_and_formatter() -> None:
    root = logging.getLogger()

    configure_logging(level="debug", json_logs=True)
    assert root.level == logging.DEBUG
    assert _uses_json(root)

    # force=False keeps the existing handlers and only adjusts the level.
    configure_logging(level="INFO", json_logs=False, force=False)
    assert root.level == logging.INFO
    assert _uses_json(root)

    configure_logging(level="INFO", json_logs=False)
    assert not _uses_json(root)
