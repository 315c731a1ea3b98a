from __future__ import annotations

import json
import logging
from datetime import datetime

import pytest

from capstrigger.logsink import (
    PACKAGE_LOGGER,
    AppendFileHandler,
    LoggingInitError,
    configure_logging,
    parse_level,
)
from capstrigger.types import LogConfig

log = logging.getLogger(f"{PACKAGE_LOGGER}.tests")


def read_records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.mark.parametrize(
    "name,level",
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("warning", logging.WARNING),
        ("error", logging.ERROR),
        ("fatal", logging.CRITICAL),
        ("panic", logging.CRITICAL),
        ("", logging.INFO),
        ("loud", logging.INFO),
    ],
)
def test_parse_level(name, level):
    assert parse_level(name) == level


def test_records_are_json_lines(tmp_path):
    target = tmp_path / "trigger.log"
    configure_logging(LogConfig(level="info", name=str(target)))

    log.info("first %s", "record")
    log.warning("second")

    records = read_records(target)
    assert [r["msg"] for r in records] == ["first record", "second"]
    assert [r["level"] for r in records] == ["info", "warn"]
    assert records[0]["logger"] == f"{PACKAGE_LOGGER}.tests"
    stamp = datetime.fromisoformat(records[0]["ts"])
    assert stamp.tzinfo is not None


def test_level_filters_records(tmp_path):
    target = tmp_path / "trigger.log"
    configure_logging(LogConfig(level="error", name=str(target)))
    log.info("hidden")
    log.error("shown")
    assert [r["msg"] for r in read_records(target)] == ["shown"]


def test_exception_text_is_included(tmp_path):
    target = tmp_path / "trigger.log"
    configure_logging(LogConfig(name=str(target)))
    try:
        raise OSError("device gone")
    except OSError:
        log.exception("press failed")
    record = read_records(target)[0]
    assert record["level"] == "error"
    assert "device gone" in record["error"]


def test_file_is_reopened_for_every_record(tmp_path):
    target = tmp_path / "trigger.log"
    configure_logging(LogConfig(name=str(target)))
    log.info("one")
    target.unlink()
    log.info("two")
    assert [r["msg"] for r in read_records(target)] == ["two"]


def test_reconfigure_replaces_previous_handler(tmp_path):
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"
    configure_logging(LogConfig(name=str(first)))
    log.info("to first")
    configure_logging(LogConfig(level="debug", name=str(second)))
    log.debug("to second")

    handlers = [h for h in logging.getLogger(PACKAGE_LOGGER).handlers if isinstance(h, AppendFileHandler)]
    assert len(handlers) == 1
    assert [r["msg"] for r in read_records(first)] == ["to first"]
    assert [r["msg"] for r in read_records(second)] == ["to second"]


def test_unwritable_destination_raises_and_keeps_old_handler(tmp_path):
    good = tmp_path / "good.log"
    configure_logging(LogConfig(name=str(good)))
    with pytest.raises(LoggingInitError):
        configure_logging(LogConfig(name=str(tmp_path / "missing" / "bad.log")))
    log.info("still here")
    assert [r["msg"] for r in read_records(good)] == ["still here"]
