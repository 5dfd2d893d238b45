import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from csv_to_cloudkit.common.ids import generate_run_id
from csv_to_cloudkit.common.logging import JsonLineFormatter, build_logger, log_event
from csv_to_cloudkit.common.time_utils import format_request_date


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_format_request_date_drops_fraction_and_uses_z():
    moment = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    assert format_request_date(moment) == "2026-01-02T03:04:05Z"


def test_format_request_date_normalises_offsets_and_naive_values():
    assert format_request_date(datetime(2026, 1, 2, 0, 30, tzinfo=timezone(timedelta(hours=-5)))) == "2026-01-02T05:30:00Z"
    assert format_request_date(datetime(2026, 1, 2, 5, 30)) == "2026-01-02T05:30:00Z"


def test_json_line_formatter_emits_stable_fields():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.run_id = "run-1"
    record.error_code = "REMOTE_ERROR"

    payload = json.loads(JsonLineFormatter().format(record))

    assert payload["message"] == "hello world"
    assert payload["run_id"] == "run-1"
    assert payload["error_code"] == "REMOTE_ERROR"
    assert payload["record"] is None
    assert payload["level"] == "INFO"


def test_build_logger_writes_json_lines_to_file(tmp_path: Path):
    log_path = tmp_path / "logs" / "run.jsonl"
    logger = build_logger("run-log", log_path=log_path, level="DEBUG")

    log_event(logger, "record published", run_id="run-log", record="ABC", event="RECORD_PUBLISHED", status="ok")
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["event"] == "RECORD_PUBLISHED"
