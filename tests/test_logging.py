"""Tests for structured JSON logging."""

import json
import logging
import sys
from datetime import date
from decimal import Decimal

from app.core.logging import JsonFormatter, get_request_id, set_request_id, setup_logging


def _record(msg="event", **extra):
    rec = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    rec.__dict__.update(extra)
    return rec


def test_masking_database_url_credentials():
    """Test that passwords embedded in database URLs are masked."""
    line = JsonFormatter().format(_record("connect postgresql://ledger:s3cret@db:5432/ledger"))
    payload = json.loads(line)

    assert "s3cret" not in payload["msg"]
    assert "postgresql://ledger:***@db:5432/ledger" in payload["msg"]


def test_masking_bearer_and_pin():
    line = JsonFormatter().format(_record("auth Bearer abcdefghijklmnop pin=4821"))
    payload = json.loads(line)

    assert "Bearer ***" in payload["msg"]
    assert "4821" not in payload["msg"]


def test_masking_sensitive_keys():
    """Test that sensitive keys are masked regardless of value."""
    rec = _record(
        "config",
        config={"password": "hunter2", "pin": "1234", "store_id": "lehua"},
    )
    payload = json.loads(JsonFormatter().format(rec))

    assert payload["extra"]["config"]["password"] == "***"
    assert payload["extra"]["config"]["pin"] == "***"
    # Non-sensitive keys should not be masked
    assert payload["extra"]["config"]["store_id"] == "lehua"


def test_ledger_values_serialized():
    """Decimals, dates and tuples in extra render as JSON-friendly values."""
    rec = _record(
        "supply_view_loaded",
        date=date(2026, 2, 28),
        remaining=Decimal("80.5"),
        failed_sources=("restock",),
        chain_days=3,
    )
    payload = json.loads(JsonFormatter().format(rec))

    assert payload["msg"] == "supply_view_loaded"
    assert payload["extra"]["date"] == "2026-02-28"
    assert payload["extra"]["remaining"] == "80.5"
    assert payload["extra"]["failed_sources"] == ["restock"]
    assert payload["extra"]["chain_days"] == 3


def test_request_id_tracking():
    """Test request ID context tracking."""
    test_id = "test-request-123"
    assert set_request_id(test_id) == test_id
    assert get_request_id() == test_id

    # Generate new UUID
    rid = set_request_id()
    assert rid != test_id
    assert len(rid) == 36


def test_request_id_in_log_record():
    """Test that request_id appears in log output."""
    set_request_id("req-456")
    payload = json.loads(JsonFormatter().format(_record()))
    assert payload["request_id"] == "req-456"


def test_exception_info_in_log():
    """Test that exception info is included in log."""
    try:
        raise ValueError("test error")
    except ValueError:
        rec = _record("error occurred")
        rec.exc_info = sys.exc_info()
        payload = json.loads(JsonFormatter().format(rec))

    assert "ValueError: test error" in payload["exc_info"]


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / "logs" / "app.json"
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging(level="INFO", to_stdout=False, file_path=str(log_file))
        logging.getLogger("supply_ledger.test").info("supply_saved", extra={"rows": 5})
        for h in root.handlers:
            h.flush()

        payload = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert payload["msg"] == "supply_saved"
        assert payload["extra"]["rows"] == 5
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
