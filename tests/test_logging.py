import json
import logging
import sys

from polyglot_rag.logging_config import AUDIT_LOGGER_NAME, MinimalJSONFormatter, configure_logging
from polyglot_rag.telemetry import emit_ingest_event, log_event, traced_duration


def make_record(msg, **extra):
    record = logging.LogRecord("polyglot_rag.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_serialises_dict_messages():
    payload = json.loads(MinimalJSONFormatter().format(make_record({"step": "ingest", "chunks": 3})))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "polyglot_rag.test"
    assert payload["step"] == "ingest"
    assert payload["chunks"] == 3
    assert payload["ts"].endswith("Z")


def test_formatter_includes_extra_fields_and_text():
    payload = json.loads(MinimalJSONFormatter().format(make_record("hello", session_id="s1")))

    assert payload["message"] == "hello"
    assert payload["session_id"] == "s1"


def test_log_event_schema(caplog):
    caplog.set_level(logging.INFO, logger="polyglot_rag.telemetry")

    emit_ingest_event("ingest.file.complete", file_name="lease.txt", session_id="s1", chunks=4, duration_ms=1.23456)

    event = caplog.records[-1].msg
    assert event["step"] == "ingest.file.complete"
    assert event["session_id"] == "s1"
    assert event["duration_ms"] == 1.235
    assert event["details"]["chunks"] == 4


def test_traced_duration_reports_failure_once(caplog):
    caplog.set_level(logging.INFO, logger="polyglot_rag.telemetry")

    try:
        with traced_duration("index.build", session_id="s1"):
            raise ValueError("broken")
    except ValueError:
        pass

    steps = [record.msg["step"] for record in caplog.records]
    assert steps == ["index.build.start", "index.build.failed"]
    assert caplog.records[1].levelno == logging.INFO
    assert caplog.records[1].msg["error_type"] == "ValueError"
    assert "exc" not in caplog.records[1].msg


def test_traced_duration_reports_completion(caplog):
    caplog.set_level(logging.INFO, logger="polyglot_rag.telemetry")

    with traced_duration("index.build", file="a.txt"):
        pass

    assert [record.msg["step"] for record in caplog.records] == ["index.build.start", "index.build.complete"]
    assert caplog.records[-1].msg["duration_ms"] >= 0.0


def test_formatter_renders_exceptions_once():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("polyglot_rag.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

    payload = json.loads(MinimalJSONFormatter().format(record))

    assert payload["message"] == "failed"
    assert "RuntimeError: boom" in payload["exc"]


def test_log_event_accepts_string_errors(caplog):
    caplog.set_level(logging.INFO, logger="polyglot_rag.telemetry")

    log_event(None, "custom", level="warning", exc="plain text")

    assert caplog.records[-1].levelno == logging.WARNING
    assert caplog.records[-1].msg["exc"] == "plain text"


def test_audit_records_are_written_to_log_dir(tmp_path, service):
    audit_path = configure_logging(log_dir=tmp_path)

    service.ingest_bytes("audit-session", b"The sky is blue. Water is wet.", "sky.txt")
    for handler in logging.getLogger(AUDIT_LOGGER_NAME).handlers:
        handler.flush()

    assert audit_path == tmp_path / "audit.log"
    lines = audit_path.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert records[-1]["event"] == "ingest"
    assert records[-1]["session_id"] == "audit-session"
    assert records[-1]["file_name"] == "sky.txt"
