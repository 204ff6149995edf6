"""Tests for the structured logger."""

import json
import logging
import sys

from exelook.logger import ExelookLogger, _JSONFormatter


def _record(**attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="exelook.engine",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="lookup of %s failed",
        args=("app.exe",),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_core_fields(self):
        entry = json.loads(_JSONFormatter().format(_record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "exelook.engine"
        assert entry["message"] == "lookup of app.exe failed"
        assert "timestamp" in entry
        assert "component" not in entry
        assert "extra" not in entry

    def test_context_fields(self):
        record = _record(component="engine", operation="lookup", exelook_extra={"icon_id": 3})
        entry = json.loads(_JSONFormatter().format(record))
        assert entry["component"] == "engine"
        assert entry["operation"] == "lookup"
        assert entry["extra"] == {"icon_id": 3}

    def test_exception_text(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        entry = json.loads(_JSONFormatter().format(record))
        assert "ValueError: boom" in entry["exc_info"]


def _flush(component: str) -> None:
    for handler in logging.getLogger(f"exelook.{component}").handlers:
        handler.flush()


class TestExelookLogger:
    def test_json_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "exelook.log"
        log = ExelookLogger(
            "test-json", log_level="DEBUG", log_file=log_file, json_logs=True, console_output=False
        )
        with log.operation("extract"):
            log.info("Wrote %s", "app.png", icon_id=3)
        log.debug("outside")
        _flush("test-json")

        lines = log_file.read_text(encoding="utf-8").splitlines()
        first, second = (json.loads(line) for line in lines)
        assert first["message"] == "Wrote app.png"
        assert first["component"] == "test-json"
        assert first["operation"] == "extract"
        assert first["extra"] == {"icon_id": 3}
        assert "operation" not in second

    def test_level_filtering(self, tmp_path):
        log_file = tmp_path / "plain.log"
        log = ExelookLogger("test-plain", log_level="WARNING", log_file=log_file, console_output=False)
        log.info("hidden")
        log.warning("shown")
        _flush("test-plain")
        text = log_file.read_text(encoding="utf-8")
        assert "shown" in text
        assert "hidden" not in text

    def test_namespace_and_null_handler(self):
        ExelookLogger("quiet", console_output=False)
        underlying = logging.getLogger("exelook.quiet")
        assert underlying.propagate is False
        assert any(isinstance(h, logging.NullHandler) for h in underlying.handlers)

    def test_recreating_closes_previous_file_handler(self, tmp_path):
        ExelookLogger("reused", log_file=tmp_path / "first.log", console_output=False)
        (previous,) = logging.getLogger("exelook.reused").handlers
        assert previous.stream is not None

        ExelookLogger("reused", log_file=tmp_path / "second.log", console_output=False)
        (current,) = logging.getLogger("exelook.reused").handlers
        assert current is not previous
        assert previous.stream is None

    def test_timed_logs_elapsed(self, tmp_path):
        log_file = tmp_path / "timed.log"
        log = ExelookLogger("timer", log_level="DEBUG", log_file=log_file, console_output=False)
        with log.timed("work"):
            pass
        _flush("timer")
        text = log_file.read_text(encoding="utf-8")
        assert "Started: work" in text
        assert "Finished: work (" in text
