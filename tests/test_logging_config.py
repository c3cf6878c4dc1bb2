import json
import logging
import sys

from dragprobe.logging_config import (
    JSONFormatter,
    ScenarioFilter,
    StructuredLogger,
    get_logger,
    scenario_logging,
    setup_logging,
)


def make_record(msg="dragged", exc_info=None, **fields):
    record = logging.LogRecord("dragprobe.actions", logging.INFO, __file__, 1, msg, (), exc_info)
    if fields:
        record.extra_fields = fields
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["level"] == "info"
        assert data["logger"] == "dragprobe.actions"
        assert data["msg"] == "dragged"
        assert data["ts"].endswith("Z")

    def test_extra_fields_merged(self):
        data = json.loads(JSONFormatter().format(make_record(scenario="drag_too_far", steps=5)))
        assert data["scenario"] == "drag_too_far"
        assert data["steps"] == 5

    def test_exception_included(self):
        try:
            raise ValueError("bad offset")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "bad offset" in data["exception"]


class TestStructuredLogger:
    def test_get_logger_returns_structured_logger(self):
        assert isinstance(get_logger("dragprobe.tests.structured"), StructuredLogger)

    def test_info_with_attaches_fields(self, caplog):
        logger = get_logger("dragprobe.tests.fields")
        with caplog.at_level(logging.INFO, logger="dragprobe.tests.fields"):
            logger.info_with("Scenario finished", scenario="element_in_div", status="passed")

        record = caplog.records[-1]
        assert record.getMessage() == "Scenario finished"
        assert record.extra_fields == {"scenario": "element_in_div", "status": "passed"}

    def test_disabled_level_is_dropped(self, caplog):
        logger = get_logger("dragprobe.tests.quiet")
        with caplog.at_level(logging.WARNING, logger="dragprobe.tests.quiet"):
            logger.debug_with("pointer moved", x=1)
        assert not caplog.records

    def test_error_with_keeps_traceback(self, caplog):
        logger = get_logger("dragprobe.tests.errors")
        with caplog.at_level(logging.ERROR, logger="dragprobe.tests.errors"):
            try:
                raise RuntimeError("browser crashed")
            except RuntimeError:
                logger.error_with("Scenario errored", exc_info=True, scenario="drag_too_far")

        record = caplog.records[-1]
        assert record.exc_info[0] is RuntimeError
        assert record.extra_fields == {"scenario": "drag_too_far"}

    def test_warning_with(self, caplog):
        logger = get_logger("dragprobe.tests.warnings")
        with caplog.at_level(logging.WARNING, logger="dragprobe.tests.warnings"):
            logger.warning_with("Releasing mouse after failed drag", session_id="s1")
        assert caplog.records[-1].extra_fields == {"session_id": "s1"}


class TestScenarioLogging:
    def test_filter_stamps_current_scenario(self):
        record = make_record()
        with scenario_logging("element_in_div"):
            ScenarioFilter().filter(record)
        assert record.scenario == "element_in_div"

    def test_filter_outside_scenario(self):
        record = make_record()
        ScenarioFilter().filter(record)
        assert record.scenario == "-"

    def test_json_carries_scenario(self):
        with scenario_logging("drag_too_far"):
            data = json.loads(JSONFormatter().format(make_record()))
        assert data["scenario"] == "drag_too_far"

    def test_context_is_restored(self):
        with scenario_logging("outer"):
            with scenario_logging("inner"):
                pass
            data = json.loads(JSONFormatter().format(make_record()))
        assert data["scenario"] == "outer"
        assert "scenario" not in json.loads(JSONFormatter().format(make_record()))


def test_setup_logging_reads_env(monkeypatch, tmp_path):
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    log_file = tmp_path / "run.log"
    monkeypatch.setenv("DRAGPROBE_LOG_LEVEL", "debug")
    monkeypatch.setenv("DRAGPROBE_LOG_JSON", "1")
    monkeypatch.setenv("DRAGPROBE_LOG_FILE", str(log_file))
    try:
        setup_logging()
        assert root.level == logging.DEBUG
        assert all(isinstance(h.formatter, JSONFormatter) for h in root.handlers)
        get_logger("dragprobe.tests.file").info_with("hello", where="file")
        for handler in root.handlers:
            handler.flush()
        assert json.loads(log_file.read_text().splitlines()[-1])["where"] == "file"
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)
