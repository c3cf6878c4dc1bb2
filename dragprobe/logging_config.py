import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Name of the scenario being run, stamped onto every record logged meanwhile
_current_scenario: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "dragprobe_scenario", default=None
)

TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s [%(scenario)s]: %(message)s"


@contextmanager
def scenario_logging(name: str):
    token = _current_scenario.set(name)
    try:
        yield
    finally:
        _current_scenario.reset(token)


class ScenarioFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "scenario"):
            record.scenario = _current_scenario.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        scenario = getattr(record, "scenario", None) or _current_scenario.get()
        if scenario and scenario != "-":
            log_data["scenario"] = scenario

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StructuredLogger(logging.Logger):
    """Logger whose ``*_with`` methods attach keyword fields to the record."""

    def _log_with_fields(self, level: int, msg: str, fields: Dict[str, Any], exc_info=None):
        if not self.isEnabledFor(level):
            return
        self._log(level, msg, (), exc_info=exc_info, extra={"extra_fields": fields})

    def info_with(self, msg: str, **fields):
        self._log_with_fields(logging.INFO, msg, fields)

    def debug_with(self, msg: str, **fields):
        self._log_with_fields(logging.DEBUG, msg, fields)

    def warning_with(self, msg: str, **fields):
        self._log_with_fields(logging.WARNING, msg, fields)

    def error_with(self, msg: str, exc_info=None, **fields):
        self._log_with_fields(logging.ERROR, msg, fields, exc_info=exc_info)


logging.setLoggerClass(StructuredLogger)


def setup_logging(
    level: str = None,
    json_format: bool = None,
    log_file: str = None
):
    level = level or os.environ.get("DRAGPROBE_LOG_LEVEL", "INFO")
    if json_format is None:
        json_format = os.environ.get("DRAGPROBE_LOG_JSON", "0") == "1"
    log_file = log_file or os.environ.get("DRAGPROBE_LOG_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")

    # stderr keeps `dragprobe run --json` output parseable
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        # The file always gets JSON lines so runs can be diffed
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        if handler.formatter is None:
            handler.setFormatter(formatter)
        handler.addFilter(ScenarioFilter())
        root_logger.addHandler(handler)

    for noisy in ("uvicorn", "uvicorn.access", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> StructuredLogger:
    return logging.getLogger(name)
