import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler

# 由 TraceLogMiddleware 在每个请求里设置，formatter 自动带上
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

# httpx 每个请求都打 INFO，轮询时太吵
_NOISY_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; dict messages are merged into the top level."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        event = record.msg if isinstance(record.msg, dict) else {"message": record.getMessage()}
        line = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
        }
        trace_id = trace_id_var.get()
        if trace_id is not None:
            line["trace_id"] = trace_id
        line.update(event)

        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(line, ensure_ascii=True, default=str)


def _rotating_file_handler(path: str, retention_days: int) -> logging.Handler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return TimedRotatingFileHandler(path, when="D", interval=1, backupCount=retention_days, encoding="utf-8")


def setup_logging(service_name: str, log_dir: str, level: str, retention_days: int) -> None:
    """Route the root logger to stdout and ``<log_dir>/<service_name>.log`` as JSON lines. Safe to call twice."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    formatter = JsonFormatter(service_name)
    handlers = [
        _rotating_file_handler(os.path.join(log_dir, f"{service_name}.log"), retention_days),
        logging.StreamHandler(sys.stdout),
    ]

    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True


def mask_secret(value: str | None) -> str | None:
    if not value:
        return value
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}****{value[-4:]}"


_CONFIGURED = False
