import contextvars
import json
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlmigrate.errors import mask_credentials

_run_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)


class RunContextFilter(logging.Filter):
    """Injects run_id from contextvar into the log record."""
    def filter(self, record):
        record.run_id = _run_id_ctx.get()
        return True


@contextmanager
def run_context(run_id: Optional[str] = None) -> Iterator[str]:
    """Context manager binding a migration run id to every log record emitted inside it."""
    run_id = run_id or uuid.uuid4().hex[:12]
    token = _run_id_ctx.set(run_id)
    try:
        yield run_id
    finally:
        _run_id_ctx.reset(token)


def current_run_id() -> Optional[str]:
    return _run_id_ctx.get()


class JsonFormatter(logging.Formatter):
    """Formatter that outputs JSON strings after parsing the LogRecord."""

    _STANDARD_ATTRS = {
        "args", "asctime", "created", "exc_info", "exc_text", "filename",
        "funcName", "levelname", "levelno", "lineno", "module",
        "msecs", "message", "msg", "name", "pathname", "process",
        "processName", "relativeCreated", "stack_info", "thread", "threadName",
        "taskName", "run_id",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Formats the log record as a JSON string.

        Args:
           record (logging.LogRecord): The log record to format.

        Returns:
            str: The JSON-formatted log string.
        """
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": mask_credentials(record.getMessage()),
        }

        if getattr(record, "run_id", None):
            log_record["run_id"] = record.run_id

        if record.exc_info:
            log_record["exception"] = mask_credentials(self.formatException(record.exc_info))

        for key, value in record.__dict__.items():
            if key not in self._STANDARD_ATTRS and not key.startswith("_"):
                log_record[key] = value

        return json.dumps(log_record, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configures the root logger.

    Args:
        level (str): The logging level (default: INFO).
        json_format (bool): Whether to use JSON formatting (default: False).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(RunContextFilter())

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - [%(run_id)s] - %(name)s - %(levelname)s - %(message)s"
        ))

    root_logger.addHandler(handler)

    # SQLAlchemy echoes every statement at INFO once its logger is enabled
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Gets a named logger.

    Args:
        name (str): The name of the logger.

    Returns:
        logging.Logger: The logger instance.
    """
    return logging.getLogger(name)
