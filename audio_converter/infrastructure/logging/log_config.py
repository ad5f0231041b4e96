"""
Logging configuration for the audio converter.

All loggers live under the ``audio-converter`` namespace and share one
stdout handler, configured once per process. Production output is one JSON
object per line for CloudWatch; everywhere else it is colored text.

Fields bound with ``bind_invocation_context`` (request id, bucket, object
name) are stamped on every record emitted while one Lambda invocation runs,
including records from ffmpeg pump threads.
"""
import logging
import sys
import json
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from audio_converter.infrastructure.config.infrastructure_settings import converter_settings


ROOT_LOGGER_NAME = "audio-converter"

_invocation_context: ContextVar[Dict[str, Any]] = ContextVar("invocation_context", default={})


def bind_invocation_context(**fields: Any) -> Token:
    """Add fields to every record logged in the current context."""
    return _invocation_context.set({**_invocation_context.get(), **fields})


def reset_invocation_context(token: Token) -> None:
    _invocation_context.reset(token)


class InvocationContextFilter(logging.Filter):
    """Copies the bound invocation fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.invocation = _invocation_context.get()
        return True


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = dict(getattr(record, 'invocation', None) or {})
    fields.update(getattr(record, 'extra_fields', None) or {})
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with invocation and extra fields inlined."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": converter_settings.service_name,
            "environment": converter_settings.environment,
            "location": f"{record.module}.{record.funcName}:{record.lineno}"
        }
        log_entry.update(_record_fields(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for local runs and tests."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)

        color = self.LEVEL_COLORS.get(record.levelname)
        if color:
            line = line.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)

        fields = _record_fields(record)
        if fields:
            line += " | " + " | ".join(f"{k}={v}" for k, v in fields.items())

        return line


class LoggingManager:
    """Singleton manager for logging configuration."""

    _instance: Optional['LoggingManager'] = None
    _configured: bool = False

    def __new__(cls) -> 'LoggingManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _configure_logging(self) -> None:
        if self._configured:
            return

        log_level = getattr(logging, converter_settings.log_level.upper(), logging.INFO)
        use_json = converter_settings.is_production_env

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(JSONFormatter() if use_json else DevelopmentFormatter())
        handler.addFilter(InvocationContextFilter())

        app_logger = logging.getLogger(ROOT_LOGGER_NAME)
        app_logger.setLevel(log_level)
        app_logger.addHandler(handler)
        # Lambda installs its own root handler; keep our records out of it
        app_logger.propagate = False

        for noisy in ("boto3", "botocore", "s3transfer", "urllib3"):
            third_party = logging.getLogger(noisy)
            if third_party.level < logging.WARNING:
                third_party.setLevel(logging.WARNING)

        self._configured = True

        app_logger.debug("Logging configured", extra={'extra_fields': {
            "log_level": logging.getLevelName(log_level),
            "formatter": "json" if use_json else "development"
        }})

    def get_logger(self, name: str) -> logging.Logger:
        """Get a configured logger under the audio-converter namespace."""
        self._configure_logging()

        if not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"

        return logging.getLogger(name)


logging_manager = LoggingManager()


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Example:
        logger = get_logger("S3ObjectStorage")
        # logger name: "audio-converter.S3ObjectStorage"
    """
    return logging_manager.get_logger(name)
