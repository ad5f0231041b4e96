"""
Logging decorator for storage operations.

Wraps adapter methods so every S3 call shows up as a Starting/Completed or
Starting/Failed pair sharing one ``operation_id``. Service, environment and
the invocation fields are added by the formatter, not here.
"""
import logging
import functools
import time
import uuid
import inspect
from typing import Dict, Any, Optional, Callable, Set

from .log_config import get_logger


# Default sensitive fields blacklist
DEFAULT_SENSITIVE_FIELDS: Set[str] = {
    'secret', 'token', 'password', 'access_key', 'secret_key', 'credentials'
}


def _sanitize_sensitive_data(data: Any, blacklist: Set[str]) -> Any:
    """
    Make a value safe and small enough to log.

    Values under sensitive keys become [REDACTED], raw audio bytes are
    replaced by their length and streams or clients by their type name.
    """
    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if any(s in str(key).lower() for s in blacklist)
            else _sanitize_sensitive_data(value, blacklist)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [_sanitize_sensitive_data(item, blacklist) for item in data]
    if isinstance(data, (bytes, bytearray)):
        return f"[BINARY_DATA_{len(data)}_BYTES]"
    if isinstance(data, (str, int, float, bool)) or data is None:
        return data
    return type(data).__name__


def _bound_arguments(func: Callable, instance: Any, args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    bound = inspect.signature(func).bind(instance, *args, **kwargs)
    bound.apply_defaults()
    return {name: value for name, value in bound.arguments.items() if name != 'self'}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def log_infrastructure_operation(
    operation: str,
    level: str = "INFO",
    include_args: bool = False,
    include_result: bool = False,
    include_performance: bool = True,
    sensitive_fields: Optional[Set[str]] = None
) -> Callable:
    """
    Decorator for synchronous adapter methods.

    Failures are logged at ERROR and re-raised unchanged. A ``StorageError``
    contributes its ``operation`` and ``file_path`` to the failure record.

    Args:
        operation: Operation name
        level: Level for the start and completion records
        include_args: Whether to log call arguments
        include_result: Whether to log the return value
        include_performance: Whether to log the duration on completion
        sensitive_fields: Additional sensitive fields to blacklist
    """
    blacklist = DEFAULT_SENSITIVE_FIELDS | set(sensitive_fields or ())
    log_level = getattr(logging, level.upper(), logging.INFO)

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            component_name = self.__class__.__name__
            logger = get_logger(component_name)

            context = {
                "component": component_name,
                "operation": operation,
                "method": func.__name__,
                "operation_id": f"op_{uuid.uuid4().hex[:8]}"
            }
            if include_args:
                context["arguments"] = _sanitize_sensitive_data(
                    _bound_arguments(func, self, args, kwargs), blacklist
                )

            logger.log(log_level, f"Starting {operation}", extra={
                "extra_fields": {**context, "status": "started"}
            })
            started = time.perf_counter()

            try:
                result = func(self, *args, **kwargs)
            except Exception as e:
                failure = {
                    **context,
                    "status": "failed",
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "duration_ms": _elapsed_ms(started)
                }
                for attribute in ("operation", "file_path"):
                    value = getattr(e, attribute, None)
                    if value:
                        failure[f"error_{attribute}"] = value
                logger.error(f"Failed {operation}", extra={"extra_fields": failure})
                raise

            completion = {**context, "status": "completed"}
            if include_performance:
                completion["duration_ms"] = _elapsed_ms(started)
            if include_result and result is not None:
                completion["result"] = _sanitize_sensitive_data(result, blacklist)
                completion["result_type"] = type(result).__name__

            logger.log(log_level, f"Completed {operation}", extra={"extra_fields": completion})
            return result

        return wrapper
    return decorator
