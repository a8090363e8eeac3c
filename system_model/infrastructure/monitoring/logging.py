"""
Structured Logging for the System Model

JSON structured logs with correlation IDs, OpenTelemetry trace context,
topology-specific log fields and sensitive data masking.
"""

import inspect
import json
import logging
import re
import sys
import time
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from functools import wraps
from typing import Any

from opentelemetry import trace

# Context variable for correlation tracking
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Fields rendered under the "topology" key of a JSON log entry
TOPOLOGY_FIELDS = (
    "organization_id",
    "cluster_id",
    "node_id",
    "node_ids",
    "role_id",
    "operation_type",
)

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "correlation_id",
    "trace_id",
    "span_id",
    *TOPOLOGY_FIELDS,
}


@dataclass
class SensitiveDataConfig:
    """Configuration for sensitive data masking."""

    # Credentials that may show up in DSNs or request dumps
    credential_patterns: list[str] = field(
        default_factory=lambda: [
            r"password",
            r"passwd",
            r"pwd",
            r"secret",
            r"api[_-]?key",
            r"access[_-]?token",
            r"authorization",
        ]
    )

    # Replacement text
    mask_replacement: str = "***MASKED***"

    # Fields to completely exclude from logs
    excluded_fields: set[str] = field(default_factory=lambda: {"private_key", "token"})


class TopologyLogRecord(logging.LogRecord):
    """Log record carrying the correlation id and the active trace context."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self.correlation_id = correlation_id_var.get()

        span = trace.get_current_span()
        if span.is_recording():
            span_context = span.get_span_context()
            self.trace_id = format(span_context.trace_id, "032x") if span_context.trace_id else None
            self.span_id = format(span_context.span_id, "016x") if span_context.span_id else None
        else:
            self.trace_id = None
            self.span_id = None


class SensitiveDataMasker:
    """Masks sensitive data in log messages and extra fields."""

    def __init__(self, config: SensitiveDataConfig) -> None:
        self.config = config
        self._compiled_patterns = self._compile_patterns()

    def _compile_patterns(self) -> list[re.Pattern[str]]:
        compiled = []
        for pattern in self.config.credential_patterns:
            # key=value, key: value, "key": "value" and the password part of a DSN
            full_pattern = rf'("{pattern}":\s*"[^"]*"|{pattern}=[^\s&]+|{pattern}:\s*\S+)'
            compiled.append(re.compile(full_pattern, re.IGNORECASE))
        compiled.append(re.compile(r"(?<=://)([^:/\s]+):([^@/\s]+)@"))
        return compiled

    def mask_message(self, message: str) -> str:
        """Mask sensitive data in log message."""
        masked_message = message
        for pattern in self._compiled_patterns:
            masked_message = pattern.sub(lambda m: self._replace_value(m), masked_message)
        return masked_message

    def mask_extra_fields(self, extra: dict[str, Any]) -> dict[str, Any]:
        """Mask sensitive data in extra log fields."""
        if not extra:
            return extra

        masked_extra: dict[str, Any] = {}
        for key, value in extra.items():
            if key.lower() in self.config.excluded_fields:
                continue

            if self._is_sensitive_field(key):
                masked_extra[key] = self.config.mask_replacement
            elif isinstance(value, str):
                masked_extra[key] = self.mask_message(value)
            elif isinstance(value, dict):
                masked_extra[key] = self.mask_extra_fields(value)
            else:
                masked_extra[key] = value

        return masked_extra

    def _is_sensitive_field(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(re.search(pattern, field_lower) for pattern in self.config.credential_patterns)

    def _replace_value(self, match: re.Match[str]) -> str:
        text = match.group(0)
        if text.endswith("@"):
            # user:password@ inside a connection URL
            return f"{match.group(1)}:{self.config.mask_replacement}@"
        if text.startswith('"'):
            key_part = text.split(":", 1)[0]
            return f'{key_part}: "{self.config.mask_replacement}"'
        if "=" in text:
            key_part = text.split("=", 1)[0]
            return f"{key_part}={self.config.mask_replacement}"
        if ":" in text:
            key_part = text.split(":", 1)[0]
            return f"{key_part}: {self.config.mask_replacement}"
        return self.config.mask_replacement


class TopologyJSONFormatter(logging.Formatter):
    """JSON formatter for structured topology logs."""

    def __init__(
        self,
        sensitive_data_config: SensitiveDataConfig | None = None,
        include_extra: bool = True,
        sort_keys: bool = True,
    ):
        super().__init__()
        self.include_extra = include_extra
        self.sort_keys = sort_keys
        self.masker = SensitiveDataMasker(sensitive_data_config or SensitiveDataConfig())

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.masker.mask_message(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        trace_id = getattr(record, "trace_id", None)
        if trace_id:
            log_entry["trace_id"] = trace_id
        span_id = getattr(record, "span_id", None)
        if span_id:
            log_entry["span_id"] = span_id

        topology = {
            name: self._serialize_value(getattr(record, name))
            for name in TOPOLOGY_FIELDS
            if getattr(record, name, None)
        }
        if topology:
            log_entry["topology"] = topology

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_extra:
            extra = {
                key: self._serialize_value(value)
                for key, value in record.__dict__.items()
                if key not in _STANDARD_FIELDS and not key.startswith("_")
            }
            if extra:
                log_entry["extra"] = self.masker.mask_extra_fields(extra)

        return json.dumps(log_entry, sort_keys=self.sort_keys, default=self._serialize_value)

    def _serialize_value(self, value: Any) -> Any:
        """Serialize complex values for JSON output."""
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (set, frozenset, tuple)):
            return sorted(value) if isinstance(value, (set, frozenset)) else list(value)
        if hasattr(value, "__dict__"):
            return str(value)
        return value


# Correlation ID management
def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    """Get current correlation ID."""
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str, None, None]:
    """Context manager for correlation ID scope."""
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)


_IDENTIFIER_NAMES = ("organization_id", "cluster_id", "node_id", "node_ids", "role_id")


def _identifiers_from_call(
    signature: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Collect topology identifiers from a coordinator call's arguments."""
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        return {}

    found: dict[str, Any] = {}
    arguments = bound.arguments
    for name in _IDENTIFIER_NAMES:
        if arguments.get(name):
            found[name] = arguments[name]
            continue
        # Identifiers carried by request objects
        for value in arguments.values():
            attribute = getattr(value, name, None)
            if attribute and isinstance(attribute, (str, list)):
                found[name] = attribute
                break
    return found


def log_coordinator_operation(operation_type: str, level: int = logging.INFO) -> Any:
    """
    Decorator timing a coordinator operation and logging its outcome.

    Identifiers are picked up from arguments named after them or from
    attributes of request objects. Failures are logged and re-raised.
    """

    def decorator(func: Any) -> Any:
        logger = logging.getLogger(func.__module__)
        signature = inspect.signature(func)

        def context(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
            return {
                "operation_type": operation_type,
                **_identifiers_from_call(signature, args, kwargs),
            }

        def finished(extra: dict[str, Any], started: float, error: Exception | None) -> None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if error is None:
                logger.log(
                    level,
                    f"Operation {operation_type} completed successfully",
                    extra={**extra, "duration_ms": elapsed_ms, "status": "success"},
                )
                return
            logger.error(
                f"Operation {operation_type} failed: {error}",
                extra={
                    **extra,
                    "duration_ms": elapsed_ms,
                    "status": "error",
                    "error_type": type(error).__name__,
                },
            )

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            extra = context(args, kwargs)
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                finished(extra, started, e)
                raise
            finished(extra, started, None)
            return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            extra = context(args, kwargs)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                finished(extra, started, e)
                raise
            finished(extra, started, None)
            return result

        return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper

    return decorator


def setup_structured_logging(
    level: str = "INFO",
    format_type: str = "json",
    sensitive_data_config: SensitiveDataConfig | None = None,
    log_file: str | None = None,
) -> None:
    """
    Setup structured logging for the system model service.

    Args:
        level: Logging level
        format_type: Formatter type ('json' or 'text')
        sensitive_data_config: Sensitive data masking configuration
        log_file: Optional log file path
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter: TopologyJSONFormatter | logging.Formatter
    if format_type == "json":
        formatter = TopologyJSONFormatter(sensitive_data_config)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(getattr(logging, level.upper()))

    # Every record gets correlation and trace fields
    logging.setLogRecordFactory(TopologyLogRecord)

    logging.info("Structured logging configured successfully")
