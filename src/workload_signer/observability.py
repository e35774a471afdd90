"""Logging, tracing and metrics for workload-signer.

Logs go through structlog; when a span is active, ``add_trace_context``
injects its trace_id and span_id so log records correlate with traces.

Security:
    - Spans and logs MUST NOT include credential values
    - Exception messages are sanitized before they are recorded on a span

Example:
    >>> from workload_signer.observability import configure_logging, signing_span
    >>> configure_logging(log_level="DEBUG", json_output=False)
    >>> with signing_span("process", container="web", process="nginx"):
    ...     pass
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import INVALID_SPAN_ID, INVALID_TRACE_ID, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.metrics import Counter, Meter
    from opentelemetry.trace import Span, Tracer

logger = structlog.get_logger(__name__)

OTEL_SERVICE_NAME = "workload-signer"
OTEL_SERVICE_VERSION = "0.1.0"

# Span attribute names
ATTR_OPERATION = "signing.operation"
ATTR_CONTAINER = "signing.container"
ATTR_PROCESS = "signing.process"
ATTR_IMAGE = "signing.image"

_meter: Meter | None = None
_processes_counter: Counter | None = None

# Type alias for structlog EventDict
EventDict = MutableMapping[str, Any]

# Sensitive key patterns for redaction
_SENSITIVE_KEY_PATTERN = re.compile(
    r"(password|secret_key|access_key|token|api_key|authorization|credential)"
    r"\s*[=:]\s*\S+",
    re.IGNORECASE,
)
_URL_CREDENTIAL_PATTERN = re.compile(
    r"://[^@/\s]+:[^@/\s]+@",
)
_PASSWORD_FLAG_PATTERN = re.compile(r"(--password)(\s+|=)\S+")

REDACTED = "<REDACTED>"


def sanitize_error_message(msg: str, max_length: int = 500) -> str:
    """Sanitize a message by redacting credentials and truncating.

    Args:
        msg: Raw message to sanitize.
        max_length: Maximum length of returned message.

    Returns:
        Sanitized and truncated message.

    Example:
        >>> sanitize_error_message("casigner --password hunter2 failed")
        'casigner --password <REDACTED> failed'
    """
    sanitized = _URL_CREDENTIAL_PATTERN.sub(f"://{REDACTED}@", msg)
    sanitized = _PASSWORD_FLAG_PATTERN.sub(rf"\1\2{REDACTED}", sanitized)
    sanitized = _SENSITIVE_KEY_PATTERN.sub(
        lambda m: m.group(0).split("=", 1)[0].split(":", 1)[0] + f"={REDACTED}"
        if "=" in m.group(0)
        else m.group(0).split(":", 1)[0] + f": {REDACTED}",
        sanitized,
    )
    return sanitized[:max_length]


def add_trace_context(
    logger: Any,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor adding trace_id and span_id from the active span."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.trace_id != INVALID_TRACE_ID and ctx.span_id != INVALID_SPAN_ID:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog with trace context injection.

    Args:
        log_level: Minimum level to emit (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, render JSON lines. If False, use console format.

    Raises:
        ValueError: If log_level is not a known level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_tracer() -> Tracer:
    """Return the workload-signer OpenTelemetry tracer."""
    return trace.get_tracer(OTEL_SERVICE_NAME, OTEL_SERVICE_VERSION)


def get_meter() -> Meter:
    """Get or create the workload-signer OpenTelemetry meter."""
    global _meter

    if _meter is None:
        from opentelemetry import metrics

        _meter = metrics.get_meter(
            name=OTEL_SERVICE_NAME,
            version=OTEL_SERVICE_VERSION,
        )
        logger.debug("observability.meter_initialized", service=OTEL_SERVICE_NAME)

    return _meter


def _get_processes_counter() -> Counter:
    global _processes_counter

    if _processes_counter is None:
        _processes_counter = get_meter().create_counter(
            name="workload_signer.signing.processes",
            description="Count of processes handled by the signing orchestrator",
            unit="{processes}",
        )

    return _processes_counter


def record_process_outcome(outcome: str) -> None:
    """Count one handled process.

    Args:
        outcome: "signed", or the failure stage ("serialization",
            "persistence", "invocation", "invalid").
    """
    _get_processes_counter().add(1, {"signing.outcome": outcome})


@contextmanager
def signing_span(
    operation: str,
    *,
    container: str | None = None,
    process: str | None = None,
    image: str | None = None,
    extra_attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Context manager for signing operation spans.

    Args:
        operation: Operation name (e.g., "request", "process").
        container: Container name.
        process: Process name.
        image: Image reference being signed.
        extra_attributes: Additional span attributes.

    Yields:
        The active span.
    """
    attributes: dict[str, Any] = {ATTR_OPERATION: operation}
    if container is not None:
        attributes[ATTR_CONTAINER] = container
    if process is not None:
        attributes[ATTR_PROCESS] = process
    if image is not None:
        attributes[ATTR_IMAGE] = image
    if extra_attributes:
        attributes.update(extra_attributes)

    with get_tracer().start_as_current_span(
        f"signing.{operation}",
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.set_attribute("exception.type", type(e).__name__)
            span.set_attribute("exception.message", sanitize_error_message(str(e)))
            raise


__all__ = [
    "OTEL_SERVICE_NAME",
    "REDACTED",
    "add_trace_context",
    "configure_logging",
    "get_meter",
    "get_tracer",
    "record_process_outcome",
    "sanitize_error_message",
    "signing_span",
]
