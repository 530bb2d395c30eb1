"""Centralized instrumentation for release-notary.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import os
import sys
from functools import wraps
from typing import TYPE_CHECKING, Any, Literal, ParamSpec, TypeVar

# Third-party (alphabetical)
import logfire

if TYPE_CHECKING:
    from collections.abc import Callable

P = ParamSpec("P")
"""Parameter specification for traced decorators."""

R = TypeVar("R")
"""Type variable for traced return values."""

__all__ = ("configure_instrumentation", "get_logger", "traced", "Metrics")


class Metrics:
    """Centralized metrics recording.

    Provides methods for recording notarization events consistently
    across backends and the waiter.
    """

    @staticmethod
    def record_submission(backend: str, artifact: str, request_id: str) -> None:
        """Record an accepted upload."""
        logfire.info("notary_submission", backend=backend, artifact=artifact, request_id=request_id)

    @staticmethod
    def record_poll(request_id: str, attempt: int, raw_status: str) -> None:
        """Record one status poll."""
        logfire.info("notary_poll", request_id=request_id, attempt=attempt, raw_status=raw_status)

    @staticmethod
    def record_outcome(request_id: str, outcome: str, attempts: int, elapsed_s: float) -> None:
        """Record how the polling loop ended."""
        logfire.info("notary_outcome", request_id=request_id, outcome=outcome, attempts=attempts, elapsed_s=elapsed_s)


def configure_instrumentation(*, service_name: str = "release-notary", environment: str | None = None, send_to_logfire: bool | Literal["if-token-present"] | None = "if-token-present") -> None:
    """Configure global instrumentation settings.

    This function should be called once at application startup.

    Args:
        service_name: Name of the service for tracing.
        environment: Deployment environment (dev, ci, release).
        send_to_logfire: Whether to send telemetry to Logfire.
    """
    environment = environment or os.getenv("ENVIRONMENT", "development")

    # stdout carries request ids and reports for scripts; console spans go to stderr.
    logfire.configure(
        service_name=service_name,
        environment=environment,
        send_to_logfire=send_to_logfire,
        console=logfire.ConsoleOptions(output=sys.stderr),
    )
    logfire.instrument_httpx()


def get_logger(name: str) -> logfire.Logfire:
    """Get a logger with component-specific settings.

    Args:
        name: Component name (e.g., 'adapters.runner', 'services.notarization').

    Returns:
        Configured Logfire instance.
    """
    return logfire.with_settings(tags=[f"component:{name}"])


# =============================================================================
# Span Decorators
# =============================================================================
def traced(name: str | None = None, *, record_args: bool = True, record_result: bool = True) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to add tracing to a function.

    Args:
        name: Span name (defaults to function name).
        record_args: Whether to record function arguments.
        record_result: Whether to record return value.

    Returns:
        Decorated function with tracing.

    Example:
        >>> @traced('notarytool.info')
        ... def query_status(self, receipt: SubmissionReceipt) -> StatusReport:
        ...     ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        span_name = name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            attributes: dict[str, Any] = {}
            if record_args:
                attributes["args"] = _serialize_args(args, kwargs)

            with logfire.span(span_name, **attributes) as span:
                try:
                    result = func(*args, **kwargs)
                    if record_result:
                        span.set_attribute("result", _serialize_result(result))
                    return result
                except Exception as e:
                    span.set_attribute("error", str(e))
                    span.set_attribute("error_type", type(e).__name__)
                    raise

        return wrapper

    return decorator


# =============================================================================
# Helper Functions
# =============================================================================
def _serialize_args(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """Serialize function arguments for logging."""
    parts = [repr(a)[:100] for a in args]
    parts.extend(f"{k}={repr(v)[:100]}" for k, v in kwargs.items())
    return ", ".join(parts)[:500]


def _serialize_result(result: Any) -> str:
    """Serialize function result for logging."""
    return repr(result)[:500]
