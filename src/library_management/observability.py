"""Logfire tracing for library circulation operations.

Tracing is off unless ``observability_enabled`` is set. Until
``initialize_observability`` has configured logfire, the decorators below
call straight through without opening spans.
"""

import functools
import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import logfire

from .config import LibraryConfig
from .models.outcome import Outcome

logger = logging.getLogger(__name__)


class _TracingState:
    """Whether logfire has been configured in this process."""

    enabled: bool = False


def initialize_observability(config: LibraryConfig) -> bool:
    """Configure logfire if the configuration asks for it.

    Returns:
        True if tracing is now active
    """
    if not config.observability_enabled:
        logger.debug("Observability disabled via configuration")
        return False

    logfire.configure(
        service_name=config.server_name,
        service_version=config.server_version,
        send_to_logfire="if-token-present",
        console=False,
    )
    _TracingState.enabled = True
    logger.info("Logfire tracing enabled for %s", config.server_name)
    return True


def reset_observability() -> None:
    """Stop opening spans (useful for testing)."""
    _TracingState.enabled = False


def tracing_enabled() -> bool:
    return _TracingState.enabled


def trace_operation(operation: str):
    """Decorator to trace a library operation in a ``library.<operation>`` span."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _TracingState.enabled:
                return func(*args, **kwargs)

            with logfire.span(
                f"library.{operation}",
                operation=operation,
                **_input_attributes(signature, args, kwargs),
            ) as span:
                start_time = datetime.now()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("operation.error", str(e))
                    raise

                span.set_attribute(
                    "operation.duration_ms", (datetime.now() - start_time).total_seconds() * 1000
                )
                _add_result_attributes(span, result)
                return result

        return wrapper

    return decorator


def _input_attributes(
    signature: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Span attributes for the call arguments (``self`` excluded)."""
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        return {}

    return {
        f"input.{name}": value
        for name, value in bound.arguments.items()
        if name != "self" and isinstance(value, str | int | float | bool)
    }


def _add_result_attributes(span: Any, result: Any) -> None:
    if isinstance(result, Outcome):
        span.set_attribute("outcome.ok", result.ok)
        if result.reason is not None:
            span.set_attribute("outcome.reason", result.reason.value)
    elif hasattr(result, "total_repairs"):
        span.set_attribute("result.total_repairs", result.total_repairs)
