# backend/app/utils/context.py
"""
Request-scoped context for log records.

The correlation middleware stores the request's correlation id and route
here; the logging filter copies both onto every record emitted while the
request is handled. Starlette copies the context into the worker thread
of sync endpoints, so service-layer logs carry the same values.

Usage:
    from app.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")
    get_correlation_id()  # "abc-123"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_request_path_var: ContextVar[str | None] = ContextVar("request_path", default=None)


def get_correlation_id() -> str | None:
    """Correlation id of the current request, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


def get_request_path() -> str | None:
    """"METHOD /path" of the current request, or None."""
    return _request_path_var.get()


def set_request_path(method: str, path: str) -> None:
    _request_path_var.set(f"{method} {path}")


def clear_request_context() -> None:
    """Reset everything set for the current request."""
    _correlation_id_var.set(None)
    _request_path_var.set(None)
