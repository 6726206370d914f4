# backend/app/utils/__init__.py
"""
Cross-cutting utilities:
- logging: setup_logging() with correlation id support
- context: request-scoped correlation id and route

Usage:
    from app.utils import setup_logging, get_correlation_id
"""

from app.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_request_path,
    set_request_path,
    clear_request_context,
)
from app.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_request_path",
    "set_request_path",
    "clear_request_context",
]
