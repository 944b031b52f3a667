# Core infrastructure
from adboard.core.context import (
    RequestContext,
    clear_context,
    get_author_id,
    get_context,
    get_correlation_id,
    get_request_id,
    get_trace_id,
    set_author_id,
    set_correlation_id,
    set_request_id,
    set_trace_id,
)
from adboard.core.logging import configure_structlog, get_logger
from adboard.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContext",
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_author_id",
    "get_context",
    "get_correlation_id",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "set_author_id",
    "set_correlation_id",
    "set_request_id",
    "set_trace_id",
]
