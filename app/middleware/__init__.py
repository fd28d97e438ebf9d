"""
Middleware modules for the survey API.

Provides request processing middleware for:
- Request ID tracking, shared with log records and error bodies
"""

from .request_id import RequestIdMiddleware, RequestIdLogFilter, request_id_ctx

__all__ = [
    "RequestIdMiddleware",
    "RequestIdLogFilter",
    "request_id_ctx",
]
