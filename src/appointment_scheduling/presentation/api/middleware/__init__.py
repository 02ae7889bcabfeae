"""Middleware module for appointment scheduling API."""

from .logging import RequestResponseLoggingMiddleware

__all__ = [
    "RequestResponseLoggingMiddleware"
]
