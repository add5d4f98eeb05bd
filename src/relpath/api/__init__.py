"""
API module - FastAPI endpoints and the request interceptor.
"""

from __future__ import annotations

from .interceptor import RequireFilterInterceptor
from .router import create_app, create_find_router, register_exception_handlers

__all__ = [
    "RequireFilterInterceptor",
    "create_find_router",
    "register_exception_handlers",
    "create_app",
]
