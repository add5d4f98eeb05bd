"""
Service module - internal find endpoint and database utilities.
"""

from __future__ import annotations

from .database import close_db, get_engine, get_session_maker, init_db
from .internal_api import InternalRouter, create_internal_router

__all__ = [
    # Database
    "get_engine",
    "get_session_maker",
    "init_db",
    "close_db",
    # Internal API
    "InternalRouter",
    "create_internal_router",
]
