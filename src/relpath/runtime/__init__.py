"""
Runtime module - condition reversal, filter compilation and data access.
"""

from __future__ import annotations

from .data_access import DataAccess, InMemoryDataAccess, IncludingDataAccess
from .filter_compiler import FilterCompiler, compile_filter
from .reverser import ConditionReverser
from .service_client import ServiceDataAccess
from .sqlalchemy_access import SQLAlchemyDataAccess

__all__ = [
    "DataAccess",
    "IncludingDataAccess",
    "InMemoryDataAccess",
    "SQLAlchemyDataAccess",
    "ServiceDataAccess",
    "ConditionReverser",
    "FilterCompiler",
    "compile_filter",
]
