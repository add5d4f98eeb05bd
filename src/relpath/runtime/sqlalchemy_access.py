"""
SQLAlchemy-backed data access.

Compiles the where dialect to SQL expressions and runs selects through an
async session maker. Includes are resolved by IncludingDataAccess. Without an
explicit session maker the shared one from relpath.service.database is used,
configured by RELPATH_DATABASE_URL.

Usage:
    data_access = SQLAlchemyDataAccess(
        registry,
        models=[Country, City, Person, Product],
    )
    rows = await data_access.find("City", where={"name": "Auckland"}, include="country")
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from sqlalchemy import and_, false, or_, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from ..core.defs import EntityDef
from ..core.errors import DataAccessFailure
from ..core.registry import SchemaRegistry
from ..service.database import get_session_maker
from .data_access import IncludingDataAccess
from .where import field_conditions

logger = logging.getLogger(__name__)


class SQLAlchemyDataAccess(IncludingDataAccess):
    """Data access over SQLAlchemy declarative models keyed by class name."""

    def __init__(
        self,
        registry: SchemaRegistry,
        models: Iterable[type[DeclarativeBase]],
        session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        super().__init__(registry)
        self.session_maker = session_maker or get_session_maker()
        self.models = {model.__name__: model for model in models}

    async def _select(self, entity: EntityDef, where: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
        model = self.models.get(entity.name)
        if model is None:
            raise DataAccessFailure(entity.name, "No model registered")

        stmt = select(model)
        if where:
            stmt = stmt.where(self._compile_where(entity.name, model, where))

        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise DataAccessFailure(entity.name, str(e)) from e

        logger.debug(f"Selected {len(rows)} [{entity.name}] rows")
        return [self._model_to_dict(row) for row in rows]

    def _compile_where(self, entity: str, model: type[DeclarativeBase], where: dict[str, Any]):
        """Compile a where condition to a SQL expression."""
        clauses = []
        for key, value in where.items():
            if key == "and":
                clauses.append(and_(true(), *(self._compile_where(entity, model, sub) for sub in value)))
            elif key == "or":
                clauses.append(or_(false(), *(self._compile_where(entity, model, sub) for sub in value)))
            else:
                column = model.__table__.columns.get(key)
                if column is None:
                    raise DataAccessFailure(entity, f"Unknown field '{key}'")
                for op, operand in field_conditions(value):
                    clauses.append(self._apply_operator(entity, column, op, operand))
        return and_(true(), *clauses)

    def _apply_operator(self, entity: str, column, op: str, operand: Any):
        if op == "eq":
            return column.is_(None) if operand is None else column == operand
        elif op == "neq":
            return column.isnot(None) if operand is None else column != operand
        elif op == "gt":
            return column > operand
        elif op == "gte":
            return column >= operand
        elif op == "lt":
            return column < operand
        elif op == "lte":
            return column <= operand
        elif op in ("in", "inq"):
            return column.in_(list(operand))
        elif op == "nin":
            return column.notin_(list(operand))
        elif op == "between":
            return column.between(operand[0], operand[1])
        elif op == "like":
            return column.like(operand)
        elif op == "ilike":
            return column.ilike(operand)
        raise DataAccessFailure(entity, f"Unsupported operator '{op}'")

    def _model_to_dict(self, instance: DeclarativeBase) -> dict[str, Any]:
        """Convert model instance to a dict of its columns."""
        return {
            column.key: getattr(instance, column.key)
            for column in instance.__table__.columns
        }
