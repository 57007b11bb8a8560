"""Warehouse query runner backed by SQLAlchemy."""

import time
from typing import Any, Dict, List, Optional

import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from snx_api.core.exceptions import QueryError

logger = structlog.get_logger(__name__)


class WarehouseRunner:
    """Executes parameterized SQL against the analytics warehouse.

    SQLAlchemy's engine is synchronous, so every query runs on the
    threadpool and the event loop stays free.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.logger = logger.bind(component="warehouse")

    @classmethod
    def from_url(cls, database_url: str, pool_size: int = 10, max_overflow: int = 20,
                 pool_timeout: int = 30, echo: bool = False) -> "WarehouseRunner":
        engine = create_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,
            echo=echo,
        )
        return cls(engine)

    async def run_query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Run a query and return its rows verbatim.

        Args:
            sql: SQL text with :named parameters
            params: Bound parameter values

        Returns:
            List of row dictionaries keyed by column name

        Raises:
            QueryError: on any driver or database failure
        """
        return await run_in_threadpool(self._execute, sql, params or {})

    def _execute(self, sql: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        start = time.time()
        self.logger.debug("Executing query", query=sql, params=params)

        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(sql), params)
                rows = [dict(row._mapping) for row in result]
        except SQLAlchemyError as e:
            self.logger.error("Query failed", query=sql, params=params, error=str(e))
            raise QueryError(f"Warehouse query failed: {e.__class__.__name__}", query=sql) from e

        self.logger.debug("Query completed",
                          row_count=len(rows),
                          duration_ms=round((time.time() - start) * 1000, 1))
        return rows

    def close(self):
        self.engine.dispose()
        self.logger.info("Warehouse engine disposed")
