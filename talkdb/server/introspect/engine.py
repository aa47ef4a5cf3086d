"""
SQLAlchemy-backed introspector.

One implementation covers every supported driver by delegating dialect
details to SQLAlchemy's inspector:
- postgres / cockroach: postgresql dialect, default schema "public"
- mysql: pymysql dialect, the connection's database
- sqlite: the main database file

Invariants:
    - Only base tables are listed, never views
    - Column data types are rendered by the dialect (e.g. "INTEGER", "VARCHAR(20)")
    - Statements passed to query() are executed verbatim
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .base import (
    IntrospectedColumn,
    IntrospectedTable,
    IntrospectionError,
    NotConnectedError,
    QueryResult,
    SchemaIntrospector,
)

logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = frozenset(
    {"information_schema", "pg_catalog", "pg_toast", "crdb_internal", "pg_extension",
     "mysql", "performance_schema", "sys"}
)


class EngineIntrospector(SchemaIntrospector):
    """Introspector over a SQLAlchemy engine.

    Attributes:
        url: SQLAlchemy database URL
        schema: Schema to list tables from (None = connection default)
    """

    def __init__(
        self,
        url: str,
        schema: str | None = None,
        pool_size: int = 5,
        max_overflow: int = 20,
    ) -> None:
        self.url = url
        self.schema = schema
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._engine: Engine | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        if self._engine is not None:
            return

        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if not self.url.startswith("sqlite"):
            engine_kwargs.update(pool_size=self._pool_size, max_overflow=self._max_overflow)

        try:
            engine = create_engine(self.url, **engine_kwargs)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise IntrospectionError(f"failed to connect to database: {e}") from e

        self._engine = engine
        logger.info(f"Connected to {engine.url.render_as_string(hide_password=True)}")

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise NotConnectedError("database connection is not established")
        return self._engine

    def get_tables(self) -> list[IntrospectedTable]:
        engine = self._require_engine()
        try:
            inspector = inspect(engine)
            tables = []
            for table_name in sorted(inspector.get_table_names(schema=self.schema)):
                columns = tuple(
                    IntrospectedColumn(name=col["name"], data_type=str(col["type"]))
                    for col in inspector.get_columns(table_name, schema=self.schema)
                )
                tables.append(IntrospectedTable(name=table_name, columns=columns))
        except SQLAlchemyError as e:
            raise IntrospectionError(f"failed to query tables: {e}") from e

        logger.debug(f"Introspected {len(tables)} table(s) from schema {self.schema or 'default'}")
        return tables

    def get_schemas(self) -> list[str]:
        engine = self._require_engine()
        try:
            names = inspect(engine).get_schema_names()
        except SQLAlchemyError as e:
            raise IntrospectionError(f"failed to query schemas: {e}") from e
        return sorted(name for name in names if name not in SYSTEM_SCHEMAS)

    def query(self, sql: str) -> QueryResult:
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                cursor = conn.exec_driver_sql(sql)
                if not cursor.returns_rows:
                    conn.commit()
                    return QueryResult(columns=[], rows=[])
                columns = list(cursor.keys())
                rows = [tuple(row) for row in cursor.fetchall()]
        except SQLAlchemyError as e:
            raise IntrospectionError(f"failed to execute query: {e}") from e

        return QueryResult(columns=columns, rows=rows)
