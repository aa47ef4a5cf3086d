"""
Query orchestration for TalkDB.

The QueryOrchestrator ties the catalog to the outside world:
- Registration: introspect a live database and store its structure
- Lookup and annotation of catalogued databases
- Questions: render the catalogued schema, translate to SQL, execute it
  on the live connection, and render the rows

A catalogued database is named after the driver it was introspected
through; questions about it are executed on that driver's connection.

Invariants:
    - The orchestrator never mutates catalog entities directly
    - Live connections are opened lazily and reused
    - Blocking database calls run in the default executor

How to change safely:
    - Keep catalog errors propagating unchanged; the HTTP layer maps them
    - Treat translated SQL as untrusted; connections should use a
      read-only database role
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .catalog import Database, FieldKind, MetadataStore
from .config import ConnectionConfig, Driver
from .introspect import (
    EngineIntrospector,
    SchemaIntrospector,
    to_catalog_tables,
)
from .query import rows_to_records
from .translate import SqlTranslator

logger = logging.getLogger(__name__)


class UnknownDriverError(Exception):
    """No live connection is configured for the requested driver."""
    pass


class EmptyQueryError(Exception):
    """The translator could not produce SQL for the question."""
    pass


@dataclass
class QueryAnswer:
    """Result of answering a natural-language question.

    Attributes:
        sql: SQL the translator produced
        records: One {column: value} dict per result row
    """

    sql: str
    records: list[dict[str, str]] = field(default_factory=list)


class QueryOrchestrator:
    """Registers databases and answers questions about them.

    Example:
        >>> orchestrator = QueryOrchestrator(store, introspectors, translator)
        >>> db_id = await orchestrator.register_database("postgres")
        >>> answer = await orchestrator.ask(db_id, "How many orders were placed?")
    """

    def __init__(
        self,
        store: MetadataStore,
        introspectors: dict[Driver, SchemaIntrospector],
        translator: SqlTranslator,
    ) -> None:
        self.store = store
        self.translator = translator
        self._introspectors = dict(introspectors)

    @classmethod
    def from_connections(
        cls,
        store: MetadataStore,
        connections: tuple[ConnectionConfig, ...],
        translator: SqlTranslator,
    ) -> QueryOrchestrator:
        """Build an orchestrator with one EngineIntrospector per connection."""
        introspectors: dict[Driver, SchemaIntrospector] = {
            conn.driver: EngineIntrospector(conn.sqlalchemy_url(), schema=conn.schema)
            for conn in connections
        }
        return cls(store, introspectors, translator)

    @property
    def drivers(self) -> list[str]:
        """Names of the drivers with a configured connection."""
        return sorted(driver.value for driver in self._introspectors)

    def _introspector(self, driver: Driver | str) -> SchemaIntrospector:
        if isinstance(driver, str):
            try:
                driver = Driver.from_str(driver)
            except ValueError as e:
                raise UnknownDriverError(str(e)) from e
        introspector = self._introspectors.get(driver)
        if introspector is None:
            raise UnknownDriverError(f"no connection configured for driver '{driver.value}'")
        if not introspector.is_connected:
            introspector.connect()
        return introspector

    async def register_database(self, driver: Driver | str) -> int:
        """Introspect a live database and add it to the catalog.

        Returns:
            The new catalog database id

        Raises:
            UnknownDriverError: If the driver has no configured connection
            IntrospectionError: If the live database cannot be read
            CatalogError: If the catalog rejects or cannot persist it
        """
        loop = asyncio.get_running_loop()
        introspector = await loop.run_in_executor(None, self._introspector, driver)
        tables = await loop.run_in_executor(None, introspector.get_tables)

        name = driver.value if isinstance(driver, Driver) else Driver.from_str(driver).value
        database = Database(name=name, tables=to_catalog_tables(tables))
        return await loop.run_in_executor(None, self.store.create_new_database, database)

    def get_databases(self) -> list[Database]:
        """All catalogued databases, sorted by id."""
        return self.store.get_all_databases()

    def get_database(self, database_id: int) -> Database:
        """One catalogued database."""
        return self.store.get_database(database_id)

    def set_description(
        self,
        database_id: int,
        description: str,
        field_id: int,
        field_kind: FieldKind,
    ) -> None:
        """Annotate a database, table or column."""
        self.store.set_description(database_id, description, field_id, field_kind)

    async def ask(self, database_id: int, question: str) -> QueryAnswer:
        """Answer a natural-language question about a catalogued database.

        Raises:
            NotFoundError: If the database is not catalogued
            UnknownDriverError: If its driver has no configured connection
            TranslationError: If the translator fails
            EmptyQueryError: If the translator returns no SQL
            IntrospectionError: If the SQL fails to execute
        """
        loop = asyncio.get_running_loop()
        database = await loop.run_in_executor(None, self.store.get_database, database_id)
        logger.info(f"Question for database {database_id}: {question}")

        sql = await self.translator.translate(database.scheme(), question)
        if not sql:
            raise EmptyQueryError(
                f"question cannot be answered with the schema of database {database_id}"
            )

        introspector = await loop.run_in_executor(None, self._introspector, database.name)
        result = await loop.run_in_executor(None, introspector.query, sql)

        return QueryAnswer(sql=sql, records=rows_to_records(result))

    def close(self) -> None:
        """Close every live connection."""
        for introspector in self._introspectors.values():
            introspector.close()
