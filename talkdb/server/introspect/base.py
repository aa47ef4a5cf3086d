"""
Base interface and types for live-database introspection.

An introspector wraps one live connection and supplies:
- The raw table/column list used when a database is registered
- Ad-hoc query execution for translated SQL

Introspectors know nothing about the catalog's ids; the catalog knows
nothing about SQL dialects or connections.

Invariants:
    - Tables are returned ordered by name, columns in ordinal order
    - get_tables() and query() require connect() to have succeeded
    - Driver failures surface as IntrospectionError

How to change safely:
    - New backends subclass SchemaIntrospector and implement every method
    - Keep to_catalog_tables() the only bridge into catalog types
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..catalog.types import Column, Table


class IntrospectionError(Exception):
    """Base exception for live-database operations."""
    pass


class NotConnectedError(IntrospectionError):
    """Operation attempted before connect() or after close()."""
    pass


@dataclass(frozen=True)
class IntrospectedColumn:
    """A column as reported by the live database."""

    name: str
    data_type: str


@dataclass(frozen=True)
class IntrospectedTable:
    """A table as reported by the live database."""

    name: str
    columns: tuple[IntrospectedColumn, ...] = ()


@dataclass
class QueryResult:
    """Rows returned by an executed query.

    Attributes:
        columns: Column labels in select order
        rows: Row values in column order
    """

    columns: list[str]
    rows: list[tuple[Any, ...]] = field(default_factory=list)


def to_catalog_tables(tables: list[IntrospectedTable]) -> list[Table]:
    """Convert introspected tables into catalog tables with unassigned ids."""
    return [
        Table(
            name=table.name,
            columns=[Column(name=c.name, data_type=c.data_type) for c in table.columns],
        )
        for table in tables
    ]


class SchemaIntrospector(ABC):
    """Interface for live-database backends.

    Example:
        >>> introspector = EngineIntrospector(url)
        >>> introspector.connect()
        >>> tables = introspector.get_tables()
        >>> result = introspector.query("SELECT 1")
    """

    @abstractmethod
    def connect(self) -> None:
        """Open and verify the connection.

        Raises:
            IntrospectionError: If the database is unreachable
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the connection pool."""
        ...

    @abstractmethod
    def get_tables(self) -> list[IntrospectedTable]:
        """List base tables with their columns.

        Raises:
            NotConnectedError: If not connected
            IntrospectionError: If the catalog query fails
        """
        ...

    @abstractmethod
    def get_schemas(self) -> list[str]:
        """List user-visible schemas, excluding system schemas."""
        ...

    @abstractmethod
    def query(self, sql: str) -> QueryResult:
        """Execute a statement and fetch all rows.

        Raises:
            NotConnectedError: If not connected
            IntrospectionError: If execution fails
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether connect() has succeeded and close() not been called."""
        ...
