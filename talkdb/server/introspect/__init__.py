"""
Live-database introspection for TalkDB.

Supplies raw table/column lists at registration time and executes
translated SQL against the live connection.
"""

from .base import (
    IntrospectedColumn,
    IntrospectedTable,
    IntrospectionError,
    NotConnectedError,
    QueryResult,
    SchemaIntrospector,
    to_catalog_tables,
)
from .engine import EngineIntrospector

__all__ = [
    "EngineIntrospector",
    "IntrospectedColumn",
    "IntrospectedTable",
    "IntrospectionError",
    "NotConnectedError",
    "QueryResult",
    "SchemaIntrospector",
    "to_catalog_tables",
]
