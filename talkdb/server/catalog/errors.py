"""
Error types for the TalkDB schema catalog.

This module defines every exception raised by catalog operations:
- CatalogError: Base exception
- NotFoundError: Database, table or column id not present
- ConflictError: Id collision, or id mismatch at database scope
- InvalidInputError: Unrecognized field kind
- PersistenceError: Catalog document could not be encoded or written

Invariants:
    - All errors inherit from CatalogError
    - Errors carry a stable code for programmatic handling
    - Catalog operations raise, they never exit the process
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base exception for all catalog errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "CATALOG_ERROR"
        self.details = details or {}


class NotFoundError(CatalogError):
    """Entity not found.

    Raised when:
    - No database is registered under the id
    - The database has no table or column with the id
    """

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: Optional[int],
    ) -> None:
        super().__init__(
            message,
            code="NOT_FOUND",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(CatalogError):
    """Identifier conflict.

    Raised when:
    - A database id is already registered
    - Two tables, or two columns of one table, share an id
    - A table or column id already exists in another database
    - A database-scope description targets a different database id
    """

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: Optional[int],
    ) -> None:
        super().__init__(
            message,
            code="CONFLICT",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidInputError(CatalogError):
    """Request could not be interpreted."""

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(
            message,
            code="INVALID_INPUT",
            details={"value": repr(value)},
        )
        self.value = value


class PersistenceError(CatalogError):
    """Catalog document could not be encoded or written.

    Attributes:
        path: Catalog file the write was aimed at
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="PERSISTENCE",
            details={"path": path},
        )
        self.path = path
