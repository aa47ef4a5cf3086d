"""
Schema catalog module for TalkDB.

This module owns the canonical record of every registered database's
structure, including:
- Entity types (Database, Table, Column) and the FieldKind selector
- Id allocation and per-kind uniqueness validation
- The JSON persistence codec
- The lock-guarded MetadataStore

Invariants:
    - Ids are unique within their kind across the whole catalog
    - Counters never reuse a value
    - Every value returned to a caller is a deep copy

How to change safely:
    - Never reuse or renumber ids already written to a catalog file
    - Keep the document shape backward compatible (no version field)
"""

from .allocator import CounterState, IdAllocator, validate_unique_ids
from .codec import CatalogSnapshot, decode_snapshot, encode_snapshot, load_snapshot, write_snapshot
from .errors import (
    CatalogError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from .store import MetadataStore
from .types import Column, Database, FieldKind, Table

__all__ = [
    # Types
    "Column",
    "Database",
    "FieldKind",
    "Table",
    # Allocation
    "CounterState",
    "IdAllocator",
    "validate_unique_ids",
    # Persistence
    "CatalogSnapshot",
    "decode_snapshot",
    "encode_snapshot",
    "load_snapshot",
    "write_snapshot",
    # Store
    "MetadataStore",
    # Errors
    "CatalogError",
    "ConflictError",
    "InvalidInputError",
    "NotFoundError",
    "PersistenceError",
]
