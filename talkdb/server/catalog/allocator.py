"""
Identifier allocation and uniqueness validation for the catalog.

Each entity kind (database, table, column) has its own monotonically
increasing counter. Allocation fills in unassigned ids from the counters;
validation then rejects any id that collides with another entity of the
same kind, inside the candidate or anywhere in the existing catalog.

Invariants:
    - Counters never go backward and never hand out a value twice
    - Caller-supplied ids are kept as-is and only validated
    - Uniqueness is checked per kind only; a table id may equal a column id
    - Validation never mutates the candidate or the existing catalog

How to change safely:
    - Allocation must happen before validation, never after
    - Use checkpoint()/restore() around any allocation that may be rejected
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .errors import ConflictError
from .types import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterState:
    """Snapshot of the per-kind id counters."""

    next_database_id: int = 1
    next_table_id: int = 1
    next_column_id: int = 1


class IdAllocator:
    """Hands out catalog ids per entity kind.

    Example:
        >>> allocator = IdAllocator()
        >>> db = Database(name="sales", tables=[Table(name="orders")])
        >>> allocator.allocate(db)
        >>> db.id, db.tables[0].id
        (1, 1)
    """

    def __init__(self, state: CounterState | None = None) -> None:
        state = state or CounterState()
        self.next_database_id = state.next_database_id
        self.next_table_id = state.next_table_id
        self.next_column_id = state.next_column_id

    def checkpoint(self) -> CounterState:
        """Capture the current counters."""
        return CounterState(
            next_database_id=self.next_database_id,
            next_table_id=self.next_table_id,
            next_column_id=self.next_column_id,
        )

    def restore(self, state: CounterState) -> None:
        """Reset counters to a previous checkpoint."""
        self.next_database_id = state.next_database_id
        self.next_table_id = state.next_table_id
        self.next_column_id = state.next_column_id

    def allocate(self, database: Database) -> None:
        """Assign ids to every unassigned entity in the tree, in place.

        Database first, then each table followed by its columns, in order.
        """
        if database.id is None:
            database.id = self.next_database_id
            self.next_database_id += 1

        for table in database.tables:
            if table.id is None:
                table.id = self.next_table_id
                self.next_table_id += 1

            for column in table.columns:
                if column.id is None:
                    column.id = self.next_column_id
                    self.next_column_id += 1

        logger.debug(
            f"Allocated ids for database '{database.name}' (id={database.id}), "
            f"counters now db={self.next_database_id} table={self.next_table_id} "
            f"column={self.next_column_id}"
        )


def validate_unique_ids(candidate: Database, existing: Iterable[Database]) -> None:
    """Check a candidate database against itself and the existing catalog.

    Args:
        candidate: Database whose ids have already been allocated
        existing: Every database currently in the catalog

    Raises:
        ConflictError: On the first id collision found
    """
    existing = list(existing)

    if candidate.id is not None and any(db.id == candidate.id for db in existing):
        raise ConflictError(
            f"database with ID {candidate.id} already exists",
            resource_type="database",
            resource_id=candidate.id,
        )

    # Duplicates within the candidate itself
    seen_tables: set[int] = set()
    for table in candidate.tables:
        if table.id is None:
            continue
        if table.id in seen_tables:
            raise ConflictError(
                f"duplicate table ID {table.id} within the database",
                resource_type="table",
                resource_id=table.id,
            )
        seen_tables.add(table.id)

        seen_columns: set[int] = set()
        for column in table.columns:
            if column.id is None:
                continue
            if column.id in seen_columns:
                raise ConflictError(
                    f"duplicate column ID {column.id} within table {table.name}",
                    resource_type="column",
                    resource_id=column.id,
                )
            seen_columns.add(column.id)

    existing_tables: set[int] = set()
    existing_columns: set[int] = set()
    for db in existing:
        for table in db.tables:
            if table.id is not None:
                existing_tables.add(table.id)
            for column in table.columns:
                if column.id is not None:
                    existing_columns.add(column.id)

    for table in candidate.tables:
        if table.id in existing_tables:
            raise ConflictError(
                f"table with ID {table.id} already exists in another database",
                resource_type="table",
                resource_id=table.id,
            )
        for column in table.columns:
            if column.id in existing_columns:
                raise ConflictError(
                    f"column with ID {column.id} already exists in another database",
                    resource_type="column",
                    resource_id=column.id,
                )
