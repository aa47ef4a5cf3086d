"""
Metadata store for the TalkDB schema catalog.

The MetadataStore is the single owner of every registered database's
structure. It provides:
- Registration of a database tree with id allocation and validation
- Lookup of one or all databases, always as deep copies
- Description updates on a database, table or column
- Write-through persistence of the whole catalog on every mutation

Invariants:
    - Reads take the shared lock; writes and the startup load take the
      exclusive lock, including the file rewrite
    - Nothing handed to a caller aliases store-internal objects
    - create_new_database is all-or-nothing: on a conflict or a failed write
      the entity map, the counters and the file are as they were before
    - set_description does NOT revert memory when the write fails; memory
      and file stay apart until the next successful write

How to change safely:
    - Keep allocate -> validate -> insert -> persist in that order
    - Any new write operation must persist before returning success
    - Do not hand out references from self._databases; copy them

Example:
    >>> store = MetadataStore("/var/lib/talkdb/catalog.json")
    >>> db_id = store.create_new_database(Database(name="sales"))
    >>> store.get_database(db_id).name
    'sales'
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path

from .allocator import IdAllocator, validate_unique_ids
from .codec import CatalogSnapshot, load_snapshot, write_snapshot
from .errors import ConflictError, InvalidInputError, NotFoundError, PersistenceError
from .rwlock import ReadWriteLock
from .types import Database, FieldKind

logger = logging.getLogger(__name__)


class MetadataStore:
    """File-backed catalog of registered databases.

    Thread-safety:
        - get_database / get_all_databases may run concurrently
        - create_new_database / set_description are serialized with each
          other and with all readers

    Attributes:
        path: Catalog file this store reads on start and rewrites on change
    """

    def __init__(self, path: str | Path) -> None:
        """Create the store and load any existing catalog file.

        Args:
            path: Catalog file path (need not exist yet)
        """
        self.path = Path(path)
        self._lock = ReadWriteLock()
        self._databases: dict[int, Database] = {}
        self._allocator = IdAllocator()
        self._load()

    def _load(self) -> None:
        with self._lock.write_locked():
            snapshot = load_snapshot(self.path)
            self._databases = snapshot.databases
            self._allocator = IdAllocator(snapshot.counters)

    def _save(self) -> None:
        """Rewrite the catalog file. Caller must hold the write lock."""
        snapshot = CatalogSnapshot(
            databases=self._databases,
            counters=self._allocator.checkpoint(),
        )
        write_snapshot(self.path, snapshot)

    def create_new_database(self, database: Database) -> int:
        """Register a database tree, assigning any missing ids.

        The argument is copied first; the caller's object is never modified.

        Args:
            database: Database to register; unassigned ids are allocated

        Returns:
            The (possibly newly assigned) database id

        Raises:
            ConflictError: If any id collides within its kind
            PersistenceError: If the catalog file could not be written
        """
        with self._lock.write_locked():
            candidate = copy.deepcopy(database)
            checkpoint = self._allocator.checkpoint()

            self._allocator.allocate(candidate)
            try:
                validate_unique_ids(candidate, self._databases.values())
            except ConflictError:
                self._allocator.restore(checkpoint)
                raise

            assert candidate.id is not None
            self._databases[candidate.id] = candidate

            try:
                self._save()
            except PersistenceError as e:
                del self._databases[candidate.id]
                self._allocator.restore(checkpoint)
                logger.error(f"Rolled back database {candidate.id}: {e}")
                raise PersistenceError(
                    f"failed to save database: {e}", path=str(self.path)
                ) from e

            logger.info(
                f"Registered database '{candidate.name}' (id={candidate.id}) "
                f"with {len(candidate.tables)} table(s)"
            )
            return candidate.id

    def get_database(self, database_id: int) -> Database:
        """Get a copy of one registered database.

        Raises:
            NotFoundError: If no database has this id
        """
        with self._lock.read_locked():
            database = self._databases.get(database_id)
            if database is None:
                raise NotFoundError(
                    f"database with ID {database_id} not found",
                    resource_type="database",
                    resource_id=database_id,
                )
            return copy.deepcopy(database)

    def get_all_databases(self) -> list[Database]:
        """Get copies of every registered database, sorted by id."""
        with self._lock.read_locked():
            return [
                copy.deepcopy(self._databases[db_id])
                for db_id in sorted(self._databases)
            ]

    def set_description(
        self,
        database_id: int,
        description: str,
        field_id: int,
        field_kind: FieldKind,
    ) -> None:
        """Annotate a database, table or column with a description.

        Args:
            database_id: Database that owns the target
            description: New description text
            field_id: Id of the target entity
            field_kind: Which kind of entity field_id names

        Raises:
            NotFoundError: If the database or the target is absent
            ConflictError: If field_kind is DATABASE and field_id != database_id
            InvalidInputError: If field_kind is not a FieldKind
            PersistenceError: If the catalog file could not be written; the
                in-memory update is kept
        """
        with self._lock.write_locked():
            database = self._databases.get(database_id)
            if database is None:
                raise NotFoundError(
                    f"database with ID {database_id} not found",
                    resource_type="database",
                    resource_id=database_id,
                )

            if field_kind == FieldKind.DATABASE:
                if database.id != field_id:
                    raise ConflictError(
                        f"database ID mismatch: expected {database.id}, got {field_id}",
                        resource_type="database",
                        resource_id=field_id,
                    )
                database.description = description

            elif field_kind == FieldKind.TABLE:
                table = next((t for t in database.tables if t.id == field_id), None)
                if table is None:
                    raise NotFoundError(
                        f"table with ID {field_id} not found in database {database_id}",
                        resource_type="table",
                        resource_id=field_id,
                    )
                table.description = description

            elif field_kind == FieldKind.COLUMN:
                column = next(
                    (
                        c
                        for t in database.tables
                        for c in t.columns
                        if c.id == field_id
                    ),
                    None,
                )
                if column is None:
                    raise NotFoundError(
                        f"column with ID {field_id} not found in database {database_id}",
                        resource_type="column",
                        resource_id=field_id,
                    )
                column.description = description

            else:
                raise InvalidInputError(f"unknown field type: {field_kind!r}", field_kind)

            try:
                self._save()
            except PersistenceError as e:
                raise PersistenceError(
                    f"failed to save description: {e}", path=str(self.path)
                ) from e

            logger.debug(
                f"Set description on {field_kind.value} {field_id} in database {database_id}"
            )
