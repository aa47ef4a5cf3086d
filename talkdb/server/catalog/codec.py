"""
Persistence codec for the TalkDB schema catalog.

The whole catalog is stored as one JSON document:

    {
      "databases": {"<id>": {...Database...}},
      "next_database_id": 1,
      "next_table_id": 1,
      "next_column_id": 1
    }

Invariants:
    - The document is always written in full, never patched
    - Writes go to a sibling temp file which replaces the target atomically
    - A missing file decodes to an empty catalog
    - Counters absent from the document default to 1
    - Each database is stored under the key matching its own id
    - Encoding happens before the file is touched; an unencodable
      snapshot leaves the file as it was

How to change safely:
    - There is no version field; new keys must be optional on read
    - Keep databases keyed by their string id (JSON object keys are strings)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .allocator import CounterState
from .errors import PersistenceError
from .types import Database

logger = logging.getLogger(__name__)


@dataclass
class CatalogSnapshot:
    """Entire catalog state, serialized as one unit.

    Attributes:
        databases: Registered databases keyed by id
        counters: Next id to hand out per entity kind
    """

    databases: dict[int, Database] = field(default_factory=dict)
    counters: CounterState = field(default_factory=CounterState)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk document shape."""
        return {
            "databases": {
                str(db_id): self.databases[db_id].to_dict()
                for db_id in sorted(self.databases)
            },
            "next_database_id": self.counters.next_database_id,
            "next_table_id": self.counters.next_table_id,
            "next_column_id": self.counters.next_column_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogSnapshot:
        """Create from the on-disk document shape."""
        databases: dict[int, Database] = {}
        for key, db_data in (data.get("databases") or {}).items():
            db_id = int(key)
            database = Database.from_dict(db_data)
            if database.id is None:
                database.id = db_id
            elif database.id != db_id:
                raise ValueError(
                    f"database stored under key {key} has ID {database.id}"
                )
            databases[db_id] = database

        counters = CounterState(
            next_database_id=data.get("next_database_id") or 1,
            next_table_id=data.get("next_table_id") or 1,
            next_column_id=data.get("next_column_id") or 1,
        )
        return cls(databases=databases, counters=counters)


def encode_snapshot(snapshot: CatalogSnapshot) -> bytes:
    """Serialize a snapshot to UTF-8 encoded JSON.

    Raises:
        PersistenceError: If the snapshot cannot be encoded
    """
    try:
        return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"failed to marshal catalog data: {e}") from e


def decode_snapshot(text: str | bytes) -> CatalogSnapshot:
    """Parse JSON text into a snapshot.

    Raises:
        ValueError: If the text is not a valid catalog document
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"catalog document must be an object, got {type(data).__name__}")
    try:
        return CatalogSnapshot.from_dict(data)
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise ValueError(f"malformed catalog document: {e}") from e


def load_snapshot(path: str | Path) -> CatalogSnapshot:
    """Read the catalog file, falling back to an empty catalog.

    A missing file is the normal first-start case. Any other read or parse
    failure is logged and also yields an empty catalog.

    Args:
        path: Catalog file path

    Returns:
        Decoded snapshot, or an empty one
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info(f"Catalog file {path} not found, starting empty")
        return CatalogSnapshot()
    except OSError as e:
        logger.error(f"Error loading catalog from {path}: {e}")
        return CatalogSnapshot()

    try:
        snapshot = decode_snapshot(text)
    except ValueError as e:
        logger.error(f"Error loading catalog from {path}: {e}")
        return CatalogSnapshot()

    logger.info(f"Loaded {len(snapshot.databases)} database(s) from {path}")
    return snapshot


def write_snapshot(path: str | Path, snapshot: CatalogSnapshot) -> None:
    """Rewrite the catalog file with the full snapshot.

    Args:
        path: Catalog file path
        snapshot: State to persist

    Raises:
        PersistenceError: If encoding or writing fails
    """
    path = Path(path)
    data = encode_snapshot(snapshot)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "wb") as tmp_file:
                tmp_file.write(data)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise PersistenceError(
            f"failed to write catalog data to file: {e}", path=str(path)
        ) from e
