"""
Entity types for the TalkDB schema catalog.

The catalog describes registered databases as a three-level tree:
- Database: a registered connection target, owning tables
- Table: a relation inside a database, owning columns
- Column: a single attribute with its SQL data type

Invariants:
    - An id is either assigned (positive int) or unassigned (None)
    - A numeric 0 is accepted on input and normalized to None
    - Table and column order is preserved exactly as supplied
    - Names are labels only; ids are canonical

How to change safely:
    - New entity attributes need a default so older catalog files still load
    - Keep to_dict()/from_dict() symmetric; the codec relies on it
    - Never change the serialized key names without a migration plan

Example:
    >>> from talkdb.server.catalog.types import Database, Table, Column
    >>> sales = Database(
    ...     name="sales",
    ...     tables=[Table(name="orders", columns=[Column(name="id", data_type="int")])],
    ... )
    >>> sales.id is None
    True
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def _normalize_id(value: int | None, kind: str) -> int | None:
    if value is None or value == 0:
        return None
    if value < 0:
        raise ValueError(f"{kind} id must be positive, got {value}")
    return value


class FieldKind(Enum):
    """Selects which entity kind a description update targets."""

    COLUMN = "column"
    TABLE = "table"
    DATABASE = "database"

    @classmethod
    def from_str(cls, value: str) -> FieldKind:
        """Convert string representation to FieldKind.

        Args:
            value: Name of the field kind (case-insensitive)

        Returns:
            Corresponding FieldKind enum value

        Raises:
            ValueError: If value is not a valid field kind
        """
        for kind in cls:
            if kind.value == value.lower():
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid field kind '{value}'. Valid kinds: {valid}")


@dataclass
class Column:
    """A single column of a catalogued table.

    Attributes:
        name: Column name as reported by the live database
        data_type: SQL data type as reported by the live database
        description: Operator-supplied annotation
        id: Catalog-wide column id, None until allocated
    """

    name: str
    data_type: str = ""
    description: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        self.id = _normalize_id(self.id, "column")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "data_type": self.data_type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Column:
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            data_type=data.get("data_type", ""),
            description=data.get("description", ""),
        )


@dataclass
class Table:
    """A catalogued table and its ordered columns.

    Attributes:
        name: Table name as reported by the live database
        columns: Columns in ordinal order
        description: Operator-supplied annotation
        id: Catalog-wide table id, None until allocated
    """

    name: str
    columns: list[Column] = field(default_factory=list)
    description: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        self.id = _normalize_id(self.id, "table")

    def get_column(self, name_or_id: str | int) -> Column | None:
        """Get a column by name or id."""
        for column in self.columns:
            if isinstance(name_or_id, int):
                if column.id == name_or_id:
                    return column
            elif column.name == name_or_id:
                return column
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "columns": [c.to_dict() for c in self.columns],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Table:
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            description=data.get("description", ""),
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
        )


@dataclass
class Database:
    """A registered database and its catalogued structure.

    Attributes:
        name: Display name (the driver name for introspected databases)
        tables: Tables in the order the introspector returned them
        description: Operator-supplied annotation
        id: Catalog-wide database id, None until allocated

    Example:
        >>> db = Database(name="sales", tables=[Table(name="orders")])
        >>> print(db.scheme())
    """

    name: str
    tables: list[Table] = field(default_factory=list)
    description: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        self.id = _normalize_id(self.id, "database")

    def get_table(self, name_or_id: str | int) -> Table | None:
        """Get a table by name or id."""
        for table in self.tables:
            if isinstance(name_or_id, int):
                if table.id == name_or_id:
                    return table
            elif table.name == name_or_id:
                return table
        return None

    def scheme(self, indent: int | None = 2) -> str:
        """Render the full entity tree as indented JSON.

        This text is handed to the SQL translator as schema context, so it
        includes descriptions alongside names and data types.

        Args:
            indent: JSON indentation (None for compact)

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tables": [t.to_dict() for t in self.tables],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Database:
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            description=data.get("description", ""),
            tables=[Table.from_dict(t) for t in data.get("tables") or []],
        )
