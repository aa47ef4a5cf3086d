"""
Rendering of query results as JSON text.

Driver values are converted to plain strings so results of any dialect
serialize the same way:
- None -> "nil"
- bytes -> text if printable ASCII, otherwise base64
- datetime/date/time -> ISO-8601
- Decimal/float -> fixed six decimals
- bool -> "true"/"false"
- UUID -> canonical hyphenated form
- anything else -> str()
"""

from __future__ import annotations

import base64
import datetime
import json
import uuid
from decimal import Decimal
from typing import Any

from ..introspect.base import QueryResult


def _is_printable_ascii(data: bytes) -> bool:
    return bool(data) and all(32 <= b <= 126 for b in data)


def render_value(value: Any) -> str:
    """Convert one driver value to its display string."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        return f"{value:.6f}"
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        if _is_printable_ascii(data):
            return data.decode("ascii")
        return base64.b64encode(data).decode("ascii")
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(value)


def rows_to_records(result: QueryResult) -> list[dict[str, str]]:
    """Convert a query result into one {column: value} dict per row."""
    return [
        {column: render_value(value) for column, value in zip(result.columns, row)}
        for row in result.rows
    ]


def rows_to_json(result: QueryResult, indent: int | None = None) -> str:
    """Render a query result as a JSON array of row objects."""
    return json.dumps(rows_to_records(result), indent=indent, ensure_ascii=False)
