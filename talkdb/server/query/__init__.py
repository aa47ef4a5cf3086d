"""
Query result rendering for TalkDB.
"""

from .rows import render_value, rows_to_json, rows_to_records

__all__ = ["render_value", "rows_to_json", "rows_to_records"]
