"""
HTTP API for TalkDB.
"""

from .app import create_app

__all__ = ["create_app"]
