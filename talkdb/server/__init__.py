"""
TalkDB Server - Ask questions of relational databases in plain language.

This package implements a service that:
- Catalogs the structure (tables, columns) of registered live databases
- Lets operators annotate that structure with descriptions
- Translates natural-language questions to SQL with a chat-completions model
- Runs the SQL on the live database and returns the rows as JSON

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌──────────────────┐
    │   Client    │────▶│   HTTP API   │────▶│ QueryOrchestrator│
    └─────────────┘     └──────────────┘     └────────┬─────────┘
                                                      │
                   ┌──────────────────────────────────┼──────────────────┐
                   │                                  │                  │
                   ▼                                  ▼                  ▼
            ┌─────────────┐                   ┌──────────────┐   ┌──────────────┐
            │MetadataStore│                   │ Introspector │   │ SqlTranslator│
            └──────┬──────┘                   └──────┬───────┘   └──────────────┘
                   │                                 │
                   ▼                                 ▼
            ┌─────────────┐                   ┌──────────────┐
            │catalog.json │                   │ live database│
            └─────────────┘                   └──────────────┘

Invariants:
    - The catalog file is the durable record; it is rewritten on every change
    - Database, table and column ids are unique per kind and never reused
    - Catalogued structure is not re-checked against the live database

How to change safely:
    - Never renumber ids already present in a catalog file
    - New catalog attributes must be optional on read

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
