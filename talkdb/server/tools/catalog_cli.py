"""
Catalog CLI tool for TalkDB.

This tool inspects and annotates a catalog file without a running server:
- list: Show every catalogued database
- show: Print one database's schema text
- describe: Set the description of a database, table or column

Usage:
    talkdb-catalog --catalog data/catalog.json list
    talkdb-catalog --catalog data/catalog.json show 1
    talkdb-catalog --catalog data/catalog.json describe 1 --kind table --field-id 3 --text "orders"

Invariants:
    - Goes through MetadataStore, so ids and persistence behave as in the server
    - Catalog errors cause a non-zero exit code

How to change safely:
    - Do not run describe against a catalog a live server is writing to;
      the server only reads the file at startup
    - Keep output format stable for scripts
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from ..catalog import CatalogError, FieldKind, MetadataStore

logger = logging.getLogger(__name__)


class CatalogCLI:
    """CLI commands over a MetadataStore.

    Example:
        >>> cli = CatalogCLI(MetadataStore("catalog.json"))
        >>> print(cli.list_databases())
    """

    def __init__(self, store: MetadataStore) -> None:
        self.store = store

    def list_databases(self, as_json: bool = False) -> str:
        """Summarize every catalogued database.

        Args:
            as_json: Emit a JSON array instead of text lines

        Returns:
            Rendered listing
        """
        databases = self.store.get_all_databases()
        if as_json:
            return json.dumps([db.to_dict() for db in databases], indent=2)

        if not databases:
            return "No databases catalogued"

        lines = []
        for db in databases:
            columns = sum(len(t.columns) for t in db.tables)
            line = f"{db.id}\t{db.name}\t{len(db.tables)} table(s), {columns} column(s)"
            if db.description:
                line += f"\t{db.description}"
            lines.append(line)
        return "\n".join(lines)

    def show(self, database_id: int) -> str:
        """Render one database's schema text."""
        return self.store.get_database(database_id).scheme()

    def describe(
        self,
        database_id: int,
        kind: str,
        field_id: int | None,
        text: str,
    ) -> None:
        """Set a description; field_id defaults to database_id for kind=database."""
        field_kind = FieldKind.from_str(kind)
        if field_id is None:
            if field_kind != FieldKind.DATABASE:
                raise ValueError(f"--field-id is required for kind '{kind}'")
            field_id = database_id
        self.store.set_description(database_id, text, field_id, field_kind)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for catalog tool."""
    parser = argparse.ArgumentParser(description="TalkDB catalog tool")
    parser.add_argument(
        "--catalog",
        "-c",
        default=os.getenv("CATALOG_PATH", "./data/catalog.json"),
        help="Catalog file (default: $CATALOG_PATH or ./data/catalog.json)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # list command
    list_parser = subparsers.add_parser("list", help="List catalogued databases")
    list_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    # show command
    show_parser = subparsers.add_parser("show", help="Print a database's schema text")
    show_parser.add_argument("database_id", type=int)

    # describe command
    describe_parser = subparsers.add_parser("describe", help="Set a description")
    describe_parser.add_argument("database_id", type=int)
    describe_parser.add_argument(
        "--kind",
        "-k",
        choices=[k.value for k in FieldKind],
        default=FieldKind.DATABASE.value,
        help="What to describe",
    )
    describe_parser.add_argument("--field-id", "-f", type=int, help="Table or column id")
    describe_parser.add_argument("--text", "-t", required=True, help="Description text")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s - %(message)s")

    cli = CatalogCLI(MetadataStore(args.catalog))

    try:
        if args.command == "list":
            print(cli.list_databases(as_json=args.format == "json"))
        elif args.command == "show":
            print(cli.show(args.database_id))
        elif args.command == "describe":
            cli.describe(args.database_id, args.kind, args.field_id, args.text)
            print(f"Description updated in {args.catalog}", file=sys.stderr)
    except (CatalogError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
