"""
Unit tests for the catalog CLI.
"""

import json
import tempfile
from pathlib import Path

import pytest

from talkdb.server.catalog import (
    Column,
    Database,
    FieldKind,
    MetadataStore,
    NotFoundError,
    Table,
)
from talkdb.server.tools.catalog_cli import CatalogCLI, main


@pytest.fixture
def catalog_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "catalog.json"


@pytest.fixture
def populated(catalog_path):
    store = MetadataStore(catalog_path)
    store.create_new_database(
        Database(
            name="postgres",
            tables=[
                Table(name="orders", columns=[Column(name="id", data_type="INTEGER")]),
                Table(name="customers", columns=[Column(name="id"), Column(name="email")]),
            ],
        )
    )
    return catalog_path


class TestCatalogCLI:
    """Tests for CatalogCLI commands."""

    def test_list_empty(self, catalog_path):
        cli = CatalogCLI(MetadataStore(catalog_path))

        assert cli.list_databases() == "No databases catalogued"

    def test_list_text(self, populated):
        store = MetadataStore(populated)
        store.set_description(1, "prod replica", 1, FieldKind.DATABASE)
        cli = CatalogCLI(store)

        assert cli.list_databases() == "1\tpostgres\t2 table(s), 3 column(s)\tprod replica"

    def test_list_json(self, populated):
        cli = CatalogCLI(MetadataStore(populated))

        data = json.loads(cli.list_databases(as_json=True))

        assert [db["name"] for db in data] == ["postgres"]

    def test_show(self, populated):
        cli = CatalogCLI(MetadataStore(populated))

        assert json.loads(cli.show(1))["tables"][0]["name"] == "orders"

    def test_show_missing(self, populated):
        cli = CatalogCLI(MetadataStore(populated))

        with pytest.raises(NotFoundError):
            cli.show(5)

    def test_describe_database_defaults_field_id(self, populated):
        store = MetadataStore(populated)

        CatalogCLI(store).describe(1, "database", None, "main shop")

        assert store.get_database(1).description == "main shop"

    def test_describe_column(self, populated):
        store = MetadataStore(populated)

        CatalogCLI(store).describe(1, "column", 3, "login address")

        assert store.get_database(1).get_table("customers").get_column("email").description == (
            "login address"
        )

    def test_describe_table_requires_field_id(self, populated):
        with pytest.raises(ValueError, match="--field-id is required"):
            CatalogCLI(MetadataStore(populated)).describe(1, "table", None, "x")


class TestCatalogCLIMain:
    """Tests for the argparse entry point."""

    def test_show_prints_schema(self, populated, capsys):
        main(["--catalog", str(populated), "show", "1"])

        assert json.loads(capsys.readouterr().out)["name"] == "postgres"

    def test_describe_persists(self, populated):
        main(["-c", str(populated), "describe", "1", "-k", "table", "-f", "2", "-t", "buyers"])

        assert MetadataStore(populated).get_database(1).get_table(2).description == "buyers"

    def test_errors_exit_non_zero(self, populated, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--catalog", str(populated), "show", "42"])

        assert exc_info.value.code == 1
        assert "database with ID 42 not found" in capsys.readouterr().err
