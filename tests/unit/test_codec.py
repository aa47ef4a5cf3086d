"""
Unit tests for the catalog persistence codec.
"""

import json
import tempfile
from pathlib import Path

import pytest

from talkdb.server.catalog.allocator import CounterState
from talkdb.server.catalog.codec import (
    CatalogSnapshot,
    decode_snapshot,
    encode_snapshot,
    load_snapshot,
    write_snapshot,
)
from talkdb.server.catalog.errors import PersistenceError
from talkdb.server.catalog.types import Column, Database, Table


@pytest.fixture
def data_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def sample_snapshot() -> CatalogSnapshot:
    db = Database(
        id=1,
        name="sales",
        description="shop",
        tables=[Table(id=1, name="orders", columns=[Column(id=1, name="id", data_type="int")])],
    )
    return CatalogSnapshot(databases={1: db}, counters=CounterState(2, 2, 2))


class TestCatalogCodec:
    """Tests for encoding, decoding and file handling."""

    def test_encode_shape(self):
        data = json.loads(encode_snapshot(sample_snapshot()))

        assert data["next_database_id"] == 2
        assert data["databases"]["1"] == {
            "id": 1,
            "name": "sales",
            "description": "shop",
            "tables": [
                {
                    "id": 1,
                    "name": "orders",
                    "description": "",
                    "columns": [
                        {"id": 1, "name": "id", "data_type": "int", "description": ""}
                    ],
                }
            ],
        }

    def test_decode_restores_snapshot(self):
        snapshot = sample_snapshot()

        decoded = decode_snapshot(encode_snapshot(snapshot))

        assert decoded == snapshot

    def test_decode_defaults_missing_counters(self):
        decoded = decode_snapshot('{"databases": null}')

        assert decoded.databases == {}
        assert decoded.counters == CounterState()

    def test_decode_uses_key_when_entity_id_missing(self):
        decoded = decode_snapshot('{"databases": {"7": {"name": "legacy", "id": 0}}}')

        assert decoded.databases[7].id == 7

    def test_decode_rejects_non_object(self):
        with pytest.raises(ValueError):
            decode_snapshot("[]")

    def test_decode_rejects_malformed_entity(self):
        with pytest.raises(ValueError, match="malformed catalog document"):
            decode_snapshot('{"databases": {"1": {"tables": []}}}')

    def test_decode_rejects_key_id_mismatch(self):
        with pytest.raises(ValueError, match="stored under key 1 has ID 5"):
            decode_snapshot('{"databases": {"1": {"id": 5, "name": "moved"}}}')

    def test_load_key_id_mismatch_is_empty(self, data_dir, caplog):
        path = data_dir / "catalog.json"
        path.write_text('{"databases": {"1": {"id": 5, "name": "moved"}}}')

        assert load_snapshot(path) == CatalogSnapshot()
        assert "Error loading catalog" in caplog.text

    def test_encode_rejects_unencodable_text(self):
        snapshot = CatalogSnapshot(databases={1: Database(id=1, name="bad\ud800")})

        with pytest.raises(PersistenceError, match="failed to marshal catalog data"):
            encode_snapshot(snapshot)

    def test_unencodable_snapshot_leaves_file_untouched(self, data_dir):
        path = data_dir / "catalog.json"
        write_snapshot(path, sample_snapshot())
        original = path.read_bytes()

        with pytest.raises(PersistenceError):
            write_snapshot(path, CatalogSnapshot(databases={1: Database(id=1, name="bad\ud800")}))

        assert path.read_bytes() == original
        assert [p.name for p in data_dir.iterdir()] == ["catalog.json"]

    def test_load_missing_file_is_empty(self, data_dir):
        snapshot = load_snapshot(data_dir / "absent.json")

        assert snapshot == CatalogSnapshot()

    def test_load_corrupt_file_is_empty(self, data_dir, caplog):
        path = data_dir / "catalog.json"
        path.write_text("not json at all")

        snapshot = load_snapshot(path)

        assert snapshot == CatalogSnapshot()
        assert "Error loading catalog" in caplog.text

    def test_write_then_load(self, data_dir):
        path = data_dir / "nested" / "catalog.json"

        write_snapshot(path, sample_snapshot())

        assert load_snapshot(path) == sample_snapshot()
        assert [p.name for p in path.parent.iterdir()] == ["catalog.json"]

    def test_write_failure_raises_persistence_error(self, data_dir):
        target = data_dir / "catalog.json"
        target.mkdir()

        with pytest.raises(PersistenceError, match="failed to write catalog data"):
            write_snapshot(target, sample_snapshot())

        assert [p.name for p in data_dir.iterdir()] == ["catalog.json"]
