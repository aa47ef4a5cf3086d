"""
Integration test fixtures for TalkDB.

A small SQLite shop database stands in for the live database, and the
chat-completions API is replaced with an httpx.MockTransport that maps
known questions to canned SQL.
"""

import json
import sqlite3
import tempfile
from pathlib import Path
from typing import Generator

import httpx
import pytest

from talkdb.server.catalog import MetadataStore
from talkdb.server.config import Driver
from talkdb.server.handler import QueryOrchestrator
from talkdb.server.introspect import EngineIntrospector
from talkdb.server.translate import SqlTranslator

CANNED_SQL = {
    "how many customers are there?": "```sql\nSELECT count(*) AS total FROM customers\n```",
    "list order totals": "SELECT id, total FROM orders ORDER BY id",
    "what is the weather?": "",
    "break the database": "SELECT * FROM no_such_table",
}


@pytest.fixture
def data_dir() -> Generator[Path, None, None]:
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def shop_db(data_dir) -> Path:
    """Create a SQLite database with customers and orders."""
    path = data_dir / "shop.db"
    conn = sqlite3.connect(path)
    try:
        conn.executescript(
            """
            CREATE TABLE customers (
                id INTEGER PRIMARY KEY,
                email VARCHAR(120) NOT NULL
            );
            CREATE TABLE orders (
                id INTEGER PRIMARY KEY,
                customer_id INTEGER REFERENCES customers(id),
                total NUMERIC(10, 2),
                placed_at TIMESTAMP
            );
            CREATE VIEW big_orders AS SELECT * FROM orders WHERE total > 100;
            INSERT INTO customers (id, email) VALUES (1, 'ana@example.com'), (2, 'bo@example.com');
            INSERT INTO orders (id, customer_id, total, placed_at)
                VALUES (1, 1, 25.5, '2024-05-01 10:00:00'), (2, 2, 120, NULL);
            """
        )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def introspector(shop_db) -> Generator[EngineIntrospector, None, None]:
    """Connected introspector over the shop database."""
    engine_introspector = EngineIntrospector(f"sqlite:///{shop_db}")
    engine_introspector.connect()
    yield engine_introspector
    engine_introspector.close()


@pytest.fixture
def translator_requests() -> list[dict]:
    """Request bodies seen by the fake chat-completions API."""
    return []


@pytest.fixture
def translator(translator_requests) -> SqlTranslator:
    """SqlTranslator backed by canned answers."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        translator_requests.append(body)
        user_message = body["messages"][1]["content"]
        question = user_message.split("Question: ", 1)[1].split("\n", 1)[0]
        content = CANNED_SQL.get(question, "")
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": content}}]}
        )

    return SqlTranslator(
        api_key="test-key",
        base_url="https://llm.test/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def orchestrator(data_dir, shop_db, translator) -> Generator[QueryOrchestrator, None, None]:
    """Orchestrator with one SQLite connection and a file-backed catalog."""
    store = MetadataStore(data_dir / "catalog.json")
    orch = QueryOrchestrator(
        store,
        {Driver.SQLITE: EngineIntrospector(f"sqlite:///{shop_db}")},
        translator,
    )
    yield orch
    orch.close()
