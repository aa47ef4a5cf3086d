"""
API routes for the TalkDB HTTP server.

Provides REST endpoints over the QueryOrchestrator:
- Catalog browsing (list, get, schema text)
- Registration of a live database by driver
- Description annotation
- Natural-language questions

Invariants:
    - Routes that call the MetadataStore synchronously are plain `def`,
      so FastAPI runs them in its threadpool and never on the event loop
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ..catalog import Database, FieldKind
from ..handler import QueryOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["TalkDB"])


# --- Request/Response Models ---


class ColumnResponse(BaseModel):
    """Catalogued column."""

    id: int | None
    name: str
    data_type: str
    description: str = ""


class TableResponse(BaseModel):
    """Catalogued table."""

    id: int | None
    name: str
    description: str = ""
    columns: list[ColumnResponse] = Field(default_factory=list)


class DatabaseResponse(BaseModel):
    """Catalogued database with its full structure."""

    id: int | None
    name: str
    description: str = ""
    tables: list[TableResponse] = Field(default_factory=list)


class RegisterDatabaseRequest(BaseModel):
    """Request to introspect and catalog a live database."""

    driver: str = Field(..., description="Driver of a configured connection")


class RegisterDatabaseResponse(BaseModel):
    """Id assigned to a newly catalogued database."""

    id: int


class DescriptionRequest(BaseModel):
    """Request to annotate a database, table or column."""

    text: str = Field(..., description="New description")
    field_id: int = Field(..., description="Id of the annotated entity")
    field_kind: str = Field(..., description="One of: database, table, column")


class QueryRequest(BaseModel):
    """Natural-language question about a catalogued database."""

    database_id: int = Field(..., description="Catalog database id")
    question: str = Field(..., min_length=1, description="Question in plain language")


class QueryResponse(BaseModel):
    """Translated SQL and its rendered rows."""

    sql: str
    rows: list[dict[str, Any]]


class SchemaTextResponse(BaseModel):
    """Schema rendering handed to the translator."""

    id: int
    scheme: str


# --- Dependencies ---


def get_orchestrator(request: Request) -> QueryOrchestrator:
    """Get orchestrator from app state."""
    return request.app.state.orchestrator


def _database_response(database: Database) -> DatabaseResponse:
    return DatabaseResponse.model_validate(database.to_dict())


# --- Catalog Routes ---


@router.get("/databases", response_model=list[DatabaseResponse])
def list_databases(
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """List every catalogued database, sorted by id."""
    return [_database_response(db) for db in orchestrator.get_databases()]


@router.get("/databases/{database_id}", response_model=DatabaseResponse)
def get_database(
    database_id: int,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Get one catalogued database."""
    return _database_response(orchestrator.get_database(database_id))


@router.get("/databases/{database_id}/schema", response_model=SchemaTextResponse)
def get_database_schema(
    database_id: int,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Get the schema text used as translation context."""
    database = orchestrator.get_database(database_id)
    return SchemaTextResponse(id=database_id, scheme=database.scheme())


@router.post("/databases", response_model=RegisterDatabaseResponse, status_code=201)
async def register_database(
    body: RegisterDatabaseRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """
    Introspect a configured live database and add it to the catalog.

    The new database is named after its driver.
    """
    database_id = await orchestrator.register_database(body.driver)
    return RegisterDatabaseResponse(id=database_id)


@router.put("/databases/{database_id}/description", status_code=204)
def set_description(
    database_id: int,
    body: DescriptionRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Annotate the database itself, one of its tables, or one of its columns."""
    try:
        field_kind = FieldKind.from_str(body.field_kind)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    orchestrator.set_description(database_id, body.text, body.field_id, field_kind)


# --- Query Routes ---


@router.post("/query", response_model=QueryResponse)
async def query(
    body: QueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Translate a question to SQL, run it, and return the rows."""
    answer = await orchestrator.ask(body.database_id, body.question)
    return QueryResponse(sql=answer.sql, rows=answer.records)


@router.get("/drivers", response_model=list[str])
async def list_drivers(
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """List drivers with a configured live connection."""
    return orchestrator.drivers
