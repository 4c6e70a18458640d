# API routes

from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from fs2bq.export.orchestrator import ExportOrchestrator
from fs2bq.export.results import BatchReport, SchemaConflictError
from fs2bq.source.adapter import SourceError

router = APIRouter()


class CollectionsRequest(BaseModel):
    collections: List[str] = Field(..., min_length=1)


class TablesRequest(BaseModel):
    tables: List[str] = Field(..., min_length=1)


class ColumnResponse(BaseModel):
    name: str
    type: str
    mode: str


class SchemaResponse(BaseModel):
    collection: str
    fields: List[ColumnResponse]


def get_orchestrator(request: Request) -> ExportOrchestrator:
    """Orchestrator created at application startup."""
    return request.app.state.orchestrator


def _report_response(report: BatchReport) -> JSONResponse:
    """
    Map a batch report to an HTTP response.

    200 when every unit succeeded, 409 when every failure is a table
    name conflict, 502 when the source or warehouse failed.
    """
    if report.ok:
        status_code = 200
    elif all(isinstance(r.exception, SchemaConflictError) for r in report.failed):
        status_code = 409
    else:
        status_code = 502
    return JSONResponse(status_code=status_code, content=report.to_dict())


@router.post("/datasets/{dataset_id}/tables")
async def create_tables(
    dataset_id: str,
    body: CollectionsRequest,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """
    Create one table per collection, with a schema inferred from its documents.
    """
    report = await orchestrator.create_tables(dataset_id, body.collections)
    return _report_response(report)


@router.post("/datasets/{dataset_id}/copy")
async def copy_collections(
    dataset_id: str,
    body: CollectionsRequest,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Copy every document of each collection into its table."""
    report = await orchestrator.copy_collections(dataset_id, body.collections)
    return _report_response(report)


@router.delete("/datasets/{dataset_id}/tables")
async def delete_tables(
    dataset_id: str,
    body: TablesRequest,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    report = await orchestrator.delete_tables(dataset_id, body.tables)
    return _report_response(report)


@router.get("/collections/{collection}/schema", response_model=SchemaResponse)
async def preview_schema(
    collection: str,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Preview the schema a table created from this collection would get."""
    try:
        schema = await orchestrator.infer_schema(collection)
    except SourceError as e:
        return JSONResponse(status_code=404, content={"detail": str(e)})

    return SchemaResponse(
        collection=collection,
        fields=[ColumnResponse(**field) for field in schema.to_dict()],
    )
