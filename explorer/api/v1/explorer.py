"""
Tabular Explorer — API Endpoints
==================================
FastAPI router exposing one ExplorerSession per uploaded dataset.

Endpoints:
  POST   /sessions                         — Upload parsed records, start a session
  GET    /sessions/{id}                    — Session summary (shape, column types, filters)
  DELETE /sessions/{id}                    — Discard a session
  POST   /sessions/{id}/restore            — Roll back every applied fix
  GET    /sessions/{id}/quality            — Missing / duplicate / outlier report
  GET    /sessions/{id}/insights           — Fixed-slot insight narrative
  GET    /sessions/{id}/records            — Rows of the full or filtered view
  GET    /sessions/{id}/filters            — Filter options + active filters
  PUT    /sessions/{id}/filters/{column}   — Constrain a column to allowed values
  DELETE /sessions/{id}/filters/{column}   — Remove one constraint
  DELETE /sessions/{id}/filters            — Clear all constraints
  POST   /sessions/{id}/fix                — Apply an imputation / cleanup fix
  POST   /sessions/{id}/ask                — Rule-based question answering
  GET    /sessions/{id}/export/{kind}      — csv | summary | insights
  GET    /health                           — Liveness + session count
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from explorer.config import settings
from explorer.core.analysis import ExplorerError, ExplorerSession
from explorer.core.session_store import SessionStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()


# ═══════════════════════════════════════════════════════════════
# REQUEST / RESPONSE SCHEMAS
# ═══════════════════════════════════════════════════════════════

Cell = Union[str, int, float, bool, None]


class UploadRequest(BaseModel):
    file_name: str = Field(default="", max_length=500)
    records: List[Dict[str, Cell]] = Field(..., description="Parsed rows; every row has the same keys")


class FilterRequest(BaseModel):
    values: List[Cell] = Field(..., description="Allowed values; an empty list excludes every row")


class FixRequest(BaseModel):
    method: str = Field(..., description="delete|mean|mode|forward|remove|cap|keep|remove_duplicates")
    column: Optional[str] = None


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)


class SessionSummary(BaseModel):
    session_id: str
    file_name: str = ""
    rows: int = 0
    columns: List[str] = []
    column_types: Dict[str, str] = {}
    type_counts: Dict[str, int] = {}
    filtered_rows: int = 0
    active_filters: Dict[str, List[str]] = {}
    modified: bool = False


class InsightResponse(BaseModel):
    insights: List[Dict[str, Any]]
    counts: Dict[str, int] = {}
    generated_at: str


class RecordsResponse(BaseModel):
    columns: List[str] = []
    rows: List[Dict[str, Any]] = []
    total_rows: int = 0
    returned_rows: int = 0
    filtered: bool = True


class FilterStateResponse(BaseModel):
    options: Dict[str, List[str]] = {}
    active: Dict[str, List[str]] = {}
    filtered_rows: int = 0


class AskResponse(BaseModel):
    answer: str
    intent: str
    column: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    sessions: int
    max_sessions: int
    uptime_seconds: Optional[float] = None


# ═══════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════

_start_time = time.time()

_EXPORTS = {
    "csv": ("text/csv", "filtered_data.csv"),
    "summary": ("text/plain", "data_summary.txt"),
    "insights": ("application/json", "insights.json"),
}


def _session(session_id: str, store: SessionStore) -> ExplorerSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session


def _bad_input(e: ExplorerError) -> HTTPException:
    return HTTPException(status_code=422, detail=e.to_dict())


# ═══════════════════════════════════════════════════════════════
# SESSIONS
# ═══════════════════════════════════════════════════════════════

@router.post("/sessions", response_model=SessionSummary, status_code=201)
async def create_session(request: UploadRequest, store: SessionStore = Depends(get_store)):
    if len(request.records) > settings.MAX_UPLOAD_ROWS:
        raise HTTPException(
            status_code=413,
            detail=f"Upload has {len(request.records)} rows (limit {settings.MAX_UPLOAD_ROWS})",
        )
    session = store.create()
    try:
        session.load(request.records, file_name=request.file_name)
    except ExplorerError as e:
        store.delete(session.session_id)
        raise _bad_input(e)
    return SessionSummary(**session.summary())


@router.get("/sessions/{session_id}", response_model=SessionSummary)
async def get_session(session_id: str, store: SessionStore = Depends(get_store)):
    return SessionSummary(**_session(session_id, store).summary())


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, store: SessionStore = Depends(get_store)):
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"status": "ok", "session_id": session_id}


@router.post("/sessions/{session_id}/restore", response_model=SessionSummary)
async def restore_session(session_id: str, store: SessionStore = Depends(get_store)):
    session = _session(session_id, store)
    session.restore_original()
    return SessionSummary(**session.summary())


# ═══════════════════════════════════════════════════════════════
# ANALYSIS
# ═══════════════════════════════════════════════════════════════

@router.get("/sessions/{session_id}/quality")
async def get_quality(session_id: str, store: SessionStore = Depends(get_store)):
    return _session(session_id, store).quality_report().to_dict()


@router.get("/sessions/{session_id}/insights", response_model=InsightResponse)
async def get_insights(session_id: str, store: SessionStore = Depends(get_store)):
    insights = _session(session_id, store).insights()
    counts: Dict[str, int] = {"total": len(insights)}
    for insight in insights:
        counts[insight.severity] = counts.get(insight.severity, 0) + 1
    return InsightResponse(
        insights=[i.to_dict() for i in insights],
        counts=counts,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/sessions/{session_id}/records", response_model=RecordsResponse)
async def get_records(
        session_id: str,
        filtered: bool = Query(True, description="Apply the active filters"),
        limit: int = Query(100, ge=1, le=10000),
        store: SessionStore = Depends(get_store),
):
    session = _session(session_id, store)
    rows = session.filtered_records() if filtered else session.dataset.records
    return RecordsResponse(
        columns=session.dataset.columns,
        rows=rows[:limit],
        total_rows=len(rows),
        returned_rows=min(limit, len(rows)),
        filtered=filtered,
    )


# ═══════════════════════════════════════════════════════════════
# FILTERS
# ═══════════════════════════════════════════════════════════════

def _filter_state(session: ExplorerSession) -> FilterStateResponse:
    return FilterStateResponse(
        options=session.filter_options(),
        active=session.filters,
        filtered_rows=len(session.filtered_records()),
    )


@router.get("/sessions/{session_id}/filters", response_model=FilterStateResponse)
async def get_filters(session_id: str, store: SessionStore = Depends(get_store)):
    return _filter_state(_session(session_id, store))


@router.put("/sessions/{session_id}/filters/{column}", response_model=FilterStateResponse)
async def set_filter(
        session_id: str, column: str, request: FilterRequest,
        store: SessionStore = Depends(get_store),
):
    session = _session(session_id, store)
    try:
        session.set_filter(column, request.values)
    except ExplorerError as e:
        raise _bad_input(e)
    return _filter_state(session)


@router.delete("/sessions/{session_id}/filters/{column}", response_model=FilterStateResponse)
async def remove_filter(session_id: str, column: str, store: SessionStore = Depends(get_store)):
    session = _session(session_id, store)
    session.remove_filter(column)
    return _filter_state(session)


@router.delete("/sessions/{session_id}/filters", response_model=FilterStateResponse)
async def clear_filters(session_id: str, store: SessionStore = Depends(get_store)):
    session = _session(session_id, store)
    session.clear_filters()
    return _filter_state(session)


# ═══════════════════════════════════════════════════════════════
# FIXES, QUESTIONS, EXPORTS
# ═══════════════════════════════════════════════════════════════

@router.post("/sessions/{session_id}/fix")
async def apply_fix(session_id: str, request: FixRequest, store: SessionStore = Depends(get_store)):
    session = _session(session_id, store)
    outcome = session.apply_fix(request.method, request.column)
    if not outcome.applied:
        raise HTTPException(status_code=422, detail=outcome.to_dict())
    return {
        "outcome": outcome.to_dict(),
        "summary": session.summary(),
        "quality": session.quality_report().to_dict(),
    }


@router.post("/sessions/{session_id}/ask", response_model=AskResponse)
async def ask(session_id: str, request: AskRequest, store: SessionStore = Depends(get_store)):
    session = _session(session_id, store)
    try:
        return AskResponse(**session.ask(request.question).to_dict())
    except Exception as e:
        logger.error(f"Ask failed for session {session_id}: {e}", exc_info=True)
        return AskResponse(
            answer="I encountered an error processing your question. Please try again.",
            intent="error",
        )


@router.get("/sessions/{session_id}/export/{kind}")
async def export(session_id: str, kind: str, store: SessionStore = Depends(get_store)):
    if kind not in _EXPORTS:
        raise HTTPException(status_code=404, detail=f"Unknown export '{kind}'. Use one of: {', '.join(_EXPORTS)}")
    session = _session(session_id, store)
    media_type, file_name = _EXPORTS[kind]
    if kind == "csv":
        content = session.export_csv()
    elif kind == "summary":
        content = session.export_summary()
    else:
        content = session.export_insights()
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.get("/health", response_model=HealthResponse)
async def health(store: SessionStore = Depends(get_store)):
    stats = store.stats()
    return HealthResponse(
        status="healthy",
        sessions=stats["sessions"],
        max_sessions=stats["max_sessions"],
        uptime_seconds=round(time.time() - _start_time, 1),
    )
