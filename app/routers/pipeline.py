from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_orchestrator, get_repository
from app.schemas.pipeline import PipelineRunOut, PipelineRunRequest, PipelineRunSummaryOut
from app.services.orchestrator import PipelineOrchestrator
from app.services.repository import SqlContentRepository

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.post("/run", response_model=PipelineRunSummaryOut)
def run_pipeline(
    payload: PipelineRunRequest | None = None,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Manual trigger. Returns status "skipped" when another run is in progress."""
    trigger = payload.trigger if payload else "manual"
    summary = orchestrator.run_pipeline(trigger)
    return asdict(summary)


@router.get("/runs", response_model=list[PipelineRunOut])
def list_runs(
    repo: SqlContentRepository = Depends(get_repository),
    limit: int = Query(20, ge=1, le=200),
):
    return repo.list_runs(limit=limit)


@router.get("/runs/{run_id}", response_model=PipelineRunOut)
def get_run(run_id: str, repo: SqlContentRepository = Depends(get_repository)):
    run = repo.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return run


@router.post("/runs/{run_id}/stop", response_model=PipelineRunOut)
def stop_run(run_id: str, repo: SqlContentRepository = Depends(get_repository)):
    """Ask a running run to stop; it finishes as failed at the next stage boundary."""
    run = repo.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    if not repo.request_stop(run_id):
        raise HTTPException(status_code=409, detail=f"Run is not running (status: {run.status})")
    return repo.get_run(run_id)
