from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_batch_engine
from app.schemas.batch import BatchActionRequest, BatchResultOut
from app.services.batch import APPROVE_BY_CONFIDENCE, BatchEngine, BatchOptions, BatchResult, BatchSelector
from app.utils.constants import STATES

router = APIRouter(prefix="/batch", tags=["batch"])


def batch_response(result: BatchResult) -> dict:
    return {
        "action": result.action,
        "dry_run": result.dry_run,
        "processed": result.processed,
        "succeeded": result.succeeded,
        "failed": result.failed,
        "items": [vars(r) for r in result.items],
    }


@router.post("/action", response_model=BatchResultOut)
def batch_action(payload: BatchActionRequest, engine: BatchEngine = Depends(get_batch_engine)):
    if payload.action != APPROVE_BY_CONFIDENCE and not payload.content_ids:
        raise HTTPException(status_code=400, detail="content_ids must be a non-empty list")

    for s in payload.statuses or []:
        if s not in STATES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {s}")

    selector = BatchSelector(
        ids=payload.content_ids,
        threshold=payload.threshold,
        statuses=payload.statuses,
        category=payload.category,
        neighborhood_id=payload.neighborhood_id,
        max_items=payload.max_items,
    )
    options = BatchOptions(
        dry_run=payload.dry_run,
        min_confidence=payload.min_confidence,
        reason=(payload.reason or "").strip() or None,
        actor=payload.actor,
        neighborhood_id=payload.target_neighborhood_id,
    )
    return batch_response(engine.run_batch_action(payload.action, selector, options))
