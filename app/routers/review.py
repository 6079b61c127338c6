from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.config import PipelineConfig, get_config
from app.dependencies import get_batch_engine, get_clock, get_repository
from app.routers.batch import batch_response
from app.schemas.batch import BatchResultOut
from app.schemas.content_item import ContentItemOut
from app.schemas.review import ReviewBatchApproveRequest, ReviewQueueOut
from app.services.batch import APPROVE, BatchEngine, BatchOptions, BatchSelector
from app.services.clock import Clock
from app.services.repository import SqlContentRepository
from app.services.review_queue import build_review_queue

router = APIRouter(prefix="/review", tags=["review"])


@router.get("/queue", response_model=ReviewQueueOut)
def review_queue(
    repo: SqlContentRepository = Depends(get_repository),
    config: PipelineConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
    limit: int = Query(50, ge=1, le=200),
):
    queue = build_review_queue(repo, config, clock, limit=limit)
    return {
        "queue": [
            {
                "item": ContentItemOut.model_validate(e.item),
                "priority": e.priority,
                "priority_score": e.priority_score,
                "insights": e.insights,
                "auto_approve_eligible": e.auto_approve_eligible,
                "raw_score": e.raw_score,
            }
            for e in queue.entries
        ],
        "summary": queue.summary,
    }


@router.post("/batch-approve", response_model=BatchResultOut)
def batch_approve(
    payload: ReviewBatchApproveRequest,
    engine: BatchEngine = Depends(get_batch_engine),
    config: PipelineConfig = Depends(get_config),
):
    min_confidence = config.review_min_confidence if payload.min_confidence is None else payload.min_confidence
    result = engine.run_batch_action(
        APPROVE,
        BatchSelector(ids=payload.content_ids),
        BatchOptions(min_confidence=min_confidence, actor=payload.actor),
    )
    return batch_response(result)
