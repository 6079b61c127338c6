from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_moderation, get_override_service, get_repository
from app.schemas.content_item import ContentItemOut, ManualOverrideOut, ManualOverrideRequest, ValidationOut
from app.services.errors import InvalidTransitionError
from app.services.manual_override import ManualOverrideService
from app.services.moderation import ModerationService
from app.services.repository import SqlContentRepository
from app.utils.constants import STATES

router = APIRouter(prefix="/content", tags=["content"])


@router.get("", response_model=list[ContentItemOut])
def list_content(
    repo: SqlContentRepository = Depends(get_repository),
    status: list[str] | None = Query(None),
    category: str | None = None,
    neighborhood_id: str | None = None,
    min_confidence: float | None = Query(None, ge=0, le=1),
    max_confidence: float | None = Query(None, ge=0, le=1),
    order: str = Query("recent", pattern="^(recent|confidence)$"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    for s in status or []:
        if s not in STATES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {s}")

    return repo.list_content(
        statuses=status,
        category=category,
        neighborhood_id=neighborhood_id,
        min_confidence=min_confidence,
        max_confidence=max_confidence,
        order=order,
        limit=limit,
        offset=offset,
    )


@router.get("/{cid}", response_model=ContentItemOut)
def get_content(cid: str, repo: SqlContentRepository = Depends(get_repository)):
    item = repo.get_content(cid)
    if not item:
        raise HTTPException(status_code=404, detail="Content not found")
    return item


@router.put("/{cid}", response_model=ManualOverrideOut)
def override_content(
    cid: str,
    payload: ManualOverrideRequest,
    service: ManualOverrideService = Depends(get_override_service),
):
    try:
        result = service.apply(cid, **payload.model_dump())
    except InvalidTransitionError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"item": ContentItemOut.model_validate(result.item), "changes_made": sorted(result.changes)}


@router.post("/{cid}/validate", response_model=ValidationOut)
def validate_content(cid: str, moderation: ModerationService = Depends(get_moderation)):
    outcome = moderation.assess(cid, validated_by="admin", validation_type="manual")
    return {
        "content_id": outcome.content_id,
        "previous_status": outcome.previous_status,
        "status": outcome.status,
        "confidence": outcome.confidence,
        "score": outcome.score.confidence,
        "checks": outcome.validation.checks,
        "score_breakdown": outcome.score.breakdown,
        "notes": outcome.validation.notes,
    }
