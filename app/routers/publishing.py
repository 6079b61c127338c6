from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_fanout, get_repository
from app.schemas.publication import PublicationOut, PublishRequest, PublishResultOut
from app.services.publication import PublicationFanout
from app.services.repository import SqlContentRepository

router = APIRouter(prefix="/publishing", tags=["publishing"])


@router.post("/publish", response_model=PublishResultOut)
def publish(payload: PublishRequest, fanout: PublicationFanout = Depends(get_fanout)):
    # strict: only approved items (or published ones with republish=true)
    result = fanout.publish(payload.content_id, payload.neighborhood_id, republish=payload.republish)
    return asdict(result)


@router.get("/{content_id}", response_model=list[PublicationOut])
def list_publications(content_id: str, repo: SqlContentRepository = Depends(get_repository)):
    if not repo.get_content(content_id):
        raise HTTPException(status_code=404, detail="Content not found")
    return repo.list_publications(content_id)
