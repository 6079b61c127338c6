# backend/app/routers/raw_items.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_repository
from app.schemas.raw_item import RawItemCreate, RawItemOut
from app.services.repository import SqlContentRepository
from app.utils.constants import CATEGORIES

router = APIRouter(prefix="/raw-items", tags=["raw-items"])


@router.post("", response_model=RawItemOut, status_code=201)
def create_raw_item(payload: RawItemCreate, repo: SqlContentRepository = Depends(get_repository)):
    """
    Ingest one collected item. Raw items are write-once: there is no update endpoint.
    """
    if payload.category_hint and payload.category_hint not in CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Invalid category_hint: {payload.category_hint}")

    return repo.add_raw_item(
        source=payload.source.strip(),
        title=payload.title.strip(),
        body=payload.body,
        url=payload.url,
        category_hint=payload.category_hint,
        raw_score=payload.raw_score,
        metadata=payload.metadata,
    )
