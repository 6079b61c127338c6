from pydantic import BaseModel, Field
from typing import List, Literal, Optional

BatchAction = Literal["approve_by_confidence", "approve", "reject", "archive", "republish"]


class BatchActionRequest(BaseModel):
    action: BatchAction
    content_ids: Optional[List[str]] = None

    # threshold mode
    threshold: Optional[float] = Field(default=None, ge=0, le=1)
    statuses: Optional[List[str]] = None
    category: Optional[str] = None
    neighborhood_id: Optional[str] = None
    max_items: Optional[int] = Field(default=None, ge=1, le=500)

    dry_run: bool = False
    min_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    reason: Optional[str] = None
    actor: str = "admin"
    target_neighborhood_id: Optional[str] = None


class ItemResultOut(BaseModel):
    id: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    success: bool
    error: Optional[str] = None
    applied: bool = False


class BatchResultOut(BaseModel):
    action: str
    dry_run: bool
    processed: int
    succeeded: int
    failed: int
    items: List[ItemResultOut]
