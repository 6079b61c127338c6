from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from app.schemas.content_item import ContentItemOut


class QueueEntryOut(BaseModel):
    item: ContentItemOut
    priority: str
    priority_score: float
    insights: List[str]
    auto_approve_eligible: bool
    raw_score: Optional[float] = None


class ReviewQueueOut(BaseModel):
    queue: List[QueueEntryOut]
    summary: Dict[str, Any]


class ReviewBatchApproveRequest(BaseModel):
    content_ids: List[str] = Field(min_length=1)
    min_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    actor: str = "admin"
