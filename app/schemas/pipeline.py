from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime


class PipelineRunRequest(BaseModel):
    trigger: Literal["manual", "scheduled"] = "manual"


class ItemErrorOut(BaseModel):
    stage: str
    ref: str
    error: str


class PipelineRunSummaryOut(BaseModel):
    run_id: Optional[str]
    status: str
    trigger: str
    collected: int
    generated: int
    scored: int
    approved: int
    published: int
    content_ids: List[str]
    errors: List[ItemErrorOut]
    message: Optional[str]


class PipelineRunOut(BaseModel):
    id: str
    trigger: str
    status: str
    collected_items: int
    scored_items: int
    generated_items: int
    published_items: int
    stop_requested: bool
    error_message: Optional[str]
    meta: Optional[Dict[str, Any]]
    started_at: datetime
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True
