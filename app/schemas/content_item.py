from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class ContentItemOut(BaseModel):
    id: str
    raw_item_id: Optional[str]
    neighborhood_id: Optional[str]
    category: str
    status: str
    confidence: float
    origin: str
    title: str
    body: str
    summary: Optional[str]
    admin_notes: Optional[str]
    validation_notes: Optional[str]
    rejection_reason: Optional[str]
    manual_override: bool
    retry_count: int
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    created_at: datetime
    updated_at: datetime
    validated_at: Optional[datetime]
    approved_at: Optional[datetime]
    approved_by: Optional[str]
    rejected_at: Optional[datetime]
    published_at: Optional[datetime]

    class Config:
        from_attributes = True


class ManualOverrideRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    body: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    neighborhood_id: Optional[str] = None
    admin_notes: Optional[str] = None
    status: Optional[str] = None
    override_reason: Optional[str] = None
    edited_by: str = "admin"


class ManualOverrideOut(BaseModel):
    item: ContentItemOut
    changes_made: List[str]


class ValidationOut(BaseModel):
    content_id: str
    previous_status: str
    status: str
    confidence: float
    score: float
    checks: Dict[str, bool]
    score_breakdown: Dict[str, float]
    notes: List[str]
