from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.schemas.metadata import RawItemMetadata


class RawItemCreate(BaseModel):
    source: str = Field(min_length=1)
    title: str = Field(min_length=1)
    body: Optional[str] = None
    url: Optional[str] = None
    category_hint: Optional[str] = None
    raw_score: float = Field(ge=0, le=1)
    metadata: Optional[RawItemMetadata] = None


class RawItemOut(BaseModel):
    id: str
    source: str
    title: str
    url: Optional[str]
    category_hint: Optional[str]
    raw_score: float
    collected_at: datetime

    class Config:
        from_attributes = True
