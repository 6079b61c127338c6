from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class PublishRequest(BaseModel):
    content_id: str
    neighborhood_id: Optional[str] = None
    republish: bool = False


class PublicationOut(BaseModel):
    id: str
    content_id: str
    neighborhood_id: str
    category: str
    auto_published: bool
    published_at: datetime

    class Config:
        from_attributes = True


class PublishResultOut(BaseModel):
    content_id: str
    neighborhood_ids: List[str]
    created: List[str]
    republished: bool
