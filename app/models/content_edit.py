import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.clock import utcnow


class ContentEditHistory(Base):
    __tablename__ = "content_edit_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id: Mapped[str] = mapped_column(String(36), ForeignKey("content_items.id"), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(30), default="edit")
    changes: Mapped[dict] = mapped_column(JSON, default=dict)  # {"field": {"from": ..., "to": ...}}
    override_reason: Mapped[str | None] = mapped_column(Text)
    edited_by: Mapped[str] = mapped_column(String(100), default="admin")
    edited_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
