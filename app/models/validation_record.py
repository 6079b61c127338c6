import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.clock import utcnow


class ValidationRecord(Base):
    __tablename__ = "validation_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id: Mapped[str] = mapped_column(String(36), ForeignKey("content_items.id"), nullable=False, index=True)
    validation_type: Mapped[str] = mapped_column(String(20), default="auto")  # auto | manual
    checks: Mapped[dict] = mapped_column(JSON, default=dict)
    confidence: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(30))
    notes: Mapped[str | None] = mapped_column(Text)
    validated_by: Mapped[str] = mapped_column(String(100), default="system")
    validated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
