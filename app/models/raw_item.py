import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.clock import utcnow


class RawItem(Base):
    """A collected item before generation. Written once, never edited."""

    __tablename__ = "raw_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    source: Mapped[str] = mapped_column(String(200), nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    category_hint: Mapped[str | None] = mapped_column(String(30), nullable=True)
    raw_score: Mapped[float] = mapped_column(Float, default=0.0)

    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    collected_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
