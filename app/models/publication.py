import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.clock import utcnow


class PublicationRecord(Base):
    __tablename__ = "publications"
    __table_args__ = (UniqueConstraint("content_id", "neighborhood_id", name="uq_publication_content_neighborhood"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id: Mapped[str] = mapped_column(String(36), ForeignKey("content_items.id"), nullable=False, index=True)
    neighborhood_id: Mapped[str] = mapped_column(String(50), ForeignKey("neighborhoods.id"), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    auto_published: Mapped[bool] = mapped_column(Boolean, default=False)
    published_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
