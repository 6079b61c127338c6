from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.clock import utcnow


class Neighborhood(Base):
    __tablename__ = "neighborhoods"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)  # "praha2", "praha4", ...
    name: Mapped[str] = mapped_column(String(100), nullable=False)  # "Vinohrady"
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    subscriber_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
