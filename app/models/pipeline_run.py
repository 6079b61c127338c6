import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.clock import utcnow
from app.utils.constants import RUN_RUNNING, TRIGGER_MANUAL


class PipelineRun(Base):
    __tablename__ = "pipeline_runs"
    __table_args__ = (
        # at most one running row; backs the check in start_run
        Index(
            "uq_pipeline_runs_single_running",
            "status",
            unique=True,
            postgresql_where=text("status = 'running'"),
            sqlite_where=text("status = 'running'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trigger: Mapped[str] = mapped_column(String(20), default=TRIGGER_MANUAL)
    status: Mapped[str] = mapped_column(String(20), default=RUN_RUNNING)

    collected_items: Mapped[int] = mapped_column(Integer, default=0)
    scored_items: Mapped[int] = mapped_column(Integer, default=0)
    generated_items: Mapped[int] = mapped_column(Integer, default=0)
    published_items: Mapped[int] = mapped_column(Integer, default=0)

    # set by an admin; the orchestrator checks it between stages
    stop_requested: Mapped[bool] = mapped_column(Boolean, default=False)

    error_message: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
