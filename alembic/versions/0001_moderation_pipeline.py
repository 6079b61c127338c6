"""moderation pipeline tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "neighborhoods",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("subscriber_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "raw_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("source", sa.String(200), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("url", sa.String(1000), nullable=True),
        sa.Column("category_hint", sa.String(30), nullable=True),
        sa.Column("raw_score", sa.Float(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("collected_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "content_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("raw_item_id", sa.String(36), sa.ForeignKey("raw_items.id", ondelete="SET NULL"), nullable=True, unique=True),
        sa.Column("neighborhood_id", sa.String(50), sa.ForeignKey("neighborhoods.id", ondelete="RESTRICT"), nullable=True),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("origin", sa.String(20), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("validation_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("manual_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("validated_at", sa.DateTime(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.String(100), nullable=True),
        sa.Column("rejected_at", sa.DateTime(), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_content_items_status", "content_items", ["status"])

    op.create_table(
        "pipeline_runs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("trigger", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("collected_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scored_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generated_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("published_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "uq_pipeline_runs_single_running",
        "pipeline_runs",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'running'"),
        sqlite_where=sa.text("status = 'running'"),
    )

    op.create_table(
        "publications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("content_id", sa.String(36), sa.ForeignKey("content_items.id"), nullable=False),
        sa.Column("neighborhood_id", sa.String(50), sa.ForeignKey("neighborhoods.id"), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("auto_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("published_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("content_id", "neighborhood_id", name="uq_publication_content_neighborhood"),
    )
    op.create_index("ix_publications_content_id", "publications", ["content_id"])

    op.create_table(
        "validation_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("content_id", sa.String(36), sa.ForeignKey("content_items.id"), nullable=False),
        sa.Column("validation_type", sa.String(20), nullable=False),
        sa.Column("checks", sa.JSON(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("validated_by", sa.String(100), nullable=False),
        sa.Column("validated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_validation_history_content_id", "validation_history", ["content_id"])

    op.create_table(
        "content_edit_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("content_id", sa.String(36), sa.ForeignKey("content_items.id"), nullable=False),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("override_reason", sa.Text(), nullable=True),
        sa.Column("edited_by", sa.String(100), nullable=False),
        sa.Column("edited_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_content_edit_history_content_id", "content_edit_history", ["content_id"])


def downgrade() -> None:
    op.drop_table("content_edit_history")
    op.drop_table("validation_history")
    op.drop_table("publications")
    op.drop_index("uq_pipeline_runs_single_running", table_name="pipeline_runs")
    op.drop_table("pipeline_runs")
    op.drop_index("ix_content_items_status", table_name="content_items")
    op.drop_table("content_items")
    op.drop_table("raw_items")
    op.drop_table("neighborhoods")
