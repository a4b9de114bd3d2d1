"""Initial schema: profiles, job_postings, saved_jobs, job_applications.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1. profiles (id is the identity provider's user id)
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50)),
        sa.Column("profile_photo_url", sa.Text),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("instagram_url", sa.Text),
        sa.Column("tiktok_url", sa.Text),
        sa.Column("youtube_url", sa.Text),
        sa.Column("is_public", sa.Boolean, server_default=sa.text("false"), nullable=False),
        sa.Column("is_collaborated", sa.Boolean, server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("user_type IN ('creator', 'business')", name="ck_profiles_user_type"),
    )
    op.create_index("ix_profiles_username", "profiles", ["username"], unique=True)
    op.create_index("ix_profiles_country", "profiles", ["country"])
    op.create_index("ix_profiles_user_type", "profiles", ["user_type"])

    # 2. job_postings
    op.create_table(
        "job_postings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("profile_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("has_deadline", sa.Boolean, server_default=sa.text("false"), nullable=False),
        sa.Column("deadline_date", sa.Date),
        sa.Column("deadline_time", sa.Time),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_job_postings_slug", "job_postings", ["slug"], unique=True)
    op.create_index("ix_job_postings_profile_id", "job_postings", ["profile_id"])
    op.create_index("idx_job_postings_created", "job_postings", ["created_at"])

    # 3. saved_jobs
    op.create_table(
        "saved_jobs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("profile_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("job_posting_id", UUID(as_uuid=True), sa.ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("profile_id", "job_posting_id", name="uq_saved_jobs_profile_job"),
    )
    op.create_index("ix_saved_jobs_profile_id", "saved_jobs", ["profile_id"])
    op.create_index("ix_saved_jobs_job_posting_id", "saved_jobs", ["job_posting_id"])

    # 4. job_applications
    op.create_table(
        "job_applications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("profile_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("job_posting_id", UUID(as_uuid=True), sa.ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("profile_id", "job_posting_id", name="uq_job_applications_profile_job"),
    )
    op.create_index("ix_job_applications_profile_id", "job_applications", ["profile_id"])
    op.create_index("ix_job_applications_job_posting_id", "job_applications", ["job_posting_id"])


def downgrade() -> None:
    op.drop_table("job_applications")
    op.drop_table("saved_jobs")
    op.drop_table("job_postings")
    op.drop_table("profiles")
