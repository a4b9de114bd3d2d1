"""Saved job model: a creator's bookmark of a posting."""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from marketplace.models.base import Base, TimestampMixin, UUIDMixin


class SavedJob(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "saved_jobs"

    profile_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    job_posting_id = Column(Uuid(as_uuid=True), ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    profile = relationship("Profile", back_populates="saved_jobs")
    job_posting = relationship("JobPosting", back_populates="saved_by")

    __table_args__ = (
        UniqueConstraint("profile_id", "job_posting_id", name="uq_saved_jobs_profile_job"),
    )
