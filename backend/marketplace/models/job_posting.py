"""Job posting model: business-authored listings addressed by slug."""

from sqlalchemy import Column, String, Boolean, Date, Time, Text, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from marketplace.models.base import Base, TimestampMixin, UUIDMixin


class JobPosting(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "job_postings"

    profile_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Immutable after creation
    slug = Column(String(255), unique=True, nullable=False, index=True)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    has_deadline = Column(Boolean, default=False, nullable=False)
    deadline_date = Column(Date)
    deadline_time = Column(Time)  # only meaningful with deadline_date

    # Relationships
    owner = relationship("Profile", back_populates="job_postings")
    saved_by = relationship("SavedJob", back_populates="job_posting", cascade="all, delete-orphan")
    applications = relationship("JobApplication", back_populates="job_posting", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_job_postings_created", "created_at"),
    )
