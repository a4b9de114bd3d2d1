"""Job application model: a creator applying to a posting."""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from marketplace.models.base import Base, TimestampMixin, UUIDMixin


class JobApplication(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "job_applications"

    profile_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    job_posting_id = Column(Uuid(as_uuid=True), ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    profile = relationship("Profile", back_populates="applications")
    job_posting = relationship("JobPosting", back_populates="applications")

    __table_args__ = (
        UniqueConstraint("profile_id", "job_posting_id", name="uq_job_applications_profile_job"),
    )
