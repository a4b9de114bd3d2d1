"""Profile model: identity and role record keyed by the provider user id."""

from sqlalchemy import Column, String, Boolean, Text, Uuid
from sqlalchemy.orm import relationship

from marketplace.models.base import Base, TimestampMixin

ROLE_CREATOR = "creator"
ROLE_BUSINESS = "business"
ROLES = (ROLE_CREATOR, ROLE_BUSINESS)


class Profile(TimestampMixin, Base):
    __tablename__ = "profiles"

    # Issued by the identity provider, never generated here
    id = Column(Uuid(as_uuid=True), primary_key=True)

    username = Column(String(50), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(50))
    profile_photo_url = Column(Text)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False, index=True)
    user_type = Column(String(20), nullable=False, index=True)  # creator, business

    # Creator-only
    instagram_url = Column(Text)
    tiktok_url = Column(Text)
    youtube_url = Column(Text)
    is_public = Column(Boolean, default=False, nullable=False)
    is_collaborated = Column(Boolean, default=False, nullable=False)

    # Relationships
    job_postings = relationship("JobPosting", back_populates="owner")
    saved_jobs = relationship("SavedJob", back_populates="profile", cascade="all, delete-orphan")
    applications = relationship("JobApplication", back_populates="profile", cascade="all, delete-orphan")
