"""SQLAlchemy models package."""

from marketplace.models.base import Base
from marketplace.models.profile import Profile
from marketplace.models.job_posting import JobPosting
from marketplace.models.saved_job import SavedJob
from marketplace.models.job_application import JobApplication

__all__ = [
    "Base",
    "Profile",
    "JobPosting",
    "SavedJob",
    "JobApplication",
]
