"""Pydantic schemas package."""

from marketplace.schemas.job_posting import (
    Applicant,
    JobPostingForm,
    JobPostingView,
)
from marketplace.schemas.profile import (
    CreatorSummary,
    ProfileRead,
    RegistrationData,
)

__all__ = [
    # JobPosting
    "Applicant",
    "JobPostingForm",
    "JobPostingView",
    # Profile
    "CreatorSummary",
    "ProfileRead",
    "RegistrationData",
]
