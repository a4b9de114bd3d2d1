"""Reads of job postings joined with their owner profiles."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.job_application import JobApplication
from marketplace.models.job_posting import JobPosting
from marketplace.models.profile import Profile
from marketplace.models.saved_job import SavedJob
from marketplace.schemas.job_posting import Applicant, JobPostingView
from marketplace.services.session_cache import Viewer

logger = logging.getLogger(__name__)


def to_view(posting: JobPosting, owner: Profile, is_saved: bool = False) -> JobPostingView:
    """Flatten a posting and its owner into one view model."""
    return JobPostingView(
        id=posting.id,
        slug=posting.slug,
        title=posting.title,
        description=posting.description,
        has_deadline=posting.has_deadline,
        deadline_date=posting.deadline_date,
        deadline_time=posting.deadline_time,
        created_at=posting.created_at,
        profile_id=owner.id,
        username=owner.username,
        profile_photo_url=owner.profile_photo_url,
        city=owner.city,
        country=owner.country,
        first_name=owner.first_name,
        last_name=owner.last_name,
        user_type=owner.user_type,
        is_saved=is_saved,
    )


def _posting_with_owner():
    return select(JobPosting, Profile).join(Profile, JobPosting.profile_id == Profile.id)


async def fetch_saved_ids(db: AsyncSession, profile_id: UUID) -> set[UUID]:
    result = await db.execute(
        select(SavedJob.job_posting_id).where(SavedJob.profile_id == profile_id)
    )
    return {row[0] for row in result}


async def fetch_listing(db: AsyncSession, viewer: Viewer) -> tuple[list[JobPostingView], set[UUID]]:
    """All postings, newest first, plus the viewer's saved ids when they are a creator.

    The whole table is read on every call.
    """
    result = await db.execute(_posting_with_owner().order_by(JobPosting.created_at.desc()))
    rows = result.all()

    saved_ids: set[UUID] = set()
    if viewer.is_creator:
        saved_ids = await fetch_saved_ids(db, viewer.profile_id)

    postings = [to_view(posting, owner, posting.id in saved_ids) for posting, owner in rows]
    logger.debug(f"Fetched {len(postings)} postings ({len(saved_ids)} saved)")
    return postings, saved_ids


async def fetch_posting(db: AsyncSession, slug: str, viewer: Viewer | None = None) -> JobPostingView | None:
    """Single posting by slug, or None."""
    return await _fetch_one(db, JobPosting.slug == slug, viewer)


async def fetch_posting_by_id(db: AsyncSession, posting_id: UUID, viewer: Viewer | None = None) -> JobPostingView | None:
    return await _fetch_one(db, JobPosting.id == posting_id, viewer)


async def _fetch_one(db: AsyncSession, clause, viewer: Viewer | None) -> JobPostingView | None:
    result = await db.execute(_posting_with_owner().where(clause))
    row = result.one_or_none()
    if row is None:
        return None

    posting, owner = row
    is_saved = False
    if viewer is not None and viewer.is_creator:
        is_saved = await has_saved(db, viewer.profile_id, posting.id)
    return to_view(posting, owner, is_saved)


async def has_saved(db: AsyncSession, profile_id: UUID, posting_id: UUID) -> bool:
    result = await db.execute(
        select(SavedJob.id).where(SavedJob.profile_id == profile_id, SavedJob.job_posting_id == posting_id)
    )
    return result.first() is not None


async def has_applied(db: AsyncSession, profile_id: UUID, posting_id: UUID) -> bool:
    result = await db.execute(
        select(JobApplication.id).where(
            JobApplication.profile_id == profile_id,
            JobApplication.job_posting_id == posting_id,
        )
    )
    return result.first() is not None


async def fetch_applicants(db: AsyncSession, posting_id: UUID) -> list[Applicant]:
    """Applicants to a posting, most recent application first."""
    result = await db.execute(
        select(Profile, JobApplication.created_at)
        .join(JobApplication, JobApplication.profile_id == Profile.id)
        .where(JobApplication.job_posting_id == posting_id)
        .order_by(JobApplication.created_at.desc())
    )
    return [
        Applicant(
            id=profile.id,
            username=profile.username,
            first_name=profile.first_name,
            last_name=profile.last_name,
            profile_photo_url=profile.profile_photo_url,
            city=profile.city,
            country=profile.country,
            created_at=applied_at,
        )
        for profile, applied_at in result.all()
    ]


async def fetch_country_options(db: AsyncSession) -> list[str]:
    """Distinct countries across profiles, for the filter dropdowns."""
    result = await db.execute(select(Profile.country).distinct())
    return sorted(row[0] for row in result if row[0])
