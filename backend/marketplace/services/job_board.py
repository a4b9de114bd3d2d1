"""Listing state for one viewer and the mutations that change it.

Every mutation performs the remote write first and only then patches the
in-memory listing; nothing is re-fetched afterwards. A failed write raises
and leaves the listing exactly as it was.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.exceptions import MutationError, PermissionDenied, PostingValidationError
from marketplace.models.job_application import JobApplication
from marketplace.models.job_posting import JobPosting
from marketplace.models.saved_job import SavedJob
from marketplace.schemas.job_posting import JobPostingForm, JobPostingView
from marketplace.services.job_filter import ListingFilters, filter_postings
from marketplace.services.job_postings import generate_slug, is_deadline_passed
from marketplace.services.listing_service import (
    fetch_listing,
    fetch_posting,
    fetch_posting_by_id,
    has_applied,
    to_view,
)
from marketplace.services.session_cache import Viewer

logger = logging.getLogger(__name__)


class JobBoard:
    def __init__(
        self,
        db: AsyncSession,
        viewer: Viewer,
        postings: Iterable[JobPostingView],
        saved_ids: Iterable[UUID] = (),
        filters: ListingFilters | None = None,
    ):
        self.db = db
        self.viewer = viewer
        self.postings: list[JobPostingView] = list(postings)
        self.saved_ids: set[UUID] = set(saved_ids)
        self.applied_ids: set[UUID] = set()
        self.filters = filters or ListingFilters()
        self.visible: list[JobPostingView] = []
        self.recompute()

    @classmethod
    async def load(cls, db: AsyncSession, viewer: Viewer, filters: ListingFilters | None = None) -> "JobBoard":
        """Board over the full listing."""
        postings, saved_ids = await fetch_listing(db, viewer)
        return cls(db, viewer, postings, saved_ids, filters)

    @classmethod
    async def for_posting(cls, db: AsyncSession, viewer: Viewer, slug: str | None = None,
                          posting_id: UUID | None = None) -> "JobBoard":
        """Board holding a single posting, for the detail page and HTMX actions."""
        if slug is not None:
            posting = await fetch_posting(db, slug, viewer)
        else:
            posting = await fetch_posting_by_id(db, posting_id, viewer)
        postings = [posting] if posting else []
        board = cls(db, viewer, postings, {p.id for p in postings if p.is_saved})
        if posting and viewer.is_creator and await has_applied(db, viewer.profile_id, posting.id):
            board.applied_ids.add(posting.id)
        return board

    # --- Filters ---

    def set_filters(self, filters: ListingFilters) -> None:
        self.filters = filters
        self.recompute()

    def toggle_filter(self, name: str) -> None:
        self.set_filters(self.filters.toggled(name))

    def recompute(self) -> None:
        self.visible = filter_postings(self.postings, self.filters, self.viewer.profile_id)

    def get(self, posting_id: UUID) -> JobPostingView | None:
        return next((p for p in self.postings if p.id == posting_id), None)

    def _require(self, posting_id: UUID) -> JobPostingView:
        posting = self.get(posting_id)
        if posting is None:
            raise MutationError("Job posting not found")
        return posting

    def _replace(self, posting_id: UUID, new_posting: JobPostingView | None) -> None:
        if new_posting is None:
            self.postings = [p for p in self.postings if p.id != posting_id]
        else:
            self.postings = [new_posting if p.id == posting_id else p for p in self.postings]
        self.recompute()

    async def _write(self, action: str) -> None:
        """Flush pending writes, rolling back and raising MutationError on failure."""
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise MutationError(f"Failed to {action}") from e

    # --- Posting CRUD ---

    async def create_posting(self, form: JobPostingForm) -> JobPostingView:
        if not self.viewer.is_business:
            raise PermissionDenied("Only business accounts can post jobs")
        errors = form.validation_errors()
        if errors:
            raise PostingValidationError(errors)

        fields = form.mutable_fields()
        posting = JobPosting(
            id=uuid.uuid4(),
            profile_id=self.viewer.profile_id,
            slug=generate_slug(fields["title"]),
            created_at=datetime.now(timezone.utc),
            **fields,
        )
        self.db.add(posting)
        await self._write("create job posting")

        view = to_view(posting, self.viewer.profile)
        self.postings = [view, *self.postings]
        self.recompute()
        logger.info(f"Created job posting {view.slug}")
        return view

    async def update_posting(self, posting_id: UUID, form: JobPostingForm) -> JobPostingView:
        existing = self._require(posting_id)
        if not self.viewer.owns(existing.profile_id):
            raise PermissionDenied("Only the owner can edit this posting")
        errors = form.validation_errors()
        if errors:
            raise PostingValidationError(errors)

        fields = form.mutable_fields()
        try:
            result = await self.db.execute(
                update(JobPosting)
                .where(JobPosting.id == posting_id, JobPosting.profile_id == self.viewer.profile_id)
                .values(**fields)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update job posting {posting_id}: {e}")
            raise MutationError("Failed to update job posting") from e
        if result.rowcount == 0:
            raise MutationError("Job posting no longer exists")

        updated = existing.model_copy(update=fields)
        self._replace(posting_id, updated)
        return updated

    async def delete_posting(self, posting_id: UUID, confirmed: bool = False) -> None:
        existing = self._require(posting_id)
        if not self.viewer.owns(existing.profile_id):
            raise PermissionDenied("Only the owner can delete this posting")
        if not confirmed:
            raise MutationError("Deletion was not confirmed")

        try:
            await self.db.execute(
                delete(JobPosting).where(
                    JobPosting.id == posting_id,
                    JobPosting.profile_id == self.viewer.profile_id,
                )
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete job posting {posting_id}: {e}")
            raise MutationError("Failed to delete job posting") from e

        self.saved_ids.discard(posting_id)
        self._replace(posting_id, None)
        logger.info(f"Deleted job posting {existing.slug}")

    # --- Creator actions ---

    def _require_creator(self, action: str) -> None:
        if not self.viewer.is_creator:
            raise PermissionDenied(f"Only creators can {action}")

    async def toggle_save(self, posting_id: UUID) -> bool:
        """Save or unsave a posting. Returns the new saved state."""
        self._require_creator("save jobs")
        posting = self._require(posting_id)
        profile_id = self.viewer.profile_id

        if posting_id in self.saved_ids:
            try:
                await self.db.execute(
                    delete(SavedJob).where(SavedJob.profile_id == profile_id, SavedJob.job_posting_id == posting_id)
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to unsave job {posting_id}: {e}")
                raise MutationError("Failed to unsave job") from e
            self.saved_ids.discard(posting_id)
            is_saved = False
        else:
            try:
                existing = await self.db.execute(
                    select(SavedJob.id).where(SavedJob.profile_id == profile_id, SavedJob.job_posting_id == posting_id)
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to check saved state of {posting_id}: {e}")
                raise MutationError("Failed to save job") from e
            if existing.first() is None:
                self.db.add(SavedJob(profile_id=profile_id, job_posting_id=posting_id))
                await self._write("save job")
            self.saved_ids.add(posting_id)
            is_saved = True

        # recompute drops an unsaved posting from a saved-only view right away
        self._replace(posting_id, posting.model_copy(update={"is_saved": is_saved}))
        return is_saved

    def can_apply(self, posting: JobPostingView, now: datetime | None = None) -> bool:
        return (
            self.viewer.is_creator
            and not self.viewer.owns(posting.profile_id)
            and posting.id not in self.applied_ids
            and not is_deadline_passed(posting, now)
        )

    async def apply(self, posting_id: UUID, now: datetime | None = None) -> bool:
        """Apply to a posting. Returns True once the application is recorded."""
        self._require_creator("apply to jobs")
        posting = self._require(posting_id)
        if self.viewer.owns(posting.profile_id):
            raise PermissionDenied("You cannot apply to your own posting")
        if is_deadline_passed(posting, now):
            raise PermissionDenied("The deadline for this posting has passed")

        profile_id = self.viewer.profile_id
        if posting_id in self.applied_ids:
            return True
        try:
            already_applied = await has_applied(self.db, profile_id, posting_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to check application for {posting_id}: {e}")
            raise MutationError("Failed to apply for this job") from e
        if already_applied:
            self.applied_ids.add(posting_id)
            return True

        self.db.add(
            JobApplication(
                profile_id=profile_id,
                job_posting_id=posting_id,
                created_at=datetime.now(timezone.utc),
            )
        )
        await self._write("apply for this job")

        self.applied_ids.add(posting_id)
        logger.info(f"Profile {profile_id} applied to {posting.slug}")
        return True
