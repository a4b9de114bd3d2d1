"""Job posting API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.dependencies.auth import get_viewer
from marketplace.models.base import get_db
from marketplace.schemas.job_posting import JobPostingView
from marketplace.services.job_filter import ListingFilters, filter_postings
from marketplace.services.listing_service import fetch_listing, fetch_posting
from marketplace.services.session_cache import Viewer

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=list[JobPostingView])
async def list_jobs(
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
    q: str | None = Query(None, description="Search in title, description, city and owner name"),
    country: str | None = Query(None, description="Filter by owner country"),
    saved: bool = Query(False, description="Only postings saved by the viewer"),
    mine: bool = Query(False, description="Only postings owned by the viewer"),
):
    """List postings newest first, filtered the same way as the listing page."""
    filters = ListingFilters(
        query=(q or "").strip(),
        country=(country or "").strip(),
        saved_only=saved,
        mine_only=mine,
    )
    postings, _ = await fetch_listing(db, viewer)
    return filter_postings(postings, filters, viewer.profile_id)


@router.get("/{slug}", response_model=JobPostingView)
async def get_job(
    slug: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
):
    """Get a single posting by slug."""
    posting = await fetch_posting(db, slug, viewer)
    if posting is None:
        raise HTTPException(status_code=404, detail="Job posting not found")
    return posting
