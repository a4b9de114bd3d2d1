"""HTMX interaction endpoints for saving and applying to postings."""

import logging
from urllib.parse import parse_qsl, urlsplit
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.dependencies.auth import require_profile_api, validate_csrf_token
from marketplace.exceptions import MutationError, PermissionDenied
from marketplace.models.base import get_db
from marketplace.routes.find_work import listing_context
from marketplace.services.job_board import JobBoard
from marketplace.services.job_filter import ListingFilters
from marketplace.services.session_cache import Viewer
from marketplace.templating import partial_context, templates

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/interactions", tags=["interactions"])


def _check_csrf(request: Request):
    """Validate CSRF token from X-CSRF-Token header."""
    token = request.headers.get("X-CSRF-Token", "")
    if not validate_csrf_token(request, token):
        raise HTTPException(status_code=403, detail="Invalid CSRF token")


async def _board(db: AsyncSession, viewer: Viewer, job_id: UUID) -> JobBoard:
    board = await JobBoard.for_posting(db, viewer, posting_id=job_id)
    if board.get(job_id) is None:
        raise HTTPException(status_code=404, detail="Job posting not found")
    return board


def _page_filters(request: Request) -> ListingFilters:
    """Filters of the listing page the request was sent from (htmx sends HX-Current-URL)."""
    params = dict(parse_qsl(urlsplit(request.headers.get("HX-Current-URL", "")).query))
    params.update(request.query_params)
    return ListingFilters.from_params(params)


async def _toggle_save(request: Request, job_id: UUID, viewer: Viewer, db: AsyncSession, want_saved: bool):
    _check_csrf(request)
    filters = _page_filters(request)
    if filters.is_active:
        # Whole listing, so a posting that drops out of the view can be removed from it
        board = await JobBoard.load(db, viewer, filters)
        if board.get(job_id) is None:
            raise HTTPException(status_code=404, detail="Job posting not found")
    else:
        board = await _board(db, viewer, job_id)

    # POST on a saved posting and DELETE on an unsaved one are no-ops
    if (job_id in board.saved_ids) != want_saved:
        try:
            await board.toggle_save(job_id)
        except PermissionDenied as e:
            raise HTTPException(status_code=403, detail=e.message)
        except MutationError as e:
            raise HTTPException(status_code=409, detail=e.message)

    if filters.is_active and job_id not in {job.id for job in board.visible}:
        response = templates.TemplateResponse(
            request,
            "partials/job_list.html",
            partial_context(request, viewer, **listing_context(board, filters)),
        )
        response.headers["HX-Retarget"] = "#job-list"
        response.headers["HX-Reswap"] = "innerHTML"
        return response

    return templates.TemplateResponse(
        request,
        "partials/save_button.html",
        partial_context(request, viewer, job=board.get(job_id)),
    )


@router.post("/save/{job_id}", response_class=HTMLResponse)
async def save_job(
    request: Request,
    job_id: UUID,
    viewer: Viewer = Depends(require_profile_api),
    db: AsyncSession = Depends(get_db),
):
    """Save a job (bookmark). Returns updated save button partial."""
    return await _toggle_save(request, job_id, viewer, db, want_saved=True)


@router.delete("/save/{job_id}", response_class=HTMLResponse)
async def unsave_job(
    request: Request,
    job_id: UUID,
    viewer: Viewer = Depends(require_profile_api),
    db: AsyncSession = Depends(get_db),
):
    """Unsave a job. Returns updated save button partial."""
    return await _toggle_save(request, job_id, viewer, db, want_saved=False)


@router.post("/apply/{job_id}", response_class=HTMLResponse)
async def apply_to_job(
    request: Request,
    job_id: UUID,
    viewer: Viewer = Depends(require_profile_api),
    db: AsyncSession = Depends(get_db),
):
    """Apply to a job. Returns the apply button in its applied state."""
    _check_csrf(request)
    board = await _board(db, viewer, job_id)

    try:
        await board.apply(job_id)
    except PermissionDenied as e:
        raise HTTPException(status_code=403, detail=e.message)
    except MutationError as e:
        raise HTTPException(status_code=409, detail=e.message)

    job = board.get(job_id)
    return templates.TemplateResponse(
        request,
        "partials/apply_button.html",
        partial_context(
            request,
            viewer,
            job=job,
            has_applied=job_id in board.applied_ids,
            can_apply=board.can_apply(job),
        ),
    )
