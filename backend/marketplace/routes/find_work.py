"""Job listing pages: browse, create, detail, edit and delete postings."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.dependencies.auth import get_viewer, require_profile, validate_csrf_token
from marketplace.exceptions import MutationError, PermissionDenied, PostingValidationError
from marketplace.models.base import get_db
from marketplace.schemas.job_posting import JobPostingForm, JobPostingView
from marketplace.services.job_board import JobBoard
from marketplace.services.job_filter import MINE, SAVED, ListingFilters
from marketplace.services.listing_service import fetch_applicants, fetch_country_options
from marketplace.services.session_cache import Viewer
from marketplace.templating import flash, page_context, partial_context, templates

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/find-work")

LOAD_ERROR = "Failed to load job postings"


def _is_htmx(request: Request) -> bool:
    return request.headers.get("HX-Request") == "true"


def listing_context(board: JobBoard | None, filters: ListingFilters, load_error: str | None = None) -> dict:
    toggle_urls = {
        name: "/find-work?" + urlencode(filters.toggled(name).to_params())
        for name in (SAVED, MINE)
    }
    return {
        "jobs": board.visible if board else [],
        "total": len(board.postings) if board else 0,
        "filters": filters,
        "toggle_urls": toggle_urls,
        "load_error": load_error,
    }


async def _load_board(db: AsyncSession, viewer: Viewer, filters: ListingFilters) -> tuple[JobBoard | None, str | None]:
    try:
        return await JobBoard.load(db, viewer, filters), None
    except SQLAlchemyError:
        logger.exception("Error fetching job postings")
        return None, LOAD_ERROR


async def _country_options(db: AsyncSession) -> list[str]:
    try:
        return await fetch_country_options(db)
    except SQLAlchemyError:
        logger.exception("Error fetching country options")
        return []


def _form_values(posting: JobPostingView) -> JobPostingForm:
    return JobPostingForm(
        title=posting.title,
        description=posting.description,
        has_deadline=posting.has_deadline,
        deadline_date=posting.deadline_date,
        deadline_time=posting.deadline_time,
    )


@router.get("", response_class=HTMLResponse)
async def find_work(
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
):
    filters = ListingFilters.from_params(request.query_params)
    board, load_error = await _load_board(db, viewer, filters)
    return templates.TemplateResponse(
        request,
        "find_work/list.html",
        page_context(
            request,
            viewer,
            countries=await _country_options(db),
            form=JobPostingForm(),
            form_errors={},
            **listing_context(board, filters, load_error),
        ),
    )


@router.get("/partial", response_class=HTMLResponse)
async def find_work_partial(
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
):
    """HTMX partial returning the filtered job list."""
    filters = ListingFilters.from_params(request.query_params)
    board, load_error = await _load_board(db, viewer, filters)
    return templates.TemplateResponse(
        request,
        "partials/job_list.html",
        partial_context(request, viewer, **listing_context(board, filters, load_error)),
    )


@router.post("", response_class=HTMLResponse)
async def create_posting(
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(require_profile),
):
    form = await request.form()
    if not validate_csrf_token(request, form.get("csrf_token", "")):
        flash(request, "Invalid request. Please try again.")
        return RedirectResponse("/find-work", status_code=303)

    filters = ListingFilters()
    board, load_error = await _load_board(db, viewer, filters)
    if board is None:
        flash(request, load_error)
        return RedirectResponse("/find-work", status_code=303)

    posting_form, parse_errors = JobPostingForm.from_form(form)
    errors = dict(parse_errors)
    if not errors:
        try:
            posting = await board.create_posting(posting_form)
        except PostingValidationError as e:
            errors = e.errors
        except (PermissionDenied, MutationError) as e:
            flash(request, e.message)
            return RedirectResponse("/find-work", status_code=303)
        else:
            if _is_htmx(request):
                # The board already holds the new posting at the top
                return templates.TemplateResponse(
                    request,
                    "partials/job_list.html",
                    partial_context(request, viewer, **listing_context(board, filters)),
                )
            flash(request, "Job posting created.", "success")
            return RedirectResponse(f"/find-work/{posting.slug}", status_code=303)

    return templates.TemplateResponse(
        request,
        "find_work/list.html",
        page_context(
            request,
            viewer,
            countries=await _country_options(db),
            form=posting_form,
            form_errors=errors,
            **listing_context(board, filters),
        ),
        status_code=422,
    )


async def _board_for_slug(db: AsyncSession, viewer: Viewer, slug: str) -> tuple[JobBoard, JobPostingView]:
    board = await JobBoard.for_posting(db, viewer, slug=slug)
    if not board.postings:
        raise HTTPException(status_code=404, detail="Job posting not found")
    return board, board.postings[0]


async def _owned_posting(db: AsyncSession, viewer: Viewer, slug: str) -> tuple[JobBoard, JobPostingView]:
    board, posting = await _board_for_slug(db, viewer, slug)
    if not viewer.owns(posting.profile_id):
        raise HTTPException(status_code=403, detail="Only the owner can change this posting")
    return board, posting


@router.get("/{slug}", response_class=HTMLResponse)
async def job_detail(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
):
    try:
        board, posting = await _board_for_slug(db, viewer, slug)
        is_owner = viewer.owns(posting.profile_id)
        applicants = await fetch_applicants(db, posting.id) if is_owner else []
    except SQLAlchemyError:
        logger.exception(f"Error fetching job posting {slug}")
        return templates.TemplateResponse(
            request,
            "find_work/detail.html",
            page_context(request, viewer, job=None, load_error="Failed to load job posting"),
        )

    return templates.TemplateResponse(
        request,
        "find_work/detail.html",
        page_context(
            request,
            viewer,
            job=posting,
            is_owner=is_owner,
            applicants=applicants,
            has_applied=posting.id in board.applied_ids,
            can_apply=board.can_apply(posting),
            load_error=None,
        ),
    )


@router.get("/{slug}/edit", response_class=HTMLResponse)
async def edit_posting_page(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(require_profile),
):
    _, posting = await _owned_posting(db, viewer, slug)
    return templates.TemplateResponse(
        request,
        "find_work/form.html",
        page_context(request, viewer, job=posting, form=_form_values(posting), form_errors={}),
    )


@router.post("/{slug}/edit", response_class=HTMLResponse)
async def edit_posting_submit(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(require_profile),
):
    board, posting = await _owned_posting(db, viewer, slug)
    form = await request.form()
    if not validate_csrf_token(request, form.get("csrf_token", "")):
        flash(request, "Invalid request. Please try again.")
        return RedirectResponse(f"/find-work/{slug}/edit", status_code=303)

    posting_form, errors = JobPostingForm.from_form(form)
    if not errors:
        try:
            await board.update_posting(posting.id, posting_form)
        except PostingValidationError as e:
            errors = e.errors
        except (PermissionDenied, MutationError) as e:
            flash(request, e.message)
            return RedirectResponse(f"/find-work/{slug}", status_code=303)
        else:
            flash(request, "Job posting updated.", "success")
            return RedirectResponse(f"/find-work/{slug}", status_code=303)

    return templates.TemplateResponse(
        request,
        "find_work/form.html",
        page_context(request, viewer, job=posting, form=posting_form, form_errors=errors),
        status_code=422,
    )


@router.get("/{slug}/delete", response_class=HTMLResponse)
async def delete_posting_page(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(require_profile),
):
    _, posting = await _owned_posting(db, viewer, slug)
    return templates.TemplateResponse(
        request,
        "find_work/confirm_delete.html",
        page_context(request, viewer, job=posting),
    )


@router.post("/{slug}/delete")
async def delete_posting_submit(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(require_profile),
):
    board, posting = await _owned_posting(db, viewer, slug)
    form = await request.form()
    if not validate_csrf_token(request, form.get("csrf_token", "")):
        flash(request, "Invalid request. Please try again.")
        return RedirectResponse(f"/find-work/{slug}", status_code=303)

    try:
        await board.delete_posting(posting.id, confirmed=form.get("confirmed") == "yes")
    except (PermissionDenied, MutationError) as e:
        flash(request, e.message)
        return RedirectResponse(f"/find-work/{slug}", status_code=303)

    flash(request, "Job posting deleted.", "success")
    return RedirectResponse("/find-work", status_code=303)
