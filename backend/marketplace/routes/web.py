"""Web routes for the home page, dashboard and creator directory."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.dependencies.auth import get_viewer, require_profile
from marketplace.models.base import get_db
from marketplace.routes.auth import safe_return_url
from marketplace.services.job_filter import filter_creators
from marketplace.services.listing_service import fetch_country_options
from marketplace.services.profile_service import fetch_profile_by_username, fetch_public_creators
from marketplace.services.session_cache import Viewer
from marketplace.templating import page_context, templates

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    viewer: Viewer = Depends(get_viewer),
    returnUrl: str | None = None,
):
    """Landing page. A signed-in visitor sent here with a returnUrl goes straight back."""
    return_url = safe_return_url(returnUrl)
    if viewer.is_authenticated and return_url:
        return RedirectResponse(return_url, status_code=303)
    return templates.TemplateResponse(
        request,
        "index.html",
        page_context(request, viewer, return_url=return_url),
    )


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, viewer: Viewer = Depends(require_profile)):
    return templates.TemplateResponse(request, "dashboard.html", page_context(request, viewer))


async def _creator_context(db: AsyncSession, q: str, country: str) -> dict:
    """Directory rows after filtering, or a load error for the inline banner."""
    try:
        creators = await fetch_public_creators(db)
        countries = await fetch_country_options(db)
    except SQLAlchemyError:
        logger.exception("Error fetching creators")
        return {"creators": [], "countries": [], "load_error": "Failed to load creators", "total": 0}
    return {
        "creators": filter_creators(creators, q, country),
        "countries": countries,
        "load_error": None,
        "total": len(creators),
    }


@router.get("/creators", response_class=HTMLResponse)
async def creators_page(
    request: Request,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
    q: str = "",
    country: str = "",
):
    ctx = await _creator_context(db, q, country)
    return templates.TemplateResponse(
        request,
        "creators/list.html",
        page_context(request, viewer, q=q, country=country, **ctx),
    )


@router.get("/creators/partial", response_class=HTMLResponse)
async def creators_partial(
    request: Request,
    db: AsyncSession = Depends(get_db),
    q: str = "",
    country: str = "",
):
    """HTMX partial returning the filtered creator grid."""
    ctx = await _creator_context(db, q, country)
    return templates.TemplateResponse(
        request,
        "partials/creator_list.html",
        {"q": q, "country": country, **ctx},
    )


@router.get("/creators/{username}", response_class=HTMLResponse)
async def creator_detail(
    request: Request,
    username: str,
    db: AsyncSession = Depends(get_db),
    viewer: Viewer = Depends(get_viewer),
):
    creator = await fetch_profile_by_username(db, username)
    # Private creators are only visible to themselves
    if creator is None or not creator.is_creator or not (creator.is_public or viewer.owns(creator.id)):
        raise HTTPException(status_code=404, detail="Creator not found")
    return templates.TemplateResponse(
        request,
        "creators/detail.html",
        page_context(request, viewer, creator=creator),
    )
