"""Shared Jinja2 environment, template helpers and flash messages."""

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from marketplace.dependencies.auth import ensure_csrf_token
from marketplace.services.job_postings import format_deadline, is_deadline_passed
from marketplace.services.session_cache import Viewer

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.globals["format_deadline"] = format_deadline
templates.env.globals["is_deadline_passed"] = is_deadline_passed


def _format_date(value) -> str:
    if not value:
        return ""
    return value.strftime("%B %d, %Y").replace(" 0", " ")


templates.env.filters["format_date"] = _format_date


def flash(request: Request, message: str, category: str = "error") -> None:
    """Queue a one-shot message for the next rendered page."""
    request.session.setdefault("flash", []).append({"message": message, "category": category})


def pop_flashes(request: Request) -> list[dict]:
    return request.session.pop("flash", [])


def partial_context(request: Request, viewer: Viewer, **extra) -> dict:
    """Context for HTMX fragments. Flash messages stay queued for the next full page."""
    return {
        "current_user": viewer,
        "profile": viewer.profile,
        "csrf_token": ensure_csrf_token(request),
        **extra,
    }


def page_context(request: Request, viewer: Viewer, **extra) -> dict:
    """Common template context: viewer, csrf token and pending flash messages."""
    return partial_context(request, viewer, flashes=pop_flashes(request), **extra)
