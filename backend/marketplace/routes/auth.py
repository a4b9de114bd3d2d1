"""Authentication web routes for OAuth sign-in, callback, error page and sign-out."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import get_settings
from marketplace.dependencies.auth import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    fetch_profile,
    get_viewer,
    validate_csrf_token,
)
from marketplace.exceptions import IdentityError
from marketplace.models.base import get_db
from marketplace.services.identity_client import IdentityClient, generate_code_verifier, get_identity_client
from marketplace.services.session_cache import SessionCache, Viewer, get_session_cache
from marketplace.templating import page_context, templates

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth")

CODE_VERIFIER_KEY = "code_verifier"


def _error_redirect(error: str, description: str | None = None) -> RedirectResponse:
    params = {"error": error}
    if description:
        params["error_description"] = description
    return RedirectResponse(f"/auth/error?{urlencode(params)}", status_code=303)


def safe_return_url(url: str | None) -> str | None:
    """Only same-site paths are allowed as post-login destinations."""
    if url and url.startswith("/") and not url.startswith("//"):
        return url
    return None


@router.get("/login")
async def login(
    request: Request,
    identity_client: IdentityClient = Depends(get_identity_client),
    provider: str | None = None,
    returnUrl: str | None = None,
):
    """Start the provider's OAuth flow (PKCE)."""
    verifier = generate_code_verifier()
    request.session[CODE_VERIFIER_KEY] = verifier
    return_url = safe_return_url(returnUrl)
    if return_url:
        request.session["return_url"] = return_url

    redirect_to = str(request.url_for("auth_callback"))
    url = identity_client.authorization_url(provider or get_settings().oauth_provider, redirect_to, verifier)
    return RedirectResponse(url, status_code=303)


@router.get("/callback", name="auth_callback")
async def callback(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity_client: IdentityClient = Depends(get_identity_client),
    cache: SessionCache = Depends(get_session_cache),
    code: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
):
    """Exchange the authorization code, then send the user to registration or the dashboard."""
    if error:
        logger.warning(f"Provider returned an error: {error} {error_description or ''}")
        return _error_redirect(error, error_description)
    if not code:
        return RedirectResponse("/", status_code=303)

    verifier = request.session.pop(CODE_VERIFIER_KEY, None)
    if not verifier:
        return _error_redirect("invalid_request", "Sign-in session expired. Please try again.")

    try:
        auth_session = await identity_client.exchange_code(code, verifier)
    except IdentityError as e:
        logger.error(f"Error exchanging code for session: {e.message}")
        return _error_redirect(e.code, e.message)

    identity = auth_session.identity
    request.session[ACCESS_TOKEN_KEY] = auth_session.access_token
    if auth_session.refresh_token:
        request.session[REFRESH_TOKEN_KEY] = auth_session.refresh_token
    cache.invalidate_user(identity.id)

    try:
        profile = await fetch_profile(db, identity.id)
    except SQLAlchemyError:
        logger.exception(f"Error checking profile for {identity.id}")
        profile = None

    if profile is None or not profile.is_complete:
        return RedirectResponse("/register", status_code=303)

    return_url = request.session.pop("return_url", None)
    return RedirectResponse(return_url or "/dashboard", status_code=303)


@router.get("/error", response_class=HTMLResponse)
async def auth_error(
    request: Request,
    viewer: Viewer = Depends(get_viewer),
    error: str | None = None,
    error_description: str | None = None,
):
    if error and error_description:
        message = f"{error}: {error_description}"
    elif error:
        message = error
    else:
        message = "An unknown authentication error occurred"
    return templates.TemplateResponse(
        request,
        "auth/error.html",
        page_context(request, viewer, error_message=message),
    )


@router.post("/logout")
async def logout(
    request: Request,
    identity_client: IdentityClient = Depends(get_identity_client),
    cache: SessionCache = Depends(get_session_cache),
):
    form = await request.form()
    if not validate_csrf_token(request, form.get("csrf_token", "")):
        return RedirectResponse("/", status_code=303)

    access_token = request.session.get(ACCESS_TOKEN_KEY)
    if access_token:
        await identity_client.sign_out(access_token)
        cache.invalidate_token(access_token)
    request.session.clear()
    return RedirectResponse("/", status_code=303)
