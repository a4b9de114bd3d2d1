"""Authentication dependencies for FastAPI routes."""

import logging
import secrets

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.exceptions import IdentityError
from marketplace.models.base import get_db
from marketplace.models.profile import Profile
from marketplace.schemas.profile import ProfileRead
from marketplace.services.identity_client import IdentityClient, get_identity_client
from marketplace.services.session_cache import ANONYMOUS, SessionCache, Viewer, get_session_cache

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"


class NotAuthenticatedException(Exception):
    """Raised when a route requires login but user is not authenticated."""

    def __init__(self, return_url: str = "/"):
        super().__init__(return_url)
        self.return_url = return_url


class RegistrationIncompleteException(Exception):
    """Raised when a signed-in user has no profile row yet."""
    pass


async def fetch_profile(db: AsyncSession, user_id) -> ProfileRead | None:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalar_one_or_none()
    return ProfileRead.model_validate(profile) if profile else None


async def load_viewer(
    request: Request,
    db: AsyncSession,
    identity_client: IdentityClient,
    cache: SessionCache,
) -> Viewer:
    """Resolve the session cookie into a Viewer. Any backend failure yields ANONYMOUS."""
    access_token = request.session.get(ACCESS_TOKEN_KEY)
    if not access_token:
        return ANONYMOUS

    cached = cache.get(access_token)
    if cached is not None:
        return cached

    try:
        identity = await identity_client.get_user(access_token)
    except IdentityError as e:
        if e.status_code in (401, 403):
            logger.info("Dropping expired session token")
            request.session.pop(ACCESS_TOKEN_KEY, None)
            request.session.pop(REFRESH_TOKEN_KEY, None)
        else:
            logger.error(f"Could not resolve session: {e.message}")
        return ANONYMOUS

    try:
        profile = await fetch_profile(db, identity.id)
    except SQLAlchemyError:
        logger.exception(f"Failed to load profile for {identity.id}")
        return ANONYMOUS

    viewer = Viewer(identity=identity, profile=profile)
    cache.put(access_token, viewer)
    return viewer


async def get_viewer(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity_client: IdentityClient = Depends(get_identity_client),
    cache: SessionCache = Depends(get_session_cache),
) -> Viewer:
    """Return the current viewer, anonymous when signed out."""
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        viewer = await load_viewer(request, db, identity_client, cache)
        request.state.viewer = viewer
    return viewer


async def require_session(request: Request, viewer: Viewer = Depends(get_viewer)) -> Viewer:
    """Return the signed-in viewer or redirect to the home page."""
    if not viewer.is_authenticated:
        raise NotAuthenticatedException(return_url=request.url.path)
    return viewer


async def require_profile(viewer: Viewer = Depends(require_session)) -> Viewer:
    """Return a viewer with a completed profile or redirect to registration."""
    if not viewer.has_profile:
        raise RegistrationIncompleteException()
    return viewer


async def require_profile_api(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    """Return a viewer with a profile or raise 401 (for HTMX/API endpoints)."""
    if not viewer.is_authenticated:
        raise HTTPException(status_code=401, detail="Login required")
    if not viewer.has_profile:
        raise HTTPException(status_code=403, detail="Complete your registration first")
    return viewer


def ensure_csrf_token(request: Request) -> str:
    """Get or create a CSRF token in the session."""
    token = request.session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        request.session["csrf_token"] = token
    return token


def validate_csrf_token(request: Request, token: str) -> bool:
    """Validate a submitted CSRF token against the session token."""
    session_token = request.session.get("csrf_token")
    if not session_token or not token:
        return False
    return secrets.compare_digest(session_token, token)
