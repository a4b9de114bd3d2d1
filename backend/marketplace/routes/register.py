"""Registration wizard and profile edit."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from marketplace.dependencies.auth import (
    ACCESS_TOKEN_KEY,
    require_profile,
    require_session,
    validate_csrf_token,
)
from marketplace.exceptions import RegistrationError, StorageError
from marketplace.models.base import get_db
from marketplace.models.profile import ROLE_CREATOR
from marketplace.schemas.profile import RegistrationData
from marketplace.services.photo_storage import PhotoStorage, get_photo_storage
from marketplace.services.profile_service import (
    create_profile,
    update_profile,
    validate_basic_info,
    validate_creator_info,
    validate_user_type,
)
from marketplace.services.session_cache import SessionCache, Viewer, get_session_cache
from marketplace.templating import flash, page_context, templates

logger = logging.getLogger(__name__)
router = APIRouter()

REGISTRATION_KEY = "registration"

STEP_ROLE = 0
STEP_BASIC = 1
STEP_FINAL = 2  # creator info for creators, review for businesses

_BASIC_FIELDS = ("username", "first_name", "last_name", "email", "phone_number", "city", "country")
_CREATOR_FIELDS = ("instagram_url", "tiktok_url", "youtube_url")


def _load_state(request: Request, viewer: Viewer) -> RegistrationData:
    state = RegistrationData(**request.session.get(REGISTRATION_KEY, {}))
    if not state.email and viewer.identity and viewer.identity.email:
        state.email = viewer.identity.email
    return state


def _save_state(request: Request, state: RegistrationData) -> None:
    request.session[REGISTRATION_KEY] = state.model_dump(mode="json")


def _apply_form(state: RegistrationData, form, fields) -> RegistrationData:
    return state.model_copy(update={field: str(form.get(field) or "").strip() for field in fields})


def _apply_switches(state: RegistrationData, form) -> RegistrationData:
    return state.model_copy(update={
        "is_public": form.get("is_public") in ("on", "1", "true"),
        "is_collaborated": form.get("is_collaborated") in ("on", "1", "true"),
    })


async def _upload_photo(request: Request, viewer: Viewer, storage: PhotoStorage, form) -> str | None:
    """Upload the submitted photo, if any. Returns its public URL."""
    photo = form.get("profile_photo")
    if not isinstance(photo, UploadFile) or not photo.filename:
        return None
    content = await photo.read()
    if not content:
        return None
    return await storage.upload_photo(
        request.session.get(ACCESS_TOKEN_KEY, ""),
        viewer.identity.id,
        photo.filename,
        content,
        photo.content_type,
    )


def _render_wizard(request: Request, viewer: Viewer, state: RegistrationData,
                   errors: dict | None = None, error: str | None = None):
    return templates.TemplateResponse(
        request,
        "register/wizard.html",
        page_context(request, viewer, state=state, errors=errors or {}, error=error),
    )


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request, viewer: Viewer = Depends(require_session)):
    if viewer.has_profile:
        return RedirectResponse("/dashboard", status_code=303)
    return _render_wizard(request, viewer, _load_state(request, viewer))


@router.post("/register", response_class=HTMLResponse)
async def register_submit(
    request: Request,
    viewer: Viewer = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    storage: PhotoStorage = Depends(get_photo_storage),
    cache: SessionCache = Depends(get_session_cache),
):
    if viewer.has_profile:
        return RedirectResponse("/dashboard", status_code=303)

    form = await request.form()
    state = _load_state(request, viewer)
    if not validate_csrf_token(request, form.get("csrf_token", "")):
        return _render_wizard(request, viewer, state, error="Invalid request. Please try again.")

    action = form.get("action", "next")
    if action == "previous":
        state.step = max(STEP_ROLE, state.step - 1)
        _save_state(request, state)
        return _render_wizard(request, viewer, state)

    if state.step == STEP_ROLE:
        state = state.model_copy(update={"user_type": form.get("user_type", ROLE_CREATOR)})
        errors = validate_user_type(state.user_type)
        if errors:
            return _render_wizard(request, viewer, state, errors)
        state.step = STEP_BASIC
        _save_state(request, state)
        return _render_wizard(request, viewer, state)

    if state.step == STEP_BASIC:
        state = _apply_form(state, form, _BASIC_FIELDS)
        errors = validate_basic_info(state)
        if errors:
            return _render_wizard(request, viewer, state, errors)
        try:
            photo_url = await _upload_photo(request, viewer, storage, form)
        except StorageError as e:
            return _render_wizard(request, viewer, state, {"profile_photo": e.message})
        if photo_url:
            state.profile_photo_url = photo_url
        state.step = STEP_FINAL
        _save_state(request, state)
        return _render_wizard(request, viewer, state)

    # Final step
    if state.user_type == ROLE_CREATOR:
        state = _apply_switches(_apply_form(state, form, _CREATOR_FIELDS), form)
        errors = validate_creator_info(state)
        if errors:
            _save_state(request, state)
            return _render_wizard(request, viewer, state, errors)

    try:
        await create_profile(db, viewer.identity.id, state)
    except RegistrationError as e:
        if any(field in e.errors for field in _BASIC_FIELDS):
            state.step = STEP_BASIC
        _save_state(request, state)
        return _render_wizard(request, viewer, state, e.errors, e.message)

    request.session.pop(REGISTRATION_KEY, None)
    cache.invalidate_user(viewer.identity.id)
    return RedirectResponse("/dashboard", status_code=303)


@router.get("/profile/edit", response_class=HTMLResponse)
async def edit_profile_page(request: Request, viewer: Viewer = Depends(require_profile)):
    current = viewer.profile.model_dump(include=set(RegistrationData.model_fields))
    state = RegistrationData(**{key: value for key, value in current.items() if value is not None})
    return templates.TemplateResponse(
        request,
        "profile/edit.html",
        page_context(request, viewer, state=state, errors={}, error=None),
    )


@router.post("/profile/edit", response_class=HTMLResponse)
async def edit_profile_submit(
    request: Request,
    viewer: Viewer = Depends(require_profile),
    db: AsyncSession = Depends(get_db),
    storage: PhotoStorage = Depends(get_photo_storage),
    cache: SessionCache = Depends(get_session_cache),
):
    form = await request.form()
    state = RegistrationData(user_type=viewer.profile.user_type)
    state = _apply_form(state, form, _BASIC_FIELDS + _CREATOR_FIELDS)
    state = _apply_switches(state, form)

    def render(errors=None, error=None):
        return templates.TemplateResponse(
            request,
            "profile/edit.html",
            page_context(request, viewer, state=state, errors=errors or {}, error=error),
        )

    if not validate_csrf_token(request, form.get("csrf_token", "")):
        return render(error="Invalid request. Please try again.")

    try:
        photo_url = await _upload_photo(request, viewer, storage, form)
    except StorageError as e:
        return render({"profile_photo": e.message})
    state.profile_photo_url = photo_url

    try:
        await update_profile(db, viewer.profile_id, state)
    except RegistrationError as e:
        return render(e.errors, e.message)

    cache.invalidate_user(viewer.identity.id)
    flash(request, "Profile updated.", "success")
    return RedirectResponse("/dashboard", status_code=303)
