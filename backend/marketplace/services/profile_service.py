"""Profile registration, editing and the public creator directory."""

import logging
import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.exceptions import RegistrationError
from marketplace.models.profile import ROLE_CREATOR, ROLES, Profile
from marketplace.schemas.profile import CreatorSummary, ProfileRead, RegistrationData

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

_SOCIAL_HOSTS = {
    "instagram_url": (("instagram.com",), "Please enter a valid Instagram URL"),
    "tiktok_url": (("tiktok.com",), "Please enter a valid TikTok URL"),
    "youtube_url": (("youtube.com", "youtu.be"), "Please enter a valid YouTube URL"),
}

_REQUIRED_BASIC_FIELDS = {
    "username": "Username is required",
    "first_name": "First name is required",
    "last_name": "Last name is required",
    "email": "Email is required",
    "phone_number": "Phone number is required",
    "city": "City is required",
    "country": "Country is required",
}


def validate_user_type(user_type: str) -> dict[str, str]:
    if user_type not in ROLES:
        return {"user_type": "Choose creator or business"}
    return {}


def validate_basic_info(data: RegistrationData) -> dict[str, str]:
    errors = {
        field: message
        for field, message in _REQUIRED_BASIC_FIELDS.items()
        if not getattr(data, field).strip()
    }
    if "email" not in errors and not _EMAIL_PATTERN.search(data.email):
        errors["email"] = "Email is invalid"
    return errors


def validate_creator_info(data: RegistrationData) -> dict[str, str]:
    """Social links are optional but must point at the right site when given."""
    errors = {}
    for field, (hosts, message) in _SOCIAL_HOSTS.items():
        value = (getattr(data, field) or "").strip()
        if value and not any(host in value for host in hosts):
            errors[field] = message
    return errors


def validate_registration(data: RegistrationData) -> dict[str, str]:
    errors = {**validate_user_type(data.user_type), **validate_basic_info(data)}
    if data.user_type == ROLE_CREATOR:
        errors.update(validate_creator_info(data))
    return errors


async def _username_taken(db: AsyncSession, username: str, exclude_id: UUID | None = None) -> bool:
    query = select(Profile.id).where(Profile.username == username)
    if exclude_id is not None:
        query = query.where(Profile.id != exclude_id)
    return (await db.execute(query)).first() is not None


async def create_profile(db: AsyncSession, user_id: UUID, data: RegistrationData) -> ProfileRead:
    """Insert the profile row that completes registration."""
    errors = validate_registration(data)
    if errors:
        raise RegistrationError("Please correct the highlighted fields.", errors)

    fields = data.profile_fields()
    existing = await db.execute(select(Profile.id).where(Profile.id == user_id))
    if existing.first() is not None:
        raise RegistrationError("Your profile already exists.")
    if await _username_taken(db, fields["username"]):
        raise RegistrationError("Username already taken.", {"username": "Username already taken"})

    profile = Profile(id=user_id, **fields)
    db.add(profile)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Profile insert rejected for {user_id}: {e}")
        raise RegistrationError("Username already taken.", {"username": "Username already taken"}) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Registration failed for {user_id}: {e}")
        raise RegistrationError("Failed to complete registration. Please try again.") from e

    logger.info(f"Registered {fields['user_type']} profile @{fields['username']}")
    return ProfileRead.model_validate(profile)


async def update_profile(db: AsyncSession, profile_id: UUID, data: RegistrationData) -> ProfileRead:
    """Apply a profile edit. The role is fixed at registration."""
    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise RegistrationError("Profile not found.")

    data = data.model_copy(update={"user_type": profile.user_type})
    errors = validate_registration(data)
    if errors:
        raise RegistrationError("Please correct the highlighted fields.", errors)

    fields = data.profile_fields()
    if await _username_taken(db, fields["username"], exclude_id=profile_id):
        raise RegistrationError("Username already taken.", {"username": "Username already taken"})

    for key, value in fields.items():
        if key == "profile_photo_url" and value is None:
            continue  # keep the current photo unless a new one was uploaded
        setattr(profile, key, value)

    try:
        await db.flush()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Profile update failed for {profile_id}: {e}")
        raise RegistrationError("Failed to update profile. Please try again.") from e

    return ProfileRead.model_validate(profile)


async def fetch_public_creators(db: AsyncSession) -> list[CreatorSummary]:
    """Creators who opted into the public directory, by username."""
    result = await db.execute(
        select(Profile)
        .where(Profile.user_type == ROLE_CREATOR, Profile.is_public == True)
        .order_by(Profile.username)
    )
    return [CreatorSummary.model_validate(profile) for profile in result.scalars().all()]


async def fetch_profile_by_username(db: AsyncSession, username: str) -> ProfileRead | None:
    result = await db.execute(select(Profile).where(Profile.username == username))
    profile = result.scalar_one_or_none()
    return ProfileRead.model_validate(profile) if profile else None
