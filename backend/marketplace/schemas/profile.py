"""Pydantic schemas for profiles."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from marketplace.models.profile import ROLE_BUSINESS, ROLE_CREATOR


class ProfileRead(BaseModel):
    """Detached snapshot of a profile row, safe to cache between requests."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    first_name: str
    last_name: str
    email: str
    phone_number: str | None = None
    profile_photo_url: str | None = None
    city: str
    country: str
    user_type: str
    instagram_url: str | None = None
    tiktok_url: str | None = None
    youtube_url: str | None = None
    is_public: bool = False
    is_collaborated: bool = False

    @property
    def is_creator(self) -> bool:
        return self.user_type == ROLE_CREATOR

    @property
    def is_business(self) -> bool:
        return self.user_type == ROLE_BUSINESS

    @property
    def is_complete(self) -> bool:
        return bool(self.first_name and self.last_name)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}"


class RegistrationData(BaseModel):
    """Registration wizard state, kept in the signed session between steps."""

    step: int = 0
    user_type: str = ROLE_CREATOR
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone_number: str = ""
    city: str = ""
    country: str = ""
    profile_photo_url: str | None = None

    # Creator-only
    instagram_url: str | None = None
    tiktok_url: str | None = None
    youtube_url: str | None = None
    is_public: bool = False
    is_collaborated: bool = False

    @property
    def is_creator(self) -> bool:
        return self.user_type == ROLE_CREATOR

    def profile_fields(self) -> dict:
        """Column values for the profiles table. Creator fields are blanked for businesses."""
        fields = self.model_dump(exclude={"step"})
        for key in ("username", "first_name", "last_name", "email", "phone_number", "city", "country"):
            fields[key] = fields[key].strip()
        if not self.is_creator:
            fields.update(
                instagram_url=None,
                tiktok_url=None,
                youtube_url=None,
                is_public=False,
                is_collaborated=False,
            )
        else:
            for key in ("instagram_url", "tiktok_url", "youtube_url"):
                fields[key] = (fields[key] or "").strip() or None
        return fields


class CreatorSummary(BaseModel):
    """Public creator card for the directory."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    first_name: str
    last_name: str
    profile_photo_url: str | None = None
    city: str
    country: str
    instagram_url: str | None = None
    tiktok_url: str | None = None
    youtube_url: str | None = None
    is_collaborated: bool = False
