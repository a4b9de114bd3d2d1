from __future__ import annotations

from marketplace.schemas.profile import RegistrationData
from marketplace.services.profile_service import (
    validate_basic_info,
    validate_creator_info,
    validate_registration,
    validate_user_type,
)


def _data(**fields) -> RegistrationData:
    values = {
        "user_type": "creator",
        "username": "ada",
        "first_name": "Ada",
        "last_name": "Obi",
        "email": "ada@example.com",
        "phone_number": "+234800",
        "city": "Lagos",
        "country": "Nigeria",
    }
    values.update(fields)
    return RegistrationData(**values)


def test_user_type_must_be_known() -> None:
    assert validate_user_type("creator") == {}
    assert validate_user_type("admin") == {"user_type": "Choose creator or business"}


def test_basic_info_requires_every_field() -> None:
    errors = validate_basic_info(_data(username=" ", city=""))
    assert errors == {"username": "Username is required", "city": "City is required"}


def test_email_format() -> None:
    assert validate_basic_info(_data(email="ada@example")) == {"email": "Email is invalid"}


def test_social_links_must_match_their_site() -> None:
    errors = validate_creator_info(_data(
        instagram_url="https://instagram.com/ada",
        tiktok_url="https://example.com/ada",
        youtube_url="https://youtu.be/xyz",
    ))
    assert errors == {"tiktok_url": "Please enter a valid TikTok URL"}


def test_business_registration_skips_social_checks() -> None:
    assert validate_registration(_data(user_type="business", instagram_url="not a link")) == {}


def test_business_profile_fields_blank_creator_columns() -> None:
    fields = _data(user_type="business", instagram_url="https://instagram.com/x", is_public=True).profile_fields()
    assert fields["instagram_url"] is None
    assert fields["is_public"] is False
    assert "step" not in fields
