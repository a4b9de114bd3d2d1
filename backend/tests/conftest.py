from __future__ import annotations

import asyncio
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

_TEST_DB = Path(__file__).resolve().parent / "test_marketplace.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["IDENTITY_URL"] = "http://identity.test"

import pytest
from sqlalchemy import create_engine

from marketplace.models.base import AsyncSessionLocal, Base
from marketplace.models.job_posting import JobPosting
from marketplace.models.profile import ROLE_BUSINESS, ROLE_CREATOR, Profile
from marketplace.schemas.job_posting import JobPostingView
from marketplace.schemas.profile import ProfileRead
from marketplace.services.identity_client import Identity
from marketplace.services.job_postings import generate_slug
from marketplace.services.listing_service import to_view
from marketplace.services.session_cache import Viewer, get_session_cache


async def insert_profile(session, user_type: str = ROLE_CREATOR, **fields) -> ProfileRead:
    profile_id = fields.pop("id", None) or uuid.uuid4()
    username = fields.pop("username", None) or f"user_{profile_id.hex[:8]}"
    values = {
        "first_name": "Ada",
        "last_name": "Okafor",
        "email": f"{username}@example.com",
        "phone_number": "+2348000000000",
        "city": "Lagos",
        "country": "Nigeria",
        "is_public": user_type == ROLE_CREATOR,
        "is_collaborated": False,
    }
    values.update(fields)
    profile = Profile(id=profile_id, username=username, user_type=user_type, **values)
    session.add(profile)
    await session.flush()
    return ProfileRead.model_validate(profile)


async def insert_posting(session, owner: ProfileRead, title: str = "Summer Campaign", **fields) -> JobPostingView:
    values = {
        "description": "Three short videos about our summer range.",
        "has_deadline": False,
        "deadline_date": None,
        "deadline_time": None,
        "created_at": datetime.now(timezone.utc),
    }
    values.update(fields)
    posting = JobPosting(
        id=uuid.uuid4(),
        profile_id=owner.id,
        slug=generate_slug(title),
        title=title,
        **values,
    )
    session.add(posting)
    await session.flush()
    return to_view(posting, owner)


def _viewer_for(profile: ProfileRead | None, user_id: uuid.UUID | None = None) -> Viewer:
    identity_id = profile.id if profile else (user_id or uuid.uuid4())
    email = profile.email if profile else "new.user@example.com"
    return Viewer(identity=Identity(id=identity_id, email=email), profile=profile)


# Schema resets go through a plain sqlite engine so they never touch an event loop
_sync_engine = create_engine(f"sqlite:///{_TEST_DB}")


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=_sync_engine)
    Base.metadata.create_all(bind=_sync_engine)
    get_session_cache().clear()
    yield


@pytest.fixture
def viewer_for():
    return _viewer_for


@pytest.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def make_profile(db):
    async def _make(user_type: str = ROLE_CREATOR, **fields) -> ProfileRead:
        return await insert_profile(db, user_type, **fields)
    return _make


@pytest.fixture
def make_posting(db):
    async def _make(owner: ProfileRead, title: str = "Summer Campaign", **fields) -> JobPostingView:
        return await insert_posting(db, owner, title, **fields)
    return _make


async def _committed(fn, *args, **kwargs):
    async with AsyncSessionLocal() as session:
        result = await fn(session, *args, **kwargs)
        await session.commit()
        return result


@pytest.fixture
def seed():
    """Insert rows in their own committed session, for sync route tests."""

    class Seeder:
        def profile(self, user_type: str = ROLE_CREATOR, **fields) -> ProfileRead:
            return asyncio.run(_committed(insert_profile, user_type, **fields))

        def business(self, **fields) -> ProfileRead:
            return self.profile(ROLE_BUSINESS, **fields)

        def posting(self, owner: ProfileRead, title: str = "Summer Campaign", **fields) -> JobPostingView:
            return asyncio.run(_committed(insert_posting, owner, title, **fields))

        def run(self, coro_fn, *args, **kwargs):
            return asyncio.run(_committed(coro_fn, *args, **kwargs))

    return Seeder()
