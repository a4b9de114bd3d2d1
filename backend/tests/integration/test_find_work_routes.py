from __future__ import annotations

import re
from datetime import date

from sqlalchemy import select

from marketplace.models.job_posting import JobPosting
from marketplace.models.saved_job import SavedJob


async def _save(session, profile_id, posting_id) -> None:
    session.add(SavedJob(profile_id=profile_id, job_posting_id=posting_id))
    await session.flush()


async def _titles(session) -> list[str]:
    return list((await session.execute(select(JobPosting.title))).scalars())


def test_anonymous_viewer_sees_sign_in_prompt(client, seed) -> None:
    owner = seed.business()
    posting = seed.posting(owner, "Summer Campaign")

    page = client.get("/find-work")

    assert page.status_code == 200
    assert "Summer Campaign" in page.text
    assert "Sign in to save or apply" in page.text
    assert "/interactions/save/" not in page.text

    detail = client.get(f"/find-work/{posting.slug}")
    assert "Sign in to apply" in detail.text
    assert "/interactions/apply/" not in detail.text


def test_creator_sees_save_and_apply(client, seed, sign_in, viewer_for) -> None:
    posting = seed.posting(seed.business(), "Summer Campaign")
    sign_in(viewer_for(seed.profile()))

    assert f'hx-post="/interactions/save/{posting.id}"' in client.get("/find-work").text
    detail = client.get(f"/find-work/{posting.slug}").text
    assert f'hx-post="/interactions/apply/{posting.id}"' in detail


def test_other_business_sees_no_controls(client, seed, sign_in, viewer_for) -> None:
    posting = seed.posting(seed.business(), "Summer Campaign")
    sign_in(viewer_for(seed.business()))

    detail = client.get(f"/find-work/{posting.slug}").text

    assert "/interactions/" not in detail
    assert "Sign in to apply" not in detail
    assert "/edit" not in detail


def test_closed_posting_shows_deadline_passed(client, seed, sign_in, viewer_for) -> None:
    posting = seed.posting(seed.business(), has_deadline=True, deadline_date=date(2020, 1, 1))
    sign_in(viewer_for(seed.profile()))

    detail = client.get(f"/find-work/{posting.slug}").text

    assert "Deadline passed" in detail
    assert "/interactions/apply/" not in detail


def test_unknown_slug(client) -> None:
    assert client.get("/find-work/missing-abc123").status_code == 404


def test_partial_filters_by_country_and_query(client, seed) -> None:
    seed.posting(seed.business(country="Ghana"), "Accra Food Tour")
    seed.posting(seed.business(country="Nigeria"), "Lagos Night Life")

    partial = client.get("/find-work/partial", params={"country": "Ghana"})
    assert "Accra Food Tour" in partial.text
    assert "Lagos Night Life" not in partial.text
    assert "<html" not in partial.text

    partial = client.get("/find-work/partial", params={"q": "night"})
    assert "Lagos Night Life" in partial.text
    assert "Accra Food Tour" not in partial.text


def test_mine_filter_for_business(client, seed, sign_in, viewer_for) -> None:
    me = seed.business()
    seed.posting(me, "My Posting")
    seed.posting(seed.business(), "Their Posting")
    sign_in(viewer_for(me))

    page = client.get("/find-work", params={"mine": "1"}).text

    assert "My Posting" in page
    assert "Their Posting" not in page


def test_business_creates_posting(client, seed, sign_in, viewer_for, csrf_token) -> None:
    sign_in(viewer_for(seed.business()))
    token = csrf_token("/find-work")

    response = client.post(
        "/find-work",
        data={"csrf_token": token, "title": "Summer Campaign", "description": "Three videos"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert re.fullmatch(r"/find-work/summer-campaign-[a-z0-9]{6}", response.headers["location"])
    assert seed.run(_titles) == ["Summer Campaign"]


def test_create_validation_errors(client, seed, sign_in, viewer_for, csrf_token) -> None:
    sign_in(viewer_for(seed.business()))
    token = csrf_token("/find-work")

    response = client.post(
        "/find-work",
        data={"csrf_token": token, "title": "", "description": "Body", "has_deadline": "on"},
    )

    assert response.status_code == 422
    assert "Title is required" in response.text
    assert "Date is required when deadline is enabled" in response.text
    assert seed.run(_titles) == []


def test_creator_cannot_create(client, seed, sign_in, viewer_for, csrf_token) -> None:
    sign_in(viewer_for(seed.profile()))
    token = csrf_token("/find-work")

    page = client.post("/find-work", data={"csrf_token": token, "title": "x", "description": "y"})

    assert "Only business accounts can post jobs" in page.text
    assert seed.run(_titles) == []


def test_create_without_csrf_is_rejected(client, seed, sign_in, viewer_for) -> None:
    sign_in(viewer_for(seed.business()))
    client.post("/find-work", data={"title": "x", "description": "y"})
    assert seed.run(_titles) == []


def test_owner_edits_posting(client, seed, sign_in, viewer_for, csrf_token) -> None:
    owner = seed.business()
    posting = seed.posting(owner, "Summer Campaign")
    sign_in(viewer_for(owner))
    token = csrf_token(f"/find-work/{posting.slug}/edit")

    response = client.post(
        f"/find-work/{posting.slug}/edit",
        data={"csrf_token": token, "title": "Autumn Campaign", "description": "Four videos"},
        follow_redirects=False,
    )

    assert response.headers["location"] == f"/find-work/{posting.slug}"
    assert "Autumn Campaign" in client.get(f"/find-work/{posting.slug}").text


def test_non_owner_cannot_edit(client, seed, sign_in, viewer_for) -> None:
    posting = seed.posting(seed.business())
    sign_in(viewer_for(seed.business()))
    assert client.get(f"/find-work/{posting.slug}/edit").status_code == 403


def test_delete_needs_confirmation(client, seed, sign_in, viewer_for, csrf_token) -> None:
    owner = seed.business()
    posting = seed.posting(owner, "Summer Campaign")
    sign_in(viewer_for(owner))
    token = csrf_token(f"/find-work/{posting.slug}/delete")

    response = client.post(f"/find-work/{posting.slug}/delete", data={"csrf_token": token})
    assert "Deletion was not confirmed" in response.text
    assert seed.run(_titles) == ["Summer Campaign"]

    response = client.post(
        f"/find-work/{posting.slug}/delete",
        data={"csrf_token": token, "confirmed": "yes"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/find-work"
    assert seed.run(_titles) == []


def test_owner_sees_applicants(client, seed, sign_in, viewer_for, csrf_token) -> None:
    owner = seed.business()
    posting = seed.posting(owner)
    applicant = seed.profile(username="ada")

    sign_in(viewer_for(applicant))
    token = csrf_token(f"/find-work/{posting.slug}")
    client.post(f"/interactions/apply/{posting.id}", headers={"X-CSRF-Token": token})

    sign_in(viewer_for(owner))
    page = client.get(f"/find-work/{posting.slug}").text
    assert "Applicants (1)" in page
    assert "@ada" in page


def test_json_listing(client, seed) -> None:
    owner = seed.business(country="Ghana")
    posting = seed.posting(owner, "Accra Food Tour")
    seed.posting(seed.business(country="Nigeria"), "Lagos Night Life")

    listing = client.get("/api/v1/jobs", params={"country": "Ghana"}).json()
    assert [job["slug"] for job in listing] == [posting.slug]

    detail = client.get(f"/api/v1/jobs/{posting.slug}").json()
    assert detail["title"] == "Accra Food Tour"
    assert detail["username"] == owner.username
    assert client.get("/api/v1/jobs/missing-abc123").status_code == 404


def test_json_listing_prefers_saved_over_mine(client, seed, sign_in, viewer_for) -> None:
    creator = seed.profile()
    seed.posting(creator, "Mine")
    other = seed.posting(seed.business(), "Saved Elsewhere")
    seed.run(_save, creator.id, other.id)
    sign_in(viewer_for(creator))

    listing = client.get("/api/v1/jobs", params={"saved": "true", "mine": "true"}).json()

    assert [job["title"] for job in listing] == ["Saved Elsewhere"]
    assert listing[0]["is_saved"] is True
