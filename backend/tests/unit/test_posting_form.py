from __future__ import annotations

from datetime import date, time

from marketplace.schemas.job_posting import JobPostingForm


def test_from_form_parses_deadline_fields() -> None:
    form, errors = JobPostingForm.from_form({
        "title": "Summer Campaign",
        "description": "Three videos",
        "has_deadline": "on",
        "deadline_date": "2026-06-30",
        "deadline_time": "17:00",
    })
    assert errors == {}
    assert form.has_deadline
    assert form.deadline_date == date(2026, 6, 30)
    assert form.deadline_time == time(17, 0)


def test_from_form_reports_unparseable_values() -> None:
    _, errors = JobPostingForm.from_form({"has_deadline": "1", "deadline_date": "30/06/2026", "deadline_time": "5pm"})
    assert set(errors) == {"deadline_date", "deadline_time"}


def test_deadline_fields_ignored_without_flag() -> None:
    form, errors = JobPostingForm.from_form({"title": "x", "description": "y", "deadline_date": "not a date"})
    assert errors == {}
    assert form.deadline_date is None


def test_validation_requires_title_description_and_date() -> None:
    errors = JobPostingForm(title="  ", description="", has_deadline=True).validation_errors()
    assert errors == {
        "title": "Title is required",
        "description": "Description is required",
        "deadline_date": "Date is required when deadline is enabled",
    }


def test_mutable_fields_clear_deadline_when_disabled() -> None:
    form = JobPostingForm(
        title=" Summer Campaign ",
        description="Three videos",
        has_deadline=False,
        deadline_date=date(2026, 6, 30),
        deadline_time=time(12, 0),
    )
    assert form.mutable_fields() == {
        "title": "Summer Campaign",
        "description": "Three videos",
        "has_deadline": False,
        "deadline_date": None,
        "deadline_time": None,
    }
    assert "slug" not in form.mutable_fields()
