"""Pydantic schemas for job postings, their form input and applicants."""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class JobPostingForm(BaseModel):
    """Mutable posting fields as submitted by the create/edit form."""

    title: str = ""
    description: str = ""
    has_deadline: bool = False
    deadline_date: date | None = None
    deadline_time: time | None = None

    @classmethod
    def from_form(cls, form) -> tuple["JobPostingForm", dict[str, str]]:
        """Parse raw form values. Returns the form and any parse errors."""
        errors: dict[str, str] = {}
        has_deadline = str(form.get("has_deadline", "")).lower() in ("1", "on", "true", "yes")

        deadline_date = None
        deadline_time = None
        if has_deadline:
            raw_date = str(form.get("deadline_date") or "").strip()
            raw_time = str(form.get("deadline_time") or "").strip()
            if raw_date:
                try:
                    deadline_date = date.fromisoformat(raw_date)
                except ValueError:
                    errors["deadline_date"] = "Enter a valid date"
            if raw_time:
                try:
                    deadline_time = time.fromisoformat(raw_time)
                except ValueError:
                    errors["deadline_time"] = "Enter a valid time"

        posting_form = cls(
            title=str(form.get("title") or ""),
            description=str(form.get("description") or ""),
            has_deadline=has_deadline,
            deadline_date=deadline_date,
            deadline_time=deadline_time,
        )
        return posting_form, errors

    def validation_errors(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        if not self.title.strip():
            errors["title"] = "Title is required"
        if not self.description.strip():
            errors["description"] = "Description is required"
        if self.has_deadline and not self.deadline_date:
            errors["deadline_date"] = "Date is required when deadline is enabled"
        return errors

    def mutable_fields(self) -> dict:
        """Columns an update is allowed to send. Slug and owner are excluded."""
        has_deadline = self.has_deadline
        return {
            "title": self.title.strip(),
            "description": self.description.strip(),
            "has_deadline": has_deadline,
            "deadline_date": self.deadline_date if has_deadline else None,
            "deadline_time": self.deadline_time if has_deadline and self.deadline_date else None,
        }


class JobPostingView(BaseModel):
    """Posting flattened with its owner's profile fields for list and detail views."""

    id: UUID
    slug: str
    title: str
    description: str
    has_deadline: bool = False
    deadline_date: date | None = None
    deadline_time: time | None = None
    created_at: datetime | None = None

    # Owner profile
    profile_id: UUID
    username: str
    profile_photo_url: str | None = None
    city: str = ""
    country: str = ""
    first_name: str = ""
    last_name: str = ""
    user_type: str = ""

    is_saved: bool = False

    @property
    def owner_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def owner_initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}"


class Applicant(BaseModel):
    """Creator who applied to a posting, as shown to its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    first_name: str
    last_name: str
    profile_photo_url: str | None = None
    city: str = ""
    country: str = ""
    created_at: datetime | None = None  # application time
