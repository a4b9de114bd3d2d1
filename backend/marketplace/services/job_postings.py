"""Slug generation and deadline evaluation for job postings."""

import re
import secrets
import string
from datetime import date, datetime, time

SLUG_SUFFIX_LENGTH = 6
_SLUG_ALPHABET = string.ascii_lowercase + string.digits
_WHITESPACE = re.compile(r"\s+")
_NON_SLUG_CHARS = re.compile(r"[^\w-]+", re.ASCII)

END_OF_DAY = time(23, 59, 59)


def slugify(title: str) -> str:
    """Lowercase, spaces to hyphens, drop everything but word chars and hyphens."""
    slug = _WHITESPACE.sub("-", title.strip().lower())
    return _NON_SLUG_CHARS.sub("", slug)


def generate_slug(title: str) -> str:
    """Slugified title plus a random ``[a-z0-9]{6}`` suffix.

    Collisions are not checked; the unique index on ``job_postings.slug``
    rejects the insert in the unlikely event of one.
    """
    suffix = "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))
    return f"{slugify(title)}-{suffix}"


def deadline_at(deadline_date: date, deadline_time: time | None = None) -> datetime:
    """Combine a deadline date with its time, defaulting to end of day."""
    return datetime.combine(deadline_date, deadline_time or END_OF_DAY)


def is_deadline_passed(posting, now: datetime | None = None) -> bool:
    """True iff the posting has a deadline and ``now`` is strictly after it.

    Deadlines are wall-clock values without a timezone, so ``now`` is
    compared as naive local time. Evaluated on every render, never cached.
    """
    if not posting.has_deadline or not posting.deadline_date:
        return False
    if now is None:
        now = datetime.now()
    if now.tzinfo is not None:
        now = now.replace(tzinfo=None)
    return now > deadline_at(posting.deadline_date, posting.deadline_time)


def format_deadline(posting) -> str:
    if not posting.has_deadline or not posting.deadline_date:
        return "No deadline"
    formatted = posting.deadline_date.strftime("%B %d, %Y").replace(" 0", " ")
    if posting.deadline_time:
        formatted += f" at {posting.deadline_time.strftime('%H:%M')}"
    return formatted
