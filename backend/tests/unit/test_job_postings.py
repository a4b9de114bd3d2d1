from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from types import SimpleNamespace

from marketplace.services.job_postings import (
    deadline_at,
    format_deadline,
    generate_slug,
    is_deadline_passed,
    slugify,
)


def _posting(has_deadline=True, deadline_date=date(2026, 6, 30), deadline_time=None):
    return SimpleNamespace(has_deadline=has_deadline, deadline_date=deadline_date, deadline_time=deadline_time)


def test_generate_slug_appends_random_suffix() -> None:
    slug = generate_slug("Summer Campaign")
    assert re.fullmatch(r"summer-campaign-[a-z0-9]{6}", slug)


def test_generate_slug_is_not_deterministic() -> None:
    assert len({generate_slug("Summer Campaign") for _ in range(20)}) > 1


def test_slugify_drops_punctuation() -> None:
    assert slugify("  Brand Deal: 50% off!  ") == "brand-deal-50-off"
    assert slugify("Café Tour") == "caf-tour"


def test_deadline_defaults_to_end_of_day() -> None:
    assert deadline_at(date(2026, 6, 30)) == datetime(2026, 6, 30, 23, 59, 59)
    assert deadline_at(date(2026, 6, 30), time(9, 30)) == datetime(2026, 6, 30, 9, 30)


def test_deadline_without_time_is_open_all_day() -> None:
    posting = _posting()
    assert not is_deadline_passed(posting, datetime(2026, 6, 30, 23, 59, 59))
    assert is_deadline_passed(posting, datetime(2026, 7, 1, 0, 0, 0))


def test_deadline_comparison_is_strict() -> None:
    posting = _posting(deadline_time=time(12, 0))
    assert not is_deadline_passed(posting, datetime(2026, 6, 30, 12, 0))
    assert is_deadline_passed(posting, datetime(2026, 6, 30, 12, 0, 1))


def test_no_deadline_never_passes() -> None:
    assert not is_deadline_passed(_posting(has_deadline=False), datetime(2100, 1, 1))
    assert not is_deadline_passed(_posting(deadline_date=None), datetime(2100, 1, 1))


def test_aware_now_is_compared_as_wall_clock() -> None:
    posting = _posting(deadline_time=time(12, 0))
    assert is_deadline_passed(posting, datetime(2026, 6, 30, 13, 0, tzinfo=timezone.utc))


def test_format_deadline() -> None:
    assert format_deadline(_posting(has_deadline=False)) == "No deadline"
    assert format_deadline(_posting(deadline_date=date(2026, 7, 4))) == "July 4, 2026"
    assert format_deadline(_posting(deadline_time=time(17, 5))) == "June 30, 2026 at 17:05"
