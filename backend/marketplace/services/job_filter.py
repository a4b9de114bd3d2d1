"""In-memory filtering of the job listing and the creator directory.

Both filters run over the full fetched table; there is no server-side
filtering or pagination.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Sequence, TypeVar
from uuid import UUID

T = TypeVar("T")

SAVED = "saved"
MINE = "mine"

_TRUTHY = ("1", "true", "on", "yes")


def _flag(value) -> bool:
    return str(value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ListingFilters:
    """Search inputs for the job listing.

    ``saved_only`` and ``mine_only`` are mutually exclusive: turning one on
    always turns the other off.
    """

    query: str = ""
    country: str = ""
    saved_only: bool = False
    mine_only: bool = False

    def __post_init__(self):
        if self.saved_only and self.mine_only:
            object.__setattr__(self, "mine_only", False)

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "ListingFilters":
        return cls(
            query=(params.get("q") or "").strip(),
            country=(params.get("country") or "").strip(),
            saved_only=_flag(params.get(SAVED)),
            mine_only=_flag(params.get(MINE)),
        )

    def toggled(self, name: str) -> "ListingFilters":
        if name == SAVED:
            enabled = not self.saved_only
            return replace(self, saved_only=enabled, mine_only=False if enabled else self.mine_only)
        if name == MINE:
            enabled = not self.mine_only
            return replace(self, mine_only=enabled, saved_only=False if enabled else self.saved_only)
        raise ValueError(f"Unknown toggle: {name}")

    def to_params(self) -> dict[str, str]:
        params = {}
        if self.query:
            params["q"] = self.query
        if self.country:
            params["country"] = self.country
        if self.saved_only:
            params[SAVED] = "1"
        if self.mine_only:
            params[MINE] = "1"
        return params

    @property
    def is_active(self) -> bool:
        return bool(self.query or self.country or self.saved_only or self.mine_only)


def _matches_text(query: str, *fields: str | None) -> bool:
    return any(query in (value or "").lower() for value in fields)


def filter_postings(postings: Iterable[T], filters: ListingFilters, viewer_profile_id: UUID | None = None) -> list[T]:
    """Return the postings matching every active filter, in their original order."""
    filtered = list(postings)

    if filters.saved_only:
        filtered = [job for job in filtered if job.is_saved]

    if filters.mine_only and viewer_profile_id is not None:
        filtered = [job for job in filtered if job.profile_id == viewer_profile_id]

    if filters.country:
        filtered = [job for job in filtered if job.country == filters.country]

    if filters.query:
        query = filters.query.lower()
        filtered = [
            job for job in filtered
            if _matches_text(query, job.title, job.description, job.city, f"{job.first_name} {job.last_name}")
        ]

    return filtered


def filter_creators(creators: Sequence[T], query: str = "", country: str = "") -> list[T]:
    """Directory filter: exact country, substring over names and city."""
    filtered = list(creators)

    if country:
        filtered = [creator for creator in filtered if creator.country == country]

    query = query.strip().lower()
    if query:
        filtered = [
            creator for creator in filtered
            if _matches_text(
                query,
                creator.username,
                creator.first_name,
                creator.last_name,
                f"{creator.first_name} {creator.last_name}",
                creator.city,
            )
        ]

    return filtered
