"""Page-number pagination helpers shared by repositories and routes."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .config import Settings


def clamp_page_size(requested: int | None, settings: Settings) -> int:
    """Clamp a requested page size into the configured bounds.

    ``None`` selects the configured default; anything else is forced into
    ``[task_page_size_min, task_page_size_max]``.
    """

    if requested is None:
        return settings.task_page_size_default
    return max(settings.task_page_size_min, min(requested, settings.task_page_size_max))


@dataclass(frozen=True, slots=True)
class PageRequest:
    """A normalised 1-based page number and page size."""

    page: int
    per_page: int

    @classmethod
    def build(cls, page: int | None, per_page: int | None, settings: Settings) -> "PageRequest":
        return cls(page=max(page or 1, 1), per_page=clamp_page_size(per_page, settings))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass(frozen=True, slots=True)
class PageMeta:
    """Pagination metadata describing one page of a filtered set."""

    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: int | None
    to: int | None

    @classmethod
    def build(cls, request: PageRequest, *, total: int, count: int) -> "PageMeta":
        """Derive metadata for a page holding ``count`` rows out of ``total``.

        Pages beyond the end are reported as-is with empty ``from``/``to``;
        clamping to ``last_page`` is left to the caller.
        """

        last_page = max(math.ceil(total / request.per_page), 1)
        if count:
            first = request.offset + 1
            last = request.offset + count
        else:
            first = last = None
        return cls(
            current_page=request.page,
            last_page=last_page,
            per_page=request.per_page,
            total=total,
            from_=first,
            to=last,
        )


__all__ = ["PageMeta", "PageRequest", "clamp_page_size"]
