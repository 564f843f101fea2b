"""
Candidate sorting for picker listings.

Sorting never changes which candidates are listed or their legality, only
their order. Ties are broken by name so listings are stable.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, Protocol, TypeVar

from fleetforge.models.catalog import CatalogRecord


class SortOption(str, Enum):
    """Listing orders offered by pickers."""

    ALPHABETICAL = "alphabetical"
    POINTS = "points"
    UNIQUE = "unique"
    # Catalog order: base first, then legacy, then legends
    CUSTOM = "custom"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class HasRecord(Protocol):
    @property
    def record(self) -> CatalogRecord: ...


V = TypeVar("V", bound=HasRecord)


_SORT_KEYS: dict[SortOption, Callable[[CatalogRecord], Any]] = {
    SortOption.ALPHABETICAL: lambda r: r.name.lower(),
    SortOption.POINTS: lambda r: (r.points, r.name.lower()),
    SortOption.UNIQUE: lambda r: (not r.unique, r.name.lower()),
}


def sort_candidates(
    views: Sequence[V],
    option: SortOption = SortOption.CUSTOM,
    direction: SortDirection = SortDirection.ASC,
) -> list[V]:
    """
    Order listed candidates.

    Args:
        views: Anything carrying a ``record`` (candidate views, entries)
        option: Sort key
        direction: Ascending or descending

    Returns:
        A new list; the input is not modified
    """
    reverse = direction is SortDirection.DESC

    if option is SortOption.CUSTOM:
        ordered = list(views)
        if reverse:
            ordered.reverse()
        return ordered

    key = _SORT_KEYS[option]
    return sorted(views, key=lambda v: key(v.record), reverse=reverse)
