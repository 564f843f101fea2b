from fleetforge.models.availability import AvailabilityResult
from fleetforge.models.catalog import CatalogKind
from fleetforge.services.catalog import CatalogAccessor
from fleetforge.services.selection import CandidateView
from fleetforge.services.sorting import SortDirection, SortOption, sort_candidates


def squadron_views(accessor: CatalogAccessor) -> list[CandidateView]:
    return [
        CandidateView(record=r, result=AvailabilityResult.legal())
        for r in accessor.list_by_type(CatalogKind.SQUADRON)
    ]


def names(views: list[CandidateView]) -> list[str]:
    return [v.record.name for v in views]


class TestSortCandidates:
    def test_custom_keeps_catalog_order(self, accessor: CatalogAccessor) -> None:
        views = squadron_views(accessor)
        assert names(sort_candidates(views)) == names(views)

    def test_custom_descending_reverses(self, accessor: CatalogAccessor) -> None:
        views = squadron_views(accessor)
        ordered = sort_candidates(views, SortOption.CUSTOM, SortDirection.DESC)

        assert names(ordered) == list(reversed(names(views)))

    def test_alphabetical_ignores_case(self, accessor: CatalogAccessor) -> None:
        ordered = sort_candidates(squadron_views(accessor), SortOption.ALPHABETICAL)

        assert names(ordered) == [
            "Dodonna's Pride",
            "Keyan Farlander",
            "TIE Fighter Squadron",
            "Tycho Celchu",
            "X-wing Squadron",
        ]

    def test_points_descending(self, accessor: CatalogAccessor) -> None:
        ordered = sort_candidates(
            squadron_views(accessor), SortOption.POINTS, SortDirection.DESC
        )
        assert [v.record.points for v in ordered] == [23, 20, 16, 13, 8]

    def test_unique_first_then_name(self, accessor: CatalogAccessor) -> None:
        ordered = sort_candidates(squadron_views(accessor), SortOption.UNIQUE)

        assert names(ordered) == [
            "Dodonna's Pride",
            "Keyan Farlander",
            "Tycho Celchu",
            "TIE Fighter Squadron",
            "X-wing Squadron",
        ]

    def test_input_not_modified(self, accessor: CatalogAccessor) -> None:
        views = squadron_views(accessor)
        before = list(views)

        sort_candidates(views, SortOption.POINTS)

        assert views == before
