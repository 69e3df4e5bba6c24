# Picks the canonical "best" candidate and handles switching between candidates.

from collections.abc import Sequence
from dataclasses import replace

from api_structures import CandidateRoute, RouteSet


class IndexOutOfRangeError(LookupError):
    """The requested candidate index does not exist in the route set."""

    def __init__(self, index: int, size: int):
        super().__init__(f"Candidate index {index} is outside [0, {size})")
        self.index = index
        self.size = size


def best_index(candidates: Sequence[CandidateRoute]) -> int:
    """
    Fewest points wins; equal point counts fall back to the lower source feature
    index. Point count stands in for directness since candidates carry no distance.
    """
    if not candidates:
        raise ValueError("Cannot select from an empty candidate list.")
    return min(
        range(len(candidates)),
        key=lambda i: (len(candidates[i].points), candidates[i].source_feature_index),
    )


def select_best(candidates: Sequence[CandidateRoute], distance_meters: float | None = None,
                travel_time_seconds: float | None = None) -> RouteSet:
    winner = best_index(candidates)
    return RouteSet(
        candidates=tuple(candidates),
        best_index=winner,
        selected_index=winner,
        distance_meters=distance_meters,
        travel_time_seconds=travel_time_seconds,
    )


def reselect(route_set: RouteSet, new_index: int) -> RouteSet:
    """Returns a copy with a different selected candidate. best_index never changes."""
    size = len(route_set.candidates)
    if isinstance(new_index, bool) or not isinstance(new_index, int) or not 0 <= new_index < size:
        raise IndexOutOfRangeError(new_index, size)
    return replace(route_set, selected_index=new_index)
