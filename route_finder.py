# Main script to find and display a route between two or more places.

import argparse
import logging

from dotenv import load_dotenv

from api_adapters import OpenStreetMapAdapter
from api_structures import RouteView, SessionState
from route_session import RouteSession


def format_distance(meters: float | None) -> str:
    if meters is None:
        return "unknown"
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{round(meters)} m"


def format_duration(seconds: float | None) -> str:
    """Converts seconds into a readable 'XX min' format."""
    if seconds is None:
        return "unknown"
    return f"{round(seconds / 60)} min"


def display_view(view: RouteView):
    """Prints the session view: candidates, markers or the error message."""
    if view.validation_message:
        print(f"\n{view.validation_message}")

    if view.state is SessionState.FAILED:
        print(f"\n{view.error_kind.message}")
        return
    if view.state is not SessionState.READY:
        print(f"\nNo route to show (state: {view.state.value}).")
        return

    route_set = view.route_set
    print(f"\nFound {len(route_set.candidates)} candidate route(s).\n")
    header = "| Option | Points | Feature | Best | Selected |"
    divider = "-" * len(header)
    print(header)
    print(divider)
    for i, (candidate, polyline) in enumerate(zip(route_set.candidates, view.candidate_polylines)):
        best = "yes" if i == route_set.best_index else ""
        selected = "*" if i == route_set.selected_index else ""
        print(f"| {i:<6} | {len(polyline):<6} | "
              f"{candidate.source_feature_index:<7} | {best:<4} | {selected:<8} |")
    print(divider)

    print(f"\nDistance: {format_distance(route_set.distance_meters)}, "
          f"travel time: {format_duration(route_set.travel_time_seconds)}")
    for role, point in view.markers:
        print(f"   > {role:<8} {point.lat:.5f}, {point.lon:.5f}")

    if view.last_error is not None:
        print(f"\n{view.last_error.message}")


if __name__ == '__main__':
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Route Finder: draw a route between place names.")
    parser.add_argument('--start', help="Start location, e.g. 'Paris'.")
    parser.add_argument('--end', help="Destination, e.g. 'Berlin'.")
    parser.add_argument('--via', action='append', default=[], metavar='PLACE',
                        help="Intermediate place; repeat for more, in order.")
    parser.add_argument('--select', type=int, metavar='INDEX',
                        help="Show this candidate instead of the best one.")
    parser.add_argument('--policy', choices=['flatten', 'longest'],
                        help="How MultiLineString geometries become one route.")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose mode to see the exact API calls being made.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        adapter = OpenStreetMapAdapter()
        session = RouteSession(adapter) if args.policy is None else RouteSession(adapter, args.policy)
    except ValueError as e:
        print(e)
        exit(1)

    start = args.start if args.start is not None else input("Enter Start Location: ")
    end = args.end if args.end is not None else input("Enter Destination: ")

    view = session.find_route(start, end, args.via)
    if args.select is not None and view.state is SessionState.READY:
        view = session.reselect(args.select)

    display_view(view)
