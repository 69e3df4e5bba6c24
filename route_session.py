# The state machine that runs one "find route" attempt end to end.

import logging
import math
import os
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from dotenv import load_dotenv

from api_adapters import ApiAdapter, TransportError
from api_structures import (ErrorKind, FailureReason, ResolutionFailure, ResolvedPlace,
                            RouteView, SessionState)
from geometry_normalizer import MultiLinePolicy, normalize
from place_resolver import resolve
from route_request import build_route_request
from route_selector import IndexOutOfRangeError, reselect, select_best

logger = logging.getLogger(__name__)

load_dotenv()
MULTILINE_POLICY = os.getenv("MULTILINE_POLICY", MultiLinePolicy.FLATTEN.value)
RESOLVER_WORKERS = int(os.getenv("RESOLVER_WORKERS", "4"))

MISSING_PLACES_MESSAGE = "Please enter both a start and a destination."


def _as_metric(value) -> float | None:
    """Distance/time metadata is optional; anything that isn't a finite non-negative number is unknown."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


class RouteSession:
    """
    Owns the route-finding state and exposes it as an immutable RouteView.

    At most one attempt runs at a time: a find_route() call made while another
    is in flight is ignored rather than queued, and the in-flight attempt is
    never cancelled.
    """

    def __init__(self, api_adapter: ApiAdapter, multiline_policy: str | MultiLinePolicy = MULTILINE_POLICY,
                 max_workers: int = RESOLVER_WORKERS):
        self.api_adapter = api_adapter
        # Raises ValueError for an unknown policy name.
        self.multiline_policy = MultiLinePolicy(multiline_policy)
        self.max_workers = max(1, max_workers)
        self._attempt_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._view = RouteView(state=SessionState.IDLE)

    @property
    def view(self) -> RouteView:
        with self._state_lock:
            return self._view

    @property
    def state(self) -> SessionState:
        return self.view.state

    def _set_view(self, view: RouteView):
        with self._state_lock:
            previous = self._view.state
            self._view = view
        if previous != view.state:
            logger.info("Route session: %s -> %s", previous.value, view.state.value)

    def _fail(self, kind: ErrorKind):
        logger.info("Route attempt failed: %s", kind.value)
        self._set_view(RouteView(state=SessionState.FAILED, error_kind=kind))

    # --- User intents ---

    def find_route(self, start: str, end: str, waypoints: Sequence[str] = ()) -> RouteView:
        if not self._attempt_lock.acquire(blocking=False):
            logger.info("Ignoring find_route: an attempt is already in flight.")
            return self.view
        try:
            start = (start or "").strip()
            end = (end or "").strip()
            if not start or not end:
                with self._state_lock:
                    self._view = replace(self._view, validation_message=MISSING_PLACES_MESSAGE)
                return self.view

            # Anything left from the previous attempt is discarded here.
            self._set_view(RouteView(state=SessionState.RESOLVING_PLACES))
            try:
                self._run_attempt(start, end, [w.strip() for w in waypoints if w and w.strip()])
            except Exception:
                self._fail(ErrorKind.TRANSPORT)
                raise
            return self.view
        finally:
            self._attempt_lock.release()

    def reselect(self, index: int) -> RouteView:
        """Switches the active candidate. Only valid once a route is ready."""
        with self._state_lock:
            view = self._view
            if view.state is not SessionState.READY:
                raise RuntimeError(f"Cannot reselect a route in state '{view.state.value}'.")
            try:
                route_set = reselect(view.route_set, index)
            except IndexOutOfRangeError as e:
                logger.warning("Reselect rejected: %s", e)
                self._view = replace(view, last_error=ErrorKind.INDEX_OUT_OF_RANGE)
            else:
                self._view = replace(view, route_set=route_set, last_error=None)
            return self._view

    def reset(self) -> RouteView:
        """Returns to Idle and forgets the last route. Ignored while an attempt is in flight."""
        if not self._attempt_lock.acquire(blocking=False):
            logger.info("Ignoring reset: an attempt is already in flight.")
            return self.view
        try:
            self._set_view(RouteView(state=SessionState.IDLE))
            return self.view
        finally:
            self._attempt_lock.release()

    # --- Attempt steps ---

    def _resolve_all(self, queries: list[str]) -> list[ResolvedPlace | ResolutionFailure]:
        # Every lookup runs to completion, so one early failure never hides the others.
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(queries)),
                                thread_name_prefix="place-resolver") as pool:
            futures = [pool.submit(resolve, query, self.api_adapter) for query in queries]
            return [future.result() for future in futures]

    def _run_attempt(self, start: str, end: str, waypoints: list[str]):
        results = self._resolve_all([start, *waypoints, end])
        start_place, end_place = results[0], results[-1]

        failures = [r for r in (start_place, end_place) if isinstance(r, ResolutionFailure)]
        if failures:
            if any(f.reason is FailureReason.TRANSPORT for f in failures):
                self._fail(ErrorKind.TRANSPORT)
            else:
                self._fail(ErrorKind.INVALID_PLACE)
            return

        stops = []
        for result in results[1:-1]:
            if isinstance(result, ResolutionFailure):
                logger.warning("Dropping waypoint '%s' (%s)", result.query, result.reason.value)
                continue
            stops.append(result)

        params = build_route_request(start_place.point, end_place.point, [s.point for s in stops])
        self._set_view(RouteView(state=SessionState.REQUESTING_ROUTE))
        try:
            payload = self.api_adapter.fetch_route(params)
        except TransportError as e:
            logger.warning("Routing request failed: %s", e)
            self._fail(ErrorKind.TRANSPORT)
            return

        features = payload.get('features')
        candidates = normalize(features if isinstance(features, list) else [], self.multiline_policy)
        if not candidates:
            self._fail(ErrorKind.NO_ROUTE)
            return

        properties = payload.get('properties')
        if not isinstance(properties, dict):
            properties = {}
        route_set = select_best(
            candidates,
            distance_meters=_as_metric(properties.get('distance')),
            travel_time_seconds=_as_metric(properties.get('time')),
        )
        markers = (
            ("start", start_place.point),
            *(("waypoint", s.point) for s in stops),
            ("end", end_place.point),
        )
        logger.info("Found %d candidate route(s), best is #%d",
                    len(route_set.candidates), route_set.best_index)
        self._set_view(RouteView(state=SessionState.READY, route_set=route_set, markers=markers))
