# Converts the routing backend's GeoJSON features into clean candidate routes.

import logging
from collections.abc import Sequence
from enum import Enum

from api_structures import CandidateRoute, GeoPoint, is_valid_coordinate

logger = logging.getLogger(__name__)

LINE_STRING = "LineString"
MULTI_LINE_STRING = "MultiLineString"


class MultiLinePolicy(str, Enum):
    """How the sub-lines of a MultiLineString become one candidate."""
    FLATTEN = "flatten"
    LONGEST = "longest"


def _is_array(value) -> bool:
    return isinstance(value, (list, tuple))


def _convert_line(raw_line) -> list[GeoPoint]:
    """
    Maps [lon, lat] pairs to GeoPoints. GeoJSON stores longitude first, so
    the order is always swapped. Out-of-range or malformed pairs are dropped.
    """
    if not _is_array(raw_line):
        return []
    points = []
    for pair in raw_line:
        # A third element (altitude) is allowed by GeoJSON and ignored.
        if not _is_array(pair) or len(pair) < 2:
            continue
        lon, lat = pair[0], pair[1]
        if not is_valid_coordinate(lat, lon):
            continue
        points.append(GeoPoint(lat=float(lat), lon=float(lon)))
    return points


def _convert_multi_line(raw_lines, policy: MultiLinePolicy) -> list[GeoPoint]:
    if not _is_array(raw_lines):
        return []
    lines = [_convert_line(line) for line in raw_lines]
    if policy is MultiLinePolicy.LONGEST:
        # max() returns the first of equally long lines.
        return max(lines, key=len, default=[])
    return [point for line in lines for point in line]


def normalize(features: Sequence, policy: MultiLinePolicy = MultiLinePolicy.FLATTEN) -> list[CandidateRoute]:
    """
    Builds one CandidateRoute per usable feature, in input order.

    Features without geometry, with an unknown geometry type, or with no valid
    points are skipped. source_feature_index keeps each survivor's original position.
    """
    policy = MultiLinePolicy(policy)
    candidates = []
    for index, feature in enumerate(features):
        geometry = feature.get('geometry') if isinstance(feature, dict) else None
        if not isinstance(geometry, dict) or geometry.get('coordinates') is None:
            logger.debug("Feature %d has no geometry, skipping", index)
            continue

        geometry_type = geometry.get('type')
        coordinates = geometry['coordinates']
        if geometry_type == LINE_STRING:
            points = _convert_line(coordinates)
        elif geometry_type == MULTI_LINE_STRING:
            points = _convert_multi_line(coordinates, policy)
        else:
            logger.debug("Feature %d has unsupported type %r, skipping", index, geometry_type)
            continue

        if not points:
            logger.debug("Feature %d has no valid points, dropping", index)
            continue
        candidates.append(CandidateRoute(points=tuple(points), source_feature_index=index))
    return candidates
