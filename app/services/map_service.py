"""
Map service - proximity and administrative-area views over reports.

Pure transforms over candidate reports already fetched from the store:
- radius mode: keep reports within radius_km of an origin, nearest first
- area mode: keep every report in a state/city, optionally annotated with
  distance from the user (reports without a distance sort last)

distance_in_km is a transient annotation on the returned copies; the
candidates themselves are never modified and nothing is written back.
"""

from typing import Iterable, List, Optional

from app.core.errors import InvalidArea, InvalidGeometry
from app.models.report import NearbyReport, Report
from app.utils.geo import haversine_km, has_coordinates, validate_coordinates, validate_radius


def _annotate(report: Report, distance_in_km: Optional[float]) -> NearbyReport:
    return NearbyReport(**report.model_dump(), distance_in_km=distance_in_km)


def filter_nearby(
    origin_lat: float,
    origin_lng: float,
    radius_km: float,
    candidates: Iterable[Report],
    max_radius_km: Optional[float] = None
) -> List[NearbyReport]:
    """
    Reports within radius_km of the origin, ascending by distance.

    Candidates without both coordinates are silently excluded.

    Raises:
        InvalidGeometry: origin out of range or radius not positive
    """
    validate_coordinates(origin_lat, origin_lng)
    validate_radius(radius_km, max_radius_km)

    matching: List[NearbyReport] = []
    for report in candidates:
        if not has_coordinates(report.lat, report.lng):
            continue
        distance = haversine_km(origin_lat, origin_lng, report.lat, report.lng)
        if distance <= radius_km:
            matching.append(_annotate(report, distance))

    matching.sort(key=lambda r: r.distance_in_km)
    return matching


def annotate_distances(
    reports: Iterable[Report],
    origin_lat: Optional[float] = None,
    origin_lng: Optional[float] = None
) -> List[NearbyReport]:
    """
    Annotate every report with its distance from the origin, when both are known.

    Without an origin the input order is kept and every distance is None.
    With an origin, reports are sorted nearest first and reports without
    coordinates go to the end (in their original relative order).
    """
    if origin_lat is None and origin_lng is None:
        return [_annotate(report, None) for report in reports]
    if origin_lat is None or origin_lng is None:
        raise InvalidGeometry("Both lat and lng are required for a distance origin")
    validate_coordinates(origin_lat, origin_lng)

    annotated: List[NearbyReport] = []
    for report in reports:
        distance = None
        if has_coordinates(report.lat, report.lng):
            distance = haversine_km(origin_lat, origin_lng, report.lat, report.lng)
        annotated.append(_annotate(report, distance))

    annotated.sort(key=lambda r: (r.distance_in_km is None, r.distance_in_km or 0.0))
    return annotated


def filter_by_area(reports: Iterable[Report], state: Optional[str], city: Optional[str] = None) -> List:
    """
    Keep reports in the given state (and city, when given).

    City names repeat across states, so a city filter always requires a state.
    """
    if city and not state:
        raise InvalidArea("Both city and state are required")
    result = []
    for report in reports:
        if state and report.state != state:
            continue
        if city and report.city != city:
            continue
        result.append(report)
    return result


def filter_by_confidence(reports: Iterable[Report], confidence: Optional[str]) -> List:
    """Keep reports at exactly the given confidence level ('all' or None keeps everything)."""
    if not confidence or confidence == "all":
        return list(reports)
    return [r for r in reports if (r.confidence_level or "low") == confidence]


def exclude_reporter(reports: Iterable[Report], reporter_id: Optional[str]) -> List:
    """Drop the caller's own reports from a browsing view."""
    if not reporter_id:
        return list(reports)
    return [r for r in reports if r.reporter_id != reporter_id]
