"""Route distance annotation and uniform resampling."""

import logging
from typing import Any, Iterable, List

from .config import AnalysisConfig, DEFAULT_CONFIG
from .geometry import cumulative_distances
from .models import RoutePoint

logger = logging.getLogger('rallynotes.route')


def _as_route_point(point: Any) -> RoutePoint:
    """Read a RoutePoint, (lat, lon[, ele]) tuple or object with .lat/.lon."""
    if isinstance(point, RoutePoint):
        return point
    if hasattr(point, 'lat') and hasattr(point, 'lon'):
        elevation = getattr(point, 'elevation', None)
        if elevation is None:
            elevation = getattr(point, 'ele', None)
        return RoutePoint(lat=float(point.lat), lon=float(point.lon), elevation=elevation)
    try:
        lat, lon = float(point[0]), float(point[1])
        elevation = point[2] if len(point) > 2 else None
    except (TypeError, IndexError, ValueError) as e:
        raise TypeError(f"Cannot read route point {point!r}: {e}") from e
    return RoutePoint(lat=lat, lon=lon, elevation=elevation)


def annotate_distances(points: Iterable[Any]) -> List[RoutePoint]:
    """
    Attach cumulative great-circle distance to each raw route point.

    Accepts RoutePoints, (lat, lon) or (lat, lon, elevation) tuples, or
    objects with .lat/.lon. Missing elevation is kept as None here and read
    as 0 by later stages.
    """
    pts = [_as_route_point(raw) for raw in points]
    distances = cumulative_distances([p.lat for p in pts], [p.lon for p in pts])
    return [
        RoutePoint(p.lat, p.lon, p.elevation, d) for p, d in zip(pts, distances)
    ]


def _elevation(point: RoutePoint) -> float:
    return point.elevation if point.elevation is not None else 0.0


def _interpolate(p1: RoutePoint, p2: RoutePoint, ratio: float, distance: float) -> RoutePoint:
    """Linear blend of two points at ratio (0 = p1, 1 = p2)."""
    e1 = _elevation(p1)
    e2 = _elevation(p2)
    return RoutePoint(
        lat=p1.lat + (p2.lat - p1.lat) * ratio,
        lon=p1.lon + (p2.lon - p1.lon) * ratio,
        elevation=e1 + (e2 - e1) * ratio,
        distance=distance,
    )


def resample_route(
    points: List[Any],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[RoutePoint]:
    """
    Resample a route to uniform spacing.

    Emits a point every config.resample_step_m metres of along-route
    distance by interpolating within the raw segment that contains it,
    then the final raw point. Returns an empty list if the route has fewer
    than 2 points or resamples to fewer than config.min_resampled_points.
    """
    if len(points) < 2:
        logger.debug("Route has %d points, nothing to resample", len(points))
        return []

    annotated = annotate_distances(points)

    step = config.resample_step_m
    total = annotated[-1].distance
    resampled: List[RoutePoint] = []

    k = 0
    target = 0.0
    for i in range(len(annotated) - 1):
        p1 = annotated[i]
        p2 = annotated[i + 1]
        seg_len = p2.distance - p1.distance
        if seg_len <= 0:
            continue  # Duplicate point

        while target <= p2.distance:
            ratio = (target - p1.distance) / seg_len
            resampled.append(_interpolate(p1, p2, min(max(ratio, 0.0), 1.0), target))
            k += 1
            target = k * step

    last = annotated[-1]
    if not resampled or total - resampled[-1].distance > 1e-6:
        resampled.append(RoutePoint(last.lat, last.lon, _elevation(last), total))

    if len(resampled) < config.min_resampled_points:
        logger.debug(
            "Route too short: %d resampled points (need %d)",
            len(resampled), config.min_resampled_points,
        )
        return []

    logger.debug("Resampled %d points to %d at %.1fm", len(points), len(resampled), step)
    return resampled
