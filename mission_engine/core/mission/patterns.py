"""
Survey pattern generators.

Every generator is a pure function of the boundary and flight parameters and
returns waypoints numbered densely from 1.
"""

import math
import logging
from typing import List, Sequence, Any, Callable, Dict

from mission_engine.core.geo.geodesy import GeodesicCalculator, BoundingBox, ensure_finite
from mission_engine.models.domain import Waypoint
from mission_engine.utils.constants import PatternTypes, PlanningDefaults, WaypointActions
from mission_engine.utils.exceptions import ValidationError
from mission_engine.utils.validators import (
    ensure_valid, validate_altitude, validate_boundary, validate_overlap
)

logger = logging.getLogger(__name__)


def _spacing(extent: float, overlap: float) -> float:
    # Higher overlap means closer lines
    overlap_factor = (100 - overlap) / 100
    return extent * overlap_factor / PlanningDefaults.GRID_DIVISIONS


def _steps(low: float, high: float, spacing: float) -> List[float]:
    """Values from low to high inclusive, one value for a zero-width extent"""
    if spacing <= 0:
        return [low]

    values = []
    index = 0
    tolerance = spacing * 1e-9
    while True:
        value = low + index * spacing
        if value > high + tolerance:
            break
        values.append(min(value, high))
        index += 1
    return values


def _sweep(bbox: BoundingBox, overlap: float, altitude: float, columns: bool) -> List[Waypoint]:
    """Boustrophedon sweep over the box, stepping latitude rows or longitude columns"""
    lats = _steps(bbox.min_lat, bbox.max_lat, _spacing(bbox.max_lat - bbox.min_lat, overlap))
    lons = _steps(bbox.min_lon, bbox.max_lon, _spacing(bbox.max_lon - bbox.min_lon, overlap))
    outer, inner = (lons, lats) if columns else (lats, lons)

    waypoints: List[Waypoint] = []
    for line_index, fixed in enumerate(outer):
        # Alternate direction for efficiency (lawnmower pattern)
        line = reversed(inner) if line_index % 2 == 1 else inner
        for moving in line:
            lat, lon = (moving, fixed) if columns else (fixed, moving)
            waypoints.append(Waypoint(
                latitude=lat,
                longitude=lon,
                altitude=altitude,
                order=len(waypoints) + 1,
                action=WaypointActions.WAYPOINT,
            ))
    return waypoints


def _validate(boundary: Sequence[Any], altitude: float, overlap: float):
    if boundary is not None and len(boundary) >= 3:
        ensure_finite(boundary)
    ensure_valid(validate_boundary(boundary), field="boundary")
    ensure_valid(validate_altitude(altitude), field="altitude", value=altitude)
    ensure_valid(validate_overlap(overlap), field="overlap", value=overlap)


def generate_grid(boundary: Sequence[Any], altitude: float,
                  overlap: float = PlanningDefaults.OVERLAP_PERCENT,
                  rotation: float = 0) -> List[Waypoint]:
    """
    Lawnmower grid over the boundary's bounding box

    Args:
        boundary: Polygon vertices (at least 3)
        altitude: Flight altitude in meters
        overlap: Image overlap percentage, drives line spacing
        rotation: 0 sweeps latitude rows, 90 sweeps longitude columns

    Returns:
        Waypoints numbered from 1
    """
    _validate(boundary, altitude, overlap)
    if rotation % 90 != 0:
        raise ValidationError("Grid rotation must be a multiple of 90 degrees",
                              field="rotation", value=rotation)

    bbox = GeodesicCalculator.bounding_box(boundary)
    columns = (rotation % 180) == 90
    return _sweep(bbox, overlap, altitude, columns)


def generate_crosshatch(boundary: Sequence[Any], altitude: float,
                        overlap: float = PlanningDefaults.OVERLAP_PERCENT,
                        rotation: float = 0) -> List[Waypoint]:
    """Grid pass followed by the same grid rotated 90 degrees"""
    first = generate_grid(boundary, altitude, overlap, rotation)
    second = generate_grid(boundary, altitude, overlap, rotation + 90)
    return [wp.renumbered(index) for index, wp in enumerate(first + second, start=1)]


def generate_perimeter(boundary: Sequence[Any], altitude: float,
                       overlap: float = PlanningDefaults.OVERLAP_PERCENT,
                       rotation: float = 0) -> List[Waypoint]:
    """Follow the boundary vertices in their given order"""
    _validate(boundary, altitude, overlap)
    return [
        Waypoint(
            latitude=point.latitude,
            longitude=point.longitude,
            altitude=altitude,
            order=index,
            action=WaypointActions.WAYPOINT,
        )
        for index, point in enumerate(boundary, start=1)
    ]


def generate_spiral(boundary: Sequence[Any], altitude: float,
                    overlap: float = PlanningDefaults.OVERLAP_PERCENT,
                    rotation: float = 0) -> List[Waypoint]:
    """
    Archimedean spiral outward from the bounding-box center

    The radius grows by spacing/2π per point and never shrinks; the spiral
    stops once it passes the farthest boundary vertex.
    """
    _validate(boundary, altitude, overlap)

    bbox = GeodesicCalculator.bounding_box(boundary)
    center_lat, center_lon = bbox.center()

    max_radius = max(
        math.sqrt((p.latitude - center_lat) ** 2 + (p.longitude - center_lon) ** 2)
        for p in boundary
    )
    spacing = _spacing(max_radius, overlap)

    if spacing <= 0:
        logger.debug("Degenerate boundary for spiral, emitting center point only")
        return [Waypoint(center_lat, center_lon, altitude, 1, WaypointActions.WAYPOINT)]

    waypoints: List[Waypoint] = []
    radius = spacing
    angle = 0.0

    while radius <= max_radius:
        waypoints.append(Waypoint(
            latitude=center_lat + radius * math.cos(angle),
            longitude=center_lon + radius * math.sin(angle),
            altitude=altitude,
            order=len(waypoints) + 1,
            action=WaypointActions.WAYPOINT,
        ))
        angle += spacing / radius
        radius += spacing / (2 * math.pi)

    return waypoints


PATTERN_GENERATORS: Dict[PatternTypes, Callable[..., List[Waypoint]]] = {
    PatternTypes.GRID: generate_grid,
    PatternTypes.CROSSHATCH: generate_crosshatch,
    PatternTypes.PERIMETER: generate_perimeter,
    PatternTypes.SPIRAL: generate_spiral,
}


def generate(pattern: str, boundary: Sequence[Any], altitude: float,
             overlap: float = PlanningDefaults.OVERLAP_PERCENT,
             rotation: float = 0) -> List[Waypoint]:
    """
    Generate waypoints for a named pattern

    Raises:
        ValidationError: for an unknown pattern or invalid parameters
    """
    try:
        generator = PATTERN_GENERATORS[PatternTypes(pattern)]
    except (ValueError, KeyError):
        raise ValidationError(f"Invalid pattern type: {pattern}", field="pattern", value=pattern)

    waypoints = generator(boundary, altitude, overlap, rotation)
    logger.debug(f"Generated {len(waypoints)} waypoints for {pattern} pattern")
    return waypoints
