"""
Geodesic distance and area calculations
"""

import math
import logging
from typing import Iterable, Sequence, Tuple, Any
from dataclasses import dataclass

from mission_engine.utils.constants import EarthConstants
from mission_engine.utils.exceptions import ComputationError

logger = logging.getLogger(__name__)

# Earth constants
EARTH_RADIUS = EarthConstants.RADIUS_METERS  # meters
EARTH_RADIUS_KM = EarthConstants.RADIUS_KM
SQ_KM_PER_SQ_DEGREE = EarthConstants.KM_PER_DEGREE * EarthConstants.KM_PER_DEGREE


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box"""
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float, tolerance: float = 1e-9) -> bool:
        """Check if coordinate is within bounding box"""
        return (self.min_lat - tolerance <= lat <= self.max_lat + tolerance and
                self.min_lon - tolerance <= lon <= self.max_lon + tolerance)

    def center(self) -> Tuple[float, float]:
        """Get center point of bounding box"""
        center_lat = (self.min_lat + self.max_lat) / 2
        center_lon = (self.min_lon + self.max_lon) / 2
        return center_lat, center_lon


def _coords(point: Any) -> Tuple[float, float]:
    lat, lon = point.latitude, point.longitude
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ComputationError(f"Non-finite coordinate ({lat}, {lon})", operation="geodesy")
    return lat, lon


def ensure_finite(points: Iterable[Any]):
    """Raise ComputationError if any point has a NaN or infinite coordinate"""
    for point in points:
        _coords(point)


class GeodesicCalculator:
    """Distance, bounding box and area utilities"""

    @staticmethod
    def haversine_distance(p1: Any, p2: Any) -> float:
        """
        Calculate distance between two points using Haversine formula

        Args:
            p1, p2: Points exposing latitude/longitude in degrees

        Returns:
            Distance in meters
        """
        lat1, lon1 = _coords(p1)
        lat2, lon2 = _coords(p2)

        # Convert to radians
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        # Haversine formula
        a = (math.sin(delta_lat / 2) * math.sin(delta_lat / 2) +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) * math.sin(delta_lon / 2))

        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS * c

    @staticmethod
    def planar_distance(p1: Any, p2: Any) -> float:
        """
        Euclidean distance on raw latitude/longitude, in degrees

        Only meaningful for ranking nearby points; it is not a ground distance.
        """
        lat1, lon1 = _coords(p1)
        lat2, lon2 = _coords(p2)
        return math.sqrt((lat1 - lat2) ** 2 + (lon1 - lon2) ** 2)

    @staticmethod
    def bounding_box(points: Iterable[Any]) -> BoundingBox:
        """
        Compute the bounding box of a set of points

        Raises:
            ComputationError: if no points are given or a coordinate is not finite
        """
        coords = [_coords(p) for p in points]
        if not coords:
            raise ComputationError("Cannot compute bounding box of zero points", operation="bounding_box")

        lats = [lat for lat, _ in coords]
        lons = [lon for _, lon in coords]
        return BoundingBox(min(lats), max(lats), min(lons), max(lons))

    @staticmethod
    def rectangular_area(bbox: BoundingBox) -> float:
        """
        Approximate area of a bounding box in km²

        Width is measured along the mean latitude and height along a meridian,
        so the estimate is only reasonable for small extents away from the poles.
        """
        mean_lat = math.radians((bbox.min_lat + bbox.max_lat) / 2)
        width = EARTH_RADIUS_KM * math.cos(mean_lat) * abs(math.radians(bbox.max_lon - bbox.min_lon))
        height = EARTH_RADIUS_KM * abs(math.radians(bbox.max_lat - bbox.min_lat))
        return width * height

    @staticmethod
    def shoelace_polygon_area(points: Sequence[Any]) -> float:
        """
        Approximate polygon area in km² using the shoelace formula

        The sum is taken in degree space and scaled by a fixed 111 km per
        degree on both axes, which does not correct for latitude.
        """
        if len(points) < 3:
            return 0.0

        coords = [_coords(p) for p in points]
        area = 0.0
        n = len(coords)
        for i in range(n):
            j = (i + 1) % n
            lat_i, lon_i = coords[i]
            lat_j, lon_j = coords[j]
            area += lon_i * lat_j
            area -= lon_j * lat_i

        return abs(area / 2) * SQ_KM_PER_SQ_DEGREE

    @staticmethod
    def path_length(points: Sequence[Any]) -> float:
        """
        Calculate total path length for a list of points

        Returns:
            Total path length in meters, 0 for fewer than two points
        """
        if len(points) < 2:
            return 0.0

        total_distance = 0.0
        for i in range(1, len(points)):
            total_distance += GeodesicCalculator.haversine_distance(points[i - 1], points[i])

        return total_distance
