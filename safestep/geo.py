"""Geographic utility functions."""

import math
import time

EARTH_RADIUS_M = 6371000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def bearing_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate bearing from point 1 to point 2 in degrees (0-360, 0=North).

    Identical points have no bearing; 0 is returned by convention.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = (math.cos(phi1) * math.sin(phi2) -
         math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda))

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two bearings (0-180)"""
    return abs((a - b + 180) % 360 - 180)


def point_to_segment_distance(lat: float, lon: float,
                              lat1: float, lon1: float,
                              lat2: float, lon2: float) -> float:
    """Distance in meters from a point to the segment (lat1, lon1)-(lat2, lon2).

    The point is projected onto the segment treating lat/lon as planar
    coordinates, which holds at walking scale; the distance to the projected
    point is then measured with haversine. A zero-length segment degrades to
    the distance to its start point.
    """
    dx = lon2 - lon1
    dy = lat2 - lat1
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return haversine_distance(lat, lon, lat1, lon1)

    t = ((lon - lon1) * dx + (lat - lat1) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return haversine_distance(lat, lon, lat1 + t * dy, lon1 + t * dx)


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """Check that a fix is finite and inside the lat/lon ranges"""
    try:
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
    except TypeError:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def bearing_to_compass(bearing: float) -> str:
    """Convert bearing to compass direction"""
    directions = ["north", "northeast", "east", "southeast",
                  "south", "southwest", "west", "northwest"]
    index = round(bearing / 45) % 8
    return directions[index]


def retry_with_backoff(func, max_time: float = 30.0, initial_delay: float = 1.0,
                       max_delay: float = 8.0, description: str = "operation"):
    """Retry a function with exponential backoff.

    Args:
        func: Function that returns a truthy value on success, falsy on failure
        max_time: Maximum total time to retry (seconds)
        initial_delay: Initial delay between retries (seconds)
        max_delay: Maximum delay between retries (seconds)
        description: Description for logging

    Returns:
        The result of func() on success, or None if all retries failed
    """
    start_time = time.time()
    delay = initial_delay
    attempt = 1

    while True:
        result = func()
        if result:
            return result

        elapsed = time.time() - start_time
        if elapsed >= max_time:
            print(f"Failed to complete {description} after {elapsed:.1f}s ({attempt} attempts)")
            return None

        remaining = max_time - elapsed
        sleep_time = min(delay, remaining, max_delay)
        if sleep_time > 0:
            print(f"Retrying {description} in {sleep_time:.1f}s (attempt {attempt})...")
            time.sleep(sleep_time)

        delay = min(delay * 2, max_delay)
        attempt += 1
