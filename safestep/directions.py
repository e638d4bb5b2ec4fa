"""Walking directions via the Google Directions API."""

from typing import Optional

import requests

from .config import CONFIG
from .errors import Unavailable
from .models import Coordinate, RouteCandidate, Step


def _coordinate(d: dict) -> Coordinate:
    return Coordinate(lat=float(d["lat"]), lon=float(d["lng"]))


def _format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{meters:.0f} m"


def _format_duration(seconds: float) -> str:
    minutes = max(1, round(seconds / 60))
    if minutes >= 60:
        return f"{minutes // 60} h {minutes % 60} min"
    return f"{minutes} min"


def parse_route(route: dict) -> RouteCandidate:
    """Convert one route object of a Directions response into a RouteCandidate.

    Multi-leg routes are flattened into one ordered step list.
    """
    legs = route.get("legs") or []
    if not legs:
        raise Unavailable("Route has no legs")

    steps = []
    cumulative = 0.0
    distance = 0.0
    duration = 0.0
    for leg in legs:
        for raw in leg.get("steps") or []:
            step_distance = float(raw.get("distance", {}).get("value", 0))
            cumulative += step_distance
            steps.append(Step(
                endpoint=_coordinate(raw["end_location"]),
                instruction=raw.get("html_instructions", ""),
                distance_m=step_distance,
                duration_s=float(raw.get("duration", {}).get("value", 0)),
                cumulative_distance_m=cumulative,
            ))
        distance += float(leg["distance"]["value"])
        duration += float(leg["duration"]["value"])

    if len(legs) == 1:
        distance_text = legs[0]["distance"].get("text") or _format_distance(distance)
        duration_text = legs[0]["duration"].get("text") or _format_duration(duration)
    else:
        distance_text = _format_distance(distance)
        duration_text = _format_duration(duration)

    start = legs[0].get("start_location")
    return RouteCandidate(
        steps=tuple(steps),
        distance_m=distance,
        duration_s=duration,
        distance_text=distance_text,
        duration_text=duration_text,
        summary=route.get("summary", ""),
        origin=_coordinate(start) if start else None,
        warnings=tuple(route.get("warnings") or ()),
    )


def parse_directions(payload: dict) -> list[RouteCandidate]:
    """Convert a Directions API JSON payload into route candidates.

    Raises Unavailable for a non-OK status, an empty route list, or any
    route whose geometry can't be read.
    """
    if not isinstance(payload, dict):
        raise Unavailable("Directions response is not an object")

    status = payload.get("status", "OK")
    if status != "OK":
        detail = payload.get("error_message")
        raise Unavailable(f"Directions status {status}" + (f": {detail}" if detail else ""))

    routes = payload.get("routes") or []
    if not routes:
        raise Unavailable("No routes found")

    candidates = []
    for index, route in enumerate(routes):
        try:
            candidates.append(parse_route(route))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise Unavailable(f"Malformed route {index}: {e!r}") from e
    return candidates


class DirectionsClient:
    """Fetch walking route candidates from the Google Directions API.

    Failures are raised as Unavailable and never retried here; retry policy
    belongs to the caller.
    """

    def __init__(self, api_key: str, session: Optional[requests.Session] = None,
                 url: Optional[str] = None, timeout: Optional[float] = None):
        if not api_key:
            raise ValueError("A Directions API key is required")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.url = url or CONFIG["directions_url"]
        self.timeout = timeout or CONFIG["directions_timeout"]

    def fetch_routes(self, origin: Coordinate, destination: Coordinate,
                     alternatives: bool = True) -> list[RouteCandidate]:
        """Fetch candidate walking routes from origin to destination"""
        params = {
            "origin": f"{origin.lat},{origin.lon}",
            "destination": f"{destination.lat},{destination.lon}",
            "mode": CONFIG["directions_mode"],
            "alternatives": "true" if alternatives else "false",
            "key": self.api_key,
        }

        print(f"Fetching directions ({origin.lat:.5f}, {origin.lon:.5f}) -> "
              f"({destination.lat:.5f}, {destination.lon:.5f})...")

        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise Unavailable(f"Directions request failed: {e}") from e
        except ValueError as e:
            raise Unavailable(f"Directions response is not JSON: {e}") from e

        return parse_directions(data)
