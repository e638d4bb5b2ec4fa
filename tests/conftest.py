"""Shared fixtures: small routes around the UT Austin campus."""

import pytest

from safestep.geo import haversine_distance
from safestep.models import Coordinate, RouteCandidate, Step


def _route(points, texts=None, origin=None, summary=""):
    texts = texts or [f"Step <b>{i}</b>" for i in range(len(points))]
    steps = []
    cumulative = 0.0
    previous = origin or points[0]
    for point, text in zip(points, texts):
        length = haversine_distance(previous.lat, previous.lon, point.lat, point.lon)
        cumulative += length
        steps.append(Step(endpoint=point, instruction=text, distance_m=length,
                          cumulative_distance_m=cumulative))
        previous = point
    return RouteCandidate(steps=tuple(steps), distance_m=cumulative,
                          duration_s=cumulative / 1.4, summary=summary, origin=origin)


@pytest.fixture
def make_route():
    """Factory: make_route([Coordinate, ...], texts=None, origin=None)"""
    return _route


@pytest.fixture
def two_step_route():
    p0 = Coordinate(30.2830, -97.7420)
    p1 = Coordinate(30.2850, -97.7420)
    return _route([p0, p1], ["Head <b>north</b> on Nueces St",
                             "Arrive at <b>Rise</b><div>Destination on the left</div>"])


@pytest.fixture
def corner_route():
    """North, then east along W 22nd St"""
    return _route([
        Coordinate(30.2830, -97.7420),
        Coordinate(30.2850, -97.7420),
        Coordinate(30.2850, -97.7395),
    ])


@pytest.fixture
def zigzag_points():
    """Origin followed by four step endpoints with right-angle turns"""
    return [
        Coordinate(30.2830, -97.7420),
        Coordinate(30.2840, -97.7420),
        Coordinate(30.2840, -97.7408),
        Coordinate(30.2850, -97.7408),
        Coordinate(30.2850, -97.7396),
    ]


def _google_step(end, text, meters):
    return {
        "distance": {"text": f"{meters} m", "value": meters},
        "duration": {"text": "1 min", "value": meters},
        "end_location": {"lat": end.lat, "lng": end.lon},
        "html_instructions": text,
    }


def _google_route(summary, origin, ends):
    steps = [_google_step(end, f"Walk to <b>point {i}</b>", 110) for i, end in enumerate(ends)]
    total = 110 * len(ends)
    return {
        "summary": summary,
        "warnings": ["Walking directions are in beta."],
        "legs": [{
            "distance": {"text": f"{total} m", "value": total},
            "duration": {"text": f"{total // 80} mins", "value": total},
            "start_location": {"lat": origin.lat, "lng": origin.lon},
            "steps": steps,
        }],
    }


@pytest.fixture
def directions_payload(zigzag_points):
    """Directions API response with three candidates; candidate 1 is the zigzag"""
    origin = zigzag_points[0]
    return {
        "status": "OK",
        "routes": [
            _google_route("Guadalupe St", origin, [Coordinate(30.2870, -97.7420)]),
            _google_route("W 21st St", origin, zigzag_points[1:]),
            _google_route("Nueces St", origin, [Coordinate(30.2830, -97.7390),
                                                Coordinate(30.2850, -97.7390)]),
        ],
    }
