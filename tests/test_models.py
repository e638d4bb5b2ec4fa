import pytest

from safestep.errors import Unavailable
from safestep.models import (
    Coordinate,
    Location,
    NavigationSession,
    RouteCandidate,
    Step,
    strip_markup,
)


@pytest.mark.parametrize("raw, expected", [
    ("Turn <b>left</b> onto <b>W 22nd St</b>", "Turn left onto W 22nd St"),
    ("Head north<div style=\"font-size:0.9em\">Destination will be on the right</div>",
     "Head north Destination will be on the right"),
    ("Walk past Caf&eacute; &amp; Bar", "Walk past Café & Bar"),
    ("", ""),
    (None, ""),
])
def test_strip_markup(raw, expected):
    assert strip_markup(raw) == expected


def test_step_text_is_stripped():
    step = Step(Coordinate(30.0, -97.0), "Turn <b>right</b>")
    assert step.text == "Turn right"
    assert step.instruction == "Turn <b>right</b>"


def test_route_requires_steps():
    with pytest.raises(Unavailable):
        RouteCandidate(steps=[], distance_m=0, duration_s=0)


def test_route_rejects_decreasing_cumulative_distance():
    steps = [
        Step(Coordinate(30.0, -97.0), "a", cumulative_distance_m=100),
        Step(Coordinate(30.1, -97.0), "b", cumulative_distance_m=50),
    ]
    with pytest.raises(Unavailable):
        RouteCandidate(steps=steps, distance_m=100, duration_s=60)


def test_route_steps_frozen_into_tuple():
    steps = [Step(Coordinate(30.0, -97.0), "a", cumulative_distance_m=10)]
    route = RouteCandidate(steps=steps, distance_m=10, duration_s=8)
    steps.append(Step(Coordinate(30.1, -97.0), "b", cumulative_distance_m=20))
    assert isinstance(route.steps, tuple)
    assert len(route.steps) == 1
    assert route.destination == Coordinate(30.0, -97.0)


def test_location_dict_round_trip():
    location = Location(30.28, -97.74, accuracy=4.0, timestamp=1700000000.0)
    assert Location.from_dict(location.to_dict()) == location
    assert location.coordinate == Coordinate(30.28, -97.74)


def test_session_current_step(two_step_route):
    session = NavigationSession(route=two_step_route)
    assert session.current_step is two_step_route.steps[0]
    session.step_index = 2
    assert session.is_finished
    assert session.current_step is None


def test_strip_markup_removes_encoded_tags():
    assert strip_markup("Turn &lt;b&gt;left&lt;/b&gt; onto Speedway") == "Turn left onto Speedway"
