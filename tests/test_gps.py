import json
import subprocess

import pytest

from safestep import gps as gps_module
from safestep.geo import haversine_distance
from safestep.gps import GPS, Compass, GPSPlayback, GPSRecorder, SimulatedWalk, interpolate_route
from safestep.models import Location


def completed(stdout, returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


@pytest.fixture
def fake_run(monkeypatch):
    """Replace subprocess.run with a queue of canned results"""
    results = []
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        result = results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(gps_module.subprocess, "run", run)
    run.results = results
    run.calls = calls
    return run


def test_gps_reads_termux_location(fake_run):
    fake_run.results.append(completed(json.dumps({"latitude": 30.2830, "longitude": -97.7420,
                                                  "accuracy": 6.5})))
    gps = GPS()
    location = gps.get_location()
    assert (location.lat, location.lon, location.accuracy) == (30.2830, -97.7420, 6.5)
    assert fake_run.calls[0][0] == "termux-location"
    assert gps.get_status() == "GPS OK, accuracy 6m"


def test_gps_counts_failures(fake_run):
    fake_run.results.extend([
        completed("", returncode=1),
        subprocess.TimeoutExpired("termux-location", 30),
        completed("not json"),
        completed(json.dumps({"latitude": 30.0})),
    ])
    gps = GPS()
    for _ in range(4):
        assert gps.get_location() is None
    assert gps.consecutive_failures == 4
    assert gps.get_status() == "GPS: 4 consecutive failures"


def test_compass_reads_first_sensor(fake_run):
    fake_run.results.append(completed(json.dumps({"AK09918 Magnetometer": {"values": [12.5, -3.0, 40.1]}})))
    assert Compass().read() == (12.5, -3.0)
    assert fake_run.calls[0][:3] == ["termux-sensor", "-s", "magnetic"]


def test_compass_missing_binary(fake_run):
    fake_run.results.append(FileNotFoundError("termux-sensor"))
    compass = Compass()
    assert compass.read() is None
    assert compass.consecutive_failures == 1


def test_compass_empty_output(fake_run):
    fake_run.results.append(completed("{}"))
    assert Compass().read() is None


class FixedGPS:
    def __init__(self, locations):
        self.locations = list(locations)

    def get_location(self, timeout=None):
        return self.locations.pop(0)

    def get_status(self):
        return "GPS OK"


def test_record_then_playback(tmp_path, capsys):
    path = tmp_path / "trace.json"
    recorder = GPSRecorder(FixedGPS([Location(30.2830, -97.7420), None, Location(30.2840, -97.7420)]),
                           str(path))
    for _ in range(3):
        recorder.get_location()
    recorder.save()

    playback = GPSPlayback(str(path))
    assert playback.get_location() == Location(30.2830, -97.7420)
    assert playback.get_location() is None
    assert playback.consecutive_failures == 1
    assert playback.get_location() == Location(30.2840, -97.7420)
    assert playback.is_finished()
    assert playback.get_location() is None
    assert "3 entries" in capsys.readouterr().out


def test_playback_poll_interval_follows_trace(tmp_path):
    path = tmp_path / "trace.json"
    path.write_text(json.dumps({"trace": [
        {"elapsed": 0.0, "location": {"lat": 30.283, "lon": -97.742}},
        {"elapsed": 2.0, "location": {"lat": 30.284, "lon": -97.742}},
        {"elapsed": 30.0, "location": {"lat": 30.285, "lon": -97.742}},
    ]}))
    playback = GPSPlayback(str(path), speed=2.0)
    playback.get_location()
    assert playback.get_poll_interval() == pytest.approx(1.0)
    playback.get_location()
    assert playback.get_poll_interval() == 5.0


def test_interpolate_route_spacing(two_step_route):
    points = interpolate_route(two_step_route, 8)
    assert points[0] == two_step_route.steps[0].endpoint
    last = two_step_route.steps[-1].endpoint
    assert points[-1].lat == pytest.approx(last.lat)
    assert points[-1].lon == pytest.approx(last.lon)
    gaps = [haversine_distance(a.lat, a.lon, b.lat, b.lon) for a, b in zip(points, points[1:])]
    assert max(gaps) < 8.5


def test_interpolate_route_rejects_bad_spacing(two_step_route):
    with pytest.raises(ValueError):
        interpolate_route(two_step_route, 0)


def test_simulated_walk_runs_out(make_route, zigzag_points):
    route = make_route(zigzag_points[1:], origin=zigzag_points[0])
    walk = SimulatedWalk(route, spacing=20)
    locations = []
    while not walk.is_finished():
        locations.append(walk.get_location())
    assert walk.get_location() is None
    assert locations[0].lat == zigzag_points[0].lat
    assert len(locations) == len(walk.points)
    assert walk.get_status() == f"Simulated walk ({len(locations)}/{len(locations)})"
