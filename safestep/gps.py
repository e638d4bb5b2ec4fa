"""Position and heading sources: Termux GPS/compass, trace recording/playback, virtual walks."""

import json
import subprocess
import time
from datetime import datetime
from typing import Optional

from .config import CONFIG
from .geo import haversine_distance
from .models import Coordinate, Location, RouteCandidate


class GPS:
    """GPS access via Termux API"""

    def __init__(self, min_distance: Optional[float] = None):
        self.last_location: Optional[Location] = None
        self.consecutive_failures = 0
        # Informational only; the tracker's movement gate does the filtering
        self.min_distance = CONFIG["gps_min_distance_m"] if min_distance is None else min_distance

    def get_location(self, timeout: Optional[int] = None) -> Optional[Location]:
        """Get current location using termux-location"""
        timeout = timeout or CONFIG["gps_timeout"]
        try:
            result = subprocess.run(
                ["termux-location", "-p", "gps", "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            self.consecutive_failures += 1
            return None

        if result.returncode != 0 or not result.stdout.strip():
            self.consecutive_failures += 1
            return None

        try:
            data = json.loads(result.stdout)
            location = Location(
                lat=float(data["latitude"]),
                lon=float(data["longitude"]),
                accuracy=data.get("accuracy"),
                timestamp=time.time()
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            self.consecutive_failures += 1
            return None

        self.last_location = location
        self.consecutive_failures = 0
        return location

    def get_status(self) -> str:
        """Get GPS status string"""
        if self.consecutive_failures == 0:
            acc = f", accuracy {self.last_location.accuracy:.0f}m" if self.last_location and self.last_location.accuracy else ""
            return f"GPS OK{acc}"
        return f"GPS: {self.consecutive_failures} consecutive failures"


class Compass:
    """Magnetometer access via termux-sensor. Only the x/y axes are used."""

    SENSOR = "magnetic"

    def __init__(self):
        self.consecutive_failures = 0

    def read(self, timeout: int = 5) -> Optional[tuple[float, float]]:
        """Read one (x, y) magnetometer sample"""
        try:
            result = subprocess.run(
                ["termux-sensor", "-s", self.SENSOR, "-n", "1"],
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            self.consecutive_failures += 1
            return None

        try:
            data = json.loads(result.stdout)
            # {"<sensor name>": {"values": [x, y, z]}}
            values = next(iter(data.values()))["values"]
            sample = (float(values[0]), float(values[1]))
        except (json.JSONDecodeError, StopIteration, KeyError, IndexError, TypeError, ValueError, AttributeError):
            self.consecutive_failures += 1
            return None

        self.consecutive_failures = 0
        return sample


class GPSRecorder:
    """Records GPS trace to file"""

    def __init__(self, gps: GPS, record_path: str):
        self.gps = gps
        self.record_path = record_path
        self.trace: list[dict] = []
        self.start_time = time.time()

    def get_location(self, timeout: Optional[int] = None) -> Optional[Location]:
        """Get location and record it"""
        location = self.gps.get_location(timeout)

        # Failed attempts are recorded too
        self.trace.append({
            "elapsed": time.time() - self.start_time,
            "timestamp": time.time(),
            "location": location.to_dict() if location else None,
            "status": self.gps.get_status()
        })
        return location

    def get_status(self) -> str:
        return self.gps.get_status()

    def save(self):
        """Save trace to file"""
        with open(self.record_path, "w") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(),
                "trace": self.trace
            }, f, indent=2)
        print(f"GPS trace saved to {self.record_path} ({len(self.trace)} entries)")


class GPSPlayback:
    """Plays back GPS trace from file"""

    def __init__(self, playback_path: str, speed: float = 1.0):
        self.playback_path = playback_path
        self.speed = speed
        self.index = 0
        self.last_location: Optional[Location] = None
        self.consecutive_failures = 0

        with open(playback_path) as f:
            self.trace: list[dict] = json.load(f)["trace"]
        print(f"Loaded GPS trace from {playback_path} ({len(self.trace)} entries)")

    def get_location(self, timeout: Optional[int] = None) -> Optional[Location]:
        """Get next location from trace sequentially"""
        if self.index >= len(self.trace):
            return None

        entry = self.trace[self.index]
        self.index += 1

        if entry.get("location"):
            location = Location.from_dict(entry["location"])
            self.last_location = location
            self.consecutive_failures = 0
            return location
        self.consecutive_failures += 1
        return None

    def get_poll_interval(self) -> float:
        """Interval to wait between polls based on trace timing and speed"""
        if self.index <= 0 or self.index >= len(self.trace):
            return CONFIG["gps_poll_interval"] / self.speed

        delta = self.trace[self.index].get("elapsed", 0) - self.trace[self.index - 1].get("elapsed", 0)
        return max(0.1, min(delta / self.speed, 5.0))

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        return f"Playback: {self.consecutive_failures} failures ({progress})"


def interpolate_route(route: RouteCandidate, spacing: float,
                      origin: Optional[Coordinate] = None) -> list[Coordinate]:
    """Points every `spacing` metres along the route's step endpoints"""
    if spacing <= 0:
        raise ValueError(f"spacing must be > 0, got {spacing}")

    vertices = ([origin] if origin else []) + route.endpoints()
    points = [vertices[0]]
    for start, end in zip(vertices, vertices[1:]):
        length = haversine_distance(start.lat, start.lon, end.lat, end.lon)
        count = max(1, int(length // spacing))
        for i in range(1, count + 1):
            t = i / count
            points.append(Coordinate(start.lat + (end.lat - start.lat) * t,
                                     start.lon + (end.lon - start.lon) * t))
    return points


class SimulatedWalk:
    """Virtual walk along a committed route, standing in for GPS"""

    def __init__(self, route: RouteCandidate, spacing: Optional[float] = None,
                 speed: float = 1.0):
        self.spacing = spacing or CONFIG["simulated_step_m"]
        self.speed = speed
        self.points = interpolate_route(route, self.spacing, origin=route.origin)
        self.index = 0

    def get_location(self, timeout: Optional[int] = None) -> Optional[Location]:
        if self.index >= len(self.points):
            return None
        point = self.points[self.index]
        self.index += 1
        return Location(lat=point.lat, lon=point.lon, accuracy=0, timestamp=time.time())

    def get_poll_interval(self) -> float:
        return CONFIG["simulated_poll_interval"] / self.speed

    def is_finished(self) -> bool:
        return self.index >= len(self.points)

    def get_status(self) -> str:
        return f"Simulated walk ({self.index}/{len(self.points)})"
