"""Progress tracking along a committed route.

Call start() once with the committed RouteCandidate, then feed
on_position_update() and on_heading_update() from the sensor sources.
Both may be called from different threads; every session mutation happens
under one lock and callbacks run after the lock is released.
"""

import dataclasses
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .config import CONFIG
from .geo import (
    angle_difference,
    bearing_between,
    haversine_distance,
    is_valid_coordinate,
    point_to_segment_distance,
)
from .heading import HeadingFilter
from .models import Coordinate, NavigationSession, RouteCandidate, Step


class TrackerState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ARRIVED = "arrived"
    STOPPED = "stopped"


@dataclass
class ProgressResult:
    """Returned by every ProgressTracker update."""
    state: TrackerState
    step_index: int
    advanced: bool = False
    message: Optional[str] = None            # stripped instruction, or the arrival message
    spoken: bool = False                     # message was handed to the speech sink
    distance_to_route: Optional[float] = None  # metres to the closest remaining segment
    ignored: Optional[str] = None            # "inactive" | "malformed" | "stationary"

    @property
    def arrived(self) -> bool:
        return self.state is TrackerState.ARRIVED and self.advanced


class ProgressTracker:
    """
    Stateful progress tracker for a single navigation session.

    Usage:
        tracker = ProgressTracker(speak=audio.speak_async)
        tracker.start(route)

        # Inside the position loop:
        result = tracker.on_position_update(location)

        # Inside the compass loop:
        tracker.on_heading_update(x, y)

    Args:
        speak:             Speech sink, receives stripped instruction text.
        on_step:           Observer for step advances and arrival.
        logger:            Optional Logger for transitions and dropped samples.
        movement_gate:     Fixes within this many metres of the last one are ignored.
        advance_distance:  A segment this close advances the step.
        heading_tolerance: Bearing mismatch (degrees) still counted as heading correct.
        heading_filter:    Filter for raw magnetometer samples.
    """

    def __init__(self, speak: Optional[Callable[[str], None]] = None,
                 on_step: Optional[Callable[[ProgressResult], None]] = None,
                 logger=None,
                 movement_gate: Optional[float] = None,
                 advance_distance: Optional[float] = None,
                 heading_tolerance: Optional[float] = None,
                 heading_filter: Optional[HeadingFilter] = None):
        self.speak = speak
        self.on_step = on_step
        self.logger = logger
        self.movement_gate = CONFIG["movement_gate_m"] if movement_gate is None else movement_gate
        self.advance_distance = (CONFIG["advance_distance_m"]
                                 if advance_distance is None else advance_distance)
        self.heading_tolerance = (CONFIG["heading_tolerance_deg"]
                                  if heading_tolerance is None else heading_tolerance)
        self.heading_filter = heading_filter or HeadingFilter()

        self._lock = threading.Lock()
        self._state = TrackerState.IDLE
        self._session: Optional[NavigationSession] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, route: RouteCandidate, voice_enabled: bool = True,
              origin: Optional[Coordinate] = None) -> ProgressResult:
        """Begin navigating a committed route.

        origin seeds the movement gate; without it the first fix always
        passes. The returned result carries the first instruction, which
        is left to the caller to display or speak.
        """
        with self._lock:
            self._session = NavigationSession(
                route=route,
                last_position=origin,
                voice_enabled=voice_enabled,
            )
            self._state = TrackerState.ACTIVE
            self.heading_filter.reset()
            result = ProgressResult(
                state=self._state,
                step_index=0,
                message=route.steps[0].text,
            )
        self._log("Navigation started", {"steps": len(route.steps), "summary": route.summary})
        return result

    def stop(self):
        """End the session. Safe to call at any time, any number of times."""
        with self._lock:
            if self._state is TrackerState.STOPPED:
                return
            previous = self._state
            self._state = TrackerState.STOPPED
        self._log("Navigation stopped", {"previous_state": previous.value})

    def set_voice_enabled(self, enabled: bool):
        with self._lock:
            if self._session:
                self._session.voice_enabled = enabled

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TrackerState.ACTIVE

    @property
    def step_index(self) -> int:
        with self._lock:
            return self._session.step_index if self._session else 0

    @property
    def voice_enabled(self) -> bool:
        with self._lock:
            return self._session.voice_enabled if self._session else False

    @property
    def heading(self) -> Optional[float]:
        return self.heading_filter.heading

    @property
    def current_step(self) -> Optional[Step]:
        with self._lock:
            return self._session.current_step if self._session else None

    @property
    def remaining_steps(self) -> int:
        with self._lock:
            if not self._session:
                return 0
            return max(0, len(self._session.steps) - self._session.step_index)

    @property
    def session(self) -> Optional[NavigationSession]:
        """Copy of the current session state"""
        with self._lock:
            return dataclasses.replace(self._session) if self._session else None

    def get_state(self) -> dict:
        """Current state as dict for logging"""
        with self._lock:
            state = {"state": self._state.value}
            if self._session:
                state["step_index"] = self._session.step_index
                state["steps"] = len(self._session.steps)
                state["heading"] = self._session.heading
                state["voice_enabled"] = self._session.voice_enabled
                if self._session.last_position:
                    state["location"] = self._session.last_position.to_dict()
            return state

    # ------------------------------------------------------------------
    # Sensor updates
    # ------------------------------------------------------------------

    def on_position_update(self, position) -> ProgressResult:
        """Process one position fix (anything with lat/lon attributes)."""
        with self._lock:
            if self._state is not TrackerState.ACTIVE:
                return self._ignored("inactive")

            lat = getattr(position, "lat", None)
            lon = getattr(position, "lon", None)
            if not is_valid_coordinate(lat, lon):
                result = self._ignored("malformed")
            else:
                result = self._process_position(Coordinate(lat, lon))

        if result.ignored == "malformed":
            self._log("Discarded malformed position", {"lat": repr(lat), "lon": repr(lon)})
        elif result.advanced:
            self._notify(result)
        return result

    def on_heading_update(self, x: float, y: float,
                          timestamp: Optional[float] = None) -> Optional[float]:
        """Feed a raw magnetometer sample; returns the filtered heading when one is emitted.

        Headings orient the display only and never advance steps.
        """
        with self._lock:
            if self._state is not TrackerState.ACTIVE:
                return None
            heading = self.heading_filter.push(x, y, timestamp)
            if heading is not None:
                self._session.heading = heading
            return heading

    def flush_heading(self, now: Optional[float] = None) -> Optional[float]:
        """Apply the last sample held back by the heading window, once the window has passed.

        Call periodically so a final heading is not lost when samples stop.
        """
        with self._lock:
            if self._state is not TrackerState.ACTIVE:
                return None
            heading = self.heading_filter.flush(now)
            if heading is not None:
                self._session.heading = heading
            return heading

    def advance(self) -> ProgressResult:
        """Manually move on to the next step."""
        with self._lock:
            if self._state is not TrackerState.ACTIVE:
                return self._ignored("inactive")
            result = self._move_to(self._session.step_index + 1, None)
        self._notify(result)
        return result

    # ------------------------------------------------------------------
    # Internals, called with the lock held
    # ------------------------------------------------------------------

    def _ignored(self, reason: str) -> ProgressResult:
        index = self._session.step_index if self._session else 0
        return ProgressResult(state=self._state, step_index=index, ignored=reason)

    def _process_position(self, point: Coordinate) -> ProgressResult:
        session = self._session
        last = session.last_position
        if last is not None:
            moved = haversine_distance(last.lat, last.lon, point.lat, point.lon)
            if moved <= self.movement_gate:
                return self._ignored("stationary")
        session.last_position = point

        steps = session.steps
        final = len(steps) - 1

        # On the last step there is no segment left; the final endpoint is the target
        if session.step_index >= final:
            target = steps[final].endpoint
            dist = haversine_distance(point.lat, point.lon, target.lat, target.lon)
            if dist < self.advance_distance:
                return self._move_to(len(steps), dist)
            return ProgressResult(state=self._state, step_index=session.step_index,
                                  distance_to_route=dist)

        closest_idx = session.step_index
        min_distance = math.inf
        for i in range(session.step_index, final):
            start, end = steps[i].endpoint, steps[i + 1].endpoint
            dist = point_to_segment_distance(point.lat, point.lon,
                                             start.lat, start.lon, end.lat, end.lon)
            if dist < min_distance:
                min_distance = dist
                closest_idx = i

        start, end = steps[closest_idx].endpoint, steps[closest_idx + 1].endpoint
        segment_bearing = bearing_between(start.lat, start.lon, end.lat, end.lon)
        bearing_to_end = bearing_between(point.lat, point.lon, end.lat, end.lon)
        heading_correct = angle_difference(segment_bearing, bearing_to_end) <= self.heading_tolerance

        if min_distance < self.advance_distance or heading_correct:
            return self._move_to(closest_idx + 1, min_distance)
        return ProgressResult(state=self._state, step_index=session.step_index,
                              distance_to_route=min_distance)

    def _move_to(self, index: int, distance: Optional[float]) -> ProgressResult:
        session = self._session
        steps = session.steps
        # Never move backwards, never past the end
        session.step_index = min(max(index, session.step_index), len(steps))

        if session.is_finished:
            self._state = TrackerState.ARRIVED
            return ProgressResult(
                state=self._state,
                step_index=session.step_index,
                advanced=True,
                message=CONFIG["arrival_message"],
                distance_to_route=distance,
            )

        return ProgressResult(
            state=self._state,
            step_index=session.step_index,
            advanced=True,
            message=steps[session.step_index].text,
            spoken=session.voice_enabled,
            distance_to_route=distance,
        )

    # ------------------------------------------------------------------
    # Notifications, called without the lock
    # ------------------------------------------------------------------

    def _notify(self, result: ProgressResult):
        if result.arrived:
            self._log("Arrived", {"step_index": result.step_index})
        else:
            self._log("Step advanced", {"step_index": result.step_index,
                                        "instruction": result.message})
        if result.spoken and self.speak:
            self.speak(result.message)
        if self.on_step:
            self.on_step(result)

    def _log(self, message: str, data: Optional[dict] = None):
        if self.logger:
            self.logger.log(message, data)
