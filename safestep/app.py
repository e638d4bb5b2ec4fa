"""Main SafeStep application."""

import threading
import time
from typing import Optional

from .audio import Audio
from .config import CONFIG
from .directions import DirectionsClient
from .errors import Unavailable
from .geo import bearing_between, bearing_to_compass, haversine_distance, retry_with_backoff
from .gps import GPS, Compass, GPSPlayback, GPSRecorder, SimulatedWalk
from .heading import HeadingFilter
from .logger import Logger
from .models import Coordinate, RouteCandidate
from .safety import FactorSource
from .selector import RouteSelector
from .tracker import ProgressResult, ProgressTracker


class Navigator:
    """Main application: choose a route, then guide the walker along it"""

    def __init__(self, directions: Optional[DirectionsClient] = None,
                 log_path: Optional[str] = None,
                 voice_enabled: bool = True,
                 heading_window: Optional[float] = None,
                 factor_source: Optional[FactorSource] = None,
                 use_compass: bool = True):
        self.directions = directions
        self.factor_source = factor_source
        self.voice_enabled = voice_enabled
        # Muting is decided per utterance from the session voice flag
        self.audio = Audio()
        self.logger = Logger(log_path)
        self.gps = GPS()
        self.gps_source = self.gps
        self.compass = Compass() if use_compass else None

        self.selector: Optional[RouteSelector] = None
        self.route: Optional[RouteCandidate] = None
        self.tracker = ProgressTracker(
            speak=self.audio.speak_async,
            on_step=self._on_step,
            logger=self.logger,
            heading_filter=HeadingFilter(heading_window),
        )

        self._stop_event = threading.Event()
        self._compass_thread: Optional[threading.Thread] = None
        self.last_log_update = 0
        self.start_time = 0

    def set_gps_source(self, source):
        """Set position source (GPS, GPSRecorder, GPSPlayback or SimulatedWalk)"""
        self.gps_source = source

    def set_voice_enabled(self, enabled: bool):
        """Mute or unmute spoken instructions, including during navigation"""
        self.voice_enabled = enabled
        self.tracker.set_voice_enabled(enabled)

    # ------------------------------------------------------------------
    # Route choice
    # ------------------------------------------------------------------

    def load_routes(self, origin: Coordinate, destination: Coordinate) -> bool:
        """Fetch candidates, retrying with backoff while the provider is unavailable"""
        if not self.directions:
            raise ValueError("No directions client configured")

        def try_fetch():
            try:
                return self.directions.fetch_routes(origin, destination)
            except Unavailable as e:
                self.logger.log("Directions unavailable", {"error": str(e)})
                return None

        candidates = retry_with_backoff(
            try_fetch,
            max_time=CONFIG["directions_retry_time"],
            initial_delay=1.0,
            max_delay=8.0,
            description="Directions fetch"
        )
        if not candidates:
            print("Could not get walking directions")
            return False

        self.selector = RouteSelector(candidates, factor_source=self.factor_source)
        self.logger.log("Routes loaded", {"candidates": len(candidates)})
        return True

    def display_candidates(self):
        """Print every candidate with its safety rating"""
        print("\n" + "=" * 60)
        print("ROUTE OPTIONS")
        print("=" * 60)
        for index in range(len(self.selector)):
            profile = self.selector.select(index)
            info = self.selector.describe(index)
            summary = info["summary"] or "unnamed route"
            print(f"\n[{index}] via {summary}: {info['distance_text']}, {info['duration_text']} "
                  f"({info['steps']} steps)")
            print(f"    Safety {profile.score:.1f}/5 ({profile.review_count} reviews): "
                  f"{', '.join(profile.tags)}")
            for warning in self.selector.candidate(index).warnings:
                print(f"    ! {warning}")
        print("\n" + "=" * 60)

    def choose_route(self, index: int) -> RouteCandidate:
        """Select and commit a candidate. Raises OutOfRange for a bad index."""
        profile = self.selector.select(index)
        self.route = self.selector.commit(index)
        self.logger.log("Route committed", {"index": index, "score": profile.score,
                                            "steps": len(self.route.steps)})
        return self.route

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def start_navigation(self):
        result = self.tracker.start(self.route, voice_enabled=self.voice_enabled)
        print(f"Route ready - {len(self.route.steps)} steps.")
        print(f"> {result.message}")
        if self.tracker.voice_enabled:
            self.audio.speak_async(result.message)

        self.start_time = time.time()
        self.last_log_update = time.time()

        if self.compass:
            self._compass_thread = threading.Thread(target=self._compass_loop, daemon=True)
            self._compass_thread.start()

    def _compass_loop(self):
        """Feed magnetometer samples until navigation stops"""
        while not self._stop_event.is_set() and self.tracker.is_active:
            sample = self.compass.read()
            if sample:
                self.tracker.on_heading_update(*sample)
            self.tracker.flush_heading()
            self._stop_event.wait(CONFIG["compass_poll_interval"])

    def _on_step(self, result: ProgressResult):
        if result.arrived:
            print(result.message)
            if self.tracker.voice_enabled:
                self.audio.speak_async(result.message)
            return
        print(f"> {result.message}{self._direction_text()}")

    def _direction_text(self) -> str:
        """' (northeast, 40 m)' toward the current step's endpoint"""
        step = self.tracker.current_step
        session = self.tracker.session
        if not step or not session or not session.last_position:
            return ""
        here, there = session.last_position, step.endpoint
        dist = haversine_distance(here.lat, here.lon, there.lat, there.lon)
        compass = bearing_to_compass(bearing_between(here.lat, here.lon, there.lat, there.lon))
        return f" ({compass}, {int(dist)} m)"

    def periodic_update(self):
        now = time.time()
        if now - self.last_log_update >= CONFIG["log_interval"]:
            state = self.tracker.get_state()
            state["gps_status"] = self.gps_source.get_status() if hasattr(self.gps_source, 'get_status') else "unknown"
            self.logger.log("STATE", state)
            self.last_log_update = now

    def update(self) -> bool:
        """Process one position fix - returns False when navigation is over"""
        self.periodic_update()

        location = self.gps_source.get_location()
        if not location:
            self.logger.log("GPS fix failed", {"status": self.gps_source.get_status() if hasattr(self.gps_source, 'get_status') else "unknown"})
            return self.tracker.is_active

        self.tracker.on_position_update(location)
        return self.tracker.is_active

    def stop(self):
        """Stop the tracker and both sensor loops"""
        self._stop_event.set()
        self.tracker.stop()
        if self._compass_thread:
            self._compass_thread.join(timeout=2.0)
            self._compass_thread = None

    def get_poll_interval(self) -> float:
        if hasattr(self.gps_source, "get_poll_interval"):
            return self.gps_source.get_poll_interval()
        return CONFIG["gps_poll_interval"]

    def is_source_finished(self) -> bool:
        if hasattr(self.gps_source, "is_finished"):
            return self.gps_source.is_finished()
        return False

    def run(self, origin: Coordinate, destination: Coordinate, route_index: int = 0,
            preview: bool = False, simulate: bool = False, speed: float = 1.0):
        """Choose a route and navigate it"""
        print("\n=== SafeStep ===")
        try:
            if not self.load_routes(origin, destination):
                return
            self.display_candidates()
            if preview:
                return

            self.choose_route(route_index)
            if simulate:
                self.set_gps_source(SimulatedWalk(self.route, speed=speed))
                print("Mode: SIMULATED WALK")
            elif isinstance(self.gps_source, GPSPlayback):
                print(f"Playback mode: {self.gps_source.speed}x speed")
            print("Press Ctrl+C to stop\n")

            self.start_navigation()
            while self.update():
                if self.is_source_finished():
                    print("\nPosition source finished")
                    self.logger.log("Position source finished")
                    break
                time.sleep(self.get_poll_interval())
        except KeyboardInterrupt:
            print("\nNavigation interrupted")
            self.logger.log("Navigation interrupted by user")
        finally:
            self.stop()
            if isinstance(self.gps_source, GPSRecorder):
                self.gps_source.save()
            if self.start_time:
                summary = self.tracker.get_state()
                summary["duration"] = time.time() - self.start_time
                self.logger.log("Navigation summary", summary)
            self.logger.close()
