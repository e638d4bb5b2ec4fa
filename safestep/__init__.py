"""SafeStep - Safety-scored pedestrian turn-by-turn navigation."""

from .config import CONFIG
from .errors import NavigationError, OutOfRange, NotSelected, Unavailable
from .models import Coordinate, Location, Step, RouteCandidate, NavigationSession, strip_markup
from .logger import Logger
from .geo import (
    haversine_distance,
    bearing_between,
    angle_difference,
    point_to_segment_distance,
    bearing_to_compass,
    retry_with_backoff,
)
from .safety import (
    CrimeLevel,
    Lighting,
    ActivityLevel,
    ConstructionLevel,
    SafetyFactors,
    SafetyProfile,
    PlaceholderFactorSource,
    score,
    safety_tags,
    build_profile,
)
from .selector import RouteSelector
from .heading import HeadingFilter, vector_heading
from .tracker import ProgressTracker, ProgressResult, TrackerState
from .directions import DirectionsClient, parse_directions
from .gps import GPS, Compass, GPSRecorder, GPSPlayback, SimulatedWalk, interpolate_route
from .audio import Audio
from .app import Navigator

__all__ = [
    "CONFIG",
    "NavigationError",
    "OutOfRange",
    "NotSelected",
    "Unavailable",
    "Coordinate",
    "Location",
    "Step",
    "RouteCandidate",
    "NavigationSession",
    "strip_markup",
    "Logger",
    "haversine_distance",
    "bearing_between",
    "angle_difference",
    "point_to_segment_distance",
    "bearing_to_compass",
    "retry_with_backoff",
    "CrimeLevel",
    "Lighting",
    "ActivityLevel",
    "ConstructionLevel",
    "SafetyFactors",
    "SafetyProfile",
    "PlaceholderFactorSource",
    "score",
    "safety_tags",
    "build_profile",
    "RouteSelector",
    "HeadingFilter",
    "vector_heading",
    "ProgressTracker",
    "ProgressResult",
    "TrackerState",
    "DirectionsClient",
    "parse_directions",
    "GPS",
    "Compass",
    "GPSRecorder",
    "GPSPlayback",
    "SimulatedWalk",
    "interpolate_route",
    "Audio",
    "Navigator",
]
