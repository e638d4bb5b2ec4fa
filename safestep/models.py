"""Data classes for SafeStep."""

import html
import re
from dataclasses import dataclass, asdict
from typing import Optional

from .errors import Unavailable

_MARKUP_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def strip_markup(text: str) -> str:
    """Remove <...> markup from an instruction so it can be displayed or spoken"""
    # Entities first, so encoded tags are removed too
    plain = html.unescape(text or "")
    plain = _MARKUP_RE.sub(" ", plain)
    return _SPACE_RE.sub(" ", plain).strip()


@dataclass(frozen=True)
class Coordinate:
    """Immutable geographic coordinate in degrees"""
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}


@dataclass
class Location:
    """A raw position fix from a position source"""
    lat: float
    lon: float
    accuracy: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Location":
        return cls(**d)


@dataclass(frozen=True)
class Step:
    """One instruction-bearing segment of a route, ending at a waypoint"""
    endpoint: Coordinate
    instruction: str  # may contain markup, see text
    distance_m: float = 0.0
    duration_s: float = 0.0
    cumulative_distance_m: float = 0.0

    @property
    def text(self) -> str:
        return strip_markup(self.instruction)


@dataclass(frozen=True)
class RouteCandidate:
    """A complete proposed walking route, ordered from origin to destination"""
    steps: tuple[Step, ...]
    distance_m: float
    duration_s: float
    distance_text: str = ""
    duration_text: str = ""
    summary: str = ""
    origin: Optional[Coordinate] = None
    warnings: tuple[str, ...] = ()

    def __post_init__(self):
        # Lists from callers are frozen into tuples so the route can't be reshaped later
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "warnings", tuple(self.warnings))
        if not self.steps:
            raise Unavailable("Route has no steps")
        previous = 0.0
        for index, step in enumerate(self.steps):
            if step.cumulative_distance_m < previous:
                raise Unavailable(f"Step {index} goes backwards in cumulative distance")
            previous = step.cumulative_distance_m

    @property
    def destination(self) -> Coordinate:
        return self.steps[-1].endpoint

    def endpoints(self) -> list[Coordinate]:
        return [step.endpoint for step in self.steps]


@dataclass
class NavigationSession:
    """State of one active navigation, mutated only by the ProgressTracker"""
    route: RouteCandidate
    step_index: int = 0
    last_position: Optional[Coordinate] = None
    heading: float = 0.0
    voice_enabled: bool = True

    @property
    def steps(self) -> tuple[Step, ...]:
        return self.route.steps

    @property
    def is_finished(self) -> bool:
        return self.step_index >= len(self.route.steps)

    @property
    def current_step(self) -> Optional[Step]:
        if 0 <= self.step_index < len(self.route.steps):
            return self.route.steps[self.step_index]
        return None
