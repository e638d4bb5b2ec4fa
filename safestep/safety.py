"""Route safety scoring.

Scoring and factor acquisition are kept apart: ``score()`` is a pure
function of four categorical factors, while a factor source (real risk data,
or ``PlaceholderFactorSource`` when there is none) decides which factors a
route gets. The route selector caches the resulting profile per candidate.
"""

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .models import RouteCandidate


class CrimeLevel(Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class Lighting(Enum):
    WELL = "Well-Lighted"
    MODERATE = "Moderately-Lighted"
    POOR = "Poorly-Lighted"


class ActivityLevel(Enum):
    BUSY = "Busy"
    MODERATE = "Moderate"
    QUIET = "Quiet"


class ConstructionLevel(Enum):
    NONE = "None"
    MODERATE = "Moderate"
    HEAVY = "Heavy"


WEIGHTS = {
    CrimeLevel.LOW: 4,
    CrimeLevel.MODERATE: 2,
    CrimeLevel.HIGH: 1,
    Lighting.WELL: 4,
    Lighting.MODERATE: 3,
    Lighting.POOR: 1,
    ActivityLevel.BUSY: 4,
    ActivityLevel.MODERATE: 3,
    ActivityLevel.QUIET: 2,
    ConstructionLevel.NONE: 4,
    ConstructionLevel.MODERATE: 3,
    ConstructionLevel.HEAVY: 1,
}

MAX_WEIGHT_SUM = 16
MAX_SCORE = 5.0

TAGS = {
    CrimeLevel.LOW: "Low crime",
    CrimeLevel.MODERATE: "Moderate crime",
    CrimeLevel.HIGH: "High crime",
    Lighting.WELL: "Well lit",
    Lighting.MODERATE: "Moderately lit",
    Lighting.POOR: "Poorly lit",
    ActivityLevel.BUSY: "Busy area",
    ActivityLevel.MODERATE: "Some foot traffic",
    ActivityLevel.QUIET: "Quiet area",
    ConstructionLevel.NONE: "No construction",
    ConstructionLevel.MODERATE: "Some construction",
    ConstructionLevel.HEAVY: "Heavy construction",
}


@dataclass(frozen=True)
class SafetyFactors:
    """The four categorical risk factors of a route"""
    crime_level: CrimeLevel
    lighting: Lighting
    activity_level: ActivityLevel
    construction_level: ConstructionLevel

    def values(self) -> tuple:
        return (self.crime_level, self.lighting, self.activity_level, self.construction_level)


@dataclass(frozen=True)
class SafetyProfile:
    """Risk factors plus the score derived from them"""
    factors: SafetyFactors
    score: float
    review_count: int
    tags: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "crime_level": self.factors.crime_level.value,
            "lighting": self.factors.lighting.value,
            "activity_level": self.factors.activity_level.value,
            "construction_level": self.factors.construction_level.value,
            "score": self.score,
            "review_count": self.review_count,
            "tags": list(self.tags),
        }


def _round_half_up(value: float, digits: int = 1) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def score(factors: SafetyFactors) -> float:
    """Safety score in [0, 5] rounded to one decimal place"""
    total = sum(WEIGHTS[value] for value in factors.values())
    return _round_half_up(total / MAX_WEIGHT_SUM * MAX_SCORE)


def safety_tags(factors: SafetyFactors) -> tuple[str, ...]:
    """Descriptive tag for each factor, in factor order"""
    return tuple(TAGS[value] for value in factors.values())


def build_profile(factors: SafetyFactors, review_count: int = 0) -> SafetyProfile:
    """Score factors and wrap them in a SafetyProfile"""
    if review_count < 0:
        raise ValueError(f"review_count must be >= 0, got {review_count}")
    return SafetyProfile(
        factors=factors,
        score=score(factors),
        review_count=review_count,
        tags=safety_tags(factors),
    )


# Acquires (factors, review_count) for a candidate
FactorSource = Callable[[RouteCandidate], tuple[SafetyFactors, int]]


class PlaceholderFactorSource:
    """Random risk factors for when no real risk data is available.

    Called once per candidate by the route selector, which caches the
    result, so a displayed rating never changes for the same route.
    """

    def __init__(self, seed: Optional[int] = None, max_reviews: int = 500):
        self.rng = random.Random(seed)
        self.max_reviews = max_reviews

    def __call__(self, candidate: RouteCandidate) -> tuple[SafetyFactors, int]:
        factors = SafetyFactors(
            crime_level=self.rng.choice(list(CrimeLevel)),
            lighting=self.rng.choice(list(Lighting)),
            activity_level=self.rng.choice(list(ActivityLevel)),
            construction_level=self.rng.choice(list(ConstructionLevel)),
        )
        return factors, self.rng.randint(0, self.max_reviews)
