"""Route candidate selection with cached safety profiles."""

import threading
from typing import Optional, Sequence

from .errors import NotSelected, OutOfRange, Unavailable
from .models import RouteCandidate
from .safety import FactorSource, PlaceholderFactorSource, SafetyProfile, build_profile


class RouteSelector:
    """
    Holds the candidate routes returned for one origin/destination pair.

    The provider's ordering is kept as-is; safety scores are for display and
    never re-rank the candidates. Each candidate's SafetyProfile is acquired
    on its first select() and reused afterwards, so a rating shown to the
    user is the same one attached at commit time.

    Usage:
        selector = RouteSelector(candidates)
        profile = selector.select(1)
        route = selector.commit(1)
    """

    def __init__(self, candidates: Sequence[RouteCandidate],
                 factor_source: Optional[FactorSource] = None):
        if not candidates:
            raise Unavailable("No route candidates to choose from")
        self._candidates: tuple[RouteCandidate, ...] = tuple(candidates)
        self._factor_source = factor_source or PlaceholderFactorSource()
        self._profiles: dict[int, SafetyProfile] = {}
        self._selected_index: Optional[int] = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._candidates)

    def _check_index(self, index: int):
        if (not isinstance(index, int) or isinstance(index, bool)
                or not 0 <= index < len(self._candidates)):
            raise OutOfRange(index, len(self._candidates))

    @property
    def candidates(self) -> tuple[RouteCandidate, ...]:
        return self._candidates

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected_index

    def candidate(self, index: int) -> RouteCandidate:
        self._check_index(index)
        return self._candidates[index]

    def profile(self, index: int) -> Optional[SafetyProfile]:
        """Cached profile for a candidate, or None if it was never selected"""
        self._check_index(index)
        return self._profiles.get(index)

    def select(self, index: int) -> SafetyProfile:
        """Select a candidate and return its (cached) safety profile"""
        self._check_index(index)
        with self._lock:
            profile = self._profiles.get(index)
            if profile is None:
                factors, review_count = self._factor_source(self._candidates[index])
                profile = build_profile(factors, review_count)
                self._profiles[index] = profile
            self._selected_index = index
            return profile

    def commit(self, index: int) -> RouteCandidate:
        """Hand a selected candidate over for navigation"""
        self._check_index(index)
        if index not in self._profiles:
            raise NotSelected(index)
        return self._candidates[index]

    def describe(self, index: int) -> dict:
        """Display metadata for a candidate"""
        candidate = self.candidate(index)
        info = {
            "index": index,
            "summary": candidate.summary,
            "distance_m": candidate.distance_m,
            "duration_s": candidate.duration_s,
            "distance_text": candidate.distance_text,
            "duration_text": candidate.duration_text,
            "steps": len(candidate.steps),
            "selected": index == self._selected_index,
        }
        profile = self._profiles.get(index)
        if profile:
            info["safety"] = profile.to_dict()
        return info
