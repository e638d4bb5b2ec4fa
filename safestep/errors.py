"""Errors raised by SafeStep."""


class NavigationError(Exception):
    """Base class for all SafeStep errors"""


class OutOfRange(NavigationError, IndexError):
    """A route candidate index outside the candidate list"""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"Route index {index} out of range (0..{count - 1})" if count
                         else f"Route index {index} out of range (no candidates)")


class NotSelected(NavigationError):
    """commit() called for a candidate that was never selected"""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Route {index} must be selected before it can be committed")


class Unavailable(NavigationError):
    """The directions provider returned no usable routes"""
