from __future__ import annotations


class InvalidDateFormat(ValueError):
    """Raised when a date string matches none of the accepted layouts."""


class TooManyCollisions(Exception):
    """Raised when every `_NN` suffix candidate for a path is already taken."""
