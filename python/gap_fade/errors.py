"""Exception types raised by the simulation core."""

from __future__ import annotations


class GapFadeError(Exception):
    """Base class for all package errors."""


class InvalidConfiguration(GapFadeError, ValueError):
    """Caller input is unusable (capital, bars, periods, risk fractions...).

    Raised before any simulation step runs.
    """


class InvalidState(GapFadeError, RuntimeError):
    """Position opened twice or closed while flat.

    Normal engine flow never raises this; seeing it means an engine defect.
    """
