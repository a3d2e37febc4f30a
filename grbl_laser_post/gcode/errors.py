"""Exceptions raised while encoding a job to G-code."""


class GCodeError(Exception):
    """Raised when G-code generation fails due to invalid input."""

    pass


class LifecycleError(GCodeError):
    """An event arrived outside the state that accepts it.

    For example a motion event before the first section starts, or any
    event after the job is closed.
    """

    pass


class UnsupportedPlaneError(GCodeError):
    """A circular move lies in a plane the cutter cannot interpolate."""

    pass
