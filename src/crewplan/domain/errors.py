"""Exceptions raised by the scheduling engine.

Finding no candidate for a job is a normal outcome and is reported as an
empty result rather than as an exception.
"""


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""


class InvalidRange(SchedulingError):
    """A time window or coordinate space has a non-positive extent."""


class InvalidJob(SchedulingError):
    """A job's duration or scheduling envelope is malformed."""


class NotFound(SchedulingError, KeyError):
    """A worker (or other entity) id is not part of the snapshot."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
