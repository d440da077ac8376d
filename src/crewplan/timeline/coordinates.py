"""Coordinate mapping between calendar time and timeline pixels.

A TimelineCoordinateSpace fixes the visible range and the width it is drawn
into for one render pass. The mapping functions are pure: identical inputs
always give identical outputs.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from crewplan.domain.errors import InvalidRange
from crewplan.domain.models import TimeWindow


@dataclass(frozen=True)
class TimelineCoordinateSpace:
    """Immutable mapping domain for one render pass.

    Attributes:
        range_start: Instant drawn at offset 0.
        range_end: Instant drawn at offset ``pixel_width``.
        pixel_width: Width of the timeline in pixels (or points).
    """

    range_start: datetime
    range_end: datetime
    pixel_width: float

    def __post_init__(self):
        if self.range_end <= self.range_start:
            raise InvalidRange(
                f"Range end {self.range_end.isoformat()} is not after start {self.range_start.isoformat()}"
            )
        if self.pixel_width <= 0:
            raise InvalidRange(f"Pixel width must be positive, got {self.pixel_width}")

    @classmethod
    def for_window(cls, window: TimeWindow, pixel_width: float) -> "TimelineCoordinateSpace":
        return cls(window.start, window.end, pixel_width)

    @property
    def span(self) -> timedelta:
        return self.range_end - self.range_start

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.range_start, self.range_end)

    @property
    def pixels_per_minute(self) -> float:
        return self.pixel_width / (self.span.total_seconds() / 60)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in timeline coordinates (y grows downward)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width


def time_to_position(instant: datetime, space: TimelineCoordinateSpace) -> float:
    """Horizontal offset of ``instant`` within ``space``.

    Instants outside the range map outside ``[0, pixel_width]``.
    """
    elapsed = (instant - space.range_start).total_seconds()
    return elapsed / space.span.total_seconds() * space.pixel_width


def position_to_time(offset: float, space: TimelineCoordinateSpace) -> datetime:
    """Inverse of :func:`time_to_position`."""
    seconds = offset / space.pixel_width * space.span.total_seconds()
    return space.range_start + timedelta(seconds=seconds)


def interval_to_rect(
    interval: TimeWindow,
    space: TimelineCoordinateSpace,
    row_index: int,
    row_height: float,
) -> Rect:
    """Rectangle of ``interval`` in the worker row ``row_index``."""
    x = time_to_position(interval.start, space)
    right = time_to_position(interval.end, space)
    return Rect(x=x, y=row_index * row_height, width=right - x, height=row_height)
