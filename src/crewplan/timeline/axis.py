"""Time axis helpers: grid snapping, tick marks, labels, and visible ranges."""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Union

from crewplan.domain.models import TimeWindow
from crewplan.timeline.coordinates import TimelineCoordinateSpace, time_to_position

DEFAULT_START_HOUR = 6
DEFAULT_END_HOUR = 20
MIN_HOURS_DISPLAY = 8
MAX_HOURS_DISPLAY = 18
BUSINESS_START_HOUR = 9
BUSINESS_END_HOUR = 17
PADDING_HOURS = 1


class Granularity(Enum):
    """Time granularity of a timeline view."""

    DAY = "day"
    WEEK = "week"

    @property
    def span(self) -> timedelta:
        return timedelta(days=1) if self == Granularity.DAY else timedelta(days=7)


@dataclass(frozen=True)
class Tick:
    """A labelled vertical marker on the time axis."""

    instant: datetime
    position: float
    label: str
    major: bool = False


def snap_to_grid(instant: datetime, minutes: int = 15) -> datetime:
    """Round ``instant`` to the nearest ``minutes`` boundary of its day."""
    midnight = datetime.combine(instant.date(), time.min)
    elapsed = (instant - midnight).total_seconds() / 60
    snapped = round(elapsed / minutes) * minutes
    return midnight + timedelta(minutes=snapped)


def format_time_12h(value: Union[datetime, time]) -> str:
    """Format as ``9:05 AM``."""
    hour12 = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour12}:{value.minute:02d} {period}"


def format_duration(minutes: float) -> str:
    """Format a duration as ``45m``, ``2h`` or ``2h 30m``."""
    minutes = int(minutes)
    if minutes < 60:
        return f"{minutes}m"
    hours, remainder = divmod(minutes, 60)
    return f"{hours}h {remainder}m" if remainder else f"{hours}h"


def hour_ticks(space: TimelineCoordinateSpace, step_hours: int = 1) -> tuple[Tick, ...]:
    """Ticks on every ``step_hours`` hour boundary inside the space."""
    first = space.range_start.replace(minute=0, second=0, microsecond=0)
    if first < space.range_start:
        first += timedelta(hours=1)

    ticks = []
    current = first
    while current <= space.range_end:
        hour12 = current.hour % 12 or 12
        label = f"{hour12} {'AM' if current.hour < 12 else 'PM'}"
        ticks.append(
            Tick(
                instant=current,
                position=time_to_position(current, space),
                label=label,
                major=current.hour == 0,
            )
        )
        current += timedelta(hours=step_hours)
    return tuple(ticks)


def day_boundaries(space: TimelineCoordinateSpace) -> tuple[Tick, ...]:
    """Ticks at each midnight inside the space, labelled ``Mon 15``."""
    current = datetime.combine(space.range_start.date(), time.min)
    if current < space.range_start:
        current += timedelta(days=1)

    ticks = []
    while current <= space.range_end:
        ticks.append(
            Tick(
                instant=current,
                position=time_to_position(current, space),
                label=current.strftime("%a %d"),
                major=True,
            )
        )
        current += timedelta(days=1)
    return tuple(ticks)


def boundaries_for(space: TimelineCoordinateSpace, granularity: Granularity) -> tuple[Tick, ...]:
    if granularity == Granularity.DAY:
        return hour_ticks(space)
    return day_boundaries(space)


def optimal_day_range(day: date, intervals: Iterable[TimeWindow]) -> TimeWindow:
    """Visible range for a day view that covers the given availability and jobs.

    Starts from 06:00-20:00, widens to cover every interval on ``day``, pads
    one hour each side, then keeps the span between 8 and 18 hours, centring
    on business hours when it has to shrink.
    """
    midnight = datetime.combine(day, time.min)
    earliest = DEFAULT_START_HOUR
    latest = DEFAULT_END_HOUR

    for interval in intervals:
        if interval.start.date() != day:
            continue
        earliest = min(earliest, interval.start.hour)
        end_hours = math.ceil((interval.end - midnight).total_seconds() / 3600)
        latest = max(latest, min(24, end_hours))

    earliest = max(0, earliest - PADDING_HOURS)
    latest = min(24, latest + PADDING_HOURS)

    if latest - earliest < MIN_HOURS_DISPLAY:
        center = (earliest + latest) / 2
        earliest = max(0, math.floor(center - MIN_HOURS_DISPLAY / 2))
        latest = min(24, math.ceil(center + MIN_HOURS_DISPLAY / 2))

    if latest - earliest > MAX_HOURS_DISPLAY:
        if earliest <= BUSINESS_START_HOUR and latest >= BUSINESS_END_HOUR:
            earliest = BUSINESS_START_HOUR - 2
            latest = BUSINESS_END_HOUR + 2
        else:
            latest = earliest + MAX_HOURS_DISPLAY

    return TimeWindow(midnight + timedelta(hours=earliest), midnight + timedelta(hours=latest))
